# File: /alembic/versions/0001_inline_databases.py | Version: 1.0 | Title: databases, database_entries, database_views
"""inline databases: schema, entries, persisted view state"""

from alembic import op
import sqlalchemy as sa

revision = "0001_inline_databases"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "databases",
        sa.Column("id", sa.String(), primary_key=True, nullable=False),
        sa.Column("organization_id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("schema", sa.JSON(), nullable=False),
        sa.Column("created_by_id", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_databases_organization_id", "databases", ["organization_id"])

    op.create_table(
        "database_entries",
        sa.Column("id", sa.String(), primary_key=True, nullable=False),
        sa.Column(
            "database_id",
            sa.String(),
            sa.ForeignKey("databases.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("properties", sa.JSON(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_by_id", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_database_entries_database_id", "database_entries", ["database_id"])
    op.create_index("ix_database_entries_db_position", "database_entries", ["database_id", "position"])

    op.create_table(
        "database_views",
        sa.Column("id", sa.String(), primary_key=True, nullable=False),
        sa.Column("location_id", sa.String(200), nullable=False, unique=True),
        sa.Column("database_id", sa.String(), nullable=False),
        sa.Column("owner_id", sa.String(64), nullable=True),
        sa.Column("organization_id", sa.String(64), nullable=False),
        sa.Column("view_type", sa.String(16), nullable=False, server_default="table"),
        sa.Column("filters", sa.JSON(), nullable=False),
        sa.Column("sort_by", sa.JSON(), nullable=True),
        sa.Column("group_by", sa.String(), nullable=True),
        sa.Column("hidden_columns", sa.JSON(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
    )
    op.create_index("ix_database_views_database", "database_views", ["database_id"])
    op.create_index("ix_database_views_org", "database_views", ["organization_id"])


def downgrade():
    op.drop_index("ix_database_views_org", table_name="database_views")
    op.drop_index("ix_database_views_database", table_name="database_views")
    op.drop_table("database_views")
    op.drop_index("ix_database_entries_db_position", table_name="database_entries")
    op.drop_index("ix_database_entries_database_id", table_name="database_entries")
    op.drop_table("database_entries")
    op.drop_index("ix_databases_organization_id", table_name="databases")
    op.drop_table("databases")
