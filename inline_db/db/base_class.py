# File: /inline_db/db/base_class.py | Version: 2.0 | Title: Declarative Base
from sqlalchemy.orm import declarative_base

# Single, authoritative Base for all models
Base = declarative_base()
