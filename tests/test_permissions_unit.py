# File: tests/test_permissions_unit.py | Version: 2.0 | Path: /tests/test_permissions_unit.py
import pytest

from inline_db.core.errors import Forbidden
from inline_db.core.permissions import Role, has_min_role, require_role
from inline_db.security import Principal


def principal(role):
    return Principal(user_id="U1", organization_id="O1", role=role)


def test_has_min_role_true_when_admin_meets_member():
    assert has_min_role(principal("Admin"), Role.MEMBER) is True


def test_has_min_role_false_when_guest_does_not_meet_member():
    assert has_min_role(principal("Guest"), Role.MEMBER) is False


def test_role_names_are_case_insensitive():
    assert has_min_role(principal("  owner "), Role.ADMIN) is True


def test_require_role_allows_owner_when_min_admin():
    assert require_role(principal("Owner"), Role.ADMIN) is Role.OWNER


@pytest.mark.parametrize("role", [None, "Superuser", 7])
def test_require_role_denies_unknown_roles(role):
    with pytest.raises(Forbidden) as excinfo:
        require_role(principal(role), Role.GUEST)
    assert excinfo.value.status_code == 403
    assert "Guest" in excinfo.value.message


def test_require_role_uses_custom_message():
    with pytest.raises(Forbidden) as excinfo:
        require_role(principal("Member"), Role.ADMIN, message="Only admins may delete databases")
    assert excinfo.value.message == "Only admins may delete databases"
