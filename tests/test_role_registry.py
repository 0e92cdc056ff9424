"""
Tests for role table loading and fail-closed grant lookup.
"""
import json

import pytest
from pydantic import ValidationError

from workpulse.core.errors import RoleTableError
from workpulse.core.rbac import GrantLevel, Permission
from workpulse.models.role import Role, RoleTable
from workpulse.services.role_registry import RoleRegistry

from conftest import make_role


def test_default_table_loads_six_roles_in_hierarchy_order(default_registry):
    names = [r.name for r in default_registry.roles()]
    assert names == ["super_admin", "admin", "human_resource", "manager", "supervisor", "employee"]
    assert default_registry.version == "2026.02.13"


def test_flat_role_rows_are_folded_into_grants(default_registry):
    manager = default_registry.get_role(2)
    assert manager.grant_for(Permission.APPROVE_LEAVE) is GrantLevel.SUBORDINATES
    assert manager.grant_for(Permission.VIEW_USERS) is GrantLevel.ALL
    assert manager.grant_for(Permission.MANAGE_ROLES) is False


def test_get_grant_returns_stored_level(roles):
    registry = RoleRegistry.from_roles(roles.values())
    assert registry.get_grant(2, Permission.APPROVE_LEAVE) is GrantLevel.SUBORDINATES
    assert registry.get_grant(1, "can_manage_roles") is True


def test_missing_role_fails_closed(roles):
    registry = RoleRegistry.from_roles(roles.values())
    assert registry.get_grant(999, Permission.APPROVE_LEAVE) is GrantLevel.NONE
    assert registry.get_grant(None, Permission.MANAGE_ROLES) is False


def test_inactive_role_fails_closed():
    registry = RoleRegistry.from_roles(
        [make_role(7, "retired", 1, active=False, can_approve_leave=GrantLevel.ALL, can_manage_roles=True)]
    )
    assert registry.get_grant(7, Permission.APPROVE_LEAVE) is GrantLevel.NONE
    assert registry.get_grant(7, Permission.MANAGE_ROLES) is False
    assert registry.get_role(7) is not None
    assert registry.get_active_role(7) is None


def test_unknown_permission_key_fails_closed(roles):
    registry = RoleRegistry.from_roles(roles.values())
    assert registry.get_grant(1, "can_launch_rockets") is False


def test_unset_permission_resolves_to_most_restrictive(roles):
    employee = roles["employee"]
    assert employee.grant_for(Permission.VIEW_ACTIVITIES) is GrantLevel.NONE
    assert employee.grant_for(Permission.MANAGE_EMAIL_SETTINGS) is False


def test_legacy_enum_values_for_boolean_permission_are_normalised():
    role = Role(id=1, name="legacy", can_manage_system_settings="all", can_manage_roles="none")
    assert role.grant_for(Permission.MANAGE_SYSTEM_SETTINGS) is True
    assert role.grant_for(Permission.MANAGE_ROLES) is False


@pytest.mark.parametrize(
    "grants",
    [
        {"can_approve_leave": True},
        {"can_approve_leave": "everyone"},
        {"can_manage_roles": "subordinates"},
        {"can_fly": "all"},
    ],
)
def test_invalid_grants_are_rejected(grants):
    with pytest.raises(ValidationError):
        Role(id=1, name="bad", grants=grants)


def test_duplicate_role_ids_are_rejected():
    with pytest.raises(ValidationError):
        RoleTable(version="1", roles=[make_role(1, "a", 0), make_role(1, "b", 1)])


def test_duplicate_role_names_are_rejected():
    with pytest.raises(ValidationError):
        RoleTable(version="1", roles=[make_role(1, "a", 0), make_role(2, "a", 1)])


def test_from_file_reports_missing_and_invalid_tables(tmp_path):
    with pytest.raises(RoleTableError):
        RoleRegistry.from_file(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text(json.dumps({"version": "1", "roles": [{"id": 1, "name": "x", "can_approve_leave": "maybe"}]}))
    with pytest.raises(RoleTableError):
        RoleRegistry.from_file(broken)


def test_substitute_role_table_from_file(tmp_path):
    path = tmp_path / "roles.json"
    path.write_text(
        json.dumps(
            {
                "version": "custom-1",
                "roles": [{"id": 10, "name": "auditor", "hierarchy_level": 2, "can_view_reports": "all"}],
            }
        )
    )
    registry = RoleRegistry.from_file(path)
    assert registry.version == "custom-1"
    assert registry.get_grant(10, Permission.VIEW_REPORTS) is GrantLevel.ALL
