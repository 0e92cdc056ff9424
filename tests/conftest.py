"""
Pytest configuration and fixtures.
"""
import os
import tempfile

os.environ.setdefault("WORKPULSE_DATA_DIR", tempfile.mkdtemp(prefix="workpulse-tests-"))

import pytest

from workpulse.core.config import settings
from workpulse.core.rbac import GrantLevel
from workpulse.models.role import Role
from workpulse.models.staff import Staff
from workpulse.services.authorization import AuthorizationEngine
from workpulse.services.org_graph import OrgGraph
from workpulse.services.role_registry import RoleRegistry


def make_role(role_id, name, level, active=True, **grants):
    return Role(id=role_id, name=name, display_name=name.title(), hierarchy_level=level, active=active, grants=grants)


def make_staff(staff_id, role_id=None, reporting_to=None, approving_manager_id=None, active=True):
    return Staff(
        staff_id=staff_id,
        full_name=f"Staff {staff_id}",
        role_id=role_id,
        reporting_to=reporting_to,
        approving_manager_id=approving_manager_id,
        active=active,
    )


@pytest.fixture(scope="session")
def default_registry():
    """Role registry loaded from the shipped role table."""
    return RoleRegistry.from_file(settings.role_table_path)


@pytest.fixture
def roles():
    """Small role table: super admin, manager and employee."""
    return {
        "super_admin": make_role(
            1,
            "super_admin",
            0,
            can_approve_leave=GrantLevel.ALL,
            can_manage_users=GrantLevel.ALL,
            can_view_reports=GrantLevel.ALL,
            can_manage_roles=True,
        ),
        "manager": make_role(
            2,
            "manager",
            3,
            can_approve_leave=GrantLevel.SUBORDINATES,
            can_manage_users=GrantLevel.SUBORDINATES,
            can_view_reports=GrantLevel.SUBORDINATES,
            can_access_webapp=True,
        ),
        "employee": make_role(4, "employee", 5, can_approve_leave=GrantLevel.NONE),
    }


@pytest.fixture
def org(roles):
    """
    1 super admin
    ├── 2 manager M
    │   ├── 3 employee E
    │   │   └── 6 employee (reports to E)
    │   └── 7 employee (inactive)
    └── 4 manager (other branch)
        └── 5 employee U
    8 employee with no manager, 9 staff with no role
    """
    return {
        1: make_staff(1, roles["super_admin"].id),
        2: make_staff(2, roles["manager"].id, reporting_to=1, approving_manager_id=1),
        3: make_staff(3, roles["employee"].id, reporting_to=2, approving_manager_id=2),
        4: make_staff(4, roles["manager"].id, reporting_to=1, approving_manager_id=1),
        5: make_staff(5, roles["employee"].id, reporting_to=4, approving_manager_id=4),
        6: make_staff(6, roles["employee"].id, reporting_to=3, approving_manager_id=2),
        7: make_staff(7, roles["employee"].id, reporting_to=2, active=False),
        8: make_staff(8, roles["employee"].id),
        9: make_staff(9, None, reporting_to=2),
    }


@pytest.fixture
def engine(roles, org):
    registry = RoleRegistry.from_roles(roles.values(), version="test")
    return AuthorizationEngine(registry, OrgGraph(org.values()))
