"""Permission bindings for the workforce backend's guarded routes.

The HTTP collaborator enforces one permission per route; the matrix verifier
uses this catalog to report decisions per method/route.
"""

from workpulse.core.rbac import Permission
from workpulse.models.matrix import EndpointBinding


def _bind(method: str, route: str, permission: Permission, description: str) -> EndpointBinding:
    return EndpointBinding(method=method, route=route, permission=permission.value, description=description)


ENDPOINTS: list[EndpointBinding] = [
    # admin
    _bind("GET", "/api/admin/dashboard/stats", Permission.ACCESS_WEBAPP, "Dashboard statistics"),
    _bind("GET", "/api/admin/incomplete-profiles", Permission.MANAGE_USERS, "Incomplete user profiles"),
    _bind("GET", "/api/admin/calendar", Permission.MANAGE_SCHEDULE, "Leave and on-duty calendar"),
    _bind("GET", "/api/admin/users", Permission.VIEW_USERS, "List users"),
    _bind("POST", "/api/admin/users", Permission.MANAGE_USERS, "Create a user"),
    _bind("PUT", "/api/admin/users/{id}", Permission.MANAGE_USERS, "Update user details"),
    _bind("POST", "/api/admin/users/{id}/reset-password", Permission.MANAGE_USERS, "Reset a user's password"),
    _bind("GET", "/api/admin/reports", Permission.VIEW_REPORTS, "Attendance and leave reports"),
    # leave
    _bind("GET", "/api/leave/pending", Permission.APPROVE_LEAVE, "Pending leave requests"),
    _bind("PUT", "/api/leave/{id}/status", Permission.APPROVE_LEAVE, "Approve or reject leave"),
    _bind("GET", "/api/leave/user-balance/{id}", Permission.APPROVE_LEAVE, "Leave balance of a user"),
    # on-duty
    _bind("GET", "/api/onduty", Permission.APPROVE_ONDUTY, "On-duty requests"),
    _bind("PUT", "/api/onduty/{id}/status", Permission.APPROVE_ONDUTY, "Approve or reject on-duty"),
    _bind("GET", "/api/onduty/active-all", Permission.MANAGE_ACTIVE_ONDUTY, "Currently active on-duty staff"),
    # time-off
    _bind("PUT", "/api/timeoff/{id}/status", Permission.APPROVE_TIMEOFF, "Approve or reject time-off"),
    # roles
    _bind("GET", "/api/roles/{id}", Permission.MANAGE_ROLES, "Role details"),
    _bind("POST", "/api/roles", Permission.MANAGE_ROLES, "Create a role"),
    _bind("PUT", "/api/roles/{id}", Permission.MANAGE_ROLES, "Update a role"),
    _bind("PUT", "/api/roles/hierarchy/update", Permission.MANAGE_ROLES, "Reorder role hierarchy"),
    # activities
    _bind("GET", "/api/activities", Permission.VIEW_ACTIVITIES, "Activity log"),
    _bind("GET", "/api/activities/user/{id}", Permission.VIEW_ACTIVITIES, "Activity log of a user"),
    # leave types
    _bind("POST", "/api/leavetypes", Permission.MANAGE_LEAVE_TYPES, "Create a leave type"),
    _bind("PUT", "/api/leavetypes/{id}", Permission.MANAGE_LEAVE_TYPES, "Update a leave type"),
    _bind("PUT", "/api/user/{id}/leave-types", Permission.MANAGE_USERS, "Assign leave types to a user"),
    # settings and email
    _bind("POST", "/api/settings", Permission.MANAGE_SYSTEM_SETTINGS, "Update system settings"),
    _bind("GET", "/api/email/config", Permission.MANAGE_EMAIL_SETTINGS, "Email configuration"),
    _bind("POST", "/api/email/config", Permission.MANAGE_EMAIL_SETTINGS, "Update email configuration"),
    _bind("PUT", "/api/email/templates/{id}", Permission.MANAGE_EMAIL_SETTINGS, "Update an email template"),
]
