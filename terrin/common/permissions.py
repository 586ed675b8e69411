"""Role to permission mapping used by route dependencies."""

from __future__ import annotations

from terrin.common.enums import Permission, UserRole

_HOMEOWNER = {
    Permission.VIEW_PROJECTS,
    Permission.CREATE_PROJECTS,
    Permission.EDIT_PROJECTS,
    Permission.DELETE_PROJECTS,
    Permission.VIEW_CONTRACTORS,
    Permission.SEND_MESSAGES,
    Permission.CREATE_PAYMENTS,
    Permission.VIEW_ESTIMATES,
    Permission.CREATE_ESTIMATES,
}

_PROFESSIONAL = {
    Permission.VIEW_PROJECTS,
    Permission.VIEW_CONTRACTORS,
    Permission.MANAGE_CONTRACTOR_PROFILE,
    Permission.SEND_MESSAGES,
    Permission.RECEIVE_PAYMENTS,
    Permission.VIEW_ESTIMATES,
}

ROLE_PERMISSIONS: dict[UserRole, frozenset[Permission]] = {
    UserRole.HOMEOWNER: frozenset(_HOMEOWNER),
    UserRole.PROFESSIONAL: frozenset(_PROFESSIONAL),
    UserRole.BOTH: frozenset(_HOMEOWNER | _PROFESSIONAL),
    UserRole.VISITOR: frozenset({Permission.VIEW_PROJECTS, Permission.VIEW_CONTRACTORS}),
    UserRole.ADMIN: frozenset(Permission),
}


def normalize_role(role: str | None) -> UserRole:
    """Map a stored role string to ``UserRole``; unknown values become visitor."""
    if role == "contractor":
        return UserRole.PROFESSIONAL
    try:
        return UserRole(role)
    except ValueError:
        return UserRole.VISITOR


def has_permission(role: str | UserRole | None, permission: Permission) -> bool:
    user_role = role if isinstance(role, UserRole) else normalize_role(role)
    return permission in ROLE_PERMISSIONS.get(user_role, frozenset())


def is_professional(role: str | None) -> bool:
    return normalize_role(role) in (UserRole.PROFESSIONAL, UserRole.BOTH)
