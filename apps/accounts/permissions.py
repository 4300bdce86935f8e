"""
Role based permissions.

Each role maps to a fixed set of permissions. Unknown roles are rejected
rather than silently granted nothing.
"""

import logging
from enum import Enum

from apps.accounts.models import Role
from apps.core.exceptions import UnauthorizedActionError

logger = logging.getLogger(__name__)


class Permission(str, Enum):
    # Admin
    MANAGE_USERS = 'manage_users'
    MANAGE_LENDERS = 'manage_lenders'
    VIEW_ANALYTICS = 'view_analytics'
    SYSTEM_SETTINGS = 'system_settings'

    # Lender
    CREATE_BORROWERS = 'create_borrowers'
    MANAGE_LOANS = 'manage_loans'
    RECORD_PAYMENTS = 'record_payments'
    VIEW_BORROWER_DATA = 'view_borrower_data'

    # Borrower
    VIEW_OWN_LOANS = 'view_own_loans'
    VIEW_OWN_PAYMENTS = 'view_own_payments'
    UPLOAD_DOCUMENTS = 'upload_documents'


ADMIN_PERMISSIONS = frozenset({
    Permission.MANAGE_USERS,
    Permission.MANAGE_LENDERS,
    Permission.VIEW_ANALYTICS,
    Permission.SYSTEM_SETTINGS,
    Permission.CREATE_BORROWERS,
    Permission.MANAGE_LOANS,
    Permission.RECORD_PAYMENTS,
    Permission.VIEW_BORROWER_DATA,
    Permission.VIEW_OWN_LOANS,
    Permission.VIEW_OWN_PAYMENTS,
})

LENDER_PERMISSIONS = frozenset({
    Permission.CREATE_BORROWERS,
    Permission.MANAGE_LOANS,
    Permission.RECORD_PAYMENTS,
    Permission.VIEW_BORROWER_DATA,
    Permission.VIEW_OWN_LOANS,
    Permission.VIEW_OWN_PAYMENTS,
})

BORROWER_PERMISSIONS = frozenset({
    Permission.VIEW_OWN_LOANS,
    Permission.VIEW_OWN_PAYMENTS,
    Permission.UPLOAD_DOCUMENTS,
})


def permissions_for(role) -> frozenset:
    """Return the permissions granted to `role`."""
    role = Role(role)
    if role == Role.SUPER_ADMIN:
        return ADMIN_PERMISSIONS
    elif role == Role.LENDER:
        return LENDER_PERMISSIONS
    elif role == Role.BORROWER:
        return BORROWER_PERMISSIONS
    raise ValueError(f"Unhandled role {role!r}")


def has_permission(role, permission: Permission) -> bool:
    return permission in permissions_for(role)


def require_permission(actor, permission: Permission) -> None:
    """
    Raise UnauthorizedActionError unless the actor holds `permission`.
    """
    if not has_permission(actor.role, permission):
        logger.warning(
            "Member %d (%s) denied %s",
            actor.member_id,
            actor.role,
            permission.value,
        )
        raise UnauthorizedActionError(
            detail=f"Role '{Role(actor.role).value}' cannot {permission.value.replace('_', ' ')}."
        )
