"""
Member service layer.

All member-related business logic resides here.
Views delegate to this service — no business logic in views.
"""

import logging

from apps.accounts.models import Member, Role
from apps.accounts.permissions import Permission, require_permission
from apps.core.exceptions import MemberNotFoundError

logger = logging.getLogger(__name__)

DASHBOARD_PATHS = {
    Role.SUPER_ADMIN: '/dashboard/admin',
    Role.LENDER: '/dashboard/lender',
    Role.BORROWER: '/dashboard/borrower',
}


def dashboard_path_for(role) -> str:
    """
    Map a role to the dashboard it lands on after login.

    Raises:
        ValueError: If `role` is not a known role.
    """
    return DASHBOARD_PATHS[Role(role)]


class MemberService:
    """Service class for member-related operations."""

    @staticmethod
    def register(validated_data: dict) -> Member:
        """
        Register a new lender or borrower.

        Args:
            validated_data: Dict with full_name, email, phone, role and
                optionally monthly_income.

        Returns:
            The newly created Member instance.
        """
        member = Member.objects.create(
            full_name=validated_data['full_name'],
            email=validated_data['email'].lower(),
            phone=validated_data['phone'],
            role=validated_data['role'],
            monthly_income=validated_data.get('monthly_income'),
        )

        logger.info(
            "Registered %s %s (ID: %d)",
            member.role,
            member.full_name,
            member.pk,
        )

        return member

    @staticmethod
    def onboard_borrower(actor, validated_data: dict) -> Member:
        """
        Create a borrower on behalf of a lender.

        The borrower is linked to the acting lender. Super admins may
        onboard borrowers too, without a lender link.
        """
        require_permission(actor, Permission.CREATE_BORROWERS)

        borrower = Member.objects.create(
            full_name=validated_data['full_name'],
            email=validated_data['email'].lower(),
            phone=validated_data['phone'],
            role=Role.BORROWER,
            monthly_income=validated_data.get('monthly_income'),
            lender_id=actor.member_id if actor.role == Role.LENDER else None,
        )

        logger.info(
            "Member %d onboarded borrower %s (ID: %d)",
            actor.member_id,
            borrower.full_name,
            borrower.pk,
        )

        return borrower

    @staticmethod
    def list_borrowers(actor):
        """Borrowers visible to the actor."""
        require_permission(actor, Permission.VIEW_BORROWER_DATA)

        borrowers = Member.objects.filter(role=Role.BORROWER)
        if actor.role == Role.LENDER:
            borrowers = borrowers.filter(lender_id=actor.member_id)
        return borrowers.order_by('full_name')

    @staticmethod
    def get_member(member_id: int) -> Member:
        """
        Retrieve a member by ID.

        Raises:
            MemberNotFoundError: If the member does not exist.
        """
        try:
            return Member.objects.get(pk=member_id)
        except Member.DoesNotExist:
            raise MemberNotFoundError(
                detail=f"Member with ID {member_id} not found."
            )
