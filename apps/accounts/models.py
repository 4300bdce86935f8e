"""
Member model for the Microloan Manager.
"""

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models


class Role(models.TextChoices):
    """The closed set of roles a member can hold."""

    SUPER_ADMIN = 'super_admin', 'Super admin'
    LENDER = 'lender', 'Lender'
    BORROWER = 'borrower', 'Borrower'


class Member(models.Model):
    """
    A person using the platform.

    Lenders own loans, borrowers are the subject of loans, super admins
    manage members. A borrower onboarded by a lender keeps a reference
    to that lender.
    """

    full_name = models.CharField(
        max_length=200,
        help_text="Member's full name."
    )
    email = models.EmailField(
        unique=True,
        help_text="Login email, unique across members."
    )
    phone = models.CharField(
        max_length=20,
        db_index=True,
        help_text="Member's phone number."
    )
    role = models.CharField(
        max_length=20,
        choices=Role.choices,
        db_index=True,
        help_text="Member's role on the platform."
    )
    active = models.BooleanField(
        default=True,
        help_text="Inactive members cannot act on the platform."
    )
    lender = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='borrowers',
        help_text="Lender who onboarded this borrower.",
    )
    monthly_income = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0'))],
        help_text="Borrower's declared monthly income.",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'members'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['lender', 'role'], name='idx_member_lender_role'),
        ]

    def __str__(self):
        return f"{self.full_name} ({self.role}, ID: {self.pk})"
