"""
Member serializers for the Microloan Manager.
"""

from decimal import Decimal

from rest_framework import serializers

from apps.accounts.models import Member, Role


class BorrowerSerializer(serializers.Serializer):
    """Serializer for onboarding a borrower."""

    full_name = serializers.CharField(
        max_length=200,
        required=True,
        help_text="Member's full name.",
    )
    email = serializers.EmailField(
        required=True,
        help_text="Login email.",
    )
    phone = serializers.CharField(
        max_length=20,
        required=True,
        help_text="Phone number, 10 digits.",
    )
    monthly_income = serializers.DecimalField(
        max_digits=15,
        decimal_places=2,
        min_value=Decimal('0'),
        required=False,
        allow_null=True,
        help_text="Declared monthly income.",
    )

    def validate_email(self, value):
        """Emails are unique across members."""
        if Member.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError(
                "A member with this email already exists."
            )
        return value

    def validate_phone(self, value):
        """Validate phone number is a valid 10-digit number."""
        digits = value.strip()
        if not digits.isdigit() or len(digits) != 10:
            raise serializers.ValidationError(
                "Phone number must be a valid 10-digit number."
            )
        return digits


class RegisterMemberSerializer(BorrowerSerializer):
    """Serializer for self-registration as lender or borrower."""

    role = serializers.ChoiceField(
        choices=[
            (Role.LENDER.value, Role.LENDER.label),
            (Role.BORROWER.value, Role.BORROWER.label),
        ],
        required=True,
        help_text="Either lender or borrower.",
    )


class MemberResponseSerializer(serializers.Serializer):
    """Serializer for member responses."""

    member_id = serializers.IntegerField(source='pk')
    full_name = serializers.CharField()
    email = serializers.EmailField()
    phone = serializers.CharField()
    role = serializers.CharField()
    active = serializers.BooleanField()
    lender_id = serializers.IntegerField(allow_null=True)
    monthly_income = serializers.DecimalField(
        max_digits=15, decimal_places=2, allow_null=True,
    )
