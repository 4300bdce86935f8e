"""
Member views for the Microloan Manager.

Views are thin — all business logic is in the service layer.
"""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.accounts.context import get_actor
from apps.accounts.serializers import (
    BorrowerSerializer,
    MemberResponseSerializer,
    RegisterMemberSerializer,
)
from apps.accounts.services import MemberService, dashboard_path_for

logger = logging.getLogger(__name__)


class RegisterMemberView(APIView):
    """
    POST /api/register

    Register a new lender or borrower.
    """

    def post(self, request):
        """Handle member registration."""
        serializer = RegisterMemberSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        member = MemberService.register(serializer.validated_data)

        return Response(
            MemberResponseSerializer(member).data,
            status=status.HTTP_201_CREATED,
        )


class MeView(APIView):
    """
    GET /api/me

    The acting member and the dashboard their role lands on.
    """

    def get(self, request):
        actor = get_actor(request)
        member = MemberService.get_member(actor.member_id)

        data = MemberResponseSerializer(member).data
        data['dashboard_path'] = dashboard_path_for(actor.role)
        return Response(data, status=status.HTTP_200_OK)


class BorrowerListCreateView(APIView):
    """
    GET  /api/borrowers: borrowers onboarded by the lender
    POST /api/borrowers: onboard a new borrower
    """

    def get(self, request):
        actor = get_actor(request)
        borrowers = MemberService.list_borrowers(actor)
        return Response(
            MemberResponseSerializer(borrowers, many=True).data,
            status=status.HTTP_200_OK,
        )

    def post(self, request):
        actor = get_actor(request)
        serializer = BorrowerSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        borrower = MemberService.onboard_borrower(actor, serializer.validated_data)

        return Response(
            MemberResponseSerializer(borrower).data,
            status=status.HTTP_201_CREATED,
        )
