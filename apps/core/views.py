"""
Core views for the Microloan Manager.
"""

import logging

from django.http import JsonResponse
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.accounts.context import get_actor
from apps.accounts.permissions import Permission, require_permission
from apps.core.tasks import cleanup_trashed_loans

logger = logging.getLogger(__name__)


def health_check(request):
    """
    GET /health/

    Simple health check endpoint for Docker and load balancer probes.
    Exempt from API key authentication.
    """
    return JsonResponse({'status': 'healthy'}, status=200)


class TriggerCleanupView(APIView):
    """
    POST /api/maintenance/cleanup-trash

    Queue the platform-wide trash cleanup sweep on Celery.
    """

    def post(self, request):
        """Trigger the cleanup task."""
        actor = get_actor(request)
        require_permission(actor, Permission.SYSTEM_SETTINGS)

        task = cleanup_trashed_loans.delay()

        logger.info(
            "Trash cleanup triggered by member %d, task=%s",
            actor.member_id,
            task.id,
        )

        return Response(
            {
                'message': 'Trash cleanup task has been triggered.',
                'task_id': task.id,
            },
            status=status.HTTP_202_ACCEPTED,
        )
