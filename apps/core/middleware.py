"""
Request authentication middleware.

All endpoints except /health/ require a valid API key
in the X-API-KEY header. The acting member is named by X-ACTOR-ID.
"""

import logging

from django.conf import settings
from django.http import JsonResponse

logger = logging.getLogger(__name__)

# Paths that don't require authentication
EXEMPT_PATHS = (
    '/health/',
    '/health',
    '/admin/',
)


class APIKeyMiddleware:
    """
    Middleware that checks for a valid API key in the X-API-KEY header.

    If API_KEYS is empty in settings (e.g., during testing), the middleware
    is effectively disabled and all requests pass through.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        # Skip auth for exempt paths
        if any(request.path.startswith(path) for path in EXEMPT_PATHS):
            return self.get_response(request)

        # If no API keys configured, skip auth (dev/test mode)
        api_keys = getattr(settings, 'API_KEYS', [])
        if not api_keys:
            return self.get_response(request)

        # Check the X-API-KEY header
        provided_key = request.META.get('HTTP_X_API_KEY', '')

        if not provided_key:
            logger.warning(
                "Request to %s rejected: missing API key",
                request.path,
            )
            return JsonResponse(
                {
                    'error': True,
                    'status_code': 401,
                    'detail': 'Authentication required. Provide X-API-KEY header.',
                },
                status=401,
            )

        if provided_key not in api_keys:
            logger.warning(
                "Request to %s rejected: invalid API key",
                request.path,
            )
            return JsonResponse(
                {
                    'error': True,
                    'status_code': 403,
                    'detail': 'Invalid API key.',
                },
                status=403,
            )

        return self.get_response(request)


class ActorMiddleware:
    """
    Resolve the acting member from the X-ACTOR-ID header.

    Sets request.actor to an ActorContext for an active member, or None
    when the header is absent. Unknown or inactive members are rejected.
    Views receive the actor explicitly; nothing is stored globally.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.actor = None

        raw_id = request.META.get('HTTP_X_ACTOR_ID', '').strip()
        if not raw_id:
            return self.get_response(request)

        from apps.accounts.context import ActorContext
        from apps.accounts.models import Member

        member = None
        if raw_id.isdigit():
            member = Member.objects.filter(pk=int(raw_id), active=True).first()

        if member is None:
            logger.warning(
                "Request to %s rejected: unknown or inactive actor %r",
                request.path,
                raw_id,
            )
            return JsonResponse(
                {
                    'error': True,
                    'status_code': 401,
                    'detail': 'Unknown or inactive member in X-ACTOR-ID header.',
                },
                status=401,
            )

        request.actor = ActorContext.from_member(member)
        return self.get_response(request)
