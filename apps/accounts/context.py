"""
Per-request actor context.

The acting member is resolved once per request by ActorMiddleware and
passed explicitly to the service layer. Role checks match on `role`.
"""

from dataclasses import dataclass

from apps.accounts.models import Role
from apps.core.exceptions import ActorRequiredError


@dataclass(frozen=True)
class ActorContext:
    """Who is performing an action."""

    member_id: int
    role: Role

    @classmethod
    def from_member(cls, member) -> "ActorContext":
        return cls(member_id=member.pk, role=Role(member.role))


def get_actor(request) -> ActorContext:
    """Return the request's ActorContext or fail with 401."""
    actor = getattr(request, 'actor', None)
    if actor is None:
        raise ActorRequiredError()
    return actor
