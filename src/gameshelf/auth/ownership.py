"""Resource-ownership checks.

Learn: Every owned row (review, collection entry, the user record itself)
stores its owner's id at creation and never changes it. Mutations compare
that id to the caller's subject. Lookups happen first, so "doesn't exist"
(NotFoundError) and "exists but isn't yours" (ForbiddenError) stay
different outcomes at the call site.
"""

from dataclasses import dataclass
from typing import Union

from gameshelf.auth.identity import Identity
from gameshelf.services.errors import ForbiddenError


@dataclass(frozen=True)
class Allowed:
    pass


@dataclass(frozen=True)
class Denied:
    reason: str


Decision = Union[Allowed, Denied]


def authorize(subject: int, owner_id: int) -> Decision:
    if subject == owner_id:
        return Allowed()
    return Denied(reason=f"User {subject} does not own this resource")


def ensure_owner(identity: Identity, owner_id: int, resource: str = "resource") -> None:
    """Raise ForbiddenError unless identity owns the resource."""
    decision = authorize(identity.subject, owner_id)
    if isinstance(decision, Denied):
        raise ForbiddenError(f"Not allowed to modify this {resource}")
