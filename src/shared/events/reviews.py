"""Cross-domain event contracts for Reviews domain events.

These classes define the event shape for consumption by other domains
(e.g. emailing authors when their review is approved or answered). Consumers
register them as external events via domain.register_external_event() with
matching __type__ strings so Protean's stream deserialization works correctly.

The source-of-truth events are in src/reviews/review/events.py.
"""

from protean.core.event import BaseEvent
from protean.fields import Boolean, DateTime, Identifier, Integer, Text


class ReviewApprovalChanged(BaseEvent):
    """A review was approved or unapproved by a moderator."""

    __version__ = "v1"

    review_id = Identifier(required=True)
    product_id = Identifier(required=True)
    author_id = Identifier(required=True)
    rating = Integer(required=True)
    is_approved = Boolean(required=True)
    moderator_id = Identifier(required=True)
    changed_at = DateTime(required=True)


class ModeratorResponseAdded(BaseEvent):
    """A moderator responded to a review."""

    __version__ = "v1"

    review_id = Identifier(required=True)
    author_id = Identifier(required=True)
    admin_id = Identifier(required=True)
    text = Text(required=True)
    replaced_existing = Boolean(default=False)
    responded_at = DateTime(required=True)
