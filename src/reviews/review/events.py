"""Domain events for the Review aggregate.

All events are versioned, immutable facts representing state changes.
They feed cross-domain consumers through the contracts in shared.events.reviews;
rating aggregates are maintained by explicit recomputation, not by
listening to these events.
"""

from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text

from reviews.domain import reviews


@reviews.event(part_of="Review")
class ReviewSubmitted:
    """A customer submitted a new product review."""

    __version__ = "v1"

    review_id = Identifier(required=True)
    product_id = Identifier(required=True)
    author_id = Identifier(required=True)
    rating = Integer(required=True)
    title = String(required=True)
    body = Text(required=True)
    is_approved = Boolean(default=False)
    verified_purchase = Boolean(default=False)
    image_count = Integer(default=0)
    submitted_at = DateTime(required=True)


@reviews.event(part_of="Review")
class ReviewEdited:
    """The author changed the review's content."""

    __version__ = "v1"

    review_id = Identifier(required=True)
    product_id = Identifier(required=True)
    title = String()
    body = Text()
    rating = Integer()
    previous_rating = Integer()
    edited_at = DateTime(required=True)


@reviews.event(part_of="Review")
class ReviewApprovalChanged:
    """A moderator approved or unapproved the review."""

    __version__ = "v1"

    review_id = Identifier(required=True)
    product_id = Identifier(required=True)
    author_id = Identifier(required=True)
    rating = Integer(required=True)
    is_approved = Boolean(required=True)
    moderator_id = Identifier(required=True)
    changed_at = DateTime(required=True)


@reviews.event(part_of="Review")
class ReviewVoteToggled:
    """A voter's like/dislike state on the review changed."""

    __version__ = "v1"

    review_id = Identifier(required=True)
    voter_id = Identifier(required=True)
    previous_state = String(required=True)
    vote_state = String(required=True)
    helpful_count = Integer(required=True)
    like_count = Integer(required=True)
    dislike_count = Integer(required=True)
    voted_at = DateTime(required=True)


@reviews.event(part_of="Review")
class ModeratorResponseAdded:
    """A moderator attached (or replaced) the response on a review."""

    __version__ = "v1"

    review_id = Identifier(required=True)
    author_id = Identifier(required=True)
    admin_id = Identifier(required=True)
    text = Text(required=True)
    replaced_existing = Boolean(default=False)
    responded_at = DateTime(required=True)


@reviews.event(part_of="Review")
class VerifiedPurchaseConfirmed:
    """The Ordering domain confirmed the author bought the product."""

    __version__ = "v1"

    review_id = Identifier(required=True)
    product_id = Identifier(required=True)
    author_id = Identifier(required=True)
    confirmed_at = DateTime(required=True)


@reviews.event(part_of="Review")
class ReviewDeleted:
    """The review was deleted by its author or a moderator."""

    __version__ = "v1"

    review_id = Identifier(required=True)
    product_id = Identifier(required=True)
    author_id = Identifier(required=True)
    rating = Integer(required=True)
    was_approved = Boolean(required=True)
    deleted_by = Identifier(required=True)
    deleted_at = DateTime(required=True)
