"""Review aggregate (CQRS) — the core of the Reviews & Ratings domain.

A Review is one customer's rating and write-up of one product. It carries
its own vote records (the Vote Ledger), a single optional moderator
response and a binary approval flag. Only approved reviews count towards
the product's rating aggregate; the aggregate itself is maintained by
``reviews.rating.recomputation`` and never touched from here.

CQRS (not event sourced) — reviews are write-once-mostly with simple state
transitions and no temporal query needs.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from reviews.domain import reviews
from reviews.review import vote_ledger
from reviews.review.events import (
    ModeratorResponseAdded,
    ReviewApprovalChanged,
    ReviewDeleted,
    ReviewEdited,
    ReviewSubmitted,
    ReviewVoteToggled,
    VerifiedPurchaseConfirmed,
)
from reviews.review.vote_ledger import VoteState

# Sentinel for distinguishing "not provided" from None in partial updates
_UNSET = object()


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class Role(Enum):
    CUSTOMER = "Customer"
    MODERATOR = "Moderator"


class VoteType(Enum):
    LIKE = "Like"
    DISLIKE = "Dislike"


_STATE_TO_VOTE_TYPE = {
    VoteState.LIKED: VoteType.LIKE,
    VoteState.DISLIKED: VoteType.DISLIKE,
}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@reviews.value_object(part_of="Review")
class Rating:
    """A star rating from 1 to 5."""

    score = Integer(required=True)

    @invariant.post
    def score_must_be_in_range(self):
        if self.score is not None and (self.score < 1 or self.score > 5):
            raise ValidationError({"score": ["Rating must be between 1 and 5"]})


@reviews.value_object(part_of="Review")
class ModeratorResponse:
    """The single admin reply shown under a review."""

    text = Text(required=True)
    admin_id = String(required=True, max_length=255)
    responded_at = DateTime(required=True)

    @invariant.post
    def text_must_not_be_blank(self):
        if self.text is not None and len(self.text.strip()) == 0:
            raise ValidationError({"text": ["Response text cannot be empty"]})


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@reviews.entity(part_of="Review")
class ReviewImage:
    """A photo attached to a review, referenced by URL."""

    url = String(required=True, max_length=500)
    alt_text = String(max_length=255)
    display_order = Integer(default=0)


@reviews.entity(part_of="Review")
class ReviewVote:
    """One voter's like or dislike. A voter has at most one vote per review."""

    voter_id = Identifier(required=True)
    vote_type = String(choices=VoteType, required=True)
    voted_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@reviews.aggregate
class Review:
    """A customer's review of a product."""

    # Core identifiers
    product_id = Identifier(required=True)
    author_id = Identifier(required=True)

    # Content
    rating = ValueObject(Rating, required=True)
    title = String(required=True, max_length=100)
    body = String(required=True, max_length=1000)

    # Media
    images = HasMany(ReviewImage)

    # Moderation
    is_approved = Boolean(default=False)
    response = ValueObject(ModeratorResponse)

    # Verification
    verified_purchase = Boolean(default=False)

    # Voting
    votes = HasMany(ReviewVote)
    helpful_count = Integer(default=0)

    # Timestamps
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Invariants
    # -------------------------------------------------------------------
    @invariant.post
    def title_must_not_be_empty(self):
        if self.title is not None and len(self.title.strip()) == 0:
            raise ValidationError({"title": ["Review title cannot be empty"]})

    @invariant.post
    def body_must_not_be_empty(self):
        if self.body is not None and len(self.body.strip()) == 0:
            raise ValidationError({"body": ["Review body cannot be empty"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def submit(
        cls,
        product_id,
        author_id,
        title,
        body,
        rating,
        images=None,
        is_approved=False,
        verified_purchase=False,
    ):
        """Submit a new review."""
        now = datetime.now(UTC)

        review = cls(
            product_id=product_id,
            author_id=author_id,
            rating=Rating(score=rating),
            title=title,
            body=body,
            is_approved=bool(is_approved),
            verified_purchase=bool(verified_purchase),
            helpful_count=0,
            created_at=now,
            updated_at=now,
        )

        if images:
            review._attach_images(images)

        review.raise_(
            ReviewSubmitted(
                review_id=str(review.id),
                product_id=str(product_id),
                author_id=str(author_id),
                rating=rating,
                title=title,
                body=body,
                is_approved=review.is_approved,
                verified_purchase=review.verified_purchase,
                image_count=len(images) if images else 0,
                submitted_at=now,
            )
        )

        return review

    def _attach_images(self, images):
        for i, img in enumerate(images):
            self.add_images(
                ReviewImage(
                    url=img.get("url"),
                    alt_text=img.get("alt_text") or "",
                    display_order=i,
                )
            )

    def is_authored_by(self, user_id) -> bool:
        return str(self.author_id) == str(user_id)

    # -------------------------------------------------------------------
    # Edit
    # -------------------------------------------------------------------
    def edit(self, title=_UNSET, body=_UNSET, rating=_UNSET, images=_UNSET):
        """Change the review's content. Approval state is left untouched."""
        now = datetime.now(UTC)
        previous_rating = self.rating.score

        with atomic_change(self):
            if title is not _UNSET:
                self.title = title
            if body is not _UNSET:
                self.body = body
            if rating is not _UNSET:
                self.rating = Rating(score=rating)
            self.updated_at = now

        if images is not _UNSET:
            for image in list(self.images):
                self.remove_images(image)
            if images:
                self._attach_images(images)

        self.raise_(
            ReviewEdited(
                review_id=str(self.id),
                product_id=str(self.product_id),
                title=self.title,
                body=self.body,
                rating=self.rating.score,
                previous_rating=previous_rating,
                edited_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Moderation
    # -------------------------------------------------------------------
    def set_approval(self, approved, moderator_id):
        """Approve or unapprove the review. Setting the current value is a no-op."""
        approved = bool(approved)
        if approved == self.is_approved:
            return

        now = datetime.now(UTC)
        self.is_approved = approved
        self.updated_at = now

        self.raise_(
            ReviewApprovalChanged(
                review_id=str(self.id),
                product_id=str(self.product_id),
                author_id=str(self.author_id),
                rating=self.rating.score,
                is_approved=approved,
                moderator_id=str(moderator_id),
                changed_at=now,
            )
        )

    def respond(self, text, admin_id):
        """Attach a moderator response, replacing any earlier one."""
        now = datetime.now(UTC)
        replaced = self.response is not None

        self.response = ModeratorResponse(
            text=text,
            admin_id=str(admin_id),
            responded_at=now,
        )
        self.updated_at = now

        self.raise_(
            ModeratorResponseAdded(
                review_id=str(self.id),
                author_id=str(self.author_id),
                admin_id=str(admin_id),
                text=text,
                replaced_existing=replaced,
                responded_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Verification
    # -------------------------------------------------------------------
    def confirm_verified_purchase(self):
        """Flag the review as a verified purchase. Once set, the flag stays set."""
        if self.verified_purchase:
            return

        now = datetime.now(UTC)
        self.verified_purchase = True
        self.updated_at = now

        self.raise_(
            VerifiedPurchaseConfirmed(
                review_id=str(self.id),
                product_id=str(self.product_id),
                author_id=str(self.author_id),
                confirmed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Voting
    # -------------------------------------------------------------------
    @property
    def likes(self) -> frozenset:
        return frozenset(str(v.voter_id) for v in self.votes if v.vote_type == VoteType.LIKE.value)

    @property
    def dislikes(self) -> frozenset:
        return frozenset(str(v.voter_id) for v in self.votes if v.vote_type == VoteType.DISLIKE.value)

    def _vote_of(self, voter_id):
        return next(
            (v for v in self.votes if str(v.voter_id) == str(voter_id)),
            None,
        )

    def vote_state_of(self, voter_id) -> VoteState:
        vote = self._vote_of(voter_id)
        if vote is None:
            return VoteState.NONE
        if vote.vote_type == VoteType.LIKE.value:
            return VoteState.LIKED
        return VoteState.DISLIKED

    def toggle_like(self, voter_id) -> VoteState:
        return self._apply_vote(voter_id, vote_ledger.toggle_like)

    def toggle_dislike(self, voter_id) -> VoteState:
        return self._apply_vote(voter_id, vote_ledger.toggle_dislike)

    def _apply_vote(self, voter_id, transition) -> VoteState:
        """Move the voter to the next ledger state and re-derive the helpful count."""
        previous = self.vote_state_of(voter_id)
        new_state = transition(previous)
        now = datetime.now(UTC)

        existing = self._vote_of(voter_id)
        if existing is not None:
            self.remove_votes(existing)

        if new_state != VoteState.NONE:
            self.add_votes(
                ReviewVote(
                    voter_id=voter_id,
                    vote_type=_STATE_TO_VOTE_TYPE[new_state].value,
                    voted_at=now,
                )
            )

        likes, dislikes = self.likes, self.dislikes
        self.helpful_count = vote_ledger.helpful_count(likes, dislikes)
        self.updated_at = now

        self.raise_(
            ReviewVoteToggled(
                review_id=str(self.id),
                voter_id=str(voter_id),
                previous_state=previous.value,
                vote_state=new_state.value,
                helpful_count=self.helpful_count,
                like_count=len(likes),
                dislike_count=len(dislikes),
                voted_at=now,
            )
        )

        return new_state

    # -------------------------------------------------------------------
    # Deletion
    # -------------------------------------------------------------------
    def record_deletion(self, deleted_by):
        """Raise the deletion fact. The caller removes the record from the store."""
        self.raise_(
            ReviewDeleted(
                review_id=str(self.id),
                product_id=str(self.product_id),
                author_id=str(self.author_id),
                rating=self.rating.score,
                was_approved=bool(self.is_approved),
                deleted_by=str(deleted_by),
                deleted_at=datetime.now(UTC),
            )
        )
