"""ReviewStore — the application facade over the Review aggregate.

Callers (the HTTP routes, collaborators in other bounded contexts, scripts)
go through the store rather than issuing commands directly. It provides
what the command handlers alone cannot:

* single-writer sections: one lock per review around every mutation, and
  one per (product, author) around creation, so read-modify-write cycles in
  the handlers never race;
* rating maintenance: after a mutation commits, the store decides whether
  the product's rating aggregate is affected and triggers the recomputer.
  Recomputation failures are handled there and never reach the caller;
* queries returning fresh Review aggregates.

Every public method pushes the domain context itself, so the store is safe
to call from worker threads.
"""

import json
from contextlib import contextmanager

from protean.exceptions import ValidationError

from reviews.rating.recomputation import RatingRecomputer
from reviews.review.editing import UpdateReview
from reviews.review.moderation import SetReviewApproval
from reviews.review.removal import DeleteReview
from reviews.review.response import AddModeratorResponse
from reviews.review.review import Review, Role
from reviews.review.submission import CreateReview
from reviews.review.voting import ToggleDislike, ToggleLike
from reviews.utils.locks import KeyedLocks
from reviews.utils.logging import bound_context, get_logger
from reviews.utils.queries import fetch_all

logger = get_logger(__name__)

SORT_ORDERS = ("recent", "helpful", "rating")


def _role_value(role) -> str:
    if isinstance(role, Role):
        return role.value
    return str(role) if role else Role.CUSTOMER.value


def _json_or_none(images):
    return json.dumps(images) if images is not None else None


class ReviewStore:
    def __init__(self, domain, recomputer: RatingRecomputer | None = None) -> None:
        self.domain = domain
        self.recomputer = recomputer or RatingRecomputer(domain)
        self._locks = KeyedLocks()

    @contextmanager
    def _operation(self, name, **context):
        with self.domain.domain_context(), bound_context(operation=name, **context):
            yield

    def _repo(self):
        return self.domain.repository_for(Review)

    def _process(self, command):
        return self.domain.process(command, asynchronous=False)

    @staticmethod
    def _with_children(review):
        # Child collections load lazily and need the domain context
        review.images  # noqa: B018
        review.votes  # noqa: B018
        return review

    def _load(self, review_id) -> Review:
        return self._with_children(self._repo().get(review_id))

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def create_review(
        self,
        product_id,
        author_id,
        title,
        body,
        rating,
        images=None,
        is_approved=False,
    ) -> Review:
        with self._operation("create_review", product_id=str(product_id), author_id=str(author_id)):
            with self._locks.hold("author", product_id, author_id):
                review_id = self._process(
                    CreateReview(
                        product_id=product_id,
                        author_id=author_id,
                        title=title,
                        body=body,
                        rating=rating,
                        images=_json_or_none(images),
                        is_approved=bool(is_approved),
                    )
                )

            review = self._load(review_id)
            logger.info("Review created", review_id=review_id, is_approved=review.is_approved)

            if review.is_approved:
                self.recomputer.trigger(review.product_id)
            return review

    def update_review(
        self,
        review_id,
        author_id,
        title=None,
        body=None,
        rating=None,
        images=None,
    ) -> Review:
        with self._operation("update_review", review_id=str(review_id)):
            with self._locks.hold("review", review_id):
                previous_score = self._repo().get(review_id).rating.score
                self._process(
                    UpdateReview(
                        review_id=review_id,
                        author_id=author_id,
                        title=title,
                        body=body,
                        rating=rating,
                        images=_json_or_none(images),
                    )
                )
                review = self._load(review_id)

            logger.info("Review updated", previous_rating=previous_score, rating=review.rating.score)

            if review.is_approved and review.rating.score != previous_score:
                self.recomputer.trigger(review.product_id)
            return review

    def set_approval(self, review_id, approved, moderator_id, role) -> Review:
        with self._operation("set_approval", review_id=str(review_id)):
            with self._locks.hold("review", review_id):
                self._process(
                    SetReviewApproval(
                        review_id=review_id,
                        approved=bool(approved),
                        moderator_id=moderator_id,
                        moderator_role=_role_value(role),
                    )
                )
                review = self._load(review_id)

            logger.info("Review approval set", is_approved=review.is_approved)

            self.recomputer.trigger(review.product_id)
            return review

    def delete_review(self, review_id, requester_id, role=Role.CUSTOMER) -> None:
        with self._operation("delete_review", review_id=str(review_id)):
            with self._locks.hold("review", review_id):
                review = self._repo().get(review_id)
                product_id, was_approved = review.product_id, review.is_approved
                self._process(
                    DeleteReview(
                        review_id=review_id,
                        requester_id=requester_id,
                        requester_role=_role_value(role),
                    )
                )

            logger.info("Review deleted", product_id=str(product_id), was_approved=was_approved)

            if was_approved:
                self.recomputer.trigger(product_id)

    def add_response(self, review_id, text, admin_id, role) -> Review:
        with self._operation("add_response", review_id=str(review_id)):
            with self._locks.hold("review", review_id):
                self._process(
                    AddModeratorResponse(
                        review_id=review_id,
                        admin_id=admin_id,
                        admin_role=_role_value(role),
                        text=text,
                    )
                )
                return self._load(review_id)

    def toggle_like(self, review_id, voter_id) -> Review:
        return self._vote(ToggleLike, review_id, voter_id)

    def toggle_dislike(self, review_id, voter_id) -> Review:
        return self._vote(ToggleDislike, review_id, voter_id)

    def _vote(self, command_cls, review_id, voter_id) -> Review:
        with self._operation("vote", review_id=str(review_id), voter_id=str(voter_id)):
            with self._locks.hold("review", review_id):
                state = self._process(command_cls(review_id=review_id, voter_id=voter_id))
                review = self._load(review_id)

            logger.debug("Vote recorded", vote_state=state, helpful_count=review.helpful_count)
            return review

    def mark_verified_purchase(self, customer_id, product_id) -> Review | None:
        """Flag the customer's review of the product as a verified purchase, if one exists."""
        with self._operation("mark_verified_purchase", product_id=str(product_id), author_id=str(customer_id)):
            with self._locks.hold("author", product_id, customer_id):
                existing = self._repo()._dao.query.filter(
                    author_id=str(customer_id),
                    product_id=str(product_id),
                ).all()
                if not existing.items:
                    return None

                review_id = existing.items[0].id
                with self._locks.hold("review", review_id):
                    review = self._load(review_id)
                    was_verified = review.verified_purchase
                    review.confirm_verified_purchase()
                    self._repo().add(review)

            if review.is_approved and not was_verified:
                self.recomputer.trigger(review.product_id)
            return review

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def get_review(self, review_id) -> Review:
        with self.domain.domain_context():
            return self._load(review_id)

    def list_product_reviews(self, product_id, approved_only=True, sort="recent") -> list[Review]:
        if sort not in SORT_ORDERS:
            raise ValidationError({"sort": [f"Unknown sort order '{sort}', expected one of {', '.join(SORT_ORDERS)}"]})

        filters = {"product_id": str(product_id)}
        if approved_only:
            filters["is_approved"] = True

        with self.domain.domain_context():
            items = [self._with_children(r) for r in fetch_all(self._repo(), **filters)]

        items.sort(key=lambda r: r.created_at, reverse=True)
        if sort == "helpful":
            items.sort(key=lambda r: r.helpful_count, reverse=True)
        elif sort == "rating":
            items.sort(key=lambda r: r.rating.score, reverse=True)
        return items

    def moderation_queue(self, product_id=None) -> list[Review]:
        """Unapproved reviews, oldest first."""
        filters = {"is_approved": False}
        if product_id is not None:
            filters["product_id"] = str(product_id)

        with self.domain.domain_context():
            items = [self._with_children(r) for r in fetch_all(self._repo(), **filters)]
        return sorted(items, key=lambda r: r.created_at)

    def get_product_rating_summary(self, product_id) -> dict:
        with self.domain.domain_context():
            return self.recomputer.get_product_rating_summary(product_id)

    # -------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------
    def reconcile_ratings(self, product_ids=None) -> dict:
        with self._operation("reconcile_ratings"):
            return self.recomputer.reconcile(product_ids=product_ids)


_store_instance = None


def get_review_store() -> ReviewStore:
    """Return the process-wide ReviewStore (singleton)."""
    global _store_instance
    if _store_instance is None:
        from reviews.domain import reviews

        _store_instance = ReviewStore(reviews)
    return _store_instance


def reset_review_store() -> None:
    """Reset the store singleton (useful for testing)."""
    global _store_instance
    if _store_instance is not None:
        _store_instance.recomputer.shutdown()
    _store_instance = None
