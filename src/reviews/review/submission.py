"""CreateReview — submit a new product review.

Enforces one-review-per-author-per-product at handler level (cross-instance
check requires repository query). Checks the VerifiedPurchases projection to
flag verified purchases.
"""

import json

from protean.fields import Boolean, Identifier, Integer, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from reviews.domain import reviews
from reviews.exceptions import DuplicateError
from reviews.projections.verified_purchases import VerifiedPurchases
from reviews.review.review import Review


@reviews.command(part_of="Review")
class CreateReview:
    product_id = Identifier(required=True)
    author_id = Identifier(required=True)
    # Content is validated by the aggregate, not the command
    rating = Integer()
    title = Text()
    body = Text()
    images = Text()  # JSON array of {url, alt_text}
    is_approved = Boolean(default=False)


@reviews.command_handler(part_of=Review)
class CreateReviewHandler:
    @handle(CreateReview)
    def create_review(self, command):
        repo = current_domain.repository_for(Review)

        existing = repo._dao.query.filter(
            author_id=str(command.author_id),
            product_id=str(command.product_id),
        ).all()
        if existing.items:
            raise DuplicateError({"review": ["You have already reviewed this product"]})

        vps = (
            current_domain.repository_for(VerifiedPurchases)
            ._dao.query.filter(
                customer_id=str(command.author_id),
                product_id=str(command.product_id),
            )
            .all()
        )

        review = Review.submit(
            product_id=command.product_id,
            author_id=command.author_id,
            title=command.title,
            body=command.body,
            rating=command.rating,
            images=json.loads(command.images) if command.images else None,
            is_approved=command.is_approved,
            verified_purchase=bool(vps.items),
        )
        repo.add(review)
        return str(review.id)
