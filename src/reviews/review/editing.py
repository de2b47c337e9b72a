"""UpdateReview — edit an existing review.

Only the original author can edit title, body, rating or images.
Approval state is untouched by edits.
"""

import json

from protean.fields import Identifier, Integer, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from reviews.domain import reviews
from reviews.exceptions import AuthorizationError
from reviews.review.review import Review


@reviews.command(part_of="Review")
class UpdateReview:
    review_id = Identifier(required=True)
    author_id = Identifier(required=True)  # Must match original author
    title = Text()
    body = Text()
    rating = Integer()
    images = Text()  # JSON array of {url, alt_text}; "[]" clears all images


@reviews.command_handler(part_of=Review)
class UpdateReviewHandler:
    @handle(UpdateReview)
    def update_review(self, command):
        repo = current_domain.repository_for(Review)
        review = repo.get(command.review_id)

        if not review.is_authored_by(command.author_id):
            raise AuthorizationError({"author_id": ["Only the review author can edit this review"]})

        # Build kwargs with sentinel for unset fields
        kwargs = {}
        if command.title is not None:
            kwargs["title"] = command.title
        if command.body is not None:
            kwargs["body"] = command.body
        if command.rating is not None:
            kwargs["rating"] = command.rating
        if command.images is not None:
            kwargs["images"] = json.loads(command.images)

        review.edit(**kwargs)
        repo.add(review)
