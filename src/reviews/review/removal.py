"""DeleteReview — delete a review.

The author or a moderator may delete. The record is removed from the
store, so it drops out of every later rating recomputation.
"""

from protean.fields import Identifier, String
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from reviews.domain import reviews
from reviews.exceptions import AuthorizationError
from reviews.review.review import Review, Role


@reviews.command(part_of="Review")
class DeleteReview:
    review_id = Identifier(required=True)
    requester_id = Identifier(required=True)
    requester_role = String(default=Role.CUSTOMER.value)


@reviews.command_handler(part_of=Review)
class DeleteReviewHandler:
    @handle(DeleteReview)
    def delete_review(self, command):
        repo = current_domain.repository_for(Review)
        review = repo.get(command.review_id)

        is_moderator = command.requester_role == Role.MODERATOR.value
        if not (is_moderator or review.is_authored_by(command.requester_id)):
            raise AuthorizationError({"requester_id": ["Only the author or a moderator can delete this review"]})

        review.record_deletion(deleted_by=command.requester_id)
        repo._dao.delete(review)
