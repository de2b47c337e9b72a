"""SetReviewApproval — approve or unapprove a review.

Moderator-only. Approval decides whether the review's rating counts
towards the product aggregate.
"""

from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from reviews.domain import reviews
from reviews.exceptions import AuthorizationError
from reviews.review.review import Review, Role


@reviews.command(part_of="Review")
class SetReviewApproval:
    review_id = Identifier(required=True)
    approved = Boolean(default=True)
    moderator_id = Identifier(required=True)
    moderator_role = String(required=True)  # Role value supplied by the auth layer


@reviews.command_handler(part_of=Review)
class SetReviewApprovalHandler:
    @handle(SetReviewApproval)
    def set_review_approval(self, command):
        if command.moderator_role != Role.MODERATOR.value:
            raise AuthorizationError({"moderator_id": ["Only moderators can change review approval"]})

        repo = current_domain.repository_for(Review)
        review = repo.get(command.review_id)

        review.set_approval(
            approved=command.approved,
            moderator_id=command.moderator_id,
        )
        repo.add(review)
