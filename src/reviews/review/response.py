"""AddModeratorResponse — attach a moderator's reply to a review.

A review holds at most one response; a new one replaces the old in full.
"""

from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from reviews.domain import reviews
from reviews.exceptions import AuthorizationError
from reviews.review.review import Review, Role


@reviews.command(part_of="Review")
class AddModeratorResponse:
    review_id = Identifier(required=True)
    admin_id = Identifier(required=True)
    admin_role = String(required=True)
    text = Text()


@reviews.command_handler(part_of=Review)
class AddModeratorResponseHandler:
    @handle(AddModeratorResponse)
    def add_moderator_response(self, command):
        if command.admin_role != Role.MODERATOR.value:
            raise AuthorizationError({"admin_id": ["Only moderators can respond to reviews"]})

        repo = current_domain.repository_for(Review)
        review = repo.get(command.review_id)

        review.respond(text=command.text, admin_id=command.admin_id)
        repo.add(review)
