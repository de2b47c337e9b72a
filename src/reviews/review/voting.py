"""ToggleLike / ToggleDislike — move a voter through the Vote Ledger.

Any user may vote, including the author. The handler re-reads the review
and writes the vote change and helpful count back in one aggregate save;
ReviewStore serializes calls per review so concurrent voters never work
from a stale copy.
"""

from protean.fields import Identifier
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from reviews.domain import reviews
from reviews.review.review import Review


@reviews.command(part_of="Review")
class ToggleLike:
    review_id = Identifier(required=True)
    voter_id = Identifier(required=True)


@reviews.command(part_of="Review")
class ToggleDislike:
    review_id = Identifier(required=True)
    voter_id = Identifier(required=True)


@reviews.command_handler(part_of=Review)
class VoteLedgerHandler:
    @handle(ToggleLike)
    def toggle_like(self, command):
        repo = current_domain.repository_for(Review)
        review = repo.get(command.review_id)

        state = review.toggle_like(command.voter_id)

        repo.add(review)
        return state.value

    @handle(ToggleDislike)
    def toggle_dislike(self, command):
        repo = current_domain.repository_for(Review)
        review = repo.get(command.review_id)

        state = review.toggle_dislike(command.voter_id)

        repo.add(review)
        return state.value
