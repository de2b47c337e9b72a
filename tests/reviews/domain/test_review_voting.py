"""Tests for the Vote Ledger as applied by the Review aggregate."""

from reviews.review.events import ReviewVoteToggled
from reviews.review.review import Review, VoteType
from reviews.review.vote_ledger import VoteState


def _make_review():
    review = Review.submit(
        product_id="prod-001",
        author_id="cust-001",
        rating=4,
        title="Great product",
        body="I really enjoyed this product, it exceeded expectations.",
    )
    review._events.clear()
    return review


def _assert_ledger_consistent(review):
    assert review.likes.isdisjoint(review.dislikes)
    assert review.helpful_count == len(review.likes) - len(review.dislikes)


class TestToggleLike:
    def test_first_like(self):
        review = _make_review()
        state = review.toggle_like("voter-1")

        assert state == VoteState.LIKED
        assert review.likes == {"voter-1"}
        assert review.helpful_count == 1
        assert review.votes[0].vote_type == VoteType.LIKE.value

    def test_like_twice_removes_the_like(self):
        review = _make_review()
        review.toggle_like("voter-1")
        state = review.toggle_like("voter-1")

        assert state == VoteState.NONE
        assert review.likes == frozenset()
        assert len(review.votes) == 0
        assert review.helpful_count == 0

    def test_like_replaces_dislike(self):
        review = _make_review()
        review.toggle_dislike("voter-1")
        review.toggle_like("voter-1")

        assert review.likes == {"voter-1"}
        assert review.dislikes == frozenset()
        assert review.helpful_count == 1


class TestToggleDislike:
    def test_first_dislike(self):
        review = _make_review()
        state = review.toggle_dislike("voter-1")

        assert state == VoteState.DISLIKED
        assert review.dislikes == {"voter-1"}
        assert review.helpful_count == -1

    def test_like_then_dislike_leaves_voter_only_in_dislikes(self):
        review = _make_review()
        review.toggle_like("voter-1")
        review.toggle_dislike("voter-1")

        assert review.vote_state_of("voter-1") == VoteState.DISLIKED
        assert "voter-1" not in review.likes
        assert "voter-1" in review.dislikes

    def test_like_dislike_dislike_scenario(self):
        review = _make_review()

        review.toggle_like("voter-1")
        assert review.helpful_count == 1
        review.toggle_dislike("voter-1")
        assert review.helpful_count == -1
        review.toggle_dislike("voter-1")
        assert review.helpful_count == 0


class TestManyVoters:
    def test_helpful_count_tracks_sets(self):
        review = _make_review()
        for voter in ("v1", "v2", "v3"):
            review.toggle_like(voter)
        review.toggle_dislike("v4")
        review.toggle_dislike("v2")

        assert review.likes == {"v1", "v3"}
        assert review.dislikes == {"v2", "v4"}
        _assert_ledger_consistent(review)

    def test_author_may_vote_on_own_review(self):
        review = _make_review()
        review.toggle_like("cust-001")
        assert review.likes == {"cust-001"}

    def test_unknown_voter_state_is_none(self):
        review = _make_review()
        assert review.vote_state_of("nobody") == VoteState.NONE


class TestVoteEvents:
    def test_event_carries_transition_and_counts(self):
        review = _make_review()
        review.toggle_like("voter-1")
        review._events.clear()

        review.toggle_dislike("voter-1")

        assert len(review._events) == 1
        event = review._events[0]
        assert isinstance(event, ReviewVoteToggled)
        assert event.previous_state == VoteState.LIKED.value
        assert event.vote_state == VoteState.DISLIKED.value
        assert event.helpful_count == -1
        assert event.like_count == 0
        assert event.dislike_count == 1
