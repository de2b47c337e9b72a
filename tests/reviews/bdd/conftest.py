"""Shared BDD fixtures and step definitions for the Reviews domain."""

import pytest
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then
from reviews.review.events import (
    ModeratorResponseAdded,
    ReviewApprovalChanged,
    ReviewDeleted,
    ReviewEdited,
    ReviewSubmitted,
    ReviewVoteToggled,
    VerifiedPurchaseConfirmed,
)
from reviews.review.review import Review

_REVIEW_EVENT_CLASSES = {
    "ReviewSubmitted": ReviewSubmitted,
    "ReviewEdited": ReviewEdited,
    "ReviewApprovalChanged": ReviewApprovalChanged,
    "ReviewVoteToggled": ReviewVoteToggled,
    "ModeratorResponseAdded": ModeratorResponseAdded,
    "VerifiedPurchaseConfirmed": VerifiedPurchaseConfirmed,
    "ReviewDeleted": ReviewDeleted,
}


@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a review of product "{product_id}"'), target_fixture="review")
def review_of_product(product_id):
    review = Review.submit(
        product_id=product_id,
        author_id="cust-bdd",
        rating=4,
        title="BDD Test Review",
        body="A review written for behaviour tests.",
    )
    review._events.clear()
    return review


@given("the review is already approved")
def review_already_approved(review):
    review.set_approval(True, moderator_id="mod-setup")
    review._events.clear()


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then("the review action fails with a validation error")
def review_action_fails(error):
    assert error["exc"] is not None, "Expected a validation error but none was raised"
    assert isinstance(error["exc"], ValidationError)


@then(parsers.cfparse("a {event_type} event is raised"))
def review_event_raised(review, event_type):
    event_cls = _REVIEW_EVENT_CLASSES[event_type]
    assert any(
        isinstance(e, event_cls) for e in review._events
    ), f"No {event_type} event found. Events: {[type(e).__name__ for e in review._events]}"


@then(parsers.cfparse("the review helpful count is {count:d}"))
def review_helpful_count(review, count):
    assert review.helpful_count == count
