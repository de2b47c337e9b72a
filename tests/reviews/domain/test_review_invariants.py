"""Tests for Review aggregate field rules and invariants."""

import pytest
from protean.exceptions import ValidationError
from reviews.review.review import Review


def _make_review(**overrides):
    defaults = {
        "product_id": "prod-001",
        "author_id": "cust-001",
        "rating": 4,
        "title": "Great product",
        "body": "I really enjoyed this product, it exceeded expectations.",
    }
    defaults.update(overrides)
    return Review.submit(**defaults)


class TestRatingRule:
    @pytest.mark.parametrize("rating", [0, 6])
    def test_out_of_range_rating_rejected(self, rating):
        with pytest.raises(ValidationError) as exc:
            _make_review(rating=rating)
        assert "Rating must be between 1 and 5" in str(exc.value)

    def test_missing_rating_rejected(self):
        with pytest.raises(ValidationError):
            _make_review(rating=None)


class TestTitleRules:
    def test_title_at_limit_accepted(self):
        review = _make_review(title="t" * 100)
        assert len(review.title) == 100

    def test_title_over_limit_rejected(self):
        with pytest.raises(ValidationError) as exc:
            _make_review(title="t" * 101)
        assert "title" in exc.value.messages

    def test_blank_title_rejected(self):
        with pytest.raises(ValidationError) as exc:
            _make_review(title="   ")
        assert "title" in exc.value.messages

    def test_missing_title_rejected(self):
        with pytest.raises(ValidationError):
            _make_review(title=None)


class TestBodyRules:
    def test_body_at_limit_accepted(self):
        review = _make_review(body="b" * 1000)
        assert len(review.body) == 1000

    def test_body_over_limit_rejected(self):
        with pytest.raises(ValidationError) as exc:
            _make_review(body="b" * 1001)
        assert "body" in exc.value.messages

    def test_blank_body_rejected(self):
        with pytest.raises(ValidationError) as exc:
            _make_review(body="\n\t ")
        assert "body" in exc.value.messages


class TestReferences:
    def test_product_required(self):
        with pytest.raises(ValidationError):
            _make_review(product_id=None)

    def test_author_required(self):
        with pytest.raises(ValidationError):
            _make_review(author_id=None)
