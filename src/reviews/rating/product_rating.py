"""ProductRating — the per-product rating aggregate, and its repair queue.

Both records are written only by ``RatingRecomputer``. A ProductRating is
always a full re-derivation over the product's approved reviews; a
PendingRecomputation row exists while that derivation is known to have
failed and the stored aggregate may be stale.
"""

import json

from protean.fields import DateTime, Float, Identifier, Integer, Text

from reviews.domain import reviews

RATING_KEYS = ("1", "2", "3", "4", "5")


@reviews.projection
class ProductRating:
    product_id = Identifier(identifier=True, required=True)
    average_rating = Float(default=0.0)
    review_count = Integer(default=0)
    rating_distribution = Text()  # JSON: {"1": 0, "2": 0, "3": 0, "4": 0, "5": 0}
    verified_review_count = Integer(default=0)
    updated_at = DateTime()


@reviews.projection
class PendingRecomputation:
    product_id = Identifier(identifier=True, required=True)
    attempts = Integer(default=0)
    last_error = Text()
    failed_at = DateTime(required=True)


def empty_distribution() -> dict:
    return {key: 0 for key in RATING_KEYS}


def dump_distribution(distribution) -> str:
    return json.dumps(distribution, sort_keys=True)


def load_distribution(rating: ProductRating) -> dict:
    if not rating.rating_distribution:
        return empty_distribution()
    return json.loads(rating.rating_distribution)
