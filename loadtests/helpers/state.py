"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance maintains its own state — no cross-user sharing.
State tracks entity IDs returned by creation endpoints so follow-up
operations can reference them.
"""

from dataclasses import dataclass, field


@dataclass
class ReviewState:
    """Tracks state for a single simulated review lifecycle."""

    review_id: str | None = None
    product_id: str | None = None
    author_id: str | None = None
    rating: int | None = None
    is_approved: bool = False


@dataclass
class VoterState:
    """Tracks the reviews a simulated shopper has seen on product pages."""

    voter_id: str | None = None
    seen_review_ids: list[str] = field(default_factory=list)
