"""Reviews & Ratings bounded context — product reviews, votes and rating aggregates.

Stores one review per customer per product, tracks like/dislike votes,
attaches moderator responses, and keeps each product's denormalized
average rating consistent with its approved reviews.
"""

from protean.domain import Domain

from reviews.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging()

logger = get_logger(__name__)

# Domain Composition Root
reviews = Domain(name="reviews")
