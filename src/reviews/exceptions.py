"""Error taxonomy for the Reviews domain.

Field and rating violations surface as Protean's ``ValidationError`` and
missing reviews as ``ObjectNotFoundError``; the classes below cover the
cases Protean has no vocabulary for.
"""

from protean.exceptions import ObjectNotFoundError, ValidationError

NotFoundError = ObjectNotFoundError


class DuplicateError(ValidationError):
    """A review already exists for this (product, author) pair."""


class AuthorizationError(Exception):
    """The acting user may not perform this operation on the review."""

    def __init__(self, messages):
        self.messages = messages
        super().__init__(messages)


class RecomputationError(Exception):
    """A product's rating aggregate could not be brought up to date."""

    def __init__(self, product_id, cause=None):
        self.product_id = product_id
        self.cause = cause
        message = f"Rating recomputation failed for product {product_id}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
