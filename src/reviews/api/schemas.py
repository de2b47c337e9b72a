"""Pydantic request/response schemas for the Reviews API.

These are separate from Protean commands (anti-corruption pattern).
The API layer is the external contract; commands are internal domain concepts.
Content rules (rating range, lengths, blank text) are enforced by the Review
aggregate so that every entry point reports them the same way.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class ReviewImageSchema(BaseModel):
    url: str
    alt_text: str | None = None


class CreateReviewRequest(BaseModel):
    product_id: str
    rating: int
    title: str
    body: str
    images: list[ReviewImageSchema] | None = None
    is_approved: bool = False


class UpdateReviewRequest(BaseModel):
    title: str | None = None
    body: str | None = None
    rating: int | None = None
    images: list[ReviewImageSchema] | None = None


class SetApprovalRequest(BaseModel):
    approved: bool


class AddResponseRequest(BaseModel):
    text: str


class ReconcileRequest(BaseModel):
    product_ids: list[str] | None = None


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class ReviewIdResponse(BaseModel):
    review_id: str


class ModeratorResponseSchema(BaseModel):
    text: str
    admin_id: str
    responded_at: datetime | None = None


class ReviewResponse(BaseModel):
    review_id: str
    product_id: str
    author_id: str
    rating: int
    title: str
    body: str
    images: list[ReviewImageSchema] = []
    is_approved: bool
    verified_purchase: bool
    helpful_count: int
    likes: list[str] = []
    dislikes: list[str] = []
    response: ModeratorResponseSchema | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_review(cls, review) -> ReviewResponse:
        response = None
        if review.response is not None:
            response = ModeratorResponseSchema(
                text=review.response.text,
                admin_id=review.response.admin_id,
                responded_at=review.response.responded_at,
            )

        return cls(
            review_id=str(review.id),
            product_id=str(review.product_id),
            author_id=str(review.author_id),
            rating=review.rating.score,
            title=review.title,
            body=review.body,
            images=[
                ReviewImageSchema(url=img.url, alt_text=img.alt_text or None)
                for img in sorted(review.images, key=lambda i: i.display_order or 0)
            ],
            is_approved=bool(review.is_approved),
            verified_purchase=bool(review.verified_purchase),
            helpful_count=review.helpful_count or 0,
            likes=sorted(review.likes),
            dislikes=sorted(review.dislikes),
            response=response,
            created_at=review.created_at,
            updated_at=review.updated_at,
        )


class RatingSummaryResponse(BaseModel):
    average_rating: float
    review_count: int


class ReconcileResponse(BaseModel):
    reconciled: int
    failed: int
