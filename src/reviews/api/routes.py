"""FastAPI routes for the Reviews & Ratings bounded context.

Each route translates between Pydantic schemas (external contract) and
ReviewStore calls. The acting user arrives in the X-User-Id and X-User-Role
headers set by the auth layer in front of this service.
"""

from fastapi import APIRouter, Header, Response

from reviews.api.schemas import (
    AddResponseRequest,
    CreateReviewRequest,
    RatingSummaryResponse,
    ReconcileRequest,
    ReconcileResponse,
    ReviewIdResponse,
    ReviewResponse,
    SetApprovalRequest,
    UpdateReviewRequest,
)
from reviews.exceptions import AuthorizationError
from reviews.review.review import Role
from reviews.review.store import get_review_store

review_router = APIRouter(prefix="/reviews", tags=["reviews"])


def _images(images):
    if images is None:
        return None
    return [img.model_dump() for img in images]


def _require_moderator(role: str, action: str) -> None:
    if role != Role.MODERATOR.value:
        raise AuthorizationError({"role": [f"Only moderators can {action}"]})


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------
@review_router.get("/products/{product_id}", response_model=list[ReviewResponse])
async def list_product_reviews(
    product_id: str,
    sort: str = "recent",
    include_unapproved: bool = False,
    x_user_role: str = Header(default=Role.CUSTOMER.value),
) -> list[ReviewResponse]:
    """List a product's reviews. Only moderators may include unapproved ones."""
    if include_unapproved:
        _require_moderator(x_user_role, "see unapproved reviews")

    reviews = get_review_store().list_product_reviews(
        product_id,
        approved_only=not include_unapproved,
        sort=sort,
    )
    return [ReviewResponse.from_review(r) for r in reviews]


@review_router.get("/products/{product_id}/rating", response_model=RatingSummaryResponse)
async def get_product_rating(product_id: str) -> RatingSummaryResponse:
    """Average rating and approved review count for a product."""
    summary = get_review_store().get_product_rating_summary(product_id)
    return RatingSummaryResponse(**summary)


@review_router.get("/moderation/queue", response_model=list[ReviewResponse])
async def moderation_queue(
    product_id: str | None = None,
    x_user_role: str = Header(default=Role.CUSTOMER.value),
) -> list[ReviewResponse]:
    """Reviews awaiting approval, oldest first."""
    _require_moderator(x_user_role, "view the moderation queue")
    reviews = get_review_store().moderation_queue(product_id=product_id)
    return [ReviewResponse.from_review(r) for r in reviews]


@review_router.get("/{review_id}", response_model=ReviewResponse)
async def get_review(review_id: str) -> ReviewResponse:
    return ReviewResponse.from_review(get_review_store().get_review(review_id))


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------
@review_router.post("", status_code=201, response_model=ReviewIdResponse)
async def create_review(
    body: CreateReviewRequest,
    x_user_id: str = Header(),
    x_user_role: str = Header(default=Role.CUSTOMER.value),
) -> ReviewIdResponse:
    """Submit a new product review."""
    if body.is_approved:
        _require_moderator(x_user_role, "publish reviews without moderation")

    review = get_review_store().create_review(
        product_id=body.product_id,
        author_id=x_user_id,
        title=body.title,
        body=body.body,
        rating=body.rating,
        images=_images(body.images),
        is_approved=body.is_approved,
    )
    return ReviewIdResponse(review_id=str(review.id))


@review_router.put("/{review_id}", response_model=ReviewResponse)
async def update_review(
    review_id: str,
    body: UpdateReviewRequest,
    x_user_id: str = Header(),
) -> ReviewResponse:
    """Edit an existing review. Author only."""
    review = get_review_store().update_review(
        review_id,
        author_id=x_user_id,
        title=body.title,
        body=body.body,
        rating=body.rating,
        images=_images(body.images),
    )
    return ReviewResponse.from_review(review)


@review_router.put("/{review_id}/approval", response_model=ReviewResponse)
async def set_approval(
    review_id: str,
    body: SetApprovalRequest,
    x_user_id: str = Header(),
    x_user_role: str = Header(default=Role.CUSTOMER.value),
) -> ReviewResponse:
    """Approve or unapprove a review. Moderator only."""
    review = get_review_store().set_approval(
        review_id,
        approved=body.approved,
        moderator_id=x_user_id,
        role=x_user_role,
    )
    return ReviewResponse.from_review(review)


@review_router.delete("/{review_id}", status_code=204)
async def delete_review(
    review_id: str,
    x_user_id: str = Header(),
    x_user_role: str = Header(default=Role.CUSTOMER.value),
) -> Response:
    """Delete a review. Author or moderator."""
    get_review_store().delete_review(review_id, requester_id=x_user_id, role=x_user_role)
    return Response(status_code=204)


@review_router.put("/{review_id}/response", response_model=ReviewResponse)
async def add_response(
    review_id: str,
    body: AddResponseRequest,
    x_user_id: str = Header(),
    x_user_role: str = Header(default=Role.CUSTOMER.value),
) -> ReviewResponse:
    """Attach or replace the moderator response on a review."""
    review = get_review_store().add_response(
        review_id,
        text=body.text,
        admin_id=x_user_id,
        role=x_user_role,
    )
    return ReviewResponse.from_review(review)


@review_router.post("/{review_id}/like", response_model=ReviewResponse)
async def toggle_like(review_id: str, x_user_id: str = Header()) -> ReviewResponse:
    return ReviewResponse.from_review(get_review_store().toggle_like(review_id, x_user_id))


@review_router.post("/{review_id}/dislike", response_model=ReviewResponse)
async def toggle_dislike(review_id: str, x_user_id: str = Header()) -> ReviewResponse:
    return ReviewResponse.from_review(get_review_store().toggle_dislike(review_id, x_user_id))


# ---------------------------------------------------------------------------
# Maintenance
# ---------------------------------------------------------------------------
@review_router.post("/maintenance/reconcile-ratings", response_model=ReconcileResponse)
async def reconcile_ratings(
    body: ReconcileRequest | None = None,
    x_user_role: str = Header(default=Role.CUSTOMER.value),
) -> ReconcileResponse:
    """Recompute products whose rating aggregate is pending repair.

    Designed to be called periodically (e.g., by a cron job).
    """
    _require_moderator(x_user_role, "run maintenance tasks")
    product_ids = body.product_ids if body is not None else None
    result = get_review_store().reconcile_ratings(product_ids=product_ids)
    return ReconcileResponse(**result)
