"""Inbound cross-domain event handler — Reviews reacts to Ordering events.

Listens for OrderDelivered events from the Ordering domain. Each delivered
product is recorded in the VerifiedPurchases projection (consulted when a
review is created), and any review the customer already wrote for that
product is flagged as a verified purchase.

Cross-domain events are imported from shared.events.ordering and registered
as external events via reviews.register_external_event().
"""

import json
import uuid

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain
from protean.utils.mixins import handle
from shared.events.ordering import OrderDelivered

from reviews.domain import reviews
from reviews.projections.verified_purchases import VerifiedPurchases
from reviews.review.review import Review
from reviews.review.store import get_review_store

logger = structlog.get_logger(__name__)

# Register external event so Protean can deserialize it
reviews.register_external_event(OrderDelivered, "Ordering.OrderDelivered.v1")


@reviews.event_handler(part_of=Review, stream_category="ordering::order")
class OrderingEventsHandler:
    """Reacts to Ordering domain events to track verified purchases."""

    @handle(OrderDelivered)
    def on_order_delivered(self, event: OrderDelivered) -> None:
        if not event.customer_id:
            logger.info(
                "OrderDelivered missing customer_id, skipping verified purchase",
                order_id=str(event.order_id),
            )
            return

        if not event.items:
            logger.info(
                "OrderDelivered missing items, cannot create per-product records",
                order_id=str(event.order_id),
            )
            return

        vp_repo = current_domain.repository_for(VerifiedPurchases)
        customer_id = str(event.customer_id)

        for item in json.loads(event.items):
            product_id = item.get("product_id")
            if not product_id:
                logger.warning(
                    "Delivered item has no product_id, skipping",
                    order_id=str(event.order_id),
                )
                continue

            vp_repo.add(
                VerifiedPurchases(
                    vp_id=str(uuid.uuid4()),
                    customer_id=customer_id,
                    product_id=str(product_id),
                    variant_id=str(item.get("variant_id") or ""),
                    order_id=str(event.order_id),
                    delivered_at=event.delivered_at,
                )
            )
            self._confirm_existing_review(customer_id, str(product_id))

    def _confirm_existing_review(self, customer_id, product_id):
        # Through the store, so the review lock is held and the rating is recomputed
        try:
            get_review_store().mark_verified_purchase(customer_id, product_id)
        except ValidationError as exc:
            logger.warning(
                "Failed to flag review as verified purchase",
                customer_id=customer_id,
                product_id=product_id,
                error=str(exc),
            )
