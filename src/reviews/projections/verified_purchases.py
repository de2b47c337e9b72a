"""VerifiedPurchases — which customer received which product, and through which order.

Written by the OrderDelivered cross-domain handler; read by CreateReview to
flag new reviews as verified purchases.
"""

from protean.fields import DateTime, Identifier, String

from reviews.domain import reviews


@reviews.projection
class VerifiedPurchases:
    vp_id = Identifier(identifier=True, required=True)
    customer_id = String(required=True)
    product_id = String(required=True)
    variant_id = String()
    order_id = String(required=True)
    delivered_at = DateTime(required=True)
