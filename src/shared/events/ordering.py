"""Cross-domain event contracts for Ordering domain events consumed by Reviews.

These classes define the event shape for consumption by other domains. They
are registered as external events via domain.register_external_event() with
matching __type__ strings so Protean's stream deserialization works correctly.
"""

from protean.core.event import BaseEvent
from protean.fields import DateTime, Identifier, Text


class OrderDelivered(BaseEvent):
    """An order was delivered to the customer.

    Consumed by the Reviews domain to track verified purchases.
    Note: The source event (Ordering.OrderDelivered.v1) only carries
    order_id and delivered_at. This shared contract adds customer_id
    and items for downstream consumers that need them.
    """

    __version__ = "v1"

    order_id = Identifier(required=True)
    customer_id = Identifier()
    items = Text()  # JSON list of {product_id, variant_id}
    delivered_at = DateTime(required=True)
