"""Domain events for the catalog.

``ProductCreated`` is the only event that leaves this service. Inventory
initializes stock records from it and search indexes the new product.
"""

from dataclasses import dataclass
from typing import Any, ClassVar

from catalog_service.domain.base import DomainEvent


@dataclass(frozen=True)
class ProductCreated(DomainEvent):
    """Event raised when a product has been created and committed."""

    event_type: ClassVar[str] = "ProductCreated"

    product_id: str = ""
    sku: str = ""
    tenant_id: str = ""
    seller_id: str = ""

    def _payload(self) -> dict[str, Any]:
        return {
            "product_id": self.product_id,
            "sku": self.sku,
            "tenant_id": self.tenant_id,
            "seller_id": self.seller_id,
        }

    @property
    def key(self) -> str:
        """Partition key used when publishing: the product id."""
        return self.product_id

    def to_message(self) -> dict[str, Any]:
        """Wire shape consumed by inventory and search."""
        return {
            "event_type": self.event_type,
            **self._payload(),
            "timestamp": self.occurred_at.isoformat(),
        }


# ============================================================================
# Event Registry
# ============================================================================


EVENT_REGISTRY: dict[str, type[DomainEvent]] = {
    ProductCreated.event_type: ProductCreated,
}


def get_event_class(event_type: str) -> type[DomainEvent] | None:
    """Get event class by event type string.

    Args:
        event_type: Event type identifier (e.g., "ProductCreated").

    Returns:
        Event class if found, None otherwise.
    """
    return EVENT_REGISTRY.get(event_type)
