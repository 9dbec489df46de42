# -----------------------------------------------------------------------------
# DOMAIN LAYER
# -----------------------------------------------------------------------------
# Contains the order contract (Pydantic models) exchanged between the
# request layer and the fulfillment pipeline.
# -----------------------------------------------------------------------------

from .models import (
    DeliveryManifest,
    Destination,
    OrderSpec,
    PackageElement,
    PackagingFormat,
    PackagingSpec,
    ProductDetails,
    ResourceContainer,
    TransportKind,
)

__all__ = [
    "DeliveryManifest", "Destination", "OrderSpec", "PackageElement",
    "PackagingFormat", "PackagingSpec", "ProductDetails", "ResourceContainer",
    "TransportKind",
]
