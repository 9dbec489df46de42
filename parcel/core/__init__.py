# -----------------------------------------------------------------------------
# CORE LAYER
# -----------------------------------------------------------------------------
# The packaging-and-delivery pipeline:
# - SpillBuffer: bounded-memory, disk-overflowing sink
# - ArchiveWriter: zip / tar / gzip / bzip2 containers
# - PackagingPlanner: format recipes and file naming
# - Deliverer: HTTP(S) PUT push
# - OrderFulfillment: order orchestrator
# -----------------------------------------------------------------------------

from .archive import ArchiveEntry, ArchiveWriter
from .config import ParcelConfig, load_config
from .deliverer import Deliverer, DeliveryError
from .fulfillment import NoProductsError, OrderFulfillment, UnsupportedTransportError
from .planner import Artifact, BufferedResource, PackagingError, PackagingPlanner
from .resolver import (
    DirectSecurityContext,
    ResolutionError,
    ResourceNotFoundError,
    ResourceNotSupportedError,
    SecurityContextError,
)
from .spill import ByteSource, SpillBuffer, SpillBufferError

__all__ = [
    "ArchiveEntry", "ArchiveWriter",
    "ParcelConfig", "load_config",
    "Deliverer", "DeliveryError",
    "NoProductsError", "OrderFulfillment", "UnsupportedTransportError",
    "Artifact", "BufferedResource", "PackagingError", "PackagingPlanner",
    "DirectSecurityContext", "ResolutionError", "ResourceNotFoundError",
    "ResourceNotSupportedError", "SecurityContextError",
    "ByteSource", "SpillBuffer", "SpillBufferError",
]
