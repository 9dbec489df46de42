# -----------------------------------------------------------------------------
# INFRASTRUCTURE LAYER
# -----------------------------------------------------------------------------
# Contains low-level infrastructure wrappers:
# - put_stream / ScopedBasicAuth: HTTP PUT over requests
# - DirectoryResolver: products served from a local directory
# -----------------------------------------------------------------------------

from .http_push import PushError, ScopedBasicAuth, put_stream
from .resolvers import DirectoryResolver

__all__ = ["PushError", "ScopedBasicAuth", "put_stream", "DirectoryResolver"]
