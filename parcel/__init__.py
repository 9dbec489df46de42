# -----------------------------------------------------------------------------
# PARCEL - ORDER PACKAGING & PUSH DELIVERY
# -----------------------------------------------------------------------------
# Resolves ordered products, packages them (zip / gzip / tar and their
# combinations) and pushes the result to HTTP(S) destinations, returning a
# manifest of what was sent.
# -----------------------------------------------------------------------------

__version__ = "1.0.0"
