from .status import STATUS_TABLE, CanonicalStatus, StatusUpdate, canonicalize
from .tracker import StatusTracker

__all__ = [
    "CanonicalStatus",
    "StatusUpdate",
    "STATUS_TABLE",
    "canonicalize",
    "StatusTracker",
]
