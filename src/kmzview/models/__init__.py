"""
Data models and schemas.
"""

from .errors import ErrorDetail, ErrorResponse
from .kmz import (
    ArchiveContentsModel,
    ArchiveFileModel,
    BoundsModel,
    BoundsResponse,
    LinkOutcomeModel,
    TreeNodeModel,
    TreeResponse,
)

__all__ = [
    # Errors
    "ErrorDetail",
    "ErrorResponse",
    # KMZ viewer
    "ArchiveContentsModel",
    "ArchiveFileModel",
    "BoundsModel",
    "BoundsResponse",
    "LinkOutcomeModel",
    "TreeNodeModel",
    "TreeResponse",
]
