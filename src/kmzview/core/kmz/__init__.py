"""
KMZ structure parsing and rendering.

This package opens KMZ archives, resolves NetworkLink chains into a
navigation tree, extracts LatLonBox bounds and places GroundOverlay images
on a map.
"""

from .archive import ArchiveEntry, KmzArchive, open_archive
from .bounds import GeoBounds, document_bounds, extract_bounds
from .document import ParsedDocument, child_text, find_all, find_first, parse_document
from .outcomes import ElementKind, LinkOutcome, LinkStatus, SkipReason
from .paths import parent_directory, resolve_path
from .renderer import LinkBase, MapRenderer, MapSink, RenderReport, render_on_map
from .tree import TreeBuilder, TreeNode, build_tree

__all__ = [
    # Archive
    "ArchiveEntry",
    "KmzArchive",
    "open_archive",
    # Documents
    "ParsedDocument",
    "child_text",
    "find_all",
    "find_first",
    "parse_document",
    # Paths
    "parent_directory",
    "resolve_path",
    # Bounds
    "GeoBounds",
    "document_bounds",
    "extract_bounds",
    # Outcomes
    "ElementKind",
    "LinkOutcome",
    "LinkStatus",
    "SkipReason",
    # Tree
    "TreeBuilder",
    "TreeNode",
    "build_tree",
    # Rendering
    "LinkBase",
    "MapRenderer",
    "MapSink",
    "RenderReport",
    "render_on_map",
]
