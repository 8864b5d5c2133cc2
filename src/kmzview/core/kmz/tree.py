"""
Navigation tree of a KMZ archive's NetworkLink hierarchy.
"""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterator, List, Optional

from kmzview.core.errors import ParseError

from .archive import KmzArchive
from .document import HREF, NAME, NETWORK_LINK, ParsedDocument, child_text, parse_document
from .outcomes import ElementKind, LinkOutcome, SkipReason, skipped_only
from .paths import parent_directory, resolve_path

logger = logging.getLogger(__name__)

ROOT_NAME = "Root"
DEFAULT_LINK_NAME = "Unnamed Link"


@dataclass
class TreeNode:
    """
    A node of the navigation tree.

    A node with children is a folder: a NetworkLink whose document links
    further documents. A node without children is a leaf, addressable for
    zoom through its archive path. The root node is synthetic and has no path.

    Attributes:
        name: Display name (the NetworkLink's name)
        path: Archive path of the linked document
        children: Child nodes in document order
    """

    name: str
    path: Optional[str] = None
    children: List["TreeNode"] = field(default_factory=list)

    @property
    def is_folder(self) -> bool:
        return bool(self.children)

    @property
    def is_leaf(self) -> bool:
        return not self.children and self.path is not None

    @property
    def zoom_path(self) -> Optional[str]:
        """Path used for zoom-to-node; only leaves have one."""
        return self.path if self.is_leaf else None

    def walk(self) -> Iterator["TreeNode"]:
        """Depth-first pre-order iteration over this node and its descendants."""
        yield self
        for child in self.children:
            yield from child.walk()

    def find(self, path: str) -> Optional["TreeNode"]:
        """First node (pre-order) whose path equals ``path``."""
        for node in self.walk():
            if node.path == path:
                return node
        return None

    def to_dict(self) -> Dict[str, Any]:
        if self.path is None:
            node_type = "root"
        else:
            node_type = "folder" if self.is_folder else "leaf"
        return {
            "name": self.name,
            "path": self.path,
            "type": node_type,
            "children": [child.to_dict() for child in self.children],
        }


@dataclass
class _Frame:
    """One document waiting to have its NetworkLinks expanded."""

    node: TreeNode
    document: ParsedDocument
    parent_path: str
    ancestors: FrozenSet[str]
    depth: int


class TreeBuilder:
    """
    Build a TreeNode hierarchy by following NetworkLinks through an archive.

    The walk uses an explicit stack. Each frame carries the set of document
    paths on its chain back to the root, so a link back to an ancestor is
    skipped instead of recursing forever. Two siblings linking the same
    document still get a subtree each.

    Every link met is recorded in ``outcomes``.
    """

    def __init__(self, max_depth: Optional[int] = None) -> None:
        """
        Initialize tree builder.

        Args:
            max_depth: Maximum NetworkLink nesting depth (None for unlimited)
        """
        self.max_depth = max_depth
        self.outcomes: List[LinkOutcome] = []

    async def build(
        self,
        document: ParsedDocument,
        archive: KmzArchive,
        parent_path: str = "",
    ) -> TreeNode:
        """
        Build the navigation tree of a document.

        Args:
            document: Parsed root document
            archive: Archive the linked documents are loaded from
            parent_path: Directory hrefs in ``document`` are relative to

        Returns:
            Synthetic root node whose children are the resolved links
        """
        self.outcomes = []
        root = TreeNode(name=ROOT_NAME)
        ancestors = frozenset({document.path}) if document.path else frozenset()
        stack = [_Frame(root, document, parent_path, ancestors, 0)]

        while stack:
            frame = stack.pop()
            pending: List[_Frame] = []
            for link in frame.document.find_all(NETWORK_LINK):
                child_frame = await self._expand_link(link, frame, archive)
                if child_frame is not None:
                    pending.append(child_frame)
            # Reversed so the first link's subtree is expanded next
            stack.extend(reversed(pending))

        skipped = len(skipped_only(self.outcomes))
        logger.info(
            f"Built tree for {document.path or 'document'}: "
            f"{len(self.outcomes) - skipped} links resolved, {skipped} skipped"
        )
        return root

    async def _expand_link(
        self, link: ET.Element, frame: _Frame, archive: KmzArchive
    ) -> Optional[_Frame]:
        name = child_text(link, NAME) or DEFAULT_LINK_NAME
        href = child_text(link, HREF)
        if href is None:
            self._skip(frame, SkipReason.MISSING_HREF)
            return None

        full_path = resolve_path(frame.parent_path, href)

        if full_path in frame.ancestors:
            self._skip(frame, SkipReason.CYCLE, href, full_path)
            return None

        if self.max_depth is not None and frame.depth >= self.max_depth:
            self._skip(frame, SkipReason.DEPTH_LIMIT, href, full_path)
            return None

        text = await archive.load_text(full_path)
        if text is None:
            self._skip(frame, SkipReason.NOT_FOUND, href, full_path)
            return None

        try:
            linked = parse_document(text, full_path)
        except ParseError:
            self._skip(frame, SkipReason.PARSE_FAILED, href, full_path)
            return None

        node = TreeNode(name=name, path=full_path)
        frame.node.children.append(node)
        self.outcomes.append(
            LinkOutcome.success(
                ElementKind.NETWORK_LINK, frame.document.path, href, full_path
            )
        )
        return _Frame(
            node=node,
            document=linked,
            parent_path=parent_directory(full_path),
            ancestors=frame.ancestors | {full_path},
            depth=frame.depth + 1,
        )

    def _skip(
        self,
        frame: _Frame,
        reason: SkipReason,
        href: Optional[str] = None,
        resolved_path: Optional[str] = None,
    ) -> None:
        logger.debug(
            f"Skipping NetworkLink in {frame.document.path or 'document'}: "
            f"{reason.value} (href={href!r}, path={resolved_path!r})"
        )
        self.outcomes.append(
            LinkOutcome.skipped(
                ElementKind.NETWORK_LINK,
                frame.document.path,
                reason,
                href,
                resolved_path,
            )
        )


async def build_tree(
    document: ParsedDocument,
    archive: KmzArchive,
    parent_path: str = "",
    max_depth: Optional[int] = None,
) -> TreeNode:
    """
    Convenience function to build a navigation tree.

    Args:
        document: Parsed root document
        archive: Archive to load linked documents from
        parent_path: Directory hrefs in ``document`` are relative to
        max_depth: Maximum NetworkLink nesting depth

    Returns:
        Root TreeNode
    """
    builder = TreeBuilder(max_depth=max_depth)
    return await builder.build(document, archive, parent_path)
