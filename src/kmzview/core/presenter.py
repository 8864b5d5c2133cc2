"""
Tree presentation and click handling.

Folders toggle their already-built children; leaves zoom the session's map
to the bounds of their document.
"""

import logging
from typing import Any, Dict, List, Optional, Set

from kmzview.core.kmz import GeoBounds, TreeNode
from kmzview.core.session import ViewerSession

logger = logging.getLogger(__name__)


class TreePresenter:
    """
    Interactive view state of a navigation tree.

    The synthetic root starts expanded; every other folder starts collapsed.
    """

    FOLDER_CLOSED = "+"
    FOLDER_OPEN = "-"
    LEAF = "*"

    def __init__(self, session: ViewerSession, tree: Optional[TreeNode] = None) -> None:
        tree = tree or session.tree
        if tree is None:
            raise ValueError("No tree to present; load a file first")
        self.session = session
        self.tree = tree
        self._expanded: Set[int] = {id(tree)}

    def is_expanded(self, node: TreeNode) -> bool:
        return id(node) in self._expanded

    def toggle(self, node: TreeNode) -> bool:
        """Toggle a folder; returns the new expanded state."""
        key = id(node)
        if key in self._expanded:
            self._expanded.discard(key)
            return False
        self._expanded.add(key)
        return True

    async def click(self, node: TreeNode) -> Optional[GeoBounds]:
        """
        Handle a click on a node.

        Returns:
            Bounds the map was fitted to when a leaf was clicked, else None
        """
        if node.is_folder:
            expanded = self.toggle(node)
            logger.debug(f"Folder {node.name!r} {'expanded' if expanded else 'collapsed'}")
            return None

        if node.zoom_path is not None:
            return await self.session.zoom_to(node.zoom_path)

        return None

    def visible_nodes(self) -> List[TreeNode]:
        """Nodes currently shown, in display order."""
        nodes: List[TreeNode] = []

        def visit(node: TreeNode) -> None:
            nodes.append(node)
            if self.is_expanded(node):
                for child in node.children:
                    visit(child)

        visit(self.tree)
        return nodes

    def render_outline(self, indent: str = "  ") -> str:
        """Indented text outline of the visible nodes."""
        lines = []

        def visit(node: TreeNode, level: int) -> None:
            if node.is_folder or node is self.tree:
                marker = self.FOLDER_OPEN if self.is_expanded(node) else self.FOLDER_CLOSED
            else:
                marker = self.LEAF
            lines.append(f"{indent * level}{marker} {node.name}")
            if self.is_expanded(node):
                for child in node.children:
                    visit(child, level + 1)

        visit(self.tree, 0)
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready tree including each folder's expanded state."""

        def convert(node: TreeNode) -> Dict[str, Any]:
            data = node.to_dict()
            data["expanded"] = self.is_expanded(node)
            data["children"] = [convert(child) for child in node.children]
            return data

        return convert(self.tree)
