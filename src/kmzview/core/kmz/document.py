"""
Parsed KML documents and the query surface used by the tree builder,
bounds extractor and map renderer.

Queries match on local tag names so documents work with or without the KML
namespace (and with the older Google namespaces).
"""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import List, Optional

from kmzview.core.errors import ParseError

logger = logging.getLogger(__name__)

# Tag names used across the package
NETWORK_LINK = "NetworkLink"
GROUND_OVERLAY = "GroundOverlay"
LAT_LON_BOX = "LatLonBox"
ICON = "Icon"
HREF = "href"
NAME = "name"


def local_name(tag: str) -> str:
    """Strip the ``{namespace}`` prefix from an ElementTree tag."""
    return tag.rsplit("}", 1)[-1] if "}" in tag else tag


def _has_name(element: ET.Element, tag: str) -> bool:
    # Comments and processing instructions have non-string tags
    return isinstance(element.tag, str) and local_name(element.tag) == tag


def find_all(element: ET.Element, tag: str) -> List[ET.Element]:
    """
    All descendants of ``element`` with local name ``tag``, in document order.

    ``element`` itself is not included.
    """
    return [
        child for child in element.iter() if child is not element and _has_name(child, tag)
    ]


def find_first(element: ET.Element, tag: str) -> Optional[ET.Element]:
    """First descendant of ``element`` with local name ``tag``."""
    for child in element.iter():
        if child is not element and _has_name(child, tag):
            return child
    return None


def child_text(element: ET.Element, tag: str) -> Optional[str]:
    """
    Text of the first descendant named ``tag``, stripped.

    Returns None when the element is missing or its text is empty.
    """
    child = find_first(element, tag)
    if child is None or child.text is None:
        return None
    text = child.text.strip()
    return text or None


@dataclass(frozen=True)
class ParsedDocument:
    """
    One parsed KML document.

    Attributes:
        path: Archive path the document was loaded from ("" when not from an archive)
        root: Parsed XML root element
    """

    path: str
    root: ET.Element

    def find_all(self, tag: str) -> List[ET.Element]:
        """All elements named ``tag`` anywhere in the document, root included."""
        return [element for element in self.root.iter() if _has_name(element, tag)]

    def find_first(self, tag: str) -> Optional[ET.Element]:
        """First element named ``tag`` anywhere in the document."""
        for element in self.root.iter():
            if _has_name(element, tag):
                return element
        return None

    @property
    def name(self) -> Optional[str]:
        """Name of the top-level Document or Folder, if any."""
        for container in ("Document", "Folder"):
            element = self.find_first(container)
            if element is None:
                continue
            for child in element:
                if _has_name(child, NAME):
                    return (child.text or "").strip() or None
        return None


def parse_document(text: str, path: str = "") -> ParsedDocument:
    """
    Parse KML text into a ParsedDocument.

    Args:
        text: KML document content
        path: Archive path the text was loaded from

    Returns:
        ParsedDocument

    Raises:
        ParseError: If the text is not well-formed XML
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        line_number = e.position[0] if getattr(e, "position", None) else None
        raise ParseError(
            f"Invalid XML structure in {path or 'document'}: {e}",
            path=path,
            line_number=line_number,
        ) from e

    return ParsedDocument(path=path, root=root)
