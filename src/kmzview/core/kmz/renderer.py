"""
Render a KMZ document graph onto a map.

Walks GroundOverlay and NetworkLink elements, placing each overlay image on
the map and descending into linked documents.
"""

import base64
import io
import logging
import mimetypes
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Protocol, Set

from PIL import Image, UnidentifiedImageError

from kmzview.core.errors import ParseError

from .archive import KmzArchive
from .bounds import GeoBounds, extract_bounds
from .document import (
    GROUND_OVERLAY,
    HREF,
    ICON,
    LAT_LON_BOX,
    NETWORK_LINK,
    ParsedDocument,
    child_text,
    find_first,
    parse_document,
)
from .outcomes import ElementKind, LinkOutcome, SkipReason, skipped_only
from .paths import parent_directory, resolve_path

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_MIME = "image/png"


class MapSink(Protocol):
    """Operations the renderer and zoom logic need from a map."""

    def fit_bounds(self, bounds: GeoBounds) -> None:
        ...

    def add_image_overlay(self, image_data_uri: str, bounds: GeoBounds) -> None:
        ...


class LinkBase(str, Enum):
    """
    Base path hrefs are resolved against while rendering.

    ARCHIVE_ROOT resolves every href from the archive root, so relative links
    inside nested documents only work when written root-relative.
    DOCUMENT resolves against the directory of the referencing document, as
    the tree builder does.
    """

    ARCHIVE_ROOT = "archive_root"
    DOCUMENT = "document"


@dataclass
class RenderReport:
    """
    Summary of one render pass.

    Attributes:
        documents: Archive paths of the documents rendered, in visit order
        overlays_placed: Number of image overlays added to the map
        outcomes: Per-element outcomes (links and overlays)
    """

    documents: List[str] = field(default_factory=list)
    overlays_placed: int = 0
    outcomes: List[LinkOutcome] = field(default_factory=list)

    @property
    def skipped(self) -> List[LinkOutcome]:
        return skipped_only(self.outcomes)


def guess_image_mime(payload: bytes, path: str) -> str:
    """
    MIME type of an image payload.

    Sniffed from the content with Pillow, then guessed from the file
    extension, then assumed PNG.
    """
    try:
        with Image.open(io.BytesIO(payload)) as image:
            mime = Image.MIME.get(image.format or "")
            if mime:
                return mime
    except (UnidentifiedImageError, OSError):
        logger.debug(f"Pillow could not identify image {path}")

    guessed, _ = mimetypes.guess_type(path)
    if guessed and guessed.startswith("image/"):
        return guessed
    return DEFAULT_IMAGE_MIME


class MapRenderer:
    """
    Place a document graph's ground overlays on a map.

    Each document path is rendered at most once per pass, so cyclic
    NetworkLink graphs terminate and documents linked from several places
    do not stack duplicate overlays.
    """

    def __init__(
        self,
        link_base: LinkBase = LinkBase.ARCHIVE_ROOT,
        max_depth: Optional[int] = None,
    ) -> None:
        """
        Initialize map renderer.

        Args:
            link_base: Base path policy for NetworkLink and icon hrefs
            max_depth: Maximum NetworkLink nesting depth (None for unlimited)
        """
        self.link_base = LinkBase(link_base)
        self.max_depth = max_depth

    async def render(
        self,
        document: ParsedDocument,
        archive: KmzArchive,
        viewport: MapSink,
    ) -> RenderReport:
        """
        Render a document and everything it links to.

        Args:
            document: Parsed root document
            archive: Archive images and linked documents are loaded from
            viewport: Map receiving the image overlays

        Returns:
            RenderReport describing what was placed and skipped
        """
        report = RenderReport()
        seen: Set[str] = {document.path} if document.path else set()
        stack = [(document, 0)]

        while stack:
            current, depth = stack.pop()
            report.documents.append(current.path)

            for overlay in current.find_all(GROUND_OVERLAY):
                await self._place_overlay(overlay, current, archive, viewport, report)

            pending = []
            for link in current.find_all(NETWORK_LINK):
                linked = await self._follow_link(link, current, depth, seen, archive, report)
                if linked is not None:
                    pending.append((linked, depth + 1))
            stack.extend(reversed(pending))

        logger.info(
            f"Rendered {len(report.documents)} documents, "
            f"{report.overlays_placed} overlays placed, "
            f"{len(report.skipped)} elements skipped"
        )
        return report

    def _base_path(self, document: ParsedDocument) -> str:
        if self.link_base == LinkBase.DOCUMENT:
            return parent_directory(document.path)
        return ""

    async def _place_overlay(
        self,
        overlay: ET.Element,
        document: ParsedDocument,
        archive: KmzArchive,
        viewport: MapSink,
        report: RenderReport,
    ) -> None:
        icon_element = find_first(overlay, ICON)
        icon_href = child_text(icon_element, HREF) if icon_element is not None else None
        lat_lon_box = find_first(overlay, LAT_LON_BOX)

        if icon_href is None:
            self._skip(report, ElementKind.GROUND_OVERLAY, document, SkipReason.MISSING_ICON)
            return
        if lat_lon_box is None:
            self._skip(
                report, ElementKind.GROUND_OVERLAY, document, SkipReason.MISSING_BOUNDS, icon_href
            )
            return

        bounds: Optional[GeoBounds] = extract_bounds(lat_lon_box)
        if bounds is None:
            self._skip(
                report, ElementKind.GROUND_OVERLAY, document, SkipReason.INVALID_BOUNDS, icon_href
            )
            return

        image_path = resolve_path(self._base_path(document), icon_href)
        payload = await archive.load_bytes(image_path)
        if payload is None:
            self._skip(
                report,
                ElementKind.GROUND_OVERLAY,
                document,
                SkipReason.NOT_FOUND,
                icon_href,
                image_path,
            )
            return

        encoded = base64.b64encode(payload).decode("ascii")
        data_uri = f"data:{guess_image_mime(payload, image_path)};base64,{encoded}"
        viewport.add_image_overlay(data_uri, bounds)
        report.overlays_placed += 1
        report.outcomes.append(
            LinkOutcome.success(ElementKind.GROUND_OVERLAY, document.path, icon_href, image_path)
        )

    async def _follow_link(
        self,
        link: ET.Element,
        document: ParsedDocument,
        depth: int,
        seen: Set[str],
        archive: KmzArchive,
        report: RenderReport,
    ) -> Optional[ParsedDocument]:
        href = child_text(link, HREF)
        if href is None:
            self._skip(report, ElementKind.NETWORK_LINK, document, SkipReason.MISSING_HREF)
            return None

        full_path = resolve_path(self._base_path(document), href)

        if full_path in seen:
            self._skip(
                report,
                ElementKind.NETWORK_LINK,
                document,
                SkipReason.ALREADY_RENDERED,
                href,
                full_path,
            )
            return None

        if self.max_depth is not None and depth >= self.max_depth:
            self._skip(
                report, ElementKind.NETWORK_LINK, document, SkipReason.DEPTH_LIMIT, href, full_path
            )
            return None

        text = await archive.load_text(full_path)
        if text is None:
            self._skip(
                report, ElementKind.NETWORK_LINK, document, SkipReason.NOT_FOUND, href, full_path
            )
            return None

        try:
            linked = parse_document(text, full_path)
        except ParseError:
            self._skip(
                report, ElementKind.NETWORK_LINK, document, SkipReason.PARSE_FAILED, href, full_path
            )
            return None

        seen.add(full_path)
        report.outcomes.append(
            LinkOutcome.success(ElementKind.NETWORK_LINK, document.path, href, full_path)
        )
        return linked

    @staticmethod
    def _skip(
        report: RenderReport,
        kind: ElementKind,
        document: ParsedDocument,
        reason: SkipReason,
        href: Optional[str] = None,
        resolved_path: Optional[str] = None,
    ) -> None:
        logger.debug(
            f"Skipping {kind.value} in {document.path or 'document'}: "
            f"{reason.value} (href={href!r}, path={resolved_path!r})"
        )
        report.outcomes.append(
            LinkOutcome.skipped(kind, document.path, reason, href, resolved_path)
        )


async def render_on_map(
    document: ParsedDocument,
    archive: KmzArchive,
    viewport: MapSink,
    link_base: LinkBase = LinkBase.ARCHIVE_ROOT,
) -> RenderReport:
    """
    Convenience function to render a document onto a map.

    Args:
        document: Parsed root document
        archive: Archive to load images and linked documents from
        viewport: Map receiving the overlays
        link_base: Base path policy for hrefs

    Returns:
        RenderReport
    """
    renderer = MapRenderer(link_base=link_base)
    return await renderer.render(document, archive, viewport)
