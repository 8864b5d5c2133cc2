"""
Viewer session: load a KMZ file, build its tree, render its map and zoom to
tree nodes.

A session owns the source bytes of the file being viewed and the map
viewport showing it. Loading a new file abandons work in flight for the
previous one: results that complete for an older file are discarded instead
of being applied.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from kmzview.core.config import Settings, settings as default_settings
from kmzview.core.errors import KmzViewException, LoadError, ParseError
from kmzview.core.kmz import (
    GeoBounds,
    KmzArchive,
    LinkBase,
    LinkOutcome,
    MapRenderer,
    MapSink,
    RenderReport,
    TreeBuilder,
    TreeNode,
    document_bounds,
    parse_document,
)
from kmzview.core.logging_config import LogContext
from kmzview.core.map import MapViewport

logger = logging.getLogger(__name__)


async def _run_together(*coroutines: Awaitable[Any]) -> List[Any]:
    """
    Run coroutines concurrently and return their results in order.

    If one fails (or the caller is cancelled) the others are cancelled and
    awaited before the exception propagates, so none outlives the archive
    they read from.
    """
    tasks = [asyncio.ensure_future(coroutine) for coroutine in coroutines]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


@dataclass
class LoadResult:
    """
    Outcome of loading one KMZ file.

    Attributes:
        filename: Original filename, if known
        root_path: Archive path of the root KML document
        tree: Navigation tree
        tree_outcomes: Per-link outcomes of tree building
        render_report: Outcome of rendering the map
        contents: Archive content summary
        stale: True when a newer load started before this one finished
    """

    filename: Optional[str]
    root_path: str
    tree: TreeNode
    tree_outcomes: List[LinkOutcome] = field(default_factory=list)
    render_report: RenderReport = field(default_factory=RenderReport)
    contents: Dict[str, Any] = field(default_factory=dict)
    stale: bool = False


class ViewerSession:
    """
    State of one KMZ viewing session.

    Attributes:
        viewport: Map currently shown (replaced on every successful load)
        tree: Navigation tree of the current file
        generation: Counter bumped by every load; used to drop stale results
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        viewport_factory: Optional[Callable[[], MapSink]] = None,
    ) -> None:
        """
        Initialize viewer session.

        Args:
            settings: Application settings (defaults to the global settings)
            viewport_factory: Creates the map for each loaded file
        """
        self.settings = settings or default_settings
        self._viewport_factory = viewport_factory or (
            lambda: MapViewport.from_settings(self.settings)
        )
        self.viewport: MapSink = self._viewport_factory()
        self.tree: Optional[TreeNode] = None
        self.filename: Optional[str] = None
        self.generation = 0
        self._source: Optional[bytes] = None

    @property
    def has_file(self) -> bool:
        return self._source is not None

    async def load(self, data: bytes, filename: Optional[str] = None) -> LoadResult:
        """
        Load a KMZ file: build its tree and render its overlays concurrently.

        Args:
            data: Raw archive bytes
            filename: Original filename

        Returns:
            LoadResult (``stale`` is set when a newer load superseded this one)

        Raises:
            ArchiveError: If the bytes are not a zip archive
            NoRootDocumentError: If the archive holds no KML document
            ParseError: If the root KML document is not well-formed
            LoadError: For any other failure
        """
        self.generation += 1
        generation = self.generation

        with LogContext(archive=filename):
            try:
                result, viewport = await self._load(data, filename)
            except KmzViewException as e:
                logger.warning(f"Failed to load {filename or 'KMZ file'}: {e}")
                raise
            except Exception as e:
                logger.error(
                    f"Unexpected error while loading {filename or 'KMZ file'}: {e}",
                    exc_info=True,
                )
                raise LoadError() from e

        if generation != self.generation:
            logger.info(f"Discarding stale load of {filename or 'KMZ file'}")
            result.stale = True
            return result

        self._source = data
        self.filename = filename
        self.tree = result.tree
        self.viewport = viewport
        return result

    async def _load(
        self, data: bytes, filename: Optional[str]
    ) -> Tuple[LoadResult, MapSink]:
        viewport = self._viewport_factory()

        with KmzArchive(data, name=filename) as archive:
            root_path = archive.find_root_document()
            text = await archive.load_text(root_path)
            document = parse_document(text or "", root_path)

            builder = TreeBuilder(max_depth=self.settings.max_link_depth)
            renderer = MapRenderer(
                link_base=LinkBase(self.settings.render_link_base),
                max_depth=self.settings.max_link_depth,
            )
            tree, report = await _run_together(
                builder.build(document, archive),
                renderer.render(document, archive, viewport),
            )
            contents = archive.list_contents()

        logger.info(
            f"Loaded {filename or 'KMZ file'} (root {root_path}): "
            f"{len(tree.children)} top-level links, {report.overlays_placed} overlays"
        )
        result = LoadResult(
            filename=filename,
            root_path=root_path,
            tree=tree,
            tree_outcomes=builder.outcomes,
            render_report=report,
            contents=contents,
        )
        return result, viewport

    async def zoom_to(self, path: str) -> Optional[GeoBounds]:
        """
        Fit the viewport to the first LatLonBox of the document at ``path``.

        The archive is re-opened from the original bytes and the document
        re-parsed on every call. A missing document, unparsable XML or a
        document without valid bounds leaves the view unchanged.

        Args:
            path: Archive path of a tree leaf

        Returns:
            Bounds the viewport was fitted to, or None
        """
        if self._source is None:
            logger.debug("Zoom requested with no file loaded")
            return None

        generation = self.generation
        with KmzArchive(self._source, name=self.filename) as archive:
            text = await archive.load_text(path)

        if text is None:
            logger.debug(f"Zoom target not found in archive: {path}")
            return None

        try:
            document = parse_document(text, path)
        except ParseError as e:
            logger.debug(f"Zoom target is not valid XML: {e}")
            return None

        bounds = document_bounds(document)
        if bounds is None:
            logger.debug(f"No LatLonBox bounds in {path}")
            return None

        if generation != self.generation:
            logger.info(f"Discarding stale zoom to {path}")
            return None

        self.viewport.fit_bounds(bounds)
        return bounds
