"""
KMZ viewer API endpoints.

Each request carries a KMZ file and is served by its own viewer session:
the tree endpoint returns the NetworkLink navigation tree, the map endpoint
returns the rendered ground overlays as a Leaflet page and the bounds
endpoint zooms to one tree node.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, File, Query, UploadFile, status
from fastapi.responses import HTMLResponse

from kmzview.core.config import settings
from kmzview.core.errors import KmzViewException
from kmzview.core.presenter import TreePresenter
from kmzview.core.session import LoadResult, ViewerSession
from kmzview.core.validation import validate_kmz_upload
from kmzview.models.errors import ErrorResponse
from kmzview.models.kmz import (
    ArchiveContentsModel,
    BoundsModel,
    BoundsResponse,
    LinkOutcomeModel,
    TreeNodeModel,
    TreeResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/kmz", tags=["kmz"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid file"},
    413: {"model": ErrorResponse, "description": "File too large"},
    422: {"model": ErrorResponse, "description": "Unreadable archive or root document"},
    500: {"model": ErrorResponse, "description": "Internal server error"},
}

KmzFile = Annotated[UploadFile, File(description="KMZ archive to view")]


async def _load_session(file: UploadFile) -> tuple[ViewerSession, LoadResult]:
    """Validate an uploaded KMZ and load it into a fresh viewer session."""
    content = await file.read()
    filename = validate_kmz_upload(file.filename, content, settings.max_archive_size_bytes)

    session = ViewerSession(settings)
    result = await session.load(content, filename)
    return session, result


@router.post(
    "/tree",
    response_model=TreeResponse,
    responses=ERROR_RESPONSES,
    summary="Build the navigation tree of a KMZ file",
)
async def kmz_tree(file: KmzFile) -> TreeResponse:
    """
    Build the NetworkLink navigation tree of a KMZ file.

    The map is rendered as part of loading, so the response also reports
    how many overlays were placed and which elements were skipped.

    Args:
        file: KMZ archive (multipart/form-data field ``file``)

    Returns:
        TreeResponse with the tree, its text outline and per-link outcomes
    """
    session, result = await _load_session(file)
    presenter = TreePresenter(session, result.tree)

    logger.info(
        f"Built tree for {result.filename}: "
        f"{sum(1 for _ in result.tree.walk()) - 1} nodes"
    )

    return TreeResponse(
        filename=result.filename,
        root_path=result.root_path,
        tree=TreeNodeModel.model_validate(presenter.to_dict()),
        outline=presenter.render_outline(),
        overlays_placed=result.render_report.overlays_placed,
        tree_outcomes=[
            LinkOutcomeModel.model_validate(outcome.to_dict())
            for outcome in result.tree_outcomes
        ],
        render_outcomes=[
            LinkOutcomeModel.model_validate(outcome.to_dict())
            for outcome in result.render_report.outcomes
        ],
        contents=ArchiveContentsModel.model_validate(result.contents),
    )


@router.post(
    "/map",
    response_class=HTMLResponse,
    responses=ERROR_RESPONSES,
    summary="Render the ground overlays of a KMZ file",
)
async def kmz_map(
    file: KmzFile,
    zoom: Annotated[
        Optional[str],
        Query(description="Archive path of a tree node to zoom to"),
    ] = None,
) -> HTMLResponse:
    """
    Render the ground overlays of a KMZ file as a standalone Leaflet page.

    Without ``zoom`` the view is fitted to the extent of all overlays.

    Args:
        file: KMZ archive (multipart/form-data field ``file``)
        zoom: Optional archive path of a document to zoom to

    Returns:
        HTML page with the map
    """
    session, _ = await _load_session(file)

    if zoom is not None:
        await session.zoom_to(zoom)

    viewport = session.viewport
    if viewport.view_bounds is None:
        extent = viewport.extent()
        if extent is not None:
            viewport.fit_bounds(extent)

    return HTMLResponse(content=viewport.to_html())


@router.post(
    "/bounds",
    response_model=BoundsResponse,
    responses={
        **ERROR_RESPONSES,
        404: {"model": ErrorResponse, "description": "No bounds for the requested path"},
    },
    summary="Zoom to a tree node",
)
async def kmz_bounds(
    file: KmzFile,
    path: Annotated[str, Query(description="Archive path of a tree node")],
) -> BoundsResponse:
    """
    Return the bounds the map is fitted to when a tree leaf is clicked.

    Args:
        file: KMZ archive (multipart/form-data field ``file``)
        path: Archive path of the document to zoom to

    Returns:
        BoundsResponse with the first LatLonBox of the document

    Raises:
        KmzViewException: 404 if the document is missing, unreadable or has no bounds
    """
    session, _ = await _load_session(file)

    bounds = await session.zoom_to(path)
    if bounds is None:
        raise KmzViewException(
            message=f"No LatLonBox bounds found for {path}",
            error_code="BOUNDS_NOT_FOUND",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"path": path},
            suggestions=["Choose a tree node whose document contains a LatLonBox"],
        )

    return BoundsResponse(path=path, bounds=BoundsModel(**bounds.to_dict()))
