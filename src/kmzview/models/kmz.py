"""
Pydantic models for the KMZ viewer endpoints.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class BoundsModel(BaseModel):
    """Geographic rectangle in decimal degrees."""

    south: float = Field(..., description="Southern latitude")
    west: float = Field(..., description="Western longitude")
    north: float = Field(..., description="Northern latitude")
    east: float = Field(..., description="Eastern longitude")


class TreeNodeModel(BaseModel):
    """
    One node of the NetworkLink navigation tree.

    Attributes:
        name: Display name
        path: Archive path of the linked document (None for the root)
        type: "root", "folder" (has children) or "leaf"
        expanded: Whether the node is shown expanded
        children: Child nodes in document order
    """

    name: str = Field(..., description="Display name")
    path: Optional[str] = Field(None, description="Archive path of the linked document")
    type: Literal["root", "folder", "leaf"] = Field(..., description="Node type")
    expanded: bool = Field(False, description="Whether the node is shown expanded")
    children: List["TreeNodeModel"] = Field(default_factory=list)


class LinkOutcomeModel(BaseModel):
    """Result of handling one NetworkLink or GroundOverlay element."""

    kind: Literal["NetworkLink", "GroundOverlay"]
    source: str = Field(..., description="Archive path of the document holding the element")
    status: Literal["success", "skipped"]
    reason: Optional[str] = Field(None, description="Why the element was skipped")
    href: Optional[str] = Field(None, description="href as written in the document")
    resolved_path: Optional[str] = Field(None, description="href resolved to an archive path")


class ArchiveFileModel(BaseModel):
    name: str
    size: int


class ArchiveContentsModel(BaseModel):
    """Summary of the files inside a KMZ archive."""

    kml_files: List[ArchiveFileModel] = Field(default_factory=list)
    image_files: List[ArchiveFileModel] = Field(default_factory=list)
    other_files: List[ArchiveFileModel] = Field(default_factory=list)
    total_files: int = 0
    total_size: int = 0


class TreeResponse(BaseModel):
    """
    Response of the tree endpoint.

    Attributes:
        filename: Uploaded filename
        root_path: Archive path of the root KML document
        tree: Navigation tree
        outline: Indented text rendering of the tree
        overlays_placed: Number of ground overlays placed on the map
        tree_outcomes: Per-link outcomes of tree building
        render_outcomes: Per-element outcomes of map rendering
        contents: Archive content summary
    """

    filename: Optional[str] = None
    root_path: str
    tree: TreeNodeModel
    outline: str = ""
    overlays_placed: int = 0
    tree_outcomes: List[LinkOutcomeModel] = Field(default_factory=list)
    render_outcomes: List[LinkOutcomeModel] = Field(default_factory=list)
    contents: ArchiveContentsModel = Field(default_factory=ArchiveContentsModel)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "filename": "survey.kmz",
                "root_path": "doc.kml",
                "tree": {
                    "name": "Root",
                    "path": None,
                    "type": "root",
                    "expanded": True,
                    "children": [
                        {
                            "name": "Tile 1",
                            "path": "tiles/1.kml",
                            "type": "leaf",
                            "expanded": False,
                            "children": [],
                        }
                    ],
                },
                "outline": "- Root\n  * Tile 1",
                "overlays_placed": 1,
                "tree_outcomes": [
                    {
                        "kind": "NetworkLink",
                        "source": "doc.kml",
                        "status": "success",
                        "reason": None,
                        "href": "tiles/1.kml",
                        "resolved_path": "tiles/1.kml",
                    }
                ],
                "render_outcomes": [],
                "contents": {
                    "kml_files": [{"name": "doc.kml", "size": 512}],
                    "image_files": [],
                    "other_files": [],
                    "total_files": 1,
                    "total_size": 512,
                },
            }
        }
    )


class BoundsResponse(BaseModel):
    """Bounds the map was fitted to after zooming to a tree node."""

    path: str = Field(..., description="Archive path of the zoomed document")
    bounds: BoundsModel
