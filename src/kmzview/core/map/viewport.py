"""
Interactive map viewport.

MapViewport is an explicit, mutable map context: it records the current view
and the image overlays placed on it, and renders to a Leaflet map through
folium. Each viewer session owns its own viewport.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple, Union

import folium
from folium.raster_layers import ImageOverlay

from kmzview.core.config import Settings
from kmzview.core.kmz.bounds import GeoBounds

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlacedOverlay:
    """
    An image layer anchored to a geographic rectangle.

    Attributes:
        image_data_uri: Image as a ``data:`` URI
        bounds: Rectangle the image is stretched over
        name: Optional layer name (usually the icon path)
    """

    image_data_uri: str
    bounds: GeoBounds
    name: Optional[str] = None


class MapViewport:
    """
    Map state for one viewer session.

    Attributes:
        center: Initial center as (lat, lon)
        zoom: Initial zoom level
        tiles: Tile provider name or URL template
        max_zoom: Maximum zoom level
        overlay_opacity: Opacity applied to image overlays
        overlays: Image overlays in placement order
        view_bounds: Last bounds the view was fitted to
    """

    def __init__(
        self,
        center: Tuple[float, float] = (0.0, 0.0),
        zoom: int = 2,
        tiles: str = "OpenStreetMap",
        max_zoom: int = 18,
        overlay_opacity: float = 1.0,
    ) -> None:
        self.center = center
        self.zoom = zoom
        self.tiles = tiles
        self.max_zoom = max_zoom
        self.overlay_opacity = overlay_opacity
        self.overlays: List[PlacedOverlay] = []
        self.view_bounds: Optional[GeoBounds] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "MapViewport":
        """Create a viewport from application settings."""
        return cls(
            center=settings.map_default_center,
            zoom=settings.map_default_zoom,
            tiles=settings.map_tiles,
            max_zoom=settings.map_max_zoom,
            overlay_opacity=settings.overlay_opacity,
        )

    def fit_bounds(self, bounds: GeoBounds) -> None:
        """Fit the view to a rectangle."""
        self.view_bounds = bounds
        logger.debug(f"Viewport fitted to {bounds.to_dict()}")

    def add_image_overlay(
        self, image_data_uri: str, bounds: GeoBounds, name: Optional[str] = None
    ) -> None:
        """Place an image layer over a rectangle."""
        self.overlays.append(PlacedOverlay(image_data_uri, bounds, name))
        logger.debug(f"Placed image overlay {name or ''} at {bounds.to_dict()}")

    def clear(self) -> None:
        """Drop all overlays and reset the view."""
        self.overlays.clear()
        self.view_bounds = None

    def extent(self) -> Optional[GeoBounds]:
        """Rectangle enclosing every overlay, or None without overlays."""
        return GeoBounds.enclosing(overlay.bounds for overlay in self.overlays)

    def overlays_in_view(self) -> List[PlacedOverlay]:
        """Overlays intersecting the current view bounds (all when unfitted)."""
        if self.view_bounds is None:
            return list(self.overlays)
        return [
            overlay
            for overlay in self.overlays
            if overlay.bounds.intersects(self.view_bounds)
        ]

    def to_folium(self) -> folium.Map:
        """
        Build a folium map with the current overlays and view.

        Returns:
            folium.Map ready to be saved or embedded
        """
        fmap = folium.Map(
            location=list(self.center),
            zoom_start=self.zoom,
            tiles=self.tiles,
            max_zoom=self.max_zoom,
        )

        for overlay in self.overlays:
            ImageOverlay(
                image=overlay.image_data_uri,
                bounds=overlay.bounds.to_leaflet(),
                opacity=self.overlay_opacity,
                name=overlay.name,
            ).add_to(fmap)

        if self.overlays:
            folium.LayerControl().add_to(fmap)

        if self.view_bounds is not None:
            fmap.fit_bounds(self.view_bounds.to_leaflet())

        return fmap

    def to_html(self) -> str:
        """Render the map as a standalone HTML document."""
        return self.to_folium().get_root().render()

    def save(self, output_path: Union[str, Path]) -> Path:
        """
        Save the map as an HTML file.

        Args:
            output_path: Output file path

        Returns:
            Path to the written file
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        self.to_folium().save(str(output_path))
        logger.info(f"Saved map with {len(self.overlays)} overlays to {output_path}")
        return output_path
