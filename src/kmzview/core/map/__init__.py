"""
Map viewport for rendering KMZ ground overlays.
"""

from kmzview.core.map.viewport import MapViewport, PlacedOverlay

__all__ = [
    "MapViewport",
    "PlacedOverlay",
]
