"""
LatLonBox bounds extraction.
"""

import logging
import math
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Iterable, List, Optional

from shapely.geometry import Polygon, box
from shapely.geometry.base import BaseGeometry

from .document import LAT_LON_BOX, ParsedDocument, child_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeoBounds:
    """
    Geographic rectangle in decimal degrees.

    Ordering (south <= north, west <= east) and value ranges are not
    enforced; degenerate and inverted rectangles are passed through as-is.

    Attributes:
        south: Southern latitude
        west: Western longitude
        north: Northern latitude
        east: Eastern longitude
    """

    south: float
    west: float
    north: float
    east: float

    def to_leaflet(self) -> List[List[float]]:
        """Corner pair in Leaflet/folium order: ``[[south, west], [north, east]]``."""
        return [[self.south, self.west], [self.north, self.east]]

    def to_polygon(self) -> Polygon:
        """Rectangle as a shapely polygon in (lon, lat) axis order."""
        return box(
            min(self.west, self.east),
            min(self.south, self.north),
            max(self.west, self.east),
            max(self.south, self.north),
        )

    @classmethod
    def from_geometry(cls, geometry: BaseGeometry) -> "GeoBounds":
        """Envelope of a shapely geometry in (lon, lat) axis order."""
        west, south, east, north = geometry.bounds
        return cls(south=south, west=west, north=north, east=east)

    def union(self, other: "GeoBounds") -> "GeoBounds":
        """Smallest rectangle containing both bounds."""
        return GeoBounds(
            south=min(self.south, self.north, other.south, other.north),
            west=min(self.west, self.east, other.west, other.east),
            north=max(self.south, self.north, other.south, other.north),
            east=max(self.west, self.east, other.west, other.east),
        )

    def intersects(self, other: "GeoBounds") -> bool:
        """Whether the two rectangles share any point."""
        return self.to_polygon().intersects(other.to_polygon())

    @classmethod
    def enclosing(cls, bounds: Iterable["GeoBounds"]) -> Optional["GeoBounds"]:
        """Smallest rectangle containing every bound, or None for no bounds."""
        result: Optional[GeoBounds] = None
        for item in bounds:
            result = item if result is None else result.union(item)
        return result

    def to_dict(self) -> dict:
        return {
            "south": self.south,
            "west": self.west,
            "north": self.north,
            "east": self.east,
        }


def _parse_coordinate(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def extract_bounds(lat_lon_box: ET.Element) -> Optional[GeoBounds]:
    """
    Read north/south/east/west from a LatLonBox element.

    Missing or non-numeric values are a normal case, not an error.

    Args:
        lat_lon_box: LatLonBox XML element

    Returns:
        GeoBounds if all four values parse as finite numbers, None otherwise
    """
    values = {
        side: _parse_coordinate(child_text(lat_lon_box, side))
        for side in ("north", "south", "east", "west")
    }
    if any(value is None for value in values.values()):
        logger.debug(f"LatLonBox has missing or non-numeric values: {values}")
        return None

    return GeoBounds(
        south=values["south"],
        west=values["west"],
        north=values["north"],
        east=values["east"],
    )


def document_bounds(document: ParsedDocument) -> Optional[GeoBounds]:
    """Bounds of the first LatLonBox in a document, or None."""
    lat_lon_box = document.find_first(LAT_LON_BOX)
    if lat_lon_box is None:
        return None
    return extract_bounds(lat_lon_box)
