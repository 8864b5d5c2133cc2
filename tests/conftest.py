"""
Shared fixtures for building KMZ archives in memory.
"""

import io
import zipfile
from pathlib import Path
from typing import Dict, List, Optional, Union

import pytest
from PIL import Image

KML_NS = "http://www.opengis.net/kml/2.2"


def make_kmz(files: Dict[str, Union[str, bytes]]) -> bytes:
    """Zip ``files`` (archive path -> content) in insertion order."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        for path, content in files.items():
            zf.writestr(path, content)
    return buffer.getvalue()


def kml(body: str, namespace: Optional[str] = KML_NS) -> str:
    """Wrap ``body`` in a KML Document."""
    xmlns = f' xmlns="{namespace}"' if namespace else ""
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f"<kml{xmlns}><Document>{body}</Document></kml>"
    )


def network_link(href: Optional[str], name: Optional[str] = None) -> str:
    name_xml = f"<name>{name}</name>" if name is not None else ""
    link_xml = f"<Link><href>{href}</href></Link>" if href is not None else "<Link/>"
    return f"<NetworkLink>{name_xml}{link_xml}</NetworkLink>"


def lat_lon_box(north, south, east, west) -> str:
    return (
        "<LatLonBox>"
        f"<north>{north}</north><south>{south}</south>"
        f"<east>{east}</east><west>{west}</west>"
        "</LatLonBox>"
    )


def ground_overlay(icon_href: Optional[str], box: Optional[str] = None) -> str:
    icon_xml = f"<Icon><href>{icon_href}</href></Icon>" if icon_href is not None else ""
    return f"<GroundOverlay>{icon_xml}{box or ''}</GroundOverlay>"


def png_bytes(size: tuple = (2, 2), color: str = "red") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def jpeg_bytes(size: tuple = (2, 2), color: str = "blue") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="JPEG")
    return buffer.getvalue()


class RecordingSink:
    """Map sink that records every call."""

    def __init__(self) -> None:
        self.fitted: List = []
        self.overlays: List[tuple] = []

    def fit_bounds(self, bounds) -> None:
        self.fitted.append(bounds)

    def add_image_overlay(self, image_data_uri: str, bounds) -> None:
        self.overlays.append((image_data_uri, bounds))


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def single_overlay_kmz() -> bytes:
    """One GroundOverlay with its image, no NetworkLinks."""
    return make_kmz(
        {
            "doc.kml": kml(ground_overlay("img.png", lat_lon_box(15, 10, 25, 20))),
            "img.png": png_bytes(),
        }
    )


@pytest.fixture
def linked_kmz() -> bytes:
    """
    Root document linking two tiles; tile 1 links a nested document.

    doc.kml
      Tile 1 -> tiles/1.kml (overlay, links tiles/sub/a.kml)
        Sub A -> tiles/sub/a.kml (overlay)
      Tile 2 -> tiles/2.kml (overlay)
    """
    return make_kmz(
        {
            "doc.kml": kml(
                network_link("tiles/1.kml", "Tile 1") + network_link("tiles/2.kml", "Tile 2")
            ),
            "tiles/1.kml": kml(
                ground_overlay("images/1.png", lat_lon_box(2, 1, 2, 1))
                + network_link("tiles/sub/a.kml", "Sub A")
            ),
            "tiles/sub/a.kml": kml(ground_overlay("images/a.png", lat_lon_box(4, 3, 4, 3))),
            "tiles/2.kml": kml(ground_overlay("images/2.png", lat_lon_box(6, 5, 6, 5))),
            "images/1.png": png_bytes(),
            "images/a.png": png_bytes(color="green"),
            "images/2.png": png_bytes(color="blue"),
        }
    )


@pytest.fixture
def cyclic_kmz() -> bytes:
    """doc.kml links b.kml, which links back to doc.kml."""
    return make_kmz(
        {
            "doc.kml": kml(network_link("b.kml", "B")),
            "b.kml": kml(
                network_link("doc.kml", "Back to A")
                + ground_overlay("b.png", lat_lon_box(1, 0, 1, 0))
            ),
            "b.png": png_bytes(),
        }
    )


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "Upload"
    directory.mkdir()
    return directory
