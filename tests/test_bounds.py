"""
Tests for LatLonBox bounds extraction and GeoBounds helpers.
"""

import pytest
from shapely.geometry import Point

from conftest import ground_overlay, kml, lat_lon_box
from kmzview.core.kmz import GeoBounds, document_bounds, extract_bounds, parse_document


def box_element(north, south, east, west):
    document = parse_document(kml(lat_lon_box(north, south, east, west)))
    return document.find_first("LatLonBox")


class TestExtractBounds:
    """Tests for extract_bounds."""

    def test_valid_bounds(self):
        bounds = extract_bounds(box_element(15, 10, 25, 20))
        assert bounds == GeoBounds(south=10.0, west=20.0, north=15.0, east=25.0)

    def test_out_of_range_values_are_kept(self):
        bounds = extract_bounds(box_element("91.0", 10, 25, 20))

        assert bounds is not None
        assert bounds.north == 91.0

    def test_inverted_box_is_kept(self):
        bounds = extract_bounds(box_element(10, 15, 20, 25))
        assert bounds == GeoBounds(south=15.0, west=25.0, north=10.0, east=20.0)

    def test_whitespace_is_ignored(self):
        assert extract_bounds(box_element(" 15 ", "\n10\n", 25, 20)) is not None

    @pytest.mark.parametrize("bad", ["abc", "", "nan", "inf", "1,5"])
    def test_non_numeric_value(self, bad):
        assert extract_bounds(box_element(bad, 10, 25, 20)) is None

    def test_trailing_garbage_is_not_numeric(self):
        assert extract_bounds(box_element("10abc", 10, 25, 20)) is None

    def test_underscore_grouping_is_accepted(self):
        assert extract_bounds(box_element("1_0", 5, 25, 20)).north == 10.0

    def test_missing_side(self):
        document = parse_document(
            kml("<LatLonBox><north>1</north><south>0</south><east>1</east></LatLonBox>")
        )
        assert extract_bounds(document.find_first("LatLonBox")) is None


class TestDocumentBounds:
    """Tests for document_bounds."""

    def test_first_lat_lon_box_wins(self):
        document = parse_document(
            kml(
                ground_overlay("a.png", lat_lon_box(2, 1, 2, 1))
                + ground_overlay("b.png", lat_lon_box(4, 3, 4, 3))
            )
        )
        assert document_bounds(document) == GeoBounds(1.0, 1.0, 2.0, 2.0)

    def test_no_lat_lon_box(self):
        assert document_bounds(parse_document(kml(""))) is None

    def test_invalid_first_box(self):
        document = parse_document(kml(lat_lon_box("x", 1, 2, 1) + lat_lon_box(2, 1, 2, 1)))
        assert document_bounds(document) is None


class TestGeoBounds:
    """Tests for GeoBounds helpers."""

    def test_to_leaflet(self):
        bounds = GeoBounds(south=10, west=20, north=15, east=25)
        assert bounds.to_leaflet() == [[10, 20], [15, 25]]

    def test_to_polygon_axis_order(self):
        polygon = GeoBounds(south=10, west=20, north=15, east=25).to_polygon()

        assert polygon.bounds == (20.0, 10.0, 25.0, 15.0)
        assert polygon.contains(Point(22, 12))

    def test_from_geometry(self):
        bounds = GeoBounds.from_geometry(Point(5, 6).buffer(1))
        assert bounds.west == pytest.approx(4)
        assert bounds.north == pytest.approx(7)

    def test_union(self):
        a = GeoBounds(south=0, west=0, north=1, east=1)
        b = GeoBounds(south=2, west=-3, north=4, east=0.5)
        assert a.union(b) == GeoBounds(south=0, west=-3, north=4, east=1)

    def test_union_with_degenerate_bounds(self):
        point = GeoBounds(south=5, west=5, north=5, east=5)
        box = GeoBounds(south=0, west=0, north=1, east=1)
        assert point.union(box) == GeoBounds(south=0, west=0, north=5, east=5)

    def test_enclosing(self):
        boxes = [GeoBounds(0, 0, 1, 1), GeoBounds(-1, 2, 0, 3)]
        assert GeoBounds.enclosing(boxes) == GeoBounds(-1, 0, 1, 3)
        assert GeoBounds.enclosing([]) is None

    def test_intersects(self):
        a = GeoBounds(south=0, west=0, north=2, east=2)
        assert a.intersects(GeoBounds(south=1, west=1, north=3, east=3))
        assert not a.intersects(GeoBounds(south=5, west=5, north=6, east=6))

    def test_to_dict(self):
        assert GeoBounds(1, 2, 3, 4).to_dict() == {
            "south": 1,
            "west": 2,
            "north": 3,
            "east": 4,
        }
