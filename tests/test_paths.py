"""
Tests for archive-relative href resolution.
"""

import pytest

from kmzview.core.kmz import parent_directory, resolve_path


class TestResolvePath:
    """Tests for resolve_path."""

    def test_plain_href_is_appended(self):
        assert resolve_path("a/b/", "c.kml") == "a/b/c.kml"

    def test_root_parent(self):
        assert resolve_path("", "doc.kml") == "doc.kml"

    def test_single_parent_segment(self):
        assert resolve_path("a/b/c/", "../d.kml") == "a/b/d.kml"

    def test_multiple_parent_segments(self):
        assert resolve_path("a/b/c/", "../../d.kml") == "a/d.kml"

    def test_climbing_to_root(self):
        assert resolve_path("a/", "../x.kml") == "/x.kml"

    def test_climbing_above_root_does_not_raise(self):
        """Escaping the archive root yields a path that matches no entry."""
        assert resolve_path("a/", "../../x.kml") == "/x.kml"

    def test_only_leading_parent_segments_are_consumed(self):
        assert resolve_path("a/b/", "../c/../d.kml") == "a/c/../d.kml"

    def test_subdirectory_href(self):
        assert resolve_path("tiles/", "sub/a.kml") == "tiles/sub/a.kml"

    def test_case_is_preserved(self):
        assert resolve_path("Tiles/", "A.KML") == "Tiles/A.KML"

    @pytest.mark.parametrize(
        "parent, href",
        [("", "doc.kml"), ("a/", "b.kml"), ("a/b/", "../c.kml")],
    )
    def test_deterministic(self, parent, href):
        assert resolve_path(parent, href) == resolve_path(parent, href)


class TestParentDirectory:
    """Tests for parent_directory."""

    def test_nested_path(self):
        assert parent_directory("tiles/sub/a.kml") == "tiles/sub/"

    def test_root_level_path(self):
        assert parent_directory("doc.kml") == ""

    def test_round_trip_with_resolve(self):
        path = "tiles/sub/a.kml"
        assert resolve_path(parent_directory(path), "a.kml") == path
