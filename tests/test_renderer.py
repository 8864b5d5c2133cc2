"""
Tests for placing ground overlays on a map.
"""

import base64

import pytest

from conftest import (
    RecordingSink,
    ground_overlay,
    jpeg_bytes,
    kml,
    lat_lon_box,
    make_kmz,
    network_link,
    png_bytes,
)
from kmzview.core.kmz import (
    GeoBounds,
    KmzArchive,
    LinkBase,
    LinkStatus,
    MapRenderer,
    SkipReason,
    parse_document,
    render_on_map,
)
from kmzview.core.kmz.renderer import guess_image_mime


async def render(data: bytes, sink=None, **renderer_options):
    sink = sink if sink is not None else RecordingSink()
    with KmzArchive(data) as archive:
        root_path = archive.find_root_document()
        document = parse_document(await archive.load_text(root_path), root_path)
        report = await MapRenderer(**renderer_options).render(document, archive, sink)
    return sink, report


def reasons(report):
    return [outcome.reason for outcome in report.skipped]


@pytest.mark.asyncio
class TestMapRenderer:
    """Tests for MapRenderer."""

    async def test_single_overlay(self, single_overlay_kmz):
        sink, report = await render(single_overlay_kmz)

        assert len(sink.overlays) == 1
        data_uri, bounds = sink.overlays[0]
        assert bounds == GeoBounds(south=10, west=20, north=15, east=25)
        assert data_uri.startswith("data:image/png;base64,")
        assert base64.b64decode(data_uri.split(",", 1)[1]) == png_bytes()
        assert report.overlays_placed == 1
        assert report.documents == ["doc.kml"]
        assert sink.fitted == []

    async def test_linked_documents_are_rendered(self, linked_kmz):
        sink, report = await render(linked_kmz)

        placed = [bounds for _, bounds in sink.overlays]
        assert placed == [
            GeoBounds(1, 1, 2, 2),
            GeoBounds(3, 3, 4, 4),
            GeoBounds(5, 5, 6, 6),
        ]
        assert report.documents == ["doc.kml", "tiles/1.kml", "tiles/sub/a.kml", "tiles/2.kml"]
        assert report.skipped == []

    async def test_cycle_renders_each_document_once(self, cyclic_kmz):
        sink, report = await render(cyclic_kmz)

        assert len(sink.overlays) == 1
        assert report.documents == ["doc.kml", "b.kml"]
        assert reasons(report) == [SkipReason.ALREADY_RENDERED]

    async def test_shared_document_rendered_once(self):
        data = make_kmz(
            {
                "doc.kml": kml(network_link("a.kml") + network_link("a.kml")),
                "a.kml": kml(ground_overlay("a.png", lat_lon_box(1, 0, 1, 0))),
                "a.png": png_bytes(),
            }
        )

        sink, report = await render(data)

        assert len(sink.overlays) == 1
        assert reasons(report) == [SkipReason.ALREADY_RENDERED]

    async def test_missing_image(self):
        data = make_kmz(
            {"doc.kml": kml(ground_overlay("gone.png", lat_lon_box(1, 0, 1, 0)))}
        )

        sink, report = await render(data)

        assert sink.overlays == []
        assert reasons(report) == [SkipReason.NOT_FOUND]
        assert report.skipped[0].resolved_path == "gone.png"

    async def test_missing_icon_bounds_and_invalid_bounds(self):
        data = make_kmz(
            {
                "doc.kml": kml(
                    ground_overlay(None, lat_lon_box(1, 0, 1, 0))
                    + ground_overlay("img.png")
                    + ground_overlay("img.png", lat_lon_box("north", 0, 1, 0))
                ),
                "img.png": png_bytes(),
            }
        )

        sink, report = await render(data)

        assert sink.overlays == []
        assert reasons(report) == [
            SkipReason.MISSING_ICON,
            SkipReason.MISSING_BOUNDS,
            SkipReason.INVALID_BOUNDS,
        ]

    async def test_one_failure_does_not_stop_siblings(self):
        data = make_kmz(
            {
                "doc.kml": kml(
                    ground_overlay("gone.png", lat_lon_box(1, 0, 1, 0))
                    + ground_overlay("img.png", lat_lon_box(3, 2, 3, 2))
                    + network_link(None)
                    + network_link("bad.kml")
                    + network_link("ok.kml")
                ),
                "img.png": png_bytes(),
                "bad.kml": "<kml",
                "ok.kml": kml(ground_overlay("img.png", lat_lon_box(5, 4, 5, 4))),
            }
        )

        sink, report = await render(data)

        assert [bounds for _, bounds in sink.overlays] == [
            GeoBounds(2, 2, 3, 3),
            GeoBounds(4, 4, 5, 5),
        ]
        assert reasons(report) == [
            SkipReason.NOT_FOUND,
            SkipReason.MISSING_HREF,
            SkipReason.PARSE_FAILED,
        ]

    async def test_archive_root_base_ignores_document_directory(self):
        """Hrefs in nested documents resolve from the archive root by default."""
        data = make_kmz(
            {
                "doc.kml": kml(network_link("tiles/1.kml")),
                "tiles/1.kml": kml(ground_overlay("img.png", lat_lon_box(1, 0, 1, 0))),
                "tiles/img.png": png_bytes(),
            }
        )

        sink, report = await render(data)

        assert sink.overlays == []
        assert report.skipped[0].resolved_path == "img.png"

    async def test_document_base_resolves_from_document_directory(self):
        data = make_kmz(
            {
                "doc.kml": kml(network_link("tiles/1.kml")),
                "tiles/1.kml": kml(
                    ground_overlay("img.png", lat_lon_box(1, 0, 1, 0))
                    + network_link("sub/2.kml")
                ),
                "tiles/img.png": png_bytes(),
                "tiles/sub/2.kml": kml(ground_overlay("../img.png", lat_lon_box(2, 1, 2, 1))),
            }
        )

        sink, report = await render(data, link_base=LinkBase.DOCUMENT)

        assert len(sink.overlays) == 2
        assert report.documents == ["doc.kml", "tiles/1.kml", "tiles/sub/2.kml"]

    async def test_max_depth(self, linked_kmz):
        sink, report = await render(linked_kmz, max_depth=1)

        assert len(sink.overlays) == 2
        assert reasons(report) == [SkipReason.DEPTH_LIMIT]

    async def test_outcomes_record_successes(self, single_overlay_kmz):
        _, report = await render(single_overlay_kmz)

        assert [outcome.status for outcome in report.outcomes] == [LinkStatus.SUCCESS]
        assert report.outcomes[0].resolved_path == "img.png"

    async def test_render_on_map_function(self, single_overlay_kmz):
        sink = RecordingSink()
        with KmzArchive(single_overlay_kmz) as archive:
            document = parse_document(await archive.load_text("doc.kml"), "doc.kml")
            report = await render_on_map(document, archive, sink)

        assert report.overlays_placed == 1


class TestGuessImageMime:
    """Tests for image MIME detection."""

    def test_png_content(self):
        assert guess_image_mime(png_bytes(), "x.png") == "image/png"

    def test_content_wins_over_extension(self):
        assert guess_image_mime(jpeg_bytes(), "mislabeled.png") == "image/jpeg"

    def test_extension_fallback(self):
        assert guess_image_mime(b"not an image", "photo.gif") == "image/gif"

    def test_default_png(self):
        assert guess_image_mime(b"not an image", "blob") == "image/png"
