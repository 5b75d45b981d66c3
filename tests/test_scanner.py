"""Unit tests for placeholder scanning."""

import logging

import pytest

from signflow.config.profile_loader import ProfileConfig
from signflow.models.text_fragment import TextFragment
from signflow.pipeline.reader import DocumentDecodeError
from signflow.pipeline.scanner import reconstruct_lines, scan_pdf, scan_placements
from signflow.pipeline.text_layer import StaticTextLayer


@pytest.fixture
def default_profile():
    return ProfileConfig(name="test")


@pytest.fixture
def reconstructing_profile():
    return ProfileConfig(name="fragmented", reconstruct_lines=True)


class TestScanPlacements:
    """Scanning a synthetic text layer."""

    def test_single_marker_uses_fallback_height(self, default_profile):
        """One marker at (100, 700) on a Letter page, no glyph height reported."""
        source = StaticTextLayer([(612, 792, [TextFragment("$signature", 100, 700)])])

        placements = scan_placements(source, default_profile)

        assert len(placements) == 1
        p = placements[0]
        assert p.page_index == 0
        assert p.mark is None
        assert p.position.x == pytest.approx(100 / 612)
        assert p.position.y == pytest.approx((792 - 700 - 12) / 792)
        assert p.position.width == pytest.approx(150 / 612)
        assert p.position.height == pytest.approx(60 / 792)

    def test_reported_glyph_height_is_used(self, default_profile):
        source = StaticTextLayer([(612, 792, [TextFragment("$signature", 100, 700, 60, 9)])])
        p = scan_placements(source, default_profile)[0]
        assert p.position.y == pytest.approx((792 - 700 - 9) / 792)

    def test_no_markers_gives_empty_sequence(self, default_profile):
        source = StaticTextLayer([
            (612, 792, [TextFragment("Hello", 72, 700, 30, 12)]),
            (612, 792, []),
        ])
        assert scan_placements(source, default_profile) == []

    def test_marker_inside_longer_fragment_matches(self, default_profile):
        source = StaticTextLayer([(612, 792, [TextFragment("Sign:$signature_here", 50, 400)])])
        placements = scan_placements(source, default_profile)
        assert len(placements) == 1
        # placement is anchored at the fragment origin, not at the marker offset
        assert placements[0].position.x == pytest.approx(50 / 612)

    def test_match_is_case_sensitive(self, default_profile):
        source = StaticTextLayer([(612, 792, [
            TextFragment("$Signature", 50, 400),
            TextFragment("$SIGNATURE", 50, 300),
        ])])
        assert scan_placements(source, default_profile) == []

    def test_one_placement_per_fragment(self, default_profile):
        source = StaticTextLayer([(612, 792, [TextFragment("$signature $signature", 50, 400)])])
        assert len(scan_placements(source, default_profile)) == 1

    def test_split_marker_is_missed_without_reconstruction(self, default_profile):
        source = StaticTextLayer([(612, 792, [
            TextFragment("$sign", 100, 700, 30, 12),
            TextFragment("ature", 130, 700, 30, 12),
        ])])
        assert scan_placements(source, default_profile) == []

    def test_order_by_page_then_stream_order(self, default_profile):
        source = StaticTextLayer([
            (612, 792, [
                TextFragment("$signature", 300, 100),
                TextFragment("$signature", 50, 600),
            ]),
            (612, 792, [TextFragment("$signature", 10, 10)]),
        ])
        placements = scan_placements(source, default_profile)
        assert [p.page_index for p in placements] == [0, 0, 1]
        assert placements[0].position.x == pytest.approx(300 / 612)
        assert placements[1].position.x == pytest.approx(50 / 612)

    def test_ids_are_unique(self, default_profile):
        source = StaticTextLayer([(612, 792, [TextFragment("$signature", 50, y) for y in range(100, 700, 50)])])
        placements = scan_placements(source, default_profile)
        assert len({p.id for p in placements}) == len(placements) == 12

    def test_failing_page_is_skipped(self, default_profile, caplog):
        source = StaticTextLayer([
            (612, 792, [TextFragment("$signature", 100, 700)]),
            (612, 792, None),
            (612, 792, [TextFragment("$signature", 100, 300)]),
        ])
        with caplog.at_level(logging.WARNING):
            placements = scan_placements(source, default_profile)

        assert [p.page_index for p in placements] == [0, 2]
        assert "Skipping page 2" in caplog.text

    def test_box_is_clamped_to_page(self, default_profile):
        """Marker near the bottom-right corner: box never leaves the page."""
        source = StaticTextLayer([(612, 792, [TextFragment("$signature", 600, 2)])])
        p = scan_placements(source, default_profile)[0]
        assert p.position.x + p.position.width <= 1.0 + 1e-12
        assert p.position.y + p.position.height <= 1.0 + 1e-12

    def test_marker_above_page_top_clamps_to_zero(self, default_profile):
        source = StaticTextLayer([(612, 792, [TextFragment("$signature", 10, 790, 50, 12)])])
        p = scan_placements(source, default_profile)[0]
        assert p.position.y == 0.0

    def test_custom_marker_and_box(self):
        profile = ProfileConfig(name="custom", marker="[[sign]]", box_width=100, box_height=40)
        source = StaticTextLayer([(500, 1000, [
            TextFragment("$signature", 10, 500),
            TextFragment("[[sign]]", 10, 200),
        ])])
        placements = scan_placements(source, profile)
        assert len(placements) == 1
        assert placements[0].position.width == pytest.approx(0.2)
        assert placements[0].position.height == pytest.approx(0.04)


class TestLineReconstruction:
    """Optional joining of fragments into lines."""

    def test_groups_by_baseline_and_sorts_by_x(self):
        frags = [
            TextFragment("world", 60, 700.5, 30, 10),
            TextFragment("below", 10, 650, 30, 10),
            TextFragment("hello", 10, 700, 30, 10),
        ]
        lines = reconstruct_lines(frags, tolerance=3)
        assert [[f.text for f in line] for line in lines] == [["hello", "world"], ["below"]]

    def test_split_marker_found(self, reconstructing_profile):
        source = StaticTextLayer([(612, 792, [
            TextFragment("ature", 130, 700, 30, 12),
            TextFragment("$sign", 100, 700, 30, 12),
        ])])
        placements = scan_placements(source, reconstructing_profile)
        assert len(placements) == 1
        assert placements[0].position.x == pytest.approx(100 / 612)
        assert placements[0].position.y == pytest.approx((792 - 700 - 12) / 792)

    def test_spaced_fragments_do_not_join(self, reconstructing_profile):
        source = StaticTextLayer([(612, 792, [
            TextFragment("$sign", 100, 700, 30, 12),
            TextFragment("ature", 200, 700, 30, 12),
        ])])
        assert scan_placements(source, reconstructing_profile) == []

    def test_every_occurrence_in_line(self, reconstructing_profile):
        source = StaticTextLayer([(612, 792, [
            TextFragment("$signature$signature", 100, 700, 200, 12),
        ])])
        placements = scan_placements(source, reconstructing_profile)
        assert len(placements) == 2
        assert placements[0].position.x == pytest.approx(100 / 612)
        assert placements[1].position.x == pytest.approx(200 / 612)

    def test_lines_emitted_top_to_bottom(self, reconstructing_profile):
        source = StaticTextLayer([(612, 792, [
            TextFragment("$signature", 50, 100, 60, 12),
            TextFragment("$signature", 50, 600, 60, 12),
        ])])
        placements = scan_placements(source, reconstructing_profile)
        assert placements[0].position.y < placements[1].position.y


class TestScanPdf:
    """Scanning real PDF bytes via pdfplumber."""

    def test_detects_markers_across_pages(self, signature_pdf, default_profile):
        placements = scan_pdf(signature_pdf, default_profile)

        assert [p.page_index for p in placements] == [0, 1, 1]
        first = placements[0]
        assert first.position.x == pytest.approx(100 / 612, abs=0.01)
        # marker baseline sits 100 pt above the page bottom
        assert first.position.y == pytest.approx((792 - 100 - 12) / 792, abs=0.01)

    def test_plain_pdf_has_no_placements(self, plain_pdf, default_profile):
        assert scan_pdf(plain_pdf, default_profile) == []

    def test_cropped_page_is_normalized_against_visible_area(self, pdf_factory, default_profile):
        pdf = pdf_factory([(612, 792, [(100, 300, "$signature", 12)])], cropbox=(50, 100, 562, 792))

        p = scan_pdf(pdf, default_profile)[0]

        assert p.position.x == pytest.approx(50 / 512, abs=0.005)
        assert p.position.width == pytest.approx(150 / 512)
        assert p.position.height == pytest.approx(60 / 692)
        # baseline 300 pt from the MediaBox top is 200 pt below the crop top
        assert p.position.y == pytest.approx((200 - 12) / 692, abs=0.01)

    def test_rotated_page_is_skipped_with_warning(self, pdf_factory, default_profile, caplog):
        pdf = pdf_factory([(612, 792, [(100, 300, "$signature", 12)])], rotation=90)

        with caplog.at_level(logging.WARNING, logger="signflow.pipeline.scanner"):
            placements = scan_pdf(pdf, default_profile)

        assert placements == []
        assert "Skipping page 1" in caplog.text
        assert "rotated 90 degrees" in caplog.text

    def test_invalid_bytes_raise_decode_error(self, default_profile):
        with pytest.raises(DocumentDecodeError):
            scan_pdf(b"not a pdf", default_profile)

    def test_empty_bytes_raise_decode_error(self, default_profile):
        with pytest.raises(DocumentDecodeError):
            scan_pdf(b"", default_profile)
