"""Unit tests for data models and mark payloads."""

import base64
import io
from datetime import datetime, timezone

import pytest
from PIL import Image

from signflow.models import DocumentRecord, DocumentStatus, NormalizedRect, Placement, status_for
from signflow.models.mark import (
    MarkDecodeError,
    decode_mark_payload,
    encode_mark_data_url,
    is_blank_mark,
    load_mark_image,
)


def _rect():
    return NormalizedRect(0.1, 0.2, 0.3, 0.05)


class TestNormalizedRect:

    @pytest.mark.parametrize("field", ["x", "y", "width", "height"])
    def test_rejects_out_of_unit_range(self, field):
        values = {"x": 0.1, "y": 0.1, "width": 0.1, "height": 0.1}
        values[field] = 1.5
        with pytest.raises(ValueError):
            NormalizedRect(**values)

    def test_dict_round_trip(self):
        assert NormalizedRect.from_dict(_rect().to_dict()) == _rect()


class TestPlacement:

    def test_negative_page_rejected(self):
        with pytest.raises(ValueError):
            Placement(id="a", page_index=-1, position=_rect())

    def test_with_mark_returns_new_object(self):
        p = Placement(id="a", page_index=0, position=_rect())
        signed = p.with_mark(b"img")
        assert p.mark is None
        assert not p.is_signed
        assert signed.is_signed
        assert signed.id == p.id
        assert signed.position is p.position


class TestStatus:

    def test_vacuously_signed(self):
        assert status_for([]) == DocumentStatus.SIGNED

    def test_any_unsigned_is_unsigned(self):
        placements = [
            Placement(id="a", page_index=0, position=_rect(), mark=b"x"),
            Placement(id="b", page_index=0, position=_rect()),
        ]
        assert status_for(placements) == DocumentStatus.UNSIGNED


class TestDocumentRecord:

    def test_placement_page_must_exist(self):
        with pytest.raises(ValueError):
            DocumentRecord(
                id="d", filename="a.pdf", page_count=1, original_pdf=b"%PDF",
                placements=[Placement(id="a", page_index=1, position=_rect())],
            )

    def test_duplicate_placement_ids_rejected(self):
        p = Placement(id="a", page_index=0, position=_rect())
        with pytest.raises(ValueError):
            DocumentRecord(id="d", filename="a.pdf", page_count=1, original_pdf=b"%PDF", placements=[p, p])

    def test_dict_round_trip(self, mark_factory):
        mark = mark_factory()
        record = DocumentRecord(
            id="d1",
            filename="contract.pdf",
            page_count=2,
            original_pdf=b"%PDF-original",
            placements=[
                Placement(id="a", page_index=0, position=_rect(), mark=mark),
                Placement(id="b", page_index=1, position=_rect()),
            ],
            title="Contract",
            summary="A contract.",
            tags=["Legal"],
            uploaded_at=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
            signed_pdf=b"%PDF-signed",
        )

        data = record.to_dict()
        assert data["status"] == "unsigned"
        assert data["placements"][0]["mark"].startswith("data:image/png;base64,")
        assert data["original_pdf"] == base64.b64encode(b"%PDF-original").decode("ascii")

        restored = DocumentRecord.from_dict(data)
        assert restored == record

    def test_stored_status_is_recomputed(self):
        record = DocumentRecord(id="d", filename="a.pdf", page_count=1, original_pdf=b"%PDF")
        data = record.to_dict()
        data["status"] = "unsigned"
        assert DocumentRecord.from_dict(data).status == DocumentStatus.SIGNED


class TestMarkPayload:

    def test_bytes_pass_through(self):
        assert decode_mark_payload(b"\x89PNG") == b"\x89PNG"

    def test_data_url_decoded(self, mark_factory):
        mark = mark_factory()
        assert decode_mark_payload(encode_mark_data_url(mark)) == mark

    def test_jpeg_data_url_mime(self, mark_factory):
        assert encode_mark_data_url(mark_factory(fmt="JPEG")).startswith("data:image/jpeg;base64,")

    @pytest.mark.parametrize("payload", [
        "not a data url",
        "data:image/png,rawtext",
        "data:image/png;base64,@@@",
    ])
    def test_bad_data_url(self, payload):
        with pytest.raises(MarkDecodeError):
            decode_mark_payload(payload)

    def test_load_rejects_non_image(self):
        with pytest.raises(MarkDecodeError):
            load_mark_image(b"definitely not an image")

    def test_load_rejects_unsupported_format(self):
        buf = io.BytesIO()
        Image.new("RGB", (10, 10), (0, 0, 0)).save(buf, format="GIF")
        with pytest.raises(MarkDecodeError):
            load_mark_image(buf.getvalue())

    def test_load_returns_rgba(self, mark_factory):
        img = load_mark_image(mark_factory(fmt="JPEG"))
        assert img.mode == "RGBA"

    def test_blank_detection(self, mark_factory):
        assert is_blank_mark(load_mark_image(mark_factory(blank=True)))
        assert is_blank_mark(load_mark_image(mark_factory(blank=True, fmt="JPEG")))
        assert not is_blank_mark(load_mark_image(mark_factory()))
        assert not is_blank_mark(load_mark_image(mark_factory(fmt="JPEG")))
