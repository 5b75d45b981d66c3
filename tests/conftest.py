"""Shared fixtures: PDFs built with pymupdf, mark images built with Pillow."""

import io

import pytest
from PIL import Image, ImageDraw

from signflow.config.profile_manager import reset_profile


def _build_pdf(pages, cropbox=None, rotation=0) -> bytes:
    """Build PDF bytes.

    pages: list of (width, height, [(x, baseline_from_top, text, fontsize), ...])
    cropbox: optional (x0, top, x1, bottom) in MediaBox points, top-left origin,
        applied to every page after the text is placed
    rotation: /Rotate applied to every page
    """
    import fitz
    doc = fitz.open()
    for width, height, texts in pages:
        page = doc.new_page(width=width, height=height)
        for x, y, text, fontsize in texts:
            page.insert_text((x, y), text, fontsize=fontsize)
        if cropbox is not None:
            page.set_cropbox(fitz.Rect(*cropbox))
        if rotation:
            page.set_rotation(rotation)
    data = doc.tobytes()
    doc.close()
    return data


def _build_mark(width=200, height=80, blank=False, fmt="PNG", color=(0, 0, 0), stroke=4) -> bytes:
    """Build a mark image: a stroke on a transparent (PNG) or white (JPEG) canvas."""
    if fmt == "JPEG":
        img = Image.new("RGB", (width, height), (255, 255, 255))
    else:
        img = Image.new("RGBA", (width, height), (0, 0, 0, 0))
    if not blank:
        draw = ImageDraw.Draw(img)
        draw.line((10, height - 10, width - 10, 10), fill=color, width=stroke)
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep tests away from real AI configuration, data dir and global profile."""
    for var in ("AI_ENABLED", "AI_ENDPOINT", "AI_KEY", "AI_PROVIDER", "AI_MODEL",
                "SIGNFLOW_STORE_PATH", "SIGNFLOW_PROFILES_DIR"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("SIGNFLOW_AI_CONFIG", str(tmp_path / "ai_config.json"))
    monkeypatch.setenv("SIGNFLOW_DATA_DIR", str(tmp_path / "data"))
    reset_profile()
    yield
    reset_profile()


@pytest.fixture
def pdf_factory():
    """Factory building PDF bytes from page specs."""
    return _build_pdf


@pytest.fixture
def mark_factory():
    """Factory building mark image bytes."""
    return _build_mark


@pytest.fixture
def signature_pdf():
    """Two Letter pages: one marker on page 1, two on page 2."""
    return _build_pdf([
        (612, 792, [
            (72, 72, "Service Agreement", 16),
            (72, 120, "This agreement is made between the parties below.", 11),
            (100, 92 + 600, "$signature", 12),
        ]),
        (612, 792, [
            (72, 72, "Signatures", 14),
            (72, 200, "$signature", 12),
            (320, 200, "$signature", 12),
        ]),
    ])


@pytest.fixture
def plain_pdf():
    """One page, no markers."""
    return _build_pdf([(595, 842, [(72, 72, "Nothing to sign here", 12)])])
