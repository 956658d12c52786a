# tests/conftest.py
from __future__ import annotations

import io
import json
import sys
from pathlib import Path

import pytest


# Ensure the project root is importable when running `pytest` via its entrypoint
# (e.g., `pip install -e .[test]` then `pytest`), where `sys.path[0]` may not be the repo root.
_PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))


PAGE_WIDTH = 595.0
PAGE_HEIGHT = 842.0


def write_pdf(path: Path, pages: list[list[tuple[float, float, str, float]]]) -> Path:
    """
    Build a PDF with PyMuPDF.

    Args:
        path: Output path
        pages: Per page, a list of (x, baseline_y, text, font_size) with
               baseline_y in PDF space (bottom-left origin)
    """
    import pymupdf

    doc = pymupdf.open()
    for items in pages:
        page = doc.new_page(width=PAGE_WIDTH, height=PAGE_HEIGHT)
        for x, y, text, size in items:
            page.insert_text((x, PAGE_HEIGHT - y), text, fontsize=size, fontname="helv")
    doc.save(str(path))
    doc.close()
    return path


def png_bytes(width: int = 200, height: int = 100, color: str = "red") -> bytes:
    from PIL import Image

    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def questionnaire_pdf(tmp_path) -> Path:
    """
    Two pages:
    page 1 - Q1/Answer with room under it, R5/Compliancy, Q7 at the very bottom
    page 2 - Q7's Answer caption at the top
    """
    return write_pdf(tmp_path / "questionnaire.pdf", [
        [
            (50, 760, "Q1 Describe your support hours.", 10),
            (50, 740, "Answer", 10),
            (50, 640, "R5 Data must be encrypted at rest.", 10),
            (50, 620, "Compliancy", 10),
            (50, 520, "Q6 Name your hosting provider.", 10),
            (50, 60, "Q7 List your certifications.", 10),
        ],
        [
            (50, 790, "Answer", 10),
            (50, 600, "Q8 Anything else?", 10),
        ],
    ])


@pytest.fixture
def png_data() -> bytes:
    return png_bytes()


@pytest.fixture
def write_json_rows(tmp_path):
    def _write(rows, name: str = "answers.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(rows), encoding="utf-8")
        return path
    return _write


@pytest.fixture
def make_pdf(tmp_path):
    """``make_pdf(name, pages)`` -> path of a PDF built by write_pdf() under tmp_path"""
    def _make(name: str, pages) -> Path:
        return write_pdf(tmp_path / name, pages)
    return _make


@pytest.fixture
def make_png():
    """``make_png(width, height, color)`` -> PNG bytes"""
    return png_bytes
