# tests/test_pdf_text_index.py
"""Tests for answerfill.processors.pdf_text_index"""

from dataclasses import dataclass

import pytest

from answerfill.processors import pdf_text_index
from answerfill.processors.pdf_text_index import build_page_text_indices, group_chars_into_tokens


@dataclass
class FakeChar:
    """Minimal LTChar stand-in"""
    text: str
    x0: float
    x1: float
    y0: float
    size: float = 10.0

    @property
    def matrix(self):
        return (self.size, 0, 0, self.size, self.x0, self.y0)

    def get_text(self):
        return self.text


def chars_for(text: str, x: float, y: float, advance: float = 5.0) -> list[FakeChar]:
    chars = []
    for ch in text:
        chars.append(FakeChar(ch, x, x + advance, y))
        x += advance
    return chars


@pytest.mark.unit
class TestGroupCharsIntoTokens:
    """Tests for group_chars_into_tokens"""

    def test_splits_on_spaces(self):
        tokens = group_chars_into_tokens(chars_for("Q1 Answer", 50, 700))
        assert [t.text for t in tokens] == ["Q1", "Answer"]
        assert tokens[0].x == 50
        assert tokens[1].x == 65
        assert tokens[0].width == 10

    def test_splits_on_baseline_change(self):
        chars = chars_for("Q1", 50, 700) + chars_for("Answer", 60, 680)
        assert [t.text for t in group_chars_into_tokens(chars)] == ["Q1", "Answer"]

    def test_splits_on_wide_gap(self):
        chars = chars_for("Label", 50, 700) + chars_for("Value", 200, 700)
        assert [t.text for t in group_chars_into_tokens(chars)] == ["Label", "Value"]

    def test_baseline_and_size(self):
        token = group_chars_into_tokens(chars_for("R5", 50, 640))[0]
        assert token.y == 640
        assert token.font_size == 10.0

    def test_empty(self):
        assert group_chars_into_tokens([]) == []


@pytest.mark.integration
class TestBuildPageTextIndices:
    """Tests against a PDF written by PyMuPDF"""

    def test_one_index_per_page(self, questionnaire_pdf):
        indices = build_page_text_indices(questionnaire_pdf)
        assert [i.page_index for i in indices] == [0, 1]
        assert indices[0].width == pytest.approx(595)
        assert indices[0].height == pytest.approx(842)

    def test_tokens_positions(self, questionnaire_pdf):
        page = build_page_text_indices(questionnaire_pdf)[0]
        q1 = page.tokens[page.find("Q1")[0]]
        answer = page.tokens[page.find("Answer")[0]]
        assert q1.x == pytest.approx(50, abs=0.5)
        assert q1.y == pytest.approx(760, abs=0.5)
        assert answer.y == pytest.approx(740, abs=0.5)
        assert answer.font_size == pytest.approx(10, abs=0.5)

    def test_reading_order(self, make_pdf):
        pdf = make_pdf("order.pdf", [[
            (50, 100, "last", 10),
            (300, 700, "second", 10),
            (50, 700, "first", 10),
        ]])
        page = build_page_text_indices(pdf)[0]
        assert [t.text for t in page.tokens] == ["first", "second", "last"]

    def test_geometry_of_cropped_page(self, tmp_path):
        import pymupdf

        path = tmp_path / "cropped.pdf"
        doc = pymupdf.open()
        page = doc.new_page(width=612, height=792)
        page.insert_text((50, 100), "Answer", fontsize=10, fontname="helv")
        page.set_cropbox(pymupdf.Rect(36, 36, 576, 756))
        doc.save(str(path))
        doc.close()

        index = build_page_text_indices(path)[0]

        assert index.geometry.mediabox == pytest.approx((0, 0, 612, 792))
        assert index.geometry.cropbox == pytest.approx((36, 36, 576, 756))
        assert index.geometry.rotation == 0
        # Token positions stay relative to the media box
        assert index.tokens[0].y == pytest.approx(692, abs=0.5)

    def test_processed_pages_are_released(self, questionnaire_pdf, monkeypatch):
        collectors = []
        base_class = pdf_text_index.get_char_collector_class()

        class RecordingCollector(base_class):
            def __init__(self, rsrcmgr):
                super().__init__(rsrcmgr)
                collectors.append(self)

        monkeypatch.setattr(pdf_text_index, "get_char_collector_class", lambda: RecordingCollector)

        indices = build_page_text_indices(questionnaire_pdf)

        assert len(indices) == 2
        assert len(collectors) == 1
        assert collectors[0].pages == []
