# tests/test_pdf_document.py
"""Tests for answerfill.processors.pdf_document"""

import pymupdf
import pytest

from answerfill.models.types import PageGeometry, PageTextIndex
from answerfill.processors.pdf_document import (
    PageHandle,
    PdfDocument,
    pdf_to_pymupdf_point,
    pdf_to_pymupdf_rect,
)


def blank_document(page_count: int = 2, width: float = 595, height: float = 842) -> PdfDocument:
    doc = pymupdf.open()
    for _ in range(page_count):
        doc.new_page(width=width, height=height)
    indices = [PageTextIndex(page_index=i, width=width, height=height) for i in range(page_count)]
    return PdfDocument(doc, indices)


@pytest.mark.unit
class TestCoordinateConversion:
    """Tests for page space -> PyMuPDF coordinate conversion"""

    def test_point(self):
        assert pdf_to_pymupdf_point(50, 700, PageGeometry.plain(595, 842)) == (50, 142)

    def test_rect(self):
        # Bottom-left corner (50, 500), 100 x 40
        rect = pdf_to_pymupdf_rect(50, 500, 100, 40, PageGeometry.plain(595, 842))
        assert rect == (50, 302, 150, 342)

    def test_point_on_cropped_page(self):
        letter = (0.0, 0.0, 612.0, 792.0)
        geometry = PageGeometry(mediabox=letter, cropbox=(36.0, 36.0, 576.0, 756.0))
        # Page space is relative to the media box; PyMuPDF is relative to the crop box
        assert pdf_to_pymupdf_point(100, 692, geometry) == (64, 64)

    def test_point_with_offset_mediabox(self):
        box = (100.0, 200.0, 695.0, 1042.0)
        geometry = PageGeometry(mediabox=box, cropbox=box)
        assert pdf_to_pymupdf_point(50, 700, geometry) == (50, 142)

    @pytest.mark.parametrize("rotation, expected", [
        (0, (110, 220)),
        (90, (580, 210)),
        (180, (590, 980)),
        (270, (120, 990)),
    ])
    def test_user_space_undoes_rotation(self, rotation, expected):
        geometry = PageGeometry(
            mediabox=(100.0, 200.0, 600.0, 1000.0),
            cropbox=(100.0, 200.0, 600.0, 1000.0),
            rotation=rotation,
        )
        assert geometry.to_user_space(10, 20) == expected

    def test_rect_is_normalized_on_rotated_page(self):
        geometry = PageGeometry(mediabox=(0.0, 0.0, 595.0, 842.0), cropbox=(0.0, 0.0, 595.0, 842.0), rotation=90)
        x0, y0, x1, y1 = pdf_to_pymupdf_rect(50, 100, 200, 40, geometry)
        assert x0 < x1 and y0 < y1
        # A 200 x 40 rectangle on the displayed page is 40 x 200 unrotated
        assert (x1 - x0, y1 - y0) == (40, 200)


@pytest.mark.unit
class TestPageRecords:
    """Tests for the synchronized page list"""

    def test_page_count_mismatch(self):
        doc = pymupdf.open()
        doc.new_page()
        with pytest.raises(ValueError, match="mismatch"):
            PdfDocument(doc, [])

    def test_views_have_one_entry_per_page(self):
        with blank_document(3) as document:
            assert len(document) == len(document._doc) == 3
            assert document.sizes == [(595, 842)] * 3
            assert len(document.text_indices) == 3

    def test_insert_after_keeps_views_in_sync(self):
        with blank_document(2) as document:
            first, second = (r.handle for r in document.records)

            record = document.insert_after(first, 612, 792)

            assert len(document) == len(document._doc) == 3
            assert document.index_of(record.handle) == 1
            assert document.index_of(second) == 2
            assert record.is_continuation
            assert document.sizes[1] == (612, 792)
            assert document.text_indices[1].tokens == []
            assert document.page(record.handle).rect.width == pytest.approx(612)

    def test_chained_inserts_stay_in_order(self):
        with blank_document(2) as document:
            first, second = (r.handle for r in document.records)
            a = document.insert_after(first, 595, 842)
            b = document.insert_after(a.handle, 595, 842)
            assert [r.handle for r in document.records] == [first, a.handle, b.handle, second]

    def test_unknown_handle(self):
        with blank_document(1) as document:
            with pytest.raises(KeyError):
                document.index_of(PageHandle())


class TestDrawing:
    """Tests for drawing and saving"""

    @pytest.mark.unit
    def test_draw_text_at_baseline(self):
        with blank_document(1) as document:
            handle = document.record_at(0).handle
            document.draw_text(handle, 100, 700, "Hello", 10)

            words = document.page(handle).get_text("words")
            assert [w[4] for w in words] == ["Hello"]
            x0, y0, x1, y1 = words[0][:4]
            assert x0 == pytest.approx(100, abs=1)
            # Baseline 700 in PDF space is y=142 from the top
            assert y0 < 142 < y1 + 1

    @pytest.mark.unit
    def test_draw_image(self, png_data):
        with blank_document(1) as document:
            handle = document.record_at(0).handle
            document.draw_image(handle, png_data, 50, 500, 200, 100)

            page = document.page(handle)
            images = page.get_images()
            assert len(images) == 1
            rect = page.get_image_rects(images[0][0])[0]
            assert (rect.x0, rect.y0, rect.x1, rect.y1) == pytest.approx((50, 242, 250, 342), abs=0.5)

    @pytest.mark.integration
    def test_save_round_trip(self, questionnaire_pdf, tmp_path):
        from answerfill.processors.pdf_text_index import build_page_text_indices

        out = tmp_path / "out.pdf"
        with PdfDocument.open(questionnaire_pdf, build_page_text_indices(questionnaire_pdf)) as document:
            document.insert_after(document.record_at(0).handle, 595, 842)
            document.save(out)

        with pymupdf.open(out) as saved:
            assert saved.page_count == 3
            assert "Q1" in saved[0].get_text()
            assert saved[1].get_text().strip() == ""
            assert "Answer" in saved[2].get_text()
