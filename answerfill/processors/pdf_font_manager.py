# answerfill/processors/pdf_font_manager.py
"""
PDF font access for AnswerFill.

- Lazy imports of PyMuPDF and pdfminer.six (shared by all processors)
- Text width lookup for the output font (PyMuPDF base-14 metrics)
"""

import logging

# Module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Lazy Imports
# =============================================================================
_pymupdf = None
_pdfminer = None


def _get_pymupdf():
    """Lazy import PyMuPDF"""
    global _pymupdf
    if _pymupdf is None:
        import pymupdf
        _pymupdf = pymupdf
    return _pymupdf


def _get_pdfminer():
    """
    Lazy import pdfminer.six for character-level text extraction.
    """
    global _pdfminer
    if _pdfminer is None:
        from pdfminer.pdfpage import PDFPage
        from pdfminer.pdfparser import PDFParser
        from pdfminer.pdfdocument import PDFDocument
        from pdfminer.pdfinterp import PDFResourceManager, PDFPageInterpreter
        from pdfminer.converter import PDFConverter
        from pdfminer.layout import LTChar, LTFigure
        from pdfminer.high_level import extract_text
        _pdfminer = {
            'PDFPage': PDFPage,
            'PDFParser': PDFParser,
            'PDFDocument': PDFDocument,
            'PDFResourceManager': PDFResourceManager,
            'PDFPageInterpreter': PDFPageInterpreter,
            'PDFConverter': PDFConverter,
            'LTChar': LTChar,
            'LTFigure': LTFigure,
            'extract_text': extract_text,
        }
    return _pdfminer


# =============================================================================
# Font Metrics
# =============================================================================
# Caption words as they are printed in the source forms
KEYWORD_DISPLAY = {
    "answer": "Answer",
    "compliancy": "Compliancy",
}


class FontMetrics:
    """
    Width lookup for the font answers are written with.

    Widths come from PyMuPDF's built-in metrics for the base-14 fonts, so no
    font file has to be embedded. Results are cached per (text, size).
    """

    DEFAULT_FONT = "helv"

    def __init__(self, font_name: str = DEFAULT_FONT):
        self.font_name = font_name
        self._width_cache: dict[tuple[str, float], float] = {}

    def text_width(self, text: str, font_size: float) -> float:
        """
        Width of ``text`` in points at ``font_size``.

        Args:
            text: Text to measure (single line)
            font_size: Font size in points

        Returns:
            Advance width in points (0.0 for empty text)
        """
        if not text:
            return 0.0
        cache_key = (text, font_size)
        if cache_key in self._width_cache:
            return self._width_cache[cache_key]

        pymupdf = _get_pymupdf()
        try:
            width = pymupdf.get_text_length(text, fontname=self.font_name, fontsize=font_size)
        except (RuntimeError, ValueError) as e:
            # Unknown font name: estimate with half-em glyphs
            logger.debug("Width lookup failed for font %s: %s", self.font_name, e)
            width = len(text) * font_size * 0.5

        self._width_cache[cache_key] = width
        return width

    def keyword_width(self, keyword: str, font_size: float) -> float:
        """Printed width of a caption keyword ("answer" -> width of "Answer")."""
        return self.text_width(KEYWORD_DISPLAY.get(keyword, keyword), font_size)
