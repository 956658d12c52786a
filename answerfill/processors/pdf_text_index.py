# answerfill/processors/pdf_text_index.py
"""
Page Text Index builder.

Extracts positioned word tokens from every page with pdfminer.six:
characters are collected as LTChar objects (no layout analysis), then grouped
into whitespace-delimited words sharing a baseline. Coordinates are the
page space pdfminer reports (bottom-left origin of the media box, /Rotate
applied); each index carries the PageGeometry needed to map them back to PDF
user space.
"""

import logging
from pathlib import Path
from typing import Any, Iterable, Iterator

from answerfill.models.types import PageGeometry, PageTextIndex, Token
from .pdf_font_manager import _get_pdfminer

# Module logger
logger = logging.getLogger(__name__)


# Two characters belong to the same word when the horizontal gap between them
# is at most this fraction of the font size...
WORD_GAP_RATIO = 0.25
# ...and their baselines differ by less than this fraction of the font size.
SAME_BASELINE_RATIO = 0.3
# Font size reported when pdfminer gives none
DEFAULT_TOKEN_FONT_SIZE = 10.0


_CharCollector = None


def get_char_collector_class():
    """
    Get the CharCollector converter class (created lazily so pdfminer is only
    imported when a PDF is actually read).

    Returns:
        CharCollector class
    """
    global _CharCollector
    if _CharCollector is not None:
        return _CharCollector

    pdfminer = _get_pdfminer()
    PDFConverter = pdfminer['PDFConverter']

    class CharCollector(PDFConverter):
        """
        Converter that keeps the raw LTPage of every processed page.

        No LAParams are passed, so pdfminer does not group characters into
        lines/boxes; the page holds LTChar (and LTFigure) objects in content
        stream order.
        """

        def __init__(self, rsrcmgr):
            PDFConverter.__init__(self, rsrcmgr, None, "utf-8", 1, None)
            self.pages = []  # Collected LTPage objects

        def receive_layout(self, ltpage):
            self.pages.append(ltpage)

    _CharCollector = CharCollector
    return _CharCollector


def iter_chars(obj: Any, ltchar_cls: type, ltfigure_cls: type) -> Iterator[Any]:
    """Recursively yield LTChar objects (descending into figures)."""
    for child in obj:
        if isinstance(child, ltchar_cls):
            yield child
        elif isinstance(child, ltfigure_cls):
            yield from iter_chars(child, ltchar_cls, ltfigure_cls)


def _char_baseline(char: Any) -> float:
    matrix = getattr(char, "matrix", None)
    if matrix is not None and len(matrix) == 6:
        return float(matrix[5])
    return float(char.y0)


def group_chars_into_tokens(chars: Iterable[Any]) -> list[Token]:
    """
    Group characters into word tokens.

    Accepts any objects exposing ``get_text()``, ``x0``, ``x1``, ``y0``,
    ``size`` and optionally ``matrix`` (pdfminer LTChar).

    A word ends at a whitespace character, a baseline change, a horizontal
    gap wider than WORD_GAP_RATIO * size, or when the pen moves backwards.
    """
    tokens: list[Token] = []
    current: list[Any] = []

    def flush():
        if not current:
            return
        text = "".join(c.get_text() for c in current)
        first = current[0]
        size = float(first.size) or DEFAULT_TOKEN_FONT_SIZE
        x0 = float(first.x0)
        x1 = max(float(c.x1) for c in current)
        tokens.append(Token(
            text=text,
            x=x0,
            y=_char_baseline(first),
            font_size=size,
            width=x1 - x0,
        ))
        current.clear()

    for char in chars:
        text = char.get_text()
        if not text or text.isspace():
            flush()
            continue

        if current:
            prev = current[-1]
            size = float(prev.size) or DEFAULT_TOKEN_FONT_SIZE
            same_line = abs(_char_baseline(char) - _char_baseline(prev)) < size * SAME_BASELINE_RATIO
            gap = float(char.x0) - float(prev.x1)
            if not same_line or gap > size * WORD_GAP_RATIO or float(char.x0) < float(prev.x0):
                flush()

        current.append(char)

    flush()
    return tokens


def _normalize_box(box: Any) -> tuple[float, float, float, float]:
    x0, y0, x1, y1 = (float(v) for v in box)
    return min(x0, x1), min(y0, y1), max(x0, x1), max(y0, y1)


def page_geometry(page: Any) -> PageGeometry:
    """PageGeometry of a pdfminer PDFPage (rotation normalized to 0-270)."""
    mediabox = _normalize_box(page.mediabox)
    cropbox = _normalize_box(page.cropbox) if page.cropbox else mediabox
    return PageGeometry(
        mediabox=mediabox,
        cropbox=cropbox,
        rotation=int(page.rotate or 0) % 360,
    )


def build_page_text_indices(pdf_path: Path) -> list[PageTextIndex]:
    """
    Extract the positioned-text stream of a PDF.

    Args:
        pdf_path: Path to the source PDF

    Returns:
        One PageTextIndex per page, in page order, tokens in reading order
    """
    pdfminer = _get_pdfminer()
    PDFPage = pdfminer['PDFPage']
    PDFParser = pdfminer['PDFParser']
    PDFDocument = pdfminer['PDFDocument']
    PDFResourceManager = pdfminer['PDFResourceManager']
    PDFPageInterpreter = pdfminer['PDFPageInterpreter']
    LTChar = pdfminer['LTChar']
    LTFigure = pdfminer['LTFigure']

    CharCollector = get_char_collector_class()

    indices: list[PageTextIndex] = []
    with open(pdf_path, 'rb') as f:
        parser = PDFParser(f)
        document = PDFDocument(parser)
        rsrcmgr = PDFResourceManager()
        converter = CharCollector(rsrcmgr)
        interpreter = PDFPageInterpreter(rsrcmgr, converter)

        for page_idx, page in enumerate(PDFPage.create_pages(document)):
            interpreter.process_page(page)
            # Only the current page is kept alive
            ltpage = converter.pages.pop()

            tokens = group_chars_into_tokens(iter_chars(ltpage, LTChar, LTFigure))
            indices.append(PageTextIndex(
                page_index=page_idx,
                width=float(ltpage.width),
                height=float(ltpage.height),
                tokens=tokens,
                geometry=page_geometry(page),
            ))
            logger.debug("Page %d: %d tokens", page_idx + 1, len(tokens))

    logger.info("Extracted text positions from %d page(s)", len(indices))
    return indices
