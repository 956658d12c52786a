# answerfill/processors/pdf_document.py
"""
Document model: one ordered list of page records.

Each PageRecord owns a stable handle, the page size and the page's text
index. The PyMuPDF page is looked up by the record's position at draw time,
so inserting a page is a single operation on one list (plus the matching
``new_page`` call) and the drawable pages, sizes and text indices can never
drift apart.

Drawing coordinates are page space as the text index reports it (bottom-left
origin) and are converted to PyMuPDF's top-left space here and nowhere else.
The conversion goes through the page's own boxes, so cropped, offset and
rotated pages line up with the text they were measured from.
"""

import itertools
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

from answerfill.models.types import PageGeometry, PageTextIndex
from .pdf_font_manager import _get_pymupdf

# Module logger
logger = logging.getLogger(__name__)


BLACK = (0.0, 0.0, 0.0)

_handle_counter = itertools.count(1)


class PageHandle:
    """Opaque, stable identity of a page (survives insertions)."""

    __slots__ = ("_id",)

    def __init__(self):
        self._id = next(_handle_counter)

    def __repr__(self) -> str:
        return f"PageHandle({self._id})"


@dataclass
class PageRecord:
    """A page: identity, size and extracted text, kept together."""
    handle: PageHandle
    width: float
    height: float
    text_index: PageTextIndex
    geometry: PageGeometry
    is_continuation: bool = False


def pdf_to_pymupdf_point(x: float, y: float, geometry: PageGeometry) -> tuple[float, float]:
    """
    Convert a page-space point (bottom-left origin, as pdfminer reports it)
    to PyMuPDF's unrotated page space (top-left of the crop box, y down).
    """
    ux, uy = geometry.to_user_space(x, y)
    crop_x0, _, _, crop_y1 = geometry.cropbox
    return ux - crop_x0, crop_y1 - uy


def pdf_to_pymupdf_rect(
    x: float, y: float, width: float, height: float, geometry: PageGeometry
) -> tuple[float, float, float, float]:
    """
    Convert a rectangle given by its bottom-left corner in page space to a
    PyMuPDF (x0, y0, x1, y1) rectangle.
    """
    ax, ay = pdf_to_pymupdf_point(x, y, geometry)
    bx, by = pdf_to_pymupdf_point(x + width, y + height, geometry)
    return min(ax, bx), min(ay, by), max(ax, bx), max(ay, by)


class PdfDocument:
    """
    PyMuPDF document plus the synchronized page records.

    Usage:
        with PdfDocument.open(path, indices) as document:
            document.draw_text(handle, x, y, "text", 8.0)
            document.save(out_path)
    """

    def __init__(self, doc: Any, text_indices: Sequence[PageTextIndex]):
        if len(doc) != len(text_indices):
            raise ValueError(
                f"Page count mismatch: document has {len(doc)} pages, "
                f"text index has {len(text_indices)}"
            )
        self._doc = doc
        self._records: list[PageRecord] = []
        for page, text_index in zip(doc, text_indices):
            rect = page.rect
            self._records.append(PageRecord(
                handle=PageHandle(),
                width=float(rect.width),
                height=float(rect.height),
                text_index=text_index,
                geometry=text_index.geometry or PageGeometry.plain(rect.width, rect.height),
            ))

    @classmethod
    def open(cls, pdf_path: Path, text_indices: Sequence[PageTextIndex]) -> "PdfDocument":
        pymupdf = _get_pymupdf()
        return cls(pymupdf.open(str(pdf_path)), text_indices)

    def __enter__(self) -> "PdfDocument":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if self._doc is not None:
            self._doc.close()
            self._doc = None

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------
    def __len__(self) -> int:
        return len(self._records)

    @property
    def records(self) -> list[PageRecord]:
        return list(self._records)

    @property
    def sizes(self) -> list[tuple[float, float]]:
        return [(r.width, r.height) for r in self._records]

    @property
    def text_indices(self) -> list[PageTextIndex]:
        return [r.text_index for r in self._records]

    def record_at(self, index: int) -> PageRecord:
        return self._records[index]

    def index_of(self, handle: PageHandle) -> int:
        for i, record in enumerate(self._records):
            if record.handle is handle:
                return i
        raise KeyError(f"Unknown page handle: {handle!r}")

    def record_for(self, handle: PageHandle) -> PageRecord:
        return self._records[self.index_of(handle)]

    def page(self, handle: PageHandle) -> Any:
        """The PyMuPDF page for ``handle``."""
        return self._doc[self.index_of(handle)]

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------
    def insert_after(self, handle: PageHandle, width: float, height: float) -> PageRecord:
        """
        Insert a blank page right after ``handle``'s page.

        The PyMuPDF page and the record are inserted at the same position in
        one step.

        Returns:
            The new page's record
        """
        position = self.index_of(handle) + 1
        self._doc.new_page(pno=position, width=width, height=height)
        record = PageRecord(
            handle=PageHandle(),
            width=width,
            height=height,
            text_index=PageTextIndex(page_index=position, width=width, height=height),
            geometry=PageGeometry.plain(width, height),
            is_continuation=True,
        )
        self._records.insert(position, record)
        logger.debug("Inserted page at position %d (after %r)", position + 1, handle)
        return record

    def draw_text(
        self,
        handle: PageHandle,
        x: float,
        y: float,
        text: str,
        font_size: float,
        font_name: str = "helv",
        color: tuple[float, float, float] = BLACK,
    ) -> None:
        """Draw one line of text with its baseline at (x, y) in page space."""
        record = self.record_for(handle)
        page = self._doc[self.index_of(handle)]
        point = pdf_to_pymupdf_point(x, y, record.geometry)
        page.insert_text(
            point, text,
            fontsize=font_size, fontname=font_name, color=color,
            rotate=record.geometry.rotation,
        )

    def draw_image(
        self,
        handle: PageHandle,
        data: bytes,
        x: float,
        y: float,
        width: float,
        height: float,
    ) -> None:
        """Draw an image whose bottom-left corner is (x, y) in page space."""
        pymupdf = _get_pymupdf()
        record = self.record_for(handle)
        page = self._doc[self.index_of(handle)]
        rect = pymupdf.Rect(*pdf_to_pymupdf_rect(x, y, width, height, record.geometry))
        page.insert_image(
            rect, stream=data, keep_proportion=False, rotate=record.geometry.rotation,
        )

    def save(self, output_path: Path) -> None:
        self._doc.save(str(output_path), garbage=3, deflate=True)
        logger.info("Saved %d page(s) to %s", len(self._doc), output_path)

