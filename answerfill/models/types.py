# answerfill/models/types.py
"""
Core data types for AnswerFill.

Coordinate convention: page space as pdfminer reports it, origin at the
BOTTOM-LEFT of the (rotated) media box, y grows upward. A token's ``y`` is its
baseline. PageGeometry maps these points back to PDF user space.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional


class RowType(Enum):
    """Kind of labeled item"""
    QUESTION = "Q"
    REQUIREMENT = "R"

    @classmethod
    def from_label(cls, label: str) -> Optional["RowType"]:
        """Infer the row type from the label prefix ("Q12" -> QUESTION)."""
        if not label:
            return None
        try:
            return cls(label[0].upper())
        except ValueError:
            return None


class ImageFormat(Enum):
    """Raster formats the drawing backend can embed"""
    PNG = "png"
    JPEG = "jpeg"

    @classmethod
    def from_tag(cls, tag: Optional[str]) -> Optional["ImageFormat"]:
        """
        Map a format tag / file extension to an ImageFormat.

        "png" -> PNG, "jpeg"/"jpg" -> JPEG (case-insensitive, leading dot
        allowed). Returns None for anything else.
        """
        if not tag:
            return None
        normalized = tag.strip().lower().lstrip(".")
        if normalized == "jpg":
            normalized = "jpeg"
        try:
            return cls(normalized)
        except ValueError:
            return None


@dataclass(frozen=True)
class Token:
    """
    An atomic piece of existing page content.

    Attributes:
        text: Token text (whitespace-free word)
        x: Left edge in points
        y: Baseline in points (bottom-left origin)
        font_size: Font size in points
        width: Advance width of the whole token in points
    """
    text: str
    x: float
    y: float
    font_size: float
    width: float = 0.0


@dataclass(frozen=True)
class PageGeometry:
    """
    Page boxes in PDF user space plus the page rotation.

    Attributes:
        mediabox: (x0, y0, x1, y1) of /MediaBox
        cropbox: (x0, y0, x1, y1) of /CropBox (the media box when absent)
        rotation: /Rotate in degrees (0, 90, 180 or 270)
    """
    mediabox: tuple[float, float, float, float]
    cropbox: tuple[float, float, float, float]
    rotation: int = 0

    @classmethod
    def plain(cls, width: float, height: float) -> "PageGeometry":
        """Unrotated page whose boxes both start at the origin."""
        box = (0.0, 0.0, float(width), float(height))
        return cls(mediabox=box, cropbox=box)

    def to_user_space(self, x: float, y: float) -> tuple[float, float]:
        """
        Map a page-space point back to PDF user space by undoing the
        media box offset and /Rotate.
        """
        x0, y0, x1, y1 = self.mediabox
        if self.rotation == 90:
            return x1 - y, y0 + x
        if self.rotation == 180:
            return x1 - x, y1 - y
        if self.rotation == 270:
            return x0 + y, y1 - x
        return x0 + x, y0 + y


@dataclass
class PageTextIndex:
    """
    Tokens of one page in visual reading order
    (descending y, then ascending x).
    """
    page_index: int
    width: float
    height: float
    tokens: list[Token] = field(default_factory=list)
    geometry: Optional[PageGeometry] = None

    def __post_init__(self):
        self.tokens = sort_reading_order(self.tokens)

    def __len__(self) -> int:
        return len(self.tokens)

    def find(self, text: str) -> list[int]:
        """Indices of tokens whose text equals ``text`` exactly."""
        return [i for i, token in enumerate(self.tokens) if token.text == text]


def sort_reading_order(tokens: list[Token]) -> list[Token]:
    """Sort tokens top-to-bottom, then left-to-right."""
    return sorted(tokens, key=lambda t: (-t.y, t.x))


@dataclass(frozen=True)
class AnchorMatch:
    """
    A label resolved to its caption keyword.

    ``label_page_index != page_index`` means the caption was found on a later
    page than the label (cross-page match).
    """
    label: str
    page_index: int
    x: float
    y: float
    width: float
    font_size: float
    keyword: str
    label_page_index: int
    label_y: float = 0.0

    @property
    def is_cross_page(self) -> bool:
        return self.label_page_index != self.page_index


@dataclass(frozen=True)
class WritableBox:
    """Vertical span available under a caption keyword."""
    top_y: float
    bottom_y: float

    @property
    def height(self) -> float:
        return self.top_y - self.bottom_y


@dataclass(frozen=True)
class ImageAsset:
    """Raw image bytes plus the format tag supplied with them."""
    data: bytes
    format_tag: str

    @property
    def format(self) -> Optional[ImageFormat]:
        return ImageFormat.from_tag(self.format_tag)

    def __repr__(self) -> str:
        return f"ImageAsset(format_tag={self.format_tag!r}, size={len(self.data)} bytes)"


@dataclass
class AnswerRow:
    """
    One labeled item with the answer to inject.

    ``text`` is the original prompt extracted from the PDF; it is carried
    along for reporting only.
    """
    label: str
    type: RowType
    text: str = ""
    answer: str = ""
    images: list[ImageAsset] = field(default_factory=list)

    @property
    def has_content(self) -> bool:
        return bool(self.answer) or bool(self.images)


@dataclass
class ContinuationJob:
    """
    Overflow of one row, consumed exactly once by the continuation manager.
    """
    label: str
    remaining_lines: list[str]
    images: list[ImageAsset]
    font_size: float
    line_height: float
    source_page_index: int
    source_handle: Any
    page_width: float
    page_height: float

    @property
    def is_empty(self) -> bool:
        return not self.remaining_lines and not self.images


@dataclass
class FlowResult:
    """Outcome of writing one row into its box."""
    label: str
    lines_written: int
    total_lines: int
    remaining_lines: list[str]
    images: list[ImageAsset]
    font_size: float
    line_height: float
    page_index: int
    label_page_index: int
    page_width: float
    page_height: float

    @property
    def needs_continuation(self) -> bool:
        return bool(self.remaining_lines) or bool(self.images)

    @property
    def is_cross_page(self) -> bool:
        return self.label_page_index != self.page_index

    def to_job(self, source_handle: Any) -> ContinuationJob:
        """Package the remainder for the continuation manager."""
        return ContinuationJob(
            label=self.label,
            remaining_lines=list(self.remaining_lines),
            images=list(self.images),
            font_size=self.font_size,
            line_height=self.line_height,
            source_page_index=self.page_index,
            source_handle=source_handle,
            page_width=self.page_width,
            page_height=self.page_height,
        )


@dataclass
class FillSummary:
    """Run statistics reported at the end of a fill."""
    processed: int = 0
    skipped: int = 0
    skipped_labels: list[str] = field(default_factory=list)
    continuation_pages: int = 0
    output_path: Optional[Path] = None
