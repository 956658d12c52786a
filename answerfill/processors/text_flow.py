# answerfill/processors/text_flow.py
"""
Text Flow Writer.

Wraps an answer to the width left of the page after the caption, decides how
much of it stays in the box, draws that part and hands the rest (plus any
images) back as a remainder for the continuation pages.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Optional

from answerfill.config.settings import FillSettings
from answerfill.models.types import AnchorMatch, AnswerRow, FlowResult, WritableBox
from .box_bounds import BoxBoundEstimator
from .pdf_document import PdfDocument
from .pdf_font_manager import FontMetrics

# Module logger
logger = logging.getLogger(__name__)


def wrap_text(
    text: str,
    font_size: float,
    max_width: float,
    measure: Callable[[str, float], float],
) -> list[str]:
    """
    Greedy word wrap.

    Words are separated by any whitespace run. A word wider than
    ``max_width`` still gets a line of its own; words are never hyphenated
    or split.

    Args:
        text: Text to wrap
        font_size: Font size in points
        max_width: Maximum line width in points
        measure: ``measure(text, font_size)`` returning the width in points

    Returns:
        Wrapped lines (empty for blank text)
    """
    lines: list[str] = []
    line = ""
    for word in (text or "").split():
        candidate = f"{line} {word}" if line else word
        if line and measure(candidate, font_size) > max_width:
            lines.append(line)
            line = word
        else:
            line = candidate
    if line:
        lines.append(line)
    return lines


@dataclass
class LinePlacement:
    """One line to draw, baseline at (x, y)."""
    text: str
    x: float
    y: float


@dataclass
class FlowPlan:
    """Where each in-box line goes and what is left over."""
    box: WritableBox
    font_size: float
    line_height: float
    answer_start_x: float
    max_width: float
    max_lines_in_box: int
    total_lines: int
    placements: list[LinePlacement] = field(default_factory=list)
    remaining_lines: list[str] = field(default_factory=list)

    @property
    def lines_written(self) -> int:
        return len(self.placements)


class TextFlowWriter:
    """Writes answers into the box under their caption keyword."""

    def __init__(
        self,
        settings: Optional[FillSettings] = None,
        metrics: Optional[FontMetrics] = None,
        estimator: Optional[BoxBoundEstimator] = None,
    ):
        self.settings = settings or FillSettings()
        self.metrics = metrics or FontMetrics(self.settings.font_name)
        self.estimator = estimator or BoxBoundEstimator(self.settings)

    def plan(self, document: PdfDocument, row: AnswerRow, target: AnchorMatch) -> FlowPlan:
        """
        Lay out ``row`` under ``target`` without drawing anything.

        Fill policy:
        - more than ``max_inline_lines`` lines, or any image: only the first
          line stays in the box, the rest is deferred
        - otherwise up to ``max_lines_in_box`` lines stay in the box
        Lines that do not fit are always deferred, never dropped.
        """
        s = self.settings
        record = document.record_at(target.page_index)

        font_size = target.font_size or s.base_font_size
        line_height = s.line_height_for(font_size)

        key_width = self.metrics.keyword_width(target.keyword, font_size)
        answer_start_x = target.x + key_width + s.first_line_padding
        max_width = record.width - answer_start_x - s.right_reserve

        box = self.estimator.estimate_box(record.text_index, target.y, target.x)

        all_lines = wrap_text(row.answer, font_size, max_width, self.metrics.text_width)

        available_height = box.height - s.box_padding
        max_lines_in_box = max(1, math.floor(available_height / line_height))

        defer = len(all_lines) > s.max_inline_lines or bool(row.images)
        if defer:
            in_box_count = min(1, max_lines_in_box)
        else:
            in_box_count = min(len(all_lines), max_lines_in_box)

        to_write = all_lines[:in_box_count]
        remaining = all_lines[in_box_count:]

        plan = FlowPlan(
            box=box,
            font_size=font_size,
            line_height=line_height,
            answer_start_x=answer_start_x,
            max_width=max_width,
            max_lines_in_box=max_lines_in_box,
            total_lines=len(all_lines),
        )

        y = target.y + s.vertical_offset
        for i, line in enumerate(to_write):
            x = answer_start_x if i == 0 else target.x + s.continuation_indent
            plan.placements.append(LinePlacement(text=line, x=x, y=y))
            y -= line_height

            # Stop when the next baseline would fall under the box
            if i < len(to_write) - 1 and y - line_height < box.bottom_y:
                remaining = to_write[i + 1:] + remaining
                break

        plan.remaining_lines = remaining
        return plan

    def write(self, document: PdfDocument, row: AnswerRow, target: AnchorMatch) -> FlowResult:
        """
        Draw the in-box part of ``row`` and report the remainder.

        Returns:
            FlowResult with ``lines_written + len(remaining_lines) ==
            total_lines``
        """
        plan = self.plan(document, row, target)
        record = document.record_at(target.page_index)

        for placement in plan.placements:
            document.draw_text(
                record.handle,
                placement.x,
                placement.y,
                placement.text,
                plan.font_size,
                font_name=self.settings.font_name,
            )

        return FlowResult(
            label=row.label,
            lines_written=plan.lines_written,
            total_lines=plan.total_lines,
            remaining_lines=plan.remaining_lines,
            images=list(row.images),
            font_size=plan.font_size,
            line_height=plan.line_height,
            page_index=target.page_index,
            label_page_index=target.label_page_index,
            page_width=record.width,
            page_height=record.height,
        )
