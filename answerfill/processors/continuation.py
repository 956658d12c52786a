# answerfill/processors/continuation.py
"""
Continuation Page Manager.

Overflow text and images are grouped by the page their box is on. Each group
gets its own run of blank pages inserted directly after that page (by page
handle, so earlier insertions never shift later targets). Within a page,
content flows top-down: a grey "(Continuation of <label>)" header, the
remaining lines, then the row's images scaled to fit.
"""

import logging
import math
from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, Optional

from answerfill.config.settings import FillSettings
from answerfill.models.types import ContinuationJob
from .image_embedder import EmbeddedImage, ImageEmbedder
from .pdf_document import PageHandle, PageRecord, PdfDocument

# Module logger
logger = logging.getLogger(__name__)


def continuation_header(label: str) -> str:
    return f"(Continuation of {label})"


def group_jobs(jobs: Iterable[ContinuationJob]) -> dict[int, list[ContinuationJob]]:
    """
    Group non-empty jobs by source page index.

    Returns:
        Mapping sorted by source page index; jobs keep submission order
    """
    groups: dict[int, list[ContinuationJob]] = defaultdict(list)
    for job in jobs:
        if job.is_empty:
            continue
        groups[job.source_page_index].append(job)
    return {page: groups[page] for page in sorted(groups)}


@dataclass
class _GroupState:
    """Open continuation page of the current source group (None = no page open)."""
    insert_after: PageHandle
    record: Optional[PageRecord] = None
    cursor_y: float = 0.0
    fresh: bool = False


class ContinuationPageManager:
    """Creates continuation pages for deferred content."""

    def __init__(
        self,
        settings: Optional[FillSettings] = None,
        embedder: Optional[ImageEmbedder] = None,
    ):
        self.settings = settings or FillSettings()
        self.embedder = embedder or ImageEmbedder()

    def process(self, document: PdfDocument, jobs: Iterable[ContinuationJob]) -> int:
        """
        Flow all jobs onto continuation pages.

        Args:
            document: Document to insert pages into
            jobs: Continuation jobs in row order

        Returns:
            Number of pages inserted
        """
        groups = group_jobs(jobs)
        if not groups:
            return 0

        logger.info("Processing %d page group(s) for continuations", len(groups))

        pages_before = len(document)
        for source_page, page_jobs in groups.items():
            logger.info("  Page %d: %d continuation(s)", source_page + 1, len(page_jobs))
            state = _GroupState(insert_after=page_jobs[0].source_handle)
            for job in page_jobs:
                if self._flow_job(document, state, job):
                    logger.info("    -> %s: continuation added", job.label)

        inserted = len(document) - pages_before
        logger.info("Inserted %d continuation page(s)", inserted)
        return inserted

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------
    def _open_page(self, document: PdfDocument, state: _GroupState, job: ContinuationJob) -> None:
        record = document.insert_after(state.insert_after, job.page_width, job.page_height)
        state.insert_after = record.handle
        state.record = record
        state.cursor_y = job.page_height - self.settings.page_top_margin
        state.fresh = True

    def _flow_job(self, document: PdfDocument, state: _GroupState, job: ContinuationJob) -> bool:
        """Flow one job; returns False when nothing of it could be placed."""
        s = self.settings
        lines = list(job.remaining_lines)
        images = self.embedder.embed_all(job.images)
        line_height = job.line_height
        if not lines and not images:
            return False

        while lines or images:
            if state.record is not None and not self._has_room(state, job, lines, images):
                state.record = None
            if state.record is None or state.cursor_y < s.new_page_threshold:
                self._open_page(document, state, job)
            fresh = state.fresh
            state.fresh = False
            handle = state.record.handle

            document.draw_text(
                handle, s.page_left_margin, state.cursor_y,
                continuation_header(job.label), job.font_size,
                font_name=s.font_name,
                color=(s.header_gray, s.header_gray, s.header_gray),
            )
            state.cursor_y -= line_height * 2

            wrote_lines = False
            if lines:
                reserve = s.image_bottom_margin if images else s.bottom_margin
                capacity = math.floor((state.cursor_y - reserve) / line_height)
                if fresh:
                    capacity = max(1, capacity)
                chunk = lines[:max(0, capacity)]
                lines = lines[len(chunk):]
                for line in chunk:
                    document.draw_text(
                        handle, s.page_left_margin, state.cursor_y, line, job.font_size,
                        font_name=s.font_name,
                    )
                    state.cursor_y -= line_height
                wrote_lines = bool(chunk)

            if not lines:
                while images:
                    may_shrink = fresh and not wrote_lines
                    if not self._place_image(document, state, job, images[0], may_shrink):
                        break
                    images.pop(0)
                    fresh = False

            if lines or images:
                # Page is full; the rest goes on the next page
                state.record = None

        state.cursor_y -= line_height
        return True

    def _place_image(
        self,
        document: PdfDocument,
        state: _GroupState,
        job: ContinuationJob,
        image: EmbeddedImage,
        may_shrink: bool,
    ) -> bool:
        """
        Draw ``image`` under the cursor.

        Returns False (nothing drawn) when it does not fit above the bottom
        margin, unless ``may_shrink`` allows scaling it into the space left.
        """
        s = self.settings
        max_width = job.page_width - s.image_side_margin
        width, height = image.scaled_to_fit(max_width, s.image_max_height)

        top = state.cursor_y - s.image_gap
        if top - height < s.bottom_margin:
            if not may_shrink:
                return False
            available = max(top - s.bottom_margin, 1.0)
            width, height = image.scaled_to_fit(max_width, min(s.image_max_height, available))

        y = max(top - height, s.bottom_margin)
        document.draw_image(state.record.handle, image.data, s.page_left_margin, y, width, height)
        state.cursor_y = y - s.image_gap
        return True

    def _has_room(
        self,
        state: _GroupState,
        job: ContinuationJob,
        lines: list[str],
        images: list[EmbeddedImage],
    ) -> bool:
        """Whether a header plus at least one line (or the next image) fits on the open page."""
        s = self.settings
        cursor = state.cursor_y - job.line_height * 2
        if lines:
            reserve = s.image_bottom_margin if images else s.bottom_margin
            return cursor - reserve >= job.line_height
        _, height = images[0].scaled_to_fit(job.page_width - s.image_side_margin, s.image_max_height)
        return cursor - s.image_gap - height >= s.bottom_margin
