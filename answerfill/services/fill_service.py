# answerfill/services/fill_service.py
"""
Fill service.

Coordinates one run: index the PDF, write every row's answer under its
caption, flow the overflow onto continuation pages and save.
Continuation pages are only inserted after every row has been written, so
page indices seen by the locator always refer to the source document.
"""

import logging
from pathlib import Path
from typing import Iterable, Optional

from answerfill.config.settings import FillSettings
from answerfill.models.types import AnswerRow, ContinuationJob, FillSummary, FlowResult
from answerfill.processors.anchor_locator import AnchorLocator, BoundedSearch
from answerfill.processors.box_bounds import BoxBoundEstimator
from answerfill.processors.continuation import ContinuationPageManager
from answerfill.processors.image_embedder import ImageEmbedder
from answerfill.processors.pdf_document import PdfDocument
from answerfill.processors.pdf_font_manager import FontMetrics
from answerfill.processors.pdf_text_index import build_page_text_indices
from answerfill.processors.text_flow import TextFlowWriter

# Module logger
logger = logging.getLogger(__name__)


def _row_status(result: FlowResult) -> str:
    """One-line status, e.g. ``R5 [cross-page] 1/5 line(s) in box, 1 image(s) -> continuation``."""
    parts = [result.label]
    if result.is_cross_page:
        parts.append(f"[cross-page: label p{result.label_page_index + 1} -> box p{result.page_index + 1}]")
    parts.append(f"{result.lines_written}/{result.total_lines} line(s) in box")
    if result.images:
        parts.append(f"{len(result.images)} image(s)")
    parts.append("-> continuation" if result.needs_continuation else "(in box)")
    return " ".join(parts)


class AnswerFillService:
    """
    Writes answer rows into a PDF.

    Usage:
        service = AnswerFillService(FillSettings.load(config_path))
        summary = service.fill(pdf_path, rows, output_path)
    """

    def __init__(self, settings: Optional[FillSettings] = None):
        self.settings = settings or FillSettings()
        self.metrics = FontMetrics(self.settings.font_name)
        self.locator = AnchorLocator(BoundedSearch.from_settings(self.settings))
        self.writer = TextFlowWriter(self.settings, self.metrics, BoxBoundEstimator(self.settings))
        self.continuations = ContinuationPageManager(self.settings, ImageEmbedder())

    def fill(self, pdf_path: Path, rows: Iterable[AnswerRow], output_path: Path) -> FillSummary:
        """
        Fill ``rows`` into ``pdf_path`` and save the result to ``output_path``.

        Rows without a label or without content are skipped silently; rows
        whose anchor cannot be resolved are skipped with a warning and their
        labels are reported in the summary.
        """
        summary = FillSummary()

        logger.info("Indexing %s", pdf_path)
        text_indices = build_page_text_indices(pdf_path)
        logger.info("Indexed %d page(s)", len(text_indices))

        with PdfDocument.open(pdf_path, text_indices) as document:
            jobs = self._write_rows(document, rows, summary)
            summary.continuation_pages = self.continuations.process(document, jobs)

            output_path.parent.mkdir(parents=True, exist_ok=True)
            document.save(output_path)

        summary.output_path = output_path
        logger.info(
            "Done: %d processed, %d skipped, %d continuation page(s)",
            summary.processed, summary.skipped, summary.continuation_pages,
        )
        return summary

    def _write_rows(
        self,
        document: PdfDocument,
        rows: Iterable[AnswerRow],
        summary: FillSummary,
    ) -> list[ContinuationJob]:
        pages = document.text_indices
        jobs: list[ContinuationJob] = []

        for row in rows:
            if not row.label or not row.has_content:
                summary.skipped += 1
                continue

            target = self.locator.resolve(pages, row.label)
            if target is None:
                logger.warning("%s: label or caption not found, skipped", row.label)
                summary.skipped += 1
                summary.skipped_labels.append(row.label)
                continue

            result = self.writer.write(document, row, target)
            summary.processed += 1
            logger.info("%s", _row_status(result))

            if result.needs_continuation:
                source = document.record_at(result.page_index)
                jobs.append(result.to_job(source.handle))

        return jobs
