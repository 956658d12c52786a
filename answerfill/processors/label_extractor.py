# answerfill/processors/label_extractor.py
"""
Label extraction: PDF -> questions workbook.

Produces the row template the fill step consumes: one row per Q/R label with
the prompt text that follows it and an empty Answer column. Written as an
Excel workbook (sheet "Items") and a JSON file next to it.
"""

import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

import openpyxl
from openpyxl.styles import Font

from .answer_loader import COLUMNS
from .pdf_font_manager import _get_pdfminer

# Module logger
logger = logging.getLogger(__name__)


_RE_LABEL = re.compile(r'([QR]\d{1,3})\b')
# The prompt ends where the Answer/Compliancy caption starts
_RE_CAPTION_SPLIT = re.compile(r'\n+(?:Answer|Complianc(?:y|e)?|Compliant)\b')
_RE_LEADING_NOISE = re.compile(r'^[:.\-\s]+')


@dataclass
class LabelRow:
    """One extracted label with its prompt text."""
    label: str
    type: str
    text: str
    answer: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"Label": self.label, "Type": self.type, "Text": self.text, "Answer": self.answer}


def normalize_pdf_text(text: str) -> str:
    """Unify newlines, undo end-of-line hyphenation, squeeze spaces."""
    text = text.replace('\r\n', '\n').replace('\r', '\n')
    text = re.sub(r'-\n(?=\w)', '', text)
    text = text.replace('\t', ' ').replace('\u00a0', ' ')
    return re.sub(r' {2,}', ' ', text)


def _tidy_block(block: str) -> str:
    text = re.sub(r'\n{3,}', '\n\n', block)
    text = re.sub(r'[ \t]*\n[ \t]*', '\n', text)
    return text.rstrip()


def split_label_blocks(text: str) -> list[LabelRow]:
    """
    Cut normalized text into label blocks.

    Each block runs from the end of a label to the next label; the prompt is
    the part before the caption line. Only the first occurrence of a label
    is kept (later ones are usually table-of-contents repeats).
    """
    matches = list(_RE_LABEL.finditer(text))
    if not matches:
        logger.warning("No Q/R labels found. Check the PDF structure.")

    rows = []
    seen = set()
    for i, match in enumerate(matches):
        label = match.group(1)
        start = match.end()
        end = matches[i + 1].start() if i + 1 < len(matches) else len(text)
        block = _RE_LEADING_NOISE.sub('', text[start:end].strip())
        prompt = _tidy_block(_RE_CAPTION_SPLIT.split(block)[0].strip())

        if label in seen:
            continue
        seen.add(label)
        rows.append(LabelRow(label=label, type=label[0], text=prompt))
    return rows


def extract_label_rows(pdf_path: Path) -> list[LabelRow]:
    """Extract label rows from a PDF's text layer."""
    extract_text = _get_pdfminer()['extract_text']
    raw_text = extract_text(str(pdf_path)) or ""
    rows = split_label_blocks(normalize_pdf_text(raw_text))
    if rows:
        logger.info("Extracted %d item(s) (Q and R combined)", len(rows))
    else:
        logger.warning("No extracted rows (after filtering)")
    return rows


def timestamped_path(base: Path, now: Optional[datetime] = None) -> Path:
    """``questions.xlsx`` -> ``questions-20250131_0945.xlsx``"""
    now = now or datetime.now()
    suffix = base.suffix or ".xlsx"
    return base.with_name(f"{base.stem}-{now.strftime('%Y%m%d_%H%M')}{suffix}")


def write_label_workbook(rows: list[LabelRow], output_path: Path) -> tuple[Path, Path]:
    """
    Write rows to ``output_path`` (sheet "Items") and to a sibling .json.

    Returns:
        (workbook path, json path)
    """
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Items"
    ws.append(list(COLUMNS))
    for cell in ws[1]:
        cell.font = Font(bold=True)
    for row in rows:
        ws.append([row.label, row.type, row.text, row.answer])
    ws.column_dimensions['C'].width = 80
    ws.column_dimensions['D'].width = 60

    output_path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(output_path)
    logger.info("Saved: %s", output_path.resolve())

    json_path = output_path.with_suffix(".json")
    with open(json_path, 'w', encoding='utf-8') as f:
        json.dump([row.to_dict() for row in rows], f, ensure_ascii=False, indent=2)
    logger.info("Saved: %s", json_path.resolve())

    return output_path, json_path
