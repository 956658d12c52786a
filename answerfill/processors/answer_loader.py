# answerfill/processors/answer_loader.py
"""
Row data loading (JSON / Excel).

Rows are validated here, at the boundary, so the layout engine only ever sees
well-formed AnswerRow objects:
- Label/Type/Text/Answer are stringified and stripped (spreadsheets hand out
  numbers and None)
- Answer whitespace (CR/LF included) is collapsed to single spaces
- Type must be Q or R (taken from the label prefix when the column is empty)

Excel images are attached to the data row their top-left anchor sits on.
"""

import base64
import binascii
import json
import logging
import re
from pathlib import Path
from typing import Any, Iterable, Optional

import openpyxl

from answerfill.models.types import AnswerRow, ImageAsset, RowType
from answerfill.services.exceptions import ConfigurationError, RowValidationError

# Module logger
logger = logging.getLogger(__name__)


JSON_EXTENSIONS = ('.json',)
EXCEL_EXTENSIONS = ('.xlsx', '.xlsm')
SUPPORTED_EXTENSIONS = JSON_EXTENSIONS + EXCEL_EXTENSIONS

COLUMNS = ("Label", "Type", "Text", "Answer")

_RE_WHITESPACE = re.compile(r'\s+')


def clean_answer_text(text: Any) -> str:
    """Collapse every whitespace run (newlines included) to one space."""
    if text is None:
        return ""
    return _RE_WHITESPACE.sub(' ', str(text)).strip()


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def build_row(raw: Any, row_number: int, images: Optional[list[ImageAsset]] = None) -> AnswerRow:
    """
    Validate one raw row mapping and turn it into an AnswerRow.

    Args:
        raw: Mapping with Label/Type/Text/Answer keys
        row_number: 1-based data row number (for error messages)
        images: Images already attached to the row

    Raises:
        RowValidationError: row is not a mapping or has an invalid type
    """
    if not isinstance(raw, dict):
        raise RowValidationError(row_number, f"expected an object, got {type(raw).__name__}")

    label = _cell_text(raw.get("Label"))
    type_text = _cell_text(raw.get("Type")).upper()

    if type_text:
        try:
            row_type = RowType(type_text[:1])
        except ValueError:
            raise RowValidationError(row_number, f"invalid Type {type_text!r} (expected Q or R)") from None
    else:
        row_type = RowType.from_label(label)
        if row_type is None:
            if label:
                raise RowValidationError(row_number, f"cannot infer Type from label {label!r}")
            # Empty rows are skipped later, keep them typed as questions
            row_type = RowType.QUESTION

    return AnswerRow(
        label=label,
        type=row_type,
        text=_cell_text(raw.get("Text")),
        answer=clean_answer_text(raw.get("Answer")),
        images=list(images or []),
    )


def _decode_json_image(raw: Any, row_number: int) -> Optional[ImageAsset]:
    """``{"format": "png", "data": "<base64>"}`` (``extension`` accepted for ``format``)."""
    if not isinstance(raw, dict):
        logger.warning("Row %d: ignoring image entry that is not an object", row_number)
        return None
    format_tag = str(raw.get("format") or raw.get("extension") or "")
    data = raw.get("data")
    if not isinstance(data, str):
        logger.warning("Row %d: ignoring image without base64 data", row_number)
        return None
    try:
        payload = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        logger.warning("Row %d: ignoring image with invalid base64 data: %s", row_number, e)
        return None
    return ImageAsset(data=payload, format_tag=format_tag)


def load_rows_from_json(path: Path) -> list[AnswerRow]:
    with open(path, 'r', encoding='utf-8-sig') as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ConfigurationError(f"{path}: expected a JSON list of rows")

    rows = []
    for row_number, raw in enumerate(data, start=1):
        images = []
        if isinstance(raw, dict):
            for raw_image in raw.get("images") or []:
                image = _decode_json_image(raw_image, row_number)
                if image is not None:
                    images.append(image)
        rows.append(build_row(raw, row_number, images))
    return rows


def _worksheet_images(worksheet: Any) -> dict[int, list[ImageAsset]]:
    """
    Images of a worksheet keyed by 0-based sheet row of their top-left anchor.

    openpyxl keeps images loaded from the file in ``worksheet._images``.
    """
    image_map: dict[int, list[ImageAsset]] = {}
    for image in getattr(worksheet, "_images", []):
        try:
            anchor_from = image.anchor._from
            row_index = anchor_from.row
            payload = image._data()
        except (AttributeError, OSError, ValueError) as e:
            logger.warning("Could not extract image: %s", e)
            continue
        format_tag = str(getattr(image, "format", "") or "")
        image_map.setdefault(row_index, []).append(ImageAsset(data=payload, format_tag=format_tag))
    return image_map


def _iter_sheet_records(worksheet: Any) -> Iterable[tuple[int, dict[str, Any]]]:
    """
    Data rows as (offset, {header: value}), header taken from the first row.

    ``offset`` counts sheet rows from the header (the first data row is 1).
    Rows without any value (e.g. only formatted) are left out but still
    counted, so offsets keep matching image anchors.
    """
    rows = worksheet.iter_rows(values_only=True)
    header = next(rows, None)
    if header is None:
        return
    names = [_cell_text(h) for h in header]
    for offset, values in enumerate(rows, start=1):
        if all(value is None for value in values):
            continue
        yield offset, {name: value for name, value in zip(names, values) if name}


def load_rows_from_excel(path: Path) -> list[AnswerRow]:
    # Not read_only: images are only loaded for regular worksheets
    wb = openpyxl.load_workbook(path, data_only=True)
    try:
        worksheet = wb.worksheets[0]
        image_map = _worksheet_images(worksheet)
        if image_map:
            logger.info("Found %d image(s) in %s", sum(len(v) for v in image_map.values()), path.name)

        rows = []
        for offset, record in _iter_sheet_records(worksheet):
            rows.append(build_row(record, offset, image_map.get(offset, [])))
        return rows
    finally:
        wb.close()


def load_answer_rows(path: Path) -> list[AnswerRow]:
    """
    Load answer rows from a .json or .xlsx file.

    Raises:
        ConfigurationError: unsupported extension or malformed file
        RowValidationError: a row failed validation
    """
    suffix = path.suffix.lower()
    if suffix in JSON_EXTENSIONS:
        try:
            rows = load_rows_from_json(path)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"{path}: invalid JSON ({e})") from e
    elif suffix in EXCEL_EXTENSIONS:
        rows = load_rows_from_excel(path)
    else:
        raise ConfigurationError(
            f"Unsupported input type {suffix or '(none)'}; expected one of {', '.join(SUPPORTED_EXTENSIONS)}"
        )

    logger.info("Loaded %d item(s) from %s", len(rows), path.name)
    return rows
