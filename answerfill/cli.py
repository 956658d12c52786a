# answerfill/cli.py
"""
Command line entry point.

    answerfill fill --pdf SOC.pdf --in answers.xlsx [--out SOC_filled.pdf]
    answerfill extract --in SOC.pdf [--out questions.xlsx]

``fill`` is the default command, so ``answerfill --pdf ... --in ...`` works
too.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from answerfill import __app_name__, __version__
from answerfill.services.exceptions import AnswerFillError, ConfigurationError, RowValidationError

# Module logger
logger = logging.getLogger(__name__)


DEFAULT_OUTPUT = "SOC_filled.pdf"
DEFAULT_EXTRACT_OUTPUT = "questions.xlsx"
PREVIEW_ROWS = 8


def setup_logging(verbose: bool = False, log_file: Optional[Path] = None):
    """Configure logging to the console and, optionally, a file.

    Args:
        verbose: Show DEBUG messages on the console
        log_file: Also write DEBUG-level logs to this file

    Returns:
        tuple: (console_handler, file_handler) to keep references alive
    """
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(logging.Formatter(
        '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%H:%M:%S'
    ))

    file_handler = None
    if log_file is not None:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(
                '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            ))
        except OSError as e:
            # Fall back to console-only logging
            print(f"[WARNING] Failed to create log file {log_file}: {e}", file=sys.stderr)
            file_handler = None

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.addHandler(console_handler)
    if file_handler:
        root_logger.addHandler(file_handler)

    # Suppress verbose logging from third-party libraries
    # pdfminer logs every object it parses at DEBUG
    for name in ['pdfminer', 'PIL']:
        logging.getLogger(name).setLevel(logging.WARNING)

    return console_handler, file_handler


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="answerfill",
        description="Write answers into labeled questionnaire PDFs",
    )
    parser.add_argument("--version", action="version", version=f"{__app_name__} {__version__}")
    subparsers = parser.add_subparsers(dest="command")

    fill = subparsers.add_parser("fill", help="Fill answers into a PDF")
    fill.add_argument("--pdf", type=Path, help="Source PDF")
    fill.add_argument("--in", dest="input", type=Path, help="Answer rows (.xlsx or .json)")
    fill.add_argument("--out", type=Path, default=Path(DEFAULT_OUTPUT),
                      help=f"Output PDF (default: {DEFAULT_OUTPUT})")
    fill.add_argument("--config", type=Path, default=None, help="Layout settings JSON")
    fill.add_argument("--log-file", type=Path, default=None, help="Write a DEBUG log to this file")
    fill.add_argument("-v", "--verbose", action="store_true", help="Show debug output")

    extract = subparsers.add_parser("extract", help="Extract Q/R labels from a PDF into a workbook")
    extract.add_argument("--in", dest="input", type=Path, help="Source PDF")
    extract.add_argument("--out", type=Path, default=Path(DEFAULT_EXTRACT_OUTPUT),
                         help=f"Output workbook; a timestamp is appended (default: {DEFAULT_EXTRACT_OUTPUT})")
    extract.add_argument("--log-file", type=Path, default=None, help="Write a DEBUG log to this file")
    extract.add_argument("-v", "--verbose", action="store_true", help="Show debug output")

    return parser


def _normalize_argv(argv: Sequence[str]) -> list[str]:
    """Prepend the default ``fill`` command when the first argument is an option."""
    argv = list(argv)
    if argv and argv[0].startswith("-") and argv[0] not in ("-h", "--help", "--version"):
        return ["fill"] + argv
    return argv


def _require_file(path: Optional[Path], option: str) -> Path:
    if path is None:
        raise ConfigurationError(f"Missing required option {option}")
    if not path.is_file():
        raise ConfigurationError(f"File not found: {path}")
    return path


def run_fill(args: argparse.Namespace) -> int:
    from answerfill.config.settings import FillSettings
    from answerfill.processors.answer_loader import load_answer_rows
    from answerfill.services.fill_service import AnswerFillService

    pdf_path = _require_file(args.pdf, "--pdf")
    input_path = _require_file(args.input, "--in")

    settings = FillSettings.load(args.config)
    rows = load_answer_rows(input_path)
    summary = AnswerFillService(settings).fill(pdf_path, rows, args.out)

    print()
    print(f"Processed: {summary.processed}")
    print(f"Skipped:   {summary.skipped}")
    if summary.skipped_labels:
        print(f"Skipped labels: {', '.join(summary.skipped_labels)}")
    if summary.continuation_pages:
        print(f"Continuation pages: {summary.continuation_pages}")
    print(f"Saved: {summary.output_path}")
    return 0


def run_extract(args: argparse.Namespace) -> int:
    from answerfill.processors.label_extractor import (
        extract_label_rows,
        timestamped_path,
        write_label_workbook,
    )

    pdf_path = _require_file(args.input, "--in")
    rows = extract_label_rows(pdf_path)
    workbook_path, json_path = write_label_workbook(rows, timestamped_path(args.out))

    print()
    print(f"Extracted {len(rows)} item(s)")
    for row in rows[:PREVIEW_ROWS]:
        preview = row.text.replace("\n", " ")
        if len(preview) > 60:
            preview = preview[:57] + "..."
        print(f"  {row.label:<6} {row.type}  {preview}")
    if len(rows) > PREVIEW_ROWS:
        print(f"  ... {len(rows) - PREVIEW_ROWS} more")
    print(f"Saved: {workbook_path}")
    print(f"Saved: {json_path}")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(_normalize_argv(sys.argv[1:] if argv is None else argv))

    if args.command is None:
        parser.print_help(sys.stderr)
        return 1

    setup_logging(args.verbose, args.log_file)
    handler = run_extract if args.command == "extract" else run_fill

    try:
        return handler(args)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except RowValidationError as e:
        logger.error("Invalid input row: %s", e)
        return 1
    except AnswerFillError as e:
        logger.error("%s", e)
        return 1
    except Exception as e:
        logger.exception("Unexpected error: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
