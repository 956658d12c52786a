"""
Services for AnswerFill.
"""

from .exceptions import (
    AnswerFillError,
    ConfigurationError,
    RowValidationError,
    AnchorNotFoundError,
    ImageDecodeError,
    UnsupportedImageFormatError,
)

__all__ = [
    'AnswerFillError',
    'ConfigurationError',
    'RowValidationError',
    'AnchorNotFoundError',
    'ImageDecodeError',
    'UnsupportedImageFormatError',
    'AnswerFillService',
]


def __getattr__(name: str):
    """Lazy-load the fill service (pulls in PyMuPDF/pdfminer)."""
    if name == 'AnswerFillService':
        from .fill_service import AnswerFillService
        return AnswerFillService
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
