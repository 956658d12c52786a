# answerfill/services/exceptions.py
"""
Error types shared by the loader, the layout engine and the CLI.

Row- and image-scoped errors are recoverable: the caller logs a warning and
skips the row or image. Everything else aborts the run.
"""


class AnswerFillError(Exception):
    """Base class for all AnswerFill errors."""

    pass


class ConfigurationError(AnswerFillError):
    """Raised when a required path is missing/invalid or the input type is unsupported."""

    pass


class RowValidationError(AnswerFillError):
    """Raised when an input row is malformed (rejected before layout)."""

    def __init__(self, row_number: int, reason: str):
        self.row_number = row_number
        self.reason = reason
        super().__init__(f"Row {row_number}: {reason}")


class AnchorNotFoundError(AnswerFillError):
    """Raised when a label has no resolvable caption keyword."""

    def __init__(self, label: str):
        self.label = label
        super().__init__(f"Could not locate Answer/Compliancy position for {label}")


class ImageDecodeError(AnswerFillError):
    """Raised when image bytes cannot be decoded."""

    pass


class UnsupportedImageFormatError(AnswerFillError):
    """Raised when an image format tag is not PNG or JPEG."""

    def __init__(self, format_tag: str):
        self.format_tag = format_tag
        super().__init__(f"Unsupported image format: {format_tag}")
