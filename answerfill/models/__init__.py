"""
Data models for AnswerFill.
"""

from .types import (
    RowType,
    ImageFormat,
    Token,
    PageGeometry,
    PageTextIndex,
    AnchorMatch,
    WritableBox,
    ImageAsset,
    AnswerRow,
    ContinuationJob,
    FlowResult,
    FillSummary,
    sort_reading_order,
)

__all__ = [
    'RowType',
    'ImageFormat',
    'Token',
    'PageGeometry',
    'PageTextIndex',
    'AnchorMatch',
    'WritableBox',
    'ImageAsset',
    'AnswerRow',
    'ContinuationJob',
    'FlowResult',
    'FillSummary',
    'sort_reading_order',
]
