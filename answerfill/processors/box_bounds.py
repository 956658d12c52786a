# answerfill/processors/box_bounds.py
"""
Box Bound Estimator.

The writable box starts at the caption baseline and ends just above the
nearest existing content below it in the caption's column.
"""

import logging
from typing import Optional

from answerfill.config.settings import FillSettings
from answerfill.models.types import PageTextIndex, WritableBox

# Module logger
logger = logging.getLogger(__name__)


class BoxBoundEstimator:
    """Computes the lower bound of the box under a caption keyword."""

    def __init__(self, settings: Optional[FillSettings] = None):
        self.settings = settings or FillSettings()

    def next_content_y(self, page: PageTextIndex, keyword_y: float, keyword_x: float) -> Optional[float]:
        """
        Baseline of the highest token below the caption that sits in its
        column (aligned within the horizontal tolerance, or left of it).
        """
        s = self.settings
        highest: Optional[float] = None
        for token in page.tokens:
            if not token.text.strip():
                continue
            if token.y >= keyword_y - s.search_threshold:
                continue
            aligned = abs(token.x - keyword_x) < s.horizontal_tolerance
            left_aligned = token.x < keyword_x + s.left_align_tolerance
            if aligned or left_aligned:
                if highest is None or token.y > highest:
                    highest = token.y
        return highest

    def estimate_bottom(self, page: PageTextIndex, keyword_y: float, keyword_x: float) -> float:
        """
        Lower bound of the writable box.

        The natural estimate is never deeper than ``min_box_height`` below
        the caption. When it leaves less than ``min_usable_height``, the box
        is forced to ``forced_box_height``; the result is therefore never
        above ``keyword_y - min_usable_height``.
        """
        s = self.settings
        next_y = self.next_content_y(page, keyword_y, keyword_x)

        if next_y is not None:
            bottom = max(next_y + s.bottom_clearance, keyword_y - s.min_box_height)
        else:
            bottom = max(keyword_y - s.min_box_height, s.page_floor)

        if keyword_y - bottom < s.min_usable_height:
            logger.debug(
                "Box under y=%.1f too small (%.1f), forcing %.1f",
                keyword_y, keyword_y - bottom, s.forced_box_height,
            )
            bottom = keyword_y - s.forced_box_height

        return bottom

    def estimate_box(self, page: PageTextIndex, keyword_y: float, keyword_x: float) -> WritableBox:
        return WritableBox(top_y=keyword_y, bottom_y=self.estimate_bottom(page, keyword_y, keyword_x))
