# answerfill/config/settings.py
"""
Layout settings for AnswerFill.

All distances are PDF points. Defaults reproduce the layout the tool has
always produced; a JSON file (see config/settings.template.json) can override
any field. Unknown keys are ignored, out-of-range values are reset to their
defaults with a warning.
"""

import json
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

# Module logger
logger = logging.getLogger(__name__)


@dataclass
class FillSettings:
    """Layout and search settings"""

    # Text
    font_name: str = "helv"             # PyMuPDF base-14 Helvetica
    base_font_size: float = 8.0         # Used when the caption size is unknown
    line_height_factor: float = 1.3     # line_height = font_size * factor

    # Anchor search (bounded)
    max_lookahead_pages: int = 10
    max_tokens_per_page: int = 150
    page_distance_weight: int = 10000
    same_page_distance_limit: int = 100

    # Box bounds
    search_threshold: float = 12.0      # Content must sit this far under the caption baseline
    horizontal_tolerance: float = 150.0
    left_align_tolerance: float = 50.0
    bottom_clearance: float = 12.0
    min_box_height: float = 35.0
    page_floor: float = 45.0
    min_usable_height: float = 30.0
    forced_box_height: float = 50.0

    # In-box writing
    first_line_padding: float = 4.0
    right_margin: float = 40.0
    right_gutter: float = 45.0
    continuation_indent: float = 8.0
    vertical_offset: float = 1.5
    box_padding: float = 10.0
    max_inline_lines: int = 2           # More lines than this go to a continuation page

    # Continuation pages
    page_left_margin: float = 50.0
    page_top_margin: float = 70.0
    new_page_threshold: float = 100.0
    bottom_margin: float = 50.0
    image_bottom_margin: float = 320.0
    image_side_margin: float = 100.0    # max image width = page_width - image_side_margin
    image_max_height: float = 240.0
    image_gap: float = 30.0
    header_gray: float = 0.5

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "FillSettings":
        """Load settings from a JSON file, falling back to defaults.

        Args:
            path: JSON file with a flat object of overrides. None or a
                  missing file yields the defaults.
        """
        data = {}
        if path is not None:
            if path.exists():
                try:
                    with open(path, 'r', encoding='utf-8-sig') as f:
                        loaded = json.load(f)
                    if isinstance(loaded, dict):
                        data = loaded
                        logger.debug("Loaded settings from: %s", path)
                    else:
                        logger.warning("Ignoring settings file %s: expected a JSON object", path)
                except (json.JSONDecodeError, UnicodeDecodeError) as e:
                    logger.warning("Failed to load settings from %s: %s", path, e)
            else:
                logger.warning("Settings file not found, using defaults: %s", path)

        known_fields = {f.name for f in fields(cls)}
        unknown = sorted(k for k in data if k not in known_fields)
        if unknown:
            logger.debug("Ignoring unknown settings keys: %s", unknown)
        filtered_data = {k: v for k, v in data.items() if k in known_fields}

        settings = cls(**filtered_data)
        settings._validate()
        return settings

    def _validate(self) -> None:
        """Reset values that would break the layout to their defaults."""
        defaults = FillSettings()

        # Font size constraints
        if not 1.0 <= self.base_font_size <= 72.0:
            logger.warning("base_font_size out of range (%.1f), resetting to %.1f",
                           self.base_font_size, defaults.base_font_size)
            self.base_font_size = defaults.base_font_size

        if self.line_height_factor < 1.0:
            logger.warning("line_height_factor too small (%.2f), resetting to %.2f",
                           self.line_height_factor, defaults.line_height_factor)
            self.line_height_factor = defaults.line_height_factor

        # Search bounds must be positive, otherwise nothing is ever found
        for name in ("max_lookahead_pages", "max_tokens_per_page", "page_distance_weight"):
            if getattr(self, name) < 1:
                logger.warning("%s must be >= 1 (%s), resetting to %s",
                               name, getattr(self, name), getattr(defaults, name))
                setattr(self, name, getattr(defaults, name))

        # The weight must dominate any token offset inside the lookahead window
        if self.page_distance_weight <= self.max_tokens_per_page:
            logger.warning(
                "page_distance_weight (%d) must exceed max_tokens_per_page (%d), resetting both",
                self.page_distance_weight, self.max_tokens_per_page,
            )
            self.page_distance_weight = defaults.page_distance_weight
            self.max_tokens_per_page = defaults.max_tokens_per_page

        if self.max_inline_lines < 1:
            logger.warning("max_inline_lines must be >= 1 (%d), resetting to %d",
                           self.max_inline_lines, defaults.max_inline_lines)
            self.max_inline_lines = defaults.max_inline_lines

        # Box heights: forced height must cover the usable minimum
        if self.min_usable_height <= 0:
            self.min_usable_height = defaults.min_usable_height
        if self.forced_box_height < self.min_usable_height:
            logger.warning("forced_box_height (%.1f) below min_usable_height (%.1f), resetting",
                           self.forced_box_height, self.min_usable_height)
            self.forced_box_height = max(defaults.forced_box_height, self.min_usable_height)

        # Continuation pages
        if self.image_max_height <= 0:
            self.image_max_height = defaults.image_max_height
        if not 0.0 <= self.header_gray <= 1.0:
            self.header_gray = defaults.header_gray

    @property
    def right_reserve(self) -> float:
        """Space kept free at the right edge of in-box lines."""
        return self.right_margin + self.right_gutter

    def line_height_for(self, font_size: float) -> float:
        return font_size * self.line_height_factor
