# answerfill/processors/anchor_locator.py
"""
Anchor/Target Locator.

Resolves a label ("Q12", "R7") to the caption keyword ("Answer",
"Compliancy") where its answer belongs. The caption is normally a few tokens
after the label on the same page; when it is not, a bounded number of
following pages is searched.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from answerfill.config.settings import FillSettings
from answerfill.models.types import AnchorMatch, PageTextIndex, Token
from answerfill.services.exceptions import AnchorNotFoundError

# Module logger
logger = logging.getLogger(__name__)


# Keywords in preference order
REQUIREMENT_KEYWORDS = ("compliancy", "answer")
QUESTION_KEYWORDS = ("answer",)


def keywords_for_label(label: str) -> tuple[str, ...]:
    """R-labels accept a Compliancy or an Answer caption, all others Answer only."""
    if label.startswith("R"):
        return REQUIREMENT_KEYWORDS
    return QUESTION_KEYWORDS


def match_keyword(text: str, keywords: Sequence[str]) -> Optional[str]:
    """Return the first keyword (in preference order) ``text`` starts with."""
    word = text.lower()
    for keyword in keywords:
        if word.startswith(keyword):
            return keyword
    return None


@dataclass(frozen=True)
class BoundedSearch:
    """
    Bounds of the caption search.

    Attributes:
        max_lookahead_pages: Pages after the label page that may hold the caption
        max_tokens_per_page: Tokens inspected at the top of each lookahead page
        page_distance_weight: Cost of one page of distance, in tokens
        same_page_distance_limit: Same-page matches farther than this also
            trigger the lookahead
    """
    max_lookahead_pages: int = 10
    max_tokens_per_page: int = 150
    page_distance_weight: int = 10000
    same_page_distance_limit: int = 100

    @classmethod
    def from_settings(cls, settings: FillSettings) -> "BoundedSearch":
        return cls(
            max_lookahead_pages=settings.max_lookahead_pages,
            max_tokens_per_page=settings.max_tokens_per_page,
            page_distance_weight=settings.page_distance_weight,
            same_page_distance_limit=settings.same_page_distance_limit,
        )

    def score(self, page_distance: int, token_offset: int) -> int:
        """Distance score; lower is better."""
        return page_distance * self.page_distance_weight + token_offset

    def page_window(self, label_page: int, page_count: int) -> range:
        """Page indices searched after the label page."""
        return range(label_page + 1, min(label_page + 1 + self.max_lookahead_pages, page_count))

    def needs_lookahead(self, best_distance: Optional[int]) -> bool:
        return best_distance is None or best_distance > self.same_page_distance_limit


class AnchorLocator:
    """Resolves labels to caption positions over a list of page text indices."""

    def __init__(self, search: Optional[BoundedSearch] = None):
        self.search = search or BoundedSearch()

    def resolve(self, pages: Sequence[PageTextIndex], label: str) -> Optional[AnchorMatch]:
        """
        Find the caption keyword for ``label``.

        Only the first page containing the label is considered; documents
        are assumed not to repeat labels.

        Args:
            pages: Page text indices in document order
            label: Label text, matched exactly against token text

        Returns:
            AnchorMatch, or None when the label or its caption is not found
        """
        keywords = keywords_for_label(label)

        for page_idx, page in enumerate(pages):
            occurrences = page.find(label)
            if not occurrences:
                continue

            best: Optional[AnchorMatch] = None
            best_score: Optional[int] = None

            for label_pos in occurrences:
                label_token = page.tokens[label_pos]

                # Same page, forward from the label
                for pos in range(label_pos + 1, len(page.tokens)):
                    token = page.tokens[pos]
                    keyword = match_keyword(token.text, keywords)
                    if keyword is None:
                        continue
                    distance = pos - label_pos
                    if best_score is None or distance < best_score:
                        best_score = distance
                        best = self._make_match(label, page_idx, token, keyword, page_idx, label_token)
                    break

                if self.search.needs_lookahead(best_score):
                    candidate = self._search_following_pages(
                        pages, page_idx, label, keywords, label_token
                    )
                    if candidate is not None:
                        score, match = candidate
                        if best_score is None or score < best_score:
                            best_score = score
                            best = match

                if best is not None:
                    break

            if best is None:
                logger.debug("%s: label found on page %d but no caption keyword", label, page_idx + 1)
            elif best.is_cross_page:
                logger.debug(
                    "%s: caption on page %d (label on page %d)",
                    label, best.page_index + 1, best.label_page_index + 1,
                )
            return best

        return None

    def require(self, pages: Sequence[PageTextIndex], label: str) -> AnchorMatch:
        """Like resolve(), but raise AnchorNotFoundError instead of returning None."""
        match = self.resolve(pages, label)
        if match is None:
            raise AnchorNotFoundError(label)
        return match

    def _search_following_pages(
        self,
        pages: Sequence[PageTextIndex],
        label_page: int,
        label: str,
        keywords: Sequence[str],
        label_token: Token,
    ) -> Optional[tuple[int, AnchorMatch]]:
        """First caption on the nearest following page inside the window."""
        for page_idx in self.search.page_window(label_page, len(pages)):
            tokens = pages[page_idx].tokens[:self.search.max_tokens_per_page]
            for offset, token in enumerate(tokens):
                keyword = match_keyword(token.text, keywords)
                if keyword is None:
                    continue
                score = self.search.score(page_idx - label_page, offset)
                return score, self._make_match(label, page_idx, token, keyword, label_page, label_token)
        return None

    @staticmethod
    def _make_match(
        label: str,
        page_idx: int,
        token: Token,
        keyword: str,
        label_page: int,
        label_token: Token,
    ) -> AnchorMatch:
        return AnchorMatch(
            label=label,
            page_index=page_idx,
            x=token.x,
            y=token.y,
            width=token.width,
            font_size=token.font_size,
            keyword=keyword,
            label_page_index=label_page,
            label_y=label_token.y,
        )
