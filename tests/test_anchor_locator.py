# tests/test_anchor_locator.py
"""Tests for answerfill.processors.anchor_locator"""

import pytest

from answerfill.models.types import PageTextIndex, Token
from answerfill.processors.anchor_locator import (
    AnchorLocator,
    BoundedSearch,
    keywords_for_label,
    match_keyword,
)
from answerfill.services.exceptions import AnchorNotFoundError


pytestmark = pytest.mark.unit


def page(index: int, *words: tuple[str, float, float]) -> PageTextIndex:
    """Page built from (text, x, y) tuples"""
    return PageTextIndex(
        page_index=index, width=595, height=842,
        tokens=[Token(text, x, y, 10.0, width=len(text) * 5.0) for text, x, y in words],
    )


def filler(count: int, top: float = 800.0) -> list[tuple[str, float, float]]:
    """``count`` filler tokens, one per line, top-down"""
    return [(f"word{i}", 50.0, top - i * 3.0) for i in range(count)]


class TestKeywords:
    """Tests for keyword selection"""

    def test_requirement_accepts_both(self):
        assert keywords_for_label("R5") == ("compliancy", "answer")

    def test_question_accepts_answer_only(self):
        assert keywords_for_label("Q5") == ("answer",)

    def test_prefix_match_case_insensitive(self):
        assert match_keyword("ANSWER:", ("answer",)) == "answer"
        assert match_keyword("Compliancy", ("answer",)) is None
        assert match_keyword("Compliancy", ("compliancy", "answer")) == "compliancy"


class TestBoundedSearch:
    """Tests for BoundedSearch"""

    def test_window_is_capped(self):
        search = BoundedSearch(max_lookahead_pages=10)
        assert list(search.page_window(0, 50)) == list(range(1, 11))
        assert list(search.page_window(45, 50)) == list(range(46, 50))

    def test_any_same_page_offset_beats_next_page(self):
        search = BoundedSearch()
        assert search.score(0, 10_000 - 1) < search.score(1, 0)

    def test_needs_lookahead(self):
        search = BoundedSearch(same_page_distance_limit=100)
        assert search.needs_lookahead(None)
        assert search.needs_lookahead(101)
        assert not search.needs_lookahead(5)


class TestAnchorLocator:
    """Tests for AnchorLocator.resolve / require"""

    @pytest.fixture
    def locator(self):
        return AnchorLocator()

    def test_same_page_caption(self, locator):
        pages = [page(0, ("Q1", 50, 700), ("Describe", 70, 700), ("Answer", 50, 680))]
        match = locator.resolve(pages, "Q1")
        assert match.page_index == 0
        assert match.label_page_index == 0
        assert (match.x, match.y) == (50, 680)
        assert match.keyword == "answer"
        assert match.label_y == 700
        assert not match.is_cross_page

    def test_question_skips_compliancy_caption(self, locator):
        pages = [page(0, ("Q1", 50, 700), ("Compliancy", 50, 690), ("Answer", 50, 680))]
        match = locator.resolve(pages, "Q1")
        assert match.keyword == "answer"
        assert match.y == 680

    def test_requirement_uses_first_caption(self, locator):
        pages = [page(0, ("R5", 50, 700), ("Answer", 50, 690), ("Compliancy", 50, 680))]
        match = locator.resolve(pages, "R5")
        assert match.keyword == "answer"
        assert match.y == 690

    def test_caption_before_label_is_ignored(self, locator):
        pages = [page(0, ("Answer", 50, 720), ("Q1", 50, 700), ("Answer", 50, 680))]
        assert locator.resolve(pages, "Q1").y == 680

    def test_cross_page_caption(self, locator):
        """Label at the bottom of page 1, caption at the top of page 2"""
        pages = [
            page(0, ("Q7", 50, 60), ("List", 70, 60)),
            page(1, ("Answer", 50, 790), ("Q8", 50, 600)),
        ]
        match = locator.resolve(pages, "Q7")
        assert match.page_index == 1
        assert match.label_page_index == 0
        assert match.is_cross_page
        assert match.y == 790

    def test_distant_same_page_caption_still_beats_next_page(self, locator):
        pages = [
            page(0, ("Q1", 50, 830), *filler(120, top=820), ("Answer", 50, 100)),
            page(1, ("Answer", 50, 790)),
        ]
        match = locator.resolve(pages, "Q1")
        assert match.page_index == 0
        assert match.y == 100

    def test_caption_outside_window_not_found(self, locator):
        pages = [page(0, ("Q7", 50, 60))]
        pages += [page(i, ("Nothing", 50, 700)) for i in range(1, 11)]
        pages.append(page(11, ("Answer", 50, 790)))
        assert locator.resolve(pages, "Q7") is None

    def test_caption_inside_window_found(self, locator):
        pages = [page(0, ("Q7", 50, 60))]
        pages += [page(i, ("Nothing", 50, 700)) for i in range(1, 10)]
        pages.append(page(10, ("Answer", 50, 790)))
        assert locator.resolve(pages, "Q7").page_index == 10

    def test_caption_beyond_token_cap_not_found(self, locator):
        pages = [
            page(0, ("Q7", 50, 60)),
            page(1, *filler(200), ("Answer", 50, 50)),
        ]
        assert locator.resolve(pages, "Q7") is None

    def test_only_first_page_with_label_is_used(self):
        """A later page repeating the label is not searched"""
        locator = AnchorLocator(BoundedSearch(max_lookahead_pages=0))
        pages = [
            page(0, ("Q3", 50, 700)),
            page(1, ("Q3", 50, 700), ("Answer", 50, 680)),
        ]
        assert locator.resolve(pages, "Q3") is None

    def test_unknown_label(self, locator):
        pages = [page(0, ("Q1", 50, 700), ("Answer", 50, 680))]
        assert locator.resolve(pages, "Q99") is None

    def test_label_is_matched_exactly(self, locator):
        pages = [page(0, ("Q12", 50, 700), ("Answer", 50, 680))]
        assert locator.resolve(pages, "Q1") is None

    def test_require_raises(self, locator):
        with pytest.raises(AnchorNotFoundError) as exc_info:
            locator.require([page(0, ("Q1", 50, 700))], "Q1")
        assert exc_info.value.label == "Q1"
