"""Unit tests for HTML fragment extraction."""

import pytest

from pagecraft.conversations.extractor import extract_html


class TestFencedBlocks:
    """Fenced ```html blocks take precedence."""

    def test_returns_inner_content_of_fenced_block(self):
        assert extract_html("```html\n<div>hi</div>\n```") == "<div>hi</div>"

    def test_ignores_surrounding_prose(self):
        text = "Here you go:\n```html\n<main>page</main>\n```\nEnjoy!"
        assert extract_html(text) == "<main>page</main>"

    def test_uses_first_block_when_several_present(self):
        text = "```html\n<p>one</p>\n```\n```html\n<p>two</p>\n```"
        assert extract_html(text) == "<p>one</p>"

    def test_multiline_inner_content(self):
        text = "```html\n<section>\n  <h1>Title</h1>\n</section>\n```"
        assert extract_html(text) == "<section>\n  <h1>Title</h1>\n</section>"

    def test_empty_fence_falls_back_to_full_text(self):
        text = "```html\n\n```"
        assert extract_html(text) == text

    def test_unclosed_fence_with_tag_returns_full_text(self):
        text = "```html\n<div class=\"hero\">"
        assert extract_html(text) == text


class TestTagHeuristic:
    """A bare tag start makes the whole text the fragment."""

    def test_partial_markup_returns_entire_text(self):
        assert extract_html("Sure thing! <section>") == "Sure thing! <section>"

    def test_trailing_prose_is_kept(self):
        text = "<div>hello</div> Let me know if you want changes."
        assert extract_html(text) == text

    def test_tag_with_attributes(self):
        text = '<a href="/home" class="link">'
        assert extract_html(text) == text

    def test_uppercase_tag_names_match(self):
        assert extract_html("<DIV>") == "<DIV>"

    @pytest.mark.parametrize("text", ["a < b > c", "<1abc>", "< div>", "<div"])
    def test_non_tags_do_not_match(self, text):
        assert extract_html(text) is None


class TestNoMarkup:
    def test_plain_prose_returns_none(self):
        assert extract_html("Let me think about this...") is None

    def test_empty_text_returns_none(self):
        assert extract_html("") is None

    def test_is_idempotent(self):
        text = "Intro <p>body</p>"
        assert extract_html(text) == extract_html(text) == text
