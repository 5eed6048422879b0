"""Tests for markup stripping and heading extraction."""

from __future__ import annotations

from folio.parsers.markup import chapter_title, extract_heading, strip_markup


class TestStripMarkup:
    def test_nested_inline_tags(self):
        assert strip_markup("<p>Hello <b>World</b></p>") == "Hello World"

    def test_whitespace_collapsed(self):
        html = "<div>\n  one\n\n\ttwo   three  </div>\n"
        assert strip_markup(html) == "one two three"

    def test_idempotent_on_plain_text(self):
        once = strip_markup("<p>Some  <i>plain</i>\ntext</p>")
        assert strip_markup(once) == once

    def test_entities_pass_through(self):
        assert strip_markup("<p>Fish &amp; chips</p>") == "Fish &amp; chips"

    def test_adjacent_tags_join_tokens(self):
        # No implicit space at tag boundaries.
        assert strip_markup("<b>Hel</b><i>lo</i>") == "Hello"

    def test_unclosed_tag_drops_rest(self):
        assert strip_markup("visible <span never closed") == "visible"

    def test_empty_and_garbage(self):
        assert strip_markup("") == ""
        assert strip_markup(">>><<<") == ""


class TestHeadings:
    def test_h1(self):
        assert extract_heading("<body><h1>Intro</h1><p>x</p></body>") == "Intro"

    def test_h1_preferred_over_earlier_h2(self):
        html = "<h2>Second level</h2><p>x</p><h1>Top level</h1>"
        assert extract_heading(html) == "Top level"

    def test_h2_fallback_strips_inner_tags(self):
        html = "<h2 class='t'>The <em>Long</em>\n Road</h2>"
        assert extract_heading(html) == "The Long Road"

    def test_no_heading(self):
        assert extract_heading("<p>Nothing here</p>") is None

    def test_chapter_title_fallback(self):
        assert chapter_title("<p>No heading</p>", 3) == "Chapter 3"

    def test_chapter_title_empty_heading_falls_back(self):
        assert chapter_title("<h1>  </h1><p>x</p>", 1) == "Chapter 1"

    def test_chapter_title_heading(self):
        assert chapter_title("<h1>Intro</h1>", 7) == "Intro"
