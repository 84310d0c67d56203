"""Tests for md2slides.services.slides: segmentation and rendering."""

from __future__ import annotations

import textwrap

import pytest

from md2slides.services.slides import PLACEHOLDER_SLIDE, SlideService


# ---------------------------------------------------------------------------
# Segmentation
# ---------------------------------------------------------------------------

class TestSegment:
    def test_two_headings_two_slides(self):
        slides = SlideService.segment("# A\nbody\n## B\nmore")
        assert slides == ["# A\nbody", "## B\nmore"]

    @pytest.mark.parametrize("text", ["", "   ", "\n\n", " \t\n "])
    def test_blank_input_gives_placeholder(self, text):
        assert SlideService.segment(text) == [PLACEHOLDER_SLIDE]

    def test_no_heading_is_one_slide(self):
        text = "just some text\n\n- a list\n- of things"
        assert SlideService.segment(text) == [text]

    def test_level_three_heading_does_not_split(self):
        text = "# Top\n### Detail\nbody\n#### Deeper"
        assert SlideService.segment(text) == [text]

    def test_heading_needs_a_space(self):
        text = "# Top\n#hashtag\n##also-not"
        assert SlideService.segment(text) == [text]

    def test_indented_heading_is_not_a_boundary(self):
        text = "# Top\n  # indented"
        assert SlideService.segment(text) == [text]

    def test_leading_content_becomes_first_slide(self):
        slides = SlideService.segment("intro line\n\n# First\nbody")
        assert slides == ["intro line\n", "# First\nbody"]

    def test_boundary_line_starts_new_slide(self):
        slides = SlideService.segment("# One\n# Two\n# Three")
        assert slides == ["# One", "# Two", "# Three"]

    def test_trailing_newline_stays_with_last_slide(self):
        slides = SlideService.segment("# One\nbody\n")
        assert slides == ["# One\nbody\n"]

    @pytest.mark.parametrize("text", [
        "# A\nbody\n## B\nmore",
        "lead\n# A\n\n\n## B\n### C\ntext\n",
        "no headings at all",
        "\n# starts after a blank line",
        textwrap.dedent("""\
            # Code

            ```python
            # shell comment at column 0
            ```
            """),
    ])
    def test_content_is_preserved(self, text):
        slides = SlideService.segment(text)
        assert slides
        assert "\n".join(slides) == text

    def test_heading_inside_code_fence_still_splits(self):
        text = "# Code\n```\n# not meant as a slide\n```"
        assert len(SlideService.segment(text)) == 2


# ---------------------------------------------------------------------------
# Index clamping
# ---------------------------------------------------------------------------

class TestClampIndex:
    @pytest.mark.parametrize("index,count,expected", [
        (0, 3, 0),
        (2, 3, 2),
        (7, 3, 2),
        (-1, 3, 0),
        (5, 0, 0),
    ])
    def test_clamp(self, index, count, expected):
        assert SlideService.clamp_index(index, count) == expected


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

class TestRender:
    def test_heading_and_paragraph(self):
        html = SlideService.render("# Title\n\nSome **bold** text")
        assert "<h1>Title</h1>" in html
        assert "<strong>bold</strong>" in html

    def test_raw_html_is_escaped(self):
        html = SlideService.render("# Hi\n\n<script>alert(1)</script>")
        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    def test_javascript_links_are_not_linked(self):
        html = SlideService.render("[click](javascript:alert(1))")
        assert 'href="javascript' not in html

    def test_fenced_code_is_highlighted(self):
        html = SlideService.render("```python\nprint('hi')\n```")
        assert '<pre><code class="language-python">' in html
        assert '<span class="nb">print</span>' in html

    def test_unknown_language_is_escaped_plain_text(self):
        html = SlideService.render("```notalanguage\n<b>x</b>\n```")
        assert '<code class="language-notalanguage">' in html
        assert "&lt;b&gt;x&lt;/b&gt;" in html
        assert "<b>" not in html

    def test_tables_and_strikethrough(self):
        html = SlideService.render("| a | b |\n|---|---|\n| 1 | 2 |\n\n~~gone~~")
        assert "<table>" in html
        assert "<s>gone</s>" in html

    def test_render_slide_clamps_index(self):
        html = SlideService.render_slide("# One\n# Two", 99)
        assert "<h1>Two</h1>" in html

    def test_render_slide_of_blank_content_is_placeholder(self):
        html = SlideService.render_slide("", 0)
        assert "<h1>Welcome</h1>" in html

    def test_stylesheet_targets_code_blocks(self):
        css = SlideService.stylesheet("default")
        assert "pre > code" in css
