import re

from markdown_it import MarkdownIt
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name, guess_lexer
from pygments.util import ClassNotFound

from md2slides.config import settings

# Level 1 and 2 headings start a new slide; ### and deeper stay in the body.
SLIDE_BOUNDARY = re.compile(r"^#{1,2} ")

PLACEHOLDER_SLIDE = "# Welcome\n\nNo content to display"

_CODE_FORMATTER = HtmlFormatter(nowrap=True)


def _highlight_code(code: str, lang: str, _attrs: str) -> str:
    """markdown-it ``highlight`` hook: Pygments token spans for a fenced block.

    Returning an empty string makes markdown-it fall back to escaping the
    block itself, which is what happens for unknown language names.
    """
    try:
        lexer = get_lexer_by_name(lang) if lang else guess_lexer(code)
    except ClassNotFound:
        return ""
    return highlight(code, lexer, _CODE_FORMATTER)


# html=False: raw HTML in slide source is escaped, never passed through.
_MARKDOWN = (
    MarkdownIt("commonmark", {"html": False, "highlight": _highlight_code})
    .enable("table")
    .enable("strikethrough")
)


class SlideService:
    """Split markdown into slides and render individual slides to HTML."""

    @staticmethod
    def segment(text: str) -> list[str]:
        """Partition *text* into slide sources.

        Never fails and never returns an empty list. Joining the result with
        ``"\\n"`` gives back the original text (blank input excepted, which
        yields the placeholder slide). Lines before the first heading become
        a slide of their own once a heading shows up.
        """
        if not text.strip():
            return [PLACEHOLDER_SLIDE]

        slides: list[str] = []
        current: list[str] = []
        for line in text.split("\n"):
            if SLIDE_BOUNDARY.match(line):
                if current:
                    slides.append("\n".join(current))
                current = [line]
            else:
                current.append(line)

        if current:
            slides.append("\n".join(current))

        return slides or [PLACEHOLDER_SLIDE]

    @staticmethod
    def clamp_index(index: int, count: int) -> int:
        """Pull a slide index back into ``[0, count - 1]``."""
        if count <= 0:
            return 0
        return max(0, min(index, count - 1))

    @staticmethod
    def render(slide_source: str) -> str:
        """Render one slide's markdown to sanitized HTML with highlighted code."""
        return _MARKDOWN.render(slide_source)

    @staticmethod
    def render_slide(content: str, index: int) -> str:
        """Segment *content* and render the slide at *index* (clamped)."""
        slides = SlideService.segment(content)
        return SlideService.render(
            slides[SlideService.clamp_index(index, len(slides))]
        )

    @staticmethod
    def stylesheet(style: str | None = None) -> str:
        """CSS for the token classes emitted by the code highlighter."""
        formatter = HtmlFormatter(style=style or settings.highlight_style)
        return formatter.get_style_defs("pre > code")
