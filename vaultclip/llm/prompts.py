"""Prompt template for HTML-to-Markdown article extraction."""

from __future__ import annotations

MAX_MARKUP_CHARS = 50_000
TRUNCATION_MARKER = "[HTML truncated - too large]"

CONVERSION_PROMPT = """\
Extract the main article content from this HTML and convert to clean Markdown.

Focus on: title, headings, paragraphs, lists, quotes, code blocks.
Ignore: navigation, ads, sidebars, comments, footers.

HTML ({length} chars):
{markup}

Return only clean Markdown:"""


def build_conversion_prompt(markup: str | None) -> str:
    """Embed page markup in the extraction prompt.

    Markup longer than MAX_MARKUP_CHARS is cut and followed by
    TRUNCATION_MARKER. The reported length is always the untruncated one.
    """
    markup = markup or ""
    if len(markup) > MAX_MARKUP_CHARS:
        body = f"{markup[:MAX_MARKUP_CHARS]}\n\n{TRUNCATION_MARKER}"
    else:
        body = markup
    return CONVERSION_PROMPT.format(length=len(markup), markup=body)
