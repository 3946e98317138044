"""Deterministic offline backend built on BeautifulSoup."""

from __future__ import annotations

import time

from bs4 import BeautifulSoup, Tag

from vaultclip.llm.base import ArticleBackend, BackendKind

DEFAULT_TITLE = "Untitled Article"

_STRIP_SELECTOR = "script, style, nav, footer, aside"
# Checked in order; the first selector with a match wins.
_MAIN_CONTENT_SELECTORS = ("article", "main", ".content", "#content", ".post-content")
_BLOCK_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6", "p", "ul", "ol", "blockquote"]


def _main_content(soup: BeautifulSoup) -> Tag:
    for selector in _MAIN_CONTENT_SELECTORS:
        found = soup.select_one(selector)
        if found is not None:
            return found
    return soup.body or soup


def _extract_title(soup: BeautifulSoup) -> str:
    for tag_name in ("h1", "title"):
        tag = soup.find(tag_name)
        if tag is not None:
            text = tag.get_text().strip()
            if text:
                return text
    return DEFAULT_TITLE


def _render_block(element: Tag) -> str | None:
    text = element.get_text().strip()
    if not text:
        return None

    tag = element.name
    if tag in ("ul", "ol"):
        items = [f"- {li.get_text().strip()}" for li in element.find_all("li")]
        return "\n".join(items) + "\n\n"
    if tag == "blockquote":
        return f"> {text}\n\n"
    if tag == "p":
        return f"{text}\n\n"
    level = int(tag[1])
    return f"{'#' * level} {text}\n\n"


def html_to_markdown(markup: str | None) -> str:
    """Reduce HTML to a minimal Markdown article.

    Never raises for malformed input; empty input yields just the
    placeholder title heading.
    """
    soup = BeautifulSoup(markup or "", "html.parser")
    for node in soup.select(_STRIP_SELECTOR):
        node.extract()

    title = _extract_title(soup)
    parts = [f"# {title}\n\n"]
    for element in _main_content(soup).find_all(_BLOCK_TAGS):
        rendered = _render_block(element)
        if rendered:
            parts.append(rendered)
    return "".join(parts)


class MockBackend(ArticleBackend):
    """Offline backend: structural HTML reduction, no network or subprocess."""

    kind = BackendKind.MOCK
    name = "MockGemini"

    async def convert(self, markup: str | None, source: str) -> str:
        started = time.perf_counter()
        markdown = html_to_markdown(markup)
        elapsed_ms = (time.perf_counter() - started) * 1000
        self.logger.debug(
            "mock conversion of %s: %d chars in, %d chars out (%.1f ms)",
            source,
            len(markup or ""),
            len(markdown),
            elapsed_ms,
        )
        return markdown

