"""Tests for the offline BeautifulSoup backend."""

import pytest

from vaultclip.llm.base import BackendKind
from vaultclip.llm.mock import DEFAULT_TITLE, MockBackend, html_to_markdown

URL = "https://example.com/article"


class TestHtmlToMarkdown:
    def test_title_then_body(self):
        md = html_to_markdown("<h1>Title</h1><p>Hello</p>")
        lines = md.splitlines()
        assert lines[0] == "# Title"
        assert "Hello" in lines
        assert lines.index("# Title") < lines.index("Hello")

    def test_title_from_title_tag(self):
        md = html_to_markdown("<html><head><title> Page </title></head><body><p>x</p></body></html>")
        assert md.startswith("# Page\n\n")

    def test_placeholder_title(self):
        md = html_to_markdown("<p>Content</p>")
        assert md.startswith(f"# {DEFAULT_TITLE}\n\n")
        assert "Content" in md

    @pytest.mark.parametrize("markup", ["", None, "   ", "<<<>>>", "<div><p>unclosed", "\x00\x01"])
    def test_degenerate_input_yields_title(self, markup):
        md = html_to_markdown(markup)
        assert md.startswith("# ")

    def test_empty_input_is_just_placeholder(self):
        assert html_to_markdown("") == f"# {DEFAULT_TITLE}\n\n"

    def test_heading_levels(self):
        md = html_to_markdown("<h2>Two</h2><h3>Three</h3><h6>Six</h6>")
        assert "## Two\n\n" in md
        assert "### Three\n\n" in md
        assert "###### Six\n\n" in md

    def test_lists_and_quotes(self):
        md = html_to_markdown(
            "<ul><li>Item 1</li><li>Item 2</li></ul>"
            "<ol><li>First</li></ol>"
            "<blockquote>Quote text</blockquote>"
        )
        assert "- Item 1\n- Item 2\n\n" in md
        assert "- First\n\n" in md
        assert "> Quote text\n\n" in md

    def test_strips_boilerplate(self, sample_html):
        md = html_to_markdown(sample_html)
        assert "Home | About" not in md
        assert "Sidebar ad" not in md
        assert "Copyright" not in md
        assert "alert" not in md
        assert "color: red" not in md

    def test_prefers_article_container(self, sample_html):
        md = html_to_markdown(sample_html)
        assert md.startswith("# Article Heading\n\n")
        assert "First paragraph.\n\n" in md
        assert "## Section\n\n" in md
        assert "- One\n- Two\n\n" in md
        assert "> Quoted words\n\n" in md

    def test_main_content_priority(self):
        markup = (
            "<div class='content'><p>From content div</p></div>"
            "<main><p>From main</p></main>"
        )
        md = html_to_markdown(markup)
        assert "From main" in md
        assert "From content div" not in md

    def test_skips_empty_blocks(self):
        md = html_to_markdown("<h1>T</h1><p>   </p><p>Real</p>")
        assert md == "# T\n\n# T\n\nReal\n\n"

    def test_deterministic(self, sample_html):
        assert html_to_markdown(sample_html) == html_to_markdown(sample_html)


class TestMockBackend:
    def test_kind_and_name(self):
        backend = MockBackend()
        assert backend.kind is BackendKind.MOCK
        assert backend.name == "MockGemini"

    @pytest.mark.asyncio
    async def test_convert(self, quiet_logger):
        backend = MockBackend(logger=quiet_logger)
        md = await backend.convert("<h1>Title</h1><p>Hello</p>", URL)
        assert md.startswith("# Title\n\n")
        assert "Hello\n\n" in md

    @pytest.mark.asyncio
    async def test_convert_twice_is_identical(self, sample_html):
        backend = MockBackend()
        first = await backend.convert(sample_html, URL)
        second = await backend.convert(sample_html, URL)
        assert first == second

    @pytest.mark.asyncio
    async def test_large_input(self):
        backend = MockBackend()
        md = await backend.convert("<p>" + "Content " * 1000 + "</p>", URL)
        assert md.startswith(f"# {DEFAULT_TITLE}")
        assert "Content Content" in md

    @pytest.mark.asyncio
    async def test_logs_sizes(self, caplog):
        backend = MockBackend()
        with caplog.at_level("DEBUG", logger="vaultclip.llm.mock"):
            await backend.convert("<p>x</p>", URL)
        assert any(URL in r.getMessage() for r in caplog.records)
