"""Per-note batch loop: links in a note become saved article files."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from vaultclip.config.models import VaultConfig
from vaultclip.llm.base import ArticleBackend
from vaultclip.llm.models import ConversionError
from vaultclip.notes.fetcher import FetchError, fetch_url_content
from vaultclip.notes.links import (
    create_filename_from_url,
    extract_urls,
    is_twitter_url,
    remove_links,
    should_ignore_url,
)
from vaultclip.output.writer import ArticleWriter

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 500


@dataclass
class NoteResult:
    """Outcome of processing one note.

    ``error`` is set when the note itself could not be read or rewritten;
    ``previews`` holds the start of each article on a dry run.
    """

    note: Path
    written: dict[str, Path] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    previews: dict[str, str] = field(default_factory=dict)
    links_removed: bool = False
    error: str | None = None


class NoteProcessor:
    """Runs each URL of a note through fetch, convert and write.

    A failure on one URL or one note is logged and recorded; the remaining
    URLs and notes are still processed.
    """

    def __init__(
        self,
        backend: ArticleBackend,
        writer: ArticleWriter,
        vault: VaultConfig | None = None,
    ) -> None:
        self.backend = backend
        self.writer = writer
        self.vault = vault or VaultConfig()

    async def process_note(self, path: Path, *, dry_run: bool = False) -> NoteResult:
        result = NoteResult(note=path)
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.error("cannot read note %s: %s", path.name, e)
            result.error = f"cannot read note: {e}"
            return result

        urls = extract_urls(content)
        if not urls:
            logger.info("no URLs found in %s", path.name)
            return result

        logger.info("found %d URL(s) in %s", len(urls), path.name)
        for url in urls:
            if should_ignore_url(url) or is_twitter_url(url):
                logger.info("skipping %s", url)
                result.skipped.append(url)
                continue
            try:
                markup = await fetch_url_content(url, timeout=self.vault.fetch_timeout)
                markdown = await self.backend.convert(markup, url)
                dest = self.writer.write(create_filename_from_url(url), markdown, dry_run=dry_run)
            except (FetchError, ConversionError, OSError) as e:
                logger.error("failed to process %s: %s", url, e)
                result.failed[url] = str(e)
                continue
            result.written[url] = dest
            if dry_run:
                result.previews[url] = markdown[:PREVIEW_CHARS]

        if self.vault.delete_links and result.written and not dry_run:
            self._remove_links(path, content, result)
        return result

    def _remove_links(self, path: Path, content: str, result: NoteResult) -> None:
        updated = remove_links(content, list(result.written))
        if updated == content:
            return
        try:
            path.write_text(updated, encoding="utf-8")
        except OSError as e:
            logger.error("cannot update note %s: %s", path.name, e)
            result.error = f"cannot update note: {e}"
            return
        result.links_removed = True
        logger.info("removed %d processed link(s) from %s", len(result.written), path.name)

    async def process_directory(self, notes_dir: Path, *, dry_run: bool = False) -> list[NoteResult]:
        """Process every top-level .md note in a directory, one at a time."""
        results = []
        for note in sorted(notes_dir.glob("*.md")):
            results.append(await self.process_note(note, dry_run=dry_run))
        return results
