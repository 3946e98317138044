"""ArticleWriter: writes converted articles to Markdown files on disk."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from vaultclip.config.models import OutputConfig

logger = logging.getLogger(__name__)


def _safe_name(name: str) -> str:
    """Make an article name safe for use as a filename.

    Strips path separators and `..` segments; empty results become
    `_unnamed`.
    """
    name = name.replace("/", "-").replace("\\", "-")
    name = name.replace("..", "")
    name = re.sub(r"[^\w\-\.@]", "", name)
    if not name or name.strip(".") == "":
        name = "_unnamed"
    return name


class ArticleWriter:
    """Writes article Markdown under the configured output directory."""

    def __init__(self, config: OutputConfig) -> None:
        self.config = config
        self.base_dir = Path(config.base_dir)

    def path_for(self, name: str) -> Path:
        return self.base_dir / f"{_safe_name(name)}.md"

    def write(self, name: str, markdown: str, *, dry_run: bool | None = None) -> Path:
        """Write one article. Returns the Path of the written (or would-be) file."""
        dest = self.path_for(name)
        if self.config.dry_run if dry_run is None else dry_run:
            logger.debug("dry-run: would write %s", dest)
            return dest

        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_text(markdown, encoding="utf-8")
        logger.info("wrote %s (%d bytes)", dest, len(markdown))
        return dest
