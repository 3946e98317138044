"""Link extraction and URL classification for vault notes."""

from __future__ import annotations

import logging
import re
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

_MARKDOWN_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
_BARE_URL_RE = re.compile(r"https?://[^\s<>\[\]()]+")

_DOMAIN_TYPES = {
    "twitter": ("twitter.com", "x.com"),
    "youtube": ("youtube.com", "youtu.be"),
    "instagram": ("instagram.com",),
}
_IGNORED_TYPES = {"youtube", "instagram", "invalid"}


def extract_urls(content: str) -> list[str]:
    """Return the URLs in a note: markdown links first, then bare URLs.

    Duplicates are dropped, first occurrence wins.
    """
    urls = [m.group(2) for m in _MARKDOWN_LINK_RE.finditer(content)]
    without_links = _MARKDOWN_LINK_RE.sub("", content)
    urls.extend(_BARE_URL_RE.findall(without_links))
    return list(dict.fromkeys(urls))


def get_url_type(url: str) -> str:
    """Classify a URL as twitter, youtube, instagram, web or invalid."""
    try:
        parsed = urlparse(url)
    except ValueError:
        logger.warning("Invalid URL: %s", url)
        return "invalid"
    hostname = (parsed.hostname or "").lower()
    if parsed.scheme not in ("http", "https") or not hostname:
        logger.warning("Invalid URL: %s", url)
        return "invalid"

    for url_type, domains in _DOMAIN_TYPES.items():
        if any(hostname == d or hostname.endswith("." + d) for d in domains):
            return url_type
    return "web"


def is_twitter_url(url: str) -> bool:
    return get_url_type(url) == "twitter"


def should_ignore_url(url: str) -> bool:
    """Video and photo platforms have no article body to extract."""
    return get_url_type(url) in _IGNORED_TYPES


def sanitize_filename(value: str) -> str:
    name = re.sub(r"[^a-z0-9]", "-", value, flags=re.IGNORECASE)
    name = re.sub(r"-+", "-", name).strip("-")
    return name.lower()[:100]


def create_filename_from_url(url: str) -> str:
    """Derive an article filename (no extension) from the last path segment."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return sanitize_filename(url)
    if not parsed.hostname:
        return sanitize_filename(url)
    last = parsed.path.rstrip("/").split("/")[-1] or parsed.hostname
    return sanitize_filename(last)


def remove_links(content: str, urls: list[str]) -> str:
    """Strip markdown links and bare occurrences of each URL from a note."""
    for url in urls:
        escaped = re.escape(url)
        content = re.sub(rf"\[([^\]]+)\]\({escaped}\)", "", content)
        content = re.sub(escaped, "", content)
    return re.sub(r"\n{3,}", "\n\n", content)
