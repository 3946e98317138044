"""Fetch page markup over HTTP."""

from __future__ import annotations

import logging

import httpx

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
MAX_REDIRECTS = 5


class FetchError(Exception):
    """A page could not be downloaded."""

    def __init__(self, url: str, cause: Exception) -> None:
        self.url = url
        super().__init__(f"Error fetching {url}: {cause}")
        self.__cause__ = cause


async def fetch_url_content(url: str, timeout: float = 30.0) -> str:
    """Download a page and return its body text."""
    logger.info("fetching %s", url)
    try:
        async with httpx.AsyncClient(
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
            max_redirects=MAX_REDIRECTS,
            timeout=timeout,
        ) as client:
            resp = await client.get(url)
            resp.raise_for_status()
    except httpx.HTTPError as e:
        raise FetchError(url, e) from e
    return resp.text
