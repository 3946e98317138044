from .fetcher import FetchError, fetch_url_content
from .links import (
    create_filename_from_url,
    extract_urls,
    get_url_type,
    is_twitter_url,
    remove_links,
    sanitize_filename,
    should_ignore_url,
)
from .processor import NoteProcessor, NoteResult

__all__ = [
    "FetchError",
    "NoteProcessor",
    "NoteResult",
    "create_filename_from_url",
    "extract_urls",
    "fetch_url_content",
    "get_url_type",
    "is_twitter_url",
    "remove_links",
    "sanitize_filename",
    "should_ignore_url",
]
