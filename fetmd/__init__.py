"""Fetch a web page and convert its main content to Markdown with local images."""

from .config import CrawlConfig, MarkdownOptions
from .crawler import run
from .errors import FetchError, FetmdError, PersistenceError
from .models import ConversionResult, DownloadOutcome, PageContent, ResourceRef

__all__ = [
    "ConversionResult",
    "CrawlConfig",
    "DownloadOutcome",
    "FetchError",
    "FetmdError",
    "MarkdownOptions",
    "PageContent",
    "PersistenceError",
    "ResourceRef",
    "run",
]
