"""Exceptions raised by the conversion pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class FetmdError(RuntimeError):
    """Base class for fatal pipeline errors."""


class FetchError(FetmdError):
    """The page could not be retrieved or answered with a non-success status."""

    def __init__(self, url: str, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class PersistenceError(FetmdError):
    """An output directory or the Markdown file could not be written."""

    def __init__(self, path: Path, message: str) -> None:
        super().__init__(message)
        self.path = path
