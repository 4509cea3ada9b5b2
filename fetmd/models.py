"""Data models used throughout the conversion pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional


class ImageKind(str, Enum):
    """How an image is attached to the page."""

    EMBEDDED = "embedded"
    BACKGROUND = "background"


class FailureReason(str, Enum):
    """Why an image could not be stored locally."""

    UNSUPPORTED_EXTENSION = "unsupported_extension"
    HTTP_STATUS = "http_status"
    CONTENT_TYPE = "content_type"
    NETWORK_ERROR = "network_error"
    TOO_LARGE = "too_large"
    WRITE_ERROR = "write_error"


@dataclass(frozen=True)
class PageContent:
    """Fetched page together with the region judged to be the article."""

    raw_markup: str
    base_url: str
    title: str
    extracted_region: str
    extraction_mode: str = "container"


@dataclass(frozen=True)
class ResourceRef:
    """Image reference discovered inside the extracted content."""

    source_url: str
    kind: ImageKind = ImageKind.EMBEDDED
    alt_text: str = ""
    locator: Optional[str] = None


@dataclass
class DownloadOutcome:
    """Result of fetching one image; ``local_name`` is set only on success."""

    ref: ResourceRef
    local_name: Optional[str] = None
    failure_reason: Optional[FailureReason] = None

    @property
    def succeeded(self) -> bool:
        return bool(self.local_name)


@dataclass
class ConversionResult:
    """Terminal artifact of one fetch-and-convert job."""

    markdown: str
    output_path: Optional[Path] = None
    images_dir: Optional[Path] = None
    success_count: int = 0
    failed_source_urls: List[str] = field(default_factory=list)
    outcomes: List[DownloadOutcome] = field(default_factory=list)

    @classmethod
    def from_outcomes(
        cls,
        markdown: str,
        outcomes: List[DownloadOutcome],
        output_path: Optional[Path] = None,
        images_dir: Optional[Path] = None,
    ) -> "ConversionResult":
        """Derive the success count and failed URLs from per-image outcomes."""
        return cls(
            markdown=markdown,
            output_path=output_path,
            images_dir=images_dir,
            success_count=sum(1 for outcome in outcomes if outcome.succeeded),
            failed_source_urls=[
                outcome.ref.source_url for outcome in outcomes if not outcome.succeeded
            ],
            outcomes=list(outcomes),
        )
