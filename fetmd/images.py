"""Image downloading and validation utilities."""

from __future__ import annotations

import logging
import re
import time
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path, PurePosixPath
from typing import Callable, Dict, List, Optional, Sequence
from urllib.parse import unquote, urlparse

import requests

from .config import IMAGE_BATCH_SIZE, MAX_IMAGE_BYTES
from .models import DownloadOutcome, FailureReason, ResourceRef

logger = logging.getLogger("fetmd")

IMAGE_EXTENSIONS = ("jpg", "jpeg", "png", "gif", "bmp", "svg", "webp")
SVG_CONTENT_TYPE = "application/svg+xml"
FILENAME_PATTERN = re.compile(r"[^A-Za-z0-9.-]")

# (completed, total, label)
DownloadProgress = Callable[[int, int, str], None]


def image_extension(url: str) -> Optional[str]:
    """Return the known image extension at the end of the URL path, if any."""
    suffix = PurePosixPath(urlparse(url).path).suffix.lower().lstrip(".")
    return suffix if suffix in IMAGE_EXTENSIONS else None


def image_filename(url: str, extension: str) -> str:
    """Derive a sanitized local filename from the last URL path segment."""
    segment = unquote(PurePosixPath(urlparse(url).path).name)
    stem = segment[: -(len(extension) + 1)] if segment.lower().endswith(f".{extension}") else segment
    if not stem.strip("."):
        stem = f"image-{time.time_ns()}"
    return FILENAME_PATTERN.sub("_", f"{stem}.{extension}")


def is_image_content_type(content_type: Optional[str]) -> bool:
    mime = (content_type or "").split(";")[0].strip().lower()
    return mime.startswith("image/") or mime == SVG_CONTENT_TYPE


def group_by_host(refs: Sequence[ResourceRef]) -> Dict[str, List[int]]:
    """Group ref indexes by origin host, keeping first-seen host order."""
    groups: Dict[str, List[int]] = OrderedDict()
    for index, ref in enumerate(refs):
        host = (urlparse(ref.source_url).hostname or "").lower()
        groups.setdefault(host, []).append(index)
    return groups


def fetch_image(
    session: requests.Session,
    ref: ResourceRef,
    destination_dir: Path,
    timeout: float = 15.0,
    max_image_bytes: int = MAX_IMAGE_BYTES,
) -> DownloadOutcome:
    """Download a single image; every failure is reported, never raised."""
    url = ref.source_url
    extension = image_extension(url)
    if not extension:
        logger.warning("Skipping %s: could not determine image extension", url)
        return DownloadOutcome(ref, failure_reason=FailureReason.UNSUPPORTED_EXTENSION)

    try:
        resp = session.get(url, timeout=timeout)
    except requests.RequestException as exc:
        logger.warning("Failed to fetch image %s: %s", url, exc)
        return DownloadOutcome(ref, failure_reason=FailureReason.NETWORK_ERROR)

    if not 200 <= resp.status_code < 300:
        logger.warning("Invalid image response for %s: %s", url, resp.status_code)
        return DownloadOutcome(ref, failure_reason=FailureReason.HTTP_STATUS)

    content_type = resp.headers.get("Content-Type", "")
    if not is_image_content_type(content_type):
        logger.warning("Invalid content type for %s: %s", url, content_type)
        return DownloadOutcome(ref, failure_reason=FailureReason.CONTENT_TYPE)

    data = resp.content
    if max_image_bytes and len(data) > max_image_bytes:
        logger.warning(
            "Skipping %s: image larger than %s bytes", url, max_image_bytes
        )
        return DownloadOutcome(ref, failure_reason=FailureReason.TOO_LARGE)

    filename = image_filename(url, extension)
    destination = destination_dir / filename
    try:
        destination.write_bytes(data)
    except OSError as exc:
        logger.warning("Failed to write image %s: %s", destination, exc)
        return DownloadOutcome(ref, failure_reason=FailureReason.WRITE_ERROR)

    logger.debug("Saved image to %s", destination)
    return DownloadOutcome(ref, local_name=filename)


def download_images(
    refs: Sequence[ResourceRef],
    destination_dir: Path,
    session: Optional[requests.Session] = None,
    progress: Optional[DownloadProgress] = None,
    batch_size: int = IMAGE_BATCH_SIZE,
    timeout: float = 15.0,
    max_image_bytes: int = MAX_IMAGE_BYTES,
) -> List[DownloadOutcome]:
    """Download images host by host in concurrent batches of ``batch_size``.

    Returns one outcome per ref, in the order of ``refs``. ``progress`` is
    called from the calling thread after each item finishes, so the completed
    count it receives rises by exactly one per call.
    """
    if not refs:
        return []
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")

    session = session or requests.Session()
    outcomes: List[Optional[DownloadOutcome]] = [None] * len(refs)
    total = len(refs)
    completed = 0

    with ThreadPoolExecutor(max_workers=batch_size) as executor:
        for host, indexes in group_by_host(refs).items():
            logger.debug("Downloading %d image(s) from %s", len(indexes), host or "<no host>")
            for start in range(0, len(indexes), batch_size):
                batch = indexes[start : start + batch_size]
                futures = {
                    executor.submit(
                        fetch_image,
                        session,
                        refs[index],
                        destination_dir,
                        timeout,
                        max_image_bytes,
                    ): index
                    for index in batch
                }
                for future in as_completed(futures):
                    index = futures[future]
                    outcome = future.result()
                    outcomes[index] = outcome
                    completed += 1
                    if progress:
                        progress(
                            completed,
                            total,
                            outcome.local_name or refs[index].source_url,
                        )

    succeeded = sum(1 for outcome in outcomes if outcome and outcome.succeeded)
    logger.info("Downloaded %d of %d image(s)", succeeded, total)
    return [outcome for outcome in outcomes if outcome is not None]
