"""Point image references in extracted content at downloaded files."""

from __future__ import annotations

import logging
from pathlib import PurePosixPath
from typing import Dict, Optional, Sequence

from bs4 import BeautifulSoup

from .content import BACKGROUND_URL_PATTERN, IMAGE_SOURCE_ATTRIBUTES
from .models import DownloadOutcome
from .utils import resolve_url

logger = logging.getLogger("fetmd")


def build_image_map(outcomes: Sequence[DownloadOutcome], image_subdir: str) -> Dict[str, str]:
    """Map resolved source URLs of successful downloads to relative local paths."""
    return {
        outcome.ref.source_url: str(PurePosixPath(image_subdir) / outcome.local_name)
        for outcome in outcomes
        if outcome.succeeded
    }


def _resolve_reference(value: str, base_url: str) -> Optional[str]:
    value = (value or "").strip()
    if not value or value.lower().startswith("data:"):
        return None
    return resolve_url(value, base_url)


def rewrite_references(
    fragment: str,
    outcomes: Sequence[DownloadOutcome],
    base_url: str,
    image_subdir: str = "images",
    include_background: bool = False,
) -> str:
    """Point image references at local files, or at their absolute URLs.

    References with a successful download get the local path; every other
    resolvable reference is made absolute. Unresolvable values stay as they
    are. Inline styles are replaced by a bare ``background-image`` only when
    ``include_background`` is set.
    """
    image_map = build_image_map(outcomes, image_subdir)
    soup = BeautifulSoup(fragment, "html.parser")

    replaced = 0
    for img in soup.find_all("img"):
        for attribute in IMAGE_SOURCE_ATTRIBUTES:
            resolved = _resolve_reference(img.get(attribute), base_url)
            if resolved is None:
                continue
            local_path = image_map.get(resolved)
            img[attribute] = local_path or resolved
            replaced += bool(local_path)

    for element in soup.find_all(style=True):
        style = element["style"]
        match = BACKGROUND_URL_PATTERN.search(style)
        if not match:
            continue
        resolved = _resolve_reference(match.group(2), base_url)
        if resolved is None:
            continue
        local_path = image_map.get(resolved) if include_background else None
        if local_path:
            element["style"] = f"background-image: url('{local_path}')"
            replaced += 1
        else:
            element["style"] = style[: match.start(2)] + resolved + style[match.end(2) :]

    logger.debug("Rewrote %d image reference(s) to local files", replaced)
    return soup.body.decode_contents() if soup.body else soup.decode()
