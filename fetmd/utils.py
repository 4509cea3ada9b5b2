"""Utility helpers for slug normalization and URL resolution."""

from __future__ import annotations

import logging
import re
from typing import Optional
from urllib.parse import urljoin, urlparse, urlunparse

logger = logging.getLogger("fetmd")

SLUG_PATTERN = re.compile(r"[^A-Za-z0-9_-]")
DASH_RUN_PATTERN = re.compile(r"-+")
_HIERARCHICAL_SCHEMES = {"http", "https", "ftp", "file"}


def slugify(value: str) -> str:
    """Turn a page title into a lowercase, filesystem-safe directory name."""
    normalized = SLUG_PATTERN.sub("-", value or "")
    normalized = DASH_RUN_PATTERN.sub("-", normalized).strip("-")
    return normalized.lower()


def title_from_slug(slug: str) -> str:
    """Render ``my-page-title`` as ``My Page Title``."""
    words = [word.strip() for word in slug.split("-")]
    return " ".join(word[:1].upper() + word[1:] for word in words if word)


def _normalize(url: str) -> Optional[str]:
    parsed = urlparse(url)
    if not parsed.scheme:
        return None
    scheme = parsed.scheme.lower()
    if scheme in _HIERARCHICAL_SCHEMES:
        if not parsed.netloc:
            return None
        path = parsed.path or "/"
        return urlunparse(
            (scheme, parsed.netloc.lower(), path, parsed.params, parsed.query, parsed.fragment)
        )
    return urlunparse(parsed._replace(scheme=scheme))


def resolve_url(candidate: str, base: str) -> Optional[str]:
    """Return an absolute URL for ``candidate`` or ``None`` when it cannot be resolved.

    Absolute candidates are kept as-is apart from normalization; anything else
    is joined against ``base``. The same normalization is applied on every
    path so that the result can be used as a lookup key.
    """
    candidate = (candidate or "").strip()
    if not candidate:
        return None
    try:
        absolute = _normalize(candidate)
        if absolute:
            return absolute
        if not base or not _normalize(base):
            logger.debug("Could not resolve %s: base %r is not absolute", candidate, base)
            return None
        return _normalize(urljoin(base, candidate))
    except ValueError as exc:
        logger.debug("Could not resolve URL %s: %s", candidate, exc)
        return None
