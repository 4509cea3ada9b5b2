"""HTML extraction of the article region and the images it references."""

from __future__ import annotations

import logging
import re
from typing import List, Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Tag
from readability import Document

from .models import ImageKind, PageContent, ResourceRef
from .utils import resolve_url, slugify

logger = logging.getLogger("fetmd")

CONTENT_CONTAINER_SELECTORS = ("#content",)
CHROME_TAGS = ("nav", "header", "footer", "script", "style", "noscript")
IMAGE_SOURCE_ATTRIBUTES = ("src", "data-src", "data-original")

# Inline styles only: there is no style engine, so stylesheet rules are not seen.
BACKGROUND_URL_PATTERN = re.compile(
    r"background(?:-image)?\s*:[^;]*?url\(\s*(['\"]?)(.*?)\1\s*\)",
    re.IGNORECASE,
)


def _has_content(node: Tag) -> bool:
    return bool(node.get_text(strip=True)) or node.find("img") is not None


def _declared_title(soup: BeautifulSoup) -> str:
    # <title> inside inline SVG names the graphic, not the document.
    for title in soup.find_all("title"):
        if title.find_parent("svg") is None:
            return title.get_text(" ", strip=True)
    return ""


def _page_title(soup: BeautifulSoup, request_url: str) -> str:
    declared = _declared_title(soup)
    host = urlparse(request_url).hostname or ""
    for candidate in (declared, host):
        slug = slugify(candidate)
        if slug:
            return slug
    return "page"


def _container_region(soup: BeautifulSoup) -> Optional[str]:
    """Return the inner markup of an explicit content container, if any."""
    for selector in CONTENT_CONTAINER_SELECTORS:
        container = soup.select_one(selector)
        if container is None:
            continue
        toc = container.select_one("#table-of-contents")
        if toc is not None:
            toc.decompose()
        if _has_content(container):
            return container.decode_contents()
    return None


def _readability_region(html: str) -> Optional[str]:
    try:
        summary_html = Document(html).summary(html_partial=True)
    except Exception as exc:  # pylint: disable=broad-except
        logger.warning("Readability failed to find an article: %s", exc)
        return None
    summary = BeautifulSoup(summary_html, "html.parser")
    if not _has_content(summary):
        return None
    return summary.decode()


def _body_region(html: str) -> Optional[str]:
    """Whole body with navigation, headers, footers and scripts removed."""
    soup = BeautifulSoup(html, "html.parser")
    root = soup.body or soup
    for tag in root(list(CHROME_TAGS)):
        tag.decompose()
    if soup.head is not None and root is soup:
        soup.head.decompose()
    if not _has_content(root):
        return None
    return root.decode_contents()


def extract_content(
    html: str,
    base_url: str,
    request_url: Optional[str] = None,
) -> PageContent:
    """Pick the article region of a fetched page and derive its title slug."""
    soup = BeautifulSoup(html, "html.parser")
    title = _page_title(soup, request_url or base_url)

    region = _container_region(soup)
    mode = "container"
    if region is None:
        region = _readability_region(html)
        mode = "readability"
    if region is None:
        logger.warning(
            "Could not identify the main content of %s; using the page body", base_url
        )
        region = _body_region(html)
        mode = "body"
    if region is None:
        logger.warning(
            "Page body of %s is empty after cleanup; falling back to the full HTML",
            base_url,
        )
        region = html
        mode = "raw"

    logger.debug("Extracted %d characters of content via %s", len(region), mode)
    return PageContent(
        raw_markup=html,
        base_url=base_url,
        title=title,
        extracted_region=region,
        extraction_mode=mode,
    )


def image_source_attribute(img: Tag) -> Optional[str]:
    """Name of the first non-empty source attribute of an ``<img>``."""
    for attribute in IMAGE_SOURCE_ATTRIBUTES:
        value = img.get(attribute)
        if value and value.strip():
            return attribute
    return None


def background_image_url(style: str) -> Optional[str]:
    """Extract the ``url(...)`` argument of a background declaration."""
    match = BACKGROUND_URL_PATTERN.search(style or "")
    if match and match.group(2).strip():
        return match.group(2).strip()
    return None


def element_locator(element: Tag) -> str:
    """Build a CSS selector for an element: its id, or a tag/class path from the root."""
    element_id = element.get("id")
    if element_id:
        return f"#{element_id}"
    path: List[str] = []
    current = element
    while isinstance(current, Tag) and current.name != "[document]":
        selector = current.name
        classes = current.get("class") or []
        if classes:
            selector += "." + ".".join(classes)
        path.insert(0, selector)
        current = current.parent
    return " > ".join(path)


def find_images(
    fragment: str,
    base_url: str,
    include_background: bool = False,
) -> List[ResourceRef]:
    """Enumerate the images referenced inside an extracted content fragment."""
    soup = BeautifulSoup(fragment, "html.parser")
    refs: List[ResourceRef] = []
    seen = set()

    for img in soup.find_all("img"):
        attribute = image_source_attribute(img)
        if attribute is None:
            continue
        src = img[attribute].strip()
        if src.lower().startswith("data:"):
            continue
        url = resolve_url(src, base_url)
        if url is None or url in seen:
            continue
        seen.add(url)
        refs.append(
            ResourceRef(
                source_url=url,
                kind=ImageKind.EMBEDDED,
                alt_text=(img.get("alt") or "").strip(),
            )
        )

    if include_background:
        for element in soup.find_all(style=True):
            candidate = background_image_url(element["style"])
            if not candidate or candidate.lower().startswith("data:"):
                continue
            url = resolve_url(candidate, base_url)
            if url is None or url in seen:
                continue
            seen.add(url)
            refs.append(
                ResourceRef(
                    source_url=url,
                    kind=ImageKind.BACKGROUND,
                    locator=element_locator(element),
                )
            )

    logger.debug("Found %d image(s) in extracted content", len(refs))
    return refs
