"""High-level orchestration for fetching pages and producing Markdown."""

from __future__ import annotations

import logging
import os
import tempfile
import time
from pathlib import Path
from typing import List, Optional, Tuple

import requests
from bs4 import BeautifulSoup

from .config import CrawlConfig
from .content import extract_content, find_images
from .errors import FetchError, PersistenceError
from .images import download_images
from .markdown import compose_markdown, convert_to_markdown
from .models import ConversionResult, DownloadOutcome, PageContent
from .rewrite import rewrite_references

logger = logging.getLogger("fetmd")


def create_session(user_agent: str) -> requests.Session:
    """Session shared by the page fetch and the image workers of one job."""
    session = requests.Session()
    session.headers.update(
        {
            "User-Agent": user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
        }
    )
    return session


def fetch_page(
    session: requests.Session,
    url: str,
    config: CrawlConfig,
) -> Tuple[str, str]:
    """GET a page and return its HTML and the final URL after redirects."""
    logger.info("Loading %s", url)
    try:
        resp = session.get(url, timeout=config.navigation_timeout)
    except requests.RequestException as exc:
        raise FetchError(url, f"Failed to fetch page {url}: {exc}") from exc
    if not 200 <= resp.status_code < 300:
        raise FetchError(
            url,
            f"Failed to fetch page {url}: HTTP {resp.status_code}",
            status_code=resp.status_code,
        )
    html = resp.text
    final_url = resp.url or url

    if config.wait_for_selector:
        matched = BeautifulSoup(html, "html.parser").select_one(config.wait_for_selector)
        logger.debug(
            "Selector %r %s in fetched markup",
            config.wait_for_selector,
            "found" if matched is not None else "not found",
        )
    if config.wait_after_load and config.wait_after_load > 0:
        time.sleep(config.wait_after_load)
    return html, final_url


def build_output_dirs(config: CrawlConfig, page: PageContent) -> Tuple[Path, Path]:
    """Create ``<output_root>/<slug>/<image_subdir>`` and return both directories."""
    article_dir = Path(config.output_root) / page.title
    images_dir = article_dir / config.image_subdir
    try:
        images_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise PersistenceError(images_dir, f"Could not create {images_dir}: {exc}") from exc
    return article_dir, images_dir


def write_markdown(path: Path, markdown: str) -> None:
    """Write the document in one step so a failure never leaves a partial file."""
    tmp_name: Optional[str] = None
    try:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent)
        )
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(markdown)
        os.replace(tmp_name, path)
        tmp_name = None
    except OSError as exc:
        raise PersistenceError(path, f"Could not write {path}: {exc}") from exc
    finally:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)


def run(
    url: str,
    config: Optional[CrawlConfig] = None,
    session: Optional[requests.Session] = None,
) -> ConversionResult:
    """Fetch ``url``, extract its article, localize images and return Markdown.

    Raises ``FetchError`` when the page cannot be retrieved and
    ``PersistenceError`` when output cannot be written. Image failures are
    reported in the result instead.
    """
    config = config or CrawlConfig()
    session = session or create_session(config.user_agent)
    overall_start = time.perf_counter()

    def emit(phase: str, current: int, total: int, label: Optional[str] = None) -> None:
        if config.progress:
            config.progress(phase, current, total, label)

    emit("start", 0, 1)
    html, final_url = fetch_page(session, url, config)
    emit("fetch", 1, 1)

    emit("extract", 0, 1)
    page = extract_content(html, final_url, request_url=url)
    emit("extract", 1, 1)

    content_html = page.extracted_region
    outcomes: List[DownloadOutcome] = []
    article_dir: Optional[Path] = None
    images_dir: Optional[Path] = None

    if not config.content_only:
        article_dir, images_dir = build_output_dirs(config, page)
        refs = find_images(
            page.extracted_region,
            page.base_url,
            include_background=config.include_background_images,
        )
        emit("images_start", 0, len(refs))
        logger.info("Saving %d image(s) to %s", len(refs), images_dir)
        outcomes = download_images(
            refs,
            images_dir,
            session=session,
            progress=lambda current, total, label: emit("image_progress", current, total, label),
            batch_size=config.image_batch_size,
            timeout=config.image_timeout,
            max_image_bytes=config.max_image_bytes,
        )

        emit("rewrite", 0, 1)

    content_html = rewrite_references(
        content_html,
        outcomes,
        page.base_url,
        config.image_subdir,
        include_background=config.include_background_images,
    )
    if not config.content_only:
        emit("rewrite", 1, 1)

    emit("convert", 0, 1)
    body = convert_to_markdown(content_html, config.markdown)
    markdown = compose_markdown(page.title, body)
    emit("convert", 1, 1)

    output_path: Optional[Path] = None
    if article_dir is not None:
        output_path = article_dir / f"{page.title}.md"
        write_markdown(output_path, markdown)
        logger.info("Saved Markdown to %s", output_path)

    result = ConversionResult.from_outcomes(
        markdown, outcomes, output_path=output_path, images_dir=images_dir
    )
    if result.failed_source_urls:
        logger.warning(
            "Failed to download %d image(s): %s",
            len(result.failed_source_urls),
            ", ".join(result.failed_source_urls),
        )
    emit("complete", 1, 1)
    logger.debug("Processed %s in %.2fs", url, time.perf_counter() - overall_start)
    return result
