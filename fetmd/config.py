"""Configuration objects and constants for the page converter."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

IMAGE_BATCH_SIZE = 6
MAX_IMAGE_BYTES = 10 * 1024 * 1024

# Progress sink: (phase, current, total, label)
ProgressCallback = Callable[[str, int, int, Optional[str]], None]


@dataclass
class MarkdownOptions:
    """Formatting choices for the HTML to Markdown conversion."""

    heading_style: str = "atx"
    bullet_list_marker: str = "*"
    code_block_style: str = "fenced"
    fence: str = "```"
    horizontal_rule: str = "---"


@dataclass
class CrawlConfig:
    """Top-level settings that control fetching, image handling and output."""

    output_root: Path = Path("output")
    image_subdir: str = "images"
    wait_after_load: float = 1.0
    wait_for_selector: Optional[str] = None
    viewport_width: int = 1920
    viewport_height: int = 1080
    include_background_images: bool = False
    content_only: bool = False
    markdown: MarkdownOptions = field(default_factory=MarkdownOptions)
    progress: Optional[ProgressCallback] = None
    navigation_timeout: float = 30.0
    image_timeout: float = 15.0
    image_batch_size: int = IMAGE_BATCH_SIZE
    max_image_bytes: int = MAX_IMAGE_BYTES
    user_agent: str = DEFAULT_USER_AGENT
