"""Markdown generation helpers backed by markdownify."""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup, Tag
from markdownify import ATX, ATX_CLOSED, SETEXT, MarkdownConverter

from .config import MarkdownOptions
from .content import IMAGE_SOURCE_ATTRIBUTES
from .utils import title_from_slug

logger = logging.getLogger("fetmd")

HEADING_STYLES = {"atx": ATX, "atx_closed": ATX_CLOSED, "setext": SETEXT}


def _chomp(text: str) -> Tuple[str, str, str]:
    """Move surrounding spaces outside of inline markers (``** foo**`` is not bold)."""
    prefix = " " if text and text[0] == " " else ""
    suffix = " " if text and text[-1] == " " else ""
    return prefix, suffix, text.strip()


def _cell_text(cell: Tag) -> str:
    return " ".join(cell.get_text().split()).replace("|", "\\|")


def _row_cells(tr: Tag) -> List[str]:
    return [_cell_text(cell) for cell in tr.find_all(["th", "td"], recursive=False)]


def table_to_markdown(table: Tag) -> str:
    """Render a table as pipe syntax with one line per row.

    The first row is the header. Row-header ``<th>`` cells in later rows
    stay in their row. Cell text is collapsed to a single line.
    """
    rows = table.find_all("tr")
    if not rows:
        return ""
    headers = _row_cells(rows[0])

    lines: List[str] = []
    if headers:
        lines.append("| " + " | ".join(headers) + " |")
        lines.append("| " + " | ".join("---" for _ in headers) + " |")
    for tr in rows[1:]:
        cells = _row_cells(tr)
        if cells:
            lines.append("| " + " | ".join(cells) + " |")
    return "\n".join(lines)


class FetmdConverter(MarkdownConverter):
    """markdownify converter with fixed inline delimiters and pipe tables."""

    class Options(MarkdownConverter.DefaultOptions):
        code_block_style = "fenced"
        fence = "```"
        horizontal_rule = "---"

    def _inline(self, el, text, marker):
        if el.find_parent("pre") is not None:
            return text
        prefix, suffix, text = _chomp(text or "")
        if not text:
            return ""
        return f"{prefix}{marker}{text}{marker}{suffix}"

    def convert_b(self, el, text, *args, **kwargs):
        return self._inline(el, text, "**")

    convert_strong = convert_b

    def convert_em(self, el, text, *args, **kwargs):
        return self._inline(el, text, "_")

    convert_i = convert_em

    def convert_code(self, el, text, *args, **kwargs):
        return self._inline(el, text, "`")

    def convert_del(self, el, text, *args, **kwargs):
        return self._inline(el, text, "~~")

    convert_s = convert_del

    def convert_img(self, el, text, *args, **kwargs):
        src = ""
        for attribute in IMAGE_SOURCE_ATTRIBUTES:
            value = (el.get(attribute) or "").strip()
            if value:
                src = value
                break
        if not src:
            return ""
        alt = el.get("alt") or ""
        title = (el.get("title") or "").replace('"', '\\"')
        title_part = f' "{title}"' if title else ""
        return f"![{alt}]({src}{title_part})"

    def convert_table(self, el, text, *args, **kwargs):
        return f"\n\n{table_to_markdown(el)}\n\n"

    def convert_hr(self, el, text, *args, **kwargs):
        return f"\n\n{self.options['horizontal_rule']}\n\n"

    def convert_pre(self, el, text, *args, **kwargs):
        if not text:
            return ""
        code = text.strip("\n")
        if self.options["code_block_style"] == "indented":
            indented = "\n".join(f"    {line}" if line else "" for line in code.split("\n"))
            return f"\n\n{indented}\n\n"
        fence = self.options["fence"]
        return f"\n\n{fence}{self._code_language(el)}\n{code}\n{fence}\n\n"

    @staticmethod
    def _code_language(el: Tag) -> str:
        code = el.find("code")
        for node in (code, el):
            if node is None:
                continue
            for cls in node.get("class") or []:
                if cls.startswith("language-"):
                    return cls[len("language-") :]
        return ""


def build_converter(options: Optional[MarkdownOptions] = None) -> FetmdConverter:
    """Create a converter configured from ``MarkdownOptions``."""
    options = options or MarkdownOptions()
    heading_style = HEADING_STYLES.get(options.heading_style.lower())
    if heading_style is None:
        raise ValueError(f"Unknown heading style: {options.heading_style!r}")
    if options.code_block_style not in ("fenced", "indented"):
        raise ValueError(f"Unknown code block style: {options.code_block_style!r}")
    return FetmdConverter(
        heading_style=heading_style,
        bullets=options.bullet_list_marker,
        code_block_style=options.code_block_style,
        fence=options.fence,
        horizontal_rule=options.horizontal_rule,
    )


def convert_to_markdown(fragment: str, options: Optional[MarkdownOptions] = None) -> str:
    """Convert an HTML fragment to Markdown, dropping scripts and styles first."""
    converter = build_converter(options)
    soup = BeautifulSoup(fragment, "html.parser")
    for tag in soup(["script", "style"]):
        tag.decompose()
    markdown = converter.convert_soup(soup)
    logger.debug("Converted %d characters of HTML to Markdown", len(fragment))
    return markdown.strip()


def compose_markdown(title_slug: str, body: str) -> str:
    """Prefix the body with a level-1 heading built from the title slug."""
    return f"# {title_from_slug(title_slug)}\n\n{body.strip()}\n"
