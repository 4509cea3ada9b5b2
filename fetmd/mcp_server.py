"""MCP server exposing the fetmd page conversion tool."""

from __future__ import annotations

import logging

from mcp.server.fastmcp import FastMCP

from .config import CrawlConfig
from .crawler import run

logger = logging.getLogger("fetmd.mcp")
logger.setLevel(logging.ERROR)

mcp = FastMCP(name="fetmd")


@mcp.tool()
def fetch_markdown(url: str) -> str:
    """Fetch a web page and return its main content as Markdown."""
    return run(url, CrawlConfig(content_only=True)).markdown


def main() -> None:
    """Entry point for running the MCP server."""
    logging.basicConfig(level=logging.ERROR)
    mcp.run()


if __name__ == "__main__":
    main()
