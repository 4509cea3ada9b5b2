import fetmd.mcp_server as mcp_server
from fetmd.models import ConversionResult


def test_fetch_markdown_runs_content_only(monkeypatch):
    seen = {}

    def fake_run(url, config):
        seen["url"] = url
        seen["config"] = config
        return ConversionResult(markdown="# Example\n\nBody\n")

    monkeypatch.setattr(mcp_server, "run", fake_run)
    assert mcp_server.fetch_markdown("https://example.com/") == "# Example\n\nBody\n"
    assert seen["url"] == "https://example.com/"
    assert seen["config"].content_only is True
