import pytest

from fetmd.config import MarkdownOptions
from fetmd.markdown import compose_markdown, convert_to_markdown


def pipe_lines(markdown):
    return [line for line in markdown.splitlines() if line.startswith("|")]


def test_table_with_header_cells():
    html = """
    <table>
      <thead><tr><th>Name</th><th>Value</th></tr></thead>
      <tbody>
        <tr><td>alpha</td><td>one
            line</td></tr>
        <tr><td>beta</td><td>two</td></tr>
      </tbody>
    </table>
    """
    lines = pipe_lines(convert_to_markdown(html))
    assert lines == [
        "| Name | Value |",
        "| --- | --- |",
        "| alpha | one line |",
        "| beta | two |",
    ]


def test_table_without_header_cells_uses_first_row():
    html = "<table><tr><td>h1</td><td>h2</td></tr><tr><td>a|b</td><td>c</td></tr></table>"
    assert pipe_lines(convert_to_markdown(html)) == [
        "| h1 | h2 |",
        "| --- | --- |",
        "| a\\|b | c |",
    ]


def test_row_header_cells_stay_in_their_rows():
    html = (
        "<table>"
        "<tr><th>Metric</th><th>Q1</th><th>Q2</th></tr>"
        "<tr><th>Revenue</th><td>10</td><td>12</td></tr>"
        "<tr><th>Cost</th><td>7</td><td>8</td></tr>"
        "</table>"
    )
    assert pipe_lines(convert_to_markdown(html)) == [
        "| Metric | Q1 | Q2 |",
        "| --- | --- | --- |",
        "| Revenue | 10 | 12 |",
        "| Cost | 7 | 8 |",
    ]


@pytest.mark.parametrize(
    "html, expected",
    [
        ("<p><strong>bold</strong> and <b>bold</b></p>", "**bold** and **bold**"),
        ("<p><em>it</em> and <i>it</i></p>", "_it_ and _it_"),
        ("<p><code>x = 1</code></p>", "`x = 1`"),
        ("<p><del>gone</del> <s>gone</s></p>", "~~gone~~ ~~gone~~"),
        ("<p>a<b> spaced </b>b</p>", "a **spaced** b"),
    ],
)
def test_inline_formatting(html, expected):
    assert convert_to_markdown(html) == expected


def test_images_with_and_without_title():
    html = '<p><img src="images/a.png" alt="A" title="Figure 1"> <img src="b.png"></p>'
    markdown = convert_to_markdown(html)
    assert '![A](images/a.png "Figure 1")' in markdown
    assert "![](b.png)" in markdown


def test_lazy_image_uses_fallback_attribute():
    assert convert_to_markdown('<img data-src="https://example.com/pic" alt="p">') == (
        "![p](https://example.com/pic)"
    )


def test_scripts_and_styles_are_removed():
    html = "<style>.x{color:red}</style><p>Text</p><script>alert('hi')</script>"
    assert convert_to_markdown(html) == "Text"


def test_headings_lists_and_rules_follow_options():
    html = "<h2>Section</h2><ul><li>one</li><li>two</li></ul><hr><p>end</p>"
    markdown = convert_to_markdown(html)
    assert "## Section" in markdown
    assert "* one" in markdown
    assert "\n---\n" in markdown

    custom = convert_to_markdown(
        html, MarkdownOptions(bullet_list_marker="-", horizontal_rule="***")
    )
    assert "- one" in custom
    assert "\n***\n" in custom


def test_code_blocks_fenced_and_indented():
    html = '<pre><code class="language-python">print("hi")\nx = 2</code></pre>'
    fenced = convert_to_markdown(html)
    assert fenced == '```python\nprint("hi")\nx = 2\n```'
    assert "`" not in convert_to_markdown(html, MarkdownOptions(code_block_style="indented"))
    tilde = convert_to_markdown(html, MarkdownOptions(fence="~~~"))
    assert tilde.startswith("~~~python")


def test_unknown_heading_style_is_rejected():
    with pytest.raises(ValueError):
        convert_to_markdown("<p>x</p>", MarkdownOptions(heading_style="fancy"))


def test_compose_markdown_adds_title_heading():
    assert compose_markdown("my-great-post", "\n\nBody\n") == "# My Great Post\n\nBody\n"
