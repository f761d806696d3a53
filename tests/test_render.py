"""Tests for plain-text rendering and block serialization."""

from pathlib import Path

from dreamhigh.adapters.markdown_parser import parse_markdown, split_inline
from dreamhigh.core.errors import BlobNotFound
from dreamhigh.core.model import Bullet, CodeBlock, Heading, Image, Paragraph
from dreamhigh.core.render import block_to_dict, blocks_to_dicts, render_blocks, render_image


def _resolver(known):
    def resolve(url):
        if url in known:
            return Path("/data/images") / url.rsplit("/", 1)[-1]
        raise BlobNotFound(url)
    return resolve


def test_render_image_default_width():
    resolve = _resolver({"dreamhigh://images/a.png"})
    assert render_image("dreamhigh://images/a.png", "chart", None, resolve) == "[image: chart, 600px]"


def test_render_image_configured_default():
    resolve = _resolver({"dreamhigh://images/a.png"})
    out = render_image("dreamhigh://images/a.png", None, None, resolve, default_width=480)
    assert out == "[image: a.png, 480px]"


def test_render_image_missing_placeholder():
    """Test that an unresolvable reference renders as a placeholder."""
    out = render_image("dreamhigh://images/gone.png", "chart", 300, _resolver(set()))
    assert out == "[missing image: chart] dreamhigh://images/gone.png"
    out = render_image("dreamhigh://images/gone.png", None, None, _resolver(set()))
    assert out == "[missing image: image] dreamhigh://images/gone.png"


def test_render_blocks():
    """Test a document with every block kind, one image missing."""
    text = (
        "# Acme\n"
        "## Round 1\n"
        "- see ![board](dreamhigh://images/b.png){width=320} here\n"
        "```\nSELECT 1;\n```\n"
        "![gone](dreamhigh://images/gone.png)"
    )
    resolve = _resolver({"dreamhigh://images/b.png"})
    out = render_blocks(parse_markdown(text), resolve, split_inline)
    assert out == (
        "# Acme\n\n"
        "## Round 1\n\n"
        "  • see [image: board, 320px] here\n\n"
        "    SELECT 1;\n\n"
        "[missing image: gone] dreamhigh://images/gone.png"
    )


def test_render_keeps_going_after_missing_image():
    resolve = _resolver(set())
    blocks = [Image("x://a.png", "a"), Paragraph("after")]
    assert render_blocks(blocks, resolve, split_inline).endswith("after")


def test_block_to_dict_shapes():
    assert block_to_dict(Heading("T", 2)) == {"kind": "heading", "text": "T", "level": 2}
    assert block_to_dict(Image("u", None, 300)) == {
        "kind": "image", "url": "u", "alt": None, "width": 300,
    }
    assert block_to_dict(CodeBlock("x")) == {"kind": "code", "text": "x"}


def test_block_to_dict_runs():
    """Test that paragraphs and bullets carry inline runs when a splitter is given."""
    data = block_to_dict(Paragraph("a ![p](u){width=200} b"), split_inline)
    assert data["runs"] == [
        {"kind": "text", "text": "a "},
        {"kind": "image", "url": "u", "alt": "p", "width": 200},
        {"kind": "text", "text": " b"},
    ]
    assert "runs" not in block_to_dict(Bullet("plain"))


def test_blocks_to_dicts_order():
    dicts = blocks_to_dicts(parse_markdown("# A\ntext"))
    assert [d["kind"] for d in dicts] == ["heading", "paragraph"]
