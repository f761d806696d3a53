"""Plain-text rendering of parsed markdown blocks."""

from collections.abc import Callable
from pathlib import Path
from typing import Any

from .errors import BlobNotFound
from .model import (
    Bullet,
    CodeBlock,
    Heading,
    Image,
    InlineImage,
    MarkdownBlock,
    Paragraph,
    Run,
    TextRun,
)

DEFAULT_IMAGE_WIDTH = 600

Resolver = Callable[[str], Path]
Splitter = Callable[[str], list[Run]]


def render_image(
    url: str,
    alt: str | None,
    width: float | None,
    resolve: Resolver,
    default_width: float = DEFAULT_IMAGE_WIDTH,
) -> str:
    """
    A resolved image shows its label and display width. A missing one is
    replaced by a placeholder with the alt text and the reference so that
    the rest of the document still renders.
    """
    try:
        path = resolve(url)
    except BlobNotFound:
        return f"[missing image: {alt or 'image'}] {url}"
    shown = default_width if width is None else width
    return f"[image: {alt or path.name}, {int(round(shown))}px]"


def _render_runs(runs: list[Run], resolve: Resolver, default_width: float) -> str:
    out = []
    for run in runs:
        if isinstance(run, InlineImage):
            out.append(render_image(run.url, run.alt, run.width, resolve, default_width))
        else:
            out.append(run.text)
    return "".join(out)


def render_blocks(
    blocks: list[MarkdownBlock],
    resolve: Resolver,
    split: Splitter,
    default_width: float = DEFAULT_IMAGE_WIDTH,
) -> str:
    lines: list[str] = []
    for block in blocks:
        if isinstance(block, Heading):
            lines.append(f"{'#' * block.level} {block.text}")
        elif isinstance(block, Paragraph):
            lines.append(_render_runs(split(block.text), resolve, default_width))
        elif isinstance(block, Bullet):
            lines.append(f"  • {_render_runs(split(block.text), resolve, default_width)}")
        elif isinstance(block, CodeBlock):
            lines.append("\n".join(f"    {ln}" for ln in block.text.split("\n")))
        elif isinstance(block, Image):
            lines.append(render_image(block.url, block.alt, block.width, resolve, default_width))
    return "\n\n".join(lines)


def run_to_dict(run: Run) -> dict[str, Any]:
    if isinstance(run, TextRun):
        return {"kind": "text", "text": run.text}
    return {"kind": "image", "url": run.url, "alt": run.alt, "width": run.width}


def block_to_dict(block: MarkdownBlock, split: Splitter | None = None) -> dict[str, Any]:
    """JSON-ready form of a block; paragraphs carry their inline runs when ``split`` is given."""
    if isinstance(block, Heading):
        return {"kind": block.kind, "text": block.text, "level": block.level}
    if isinstance(block, Image):
        return {"kind": block.kind, "url": block.url, "alt": block.alt, "width": block.width}
    data: dict[str, Any] = {"kind": block.kind, "text": block.text}
    if split is not None and isinstance(block, (Paragraph, Bullet)):
        data["runs"] = [run_to_dict(r) for r in split(block.text)]
    return data


def blocks_to_dicts(
    blocks: list[MarkdownBlock], split: Splitter | None = None
) -> list[dict[str, Any]]:
    return [block_to_dict(b, split) for b in blocks]
