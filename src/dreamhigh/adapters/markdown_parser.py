import re

from ..core.model import (
    Bullet,
    IMAGE_EXTENSIONS,
    CodeBlock,
    Heading,
    Image,
    InlineImage,
    MarkdownBlock,
    Paragraph,
    Run,
    TextRun,
)
from ..core.ports import ParserStrategy
from .image_width import parse_width, set_image_width

DEFAULT_SCHEME = "dreamhigh"

IMAGE_RE = re.compile(r"!\[([^\]]*)\]\(([^)]+)\)(?:\{width=(\d+)\})?")
FENCE = "```"
HEADING_PREFIXES = (("# ", 1), ("## ", 2), ("### ", 3))
BULLET_PREFIXES = ("- ", "* ")


def is_image_path(text: str, scheme: str = DEFAULT_SCHEME) -> bool:
    """True for a bare image path: /abs, ~/home or <scheme>:// with an image extension."""
    if not text.lower().endswith(IMAGE_EXTENSIONS):
        return False
    return text.startswith(("/", "~", f"{scheme}://"))


def split_inline(text: str) -> list[Run]:
    """
    Split paragraph text into plain runs and inline images.

    An image directly followed by ``{width=N}`` takes the annotation with
    it. Empty text runs are dropped. A url stops at the first ``)`` and alt text
    cannot contain ``]``.
    """
    runs: list[Run] = []
    last = 0
    for m in IMAGE_RE.finditer(text):
        if m.start() > last:
            runs.append(TextRun(text[last : m.start()]))
        runs.append(
            InlineImage(
                url=m.group(2),
                alt=m.group(1) or None,
                width=int(m.group(3)) if m.group(3) else None,
                source=m.group(0),
            )
        )
        last = m.end()
    if last < len(text):
        runs.append(TextRun(text[last:]))
    return runs or [TextRun(text)]


def parse_markdown(text: str, scheme: str = DEFAULT_SCHEME) -> list[MarkdownBlock]:
    blocks: list[MarkdownBlock] = []
    paragraph: list[str] = []
    in_fence = False
    fence_lines: list[str] = []

    def flush() -> None:
        if paragraph:
            blocks.append(Paragraph(" ".join(paragraph)))
            paragraph.clear()

    for line in text.splitlines():
        trimmed = line.strip()

        if trimmed.startswith(FENCE):
            if in_fence:
                blocks.append(CodeBlock("\n".join(fence_lines)))
                fence_lines = []
                in_fence = False
            else:
                flush()
                in_fence = True
            continue

        if in_fence:
            fence_lines.append(line)
            continue

        # an image on a line of its own, width annotation allowed
        m = IMAGE_RE.fullmatch(trimmed)
        if m:
            flush()
            blocks.append(
                Image(
                    url=m.group(2),
                    alt=m.group(1) or None,
                    width=parse_width(trimmed),
                )
            )
            continue

        if not trimmed:
            flush()
            continue

        if is_image_path(trimmed, scheme):
            flush()
            blocks.append(Image(url=trimmed, alt=None, width=parse_width(trimmed)))
            continue

        for prefix, level in HEADING_PREFIXES:
            if trimmed.startswith(prefix):
                flush()
                blocks.append(Heading(trimmed[len(prefix) :], level))
                break
        else:
            if trimmed.startswith(BULLET_PREFIXES):
                flush()
                blocks.append(Bullet(trimmed[2:]))
            else:
                paragraph.append(line)

    if in_fence and fence_lines:
        blocks.append(CodeBlock("\n".join(fence_lines)))

    # the trailing paragraph keeps its line breaks
    if paragraph:
        blocks.append(Paragraph("\n".join(paragraph)))

    return blocks or [Paragraph(text)]


class MarkdownParser(ParserStrategy):
    def __init__(self, scheme: str = DEFAULT_SCHEME):
        self.scheme = scheme

    def parse(self, text: str) -> list[MarkdownBlock]:
        return parse_markdown(text, self.scheme)

    def split_inline(self, text: str) -> list[Run]:
        return split_inline(text)

    def set_image_width(
        self, text: str, url: str, alt: str | None, new_width: float
    ) -> str:
        return set_image_width(text, url, alt, new_width)
