"""Rewrite ``{width=N}`` annotations on image lines of a markdown document."""

import re

WIDTH_RE = re.compile(r"\{width=(\d+)\}")


def parse_width(text: str) -> int | None:
    """Return the first ``{width=N}`` value found in ``text``, or None."""
    m = WIDTH_RE.search(text)
    if not m:
        return None
    return int(m.group(1))


def _looks_like_image(text: str) -> bool:
    start = text.find("![")
    return start != -1 and text.find("](", start) != -1


def set_image_width(text: str, url: str, alt: str | None, new_width: float) -> str:
    """
    Return ``text`` with the width annotation of every line that embeds
    ``url`` replaced by ``{width=<new_width>}``.

    Only the first existing annotation on a line is removed. The width is
    written as given (rounded); callers clamp it first. ``alt`` is not used
    to pick lines. Line endings are kept as they are.
    """
    token = f"{{width={int(round(new_width))}}}"
    out = []
    for raw in text.splitlines(keepends=True):
        line = raw.splitlines()[0]
        ending = raw[len(line) :]
        if url in line and _looks_like_image(line):
            line = WIDTH_RE.sub("", line, count=1).rstrip()
            if not line.endswith(")"):
                line += ")"
            line += token
        out.append(line + ending)
    return "".join(out)
