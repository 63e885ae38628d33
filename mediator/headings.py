"""
Markdown heading scanner.

ATX headings (`#` .. `######`) are recognised only outside fenced code
blocks, so `# comment` lines inside ```` ``` ```` examples are not mistaken
for document structure.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Sequence

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.*?)(?:\s+#+)?\s*$")
_FENCE_RE = re.compile(r"^\s*(```|~~~)")
_ANCHOR_RE = re.compile(r"\[#[^\]]*\]")
_SLUG_DROP_RE = re.compile(r"[^a-z0-9\- ]")


@dataclass(frozen=True)
class Heading:
    level: int
    text: str
    line_number: int  # 1-based


def iter_headings(lines: Iterable[str]) -> Iterator[Heading]:
    fence = None
    for n, line in enumerate(lines, start=1):
        m = _FENCE_RE.match(line)
        if m:
            marker = m.group(1)
            if fence is None:
                fence = marker
            elif fence == marker:
                fence = None
            continue
        if fence is not None:
            continue
        m = _HEADING_RE.match(line.rstrip("\n"))
        if m:
            yield Heading(level=len(m.group(1)), text=m.group(2).strip(), line_number=n)


def strip_anchor(text: str) -> str:
    """Remove `[#anchor]` markers from heading text."""
    return _ANCHOR_RE.sub("", text).strip()


def slugify(text: str) -> str:
    """URL fragment for a heading: lower-case, spaces to dashes, punctuation dropped."""
    s = _SLUG_DROP_RE.sub("", strip_anchor(text).lower())
    return re.sub(r"\s+", "-", s.strip())


def first_title(lines: Iterable[str]) -> str:
    """Text of the first level-1 heading, or '' if there is none."""
    for h in iter_headings(lines):
        if h.level == 1:
            return strip_anchor(h.text)
    return ""


def extract_sections(text: str, names: Sequence[str], level: int = 2) -> List[str]:
    """
    Return the blocks (heading line included) of every level-*level* heading
    whose text matches one of *names* case-insensitively. A block ends at the
    next heading of the same or a higher level.
    """
    wanted = {n.lower() for n in names}
    lines = text.splitlines()
    headings = list(iter_headings(lines))
    blocks: List[str] = []
    for i, h in enumerate(headings):
        if h.level != level or strip_anchor(h.text).lower() not in wanted:
            continue
        end = len(lines)
        for nxt in headings[i + 1:]:
            if nxt.level <= level:
                end = nxt.line_number - 1
                break
        blocks.append("\n".join(lines[h.line_number - 1:end]).rstrip())
    return blocks
