"""
Topic index derived from the heading structure of the documentation.

Each unique `#`/`##` heading in the pages tree and the component reference
pages becomes a topic whose trigger terms are the heading's words. Files that
carry a matched topic get a ranking bonus.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Sequence, Tuple

from .headings import iter_headings, slugify, strip_anchor
from .url_registry import COMPONENTS_DIR, URLRegistry

log = logging.getLogger("xmlui-mcp")

# Single-word headings that appear on nearly every page and say nothing
# about its subject.
GENERIC_HEADINGS = frozenset({
    "properties", "events", "examples", "example", "overview", "methods",
    "styling", "usage", "introduction", "notes", "parts", "props", "api",
    "description", "summary", "behaviors", "variables", "default",
})

_TERM_RE = re.compile(r"[^\W_]{2,}")


@dataclass(frozen=True)
class TopicEntry:
    name: str
    trigger_terms: Tuple[str, ...]
    canonical_docs: Tuple[str, ...]
    urls: Tuple[str, ...]


class TopicIndex:
    def __init__(self, entries: Sequence[TopicEntry]):
        self.entries: Tuple[TopicEntry, ...] = tuple(entries)

    def __len__(self) -> int:
        return len(self.entries)

    def names(self) -> List[str]:
        return [e.name for e in self.entries]

    def match_topics(self, tokens: Iterable[str]) -> List[TopicEntry]:
        """Every entry sharing at least one trigger term with *tokens*, in build order."""
        wanted = {t.lower() for t in tokens}
        if not wanted:
            return []
        return [e for e in self.entries if wanted.intersection(e.trigger_terms)]

    # ------------------------------------------------------------------
    @classmethod
    def build(cls, home: Path, pages_dir: str, registry: URLRegistry) -> "TopicIndex":
        home = Path(home)
        entries: List[TopicEntry] = []
        seen = set()
        for rel in _doc_files(home, (pages_dir, COMPONENTS_DIR)):
            try:
                lines = (home / rel).read_text(encoding="utf-8", errors="replace").splitlines()
            except OSError as e:
                log.debug("topic index: skipping %s: %s", rel, e)
                continue
            file_url = registry.doc_url_for(rel)
            canonical = rel.rsplit(".", 1)[0]
            for h in iter_headings(lines):
                if h.level > 2:
                    continue
                entry = _entry_for(h.level, h.text, canonical, file_url, seen)
                if entry is not None:
                    entries.append(entry)
        log.info("Topic index built with %d entries", len(entries))
        return cls(entries)


def _entry_for(level: int, raw: str, canonical: str, file_url, seen: set):
    name = strip_anchor(raw)
    key = name.lower()
    if not key or key in seen:
        return None
    seen.add(key)
    terms = tuple(dict.fromkeys(_TERM_RE.findall(key)))
    if not terms:
        return None
    if len(terms) == 1 and terms[0] in GENERIC_HEADINGS:
        return None
    urls: Tuple[str, ...] = ()
    if file_url:
        urls = (f"{file_url}#{slugify(name)}",) if level == 2 else (file_url,)
    return TopicEntry(name=name, trigger_terms=terms, canonical_docs=(canonical,), urls=urls)


def _doc_files(home: Path, dirs: Sequence[str]) -> List[str]:
    out: List[str] = []
    for d in dirs:
        base = home / d
        if not base.is_dir():
            continue
        for p in sorted(base.rglob("*")):
            if p.is_file() and p.suffix in (".md", ".mdx"):
                out.append(p.relative_to(home).as_posix())
    return out
