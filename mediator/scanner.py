"""
Three-stage line scanner.

exact   -> the lower-cased query, AND of its words
relaxed -> the same match on the stopword-filtered tokens
partial -> at least `min_words` of the filtered tokens on a line

All stages feed one accumulator keyed by absolute path, so a file keeps the
snippets it gathered in earlier stages and only gains new ones later.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Sequence, Set

from .config import MediatorConfig
from .query import (
    fuzzy_match,
    looks_like_concept,
    min_words,
    normalize_tokens,
    partial_match,
)

log = logging.getLogger("xmlui-mcp")

SKIP_DIRS = frozenset({"node_modules", ".git"})
MAX_SNIPPETS_PER_FILE_HARD = 20
FILENAME_SNIPPET = "[filename match]"

# Root path fragments by section, used to bias the partial stage.
_ROOT_MARKERS: Dict[str, Callable[[str], bool]] = {
    "components": lambda r: "/docs/content/components" in r or "/docs/public/pages" in r or "/docs/content/pages" in r,
    "howtos": lambda r: ("/docs/public/pages" in r or "/docs/content/pages" in r) and "howto" in r,
    "examples": lambda r: "/docs/src/components" in r,
    "source": lambda r: "/xmlui/src/components" in r,
}


@dataclass
class Snippet:
    line_number: int
    text: str
    is_title: bool = False


@dataclass
class FileHit:
    rel_path: str
    abs_path: str
    section: str
    score: float = 0.0
    snippets: List[Snippet] = field(default_factory=list)
    terms_found: Set[str] = field(default_factory=set)

    def has_line(self, line_number: int) -> bool:
        return any(s.line_number == line_number for s in self.snippets)


@dataclass
class StageRecord:
    stage: str
    query: str
    hits: int

    def as_dict(self) -> Dict[str, object]:
        return {"stage": self.stage, "query": self.query, "hits": self.hits}


@dataclass
class ScanResult:
    files: Dict[str, FileHit]
    query_plan: List[StageRecord]
    kept: List[str]
    removed: List[str]

    @property
    def total_hits(self) -> int:
        return sum(s.hits for s in self.query_plan)


def reorder_roots_by_preference(roots: Sequence[str], prefer: Sequence[str]) -> List[str]:
    """Stable-sort *roots* so those belonging to an earlier preferred section come first."""
    def score(root: str) -> int:
        r = root.replace("\\", "/")
        best = 0
        for i, section in enumerate(prefer):
            marker = _ROOT_MARKERS.get(section)
            if marker and marker(r):
                best = max(best, 100 - i)
        return best
    return sorted(roots, key=score, reverse=True)


class StagedScanner:
    def __init__(self, home: Path, cfg: MediatorConfig):
        self.home = os.path.abspath(str(home))
        self.cfg = cfg
        self._line_cache: Dict[str, List[str]] = {}

    # ------------------------------------------------------------------
    def run(self, query: str) -> ScanResult:
        cfg = self.cfg
        files: Dict[str, FileHit] = {}
        plan: List[StageRecord] = []

        kept, removed = normalize_tokens(query, cfg.stopwords)
        exact_q = query.lower().strip()

        plan.append(self._stage("exact", exact_q, cfg.roots, files, kept, self._exact(exact_q)))

        if kept:
            relaxed_q = " ".join(kept)
            plan.append(self._stage("relaxed", relaxed_q, cfg.roots, files, kept, self._exact(relaxed_q)))

            roots = list(cfg.roots)
            if looks_like_concept(kept) and cfg.prefer_sections:
                roots = reorder_roots_by_preference(roots, cfg.prefer_sections)
            plan.append(self._stage("partial", relaxed_q, roots, files, kept, self._partial(kept)))

        self._line_cache.clear()
        return ScanResult(files=files, query_plan=plan, kept=kept, removed=removed)

    # ------------------------------------------------------------------
    @staticmethod
    def _exact(q: str) -> Callable[[str], bool]:
        return lambda text: fuzzy_match(text, q)

    def _partial(self, kept: Sequence[str]) -> Callable[[str], bool]:
        required = min_words(len(kept))
        synonyms = self.cfg.synonyms
        if not synonyms:
            q = " ".join(kept)
            return lambda text: partial_match(text, q, required)

        variants = [[t] + [a.lower() for a in synonyms.get(t, [])] for t in kept]

        def match(text: str) -> bool:
            low = text.lower()
            return sum(1 for alts in variants if any(a in low for a in alts)) >= required
        return match

    def _stage(
        self,
        name: str,
        q: str,
        roots: Sequence[str],
        files: Dict[str, FileHit],
        kept: Sequence[str],
        matches: Callable[[str], bool],
    ) -> StageRecord:
        hits = 0
        if not q:
            return StageRecord(name, q, 0)
        for root in roots:
            for abs_path in self._walk(root):
                basename = os.path.basename(abs_path)
                if self.cfg.enable_filename_matches and matches(basename):
                    self._add(files, root, abs_path, 0, FILENAME_SNIPPET, True, kept, basename)
                    hits += 1
                for n, line in enumerate(self._lines(abs_path), start=1):
                    if matches(line):
                        self._add(files, root, abs_path, n, line, line.strip().startswith("#"), kept, line)
                        hits += 1
        log.debug("stage %s %r: %d hits", name, q, hits)
        return StageRecord(name, q, hits)

    def _walk(self, root: str):
        if os.path.isfile(root):
            if self.cfg.allows(root):
                yield os.path.abspath(root)
            return
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames[:] = sorted(d for d in dirnames if d not in SKIP_DIRS)
            for fn in sorted(filenames):
                if self.cfg.allows(fn):
                    yield os.path.abspath(os.path.join(dirpath, fn))

    def _lines(self, abs_path: str) -> List[str]:
        lines = self._line_cache.get(abs_path)
        if lines is None:
            try:
                with open(abs_path, encoding="utf-8", errors="replace") as fh:
                    lines = fh.read().splitlines()
            except OSError as e:
                log.debug("cannot read %s: %s", abs_path, e)
                lines = []
            self._line_cache[abs_path] = lines
        return lines

    def _rel(self, root: str, abs_path: str) -> str:
        if abs_path == self.home or abs_path.startswith(self.home + os.sep):
            return Path(os.path.relpath(abs_path, self.home)).as_posix()
        # Roots outside the snapshot (example roots) are reported from their parent.
        parent = os.path.dirname(os.path.abspath(root).rstrip(os.sep))
        return Path(os.path.relpath(abs_path, parent)).as_posix()

    def _add(
        self,
        files: Dict[str, FileHit],
        root: str,
        abs_path: str,
        line_number: int,
        text: str,
        is_title: bool,
        kept: Sequence[str],
        coverage_text: str,
    ) -> None:
        hit = files.get(abs_path)
        if hit is None:
            rel = self._rel(root, abs_path)
            hit = FileHit(rel_path=rel, abs_path=abs_path, section=self.cfg.classify(rel, abs_path))
            files[abs_path] = hit
        low = coverage_text.lower()
        hit.terms_found.update(t for t in kept if t in low)

        if hit.has_line(line_number) or len(hit.snippets) >= MAX_SNIPPETS_PER_FILE_HARD:
            return

        limit = self.cfg.max_snippet_length
        snippet = text.strip()
        if limit > 0 and len(snippet) > limit:
            snippet = snippet[:limit] + "..."
        hit.snippets.append(Snippet(line_number=line_number, text=snippet, is_title=is_title))
