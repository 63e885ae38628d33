"""Per-file scoring, ranking and snippet selection."""
from __future__ import annotations

import posixpath
from typing import Dict, Iterable, List, Sequence

from .config import SECTION_WEIGHTS
from .scanner import FileHit, Snippet
from .topic_index import TopicEntry

FILENAME_BONUS = 2.0
TOPIC_BONUS = 5.0
DENSITY_BONUS = 0.1


def topic_paths(topics: Iterable[TopicEntry]) -> List[str]:
    paths: List[str] = []
    for t in topics:
        for doc in t.canonical_docs:
            if doc not in paths:
                paths.append(doc)
    return paths


def score_file(hit: FileHit, kept: Sequence[str], bonus_paths: Sequence[str]) -> float:
    """
    coverage * section weight
      + 2.0 if a kept token is in the file name
      + 5.0 if the file is a canonical doc of a matched topic
      + 0.1 per snippet
    """
    unique = set(kept)
    coverage = len(hit.terms_found & unique) / len(unique) if unique else 0.0
    score = coverage * SECTION_WEIGHTS.get(hit.section, SECTION_WEIGHTS["unknown"])

    basename = posixpath.basename(hit.rel_path).lower()
    if any(t in basename for t in unique):
        score += FILENAME_BONUS
    if any(p in hit.rel_path for p in bonus_paths):
        score += TOPIC_BONUS
    score += DENSITY_BONUS * len(hit.snippets)
    return score


def rank(
    files: Dict[str, FileHit],
    kept: Sequence[str],
    topics: Sequence[TopicEntry],
    max_file_results: int,
) -> List[FileHit]:
    """Score every file, sort descending (ties keep discovery order) and truncate."""
    bonus = topic_paths(topics)
    hits = list(files.values())
    for hit in hits:
        hit.score = score_file(hit, kept, bonus)
    ranked = sorted(hits, key=lambda h: h.score, reverse=True)
    if max_file_results > 0:
        ranked = ranked[:max_file_results]
    return ranked


def _is_heading(s: Snippet) -> bool:
    return s.is_title or s.text.strip().startswith("#")


def select_snippets(hit: FileHit, limit: int) -> List[Snippet]:
    """Headings and filename matches first, then the rest in encounter order."""
    titles = [s for s in hit.snippets if _is_heading(s)]
    rest = [s for s in hit.snippets if not _is_heading(s)]
    chosen = titles + rest
    return chosen[:limit] if limit > 0 else chosen
