"""'Did you mean' suggestions for queries that found little or nothing."""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, List

from .url_registry import COMPONENTS_DIR

MAX_EDIT_DISTANCE = 3
_NO_MATCH = 1000


def levenshtein(a: str, b: str) -> int:
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)
    prev = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        cur = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            cur.append(min(prev[j] + 1, cur[j - 1] + 1, prev[j - 1] + cost))
        prev = cur
    return prev[-1]


def component_names(home: Path) -> List[str]:
    """Base names of every component page, extension packages included."""
    comp_dir = Path(home) / COMPONENTS_DIR
    if not comp_dir.is_dir():
        return []
    names = []
    for p in sorted(comp_dir.rglob("*.md")):
        if not p.name.startswith("_"):
            names.append(p.stem)
    return names


def _score(candidate: str, query: str, tokens: List[str]) -> int:
    cand = candidate.lower()
    best = _NO_MATCH
    for tok in tokens:
        if tok in cand:
            best = min(best, len(cand) - len(tok))
        lev = levenshtein(tok, cand)
        if lev <= MAX_EDIT_DISTANCE:
            best = min(best, lev)
    if query and query in cand:
        best = 0
    lev = levenshtein(query, cand)
    if lev <= MAX_EDIT_DISTANCE:
        best = min(best, lev)
    return best


def suggest(query: str, candidates: Iterable[str], max_n: int = 3) -> List[str]:
    """
    Rank *candidates* by their closest distance to the query or one of its
    words (containment counts as the length difference). Exact
    case-insensitive matches of the query are never suggested.
    """
    q = query.strip().lower()
    tokens = q.split()
    scored = []
    seen = set()
    for cand in candidates:
        if cand in seen:
            continue
        seen.add(cand)
        s = _score(cand, q, tokens)
        if s < _NO_MATCH:
            scored.append((s, cand))
    scored.sort(key=lambda x: x[0])

    out: List[str] = []
    for _, cand in scored:
        if cand.lower() == q:
            continue
        out.append(cand)
        if len(out) >= max_n:
            break
    return out
