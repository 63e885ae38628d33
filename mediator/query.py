"""Query normalization and line-matching predicates used by the staged scanner."""
from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

# Characters that carry markup meaning rather than search meaning.
_SIGILS = "\"`'{}()[]<>$@=:"
_SIGIL_TABLE = str.maketrans({c: " " for c in _SIGILS})

DEFAULT_STOPWORDS = frozenset({
    "example", "examples", "usage", "working", "actual", "real", "when",
})

_HOWTO_PATTERNS = (
    "how to", "how do", "how can", "how should", "how would",
    "tutorial", "guide", "step by step", "instructions",
    "walkthrough", "demonstration",
)

_EXAMPLE_PATTERNS = (
    "example", "examples", "demo", "sample", "show me",
    "working example", "code example", "usage example",
)


def normalize_tokens(query: str, stopwords: Iterable[str] = DEFAULT_STOPWORDS) -> Tuple[List[str], List[str]]:
    """Split *query* into (kept, removed) tokens after stripping sigils."""
    stop = set(stopwords)
    kept: List[str] = []
    removed: List[str] = []
    for tok in query.lower().translate(_SIGIL_TABLE).split():
        (removed if tok in stop else kept).append(tok)
    return kept, removed


def scoring_tokens(query: str, kept: Sequence[str]) -> List[str]:
    """Tokens used for coverage scoring; falls back to a plain split of the query."""
    return list(kept) if kept else query.lower().split()


def looks_like_concept(tokens: Sequence[str]) -> bool:
    return any(len(t) >= 3 and (t[0].isalnum() or t[0] == "_") for t in tokens)


def min_words(total: int) -> int:
    """How many query words a line needs for a partial match."""
    return total if total <= 2 else 2


def fuzzy_match(text: str, query: str) -> bool:
    """
    One word: substring test. Several words: every word must appear (AND).
    Both sides are compared lower-cased.
    """
    text = text.lower()
    query = query.lower()
    words = query.split()
    if not words:
        return False
    if len(words) == 1:
        return query.strip() in text
    return all(w in text for w in words)


def partial_match(text: str, query: str, required: int) -> bool:
    text = text.lower()
    words = query.lower().split()
    if not words:
        return False
    found = sum(1 for w in words if w in text)
    return found >= required


def is_howto_query(query: str) -> bool:
    q = query.lower()
    return any(p in q for p in _HOWTO_PATTERNS)


def is_example_query(query: str) -> bool:
    q = query.lower()
    return any(p in q for p in _EXAMPLE_PATTERNS)
