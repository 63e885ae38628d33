"""Per-tool search configuration and path-based section classifiers."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, FrozenSet, List, Optional, Sequence

from .query import DEFAULT_STOPWORDS

SECTION_COMPONENTS = "components"
SECTION_HOWTOS = "howtos"
SECTION_EXAMPLES = "examples"
SECTION_SOURCE = "source"
SECTION_BLOG = "blog"
SECTION_UNKNOWN = "unknown"

SECTION_WEIGHTS: Dict[str, float] = {
    SECTION_COMPONENTS: 1.5,
    SECTION_HOWTOS: 1.5,
    SECTION_EXAMPLES: 1.2,
    SECTION_SOURCE: 1.0,
    SECTION_BLOG: 0.8,
    SECTION_UNKNOWN: 0.5,
}

DEFAULT_EXTENSIONS = (".mdx", ".md", ".tsx", ".scss")
DEFAULT_SECTION_KEYS = (SECTION_COMPONENTS, SECTION_HOWTOS, SECTION_EXAMPLES, SECTION_SOURCE)

# (rel, abs) -> section label
Classifier = Callable[[str, str], str]


def detect_pages_dir(home: Path) -> str:
    """Pages moved from docs/public/pages to docs/content/pages; prefer the new layout."""
    home = Path(home)
    for candidate in ("docs/content/pages", "docs/public/pages"):
        if (home / candidate).is_dir():
            return candidate
    return "docs/content/pages"


def _under(path: str, roots: Sequence[str]) -> bool:
    for root in roots:
        if path == root or path.startswith(root.rstrip(os.sep) + os.sep):
            return True
    return False


def default_classifier(example_roots: Sequence[str] = ()) -> Classifier:
    """
    Section rules by snapshot-relative path prefix. Files under a configured
    example root are 'examples' whatever their relative path.
    """
    ex_roots = [os.path.abspath(r) for r in example_roots]

    def classify(rel: str, abs_path: str) -> str:
        if ex_roots and _under(os.path.abspath(abs_path), ex_roots):
            return SECTION_EXAMPLES
        r = rel.replace("\\", "/")
        if r.startswith("docs/content/components/"):
            return SECTION_COMPONENTS
        if r.startswith(("docs/content/pages/howto/", "docs/public/pages/howto/")):
            return SECTION_HOWTOS
        if r.startswith(("docs/content/pages/", "docs/public/pages/")):
            return SECTION_COMPONENTS
        if r.startswith(("docs/content/blog/", "docs/public/blog/", "blog/")):
            return SECTION_BLOG
        if r.startswith("docs/src/components/"):
            return SECTION_EXAMPLES
        if r.startswith("xmlui/src/components/"):
            return SECTION_SOURCE
        return SECTION_UNKNOWN

    return classify


def howto_classifier(rel: str, abs_path: str) -> str:
    return SECTION_HOWTOS


def examples_classifier(rel: str, abs_path: str) -> str:
    return SECTION_EXAMPLES


@dataclass
class MediatorConfig:
    roots: List[str]
    section_keys: Sequence[str] = DEFAULT_SECTION_KEYS
    prefer_sections: Sequence[str] = ()
    file_extensions: Sequence[str] = DEFAULT_EXTENSIONS
    max_results: int = 50
    max_snippet_length: int = 200
    max_file_results: int = 10
    max_snippets_per_file: int = 3
    stopwords: FrozenSet[str] = DEFAULT_STOPWORDS
    synonyms: Dict[str, List[str]] = field(default_factory=dict)
    classifier: Optional[Classifier] = None
    enable_filename_matches: bool = True

    def classify(self, rel: str, abs_path: str) -> str:
        classifier = self.classifier or default_classifier()
        return classifier(rel, abs_path)

    def allows(self, filename: str) -> bool:
        return filename.lower().endswith(tuple(e.lower() for e in self.file_extensions))
