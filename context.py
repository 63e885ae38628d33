"""
ServerContext: everything a tool handler needs, passed explicitly.

The URL registry, topic index, curated pattern table and pages-directory
detection are built lazily, at most once per context, under a lock. After
the first build the cached values are immutable and read without locking.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, List, Sequence

from analytics import Analytics
from mediator import DEFAULT_BASE_URL, TopicIndex, URLRegistry, detect_pages_dir
from mediator.suggestions import component_names
from sessions import SessionManager


class _Once:
    """One-shot builder: `get()` runs the factory the first time and caches the value."""

    def __init__(self, factory: Callable[[], Any]):
        self._factory = factory
        self._lock = threading.Lock()
        self._done = False
        self._value: Any = None

    def get(self) -> Any:
        if self._done:
            return self._value
        with self._lock:
            if not self._done:
                self._value = self._factory()
                self._done = True
        return self._value


@dataclass
class ServerContext:
    repo_root: Path
    example_roots: List[Path] = field(default_factory=list)
    base_url: str = DEFAULT_BASE_URL
    analytics: Analytics = field(default_factory=lambda: Analytics(None))
    sessions: SessionManager = field(default_factory=SessionManager)

    def __post_init__(self):
        self.repo_root = Path(self.repo_root).resolve()
        self.example_roots = [Path(p).resolve() for p in self.example_roots]
        self._pages_dir = _Once(lambda: detect_pages_dir(self.repo_root))
        self._registry = _Once(lambda: URLRegistry.build(self.repo_root, self.base_url))
        self._topics = _Once(lambda: TopicIndex.build(self.repo_root, self.pages_dir, self.url_registry))
        self._patterns = _Once(self._load_patterns)

    # ------------------------------------------------------------------
    @property
    def pages_dir(self) -> str:
        """Snapshot-relative pages directory ('docs/content/pages' or 'docs/public/pages')."""
        return self._pages_dir.get()

    @property
    def url_registry(self) -> URLRegistry:
        return self._registry.get()

    @property
    def topic_index(self) -> TopicIndex:
        return self._topics.get()

    @property
    def patterns(self) -> Sequence[Any]:
        return self._patterns.get()

    def suggestion_candidates(self) -> List[str]:
        return component_names(self.repo_root)

    def path(self, *parts: str) -> Path:
        return self.repo_root.joinpath(*parts)

    def _load_patterns(self):
        from defaults.patterns import load_patterns
        return load_patterns(self.url_registry)
