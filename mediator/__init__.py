"""Mediated search over the XMLUI corpus snapshot.

A query runs through three scan stages (exact, relaxed, partial), the hits are
scored per file and ranked, and the ranked files are wrapped with facets,
confidence, tool hints and registry-validated documentation links.
"""
from __future__ import annotations

from .config import (
    MediatorConfig,
    default_classifier,
    detect_pages_dir,
    examples_classifier,
    howto_classifier,
)
from .mediator import MediatedResult, execute_mediated_search
from .topic_index import TopicEntry, TopicIndex
from .url_registry import DEFAULT_BASE_URL, URLRegistry

__all__ = [
    "DEFAULT_BASE_URL",
    "MediatedResult",
    "MediatorConfig",
    "TopicEntry",
    "TopicIndex",
    "URLRegistry",
    "default_classifier",
    "detect_pages_dir",
    "examples_classifier",
    "execute_mediated_search",
    "howto_classifier",
]
