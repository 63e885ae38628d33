"""
Mediated search: staged scan -> ranking -> guidance -> text block.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

from .config import MediatorConfig
from .guidance import Facet, Guidance, build_facets, build_guidance, confidence, CONFIDENCE_LOW
from .query import scoring_tokens
from .ranking import rank, select_snippets
from .scanner import FileHit, ScanResult, StageRecord, StagedScanner
from .suggestions import suggest
from .topic_index import TopicEntry, TopicIndex
from .url_registry import URLRegistry

log = logging.getLogger("xmlui-mcp")

MAX_SUGGESTIONS = 3
MAX_TOPICS_SHOWN = 5


@dataclass
class ResultItem:
    type: str
    path: str
    abs_path: str
    line: int
    snippet: str
    score: float


@dataclass
class MediatedResult:
    query: str
    kept: List[str]
    removed: List[str]
    query_plan: List[StageRecord]
    ranked: List[FileHit]
    sections: Dict[str, List[ResultItem]]
    facets: Dict[str, Facet]
    confidence: str
    topics: List[TopicEntry]
    guidance: Guidance
    suggestions: Optional[List[str]] = None
    max_results: int = 50
    total_hits: int = 0
    search_paths: List[str] = field(default_factory=list)
    preface: str = ""

    # -- analytics hooks ---------------------------------------------------
    @property
    def result_count(self) -> int:
        return sum(len(items) for items in self.sections.values())

    @property
    def found_urls(self) -> List[str]:
        return [d.url for d in self.guidance.documentation_urls]

    # ---------------------------------------------------------------------
    def as_dict(self) -> Dict[str, Any]:
        return {
            "query_plan": [s.as_dict() for s in self.query_plan],
            "tokens": {"kept": self.kept, "removed": self.removed},
            "sections": {
                k: [vars(i) for i in items] for k, items in self.sections.items()
            },
            "facets": {k: vars(f) for k, f in self.facets.items()},
            "confidence": self.confidence,
            "topics": [t.name for t in self.topics],
            "suggestions": self.suggestions or [],
            "documentation_urls": [vars(d) for d in self.guidance.documentation_urls],
        }

    def render(self) -> str:
        out: List[str] = []
        if self.preface:
            out.append(self.preface.rstrip("\n"))
            out.append("")
        out.append(
            f'Query: "{self.query}"  (files={len(self.ranked)}, '
            f"total_hits={self.total_hits}, confidence={self.confidence})"
        )
        if self.topics:
            out.append("Topics: " + ", ".join(t.name for t in self.topics[:MAX_TOPICS_SHOWN]))

        if not self.ranked:
            out.append("")
            out.append("No matches found.")
        else:
            out.append("Facets: " + "  ".join(f.render(k) for k, f in self.facets.items()))
            out.append("")
            remaining = self.max_results
            for items in self.sections.values():
                by_path: Dict[str, List[ResultItem]] = {}
                for item in items:
                    by_path.setdefault(item.path, []).append(item)
                for path, file_items in by_path.items():
                    if remaining <= 0:
                        break
                    first = file_items[0]
                    out.append(f"## {path}  (score={first.score:.2f}, section={first.type})")
                    for item in file_items[:remaining]:
                        out.append(f"  L{item.line}: {item.snippet}")
                    remaining -= min(len(file_items), remaining)
                    out.append("")

        out.append("---")
        out.extend(self._render_guidance())
        if self.suggestions is not None:
            if self.suggestions:
                out.append("Did you mean: " + ", ".join(self.suggestions) + "?")
            else:
                out.append("Did you mean: (no close matches found)")
        return "\n".join(out).rstrip() + "\n"

    def _render_guidance(self) -> List[str]:
        g = self.guidance
        lines: List[str] = []
        if g.tool_hierarchy:
            lines.append("Preferred tools: " + ", ".join(g.tool_hierarchy))
        if g.preferred_tool:
            lines.append(f"Preferred tool: {g.preferred_tool}")
        if g.suggested_approach:
            lines.append(f"Suggested approach: {g.suggested_approach}")
        if g.rule_reminders:
            lines.append("Reminders:")
            lines.extend(f"  - {r}" for r in g.rule_reminders)
        if g.documentation_urls:
            lines.append("Documentation URLs:")
            lines.extend(f"  - {d.title}: {d.url}" for d in g.documentation_urls)
        return lines


def execute_mediated_search(
    home: Path,
    cfg: MediatorConfig,
    query: str,
    registry: URLRegistry,
    topics: TopicIndex,
    candidates: Optional[Callable[[], Iterable[str]]] = None,
) -> MediatedResult:
    """Run the staged scan for *query* and assemble the ranked, guided result."""
    scan: ScanResult = StagedScanner(home, cfg).run(query)
    kept = scan.kept
    tokens = scoring_tokens(query, kept)

    matched_topics = topics.match_topics(tokens)
    ranked = rank(scan.files, kept, matched_topics, cfg.max_file_results)

    sections: Dict[str, List[ResultItem]] = {k: [] for k in cfg.section_keys}
    for hit in ranked:
        bucket = sections.setdefault(hit.section, [])
        for s in select_snippets(hit, cfg.max_snippets_per_file):
            bucket.append(ResultItem(
                type=hit.section, path=hit.rel_path, abs_path=hit.abs_path,
                line=s.line_number, snippet=s.text, score=round(hit.score, 4),
            ))

    facets = build_facets(ranked, cfg.section_keys)
    conf = confidence(facets, scan.total_hits)
    guidance = build_guidance(
        query, tokens, conf, facets, ranked, scan.files.values(), scan.total_hits, registry,
    )

    suggestions = None
    if not ranked or conf == CONFIDENCE_LOW:
        pool: List[str] = list(candidates()) if candidates else []
        pool.extend(topics.names())
        suggestions = suggest(query, pool, MAX_SUGGESTIONS)

    result = MediatedResult(
        query=query,
        kept=kept,
        removed=scan.removed,
        query_plan=scan.query_plan,
        ranked=ranked,
        sections=sections,
        facets=facets,
        confidence=conf,
        topics=matched_topics,
        guidance=guidance,
        suggestions=suggestions,
        max_results=cfg.max_results,
        total_hits=scan.total_hits,
        search_paths=list(cfg.roots),
    )
    if log.isEnabledFor(logging.DEBUG):
        log.debug("mediated search %r: %s", query, json.dumps(result.as_dict(), default=str))
    return result
