"""
Agent guidance synthesized from a ranked result: facets, confidence, tool
hints, rule reminders and validated documentation links.
"""
from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence

from .query import is_example_query, is_howto_query
from .scanner import FileHit
from .url_registry import URLRegistry

CONFIDENCE_LOW = "low"
CONFIDENCE_MEDIUM = "medium"
CONFIDENCE_HIGH = "high"

TOOL_HIERARCHY = ["examples (preferred)", "search_howto (preferred)", "search (fallback)"]

_BASE_REMINDERS = [
    "Do not provide code without a documented working example.",
    "Do not invent syntax that is not documented.",
    "Cite sources with file paths and line numbers.",
    "Link to the documentation URLs listed below when giving answers.",
]

_NOT_FOUND_TEMPLATE = (
    "Say: 'I searched for [feature] and found no documented working examples.' "
    "Then list what the documentation does cover."
)


@dataclass
class Facet:
    files: int = 0
    matches: int = 0

    def render(self, name: str) -> str:
        if self.files == 1:
            return f"{name}={self.matches}"
        return f"{name}={self.files} files ({self.matches} matches)"


@dataclass
class DocumentationURL:
    title: str
    url: str
    section: str


@dataclass
class Guidance:
    rule_reminders: List[str] = field(default_factory=list)
    suggested_approach: str = ""
    preferred_tool: str = ""
    tool_hierarchy: List[str] = field(default_factory=list)
    documentation_urls: List[DocumentationURL] = field(default_factory=list)


# ------------------------------------------------------------------------------
# Facets / confidence
# ------------------------------------------------------------------------------

def build_facets(ranked: Sequence[FileHit], section_keys: Sequence[str]) -> Dict[str, Facet]:
    """One facet per section key (in order), plus any other section a ranked file landed in."""
    facets: Dict[str, Facet] = {k: Facet() for k in section_keys}
    for hit in ranked:
        facet = facets.setdefault(hit.section, Facet())
        facet.files += 1
        facet.matches += len(hit.snippets)
    return facets


def confidence(facets: Dict[str, Facet], total_hits: int) -> str:
    if total_hits == 0:
        return CONFIDENCE_LOW
    comp = facets.get("components", Facet())
    howto = facets.get("howtos", Facet())
    if comp.files + howto.files >= 2 or comp.matches + howto.matches > 5:
        return CONFIDENCE_HIGH
    return CONFIDENCE_MEDIUM


# ------------------------------------------------------------------------------
# Links
# ------------------------------------------------------------------------------

def title_from_path(path: str) -> str:
    """'paginate-a-list.md' -> 'Paginate A List'."""
    name = posixpath.splitext(posixpath.basename(path.replace("\\", "/")))[0]
    return " ".join(w[:1].upper() + w[1:].lower() for w in name.split("-") if w) or name


def documentation_urls(ranked: Sequence[FileHit], registry: URLRegistry) -> List[DocumentationURL]:
    out: List[DocumentationURL] = []
    seen = set()
    for hit in ranked:
        url = registry.doc_url_for(hit.rel_path)
        if not url or url in seen:
            continue
        seen.add(url)
        out.append(DocumentationURL(title=title_from_path(hit.rel_path), url=url, section=hit.section))
    return out


# ------------------------------------------------------------------------------
# Risk detectors
# ------------------------------------------------------------------------------

def detect_feature_combination(tokens: Sequence[str], hits: Iterable[FileHit]) -> bool:
    """
    True when the query has several terms and no single snippet, across all
    hits, contains two of them.
    """
    unique = list(dict.fromkeys(t.lower() for t in tokens))
    if len(unique) < 2:
        return False
    for hit in hits:
        for s in hit.snippets:
            text = s.text.lower()
            if sum(1 for t in unique if t in text) >= 2:
                return False
    return True


def detect_syntax_invention_risk(tokens: Sequence[str], facets: Dict[str, Facet]) -> bool:
    risk = 0
    if len(tokens) >= 2:
        risk += 1
    if sum(f.files for f in facets.values()) < 3:
        risk += 1
    if facets.get("examples", Facet()).files == 0 and facets.get("howtos", Facet()).files == 0:
        risk += 1
    return risk >= 2


# ------------------------------------------------------------------------------
# Guidance
# ------------------------------------------------------------------------------

def _failure_guidance(query: str) -> Guidance:
    g = Guidance(rule_reminders=_BASE_REMINDERS + [
        "No documentation matched this query; do not provide code examples.",
        "State that the feature is not documented and acknowledge the limitation.",
    ])
    if is_howto_query(query):
        g.rule_reminders += [
            "For how-to questions call list_howto first,",
            "then search_howto with the specific terms.",
        ]
        g.suggested_approach = _NOT_FOUND_TEMPLATE + " How-to order: list_howto -> search_howto -> search."
        g.preferred_tool = "list_howto"
    elif is_example_query(query):
        g.rule_reminders += [
            "For example requests call the examples tool,",
            "searching for the component name without the word 'example'.",
        ]
        g.suggested_approach = _NOT_FOUND_TEMPLATE + " Use examples with the core component name."
        g.preferred_tool = "examples"
    else:
        g.rule_reminders += [
            "Try simpler terms without modifiers.",
            "Use examples for usage patterns and search_howto for tutorials.",
        ]
        g.suggested_approach = _NOT_FOUND_TEMPLATE + " Search again for the core component or concept name."
    return g


def build_guidance(
    query: str,
    tokens: Sequence[str],
    conf: str,
    facets: Dict[str, Facet],
    ranked: Sequence[FileHit],
    all_hits: Iterable[FileHit],
    total_hits: int,
    registry: URLRegistry,
) -> Guidance:
    hierarchy = list(TOOL_HIERARCHY) if (is_howto_query(query) or is_example_query(query)) else []

    if total_hits == 0:
        g = _failure_guidance(query)
        g.tool_hierarchy = hierarchy
        return g

    g = Guidance(
        rule_reminders=list(_BASE_REMINDERS),
        tool_hierarchy=hierarchy,
        documentation_urls=documentation_urls(ranked, registry),
    )

    if detect_feature_combination(tokens, all_hits):
        g.rule_reminders += [
            "No single snippet shows these terms together; verify the features compose before combining them.",
            "If no one example demonstrates the combination, say it is not documented.",
        ]
        g.suggested_approach = (
            "Start with: 'I searched for [combination] and found no documented example "
            "showing these features used together.'"
        )
    elif is_example_query(query) and facets.get("examples", Facet()).files == 0:
        g.rule_reminders += ["Example query found no examples.", "Use the examples tool for usage patterns."]
        g.suggested_approach = "Try examples first, then search_howto."
        g.preferred_tool = "examples"
    elif is_howto_query(query) and facets.get("howtos", Facet()).files == 0:
        g.rule_reminders += ["How-to query found no how-to articles.", "Use search_howto for tutorial content."]
        g.suggested_approach = "Try search_howto first, then examples."
        g.preferred_tool = "search_howto"
    elif conf == CONFIDENCE_LOW:
        g.rule_reminders += ["Limited documentation found.", "Verify the feature exists before describing it."]
        g.suggested_approach = "Cross-reference several sources and state what remains uncertain."
    elif detect_syntax_invention_risk(tokens, facets):
        g.rule_reminders += [
            "Several terms with thin documentation coverage.",
            "Cite the exact line for any code you show.",
        ]
        g.suggested_approach = "Use the form: 'According to [file:line], the syntax is ...' and cite the URLs below."
    else:
        g.rule_reminders += ["Cite documentation sources.", "Provide the documentation URLs below."]
    return g
