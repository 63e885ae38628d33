"""
Tool handlers.

Each handler takes the server context and its validated argument model and
returns either text or a MediatedResult. Domain failures are raised as
ToolFailure subclasses; the dispatcher turns them into error results.
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Dict, List, Optional

from context import ServerContext
from errors import NotFound, PathViolation, ValidationFailure
from mediator import (
    MediatedResult,
    MediatorConfig,
    default_classifier,
    examples_classifier,
    execute_mediated_search,
    howto_classifier,
)
from mediator.guidance import title_from_path
from mediator.headings import extract_sections, first_title
from mediator.url_registry import COMPONENTS_DIR
from sessions import DEFAULT_SESSION

from defaults.patterns import match_patterns
from defaults.schemas import (
    ComponentDocsArgs,
    ExamplesArgs,
    GetPromptArgs,
    InjectPromptArgs,
    NoArgs,
    PatternArgs,
    ReadFileArgs,
    SearchArgs,
    SearchHowtoArgs,
    SessionArgs,
)

SOURCE_DIR = "xmlui/src/components"
EXAMPLES_DIR = "docs/src/components"

READ_FILE_EXTENSIONS = (".mdx", ".tsx", ".scss", ".md")
READ_FILE_ALLOWED = ("docs/content", "docs/public/pages", "docs/src", SOURCE_DIR)

THIN_DOC_THRESHOLD = 500
MAX_SUPPLEMENT = 2000

# Variant components whose own page is thin; the parent documents the shared API.
PARENT_COMPONENTS: Dict[str, str] = {
    "CVStack": "Stack",
    "CHStack": "Stack",
    "VStack": "Stack",
    "HStack": "Stack",
    "ModalDialog": "Dialog",
    "AlertDialog": "Dialog",
    "DropdownButton": "Button",
    "IconButton": "Button",
    "ToggleButton": "Button",
    "NumberBox": "TextBox",
    "PasswordBox": "TextBox",
    "SearchBox": "TextBox",
}

_NO_CURATED_PATTERN = "No curated pattern found. Searching howto articles:"


def _search(ctx: ServerContext, cfg: MediatorConfig, query: str) -> MediatedResult:
    return execute_mediated_search(
        ctx.repo_root, cfg, query, ctx.url_registry, ctx.topic_index,
        candidates=ctx.suggestion_candidates,
    )

def _howto_config(ctx: ServerContext) -> MediatorConfig:
    return MediatorConfig(
        roots=[str(ctx.path(ctx.pages_dir, "howto"))],
        section_keys=["howtos"],
        prefer_sections=["howtos"],
        max_results=20,
        max_file_results=5,
        max_snippets_per_file=3,
        file_extensions=(".md", ".mdx"),
        classifier=howto_classifier,
    )


# ------------------------------------------------------------------------------
# Components
# ------------------------------------------------------------------------------

def list_components(ctx: ServerContext, args: NoArgs) -> str:
    """Grouped listing of every component reference page."""
    root = ctx.path(COMPONENTS_DIR)
    if not root.is_dir():
        raise NotFound(COMPONENTS_DIR)

    components: List[str] = []
    for p in root.rglob("*.md"):
        if "node_modules" in p.parts or p.name.startswith("_"):
            continue
        parts = p.relative_to(root).with_suffix("").parts
        # App/App.md is listed as plain "App"
        if len(parts) == 2 and parts[0] == parts[1]:
            components.append(parts[0])
        else:
            components.append("/".join(parts))
    components.sort()

    groups: Dict[str, List[str]] = {}
    for c in components:
        group = c.split("/", 1)[0] if "/" in c else "core"
        groups.setdefault(group, []).append(c)

    out = ["Available XMLUI components:", ""]
    for group in sorted(groups, key=lambda g: (g != "core", g)):
        out.append(f"## {group}")
        out.append("")
        for c in groups[group]:
            out.append(f'- {c.rsplit("/", 1)[-1]} → call component_docs with component: "{c}"')
        out.append("")
    return "\n".join(out)

def _component_file(ctx: ServerContext, name: str) -> Path:
    root = ctx.path(COMPONENTS_DIR).resolve()
    candidates = [root / f"{name}.md"]
    base = name.rsplit("/", 1)[-1]
    candidates.append(root / name / f"{base}.md")
    for cand in candidates:
        resolved = cand.resolve()
        if root not in resolved.parents:
            raise PathViolation(name)
        if resolved.is_file():
            return resolved
    raise NotFound(f"{COMPONENTS_DIR}/{name}.md", fragment=name)

def _supplement(ctx: ServerContext, name: str) -> str:
    base = name.rsplit("/", 1)[-1]
    parent = PARENT_COMPONENTS.get(base)
    parts: List[str] = []

    if parent:
        parent_file = ctx.path(COMPONENTS_DIR, f"{parent}.md")
        try:
            text = parent_file.read_text(encoding="utf-8", errors="replace")
        except OSError:
            text = ""
        sections = extract_sections(text, ["Properties", "Events", "Props"])
        if sections:
            parts.append(f"*From parent component {parent}:*\n\n" + "\n\n".join(sections))

    used = sum(len(p) for p in parts)
    if used < MAX_SUPPLEMENT:
        for src_name in filter(None, (base, parent)):
            src = _first_source_file(ctx.path(SOURCE_DIR, src_name))
            if src is None:
                continue
            content = src.read_text(encoding="utf-8", errors="replace")[: MAX_SUPPLEMENT - used]
            parts.append(f"*From source {src.name}:*\n\n{content}")
            break

    return "\n\n".join(parts)[:MAX_SUPPLEMENT]

def _first_source_file(directory: Path) -> Optional[Path]:
    if not directory.is_dir():
        return None
    for p in sorted(directory.iterdir()):
        if p.is_file() and p.suffix in (".md", ".tsx"):
            return p
    return None

def component_docs(ctx: ServerContext, args: ComponentDocsArgs) -> str:
    """Reference page for one component, supplemented when thin, with its Source line."""
    path = _component_file(ctx, args.component)
    content = path.read_text(encoding="utf-8", errors="replace")

    if len(content) < THIN_DOC_THRESHOLD:
        supplement = _supplement(ctx, args.component)
        if supplement:
            content += "\n\n---\n## Additional Context\n\n" + supplement

    rel = path.relative_to(ctx.repo_root).as_posix()
    source = ctx.url_registry.doc_url_for(rel) or rel
    return content + f"\n\n**Source:** {source}"


# ------------------------------------------------------------------------------
# Files
# ------------------------------------------------------------------------------

def read_file(ctx: ServerContext, args: ReadFileArgs) -> str:
    """Contents of one corpus file, restricted by extension and directory allow-list."""
    requested = args.path.replace("\\", "/")
    root = ctx.repo_root
    target = Path(os.path.realpath(root / requested))
    allowed = [Path(os.path.realpath(root / prefix)) for prefix in READ_FILE_ALLOWED]
    if not any(a in target.parents for a in allowed):
        raise PathViolation(args.path)
    if target.suffix.lower() not in READ_FILE_EXTENSIONS:
        raise ValidationFailure(
            f"extension must be one of {', '.join(READ_FILE_EXTENSIONS)}", fragment=args.path,
        )
    if not target.is_file():
        raise NotFound(args.path)
    return target.read_text(encoding="utf-8", errors="replace")


# ------------------------------------------------------------------------------
# Search
# ------------------------------------------------------------------------------

def search(ctx: ServerContext, args: SearchArgs) -> MediatedResult:
    """Mediated search over component docs, pages, authored examples and framework source."""
    roots = [
        ctx.path(COMPONENTS_DIR),
        ctx.path(ctx.pages_dir),
        ctx.path(EXAMPLES_DIR),
        ctx.path(SOURCE_DIR),
    ]
    cfg = MediatorConfig(
        roots=[str(r) for r in roots],
        section_keys=["components", "howtos", "examples", "source"],
        prefer_sections=["components", "howtos"],
        classifier=default_classifier(ctx.example_roots),
    )
    return _search(ctx, cfg, args.query)

def examples(ctx: ServerContext, args: ExamplesArgs) -> MediatedResult:
    """Mediated search over the configured example roots and the docs' authored examples."""
    roots = [str(r) for r in ctx.example_roots]
    roots.append(str(ctx.path(EXAMPLES_DIR)))
    cfg = MediatorConfig(
        roots=roots,
        section_keys=["examples"],
        prefer_sections=["examples"],
        file_extensions=(".tsx", ".xmlui", ".mdx", ".md"),
        classifier=examples_classifier,
    )
    return _search(ctx, cfg, args.query)

def search_howto(ctx: ServerContext, args: SearchHowtoArgs) -> MediatedResult:
    """Mediated search restricted to the how-to articles."""
    return _search(ctx, _howto_config(ctx), args.query)

def list_howto(ctx: ServerContext, args: NoArgs) -> str:
    """Titles of every how-to article, with documentation links where they exist."""
    howto_dir = ctx.path(ctx.pages_dir, "howto")
    if not howto_dir.is_dir():
        raise NotFound(f"{ctx.pages_dir}/howto")

    entries = []
    for p in sorted(howto_dir.rglob("*")):
        if not p.is_file() or p.suffix not in (".md", ".mdx"):
            continue
        with open(p, encoding="utf-8", errors="replace") as fh:
            title = first_title(fh)
        rel = p.relative_to(ctx.repo_root).as_posix()
        title = title or title_from_path(rel)
        url = ctx.url_registry.doc_url_for(rel)
        entries.append(f"- {title} → {url}" if url else f"- {title} ({rel})")

    if not entries:
        return "No how-to articles found."
    return "\n".join(["How-to articles:", ""] + entries)

def pattern(ctx: ServerContext, args: PatternArgs):
    """Curated snippets for common tasks, falling back to a how-to search."""
    matches = match_patterns(args.query, ctx.patterns)
    if matches:
        blocks = []
        for p in matches:
            blocks.append(f"## {p.name}\n\n```xml\n{p.code}\n```\n\n**Documentation:** {p.url}\n")
        return "\n---\n\n".join(blocks)

    result = _search(ctx, _howto_config(ctx), args.query)
    result.preface = _NO_CURATED_PATTERN
    return result


# ------------------------------------------------------------------------------
# Prompts / sessions
# ------------------------------------------------------------------------------

def inject_prompt(ctx: ServerContext, args: InjectPromptArgs) -> str:
    """Inject a prompt into a session's context."""
    session_id = args.session_id or DEFAULT_SESSION
    if args.prompt_name not in ctx.sessions.prompts:
        raise NotFound(f"prompt '{args.prompt_name}'")
    ok, message = ctx.sessions.inject_prompt(session_id, args.prompt_name)
    if not ok:
        raise ValidationFailure(message)
    return (
        f"✅ Successfully injected '{args.prompt_name}' prompt into session '{session_id}'. "
        "The guidelines are now active in your context."
    )

def list_prompts(ctx: ServerContext, args: NoArgs) -> str:
    out = ["Available prompts:", ""]
    for p in ctx.sessions.prompts.values():
        out.append(f"- **{p.name}**: {p.description}")
    out.append("")
    out.append("Use get_prompt to view content or inject_prompt to inject into context.")
    return "\n".join(out)

def get_prompt(ctx: ServerContext, args: GetPromptArgs) -> str:
    prompt = ctx.sessions.prompts.get(args.prompt_name)
    if prompt is None:
        raise NotFound(f"prompt '{args.prompt_name}'")
    return (
        f"# {prompt.name}\n\n"
        f"**Description:** {prompt.description}\n\n"
        f"**Content:**\n\n{prompt.content}\n"
    )

def get_session_context(ctx: ServerContext, args: SessionArgs) -> str:
    session = ctx.sessions.get_or_create(args.session_id or DEFAULT_SESSION)
    out = [
        f"# Session Context: {session.id}",
        "",
        f"**Last Activity:** {session.last_activity.isoformat()}",
        "",
        f"**Injected Prompts:** {', '.join(session.injected_prompts) or '(none)'}",
        "",
    ]
    if session.context:
        out.append("**Context Content:**")
        out.append("")
        for i, message in enumerate(session.context, start=1):
            out.extend([f"### Message {i}", "", message, ""])
    else:
        out.append("**Context Content:** No content in session context.")
    return "\n".join(out)


# ------------------------------------------------------------------------------
# Analytics
# ------------------------------------------------------------------------------

def analytics_summary(ctx: ServerContext, args: NoArgs) -> str:
    """Usage summary aggregated from the analytics log."""
    return json.dumps(ctx.analytics.summary(), indent=2, ensure_ascii=False)
