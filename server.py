from __future__ import annotations
import os, json, sys, logging
from pathlib import Path
from typing import List, Optional, Sequence

import click
from dotenv import load_dotenv
from mcp.server.fastmcp import FastMCP

from analytics import Analytics
from context import ServerContext
from errors import ProvisioningError
from mediator import DEFAULT_BASE_URL
from provisioner import ANALYTICS_FILENAME, SERVER_LOG_FILENAME, default_cache_root, ensure_corpus, read_marker
from sessions import DEFAULT_SESSION, XMLUI_RULES

load_dotenv()
load_dotenv(dotenv_path=Path(__file__).parent / ".env", override=False)

# Log to STDERR only (stdio transport cannot receive stdout noise)
logging.basicConfig(stream=sys.stderr, level=logging.INFO)
log = logging.getLogger("xmlui-mcp")

INSTRUCTIONS = (
    "Documentation assistant for the XMLUI framework. Use list_components and "
    "component_docs for component reference, search for everything else, "
    "list_howto/search_howto and pattern for task recipes, and examples for real "
    "usage. Cite the documentation URLs the tools return; never invent XMLUI syntax."
)


# ------------------------------------------------------------------------------
# Server factory
# ------------------------------------------------------------------------------

def create_server(ctx: ServerContext, name: str = "xmlui") -> FastMCP:
    """FastMCP instance with the default tools and the xmlui_rules prompt registered."""
    from defaults.tools import register_default_tools

    mcp = FastMCP(name, instructions=INSTRUCTIONS)
    register_default_tools(mcp, ctx)

    @mcp.prompt(name=XMLUI_RULES.name, description=XMLUI_RULES.description)
    def xmlui_rules() -> str:
        return XMLUI_RULES.content

    # Rules are active from the first call, without the client asking.
    ctx.sessions.inject_prompt(DEFAULT_SESSION, XMLUI_RULES.name)
    return mcp


def _example_roots(example_root: Optional[str], example_dirs: Optional[str], extra: Sequence[str]) -> List[Path]:
    roots: List[Path] = []
    if example_root:
        names = [d.strip() for d in (example_dirs or "").split(",") if d.strip()]
        if names:
            roots.extend(Path(example_root) / n for n in names)
        else:
            roots.append(Path(example_root))
    roots.extend(Path(e) for e in extra)

    kept = []
    for r in roots:
        if r.is_dir():
            kept.append(r)
        else:
            log.warning("example directory %s does not exist; skipped", r)
    return kept


def _attach_file_log(cache_root: Path) -> None:
    try:
        cache_root.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(cache_root / SERVER_LOG_FILENAME, encoding="utf-8")
    except OSError as e:
        log.warning("process log disabled: %s", e)
        return
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    logging.getLogger().addHandler(handler)


def _startup_info(ctx: ServerContext, mcp: FastMCP) -> str:
    return json.dumps({
        "repo": str(ctx.repo_root),
        "xmlui_version": read_marker(ctx.repo_root) or None,
        "example_roots": [str(r) for r in ctx.example_roots],
        "tools": [t["name"] for t in mcp._default_tools_registry],
        "prompts": list(ctx.sessions.prompts),
    })


# ------------------------------------------------------------------------------
# Entry point
# ------------------------------------------------------------------------------

@click.command()
@click.argument("repo_dir", required=False, type=click.Path(file_okay=False))
@click.argument("example_root", required=False, type=click.Path(file_okay=False))
@click.argument("example_dirs", required=False)
@click.option("-e", "--example", "extra_examples", multiple=True, type=click.Path(file_okay=False),
              help="Additional example directory (repeatable).")
@click.option("--http", "http_mode", is_flag=True, help="Serve over streamable HTTP instead of stdio.")
@click.option("--port", default=8080, show_default=True, type=int, help="Port for --http.")
@click.option("--xmlui-version", envvar="XMLUI_VERSION", default=None,
              help="Pin an XMLUI release, e.g. 0.11.4 (ignored when REPO_DIR is given).")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging.")
def main(repo_dir, example_root, example_dirs, extra_examples, http_mode, port, xmlui_version, verbose):
    """
    XMLUI documentation MCP server.

    REPO_DIR is an already-extracted XMLUI source tree; without it the release
    snapshot is downloaded into the cache root. EXAMPLE_ROOT and the
    comma-separated EXAMPLE_DIRS name example apps to search.
    """
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    cache_root = default_cache_root()
    _attach_file_log(cache_root)

    if repo_dir:
        home = Path(repo_dir)
        if not home.is_dir():
            raise click.BadParameter(f"{repo_dir} is not a directory", param_hint="REPO_DIR")
    else:
        try:
            home = ensure_corpus(cache_root, version=xmlui_version)
        except ProvisioningError as e:
            log.error("could not provision the XMLUI snapshot: %s", e)
            raise click.ClickException(str(e))

    ctx = ServerContext(
        repo_root=home,
        example_roots=_example_roots(example_root, example_dirs, extra_examples),
        base_url=os.getenv("XMLUI_DOCS_BASE_URL", DEFAULT_BASE_URL),
        analytics=Analytics(cache_root / ANALYTICS_FILENAME),
    )
    mcp = create_server(ctx)
    log.info("xmlui-mcp starting: %s", _startup_info(ctx, mcp))

    if http_mode:
        mcp.settings.port = port
        mcp.run(transport="streamable-http")
    else:
        mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
