from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from context import ServerContext
from dispatcher import ToolDispatcher
from defaults import handlers
from defaults.schemas import *


def register_default_tools(mcp: FastMCP, ctx: ServerContext) -> ToolDispatcher:
    """Register default tools; every call goes through one dispatcher bound to *ctx*."""

    # Track default tools for list_tools() function
    if not hasattr(mcp, '_default_tools_registry'):
        mcp._default_tools_registry = []

    dispatcher = ToolDispatcher(ctx)
    mcp._dispatcher = dispatcher

    def _add(name: str, handler, args_model, description: str, category: str) -> None:
        dispatcher.register(name, handler, args_model, description, category)
        mcp._default_tools_registry.append({
            "name": name,
            "description": description,
            "category": category,
        })

    def _call(name: str, args: Optional[Dict[str, Any]] = None) -> str:
        result = dispatcher.invoke(name, args)
        if result.is_error:
            raise ToolError(result.text)
        return result.text

    # ------------------------------------------------------------------------------
    # Components / files
    # ------------------------------------------------------------------------------

    @mcp.tool()
    def list_components() -> str:
        """List every XMLUI component with documentation, grouped by family."""
        return _call("list_components")

    _add("list_components", handlers.list_components, NoArgs,
         "List every XMLUI component with documentation, grouped by family.", "components")

    @mcp.tool()
    def component_docs(args: ComponentDocsArgs) -> str:
        """Return a component's reference documentation with its documentation URL."""
        return _call("component_docs", args.model_dump())

    _add("component_docs", handlers.component_docs, ComponentDocsArgs,
         "Return a component's reference documentation with its documentation URL.", "components")

    @mcp.tool()
    def read_file(args: ReadFileArgs) -> str:
        """Read a documentation or component source file from the XMLUI snapshot."""
        return _call("read_file", args.model_dump())

    _add("read_file", handlers.read_file, ReadFileArgs,
         "Read a documentation or component source file from the XMLUI snapshot.", "files")

    # ------------------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------------------

    @mcp.tool()
    def search(args: SearchArgs) -> str:
        """Search XMLUI component docs, pages, examples and source; returns ranked, cited results."""
        return _call("search", args.model_dump())

    _add("search", handlers.search, SearchArgs,
         "Search XMLUI component docs, pages, examples and source; returns ranked, cited results.", "search")

    @mcp.tool()
    def examples(args: ExamplesArgs) -> str:
        """Search usage examples in the configured example apps and the docs' playground samples."""
        return _call("examples", args.model_dump())

    _add("examples", handlers.examples, ExamplesArgs,
         "Search usage examples in the configured example apps and the docs' playground samples.", "search")

    @mcp.tool()
    def list_howto() -> str:
        """List the titles of all XMLUI how-to articles."""
        return _call("list_howto")

    _add("list_howto", handlers.list_howto, NoArgs,
         "List the titles of all XMLUI how-to articles.", "howto")

    @mcp.tool()
    def search_howto(args: SearchHowtoArgs) -> str:
        """Search the XMLUI how-to articles."""
        return _call("search_howto", args.model_dump())

    _add("search_howto", handlers.search_howto, SearchHowtoArgs,
         "Search the XMLUI how-to articles.", "howto")

    @mcp.tool()
    def pattern(args: PatternArgs) -> str:
        """Return curated XMLUI snippets for a common task, or matching how-to articles."""
        return _call("pattern", args.model_dump())

    _add("pattern", handlers.pattern, PatternArgs,
         "Return curated XMLUI snippets for a common task, or matching how-to articles.", "howto")

    # ------------------------------------------------------------------------------
    # Prompts / sessions
    # ------------------------------------------------------------------------------

    @mcp.tool()
    def inject_prompt(args: InjectPromptArgs) -> str:
        """Inject a prompt (e.g. 'xmlui_rules') into a session's context."""
        return _call("inject_prompt", args.model_dump())

    _add("inject_prompt", handlers.inject_prompt, InjectPromptArgs,
         "Inject a prompt (e.g. 'xmlui_rules') into a session's context.", "prompts")

    @mcp.tool()
    def list_prompts() -> str:
        """List the available prompts."""
        return _call("list_prompts")

    _add("list_prompts", handlers.list_prompts, NoArgs,
         "List the available prompts.", "prompts")

    @mcp.tool()
    def get_prompt(args: GetPromptArgs) -> str:
        """Show a prompt's description and content."""
        return _call("get_prompt", args.model_dump())

    _add("get_prompt", handlers.get_prompt, GetPromptArgs,
         "Show a prompt's description and content.", "prompts")

    @mcp.tool()
    def get_session_context(args: Optional[SessionArgs] = None) -> str:
        """Show the prompts injected into a session and its accumulated context."""
        return _call("get_session_context", args.model_dump() if args else None)

    _add("get_session_context", handlers.get_session_context, SessionArgs,
         "Show the prompts injected into a session and its accumulated context.", "prompts")

    # ------------------------------------------------------------------------------
    # Analytics
    # ------------------------------------------------------------------------------

    @mcp.tool()
    def analytics_summary() -> str:
        """Summarize tool usage and search success recorded by this server."""
        return _call("analytics_summary")

    _add("analytics_summary", handlers.analytics_summary, NoArgs,
         "Summarize tool usage and search success recorded by this server.", "analytics")

    return dispatcher
