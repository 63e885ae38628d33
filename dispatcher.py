"""
Tool dispatcher.

Pairs tool names with handlers of the shape `(ctx, args) -> str | MediatedResult`,
validates raw arguments against each tool's pydantic model, converts failures
into textual error results and records one analytics entry per invocation.
This is the only place analytics is written.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Type

from pydantic import BaseModel, ValidationError

from context import ServerContext
from errors import FAILURE_SIGIL, ToolFailure, ValidationFailure
from mediator import MediatedResult

log = logging.getLogger("xmlui-mcp")

Handler = Callable[[ServerContext, BaseModel], Any]


@dataclass
class ToolResult:
    text: str
    is_error: bool = False


@dataclass
class ToolSpec:
    name: str
    handler: Handler
    args_model: Type[BaseModel]
    description: str
    category: str


def _validation_message(e: ValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(x) for x in err.get("loc", ())) or "arguments"
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    return "; ".join(parts)


class ToolDispatcher:
    def __init__(self, ctx: ServerContext):
        self.ctx = ctx
        self._tools: Dict[str, ToolSpec] = {}

    def register(
        self,
        name: str,
        handler: Handler,
        args_model: Type[BaseModel],
        description: str = "",
        category: str = "",
    ) -> ToolSpec:
        if name in self._tools:
            raise ValueError(f"tool {name!r} already registered")
        spec = ToolSpec(name, handler, args_model, description or (handler.__doc__ or "").strip(), category)
        self._tools[name] = spec
        return spec

    def tools(self) -> List[ToolSpec]:
        return list(self._tools.values())

    def get(self, name: str) -> Optional[ToolSpec]:
        return self._tools.get(name)

    # ------------------------------------------------------------------
    def invoke(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> ToolResult:
        arguments = dict(arguments or {})
        started = time.monotonic()
        output: Any = None

        spec = self._tools.get(name)
        if spec is None:
            result = ToolResult(f"{FAILURE_SIGIL} Unknown tool: {name}", is_error=True)
        else:
            result, output = self._run(spec, arguments)

        self._record(name, arguments, result, output)
        log.debug("tool %s finished in %.3fs (error=%s)", name, time.monotonic() - started, result.is_error)
        return result

    def _run(self, spec: ToolSpec, arguments: Dict[str, Any]):
        try:
            args = spec.args_model.model_validate(arguments)
        except ValidationError as e:
            failure = ValidationFailure(_validation_message(e))
            return ToolResult(f"{FAILURE_SIGIL} {spec.name}: {failure}", is_error=True), None

        try:
            output = spec.handler(self.ctx, args)
        except ToolFailure as e:
            return ToolResult(f"{FAILURE_SIGIL} {spec.name}: {e}", is_error=True), None
        except Exception:
            log.exception("tool %s failed", spec.name)
            return ToolResult(f"{FAILURE_SIGIL} {spec.name}: internal error while handling the request", is_error=True), None

        text = output.render() if isinstance(output, MediatedResult) else str(output)
        is_error = text.lstrip().startswith(FAILURE_SIGIL)
        return ToolResult(text, is_error=is_error), output

    def _record(self, name: str, arguments: Dict[str, Any], result: ToolResult, output: Any) -> None:
        analytics = self.ctx.analytics
        try:
            analytics.log_tool_invocation(
                tool_name=name,
                arguments=arguments,
                success=not result.is_error,
                result_size_chars=len(result.text),
                error_msg=result.text if result.is_error else "",
            )
            if isinstance(output, MediatedResult):
                analytics.log_search_query(
                    tool_name=name,
                    query=output.query,
                    result_count=output.result_count,
                    success=output.result_count > 0,
                    search_paths=output.search_paths,
                    found_urls=output.found_urls,
                )
        except Exception as e:
            # analytics must never fail a tool call
            log.warning("analytics record for %s dropped: %s", name, e)
