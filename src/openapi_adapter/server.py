"""MCP server setup for the OpenAPI adapter."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import httpx
from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.server.middleware import CallNext, Middleware, MiddlewareContext
from fastmcp.tools import Tool
from fastmcp.tools.tool import ToolResult
from mcp.types import CallToolRequestParams, TextContent

from .config import Settings
from .document import get_mapping, get_str, server_base_url
from .executors import RequestDispatcher
from .loader import load_document, resolve_spec_path
from .models import Operation
from .openapi import OperationExtractor
from .service import ToolAdapter
from .validator import validate_document

logger = logging.getLogger(__name__)


PROGRAM_DIR = Path(__file__).resolve().parent

HTTP_TRANSPORTS = {"http", "streamable-http", "streamablehttp", "sse"}


class OperationTool(Tool):
    """Expose one compiled :class:`Operation` as a FastMCP tool."""

    def __init__(self, operation: Operation, adapter: ToolAdapter) -> None:
        super().__init__(
            name=operation.operation_id,
            description=operation.tool_description,
            parameters=operation.input_schema,
            tags=set(),
        )
        self._operation = operation
        self._adapter = adapter

    async def run(self, arguments: Dict[str, Any]) -> ToolResult:
        result = await self._adapter.call_tool(self._operation.operation_id, arguments)
        text = result["content"][0]["text"]
        if result["isError"]:
            raise ToolError(text)
        return ToolResult(content=[TextContent(type="text", text=text)])


class UnknownToolMiddleware(Middleware):
    """Answer calls to names outside the catalog with the adapter's error result."""

    def __init__(self, adapter: ToolAdapter) -> None:
        self._adapter = adapter

    async def on_call_tool(
        self,
        context: MiddlewareContext[CallToolRequestParams],
        call_next: CallNext[CallToolRequestParams, ToolResult],
    ) -> ToolResult:
        name = context.message.name
        if self._adapter.has_operation(name):
            return await call_next(context)
        result = await self._adapter.call_tool(name, context.message.arguments)
        raise ToolError(result["content"][0]["text"])


def load_catalog(
    settings: Settings,
    program_dir: Optional[Path] = None,
    cwd: Optional[Path] = None,
) -> Tuple[List[Operation], str]:
    """Resolve, load, validate and compile the spec. Returns operations and base URL."""
    path = resolve_spec_path(settings.openapi_file, program_dir or PROGRAM_DIR, cwd or Path.cwd())
    logger.info("Loading OpenAPI spec from: %s", path)

    document = load_document(path)
    report = validate_document(document)
    if not report.valid:
        logger.warning("OpenAPI spec has structural issues, but will attempt to use it anyway")

    operations = OperationExtractor().extract_operations(document)
    base_url = server_base_url(document, settings.default_base_url)
    logger.info(
        "Loaded %s (%s operations), using base URL: %s",
        get_str(get_mapping(document, "info"), "title", str(path)),
        len(operations),
        base_url,
    )
    return operations, base_url


def build_server(
    settings: Settings,
    program_dir: Optional[Path] = None,
    cwd: Optional[Path] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Tuple[FastMCP, ToolAdapter]:
    operations, base_url = load_catalog(settings, program_dir, cwd)
    adapter = ToolAdapter(operations, base_url, RequestDispatcher(settings, transport=transport))

    mcp = FastMCP(settings.service_name, instructions=_instructions(base_url))
    mcp.add_middleware(UnknownToolMiddleware(adapter))
    registered = set()
    for operation in operations:
        if operation.operation_id in registered:
            logger.warning(
                "Duplicate operation id %s (%s %s) replaces the earlier tool",
                operation.operation_id,
                operation.method.upper(),
                operation.path,
            )
        registered.add(operation.operation_id)
        mcp.add_tool(OperationTool(operation, adapter))
        logger.debug("Registered tool: %s", operation.operation_id)

    return mcp, adapter


def build_http_app(mcp: FastMCP, settings: Settings):  # type: ignore[no-untyped-def]
    transport = settings.adapter_transport.lower()
    if transport == "sse":
        app = mcp.http_app(transport="sse")
    elif transport == "http":
        app = mcp.http_app(transport="http", stateless_http=True, json_response=True)
    else:
        app = mcp.http_app(
            transport="streamable-http", stateless_http=True, json_response=True
        )
    _attach_healthcheck(app)
    return app


def _attach_healthcheck(app) -> None:  # type: ignore[no-untyped-def]
    async def healthcheck(_request):  # type: ignore[no-untyped-def]
        from starlette.responses import JSONResponse

        return JSONResponse({"status": "ok"})

    app.add_route("/health", healthcheck, methods=["GET"])


def _instructions(base_url: str) -> str:
    return (
        "Tools generated from an OpenAPI document. "
        f"Each tool issues one HTTP request against {base_url} and returns "
        "the response status, headers and body."
    )
