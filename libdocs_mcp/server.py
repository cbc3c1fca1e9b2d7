#!/usr/bin/env python3
"""
libdocs-mcp Server - Model Context Protocol interface for library documentation.

Supports stdio transport (default) and streamable HTTP (--transport http).
Run with: python -m libdocs_mcp.server

Tools:
- resolve-library-id: library name -> Context7-compatible library ID
- get-library-docs: library ID -> documentation text
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass, field, replace
import logging
import sys
import time
from typing import Any

from dotenv import load_dotenv
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import CallToolResult, TextContent, Tool, ToolAnnotations

from libdocs_mcp import __version__
from libdocs_mcp.client import RemoteDocsClient
from libdocs_mcp.config import DocsConfig, ServerSettings, load_config, load_settings
from libdocs_mcp.errors import ValidationError
from libdocs_mcp.formatting import SEARCH_RESULTS_PREAMBLE, format_search_results
from libdocs_mcp.observability import (
    MetricsCollector,
    generate_correlation_id,
    log_event,
    setup_logging,
)
from libdocs_mcp.validation import build_docs_request, build_search_query

# Configure logging to stderr (stdout carries the stdio transport)
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger("libdocs-mcp")

SERVER_INSTRUCTIONS = "Retrieves up-to-date documentation and code examples for any library."

RESOLVE_LIBRARY_ID = "resolve-library-id"
GET_LIBRARY_DOCS = "get-library-docs"

MSG_SEARCH_FAILED = "Failed to retrieve library documentation data from the documentation service"
MSG_NO_LIBRARIES = "No documentation libraries available"
MSG_DOCS_NOT_FOUND = (
    "Documentation not found or not finalized for this library. This might have happened "
    "because you used an invalid Context7-compatible library ID. To get a valid "
    "Context7-compatible library ID, use the 'resolve-library-id' with the package name "
    "you wish to retrieve documentation for."
)

_READ_ONLY_REMOTE = {
    "readOnlyHint": True,
    "openWorldHint": True,
    "idempotentHint": True,
    "destructiveHint": False,
}


def build_tools(config: DocsConfig, minimum_tokens: int) -> list[Tool]:
    """Tool definitions; descriptions mention the project defaults in effect."""
    langs = ", ".join(sorted(config.supported_langs))
    return [
        Tool(
            name=RESOLVE_LIBRARY_ID,
            title="Resolve Library ID",
            description=f"""Resolves a package name to a Context7-compatible library ID and returns a list of matching libraries.

You MUST call this function before 'get-library-docs' to obtain a valid Context7-compatible library ID.

When selecting the best match, consider:
- Name similarity to the query
- Description relevance
- Code Snippet count (documentation coverage)
- GitHub Stars (popularity)

> Language and version context come from the project config (default: {config.default_lang} {config.default_version}; supported: {langs}) but can be overridden per request.

Return the selected library ID and explain your choice. If there are multiple good matches, mention this but proceed with the most relevant one.""",
            inputSchema={
                "type": "object",
                "properties": {
                    "libraryName": {
                        "type": "string",
                        "description": "Library name to search for and retrieve a Context7-compatible library ID.",
                    },
                },
                "required": ["libraryName"],
            },
            annotations=ToolAnnotations(title="Resolve Library ID", **_READ_ONLY_REMOTE),
        ),
        Tool(
            name=GET_LIBRARY_DOCS,
            title="Get Library Documentation",
            description=(
                "Fetches up-to-date documentation for a library. You must call "
                "'resolve-library-id' first to obtain the exact Context7-compatible library ID "
                "required to use this tool. Language and version are project-aware, but can be "
                "overridden per request."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "context7CompatibleLibraryID": {
                        "type": "string",
                        "description": "Exact Context7-compatible library ID (e.g., 'mongodb/docs', 'vercel/nextjs') retrieved from 'resolve-library-id'.",
                    },
                    "topic": {
                        "type": "string",
                        "description": "Topic to focus documentation on (e.g., 'hooks', 'routing').",
                    },
                    "tokens": {
                        "type": ["number", "string"],
                        "description": f"Maximum number of tokens of documentation to retrieve (default: {minimum_tokens}). Higher values provide more context but consume more tokens.",
                    },
                    "lang": {
                        "type": "string",
                        "description": f"Programming language, e.g. 'python'. If omitted, the project default ({config.default_lang}) is used.",
                    },
                    "pythonVersion": {
                        "type": "string",
                        "description": f"Python version, e.g. '3.11'. If omitted, the project default ({config.default_version}) is used for Python.",
                    },
                },
                "required": ["context7CompatibleLibraryID"],
            },
            annotations=ToolAnnotations(title="Get Library Documentation", **_READ_ONLY_REMOTE),
        ),
    ]


@dataclass
class ResponseEnvelope:
    """Uniform tool response: error flag plus ordered text blocks."""

    is_error: bool = False
    content: list[str] = field(default_factory=list)

    @classmethod
    def ok(cls, text: str) -> ResponseEnvelope:
        return cls(is_error=False, content=[text])

    @classmethod
    def error(cls, message: str) -> ResponseEnvelope:
        return cls(is_error=True, content=[message])

    def to_call_tool_result(self) -> CallToolResult:
        return CallToolResult(
            content=[TextContent(type="text", text=text) for text in self.content],
            isError=self.is_error,
        )


class LibDocsMcpServer:
    """libdocs-mcp server implementation."""

    def __init__(
        self,
        config: DocsConfig,
        settings: ServerSettings | None = None,
        client: RemoteDocsClient | None = None,
    ):
        self.config = config
        self.settings = settings or ServerSettings()
        self.client = client or RemoteDocsClient(self.settings.api_url)
        self.metrics = MetricsCollector()
        self.server = Server("libdocs-mcp", version=__version__, instructions=SERVER_INSTRUCTIONS)

        self.tools = build_tools(config, self.settings.minimum_tokens)
        self.tool_handlers = {
            RESOLVE_LIBRARY_ID: self._handle_resolve_library_id,
            GET_LIBRARY_DOCS: self._handle_get_library_docs,
        }
        for name in self.tool_handlers:
            logger.info(f"Registered tool: {name}")

        self._register_handlers()

    def _register_handlers(self):
        """Register MCP protocol handlers."""

        @self.server.list_tools()
        async def list_tools() -> list[Tool]:
            logger.debug("list_tools called")
            return self.tools

        @self.server.call_tool()
        async def call_tool(name: str, arguments: dict) -> CallToolResult:
            envelope = await self.call_tool(name, arguments)
            return envelope.to_call_tool_result()

    async def call_tool(self, name: str, arguments: dict[str, Any] | None) -> ResponseEnvelope:
        """Dispatch a tool call. Always returns an envelope, never raises."""
        cid = generate_correlation_id()
        start_time = time.time()
        logger.debug(f"call_tool: {name}", extra={"correlation_id": cid, "tool": name})

        handler = self.tool_handlers.get(name)
        if handler is None:
            envelope = ResponseEnvelope.error(f"Unknown tool: {name}")
        else:
            try:
                envelope = await handler(arguments or {})
            except Exception as e:
                logger.exception(
                    f"Tool {name} failed: {e}", extra={"correlation_id": cid, "tool": name}
                )
                envelope = ResponseEnvelope.error(f"Error: {e}")

        latency_ms = (time.time() - start_time) * 1000
        self.metrics.record_call(name, latency_ms, success=not envelope.is_error)
        logger.debug(
            f"call_tool done: {name}",
            extra={
                "correlation_id": cid,
                "tool": name,
                "latency_ms": latency_ms,
                "status": "error" if envelope.is_error else "ok",
            },
        )
        return envelope

    async def _handle_resolve_library_id(self, args: dict) -> ResponseEnvelope:
        """Search the documentation service for libraries matching a name."""
        library_name = args.get("libraryName")
        log_event(f"{RESOLVE_LIBRARY_ID} invoked", {"libraryName": library_name})

        try:
            query = build_search_query(library_name, self.config)
        except ValidationError as e:
            log_event(
                f"{RESOLVE_LIBRARY_ID} error: invalid libraryName",
                {"libraryName": library_name, "code": e.code},
            )
            return ResponseEnvelope.error(str(e))

        try:
            response = await self.client.search(query)
            if response is None or response.results is None:
                log_event(f"{RESOLVE_LIBRARY_ID} error: no results", {"searchQuery": query})
                return ResponseEnvelope.error(MSG_SEARCH_FAILED)
            if not response.results:
                log_event(f"{RESOLVE_LIBRARY_ID} error: empty results", {"searchQuery": query})
                return ResponseEnvelope.error(MSG_NO_LIBRARIES)
            results_text = format_search_results(response)
        except Exception as e:
            log_event(
                f"{RESOLVE_LIBRARY_ID} error: exception", {"error": str(e)}, level=logging.ERROR
            )
            return ResponseEnvelope.error(f"Error: {e}")

        log_event(
            f"{RESOLVE_LIBRARY_ID} success",
            {"searchQuery": query, "results": len(response.results)},
        )
        return ResponseEnvelope.ok(SEARCH_RESULTS_PREAMBLE + results_text)

    async def _handle_get_library_docs(self, args: dict) -> ResponseEnvelope:
        """Fetch documentation text for a Context7-compatible library ID."""
        log_event(f"{GET_LIBRARY_DOCS} invoked", dict(args))

        try:
            request = build_docs_request(args, self.config, self.settings.minimum_tokens)
        except ValidationError as e:
            log_event(f"{GET_LIBRARY_DOCS} error: {e}", {**args, "code": e.code})
            return ResponseEnvelope.error(str(e))

        details = request.to_dict()
        try:
            text = await self.client.fetch(request.library_id, request)
        except Exception as e:
            log_event(
                f"{GET_LIBRARY_DOCS} error: exception", {"error": str(e)}, level=logging.ERROR
            )
            return ResponseEnvelope.error(f"Error: {e}")

        if not text:
            log_event(f"{GET_LIBRARY_DOCS} error: not found", details)
            return ResponseEnvelope.error(MSG_DOCS_NOT_FOUND)

        log_event(f"{GET_LIBRARY_DOCS} success", details)
        return ResponseEnvelope.ok(text)

    async def run_stdio(self) -> None:
        """Serve over stdin/stdout until the channel closes."""
        logger.info("Starting libdocs-mcp server (stdio transport)")
        async with stdio_server() as (read_stream, write_stream):
            logger.info("libdocs-mcp server running on stdio")
            await self.server.run(
                read_stream,
                write_stream,
                self.server.create_initialization_options(),
            )

    async def aclose(self) -> None:
        await self.client.aclose()


def build_parser() -> argparse.ArgumentParser:
    from libdocs_mcp.transport.manager import DEFAULT_HOST, DEFAULT_PORT

    parser = argparse.ArgumentParser(description="libdocs-mcp server")
    parser.add_argument(
        "--transport",
        default=None,
        help="Transport to use; 'http' selects the network listener, anything else stdio",
    )
    parser.add_argument("--host", default=DEFAULT_HOST, help="HTTP bind address")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="HTTP port")
    parser.add_argument(
        "--log-level",
        "-l",
        choices=["debug", "info", "warning", "error"],
        default=None,
        help="Override log level",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Entry point for the libdocs-mcp server."""
    from libdocs_mcp.transport import Supervisor, TransportManager

    # Existing environment variables win over .env
    load_dotenv()

    args = build_parser().parse_args(argv)

    settings = load_settings()
    if args.log_level:
        settings = replace(settings, log_level=args.log_level)
    setup_logging(settings)

    config = load_config()
    logger.info(
        f"Config loaded: defaultLang={config.default_lang}, "
        f"defaultVersion={config.default_version}, minimum_tokens={settings.minimum_tokens}"
    )

    server = LibDocsMcpServer(config, settings)
    manager = TransportManager(
        server,
        transport_flag=args.transport,
        transport_env=settings.transport,
        host=args.host,
        port=args.port,
    )
    sys.exit(Supervisor().run(manager.run))


if __name__ == "__main__":
    main()
