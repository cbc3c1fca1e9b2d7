"""HTTP server with streamable HTTP transport for MCP network mode."""

from __future__ import annotations

from collections.abc import AsyncIterator
import contextlib
import json
import logging
from typing import TYPE_CHECKING

from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from starlette.applications import Starlette
from starlette.responses import JSONResponse
from starlette.routing import Route
from starlette.types import ASGIApp, Receive, Scope, Send
import uvicorn

if TYPE_CHECKING:
    from starlette.requests import Request

    from libdocs_mcp.server import LibDocsMcpServer

logger = logging.getLogger(__name__)

MCP_PATH = "/mcp"


class RequestLogMiddleware:
    """ASGI middleware logging method, path and headers of every HTTP request."""

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            headers = {
                k.decode("latin-1"): v.decode("latin-1") for k, v in scope.get("headers", [])
            }
            method = scope.get("method")
            path = scope.get("path")
            if method and path:
                logger.info(f"HTTP {method} {path} Headers: {json.dumps(headers)}")
            else:
                logger.info(f"HTTP incoming request with missing method/path. Keys: {list(scope)}")
        await self.app(scope, receive, send)


class _StreamableHttpEndpoint:
    """Raw ASGI endpoint handing requests to the MCP session manager."""

    def __init__(self, session_manager: StreamableHTTPSessionManager):
        self.session_manager = session_manager

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self.session_manager.handle_request(scope, receive, send)


class MCPHttpServer:
    """
    HTTP server that exposes MCP over streamable HTTP.

    Example:
        server = MCPHttpServer(mcp_server, host="0.0.0.0", port=9700)
        await server.serve()  # Returns only when uvicorn shuts down
    """

    def __init__(
        self,
        mcp_server: LibDocsMcpServer,
        host: str = "0.0.0.0",
        port: int = 9700,
        log_level: str = "info",
    ):
        """
        Initialize HTTP server.

        Args:
            mcp_server: The libdocs-mcp server instance to expose
            host: Bind address
            port: Port number
            log_level: uvicorn log level
        """
        if not (0 <= port <= 65535):
            raise ValueError(f"Invalid port: {port}")

        self.mcp_server = mcp_server
        self.host = host
        self.port = port
        self.log_level = log_level

        self.session_manager = StreamableHTTPSessionManager(app=mcp_server.server)
        self.app = self._create_app()

        logger.info(f"HTTP server initialized (will bind to {self.host}:{self.port})")

    def _create_app(self) -> Starlette:
        """Create the Starlette ASGI application."""
        app = Starlette(
            routes=[
                Route("/health", endpoint=self._health, methods=["GET"]),
                Route(MCP_PATH, endpoint=_StreamableHttpEndpoint(self.session_manager)),
            ],
            lifespan=self._lifespan,
        )
        app.add_middleware(RequestLogMiddleware)
        return app

    @contextlib.asynccontextmanager
    async def _lifespan(self, app: Starlette) -> AsyncIterator[None]:
        async with self.session_manager.run():
            logger.info("HTTP server starting up")
            try:
                yield
            finally:
                logger.info("HTTP server shutting down")

    async def _health(self, request: Request) -> JSONResponse:
        """
        Health check endpoint.

        Returns:
            {"status": "ok", "tools": <count>, "transport": "http", ...}
        """
        return JSONResponse(
            {
                "status": "ok",
                "tools": len(self.mcp_server.tools),
                "transport": "http",
                "server": "libdocs-mcp",
                "metrics": self.mcp_server.metrics.get_stats(),
            }
        )

    async def serve(self) -> None:
        """Serve until uvicorn receives a shutdown signal."""
        config = uvicorn.Config(
            self.app,
            host=self.host,
            port=self.port,
            log_level=self.log_level,
        )
        server = uvicorn.Server(config)
        logger.info(f"Starting HTTP server on {self.host}:{self.port}")
        await server.serve()

