"""
Transport selection and lifecycle.

UNSTARTED -> SELECTING -> STDIO_ACTIVE
                       -> HTTP_ACTIVE -> SERVING

The choice is made once per process. When HTTP was requested and cannot be
provided the process fails; it never falls back to stdio.
"""

from __future__ import annotations

from enum import Enum
import logging
from typing import TYPE_CHECKING

from libdocs_mcp.errors import FatalError
from libdocs_mcp.transport.provider import HttpCapabilityProvider, Unavailable

if TYPE_CHECKING:
    from libdocs_mcp.server import LibDocsMcpServer

logger = logging.getLogger(__name__)

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 9700


class TransportState(str, Enum):
    UNSTARTED = "unstarted"
    SELECTING = "selecting"
    STDIO_ACTIVE = "stdio_active"
    HTTP_ACTIVE = "http_active"
    SERVING = "serving"


def select_transport(flag: str | None, env_value: str | None) -> str:
    """'http' if either the --transport flag or TRANSPORT env says so, else 'stdio'."""
    if flag == "http" or env_value == "http":
        return "http"
    return "stdio"


class TransportManager:
    """Runs exactly one transport for the lifetime of the process."""

    def __init__(
        self,
        mcp_server: LibDocsMcpServer,
        *,
        transport_flag: str | None = None,
        transport_env: str | None = None,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        provider: HttpCapabilityProvider | None = None,
    ):
        self.mcp_server = mcp_server
        self.transport_flag = transport_flag
        self.transport_env = transport_env
        self.host = host
        self.port = port
        self.provider = provider or HttpCapabilityProvider()
        self.state = TransportState.UNSTARTED
        self.transport: str | None = None

    def _transition(self, state: TransportState) -> None:
        logger.debug(f"Transport state: {self.state.value} -> {state.value}")
        self.state = state

    async def run(self) -> None:
        """Select and run the transport. Returns when it shuts down."""
        if self.state is not TransportState.UNSTARTED:
            raise FatalError(f"Transport already started (state={self.state.value})")

        self._transition(TransportState.SELECTING)
        self.transport = select_transport(self.transport_flag, self.transport_env)
        logger.info(f"Selected transport: {self.transport}")

        try:
            if self.transport == "http":
                await self._run_http()
            else:
                await self._run_stdio()
        finally:
            await self.mcp_server.aclose()

    async def _run_stdio(self) -> None:
        self._transition(TransportState.STDIO_ACTIVE)
        await self.mcp_server.run_stdio()

    async def _run_http(self) -> None:
        capability = self.provider.acquire()
        if isinstance(capability, Unavailable):
            raise FatalError(
                f"Could not load HTTP transport for MCP server ({capability.reason}). "
                "Is the 'mcp' package installed with its HTTP dependencies?"
            )

        try:
            http_server = capability.server_factory(
                self.mcp_server,
                host=self.host,
                port=self.port,
                log_level=self.mcp_server.settings.log_level,
            )
        except Exception as e:
            raise FatalError(f"Could not create HTTP transport: {e}") from e

        self._transition(TransportState.HTTP_ACTIVE)
        logger.info(f"HTTP Server Transport created at http://{self.host}:{self.port}")

        self._transition(TransportState.SERVING)
        logger.info(f"libdocs-mcp server running on http://{self.host}:{self.port}")
        await http_server.serve()
