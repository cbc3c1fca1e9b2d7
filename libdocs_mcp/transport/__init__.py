"""MCP transport layer - stdio or streamable HTTP, chosen once at startup."""

from libdocs_mcp.transport.manager import TransportManager, TransportState, select_transport
from libdocs_mcp.transport.provider import HttpCapability, HttpCapabilityProvider, Unavailable
from libdocs_mcp.transport.supervisor import Supervisor

__all__ = [
    "HttpCapability",
    "HttpCapabilityProvider",
    "Supervisor",
    "TransportManager",
    "TransportState",
    "Unavailable",
    "select_transport",
]
