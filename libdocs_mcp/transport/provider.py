"""Capability provider for the optional HTTP transport."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
import importlib
import importlib.util
import logging
from typing import Any

logger = logging.getLogger(__name__)

REQUIRED_MODULES: tuple[str, ...] = (
    "uvicorn",
    "starlette",
    "mcp.server.streamable_http_manager",
)


@dataclass(frozen=True)
class HttpCapability:
    """HTTP transport is available; server_factory builds the listener."""

    server_factory: Callable[..., Any]


@dataclass(frozen=True)
class Unavailable:
    """HTTP transport cannot be provided."""

    reason: str


class HttpCapabilityProvider:
    """
    Resolves the HTTP listener implementation if its dependencies are installed.

    Availability is decided by module lookup, so a missing dependency yields
    Unavailable instead of an ImportError.
    """

    def __init__(
        self,
        required_modules: Sequence[str] = REQUIRED_MODULES,
        find_spec: Callable[[str], Any] = importlib.util.find_spec,
    ):
        self.required_modules = tuple(required_modules)
        self._find_spec = find_spec

    def _is_available(self, module: str) -> bool:
        # find_spec on "a.b" imports "a" first, so walk the dotted path from the top
        parts = module.split(".")
        for i in range(1, len(parts) + 1):
            if self._find_spec(".".join(parts[:i])) is None:
                return False
        return True

    def missing_modules(self) -> list[str]:
        return [m for m in self.required_modules if not self._is_available(m)]

    def acquire(self) -> HttpCapability | Unavailable:
        missing = self.missing_modules()
        if missing:
            reason = f"missing modules: {', '.join(missing)}"
            logger.error(f"HTTP transport unavailable ({reason})")
            return Unavailable(reason)

        http_server = importlib.import_module("libdocs_mcp.transport.http_server")
        return HttpCapability(server_factory=http_server.MCPHttpServer)
