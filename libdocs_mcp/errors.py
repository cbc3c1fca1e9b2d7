"""
libdocs-mcp error types.

Custom exceptions with MCP-friendly error codes.
"""

from __future__ import annotations


class LibDocsError(Exception):
    """Base error for libdocs-mcp."""

    code: str = "LIBDOCS_ERROR"


class ValidationError(LibDocsError):
    """Caller input is malformed or out of range."""

    code = "INVALID_ARGUMENT"


class RemoteError(LibDocsError):
    """The documentation service could not be reached."""

    code = "REMOTE_ERROR"


class FatalError(LibDocsError):
    """Unrecoverable condition; the process must stop."""

    code = "FATAL"
