"""libdocs-mcp - MCP server for up-to-date library documentation lookups."""

__version__ = "1.0.6"
