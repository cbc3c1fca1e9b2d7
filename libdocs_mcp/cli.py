"""CLI for exercising the libdocs-mcp tools without an MCP client."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table
import typer

app = typer.Typer(
    name="libdocs-mcp-cli",
    help="libdocs-mcp developer CLI",
    add_completion=False,
)
console = Console()


def _call(name: str, arguments: dict[str, Any], config_path: Path | None) -> None:
    from libdocs_mcp.config import load_config, load_settings
    from libdocs_mcp.server import LibDocsMcpServer

    load_dotenv()
    server = LibDocsMcpServer(load_config(config_path), load_settings())

    async def _run():
        try:
            return await server.call_tool(name, arguments)
        finally:
            await server.aclose()

    envelope = asyncio.run(_run())
    for block in envelope.content:
        if envelope.is_error:
            console.print(f"[red]✗[/] {block}")
        else:
            console.print(block, markup=False, highlight=False)
    if envelope.is_error:
        raise typer.Exit(1)


@app.command()
def resolve(
    library_name: str = typer.Argument(..., help="Library name to search for"),
    config_path: Path | None = typer.Option(None, "--config", "-c", help="Path to .context7rc.json"),
) -> None:
    """Resolve a library name to Context7-compatible library IDs."""
    _call("resolve-library-id", {"libraryName": library_name}, config_path)


@app.command()
def docs(
    library_id: str = typer.Argument(..., help="Context7-compatible library ID"),
    topic: str | None = typer.Option(None, "--topic", "-t", help="Topic to focus on"),
    tokens: str | None = typer.Option(None, "--tokens", "-n", help="Maximum tokens to retrieve"),
    lang: str | None = typer.Option(None, "--lang", help="Programming language"),
    python_version: str | None = typer.Option(None, "--python", help="Python version"),
    config_path: Path | None = typer.Option(None, "--config", "-c", help="Path to .context7rc.json"),
) -> None:
    """Fetch documentation for a library ID."""
    arguments: dict[str, Any] = {"context7CompatibleLibraryID": library_id}
    for key, value in (
        ("topic", topic),
        ("tokens", tokens),
        ("lang", lang),
        ("pythonVersion", python_version),
    ):
        if value is not None:
            arguments[key] = value
    _call("get-library-docs", arguments, config_path)


@app.command()
def config(
    config_path: Path | None = typer.Option(None, "--config", "-c", help="Path to .context7rc.json"),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON"),
) -> None:
    """Show the effective project and server configuration."""
    from libdocs_mcp.config import load_config, load_settings

    load_dotenv()
    docs_config = load_config(config_path)
    settings = load_settings()

    if as_json:
        data = {**docs_config.to_dict(), "minimumTokens": settings.minimum_tokens}
        console.print_json(json.dumps(data))
        return

    table = Table(show_header=False)
    table.add_row("Default language:", docs_config.default_lang)
    table.add_row("Default version:", docs_config.default_version)
    table.add_row("Supported languages:", ", ".join(sorted(docs_config.supported_langs)))
    for lang, versions in sorted(docs_config.supported_versions.items()):
        table.add_row(f"  {lang} versions:", ", ".join(sorted(versions)))
    table.add_row("Minimum tokens:", str(settings.minimum_tokens))
    table.add_row("Transport:", settings.transport)
    table.add_row("API URL:", settings.api_url)
    console.print(table)


if __name__ == "__main__":
    app()
