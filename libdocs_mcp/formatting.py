"""Text rendering for search results returned to the model."""

from __future__ import annotations

from libdocs_mcp.client import LibrarySearchResult, SearchResponse

SEARCH_RESULTS_PREAMBLE = """Available Libraries (top matches):

Each result includes:
- Library ID: Context7-compatible identifier (format: /org/repo)
- Name: Library or package name
- Description: Short summary
- Code Snippets: Number of available code examples
- GitHub Stars: Popularity indicator

For best results, select libraries based on name match, popularity (stars), snippet coverage, and relevance to your use case.

---

"""


def format_search_result(result: LibrarySearchResult) -> str:
    lines = [
        f"- Title: {result.name}",
        f"- Context7-compatible library ID: {result.id}",
        f"- Description: {result.description}",
    ]
    if result.snippet_count is not None:
        lines.append(f"- Code Snippets: {result.snippet_count}")
    if result.star_count is not None:
        lines.append(f"- GitHub Stars: {result.star_count}")
    return "\n".join(lines)


def format_search_results(response: SearchResponse) -> str:
    """Render every result, separated by a dashed rule."""
    return "\n----------\n".join(format_search_result(r) for r in response.results)
