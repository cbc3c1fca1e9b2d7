"""
Request validation and sanitization for the documentation tools.

Everything here runs before the documentation service is contacted.
Failures raise ValidationError and are turned into error envelopes by the
tool handlers.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
import re
from typing import Any

from libdocs_mcp.config import MAXIMUM_TOKENS, DocsConfig
from libdocs_mcp.errors import ValidationError

LIBRARY_NAME_MIN_LEN = 2
LIBRARY_NAME_MAX_LEN = 100
LIBRARY_ID_MIN_LEN = 3
TOKENS_FLOOR = 100

FOLDERS_MARKER = "?folders="

_LIBRARY_NAME_STRIP = re.compile(r"[^A-Za-z0-9_.\- ]")
_LIBRARY_ID_STRIP = re.compile(r"[^A-Za-z0-9_./\-]")


@dataclass(frozen=True)
class DocsRequest:
    """Effective parameters for a documentation fetch."""

    library_id: str
    tokens: int
    topic: str = ""
    folders: str = ""
    lang: str | None = None
    version: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "library_id": self.library_id,
            "tokens": self.tokens,
            "topic": self.topic,
            "folders": self.folders,
            "lang": self.lang,
            "version": self.version,
        }


def sanitize_library_name(name: str) -> str:
    """Drop every character outside [A-Za-z0-9_.- ]."""
    return _LIBRARY_NAME_STRIP.sub("", name)


def sanitize_library_id(library_id: str) -> str:
    """Drop every character outside [A-Za-z0-9_./-], keeping folder markers intact."""
    parts = library_id.split(FOLDERS_MARKER)
    return FOLDERS_MARKER.join(_LIBRARY_ID_STRIP.sub("", part) for part in parts)


def split_folders(library_id: str) -> tuple[str, str]:
    """Split 'id?folders=sel' on the first marker. Returns (id, folders)."""
    head, marker, tail = library_id.partition(FOLDERS_MARKER)
    if not marker:
        return library_id, ""
    return head, tail


def build_search_query(library_name: Any, config: DocsConfig) -> str:
    """
    Validate and sanitize a resolve-library-id request.

    Args:
        library_name: Raw libraryName argument
        config: Project defaults used for the fallback query

    Returns:
        Search query to send to the documentation service

    Raises:
        ValidationError: If the name is not a 2-100 character string
    """
    if (
        not isinstance(library_name, str)
        or not LIBRARY_NAME_MIN_LEN <= len(library_name) <= LIBRARY_NAME_MAX_LEN
    ):
        raise ValidationError(
            "Invalid library name. Must be "
            f"{LIBRARY_NAME_MIN_LEN}-{LIBRARY_NAME_MAX_LEN} characters."
        )
    return sanitize_library_name(library_name) or f"{config.default_lang} {config.default_version}"


def coerce_tokens(value: Any, minimum: int) -> int:
    """
    Coerce and clamp a requested token count.

    Missing values become the minimum. Strings are parsed as numbers. Values
    below the minimum are raised to it, so only the upper bound of the range
    check can reject a request.

    Raises:
        ValidationError: If the value is not numeric or exceeds the maximum
    """
    if value is None:
        number: float = minimum
    elif isinstance(value, bool):
        raise ValidationError("Token count must be a number.")
    elif isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        try:
            number = float(value.strip()) if value.strip() else 0
        except ValueError:
            raise ValidationError("Token count must be a number.") from None
    else:
        raise ValidationError("Token count must be a number.")

    if math.isnan(number):
        raise ValidationError("Token count must be a number.")

    if number < minimum:
        number = minimum

    if number < TOKENS_FLOOR or number > MAXIMUM_TOKENS:
        raise ValidationError(f"Token count must be between {TOKENS_FLOOR} and {MAXIMUM_TOKENS}.")

    return int(number)


def build_docs_request(
    arguments: dict[str, Any],
    config: DocsConfig,
    minimum_tokens: int,
) -> DocsRequest:
    """
    Validate a get-library-docs request and resolve its effective parameters.

    Precedence for lang/version: explicit argument > project config. The
    version only defaults from config when the effective language is python.

    Raises:
        ValidationError: On a short library id, non-numeric or oversized tokens
    """
    raw_id = arguments.get("context7CompatibleLibraryID")
    if not isinstance(raw_id, str) or len(raw_id) < LIBRARY_ID_MIN_LEN:
        raise ValidationError("Invalid Context7-compatible library ID.")

    tokens = coerce_tokens(arguments.get("tokens"), minimum_tokens)

    library_id, folders = split_folders(sanitize_library_id(raw_id))

    lang = arguments.get("lang") or config.default_lang
    version = arguments.get("pythonVersion") or arguments.get("python")
    if not version and lang == "python":
        version = config.default_version

    return DocsRequest(
        library_id=library_id,
        tokens=tokens,
        topic=arguments.get("topic") or "",
        folders=folders,
        lang=lang,
        version=version or None,
    )
