"""Tests for request validation, sanitization and parameter resolution."""

import pytest

from libdocs_mcp.config import DocsConfig
from libdocs_mcp.errors import ValidationError
from libdocs_mcp.validation import (
    build_docs_request,
    build_search_query,
    coerce_tokens,
    sanitize_library_id,
    sanitize_library_name,
    split_folders,
)


@pytest.fixture
def config():
    return DocsConfig()


class TestSearchQuery:
    @pytest.mark.parametrize("name", ["", "a", "x" * 101, None, 42])
    def test_rejects_bad_names(self, name, config):
        with pytest.raises(ValidationError, match="2-100 characters"):
            build_search_query(name, config)

    @pytest.mark.parametrize("name", ["ab", "x" * 100])
    def test_accepts_boundary_lengths(self, name, config):
        assert build_search_query(name, config) == name

    def test_strips_disallowed_characters(self, config):
        assert build_search_query("next.js <script>", config) == "next.js script"

    def test_empty_after_sanitizing_uses_config_fallback(self):
        config = DocsConfig(default_lang="go", default_version="1.22")

        assert build_search_query("!!!", config) == "go 1.22"

    def test_sanitize_keeps_allowed_classes(self):
        assert sanitize_library_name("my_lib-2.0 beta/x?") == "my_lib-2.0 betax"


class TestTokens:
    def test_missing_uses_minimum(self):
        assert coerce_tokens(None, 10000) == 10000

    def test_string_is_coerced_then_clamped(self):
        assert coerce_tokens("50", 10000) == 10000

    def test_low_values_are_raised_not_rejected(self):
        assert coerce_tokens(5, 10000) == 10000
        assert coerce_tokens(-3, 10000) == 10000

    def test_upper_bound_is_inclusive(self):
        assert coerce_tokens(100000, 10000) == 100000
        assert coerce_tokens("100000", 10000) == 100000

    def test_above_maximum_rejected(self):
        with pytest.raises(ValidationError, match="between 100 and 100000"):
            coerce_tokens(200000, 10000)

    def test_minimum_above_maximum_rejects_everything(self):
        with pytest.raises(ValidationError):
            coerce_tokens(500, 200000)

    @pytest.mark.parametrize("value", ["lots", True, [1], float("nan")])
    def test_non_numeric_rejected(self, value):
        with pytest.raises(ValidationError, match="must be a number"):
            coerce_tokens(value, 10000)

    def test_fraction_truncated(self):
        assert coerce_tokens("12345.9", 10000) == 12345


class TestLibraryId:
    def test_sanitize_and_split_folders(self):
        sanitized = sanitize_library_id("react!!js?folders=/hooks")

        assert sanitized == "reactjs?folders=/hooks"
        assert split_folders(sanitized) == ("reactjs", "/hooks")

    def test_split_on_first_marker_only(self):
        assert split_folders("a/b?folders=x?folders=y") == ("a/b", "x?folders=y")

    def test_no_marker(self):
        assert split_folders("/vercel/next.js") == ("/vercel/next.js", "")

    def test_sanitize_without_marker(self):
        assert sanitize_library_id("/mongo db/docs?x=1") == "/mongodb/docsx1"


class TestDocsRequest:
    @pytest.mark.parametrize("library_id", ["", "ab", None, 123])
    def test_short_or_missing_id_rejected(self, library_id, config):
        with pytest.raises(ValidationError, match="Invalid Context7-compatible library ID"):
            build_docs_request({"context7CompatibleLibraryID": library_id}, config, 10000)

    def test_defaults_for_python(self, config):
        request = build_docs_request(
            {"context7CompatibleLibraryID": "/pallets/flask"}, config, 10000
        )

        assert request.library_id == "/pallets/flask"
        assert request.tokens == 10000
        assert request.topic == ""
        assert request.folders == ""
        assert request.lang == "python"
        assert request.version == "3.11"

    def test_non_python_lang_has_no_default_version(self, config):
        request = build_docs_request(
            {"context7CompatibleLibraryID": "/golang/go", "lang": "go"}, config, 10000
        )

        assert request.lang == "go"
        assert request.version is None

    def test_explicit_version_wins(self, config):
        request = build_docs_request(
            {"context7CompatibleLibraryID": "/golang/go", "lang": "go", "pythonVersion": "1.22"},
            config,
            10000,
        )

        assert request.version == "1.22"

    def test_config_default_lang_non_python(self):
        config = DocsConfig(default_lang="rust", default_version="1.80")

        request = build_docs_request(
            {"context7CompatibleLibraryID": "/tokio/tokio"}, config, 10000
        )

        assert request.lang == "rust"
        assert request.version is None

    def test_folders_and_topic_forwarded(self, config):
        request = build_docs_request(
            {
                "context7CompatibleLibraryID": "react!!js?folders=/hooks",
                "topic": "state",
                "tokens": "20000",
            },
            config,
            10000,
        )

        assert request.library_id == "reactjs"
        assert request.folders == "/hooks"
        assert request.topic == "state"
        assert request.tokens == 20000

    def test_oversized_tokens_rejected_before_sanitizing(self, config):
        with pytest.raises(ValidationError, match="Token count"):
            build_docs_request(
                {"context7CompatibleLibraryID": "/a/b", "tokens": 200000}, config, 10000
            )
