from pathlib import Path
import sys
from unittest.mock import AsyncMock

from _pytest.monkeypatch import MonkeyPatch
import pytest

# Ensure repo root is importable when running without an editable install.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from libdocs_mcp.client import RemoteDocsClient  # noqa: E402
from libdocs_mcp.config import DocsConfig, ServerSettings  # noqa: E402
from libdocs_mcp.server import LibDocsMcpServer  # noqa: E402

_ENV_VARS = (
    "DEFAULT_MINIMUM_TOKENS",
    "TRANSPORT",
    "LIBDOCS_API_URL",
    "LIBDOCS_LOG_LEVEL",
    "LIBDOCS_LOG_FORMAT",
)


@pytest.fixture(scope="session", autouse=True)
def _session_env(tmp_path_factory: pytest.TempPathFactory) -> None:
    """Session-level hermetic HOME that does not depend on function-scoped monkeypatch."""
    home = tmp_path_factory.mktemp("home")
    mp = MonkeyPatch()
    mp.setenv("HOME", str(home))
    try:
        yield
    finally:
        mp.undo()


@pytest.fixture(autouse=True)
def hermetic_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """
    Autouse: each test runs in its own tmp cwd with no libdocs env settings,
    so a developer's .context7rc.json or .env never leaks in.
    """
    monkeypatch.chdir(tmp_path)
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return tmp_path


@pytest.fixture
def docs_config() -> DocsConfig:
    return DocsConfig()


@pytest.fixture
def settings() -> ServerSettings:
    return ServerSettings(minimum_tokens=10000, api_url="http://docs.test/api")


@pytest.fixture
def fake_client() -> AsyncMock:
    """RemoteDocsClient stand-in; set search/fetch return values per test."""
    client = AsyncMock(spec=RemoteDocsClient)
    client.search.return_value = None
    client.fetch.return_value = None
    return client


@pytest.fixture
def server(docs_config, settings, fake_client) -> LibDocsMcpServer:
    return LibDocsMcpServer(docs_config, settings, client=fake_client)
