"""Shared test fixtures for service-bootstrap."""

import asyncio
import logging

import pytest

from service_bootstrap.config import DATABASE_URL_ENV, Settings, get_settings
from service_bootstrap.env import reader as reader_module


class ProcessTerminated(Exception):
    """Raised in place of exiting the test process."""

    def __init__(self, code: int):
        self.code = code
        super().__init__(f"process terminated with status {code}")


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def terminations(monkeypatch) -> list:
    """Replace the process terminator; records exit codes and raises."""
    calls: list[int] = []

    def fake_terminate(code: int = 1) -> None:
        calls.append(code)
        raise ProcessTerminated(code)

    monkeypatch.setattr(reader_module, "_terminate", fake_terminate)
    return calls


@pytest.fixture
def service_logger(caplog) -> logging.Logger:
    """A named logger captured by caplog at DEBUG level."""
    caplog.set_level(logging.DEBUG)
    return logging.getLogger("tests.service")


@pytest.fixture
def settings() -> Settings:
    return Settings(environment="test", db_connect_timeout=5.0)


@pytest.fixture
def sqlite_url(tmp_path, monkeypatch) -> str:
    """Point PG_CONN at a file-backed SQLite database."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'app.db'}"
    monkeypatch.setenv(DATABASE_URL_ENV, url)
    return url


@pytest.fixture
def silent_server():
    """
    Start a TCP server that accepts connections and never answers.

    Yields an async factory returning (server, port); call it inside the
    running event loop.
    """
    async def start():
        async def handle(reader, writer):
            await reader.read()
            writer.close()

        server = await asyncio.start_server(handle, "127.0.0.1", 0)
        port = server.sockets[0].getsockname()[1]
        return server, port

    return start
