"""Shared test fixtures for resendcli.

Provides reusable fixtures for creating isolated config environments,
injecting a mock HTTP transport into every command, and running CLI
commands. These fixtures are automatically discovered by pytest and
available to all test modules without explicit imports.
"""

from __future__ import annotations

import functools
import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest

from resendcli.client import ResendClient


Handler = Callable[[httpx.Request], httpx.Response]


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path so
    that tests never touch real user config. Clears all RESEND_*
    environment variables and changes the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("resendcli.config._is_xdg_platform", lambda: True)

    for var in [
        "RESEND_API_KEY",
        "RESEND_DEFAULT_FROM",
        "RESEND_API_BASE_URL",
        "RESEND_OUTPUT_FORMAT",
        "NO_COLOR",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def api_key_env(isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> str:
    """Provide an API key through the environment."""
    key = "re_test_1234567890"
    monkeypatch.setenv("RESEND_API_KEY", key)
    return key


# ---------------------------------------------------------------------------
# Mock API fixture
# ---------------------------------------------------------------------------


class MockAPI:
    """Records requests and answers them from a queue or a handler.

    Installed into the command layer by the ``mock_api`` fixture, so every
    :class:`ResendClient` a command builds talks to this object instead of
    the network.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._responses: list[httpx.Response] = []
        self.handler: Handler | None = None

    def queue(self, status_code: int = 200, json_body: Any = None, **kwargs: Any) -> None:
        self._responses.append(httpx.Response(status_code, json=json_body, **kwargs))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.handler is not None:
            return self.handler(request)
        if not self._responses:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        return self._responses.pop(0)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> Any:
        return json.loads(self.last.content)


@pytest.fixture
def mock_api(api_key_env: str, monkeypatch: pytest.MonkeyPatch) -> MockAPI:
    """Route every command's API calls to an in-memory :class:`MockAPI`."""
    api = MockAPI()
    factory = functools.partial(ResendClient, transport=httpx.MockTransport(api))
    monkeypatch.setattr("resendcli.commands._common.ResendClient", factory)
    monkeypatch.setattr("resendcli.client.sync_client.time.sleep", lambda _s: None)
    return api


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner.

    Returns a CliRunner instance that captures stdout/stderr and
    provides a consistent interface for invoking Typer apps in tests.
    """
    from typer.testing import CliRunner

    return CliRunner()
