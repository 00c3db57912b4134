"""Fixtures for invoking the ``resend`` app end to end."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any, Optional

import pytest

from resendcli.app import app


@pytest.fixture(autouse=True)
def _no_color(isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Plain, unwrapped diagnostics so assertions can match whole lines."""
    monkeypatch.setenv("NO_COLOR", "1")


@pytest.fixture
def invoke(cli_runner) -> Callable[..., Any]:
    """Run ``resend <args>`` and return the click result."""

    def _invoke(*args: str, input: Optional[str] = None, **kwargs: Any) -> Any:
        return cli_runner.invoke(app, list(args), input=input, **kwargs)

    return _invoke
