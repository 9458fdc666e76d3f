"""Shared pytest fixtures and test helpers for workchain tests."""

from __future__ import annotations

from collections.abc import Generator
from typing import Any

import pytest

from workchain.config.settings import reset_settings
from workchain.core.unit import Unit
from workchain.diagnostics import set_sink


class RecordingSink:
    """Diagnostic sink that keeps every line for later assertions."""

    def __init__(self) -> None:
        self.lines: list[tuple[str, str]] = []

    def info(self, message: str) -> None:
        self.lines.append(("info", message))

    def warn(self, message: str) -> None:
        self.lines.append(("warn", message))

    def error(self, message: str) -> None:
        self.lines.append(("error", message))

    def messages(self, level: str | None = None) -> list[str]:
        return [msg for lvl, msg in self.lines if level is None or lvl == level]


@pytest.fixture(autouse=True)
def recorder(monkeypatch: pytest.MonkeyPatch) -> Generator[RecordingSink]:
    """Capture diagnostics and isolate settings from the host environment."""
    for var in ("WORKCHAIN_SINK", "WORKCHAIN_PREVIEW_LENGTH", "WORKCHAIN_CONFIG"):
        monkeypatch.delenv(var, raising=False)
    reset_settings()
    sink = RecordingSink()
    previous = set_sink(sink)
    yield sink
    set_sink(previous)
    reset_settings()


# ---------------------------------------------------------------------------
# Shared test helpers (used across core test modules)
# ---------------------------------------------------------------------------


def make_unit(
    name: str,
    *,
    inputs: Any = (),
    outputs: Any = (),
    body: Any = None,
    calls: list[str] | None = None,
) -> type[Unit]:
    """Build a Unit subclass whose body records its name in *calls* then runs *body*."""

    def perform(self: Unit) -> None:
        if calls is not None:
            calls.append(name)
        if body is not None:
            body(self)

    return type(name, (Unit,), {"inputs": inputs, "outputs": outputs, "perform": perform})


def failing(message: str) -> Any:
    """Body that dies with *message*."""

    def body(self: Unit) -> None:
        self.die(message)

    return body


def emitting(*messages: str) -> Any:
    """Body that adds *messages* without failing."""

    def body(self: Unit) -> None:
        self.add_message(list(messages))

    return body


def setting(**values: Any) -> Any:
    """Body that writes *values* into the result."""

    def body(self: Unit) -> None:
        self.result.update(values)

    return body
