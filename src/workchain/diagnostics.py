"""Process-wide diagnostic sink.

Units and composers report what they did (executed, skipped, failed)
through a single swappable sink with three severity entry points. The sink
is deliberately tiny: each entry point takes one preformatted string.

Built-in sinks:

- :class:`ConsoleSink` — ``"INFO: ..."`` style lines on stderr (default).
- :class:`StructlogSink` — forwards to a structlog logger, see
  :func:`workchain.config.logging.configure_logging`.
- :class:`NullSink` — discards everything.

Swap the sink with :func:`set_sink`, or temporarily with :func:`override`
and :func:`silence`; both restore the previous sink on every exit path.
"""

from __future__ import annotations

import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import IO, Any, Protocol, runtime_checkable

import structlog

from workchain.config.logging import LOGGER_NAME, configure_logging
from workchain.config.settings import WorkchainSettings, get_settings


@runtime_checkable
class Sink(Protocol):
    """Anything with ``info``, ``warn`` and ``error`` accepting one string."""

    def info(self, message: str) -> None: ...

    def warn(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class ConsoleSink:
    """Write severity-prefixed lines to a text stream.

    The stream defaults to whatever ``sys.stderr`` is at write time, so
    redirections installed after construction (pytest's ``capsys``) apply.
    """

    def __init__(self, stream: IO[str] | None = None) -> None:
        self._stream = stream

    def _write(self, prefix: str, message: str) -> None:
        stream = self._stream or sys.stderr
        print(f"{prefix}: {message}", file=stream)

    def info(self, message: str) -> None:
        self._write("INFO", message)

    def warn(self, message: str) -> None:
        self._write("WARNING", message)

    def error(self, message: str) -> None:
        self._write("ERROR", message)


class StructlogSink:
    """Forward diagnostics to a structlog logger."""

    def __init__(self, logger: Any | None = None) -> None:
        self._log = logger or structlog.get_logger(f"{LOGGER_NAME}.diagnostics")

    def info(self, message: str) -> None:
        self._log.info(message)

    def warn(self, message: str) -> None:
        self._log.warning(message)

    def error(self, message: str) -> None:
        self._log.error(message)


class NullSink:
    """Swallow every diagnostic."""

    def info(self, message: str) -> None:
        pass

    def warn(self, message: str) -> None:
        pass

    def error(self, message: str) -> None:
        pass


def sink_from_settings(settings: WorkchainSettings) -> Sink:
    """Build the sink named by ``settings.sink``."""
    if settings.sink == "null":
        return NullSink()
    if settings.sink == "structlog":
        configure_logging(verbose=settings.verbose, log_json=settings.log_json)
        return StructlogSink()
    return ConsoleSink()


_sink: Sink | None = None
_lock = threading.RLock()


def get_sink() -> Sink:
    """Return the active sink, building the configured default on first use."""
    global _sink
    with _lock:
        if _sink is None:
            _sink = sink_from_settings(get_settings())
        return _sink


def set_sink(sink: Sink | None) -> Sink | None:
    """Install *sink* process-wide and return the one it replaced.

    Passing None reverts to the configured default on next use.
    """
    global _sink
    with _lock:
        previous, _sink = _sink, sink
        return previous


@contextmanager
def override(sink: Sink) -> Iterator[Sink]:
    """Use *sink* for the duration of the block, then restore the previous one."""
    previous = set_sink(sink)
    try:
        yield sink
    finally:
        set_sink(previous)


@contextmanager
def silence() -> Iterator[None]:
    """Suppress all diagnostics inside the block."""
    with override(NullSink()):
        yield


def info(message: str) -> None:
    get_sink().info(message)


def warn(message: str) -> None:
    get_sink().warn(message)


def error(message: str) -> None:
    get_sink().error(message)
