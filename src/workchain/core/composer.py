"""IsolatedComposer — run several units against the same input, independently.

Every registration sees the caller's inputs unchanged. A failing unit does
not stop the ones after it; :meth:`IsolatedComposer.call` returns one
outcome per registration, in registration order. Only
:meth:`IsolatedComposer.call_strict` halts, by raising on the first failure.

The whole iteration runs inside a single wrapping scope (``around``),
which is where callers put transactions::

    notify = IsolatedComposer.create()
    notify.add(EmailOwner)
    notify.add(PageOnCall, precondition=lambda **kw: kw["severity"] == "high")

    @notify.around
    def in_transaction(proceed):
        with engine.begin():
            proceed()

    outcomes = notify.call(incident=incident, severity="high")
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Self

from workchain import diagnostics
from workchain.config.settings import get_settings
from workchain.core.outcome import Outcome, preview, skipped_outcome
from workchain.errors import ConfigurationError, FailureError

Scope = Callable[[Callable[[], None]], Any]
FailureCallback = Callable[[Outcome], Any]


def always(**_inputs: Any) -> bool:
    """Default registration precondition."""
    return True


def passthrough(proceed: Callable[[], None]) -> None:
    """Default wrapping scope: run the chain and nothing else."""
    proceed()


def describe(registrant: Any) -> str:
    return getattr(registrant, "__qualname__", None) or repr(registrant)


def invoke(registrant: Any, inputs: dict[str, Any], *, strict: bool = False) -> Outcome:
    """Call a registered unit, or a plain callable standing in for one."""
    entry = getattr(registrant, "call_strict" if strict else "call", None)
    if entry is not None:
        return entry(**inputs)
    outcome = registrant(**inputs)
    if strict and not outcome.get("successful", False):
        raise FailureError(outcome.get("messages", []), outcome)
    return outcome


@dataclass(frozen=True)
class Registration:
    """One registered unit and the gate deciding whether it runs."""

    unit: Any
    precondition: Callable[..., Any] = always


class IsolatedComposer:
    """Ordered, append-only list of units invoked independently."""

    def __init__(self) -> None:
        self._registrations: list[Registration] = []
        self._scope: Scope | None = None
        self._on_failure: FailureCallback | None = None

    @classmethod
    def create(
        cls,
        *units: Any,
        setup: Callable[[Self], Any] | None = None,
    ) -> Self:
        """Build a composer, registering *units* and then running *setup* on it."""
        instance = cls()
        for unit in units:
            instance.add(unit)
        if setup is not None:
            setup(instance)
        return instance

    def __repr__(self) -> str:
        names = ", ".join(describe(r.unit) for r in self._registrations)
        return f"<{type(self).__name__} [{names}]>"

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def add(self, unit: Any, precondition: Callable[..., Any] = always) -> Self:
        """Register *unit*. *precondition* receives the composer inputs as keywords."""
        self._registrations.append(Registration(unit, precondition))
        return self

    @property
    def units(self) -> tuple[Any, ...]:
        return tuple(r.unit for r in self._registrations)

    @property
    def registrations(self) -> tuple[Registration, ...]:
        return tuple(self._registrations)

    def around(self, scope: Scope) -> Scope:
        """Wrap each top-level call in *scope*.

        *scope* receives a zero-argument continuation and must call it
        exactly once. Usable as a decorator.
        """
        if self._scope is not None:
            msg = f"{self!r} already has an around scope"
            raise ConfigurationError(msg)
        self._scope = scope
        return scope

    def on_failure(self, callback: FailureCallback) -> FailureCallback:
        """Call *callback* with each unsuccessful outcome. Usable as a decorator."""
        self._on_failure = callback
        return callback

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def call(self, /, **inputs: Any) -> list[Outcome | None]:
        """Run every registration against *inputs*; never short-circuits."""
        outcomes: list[Outcome | None] = [None] * len(self._registrations)

        def proceed() -> None:
            for i, registration in enumerate(self._registrations):
                passed = registration.precondition(**inputs)
                if not passed:
                    self._log_skip(registration.unit, inputs, passed)
                    outcomes[i] = skipped_outcome()
                    continue
                outcome = invoke(registration.unit, inputs)
                outcomes[i] = outcome
                if not outcome["successful"]:
                    self._handle_failure(registration.unit, outcome)

        self._run_scoped(proceed)
        return outcomes

    def call_strict(self, /, **inputs: Any) -> list[Outcome | None]:
        """Like :meth:`call`, but raise :class:`FailureError` at the first failing unit."""
        outcomes: list[Outcome | None] = [None] * len(self._registrations)

        def proceed() -> None:
            for i, registration in enumerate(self._registrations):
                passed = registration.precondition(**inputs)
                if not passed:
                    self._log_skip(registration.unit, inputs, passed)
                    outcomes[i] = skipped_outcome()
                    continue
                outcomes[i] = invoke(registration.unit, inputs, strict=True)

        self._run_scoped(proceed)
        return outcomes

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _run_scoped(self, body: Callable[[], None]) -> None:
        entered = False

        def proceed() -> None:
            nonlocal entered
            if entered:
                msg = f"around scope of {self!r} invoked its continuation more than once"
                raise ConfigurationError(msg)
            entered = True
            body()

        (self._scope or passthrough)(proceed)

    def _handle_failure(self, unit: Any, outcome: Outcome) -> None:
        diagnostics.warn(
            f"Unit {describe(unit)} failed within {type(self).__name__}. "
            f"Messages: {outcome.get('messages', [])!r}"
        )
        if self._on_failure is not None:
            self._on_failure(outcome)

    def _log_skip(self, unit: Any, inputs: dict[str, Any], passed: Any) -> None:
        diagnostics.info(
            f"Unit {describe(unit)} was skipped by a composer precondition with params: "
            f"{preview(inputs, get_settings().preview_length)} : "
            f"precondition evaluated to {passed!r}"
        )
