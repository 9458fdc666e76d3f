"""Exception hierarchy for workchain.

Two tiers, never mixed:

- Domain failures are data. ``Unit.call`` and the composers' ``call``
  report them as ``successful: False`` plus ``messages`` and never raise.
- Configuration errors are programmer mistakes (undeclared contracts,
  impossible chains, reserved keys). They raise a :class:`ConfigurationError`
  subclass as soon as they are detected.

:class:`FailureError` bridges the two for the strict entry points.
:class:`AbortSignal` is the private unwind used by ``Unit.die`` and is
always caught at the invocation boundary.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any


class WorkchainError(Exception):
    """Base class for every error raised by workchain."""


class ConfigurationError(WorkchainError):
    """A unit or composer is wired up incorrectly."""


class ImplicitConfigurationError(ConfigurationError):
    """A unit was invoked before its inputs and outputs were declared."""

    def __init__(self, unit: Any) -> None:
        self.unit = unit
        name = getattr(unit, "__qualname__", repr(unit))
        msg = (
            f"{name}: inputs and outputs must be declared explicitly. "
            "Set `inputs` (or `inputs = ()`) and `outputs` (or `outputs = ()`)"
        )
        super().__init__(msg)


class ContractError(ConfigurationError):
    """A contract declaration is malformed."""


class ContractFrozenError(ContractError):
    """A contract was extended after its unit had already been invoked."""

    def __init__(self, unit: Any) -> None:
        self.unit = unit
        name = getattr(unit, "__qualname__", repr(unit))
        super().__init__(f"{name} has already been invoked; its contract can no longer change")


class ReservedParameterError(ConfigurationError):
    """Composer input used a key reserved for outcome bookkeeping."""

    def __init__(self, param_name: str) -> None:
        self.param_name = param_name
        super().__init__(f"incoming parameter not allowed: {param_name}")


class UnproducedParameterError(ConfigurationError):
    """A chained unit requires inputs no earlier step (or the caller) provides."""

    def __init__(
        self,
        unit: Any,
        composer: Any,
        available_keys: Sequence[str],
        unproduced_keys: Sequence[str],
    ) -> None:
        self.unit = unit
        self.composer = composer
        self.available_keys = list(available_keys)
        self.unproduced_keys = list(unproduced_keys)
        name = getattr(unit, "__qualname__", repr(unit))
        msg = (
            f"Unit {name} included in {composer!r} requires parameters that are never "
            f"produced by a preceding unit. Unproduced parameter(s): {self.unproduced_keys!r}. "
            f"Available keys: {self.available_keys!r}"
        )
        super().__init__(msg)


class DualParameterDefinitionError(ConfigurationError):
    """Shorthand unit declared inputs both explicitly and via its signature."""

    def __init__(self, name: str) -> None:
        self.name = name
        msg = (
            f"Unit definition for {name} attempts to define input keys both via "
            "inputs=... and function parameters. Only one form is allowed"
        )
        super().__init__(msg)


class PreconditionOrderError(ConfigurationError):
    """``@guard`` was applied outside ``@unit`` instead of between it and the function."""

    def __init__(self) -> None:
        super().__init__(
            "`@guard` must sit below `@unit` and directly above the function definition"
        )


class FailureError(WorkchainError):
    """Raised by the strict entry points when an outcome is unsuccessful."""

    def __init__(self, messages: Sequence[str], outcome: dict[str, Any] | None = None) -> None:
        self.messages = list(messages)
        self.outcome = outcome
        super().__init__(f"Unit operation failed: {', '.join(self.messages)}")


class AbortSignal(WorkchainError):
    """Unwinds a unit body after ``die``. Caught by ``Unit.call``; never escapes it."""

    def __str__(self) -> str:
        return "Used to halt a unit body on failure. Caught by Unit.call"
