"""AccumulatingComposer — thread state through units, stop at the first failure.

Each unit receives everything accumulated so far (the caller's inputs plus
every earlier unit's outputs) and its outcome is merged back in: keys
overwrite, ``messages`` concatenate. As soon as the merged result is
unsuccessful the chain stops.

Before anything runs, the chain is checked statically: every unit's
required inputs must be covered by the caller's keys plus the declared
outputs of the units before it. A gap raises
:class:`UnproducedParameterError` without invoking a single unit.
"""

from __future__ import annotations

from typing import Any, Self

from workchain.core.composer import IsolatedComposer, invoke
from workchain.core.contract import RESERVED_KEYS, contract_of
from workchain.core.outcome import Outcome, merge_outcome, new_outcome
from workchain.errors import (
    FailureError,
    ImplicitConfigurationError,
    ReservedParameterError,
    UnproducedParameterError,
)


class AccumulatingComposer(IsolatedComposer):
    """Ordered units run in sequence over a shared, growing result."""

    def add(self, unit: Any) -> Self:  # type: ignore[override]
        """Register *unit* at the end of the chain."""
        return super().add(unit)

    def call(self, /, **inputs: Any) -> Outcome:  # type: ignore[override]
        """Run the chain and return the merged result.

        Raises:
            ReservedParameterError: *inputs* uses ``successful`` or ``messages``.
            UnproducedParameterError: a unit's required inputs can never be bound.
        """
        self._ensure_no_reserved_keys(inputs)
        self._ensure_parameter_continuity(inputs)

        accumulated = new_outcome(**inputs)

        def proceed() -> None:
            nonlocal accumulated
            for unit in self.units:
                outcome = invoke(unit, accumulated)
                accumulated = merge_outcome(accumulated, outcome)
                if not accumulated["successful"]:
                    self._handle_failure(unit, outcome)
                    break

        self._run_scoped(proceed)
        return accumulated

    def call_strict(self, /, **inputs: Any) -> Outcome:  # type: ignore[override]
        """Like :meth:`call`, but raise :class:`FailureError` when the chain fails."""
        accumulated = self.call(**inputs)
        if not accumulated["successful"]:
            raise FailureError(accumulated["messages"], accumulated)
        return accumulated

    def _ensure_no_reserved_keys(self, inputs: dict[str, Any]) -> None:
        for name in RESERVED_KEYS:
            if name in inputs:
                raise ReservedParameterError(name)

    def _ensure_parameter_continuity(self, inputs: dict[str, Any]) -> None:
        available = list(inputs)
        for unit in self.units:
            contract = contract_of(unit)
            if not contract.is_declared:
                raise ImplicitConfigurationError(unit)
            unproduced = [key for key in contract.required_inputs if key not in available]
            if unproduced:
                raise UnproducedParameterError(unit, self, available, unproduced)
            available.extend(k for k in contract.output_keys if k not in available)
