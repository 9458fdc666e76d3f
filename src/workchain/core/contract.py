"""Unit contracts — declared inputs, outputs, and precondition.

A :class:`Contract` is frozen; declaring more keys produces a new contract.
``None`` for ``inputs`` or ``outputs`` means "never declared", which is
distinct from an explicitly empty declaration and makes the unit
uncallable until fixed.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict

from workchain.errors import ContractError

RESERVED_KEYS: tuple[str, ...] = ("successful", "messages")


class Requirement(StrEnum):
    """Whether an input key must be bound at invocation."""

    REQUIRED = "required"
    OPTIONAL = "optional"


Precondition = str | Callable[[Any], Any]


def normalize_inputs(declaration: Any) -> dict[str, Requirement]:
    """Turn an ``inputs`` declaration into an ordered key → Requirement map.

    Accepts a mapping of key → ``"required"``/``"optional"``, or an
    iterable of keys (all optional).

    Examples:
        >>> normalize_inputs(("a", "b"))
        {'a': <Requirement.OPTIONAL: 'optional'>, 'b': <Requirement.OPTIONAL: 'optional'>}
    """
    if isinstance(declaration, str):
        return {declaration: Requirement.OPTIONAL}
    if isinstance(declaration, Mapping):
        allowed = tuple(r.value for r in Requirement)
        unknown = [v for v in declaration.values() if v not in allowed]
        if unknown:
            msg = (
                f"Unknown parameter configuration: {sorted({repr(v) for v in unknown})}. "
                "Must be one of 'required', 'optional'"
            )
            raise ContractError(msg)
        return {str(k): Requirement(v) for k, v in declaration.items()}
    return {str(k): Requirement.OPTIONAL for k in declaration}


def normalize_outputs(declaration: Any) -> tuple[str, ...]:
    if isinstance(declaration, str):
        return (declaration,)
    return tuple(str(k) for k in declaration)


class Contract(BaseModel):
    """Frozen input/output declaration for a unit."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    inputs: dict[str, Requirement] | None = None
    outputs: tuple[str, ...] | None = None
    precondition: Precondition | None = None

    @property
    def is_declared(self) -> bool:
        return self.inputs is not None and self.outputs is not None

    @property
    def input_keys(self) -> list[str]:
        return list(self.inputs or {})

    @property
    def required_inputs(self) -> list[str]:
        return [k for k, req in (self.inputs or {}).items() if req is Requirement.REQUIRED]

    @property
    def output_keys(self) -> list[str]:
        return list(self.outputs or ())

    def with_inputs(self, declaration: Any) -> Contract:
        """Return a contract with *declaration* appended to the inputs.

        Re-declaring a key overwrites its requirement in place.
        """
        merged = {**(self.inputs or {}), **normalize_inputs(declaration)}
        reserved = [k for k in merged if k in RESERVED_KEYS]
        if reserved:
            msg = f"Input keys {reserved!r} are reserved for outcome bookkeeping"
            raise ContractError(msg)
        return self.model_copy(update={"inputs": merged})

    def with_outputs(self, names: Iterable[str]) -> Contract:
        """Return a contract with *names* appended to the outputs."""
        extra = normalize_outputs(names)
        reserved = [k for k in extra if k in RESERVED_KEYS]
        if reserved:
            msg = f"Output keys {reserved!r} are reserved for outcome bookkeeping"
            raise ContractError(msg)
        current = self.outputs or ()
        merged = current + tuple(k for k in extra if k not in current)
        return self.model_copy(update={"outputs": merged})

    def with_precondition(self, precondition: Precondition | None) -> Contract:
        return self.model_copy(update={"precondition": precondition})


EMPTY_CONTRACT = Contract(inputs={}, outputs=())


def contract_of(registrant: Any) -> Contract:
    """Return the contract of a registered unit.

    Plain callables carry no contract and are treated as requiring and
    producing nothing.
    """
    getter = getattr(registrant, "contract", None)
    if callable(getter):
        return getter()
    return EMPTY_CONTRACT
