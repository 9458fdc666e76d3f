"""Declarative shorthand — derive a Unit from a plain function.

The function's first parameter receives the unit instance (so the body can
use ``result``, ``add_message`` and ``die``). Its remaining parameters
become the unit's inputs: no default means required, a default means
optional::

    @unit(outputs=["charge_id"])
    @guard(lambda self: self.amount > 0, name="is_chargeable")
    def ChargeCard(self, *, card, amount, memo=None):
        return {"charge_id": gateway.charge(card, amount, memo)}

A returned mapping is merged into ``result``. The generated class is an
ordinary :class:`~workchain.core.unit.Unit` subclass whose contract is
identical to one declared by hand.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from workchain.core.contract import Requirement
from workchain.core.unit import Unit
from workchain.errors import (
    ConfigurationError,
    DualParameterDefinitionError,
    PreconditionOrderError,
)

_GUARD_ATTR = "__workchain_guard__"
DEFAULT_PRECONDITION_NAME = "passes_precondition"

_INPUT_KINDS = (inspect.Parameter.POSITIONAL_OR_KEYWORD, inspect.Parameter.KEYWORD_ONLY)


def _signature_inputs(fn: Callable[..., Any]) -> dict[str, Requirement]:
    params = list(inspect.signature(fn).parameters.values())
    if not params:
        msg = f"{fn.__qualname__} must accept the unit instance as its first parameter"
        raise ConfigurationError(msg)
    inputs: dict[str, Requirement] = {}
    for param in params[1:]:
        if param.kind not in _INPUT_KINDS:
            msg = f"{fn.__qualname__}: parameter {param.name!r} cannot be bound as a unit input"
            raise ConfigurationError(msg)
        required = param.default is inspect.Parameter.empty
        inputs[param.name] = Requirement.REQUIRED if required else Requirement.OPTIONAL
    return inputs


def guard(
    check: Callable[[Any], Any],
    *,
    name: str = DEFAULT_PRECONDITION_NAME,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Attach a precondition to a function about to become a unit.

    *check* receives the unit instance. It becomes a method called *name*
    on the generated class.
    """

    def decorate(fn: Callable[..., Any]) -> Callable[..., Any]:
        if isinstance(fn, type):
            raise PreconditionOrderError
        setattr(fn, _GUARD_ATTR, (name, check))
        return fn

    return decorate


def _build(
    fn: Callable[..., Any],
    *,
    outputs: Iterable[str],
    inputs: Mapping[str, str] | Iterable[str] | None,
    precondition: Callable[[Any], Any] | None,
) -> type[Unit]:
    derived = _signature_inputs(fn)
    if inputs and derived:
        raise DualParameterDefinitionError(fn.__name__)

    guarded = getattr(fn, _GUARD_ATTR, None)
    if guarded is not None and precondition is not None:
        msg = f"{fn.__qualname__}: declare the precondition with either @guard or precondition="
        raise ConfigurationError(msg)
    if precondition is not None:
        guarded = (DEFAULT_PRECONDITION_NAME, precondition)

    def perform(self: Unit) -> None:
        bound = {key: getattr(self.params, key) for key in derived if key in self._bound}
        returned = fn(self, **bound)
        if isinstance(returned, Mapping):
            self.result.update(returned)

    namespace: dict[str, Any] = {
        "__module__": fn.__module__,
        "__qualname__": fn.__qualname__,
        "__doc__": fn.__doc__,
        "inputs": derived or (inputs or ()),
        "outputs": tuple(outputs),
        "perform": perform,
    }
    if guarded is not None:
        guard_name, check = guarded
        namespace[guard_name] = check
        namespace["precondition"] = guard_name
    return type(fn.__name__, (Unit,), namespace)


def unit(
    fn: Callable[..., Any] | None = None,
    *,
    outputs: Iterable[str] = (),
    inputs: Mapping[str, str] | Iterable[str] | None = None,
    precondition: Callable[[Any], Any] | None = None,
) -> Any:
    """Turn *fn* into a :class:`Unit` subclass. Usable bare or with options.

    Raises:
        DualParameterDefinitionError: *inputs* given while *fn* also takes
            input parameters.
    """
    if fn is not None:
        return _build(fn, outputs=outputs, inputs=inputs, precondition=precondition)

    def decorate(func: Callable[..., Any]) -> type[Unit]:
        return _build(func, outputs=outputs, inputs=inputs, precondition=precondition)

    return decorate
