"""Unit — a single contract-checked operation.

A unit declares which inputs it accepts (required or optional), which
outputs it must produce, and optionally a precondition that can skip it.
Subclasses implement :meth:`Unit.perform` and are invoked through the
class-level entry points, never by instantiating them directly::

    class ChargeCard(Unit):
        inputs = {"card": "required", "amount": "required", "memo": "optional"}
        outputs = ("charge_id",)
        precondition = "is_chargeable"

        def is_chargeable(self) -> bool:
            return self.amount > 0

        def perform(self) -> None:
            if self.card.expired:
                self.die("card expired")
            self.result["charge_id"] = gateway.charge(self.card, self.amount)

    outcome = ChargeCard.call(card=card, amount=1200)

Invocation order is fixed: required inputs are checked first, then the
precondition, then the body, then the outputs. Domain failures never
raise from :meth:`Unit.call`; they come back as ``successful: False``
with ``messages``. :meth:`Unit.call_strict` raises :class:`FailureError`
instead.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any, ClassVar, NoReturn

from pydantic import BaseModel, ConfigDict, create_model

from workchain import diagnostics
from workchain.config.settings import get_settings
from workchain.core.contract import (
    RESERVED_KEYS,
    Contract,
    Precondition,
    normalize_outputs,
)
from workchain.core.outcome import Outcome, as_messages, new_outcome, preview
from workchain.errors import (
    AbortSignal,
    ContractError,
    ContractFrozenError,
    FailureError,
    ImplicitConfigurationError,
)

_PARAMS_CONFIG = ConfigDict(extra="allow", frozen=True)
# Instance attributes set by Unit.__init__.
_INSTANCE_ATTRS = ("params", "result")


class Unit:
    """Base class for contract-declared units of work.

    Class attributes ``inputs``, ``outputs`` and ``precondition`` declare the
    contract and are folded into :meth:`contract` when the subclass is
    created. Subclasses that declare nothing inherit their parent's contract.

    Attributes:
        params: Typed record of the bound inputs. Declared inputs
            that were not bound read as None; extra keys are kept.
        result: The outcome being built. Seeded with ``successful`` and
            ``messages``; the body sets declared outputs here.
    """

    _contract: ClassVar[Contract] = Contract()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        contract = cls._contract
        own = cls.__dict__
        if "inputs" in own:
            contract = contract.model_copy(update={"inputs": {}}).with_inputs(own["inputs"])
        if "outputs" in own:
            contract = contract.model_copy(update={"outputs": ()}).with_outputs(own["outputs"])
        if "precondition" in own:
            contract = contract.with_precondition(own["precondition"])
        for name in ("inputs", "outputs", "precondition"):
            if name in own:
                delattr(cls, name)
        cls._ensure_readable_inputs(contract)
        cls._contract = contract

    def __init__(self, params: dict[str, Any] | None = None) -> None:
        self._bound: dict[str, Any] = dict(params or {})
        self.params: BaseModel = type(self)._params_model().model_validate(self._bound)
        self.result: Outcome = new_outcome()

    def __getattr__(self, name: str) -> Any:
        params = self.__dict__.get("params")
        if params is not None and name in (type(self)._contract.inputs or {}):
            return getattr(params, name, None)
        msg = f"{type(self).__name__!r} object has no attribute {name!r}"
        raise AttributeError(msg)

    # ------------------------------------------------------------------
    # Contract declaration
    # ------------------------------------------------------------------

    @classmethod
    def contract(cls) -> Contract:
        return cls._contract

    @classmethod
    def input_keys(cls) -> list[str]:
        return cls._contract.input_keys

    @classmethod
    def required_input_keys(cls) -> list[str]:
        return cls._contract.required_inputs

    @classmethod
    def output_keys(cls) -> list[str]:
        return cls._contract.output_keys

    @classmethod
    def _ensure_open(cls) -> None:
        if cls.__dict__.get("_sealed"):
            raise ContractFrozenError(cls)

    @classmethod
    def _ensure_readable_inputs(cls, contract: Contract) -> None:
        shadowed = [
            key
            for key in contract.input_keys
            if key in _INSTANCE_ATTRS or key.startswith("_") or hasattr(cls, key)
        ]
        if shadowed:
            msg = (
                f"Input keys {shadowed!r} of {cls.__qualname__} collide with unit attributes "
                "and could not be read from the body"
            )
            raise ContractError(msg)

    @classmethod
    def declare_inputs(cls, *names: str, **requirements: str) -> None:
        """Add inputs to the contract.

        Positional names are optional inputs; keyword arguments map a name
        to ``"required"`` or ``"optional"``. Calling with nothing declares
        an explicitly empty input set.
        """
        cls._ensure_open()
        contract = cls._contract
        if contract.inputs is None:
            contract = contract.model_copy(update={"inputs": {}})
        contract = contract.with_inputs(names).with_inputs(requirements)
        cls._ensure_readable_inputs(contract)
        cls._contract = contract

    @classmethod
    def declare_outputs(cls, *names: str) -> None:
        """Add required outputs. Calling with nothing declares no outputs."""
        cls._ensure_open()
        contract = cls._contract
        if contract.outputs is None:
            contract = contract.model_copy(update={"outputs": ()})
        cls._contract = contract.with_outputs(normalize_outputs(names))

    @classmethod
    def declare_precondition(cls, precondition: Precondition | None) -> None:
        cls._ensure_open()
        cls._contract = cls._contract.with_precondition(precondition)

    @classmethod
    def _params_model(cls) -> type[BaseModel]:
        cached = cls.__dict__.get("_params_model_cache")
        if cached is not None and cached[0] is cls._contract:
            return cached[1]
        # Required inputs are enforced by _execute, so every field defaults to None.
        fields: dict[str, Any] = {key: (Any, None) for key in cls._contract.input_keys}
        model = create_model(f"{cls.__name__}Params", __config__=_PARAMS_CONFIG, **fields)
        cls._params_model_cache = (cls._contract, model)
        return model

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    @classmethod
    def call(cls, /, **inputs: Any) -> Outcome:
        """Run the unit against *inputs* and return its outcome.

        Raises:
            ImplicitConfigurationError: inputs or outputs were never declared.
        """
        contract = cls._contract
        if not contract.is_declared:
            raise ImplicitConfigurationError(cls)
        cls._sealed = True
        return cls(inputs)._execute(contract)

    @classmethod
    def call_strict(cls, /, **inputs: Any) -> Outcome:
        """Like :meth:`call`, but raise :class:`FailureError` on an unsuccessful outcome."""
        outcome = cls.call(**inputs)
        if not outcome["successful"]:
            raise FailureError(outcome["messages"], outcome)
        return outcome

    def perform(self) -> None:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Body helpers
    # ------------------------------------------------------------------

    def add_message(self, message: str | Iterable[str] | None) -> None:
        """Append one or more messages without touching ``successful``."""
        self.result["messages"].extend(as_messages(message))

    def die(self, messages: str | Iterable[str] | None = None) -> NoReturn:
        """Mark the outcome failed and stop the body immediately."""
        self.result["successful"] = False
        self.add_message(messages)
        diagnostics.warn(
            f"{type(self).__qualname__} failed on 'die' with messages "
            f"{self.result['messages']!r} and params: {self._preview()}"
        )
        raise AbortSignal

    def compose(
        self,
        units: Iterable[Any] | type[Unit] | Callable[[Any], Any],
        /,
        **inputs: Any,
    ) -> Outcome:
        """Run an ad hoc accumulating chain from inside :meth:`perform`.

        *units* is either the units to chain, in order, or a setup callable
        receiving the new composer. Only keys this unit declared as outputs
        (plus ``successful``) are copied from the chain's result, skipping
        None values. The chain's messages are always appended to this
        unit's messages. Returns the chain's full result.
        """
        from workchain.core.pipeline import AccumulatingComposer

        if isinstance(units, type) and issubclass(units, Unit):
            composer = AccumulatingComposer.create(units)
        elif isinstance(units, Iterable):
            composer = AccumulatingComposer.create(*units)
        else:
            composer = AccumulatingComposer.create(setup=units)

        chained = composer.call(**inputs)
        wanted = [*type(self).output_keys(), "successful"]
        selected = {key: chained[key] for key in wanted if chained.get(key) is not None}
        self.result.update(selected)
        self.add_message(chained.get("messages"))
        return chained

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _preview(self) -> dict[str, str]:
        return preview(self._bound, get_settings().preview_length)

    def _evaluate_precondition(self, precondition: Precondition) -> Any:
        if isinstance(precondition, str):
            return getattr(self, precondition)()
        return precondition(self)

    def _execute(self, contract: Contract) -> Outcome:
        name = type(self).__qualname__
        missing = [key for key in contract.required_inputs if key not in self._bound]
        if missing:
            self.add_message([f"{key!r} is required" for key in missing])
            self.result["successful"] = False
            diagnostics.info(
                f"Unit {name} was not executed with params: {self._preview()} : "
                f"missing required params {missing!r}"
            )
            return self._finalize()

        try:
            precondition = contract.precondition
            if precondition is None:
                diagnostics.info(
                    f"Unit {name} was executed with params: {self._preview()} : "
                    "no precondition defined"
                )
            else:
                passed = self._evaluate_precondition(precondition)
                label = (
                    precondition
                    if isinstance(precondition, str)
                    else getattr(precondition, "__name__", repr(precondition))
                )
                verdict = "executed" if passed else "skipped"
                diagnostics.info(
                    f"Unit {name} was {verdict} with params: {self._preview()} : "
                    f"precondition {label!r} evaluated to {passed!r}"
                )
                if not passed:
                    self.result["skipped"] = True
                    return self._finalize()
            self.perform()
        except AbortSignal:
            return self._finalize()

        if self.result["successful"]:
            self._check_outputs(contract)
        return self._finalize()

    def _check_outputs(self, contract: Contract) -> None:
        declared = contract.output_keys
        unset = [key for key in declared if key not in self.result]
        undeclared = [
            key for key in self.result if key not in RESERVED_KEYS and key not in declared
        ]
        self.add_message(
            [f"Unit implementation did not set required result: {key!r}" for key in unset]
        )
        self.add_message(
            [f"Unit implementation set undeclared result: {key!r}" for key in undeclared]
        )
        if unset or undeclared:
            self.result["successful"] = False

    def _finalize(self) -> Outcome:
        return {**self.result, "messages": list(self.result["messages"])}
