"""Tests for the @unit / @guard declarative shorthand."""

from __future__ import annotations

from typing import Any

import pytest

from workchain.core.contract import Requirement
from workchain.core.pipeline import AccumulatingComposer
from workchain.core.unit import Unit
from workchain.errors import (
    ConfigurationError,
    DualParameterDefinitionError,
    PreconditionOrderError,
)
from workchain.shorthand import guard, unit


class TestDerivation:
    def test_bare_decorator_builds_unit(self) -> None:
        @unit
        def DoSomething(self: Unit) -> None:
            pass

        assert issubclass(DoSomething, Unit)
        assert DoSomething.call() == {"successful": True, "messages": []}

    def test_outputs_from_options(self) -> None:
        @unit(outputs=["foo"])
        def DoSomething(self: Unit) -> None:
            pass

        assert DoSomething.output_keys() == ["foo"]

    def test_inputs_from_options(self) -> None:
        @unit(inputs={"foo": "required", "bar": "optional"})
        def DoSomething(self: Unit) -> None:
            pass

        assert DoSomething.input_keys() == ["foo", "bar"]
        assert DoSomething.required_input_keys() == ["foo"]

    def test_inputs_from_signature(self) -> None:
        @unit
        def DoSomething(self: Unit, *, foo: Any, bar: Any = None) -> None:
            pass

        assert DoSomething.input_keys() == ["foo", "bar"]
        assert DoSomething.required_input_keys() == ["foo"]

    def test_matches_hand_declared_contract(self) -> None:
        @unit(outputs=["total"])
        def Sum(self: Unit, a: int, b: int = 0) -> None:
            pass

        class HandSum(Unit):
            inputs = {"a": "required", "b": "optional"}
            outputs = ("total",)

        assert Sum.contract() == HandSum.contract()
        assert Sum.contract().inputs == {"a": Requirement.REQUIRED, "b": Requirement.OPTIONAL}

    def test_dual_parameter_definition_rejected(self) -> None:
        with pytest.raises(DualParameterDefinitionError, match="DoSomething"):

            @unit(inputs={"foo": "required"})
            def DoSomething(self: Unit, *, foo: Any, bar: Any = None) -> None:
                pass

    def test_function_needs_instance_parameter(self) -> None:
        with pytest.raises(ConfigurationError):

            @unit
            def Nothing() -> None:
                pass

    def test_var_keyword_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="kwargs"):

            @unit
            def Loose(self: Unit, **kwargs: Any) -> None:
                pass

    def test_keeps_name_and_doc(self) -> None:
        @unit
        def Documented(self: Unit) -> None:
            """Does a thing."""

        assert Documented.__name__ == "Documented"
        assert Documented.__doc__ == "Does a thing."


class TestBody:
    def test_body_sets_result(self) -> None:
        @unit(outputs=["foo"])
        def DoSomething(self: Unit) -> None:
            self.result["foo"] = "called!"

        result = DoSomething.call()
        assert result["successful"] is True
        assert result["foo"] == "called!"

    def test_body_receives_inputs(self) -> None:
        @unit(outputs=["bar"])
        def DoSomething(self: Unit, *, foo: str) -> None:
            self.result["bar"] = foo

        assert DoSomething.call(foo="quux")["bar"] == "quux"

    def test_omitted_optional_uses_function_default(self) -> None:
        @unit(outputs=["greeting"])
        def Greet(self: Unit, *, name: str = "world") -> dict[str, str]:
            return {"greeting": f"hello {name}"}

        assert Greet.call()["greeting"] == "hello world"
        assert Greet.call(name="you")["greeting"] == "hello you"

    def test_body_can_die(self) -> None:
        @unit
        def Refuse(self: Unit) -> None:
            self.die("refused")

        assert Refuse.call() == {"successful": False, "messages": ["refused"]}

    def test_works_in_pipeline(self) -> None:
        @unit(outputs=["doubled"])
        def Double(self: Unit, *, value: int) -> dict[str, int]:
            return {"doubled": value * 2}

        @unit(outputs=["tripled"])
        def Triple(self: Unit, *, doubled: int) -> dict[str, int]:
            return {"tripled": doubled // 2 * 3}

        result = AccumulatingComposer.create(Double, Triple).call(value=5)
        assert result["tripled"] == 15


class TestPrecondition:
    def test_precondition_option(self) -> None:
        calls: list[str] = []

        @unit(precondition=lambda self: self.foo == "foo")
        def DoSomething(self: Unit, *, foo: str) -> None:
            calls.append(foo)

        DoSomething.call(foo="foo")
        skipped = DoSomething.call(foo="bar")

        assert calls == ["foo"]
        assert skipped["skipped"] is True

    def test_guard_decorator(self) -> None:
        calls: list[str] = []

        @unit
        @guard(lambda self: self.foo == "foo", name="is_foo")
        def DoSomething(self: Unit, *, foo: str) -> None:
            calls.append(foo)

        DoSomething.call(foo="foo")
        DoSomething.call(foo="bar")

        assert calls == ["foo"]
        assert DoSomething.contract().precondition == "is_foo"

    def test_guard_out_of_order(self) -> None:
        with pytest.raises(PreconditionOrderError):

            @guard(lambda self: True)
            @unit
            def DoSomething(self: Unit) -> None:
                pass

    def test_guard_and_option_conflict(self) -> None:
        with pytest.raises(ConfigurationError, match="either @guard or precondition="):

            @unit(precondition=lambda self: True)
            @guard(lambda self: True)
            def DoSomething(self: Unit) -> None:
                pass
