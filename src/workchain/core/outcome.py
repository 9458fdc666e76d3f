"""Outcome helpers shared by units and composers.

An outcome is a plain dict with two reserved keys, ``successful`` and
``messages``, plus whatever the unit declared or the chain accumulated.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

Outcome = dict[str, Any]


def new_outcome(**values: Any) -> Outcome:
    """Fresh accumulator: successful, no messages, plus *values*."""
    return {**values, "successful": True, "messages": []}


def skipped_outcome() -> Outcome:
    """Outcome recorded for a registration whose precondition was falsy."""
    return {"successful": True, "skipped": True, "messages": []}


def as_messages(value: str | Iterable[str] | None) -> list[str]:
    """Coerce one message, many messages, or None into a list.

    Examples:
        >>> as_messages("oops")
        ['oops']
        >>> as_messages(None)
        []
        >>> as_messages(("a", "b"))
        ['a', 'b']
    """
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


def merge_outcome(accumulated: Mapping[str, Any], outcome: Mapping[str, Any]) -> Outcome:
    """Merge *outcome* over *accumulated*; ``messages`` concatenate, everything else overwrites."""
    messages = [*accumulated.get("messages", []), *as_messages(outcome.get("messages"))]
    return {**accumulated, **outcome, "messages": messages}


def preview(params: Mapping[str, Any], length: int) -> dict[str, str]:
    """Truncated ``repr`` of each value, for diagnostics.

    Examples:
        >>> preview({"name": "abcdef"}, 4)
        {'name': "'abc"}
    """
    return {k: repr(v)[:length] for k, v in params.items()}
