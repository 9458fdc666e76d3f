"""workchain — contract-checked units of work and the chains that compose them."""

from __future__ import annotations

from workchain.core.composer import IsolatedComposer
from workchain.core.contract import Contract, Requirement
from workchain.core.pipeline import AccumulatingComposer
from workchain.core.unit import Unit
from workchain.shorthand import guard, unit

__version__ = "0.4.0"

__all__ = [
    "AccumulatingComposer",
    "Contract",
    "IsolatedComposer",
    "Requirement",
    "Unit",
    "__version__",
    "guard",
    "unit",
]
