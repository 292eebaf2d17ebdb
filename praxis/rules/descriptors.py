"""Descriptors binding rule and constraint implementations to stable ids."""

from __future__ import annotations

from dataclasses import dataclass, field
from numbers import Real
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Literal, Mapping, Optional, Sequence, Union

from ..core.protocol import Event, Fact
from ..ledger.contracts import Contract

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..engine.engine import DraftState

RuleFn = Callable[["DraftState", Sequence[Event]], Optional[Sequence[Fact]]]
ConstraintFn = Callable[["DraftState"], Union[bool, str]]
ConstraintSeverity = Literal["error", "warning"]


def _freeze(descriptor: Any) -> None:
    meta = descriptor.meta
    object.__setattr__(descriptor, "meta", MappingProxyType(dict(meta or {})))
    contract = descriptor.contract
    if contract is not None and not isinstance(contract, Contract):
        object.__setattr__(descriptor, "contract", Contract.model_validate(contract))


def _priority(meta: Mapping[str, Any]) -> float:
    value = meta.get("priority", 0)
    if isinstance(value, bool) or not isinstance(value, Real):
        return 0.0
    return float(value)


@dataclass(frozen=True)
class RuleDescriptor:
    """A rule: a pure function deriving facts from draft state and events."""

    id: str
    description: str
    impl: RuleFn
    contract: Optional[Contract] = None
    meta: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _freeze(self)

    @property
    def priority(self) -> float:
        return _priority(self.meta)


@dataclass(frozen=True)
class ConstraintDescriptor:
    """A constraint: a pure predicate over the draft state after rules ran.

    ``impl`` returns ``True`` when satisfied and a message (or ``False``)
    when violated.
    """

    id: str
    description: str
    impl: ConstraintFn
    severity: ConstraintSeverity = "error"
    contract: Optional[Contract] = None
    meta: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _freeze(self)

    @property
    def priority(self) -> float:
        return _priority(self.meta)


@dataclass(frozen=True)
class PraxisModule:
    """A bundle of rules and constraints registered together."""

    rules: Sequence[RuleDescriptor] = ()
    constraints: Sequence[ConstraintDescriptor] = ()
    meta: Mapping[str, Any] = field(default_factory=dict)


__all__ = [
    "ConstraintDescriptor",
    "ConstraintFn",
    "ConstraintSeverity",
    "PraxisModule",
    "RuleDescriptor",
    "RuleFn",
]
