"""Helpers for declaring typed facts, events, rules, constraints and modules."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Generic, Iterable, List, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel

from .core.protocol import Event, Fact
from .ledger.contracts import Contract
from .rules.descriptors import (
    ConstraintDescriptor,
    ConstraintFn,
    ConstraintSeverity,
    PraxisModule,
    RuleDescriptor,
    RuleFn,
)

PayloadT = TypeVar("PayloadT", bound=BaseModel)
Tagged = Union[Fact, Event]


@dataclass(frozen=True)
class _TaggedDefinition(Generic[PayloadT]):
    tag: str
    payload_model: Optional[Type[PayloadT]] = None

    wire_type: ClassVar[type] = Fact

    def create(self, payload: Any = None, /, **fields: Any) -> Any:
        """Build an instance, validating the payload when a model is set.

        The payload may be given positionally (a model instance or a
        mapping) or as keyword fields.
        """

        if fields:
            if payload is not None:
                raise TypeError("pass the payload positionally or as keywords, not both")
            payload = fields
        if self.payload_model is not None:
            model = payload if isinstance(payload, self.payload_model) else self.payload_model.model_validate(payload or {})
            payload = model.model_dump(mode="json", by_alias=True, exclude_none=True)
        return self.wire_type(tag=self.tag, payload=payload)

    def is_(self, item: Any) -> bool:
        return isinstance(item, self.wire_type) and item.tag == self.tag

    def parse(self, item: Tagged) -> Any:
        """Return the payload of ``item``, as a model when one is declared."""

        if item.tag != self.tag:
            raise ValueError(f"Expected tag '{self.tag}', got '{item.tag}'")
        if self.payload_model is None:
            return item.payload
        return self.payload_model.model_validate(item.payload)


@dataclass(frozen=True)
class FactDefinition(_TaggedDefinition[PayloadT]):
    wire_type: ClassVar[type] = Fact


@dataclass(frozen=True)
class EventDefinition(_TaggedDefinition[PayloadT]):
    wire_type: ClassVar[type] = Event


def define_fact(tag: str, payload_model: Optional[Type[PayloadT]] = None) -> FactDefinition[PayloadT]:
    return FactDefinition(tag, payload_model)


def define_event(tag: str, payload_model: Optional[Type[PayloadT]] = None) -> EventDefinition[PayloadT]:
    return EventDefinition(tag, payload_model)


def filter_events(events: Iterable[Event], definition: EventDefinition[Any]) -> List[Event]:
    return [event for event in events if definition.is_(event)]


def filter_facts(facts: Iterable[Fact], definition: FactDefinition[Any]) -> List[Fact]:
    return [fact for fact in facts if definition.is_(fact)]


def find_event(events: Iterable[Event], definition: EventDefinition[Any]) -> Optional[Event]:
    return next((event for event in events if definition.is_(event)), None)


def find_fact(facts: Iterable[Fact], definition: FactDefinition[Any]) -> Optional[Fact]:
    return next((fact for fact in facts if definition.is_(fact)), None)


def define_rule(
    rule_id: str,
    description: str,
    impl: RuleFn,
    *,
    contract: Optional[Contract | Mapping[str, Any]] = None,
    meta: Optional[Mapping[str, Any]] = None,
) -> RuleDescriptor:
    return RuleDescriptor(id=rule_id, description=description, impl=impl, contract=contract, meta=meta or {})


def define_constraint(
    constraint_id: str,
    description: str,
    impl: ConstraintFn,
    *,
    severity: ConstraintSeverity = "error",
    contract: Optional[Contract | Mapping[str, Any]] = None,
    meta: Optional[Mapping[str, Any]] = None,
) -> ConstraintDescriptor:
    return ConstraintDescriptor(
        id=constraint_id,
        description=description,
        impl=impl,
        severity=severity,
        contract=contract,
        meta=meta or {},
    )


def define_module(
    rules: Iterable[RuleDescriptor] = (),
    constraints: Iterable[ConstraintDescriptor] = (),
    *,
    meta: Optional[Mapping[str, Any]] = None,
) -> PraxisModule:
    return PraxisModule(rules=tuple(rules), constraints=tuple(constraints), meta=dict(meta or {}))


__all__ = [
    "EventDefinition",
    "FactDefinition",
    "define_constraint",
    "define_event",
    "define_fact",
    "define_module",
    "define_rule",
    "filter_events",
    "filter_facts",
    "find_event",
    "find_fact",
]
