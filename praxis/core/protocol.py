"""Pydantic models describing the language-neutral Praxis protocol.

Every model serialises to camelCase JSON (``model_dump(by_alias=True)``)
and validates from either the camelCase or the snake_case spelling, so the
same payloads can be exchanged with implementations in other languages.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

PROTOCOL_VERSION = "1.0.0"

DiagnosticKind = Literal["rule-error", "constraint-violation"]
Severity = Literal["error", "warning"]


class ProtocolModel(BaseModel):
    """Base model shared by all wire types."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class Fact(ProtocolModel):
    """A typed proposition about the domain."""

    tag: str = Field(..., min_length=1)
    payload: Any = None


class Event(ProtocolModel):
    """A typed trigger supplied to a single engine step."""

    tag: str = Field(..., min_length=1)
    payload: Any = None


class State(ProtocolModel):
    """The state of an engine at a point in time."""

    context: Any = None
    facts: List[Fact] = Field(default_factory=list)
    meta: Dict[str, Any] = Field(default_factory=dict)
    protocol_version: str = PROTOCOL_VERSION

    def digest(self) -> str:
        """Return a SHA256 digest of the canonical JSON form of the state.

        The context must be JSON serialisable for the digest to be defined.
        """

        serialised = json.dumps(self.to_payload(), sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(serialised.encode("utf-8")).hexdigest()


class Diagnostic(ProtocolModel):
    """A non-fatal report of a rule error or a constraint violation."""

    kind: DiagnosticKind
    message: str
    rule_id: Optional[str] = None
    constraint_id: Optional[str] = None
    severity: Optional[Severity] = None
    data: Optional[Dict[str, Any]] = None

    @classmethod
    def rule_error(cls, rule_id: str, message: str, **data: Any) -> "Diagnostic":
        return cls(kind="rule-error", message=message, rule_id=rule_id, severity="error", data=data or None)

    @classmethod
    def constraint_error(cls, constraint_id: str, message: str, **data: Any) -> "Diagnostic":
        """A constraint whose implementation raised instead of returning."""

        return cls(
            kind="rule-error",
            message=message,
            constraint_id=constraint_id,
            severity="error",
            data=data or None,
        )

    @classmethod
    def constraint_violation(
        cls, constraint_id: str, message: str, severity: Severity = "error", **data: Any
    ) -> "Diagnostic":
        return cls(
            kind="constraint-violation",
            message=message,
            constraint_id=constraint_id,
            severity=severity,
            data=data or None,
        )

    @property
    def source_id(self) -> Optional[str]:
        return self.rule_id if self.rule_id is not None else self.constraint_id


class StepResult(ProtocolModel):
    """Container for the result of an engine step."""

    state: State
    diagnostics: List[Diagnostic] = Field(default_factory=list)
    committed: bool = True

    def errors(self) -> List[Diagnostic]:
        return [diagnostic for diagnostic in self.diagnostics if diagnostic.severity == "error"]

    def warnings(self) -> List[Diagnostic]:
        return [diagnostic for diagnostic in self.diagnostics if diagnostic.severity == "warning"]

    @property
    def ok(self) -> bool:
        return not self.errors()


__all__ = [
    "Diagnostic",
    "DiagnosticKind",
    "Event",
    "Fact",
    "PROTOCOL_VERSION",
    "ProtocolModel",
    "Severity",
    "State",
    "StepResult",
]
