"""Pydantic models describing behavioural contracts for rules and constraints."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, List, Literal, Mapping, Optional, Sequence

from pydantic import Field, ValidationError

from ..core.protocol import ProtocolModel
from .errors import ContractDefinitionError

AssumptionImpact = Literal["spec", "tests", "code"]
AssumptionStatus = Literal["active", "revised", "invalidated"]
GapSeverity = Literal["error", "warning", "info"]
MissingArtifact = Literal["behavior", "examples", "invariants", "tests", "spec", "contract"]
ContractField = Literal["behavior", "examples", "invariants"]

DEFAULT_REQUIRED_FIELDS: tuple[ContractField, ...] = ("behavior", "examples", "invariants")


class Example(ProtocolModel):
    """A Given/When/Then example. Prose, not executable."""

    given: str
    when: str
    then: str


class Assumption(ProtocolModel):
    """An explicit assumption made while writing a contract."""

    id: str = Field(..., min_length=1)
    statement: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    justification: str = ""
    derived_from: Optional[str] = None
    impacts: List[AssumptionImpact] = Field(default_factory=list)
    status: AssumptionStatus = "active"


class Reference(ProtocolModel):
    """A pointer to external documentation."""

    type: str
    url: Optional[str] = None
    description: Optional[str] = None


class Contract(ProtocolModel):
    """Documented behaviour of a rule or constraint."""

    rule_id: str = Field(..., min_length=1)
    behavior: str = ""
    examples: List[Example] = Field(default_factory=list)
    invariants: List[str] = Field(default_factory=list)
    assumptions: List[Assumption] = Field(default_factory=list)
    references: List[Reference] = Field(default_factory=list)
    version: Optional[str] = None
    timestamp: Optional[str] = None

    def canonical(self) -> dict[str, Any]:
        """Return the JSON form used for equality across ledger versions.

        The authoring timestamp is excluded so re-recording the same
        contract later is not reported as a change.
        """

        return self.model_dump(mode="json", by_alias=True, exclude={"timestamp"})


class ContractGap(ProtocolModel):
    """A rule or constraint whose contract is absent or incomplete."""

    rule_id: str
    missing: List[MissingArtifact]
    severity: GapSeverity = "warning"
    kind: Literal["rule", "constraint"] = "rule"
    message: Optional[str] = None


def define_contract(
    rule_id: str,
    *,
    behavior: str,
    examples: Sequence[Example | Mapping[str, Any]],
    invariants: Sequence[str] = (),
    assumptions: Optional[Sequence[Assumption | Mapping[str, Any]]] = None,
    references: Optional[Sequence[Reference | Mapping[str, Any]]] = None,
    version: str = "1.0.0",
    timestamp: Optional[str] = None,
) -> Contract:
    """Define a contract, requiring at least one example."""

    if not examples:
        raise ContractDefinitionError("Contract must have at least one example")
    if timestamp is None:
        timestamp = datetime.now(timezone.utc).isoformat()
    return Contract.model_validate(
        {
            "rule_id": rule_id,
            "behavior": behavior,
            "examples": list(examples),
            "invariants": list(invariants),
            "assumptions": list(assumptions or []),
            "references": list(references or []),
            "version": version,
            "timestamp": timestamp,
        }
    )


def is_contract(obj: Any) -> bool:
    """Return ``True`` when ``obj`` is a well formed contract with examples."""

    if isinstance(obj, Contract):
        contract = obj
    elif isinstance(obj, Mapping):
        try:
            contract = Contract.model_validate(obj)
        except ValidationError:
            return False
    else:
        return False
    return bool(contract.examples)


def get_contract(source: Any) -> Optional[Contract]:
    """Extract the contract attached to a descriptor or a metadata mapping.

    Descriptors carry the contract in their ``contract`` field; older
    definitions keep it under ``meta["contract"]``. Mappings that do not
    validate as a contract are ignored.
    """

    contract = getattr(source, "contract", None)
    if contract is None:
        meta = getattr(source, "meta", source)
        if isinstance(meta, Mapping):
            contract = meta.get("contract")
    if contract is None or isinstance(contract, Contract):
        return contract
    if isinstance(contract, Mapping):
        try:
            return Contract.model_validate(contract)
        except ValidationError:
            return None
    return None


def missing_fields(contract: Contract, required_fields: Iterable[str]) -> List[MissingArtifact]:
    """Return the required fields that are empty in ``contract``."""

    required = set(required_fields)
    missing: List[MissingArtifact] = []
    if "behavior" in required and not contract.behavior.strip():
        missing.append("behavior")
    if "examples" in required and not contract.examples:
        missing.append("examples")
    if "invariants" in required and not contract.invariants:
        missing.append("invariants")
    return missing


__all__ = [
    "Assumption",
    "AssumptionImpact",
    "AssumptionStatus",
    "Contract",
    "ContractField",
    "ContractGap",
    "DEFAULT_REQUIRED_FIELDS",
    "Example",
    "GapSeverity",
    "MissingArtifact",
    "Reference",
    "define_contract",
    "get_contract",
    "is_contract",
    "missing_fields",
]
