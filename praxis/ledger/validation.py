"""Contract validation over the contents of a registry."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, FrozenSet, Iterable, List, Literal, Optional, Sequence

from pydantic import Field

from ..core.protocol import ProtocolModel
from .contracts import (
    DEFAULT_REQUIRED_FIELDS,
    Contract,
    ContractGap,
    GapSeverity,
    MissingArtifact,
    get_contract,
    missing_fields,
)

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..rules.registry import PraxisRegistry

Clock = Callable[[], datetime]

DEFAULT_TEST_DIRS = ("tests", "test")
DEFAULT_SPEC_DIRS = ("spec", "specs")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def artifact_slug(rule_id: str) -> str:
    """Return the file-name fragment used to find artifacts for ``rule_id``."""

    return re.sub(r"[^a-zA-Z0-9_-]", "_", rule_id)


@dataclass(frozen=True)
class ArtifactIndex:
    """Rule ids known to have test and/or spec artifacts.

    ``None`` means the artifact kind is not checked at all.
    """

    tests: Optional[FrozenSet[str]] = None
    spec: Optional[FrozenSet[str]] = None

    @classmethod
    def scan(
        cls,
        rule_ids: Iterable[str],
        *,
        tests_dirs: Optional[Sequence[Path]] = None,
        spec_dirs: Optional[Sequence[Path]] = None,
    ) -> "ArtifactIndex":
        """Build an index by looking for files whose name contains the rule id."""

        ids = list(rule_ids)
        return cls(
            tests=_scan_dirs(ids, tests_dirs) if tests_dirs is not None else None,
            spec=_scan_dirs(ids, spec_dirs) if spec_dirs is not None else None,
        )

    def has_tests(self, rule_id: str) -> bool:
        return self.tests is not None and rule_id in self.tests

    def has_spec(self, rule_id: str) -> bool:
        return self.spec is not None and rule_id in self.spec


def _scan_dirs(rule_ids: Sequence[str], directories: Sequence[Path]) -> FrozenSet[str]:
    names: List[str] = []
    for directory in directories:
        directory = Path(directory)
        if directory.is_dir():
            names.extend(path.name for path in directory.rglob("*") if path.is_file())
    return frozenset(rule_id for rule_id in rule_ids if any(artifact_slug(rule_id) in name for name in names))


@dataclass(frozen=True)
class ValidateOptions:
    """Options for :func:`validate_contracts`.

    ``strict`` raises every gap to ``error`` severity and makes the report
    fail when any descriptor is incomplete.
    """

    strict: bool = False
    required_fields: Sequence[str] = DEFAULT_REQUIRED_FIELDS
    missing_severity: GapSeverity = "warning"
    incomplete_severity: GapSeverity = "warning"
    artifact_index: Optional[ArtifactIndex] = None
    clock: Clock = field(default=utc_now, compare=False)


class CompleteEntry(ProtocolModel):
    rule_id: str
    kind: Literal["rule", "constraint"]
    contract: Contract


class ValidationReport(ProtocolModel):
    """Outcome of validating every descriptor of a registry."""

    complete: List[CompleteEntry] = Field(default_factory=list)
    incomplete: List[ContractGap] = Field(default_factory=list)
    missing: List[str] = Field(default_factory=list)
    total: int = 0
    strict: bool = False
    timestamp: str

    @property
    def passed(self) -> bool:
        return not (self.strict and self.incomplete)

    @property
    def exit_code(self) -> int:
        return 0 if self.passed else 1


def validate_contracts(registry: "PraxisRegistry", options: Optional[ValidateOptions] = None) -> ValidationReport:
    """Classify every rule and constraint as complete or incomplete.

    A descriptor without a contract is listed in ``missing`` and also
    reported as incomplete with ``missing=["contract"]``.
    """

    options = options or ValidateOptions()
    missing_severity: GapSeverity = "error" if options.strict else options.missing_severity
    incomplete_severity: GapSeverity = "error" if options.strict else options.incomplete_severity

    complete: List[CompleteEntry] = []
    incomplete: List[ContractGap] = []
    missing: List[str] = []
    descriptors: List[tuple[Literal["rule", "constraint"], Any]] = [
        *(("rule", rule) for rule in registry.get_all_rules()),
        *(("constraint", constraint) for constraint in registry.get_all_constraints()),
    ]
    for kind, descriptor in descriptors:
        label = kind.capitalize()
        contract = get_contract(descriptor)
        if contract is None:
            missing.append(descriptor.id)
            incomplete.append(
                ContractGap(
                    rule_id=descriptor.id,
                    missing=["contract"],
                    severity=missing_severity,
                    kind=kind,
                    message=f"{label} '{descriptor.id}' has no contract",
                )
            )
            continue
        gaps = _contract_gaps(descriptor.id, contract, options)
        if gaps:
            incomplete.append(
                ContractGap(
                    rule_id=descriptor.id,
                    missing=gaps,
                    severity=incomplete_severity,
                    kind=kind,
                    message=f"{label} '{descriptor.id}' contract is incomplete: missing {', '.join(gaps)}",
                )
            )
        else:
            complete.append(CompleteEntry(rule_id=descriptor.id, kind=kind, contract=contract))

    return ValidationReport(
        complete=complete,
        incomplete=incomplete,
        missing=missing,
        total=len(descriptors),
        strict=options.strict,
        timestamp=options.clock().isoformat(),
    )


def _contract_gaps(rule_id: str, contract: Contract, options: ValidateOptions) -> List[MissingArtifact]:
    gaps = missing_fields(contract, options.required_fields)
    index = options.artifact_index
    if index is not None:
        if index.tests is not None and not index.has_tests(rule_id):
            gaps.append("tests")
        if index.spec is not None and not index.has_spec(rule_id):
            gaps.append("spec")
    return gaps


__all__ = [
    "ArtifactIndex",
    "Clock",
    "CompleteEntry",
    "DEFAULT_SPEC_DIRS",
    "DEFAULT_TEST_DIRS",
    "ValidateOptions",
    "ValidationReport",
    "artifact_slug",
    "utc_now",
    "validate_contracts",
]
