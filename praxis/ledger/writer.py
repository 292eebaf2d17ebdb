"""Append-only, versioned on-disk ledger of contracts with drift detection.

Layout under ``<root>/logic-ledger``::

    index.json                 {"rules": {rule_id: {"dir": slug, "version": n}}}
    <slug>/v0001.json          one immutable file per version
    <slug>/v0002.json
    <slug>/LATEST.json         copy of the highest version written
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field, ValidationError

from ..core.protocol import ProtocolModel
from .contracts import Assumption, Contract, Example
from .errors import LedgerWriteError
from .validation import Clock, utc_now

LOGGER = logging.getLogger(__name__)

LEDGER_DIRNAME = "logic-ledger"
INDEX_FILENAME = "index.json"
LATEST_FILENAME = "LATEST.json"
_VERSION_FILE = re.compile(r"^v(\d+)\.json$")

ChangeSummary = Literal["created", "unchanged", "updated"]


class CanonicalBehavior(ProtocolModel):
    behavior: str
    examples: List[Example] = Field(default_factory=list)
    invariants: List[str] = Field(default_factory=list)


class ArtifactPresence(ProtocolModel):
    contract_present: bool = True
    tests_present: bool = False
    spec_present: bool = False


class DriftSummary(ProtocolModel):
    change_summary: ChangeSummary
    assumptions_invalidated: List[str] = Field(default_factory=list)
    assumptions_revised: List[str] = Field(default_factory=list)
    conflicts: List[str] = Field(default_factory=list)


class LedgerEntry(ProtocolModel):
    """One immutable version of a rule's declared behaviour."""

    rule_id: str
    version: int = Field(..., ge=1)
    timestamp: str
    author: str
    contract: Contract
    canonical_behavior: CanonicalBehavior
    assumptions: List[Assumption] = Field(default_factory=list)
    artifacts: ArtifactPresence = Field(default_factory=ArtifactPresence)
    drift: DriftSummary


@dataclass(frozen=True)
class LedgerWriteOptions:
    """Options for :func:`write_ledger_entry`.

    ``skip_unchanged`` is an optimisation: when the contract is identical
    to the latest version the latest entry is returned and nothing is
    written. By default an ``unchanged`` entry is appended.
    """

    root_dir: Path
    author: str = "system"
    tests_present: bool = False
    spec_present: bool = False
    skip_unchanged: bool = False
    clock: Clock = field(default=utc_now, compare=False)


def compute_drift(previous: Optional[Contract], current: Contract) -> DriftSummary:
    """Compare two consecutive versions of a contract."""

    if previous is None:
        return DriftSummary(change_summary="created")

    conflicts: List[str] = []
    if previous.behavior != current.behavior:
        conflicts.append("behavior-changed")
    if previous.examples != current.examples:
        conflicts.append("examples-changed")
    if set(previous.invariants) != set(current.invariants):
        conflicts.append("invariants-changed")
    if previous.assumptions != current.assumptions:
        conflicts.append("assumptions-changed")
    if previous.references != current.references:
        conflicts.append("references-changed")

    current_assumptions = {assumption.id: assumption for assumption in current.assumptions}
    invalidated = [
        prior.id
        for prior in previous.assumptions
        if prior.status == "active"
        and (prior.id not in current_assumptions or current_assumptions[prior.id].status == "invalidated")
    ]
    revised = [
        prior.id
        for prior in previous.assumptions
        if prior.id in current_assumptions and current_assumptions[prior.id].statement != prior.statement
    ]

    unchanged = previous.canonical() == current.canonical()
    return DriftSummary(
        change_summary="unchanged" if unchanged else "updated",
        assumptions_invalidated=invalidated,
        assumptions_revised=revised,
        conflicts=conflicts,
    )


def rule_slug(rule_id: str) -> str:
    """Return the filesystem safe directory name for ``rule_id``.

    A short hash keeps ids that sanitise to the same text apart.
    """

    digest = hashlib.sha256(rule_id.encode("utf8")).hexdigest()[:6]
    return f"{re.sub(r'[^a-zA-Z0-9_-]', '-', rule_id)}-{digest}".lower()


class LogicLedger:
    """Reader and append-only writer for a ledger directory."""

    def __init__(self, root_dir: Path | str) -> None:
        self.root_dir = Path(root_dir)
        self.ledger_dir = self.root_dir / LEDGER_DIRNAME

    # ------------------------------------------------------------------ reading
    def rule_dir(self, rule_id: str) -> Path:
        return self.ledger_dir / rule_slug(rule_id)

    def index(self) -> Dict[str, Dict[str, Any]]:
        path = self.ledger_dir / INDEX_FILENAME
        if not path.exists():
            return {}
        payload = json.loads(path.read_text(encoding="utf-8"))
        return dict(payload.get("rules", {}))

    def rule_ids(self) -> List[str]:
        return sorted(self.index())

    def latest(self, rule_id: str) -> Optional[LedgerEntry]:
        path = self.rule_dir(rule_id) / LATEST_FILENAME
        if not path.exists():
            return None
        return _read_entry(path)

    def entry(self, rule_id: str, version: int) -> Optional[LedgerEntry]:
        path = self.rule_dir(rule_id) / _version_filename(version)
        if not path.exists():
            return None
        return _read_entry(path)

    def history(self, rule_id: str) -> List[LedgerEntry]:
        """Return every version of ``rule_id`` from oldest to newest."""

        directory = self.rule_dir(rule_id)
        if not directory.is_dir():
            return []
        versions = []
        for path in directory.iterdir():
            match = _VERSION_FILE.match(path.name)
            if match:
                versions.append((int(match.group(1)), path))
        return [_read_entry(path) for _, path in sorted(versions)]

    # ------------------------------------------------------------------ writing
    def append(self, contract: Contract, options: LedgerWriteOptions) -> LedgerEntry:
        rule_id = contract.rule_id
        try:
            prior = self.latest(rule_id)
        except (OSError, ValueError) as exc:
            raise LedgerWriteError(rule_id, f"cannot read latest entry: {exc}") from exc

        drift = compute_drift(prior.contract if prior else None, contract)
        if prior is not None and options.skip_unchanged and drift.change_summary == "unchanged":
            LOGGER.debug("Ledger entry for '%s' unchanged at v%d; skipping write", rule_id, prior.version)
            return prior

        version = prior.version + 1 if prior else 1
        entry = LedgerEntry(
            rule_id=rule_id,
            version=version,
            timestamp=options.clock().isoformat(),
            author=options.author,
            contract=contract,
            canonical_behavior=CanonicalBehavior(
                behavior=contract.behavior,
                examples=contract.examples,
                invariants=contract.invariants,
            ),
            assumptions=contract.assumptions,
            artifacts=ArtifactPresence(
                contract_present=True,
                tests_present=options.tests_present,
                spec_present=options.spec_present,
            ),
            drift=drift,
        )
        payload = json.dumps(entry.to_payload(), indent=2)
        directory = self.rule_dir(rule_id)
        version_path = directory / _version_filename(version)
        try:
            directory.mkdir(parents=True, exist_ok=True)
            with version_path.open("x", encoding="utf-8") as handle:
                handle.write(payload)
            _atomic_write(directory / LATEST_FILENAME, payload)
            self._update_index(rule_id, directory.name, version)
        except FileExistsError as exc:
            raise LedgerWriteError(rule_id, f"version {version} already exists", path=version_path) from exc
        except OSError as exc:
            raise LedgerWriteError(rule_id, str(exc), path=version_path) from exc

        LOGGER.info(
            "Recorded ledger entry %s v%d (%s)", rule_id, version, drift.change_summary
        )
        return entry

    def _update_index(self, rule_id: str, directory: str, version: int) -> None:
        try:
            rules = self.index()
        except ValueError:
            rules = {}
            LOGGER.warning("Rebuilding unreadable ledger index at %s", self.ledger_dir / INDEX_FILENAME)
        rules[rule_id] = {"dir": directory, "version": version}
        payload = json.dumps({"rules": dict(sorted(rules.items()))}, indent=2)
        _atomic_write(self.ledger_dir / INDEX_FILENAME, payload)


def write_ledger_entry(contract: Contract, options: LedgerWriteOptions) -> LedgerEntry:
    """Append a new version of ``contract`` to the ledger under ``options.root_dir``."""

    return LogicLedger(options.root_dir).append(contract, options)


def _version_filename(version: int) -> str:
    return f"v{version:04d}.json"


def _read_entry(path: Path) -> LedgerEntry:
    try:
        return LedgerEntry.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as exc:
        raise ValueError(f"Invalid ledger entry at {path}: {exc}") from exc


def _atomic_write(path: Path, payload: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    temporary = path.with_name(f".{path.name}.tmp")
    temporary.write_text(payload, encoding="utf-8")
    os.replace(temporary, path)


__all__ = [
    "ArtifactPresence",
    "CanonicalBehavior",
    "ChangeSummary",
    "DriftSummary",
    "LedgerEntry",
    "LedgerWriteOptions",
    "LogicLedger",
    "compute_drift",
    "rule_slug",
    "write_ledger_entry",
]
