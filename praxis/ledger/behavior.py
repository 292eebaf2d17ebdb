"""In-memory, append-only ledger of contract decisions."""

from __future__ import annotations

import json
from typing import Dict, List, Literal, Optional

from pydantic import Field

from ..core.protocol import ProtocolModel
from .contracts import Assumption, AssumptionImpact, Contract

LEDGER_FORMAT_VERSION = "1.0.0"

EntryStatus = Literal["active", "superseded", "deprecated"]


class BehaviorEntry(ProtocolModel):
    id: str = Field(..., min_length=1)
    timestamp: str
    status: EntryStatus = "active"
    author: str
    contract: Contract
    supersedes: Optional[str] = None
    reason: Optional[str] = None


class BehaviorLedger:
    """Append-only record of contract decisions.

    ``entries()`` returns the history exactly as appended. Lookups by id
    see the current status: appending an entry that ``supersedes`` an
    active one marks the older entry ``superseded`` in the lookup view.
    """

    def __init__(self) -> None:
        self._history: List[BehaviorEntry] = []
        self._by_id: Dict[str, BehaviorEntry] = {}

    def __len__(self) -> int:
        return len(self._history)

    def append(self, entry: BehaviorEntry) -> None:
        if entry.id in self._by_id:
            raise ValueError(f"Ledger entry with id '{entry.id}' already exists")
        if entry.supersedes:
            previous = self._by_id.get(entry.supersedes)
            if previous is not None and previous.status == "active":
                self._by_id[previous.id] = previous.model_copy(update={"status": "superseded"})
        self._history.append(entry)
        self._by_id[entry.id] = entry

    def get_entry(self, entry_id: str) -> Optional[BehaviorEntry]:
        return self._by_id.get(entry_id)

    def entries(self) -> List[BehaviorEntry]:
        return list(self._history)

    def entries_for_rule(self, rule_id: str) -> List[BehaviorEntry]:
        """Current view of every entry recorded for ``rule_id`` in append order."""

        return [self._by_id[entry.id] for entry in self._history if entry.contract.rule_id == rule_id]

    def latest_entry(self, rule_id: str) -> Optional[BehaviorEntry]:
        active = [entry for entry in self.entries_for_rule(rule_id) if entry.status == "active"]
        return active[-1] if active else None

    def active_assumptions(self) -> Dict[str, Assumption]:
        assumptions: Dict[str, Assumption] = {}
        for entry in self._current():
            if entry.status != "active":
                continue
            for assumption in entry.contract.assumptions:
                if assumption.status == "active":
                    assumptions[assumption.id] = assumption
        return assumptions

    def find_assumptions_by_impact(self, impact: AssumptionImpact) -> List[Assumption]:
        return [assumption for assumption in self.active_assumptions().values() if impact in assumption.impacts]

    def stats(self) -> Dict[str, int]:
        current = self._current()
        return {
            "totalEntries": len(current),
            "activeEntries": sum(1 for entry in current if entry.status == "active"),
            "supersededEntries": sum(1 for entry in current if entry.status == "superseded"),
            "deprecatedEntries": sum(1 for entry in current if entry.status == "deprecated"),
            "uniqueRules": len({entry.contract.rule_id for entry in current}),
        }

    def to_json(self) -> str:
        return json.dumps(
            {
                "version": LEDGER_FORMAT_VERSION,
                "entries": [entry.to_payload() for entry in self._history],
                "stats": self.stats(),
            },
            indent=2,
        )

    @classmethod
    def from_json(cls, payload: str) -> "BehaviorLedger":
        """Rebuild a ledger by replaying the serialized history."""

        data = json.loads(payload)
        ledger = cls()
        for raw in data.get("entries", []):
            ledger.append(BehaviorEntry.model_validate(raw))
        return ledger

    def _current(self) -> List[BehaviorEntry]:
        return [self._by_id[entry.id] for entry in self._history]


__all__ = ["BehaviorEntry", "BehaviorLedger", "EntryStatus", "LEDGER_FORMAT_VERSION"]
