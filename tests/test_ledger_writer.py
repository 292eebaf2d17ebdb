import json
from pathlib import Path

import pytest

from praxis.ledger import (
    Contract,
    LedgerWriteError,
    LedgerWriteOptions,
    LogicLedger,
    compute_drift,
    rule_slug,
    write_ledger_entry,
)

EXAMPLE = {"given": "g", "when": "w", "then": "t"}


def _contract(behavior: str = "A", invariants=("x",), **extra) -> Contract:
    return Contract(rule_id="orders.approve", behavior=behavior, examples=[EXAMPLE], invariants=list(invariants), **extra)


def _options(tmp_path: Path, fixed_clock, **overrides) -> LedgerWriteOptions:
    return LedgerWriteOptions(root_dir=tmp_path, clock=fixed_clock, **overrides)


def test_first_entry_is_created_with_version_one(tmp_path: Path, fixed_clock) -> None:
    entry = write_ledger_entry(_contract(), _options(tmp_path, fixed_clock, author="alice", tests_present=True))

    assert entry.version == 1
    assert entry.drift.change_summary == "created"
    assert entry.author == "alice"
    assert entry.timestamp == "2024-01-02T03:04:05+00:00"
    assert entry.artifacts.tests_present is True
    assert entry.artifacts.spec_present is False
    assert entry.canonical_behavior.behavior == "A"


def test_behavior_change_is_flagged_without_invariant_conflict(tmp_path: Path, fixed_clock) -> None:
    options = _options(tmp_path, fixed_clock)
    write_ledger_entry(_contract(behavior="A", invariants=["x"]), options)
    second = write_ledger_entry(_contract(behavior="B", invariants=["x"]), options)

    assert second.version == 2
    assert second.drift.change_summary == "updated"
    assert "behavior-changed" in second.drift.conflicts
    assert "invariants-changed" not in second.drift.conflicts


def test_unchanged_contract_appends_an_unchanged_entry(tmp_path: Path, fixed_clock) -> None:
    options = _options(tmp_path, fixed_clock)
    write_ledger_entry(_contract(timestamp="2024-01-01T00:00:00Z"), options)
    second = write_ledger_entry(_contract(timestamp="2024-02-01T00:00:00Z"), options)

    assert second.version == 2
    assert second.drift.change_summary == "unchanged"
    assert second.drift.conflicts == []
    assert [entry.version for entry in LogicLedger(tmp_path).history("orders.approve")] == [1, 2]


def test_skip_unchanged_returns_prior_entry_without_writing(tmp_path: Path, fixed_clock) -> None:
    options = _options(tmp_path, fixed_clock, skip_unchanged=True)
    first = write_ledger_entry(_contract(), options)
    again = write_ledger_entry(_contract(), options)

    assert again == first
    assert len(LogicLedger(tmp_path).history("orders.approve")) == 1


def test_on_disk_layout_mirrors_latest_and_index(tmp_path: Path, fixed_clock) -> None:
    options = _options(tmp_path, fixed_clock)
    write_ledger_entry(_contract(behavior="A"), options)
    write_ledger_entry(_contract(behavior="B"), options)

    slug = rule_slug("orders.approve")
    rule_dir = tmp_path / "logic-ledger" / slug
    assert sorted(path.name for path in rule_dir.iterdir()) == ["LATEST.json", "v0001.json", "v0002.json"]
    assert (rule_dir / "LATEST.json").read_text(encoding="utf-8") == (rule_dir / "v0002.json").read_text(encoding="utf-8")

    latest = json.loads((rule_dir / "LATEST.json").read_text(encoding="utf-8"))
    assert latest["ruleId"] == "orders.approve"
    assert latest["drift"]["changeSummary"] == "updated"
    assert latest["artifacts"] == {"contractPresent": True, "testsPresent": False, "specPresent": False}

    index = json.loads((tmp_path / "logic-ledger" / "index.json").read_text(encoding="utf-8"))
    assert index == {"rules": {"orders.approve": {"dir": slug, "version": 2}}}


def test_reader_side(tmp_path: Path, fixed_clock) -> None:
    options = _options(tmp_path, fixed_clock)
    write_ledger_entry(_contract(behavior="A"), options)
    write_ledger_entry(_contract(behavior="B"), options)
    write_ledger_entry(Contract(rule_id="other", behavior="C"), options)

    ledger = LogicLedger(tmp_path)
    assert ledger.rule_ids() == ["orders.approve", "other"]
    assert ledger.latest("orders.approve").contract.behavior == "B"
    assert ledger.entry("orders.approve", 1).contract.behavior == "A"
    assert ledger.entry("orders.approve", 3) is None
    assert ledger.latest("never.written") is None
    assert ledger.history("never.written") == []


def test_slug_is_filesystem_safe_and_collision_free() -> None:
    first = rule_slug("Orders/Approve")
    second = rule_slug("Orders:Approve")
    assert first.startswith("orders-approve-")
    assert second.startswith("orders-approve-")
    assert first != second
    assert len(first.rsplit("-", 1)[1]) == 6


def test_existing_version_file_raises_ledger_write_error(tmp_path: Path, fixed_clock) -> None:
    rule_dir = tmp_path / "logic-ledger" / rule_slug("orders.approve")
    rule_dir.mkdir(parents=True)
    (rule_dir / "v0001.json").write_text("{}", encoding="utf-8")

    with pytest.raises(LedgerWriteError) as excinfo:
        write_ledger_entry(_contract(), _options(tmp_path, fixed_clock))
    assert excinfo.value.code == "ERR_LEDGER_WRITE"
    assert excinfo.value.rule_id == "orders.approve"
    assert "already exists" in str(excinfo.value)


def test_unwritable_root_raises_ledger_write_error(tmp_path: Path, fixed_clock) -> None:
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("", encoding="utf-8")

    with pytest.raises(LedgerWriteError) as excinfo:
        write_ledger_entry(_contract(), _options(blocker, fixed_clock))
    assert isinstance(excinfo.value, OSError)


def test_corrupt_latest_raises_ledger_write_error(tmp_path: Path, fixed_clock) -> None:
    rule_dir = tmp_path / "logic-ledger" / rule_slug("orders.approve")
    rule_dir.mkdir(parents=True)
    (rule_dir / "LATEST.json").write_text("not json", encoding="utf-8")

    with pytest.raises(LedgerWriteError, match="cannot read latest entry"):
        write_ledger_entry(_contract(), _options(tmp_path, fixed_clock))


def test_drift_tracks_assumption_changes() -> None:
    previous = _contract(
        assumptions=[
            {"id": "A1", "statement": "Orders are small", "confidence": 0.9},
            {"id": "A2", "statement": "Single currency", "confidence": 0.7},
            {"id": "A3", "statement": "Manual review", "confidence": 0.5},
        ]
    )
    current = _contract(
        assumptions=[
            {"id": "A1", "statement": "Orders are usually small", "confidence": 0.9},
            {"id": "A2", "statement": "Single currency", "confidence": 0.7, "status": "invalidated"},
        ],
        references=[{"type": "doc", "url": "https://example.invalid/orders"}],
    )
    drift = compute_drift(previous, current)

    assert drift.change_summary == "updated"
    assert drift.assumptions_revised == ["A1"]
    assert drift.assumptions_invalidated == ["A2", "A3"]
    assert drift.conflicts == ["assumptions-changed", "references-changed"]


def test_drift_compares_invariants_as_sets_and_examples_by_content() -> None:
    reordered = compute_drift(_contract(invariants=["x", "y"]), _contract(invariants=["y", "x"]))
    assert "invariants-changed" not in reordered.conflicts

    changed = compute_drift(
        _contract(),
        Contract(rule_id="orders.approve", behavior="A", examples=[{"given": "g", "when": "w", "then": "other"}], invariants=["x"]),
    )
    assert changed.conflicts == ["examples-changed"]
    assert compute_drift(None, _contract()).change_summary == "created"
