import json
from pathlib import Path

import pytest

from praxis.ledger import (
    ArtifactIndex,
    Contract,
    ValidateOptions,
    define_contract,
    format_json,
    format_sarif,
    format_text,
    render,
    validate_contracts,
)
from praxis.rules import ConstraintDescriptor, PraxisRegistry, RuleDescriptor

EXAMPLE = {"given": "g", "when": "w", "then": "t"}


def _impl(state, events):
    return []


def _complete(rule_id: str) -> Contract:
    return define_contract(rule_id, behavior="Does it", examples=[EXAMPLE], invariants=["holds"])


def make_registry() -> PraxisRegistry:
    registry = PraxisRegistry()
    registry.register_rule(RuleDescriptor("complete.one", "", _impl, contract=_complete("complete.one")))
    registry.register_rule(
        RuleDescriptor("no.behavior", "", _impl, contract=Contract(rule_id="no.behavior", examples=[EXAMPLE], invariants=["x"]))
    )
    registry.register_rule(RuleDescriptor("blank.behavior", "", _impl, contract=Contract(rule_id="blank.behavior", behavior=" ")))
    registry.register_rule(RuleDescriptor("bare", "", _impl))
    registry.register_constraint(
        ConstraintDescriptor("complete.constraint", "", lambda state: True, contract=_complete("complete.constraint"))
    )
    return registry


def test_report_classifies_every_descriptor(fixed_clock) -> None:
    report = validate_contracts(make_registry(), ValidateOptions(clock=fixed_clock))

    assert report.total == 5
    assert [entry.rule_id for entry in report.complete] == ["complete.one", "complete.constraint"]
    assert [entry.kind for entry in report.complete] == ["rule", "constraint"]
    assert report.missing == ["bare"]
    gaps = {gap.rule_id: gap for gap in report.incomplete}
    assert gaps["no.behavior"].missing == ["behavior"]
    assert gaps["blank.behavior"].missing == ["behavior", "examples", "invariants"]
    assert gaps["bare"].missing == ["contract"]
    assert all(gap.severity == "warning" for gap in report.incomplete)
    assert report.passed is True
    assert report.exit_code == 0
    assert report.timestamp == "2024-01-02T03:04:05+00:00"


def test_strict_mode_fails_and_raises_severity(fixed_clock) -> None:
    report = validate_contracts(make_registry(), ValidateOptions(strict=True, clock=fixed_clock))
    assert report.passed is False
    assert report.exit_code == 1
    assert {gap.severity for gap in report.incomplete} == {"error"}


def test_strict_mode_passes_when_everything_is_complete() -> None:
    registry = PraxisRegistry()
    registry.register_rule(RuleDescriptor("ok", "", _impl, contract=_complete("ok")))
    assert validate_contracts(registry, ValidateOptions(strict=True)).passed is True


def test_m_rules_without_behavior_report_m_incomplete_in_every_format(fixed_clock) -> None:
    registry = PraxisRegistry()
    for index in range(4):
        registry.register_rule(RuleDescriptor(f"good.{index}", "", _impl, contract=_complete(f"good.{index}")))
    for index in range(3):
        contract = Contract(rule_id=f"thin.{index}", examples=[EXAMPLE], invariants=["x"])
        registry.register_rule(RuleDescriptor(f"thin.{index}", "", _impl, contract=contract))

    report = validate_contracts(registry, ValidateOptions(clock=fixed_clock))
    assert len(report.incomplete) == 3

    as_json = json.loads(format_json(report))
    assert len(as_json["incomplete"]) == 3
    assert len(as_json["complete"]) == 4
    assert as_json["incomplete"][0]["missingFields"] == ["behavior"]

    sarif = json.loads(format_sarif(report))
    results = sarif["runs"][0]["results"]
    assert sarif["version"] == "2.1.0"
    assert len(results) == 3
    assert {result["ruleId"] for result in results} == {"decision-ledger/behavior"}
    assert {result["level"] for result in results} == {"warning"}

    text = format_text(report)
    assert "Incomplete: 3" in text
    assert "Complete: 4" in text
    assert text.count("Missing: behavior") == 3


def test_sarif_levels_follow_severity(fixed_clock) -> None:
    registry = make_registry()
    info_report = validate_contracts(
        registry,
        ValidateOptions(missing_severity="info", incomplete_severity="error", clock=fixed_clock),
    )
    levels = {
        result["properties"]["ruleId"]: result["level"]
        for result in json.loads(format_sarif(info_report))["runs"][0]["results"]
    }
    assert levels["bare"] == "note"
    assert levels["no.behavior"] == "error"


def test_render_selects_format_and_rejects_unknown(fixed_clock) -> None:
    report = validate_contracts(make_registry(), ValidateOptions(strict=True, clock=fixed_clock))
    assert render(report, "text").endswith("Validated at: 2024-01-02T03:04:05+00:00")
    assert "Result: FAILED (strict)" in render(report)
    assert json.loads(render(report, "json"))["passed"] is False
    with pytest.raises(ValueError):
        render(report, "xml")


def test_artifact_index_adds_tests_and_spec_gaps(tmp_path: Path, fixed_clock) -> None:
    tests_dir = tmp_path / "tests"
    spec_dir = tmp_path / "spec"
    (tests_dir / "nested").mkdir(parents=True)
    spec_dir.mkdir()
    (tests_dir / "nested" / "test_complete_one.py").write_text("", encoding="utf-8")
    (spec_dir / "complete_constraint.md").write_text("", encoding="utf-8")

    registry = make_registry()
    index = ArtifactIndex.scan(
        [*registry.rule_ids(), *registry.constraint_ids()],
        tests_dirs=[tests_dir],
        spec_dirs=[spec_dir, tmp_path / "missing"],
    )
    assert index.has_tests("complete.one") is True
    assert index.has_spec("complete.constraint") is True

    report = validate_contracts(registry, ValidateOptions(artifact_index=index, clock=fixed_clock))
    gaps = {gap.rule_id: gap.missing for gap in report.incomplete}
    assert gaps["complete.one"] == ["spec"]
    assert gaps["complete.constraint"] == ["tests"]
    assert report.complete == []


def test_unchecked_artifact_kinds_are_ignored() -> None:
    index = ArtifactIndex.scan(["r"], tests_dirs=None, spec_dirs=None)
    assert index.tests is None
    assert index.has_tests("r") is False
