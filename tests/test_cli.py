import json
from pathlib import Path

import pytest

from praxis import cli
from praxis.ledger import LogicLedger

COMPLETE_REGISTRY = """
from praxis.ledger import define_contract
from praxis.rules import PraxisRegistry, RuleDescriptor

registry = PraxisRegistry()
registry.register_rule(
    RuleDescriptor(
        "billing.invoice",
        "Create invoices",
        lambda state, events: [],
        contract=define_contract(
            "billing.invoice",
            behavior="Creates one invoice per order",
            examples=[{"given": "an order", "when": "CHECKOUT", "then": "an invoice exists"}],
            invariants=["Invoices are never deleted"],
        ),
    )
)
"""

INCOMPLETE_REGISTRY = COMPLETE_REGISTRY + """
registry.register_rule(RuleDescriptor("billing.refund", "Refund orders", lambda state, events: []))
"""


def _registry_file(tmp_path: Path, source: str, name: str = "cli_rules.py") -> str:
    path = tmp_path / name
    path.write_text(source, encoding="utf-8")
    return str(path)


def test_complete_registry_passes(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = cli.main([_registry_file(tmp_path, COMPLETE_REGISTRY), "--strict"])
    output = capsys.readouterr().out
    assert exit_code == 0
    assert "Complete: 1" in output
    assert "Result: PASSED (strict)" in output


def test_incomplete_registry_only_fails_in_strict_mode(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    target = _registry_file(tmp_path, INCOMPLETE_REGISTRY)

    assert cli.main([target]) == 0
    capsys.readouterr()

    assert cli.main([target, "--strict", "--output", "json"]) == 1
    report = json.loads(capsys.readouterr().out)
    assert report["passed"] is False
    assert report["missing"] == ["billing.refund"]
    assert report["incomplete"][0]["severity"] == "error"


def test_sarif_output(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    cli.main([_registry_file(tmp_path, INCOMPLETE_REGISTRY), "--output", "sarif"])
    sarif = json.loads(capsys.readouterr().out)
    assert [result["ruleId"] for result in sarif["runs"][0]["results"]] == ["decision-ledger/contract"]


def test_unloadable_registry_exits_with_two(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main([str(tmp_path / "missing.py")]) == 2
    assert "Cannot load registry" in capsys.readouterr().err


def test_failing_registry_factory_exits_with_two(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    target = _registry_file(tmp_path, 'def create_registry():\n    raise RuntimeError("boom")\n', name="failing_rules.py")
    assert cli.main([target]) == 2
    assert "RuntimeError: boom" in capsys.readouterr().err


def test_ledger_option_records_contracts(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    target = _registry_file(tmp_path, INCOMPLETE_REGISTRY)
    ledger_root = tmp_path / "ledger"
    tests_dir = tmp_path / "tests"
    tests_dir.mkdir()
    (tests_dir / "test_billing_invoice.py").write_text("", encoding="utf-8")

    assert cli.main([target, "--ledger", str(ledger_root), "--author", "ci", "--tests-dir", str(tests_dir)]) == 0
    assert cli.main([target, "--ledger", str(ledger_root), "--author", "ci", "--tests-dir", str(tests_dir)]) == 0
    capsys.readouterr()

    ledger = LogicLedger(ledger_root)
    assert ledger.rule_ids() == ["billing.invoice"]
    latest = ledger.latest("billing.invoice")
    assert latest.version == 2
    assert latest.author == "ci"
    assert latest.artifacts.tests_present is True
    assert latest.drift.change_summary == "unchanged"


def test_emit_facts_to_stdout_and_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    target = _registry_file(tmp_path, INCOMPLETE_REGISTRY)

    cli.main([target, "--output", "json", "--emit-facts"])
    out = capsys.readouterr().out
    decoder = json.JSONDecoder()
    report, end = decoder.raw_decode(out)
    facts = json.loads(out[end:])
    assert report["total"] == 2
    assert [fact["tag"] for fact in facts] == ["ContractMissing", "ContractValidated"]

    gap_file = tmp_path / "out" / "gaps.json"
    cli.main([target, "--gap-output", str(gap_file)])
    written = json.loads(gap_file.read_text(encoding="utf-8"))
    assert written[0]["payload"]["ruleId"] == "billing.refund"


def test_log_level_defaults_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(cli.LOG_LEVEL_ENV, "DEBUG")
    args = cli.build_argument_parser().parse_args(["module:registry"])
    assert args.log_level == "DEBUG"
    assert args.output == "text"
    assert args.tests_dirs is None
