"""Text, JSON and SARIF renderings of a :class:`ValidationReport`.

All renderers are pure functions of the report, so the three formats
always agree on what is complete and what is not.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, List

from .validation import ValidationReport

SARIF_VERSION = "2.1.0"
SARIF_SCHEMA = "https://raw.githubusercontent.com/oasis-tcs/sarif-spec/master/Schemata/sarif-schema-2.1.0.json"
TOOL_NAME = "Praxis Decision Ledger"
TOOL_VERSION = "1.0.0"

_SARIF_LEVELS = {"error": "error", "warning": "warning", "info": "note"}
_TEXT_ICONS = {"error": "✗", "warning": "⚠", "info": "ℹ"}
_SARIF_RULES = {
    "contract": "Rule or constraint missing contract",
    "behavior": "Contract missing behavior description",
    "examples": "Contract missing examples",
    "invariants": "Contract missing invariants",
    "tests": "Contract missing tests",
    "spec": "Contract missing spec",
}


def format_text(report: ValidationReport) -> str:
    lines: List[str] = [
        "Contract Validation Report",
        "=" * 50,
        "",
        f"Total: {report.total}",
        f"Complete: {len(report.complete)}",
        f"Incomplete: {len(report.incomplete)}",
        f"Missing: {len(report.missing)}",
        "",
    ]
    if report.complete:
        lines.append("✓ Complete Contracts:")
        for entry in report.complete:
            lines.append(f"  ✓ {entry.rule_id} (v{entry.contract.version or '1.0.0'})")
        lines.append("")
    if report.incomplete:
        lines.append("✗ Incomplete Contracts:")
        for gap in report.incomplete:
            lines.append(f"  {_TEXT_ICONS[gap.severity]} {gap.rule_id} - Missing: {', '.join(gap.missing)}")
            if gap.message:
                lines.append(f"     {gap.message}")
        lines.append("")
    lines.append(f"Result: {'PASSED' if report.passed else 'FAILED'}{' (strict)' if report.strict else ''}")
    lines.append(f"Validated at: {report.timestamp}")
    return "\n".join(lines)


def report_to_dict(report: ValidationReport) -> Dict[str, Any]:
    return {
        "complete": [
            {"id": entry.rule_id, "kind": entry.kind, "version": entry.contract.version}
            for entry in report.complete
        ],
        "incomplete": [
            {
                "id": gap.rule_id,
                "kind": gap.kind,
                "missingFields": list(gap.missing),
                "severity": gap.severity,
                "message": gap.message,
            }
            for gap in report.incomplete
        ],
        "missing": list(report.missing),
        "total": report.total,
        "strict": report.strict,
        "passed": report.passed,
        "timestamp": report.timestamp,
    }


def format_json(report: ValidationReport) -> str:
    return json.dumps(report_to_dict(report), indent=2)


def report_to_sarif(report: ValidationReport) -> Dict[str, Any]:
    results = []
    for gap in report.incomplete:
        primary = gap.missing[0] if gap.missing else "contract"
        results.append(
            {
                "ruleId": f"decision-ledger/{primary}",
                "level": _SARIF_LEVELS[gap.severity],
                "message": {"text": gap.message or f"Missing: {', '.join(gap.missing)}"},
                "locations": [
                    {
                        "physicalLocation": {
                            "artifactLocation": {"uri": "registry"},
                            "region": {"startLine": 1},
                        },
                        "logicalLocations": [{"name": gap.rule_id, "kind": gap.kind}],
                    }
                ],
                "properties": {"ruleId": gap.rule_id, "missing": list(gap.missing)},
            }
        )
    return {
        "version": SARIF_VERSION,
        "$schema": SARIF_SCHEMA,
        "runs": [
            {
                "tool": {
                    "driver": {
                        "name": TOOL_NAME,
                        "version": TOOL_VERSION,
                        "rules": [
                            {"id": f"decision-ledger/{name}", "shortDescription": {"text": text}}
                            for name, text in _SARIF_RULES.items()
                        ],
                    }
                },
                "results": results,
            }
        ],
    }


def format_sarif(report: ValidationReport) -> str:
    return json.dumps(report_to_sarif(report), indent=2)


FORMATTERS: Dict[str, Callable[[ValidationReport], str]] = {
    "text": format_text,
    "json": format_json,
    "sarif": format_sarif,
}


def render(report: ValidationReport, output: str = "text") -> str:
    try:
        formatter = FORMATTERS[output]
    except KeyError as exc:
        raise ValueError(f"Unknown report format '{output}'") from exc
    return formatter(report)


__all__ = [
    "FORMATTERS",
    "format_json",
    "format_sarif",
    "format_text",
    "render",
    "report_to_dict",
    "report_to_sarif",
]
