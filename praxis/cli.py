"""``praxis-validate``: validate the contracts of a registry."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from .core.logging_config import setup_logging
from .ledger.contracts import get_contract
from .ledger.errors import LedgerWriteError
from .ledger.facts import gaps_to_facts, validated_facts
from .ledger.formatters import FORMATTERS, render
from .ledger.validation import ArtifactIndex, ValidateOptions, ValidationReport, validate_contracts
from .ledger.writer import LedgerWriteOptions, write_ledger_entry
from .rules.errors import RegistryLoadError
from .rules.loader import load_registry
from .rules.registry import PraxisRegistry

LOGGER = logging.getLogger(__name__)

LOG_LEVEL_ENV = "PRAXIS_LOG_LEVEL"

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_LOAD_ERROR = 2


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="praxis-validate",
        description="Check that every rule and constraint in a registry carries a complete contract",
    )
    parser.add_argument(
        "registry",
        help="Registry to validate: 'package.module:attribute', 'package.module' or a path to a .py file",
    )
    parser.add_argument(
        "--output",
        choices=sorted(FORMATTERS),
        default="text",
        help="Report format (default: text)",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Treat incomplete contracts as errors and exit with status 1",
    )
    parser.add_argument(
        "--ledger",
        type=Path,
        metavar="DIR",
        help="Append a ledger entry for every contract under DIR/logic-ledger",
    )
    parser.add_argument("--author", default="system", help="Author recorded in ledger entries")
    parser.add_argument(
        "--tests-dir",
        dest="tests_dirs",
        type=Path,
        action="append",
        metavar="DIR",
        help="Require a test file naming each rule id under DIR (repeatable)",
    )
    parser.add_argument(
        "--spec-dir",
        dest="spec_dirs",
        type=Path,
        action="append",
        metavar="DIR",
        help="Require a spec file naming each rule id under DIR (repeatable)",
    )
    parser.add_argument(
        "--emit-facts",
        action="store_true",
        help="Print ContractMissing/ContractValidated facts as JSON after the report",
    )
    parser.add_argument(
        "--gap-output",
        type=Path,
        metavar="FILE",
        help="Write the contract facts as JSON to FILE instead of stdout",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get(LOG_LEVEL_ENV, "WARNING"),
        help=f"Logging level (default: ${LOG_LEVEL_ENV} or WARNING)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_argument_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    try:
        registry = load_registry(args.registry)
    except RegistryLoadError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_LOAD_ERROR

    ids = [*registry.rule_ids(), *registry.constraint_ids()]
    artifact_index: Optional[ArtifactIndex] = None
    if args.tests_dirs or args.spec_dirs:
        artifact_index = ArtifactIndex.scan(ids, tests_dirs=args.tests_dirs, spec_dirs=args.spec_dirs)

    report = validate_contracts(
        registry,
        ValidateOptions(strict=args.strict, artifact_index=artifact_index),
    )
    print(render(report, args.output))

    if args.ledger is not None:
        try:
            written = _record_ledger(registry, args.ledger, args.author, artifact_index)
        except LedgerWriteError as exc:
            print(f"error: {exc}", file=sys.stderr)
            return EXIT_FAILED
        LOGGER.info("Wrote %d ledger entr%s to %s", written, "y" if written == 1 else "ies", args.ledger)

    if args.emit_facts or args.gap_output is not None:
        _emit_facts(report, args.gap_output)

    return EXIT_OK if report.passed else EXIT_FAILED


def _record_ledger(
    registry: PraxisRegistry,
    root_dir: Path,
    author: str,
    artifact_index: Optional[ArtifactIndex],
) -> int:
    written = 0
    for descriptor in [*registry.get_all_rules(), *registry.get_all_constraints()]:
        contract = get_contract(descriptor)
        if contract is None:
            continue
        write_ledger_entry(
            contract,
            LedgerWriteOptions(
                root_dir=root_dir,
                author=author,
                tests_present=artifact_index is not None and artifact_index.has_tests(descriptor.id),
                spec_present=artifact_index is not None and artifact_index.has_spec(descriptor.id),
            ),
        )
        written += 1
    return written


def _emit_facts(report: ValidationReport, destination: Optional[Path]) -> None:
    facts: List[dict] = [fact.to_payload() for fact in [*gaps_to_facts(report), *validated_facts(report)]]
    payload = json.dumps(facts, indent=2)
    if destination is None:
        print(payload)
        return
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(payload, encoding="utf-8")
    LOGGER.info("Wrote %d contract fact(s) to %s", len(facts), destination)


if __name__ == "__main__":
    raise SystemExit(main())
