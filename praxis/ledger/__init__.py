"""Decision ledger: contracts, validation reports and the versioned ledger.

Gap facts and events live in :mod:`praxis.ledger.facts`; that module
builds on the rule DSL and is imported separately.
"""

from .behavior import BehaviorEntry, BehaviorLedger, EntryStatus
from .contracts import (
    DEFAULT_REQUIRED_FIELDS,
    Assumption,
    AssumptionImpact,
    AssumptionStatus,
    Contract,
    ContractGap,
    Example,
    GapSeverity,
    MissingArtifact,
    Reference,
    define_contract,
    get_contract,
    is_contract,
    missing_fields,
)
from .errors import ContractDefinitionError, LedgerWriteError
from .formatters import FORMATTERS, format_json, format_sarif, format_text, render, report_to_dict, report_to_sarif
from .validation import (
    ArtifactIndex,
    CompleteEntry,
    ValidateOptions,
    ValidationReport,
    utc_now,
    validate_contracts,
)
from .writer import (
    ArtifactPresence,
    CanonicalBehavior,
    DriftSummary,
    LedgerEntry,
    LedgerWriteOptions,
    LogicLedger,
    compute_drift,
    rule_slug,
    write_ledger_entry,
)

__all__ = [
    "ArtifactIndex",
    "ArtifactPresence",
    "Assumption",
    "AssumptionImpact",
    "AssumptionStatus",
    "BehaviorEntry",
    "BehaviorLedger",
    "CanonicalBehavior",
    "CompleteEntry",
    "Contract",
    "ContractDefinitionError",
    "ContractGap",
    "DEFAULT_REQUIRED_FIELDS",
    "DriftSummary",
    "EntryStatus",
    "Example",
    "FORMATTERS",
    "GapSeverity",
    "LedgerEntry",
    "LedgerWriteError",
    "LedgerWriteOptions",
    "LogicLedger",
    "MissingArtifact",
    "Reference",
    "ValidateOptions",
    "ValidationReport",
    "compute_drift",
    "define_contract",
    "format_json",
    "format_sarif",
    "format_text",
    "get_contract",
    "is_contract",
    "missing_fields",
    "render",
    "report_to_dict",
    "report_to_sarif",
    "rule_slug",
    "utc_now",
    "validate_contracts",
    "write_ledger_entry",
]
