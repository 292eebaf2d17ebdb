"""Praxis: a deterministic logic engine with a decision ledger."""

from .core import (
    PROTOCOL_VERSION,
    ActorError,
    Diagnostic,
    EngineBusyError,
    ErrorDetails,
    Event,
    Fact,
    PraxisError,
    State,
    StepResult,
    setup_logging,
)
from .rules import (
    ConstraintDescriptor,
    PraxisModule,
    PraxisRegistry,
    RegistrationError,
    RegistryCompliance,
    RegistryIntrospector,
    RegistryLoadError,
    RuleDescriptor,
    load_registry,
)
from .engine import Actor, ActorManager, DraftState, EngineOptions, LogicEngine, create_engine
from .ledger import (
    BehaviorLedger,
    Contract,
    ContractDefinitionError,
    ContractGap,
    LedgerEntry,
    LedgerWriteError,
    LedgerWriteOptions,
    LogicLedger,
    ValidateOptions,
    ValidationReport,
    compute_drift,
    define_contract,
    validate_contracts,
    write_ledger_entry,
)
from .dsl import (
    define_constraint,
    define_event,
    define_fact,
    define_module,
    define_rule,
    filter_events,
    filter_facts,
    find_event,
    find_fact,
)

__version__ = "1.0.0"

__all__ = [
    "Actor",
    "ActorError",
    "ActorManager",
    "BehaviorLedger",
    "ConstraintDescriptor",
    "Contract",
    "ContractDefinitionError",
    "ContractGap",
    "Diagnostic",
    "DraftState",
    "EngineBusyError",
    "EngineOptions",
    "ErrorDetails",
    "Event",
    "Fact",
    "LedgerEntry",
    "LedgerWriteError",
    "LedgerWriteOptions",
    "LogicEngine",
    "LogicLedger",
    "PROTOCOL_VERSION",
    "PraxisError",
    "PraxisModule",
    "PraxisRegistry",
    "RegistrationError",
    "RegistryCompliance",
    "RegistryIntrospector",
    "RegistryLoadError",
    "RuleDescriptor",
    "State",
    "StepResult",
    "ValidateOptions",
    "ValidationReport",
    "compute_drift",
    "create_engine",
    "define_constraint",
    "define_contract",
    "define_event",
    "define_fact",
    "define_module",
    "define_rule",
    "filter_events",
    "filter_facts",
    "find_event",
    "find_fact",
    "load_registry",
    "setup_logging",
    "validate_contracts",
    "write_ledger_entry",
]
