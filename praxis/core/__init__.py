"""Core protocol types, errors and logging helpers."""

from .errors import ActorError, EngineBusyError, ErrorDetails, PraxisError
from .logging_config import setup_logging
from .protocol import (
    PROTOCOL_VERSION,
    Diagnostic,
    DiagnosticKind,
    Event,
    Fact,
    ProtocolModel,
    Severity,
    State,
    StepResult,
)

__all__ = [
    "ActorError",
    "Diagnostic",
    "DiagnosticKind",
    "EngineBusyError",
    "ErrorDetails",
    "Event",
    "Fact",
    "PROTOCOL_VERSION",
    "PraxisError",
    "ProtocolModel",
    "Severity",
    "State",
    "StepResult",
    "setup_logging",
]
