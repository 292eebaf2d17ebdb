"""Custom exception types used across the project."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ErrorDetails:
    """Structured metadata associated with an exception."""

    code: str
    message: str


class PraxisError(Exception):
    """Base class for setup-time failures raised by the framework.

    Execution-time problems (rule errors, constraint violations, contract
    gaps) are reported as data and never use this hierarchy.
    """

    error_code = "ERR_PRAXIS"

    def __init__(self, message: str, *, details: ErrorDetails | None = None) -> None:
        super().__init__(message)
        self.details = details or ErrorDetails(code=self.error_code, message=message)

    @property
    def code(self) -> str:
        return self.details.code


class EngineBusyError(PraxisError, RuntimeError):
    """Raised when an engine operation is requested while a step is running."""

    error_code = "ERR_ENGINE_BUSY"

    def __init__(self, operation: str) -> None:
        message = f"Cannot call '{operation}' while the engine is stepping"
        super().__init__(message, details=ErrorDetails(code=self.error_code, message=message))
        self.operation = operation


class ActorError(PraxisError, RuntimeError):
    """Raised when an actor lifecycle operation is invalid."""

    error_code = "ERR_ACTOR"


__all__ = ["ActorError", "EngineBusyError", "ErrorDetails", "PraxisError"]
