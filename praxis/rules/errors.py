"""Custom exceptions raised by the rule/constraint registry."""

from __future__ import annotations

from ..core.errors import ErrorDetails, PraxisError


class RegistrationError(PraxisError, ValueError):
    """Raised when a descriptor cannot be registered."""

    error_code = "ERR_REGISTRATION"


class RegistryLoadError(PraxisError, ImportError):
    """Raised when a registry cannot be built from a user module."""

    error_code = "ERR_REGISTRY_LOAD"

    def __init__(self, target: str, reason: str) -> None:
        message = f"Cannot load registry from '{target}': {reason}"
        super().__init__(message, details=ErrorDetails(code=self.error_code, message=message))
        self.target = target
        self.reason = reason


__all__ = ["RegistrationError", "RegistryLoadError"]
