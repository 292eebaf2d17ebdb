"""Custom exceptions raised by the decision ledger."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from ..core.errors import ErrorDetails, PraxisError


class ContractDefinitionError(PraxisError, ValueError):
    """Raised when a contract is defined without its mandatory parts."""

    error_code = "ERR_CONTRACT_DEFINITION"


class LedgerWriteError(PraxisError, OSError):
    """Raised when a ledger entry cannot be persisted."""

    error_code = "ERR_LEDGER_WRITE"

    def __init__(self, rule_id: str, message: str, *, path: Optional[Path] = None) -> None:
        full_message = f"Cannot write ledger entry for '{rule_id}': {message}"
        super().__init__(
            full_message,
            details=ErrorDetails(code=self.error_code, message=full_message),
        )
        self.rule_id = rule_id
        self.path = path


__all__ = ["ContractDefinitionError", "LedgerWriteError"]
