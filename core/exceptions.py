# PATH: core/exceptions.py
"""
Typed exceptions for SWITCHVAULT.

Every failure carries an ErrorCode. The category classes mirror the
error taxonomy:

- ValidationError: caller-correctable input problems
- AuthorizationError: caller may not perform the action
- StateError: illegal transition for the current state
- SafetyError: runtime market conditions breach a safety bound
- AdapterError: the external instrument call failed

Raising any of these inside a Ledger.atomic() unit discards all effects
of that unit.
"""

from typing import Optional

from core.constants import ErrorCode


class VaultError(Exception):
    """Base exception for SWITCHVAULT."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self):
        return f"[{self.code.value}] {self.message}"

    def to_dict(self) -> dict:
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(VaultError):
    """Invalid input (zero amounts, empty identities, insufficient balances)."""
    pass


class AuthorizationError(VaultError):
    """Caller lacks the authority or capability for the action."""
    pass


class StateError(VaultError):
    """Operation is not legal in the current state."""
    pass


class SafetyError(VaultError):
    """Migration outcome breached a slippage bound."""
    pass


class AdapterError(VaultError):
    """Yield instrument call failed."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, ErrorCode.ADAPTER_FAILURE, details)


class ReentrantCallError(StateError):
    """A guarded operation was re-entered from within its own execution."""

    def __init__(self, guard: str):
        super().__init__(
            f"Re-entrant call into '{guard}' rejected",
            ErrorCode.REENTRANT_CALL,
            {"guard": guard},
        )
