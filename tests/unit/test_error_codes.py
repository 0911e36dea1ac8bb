"""
Unit tests for error codes and the exception contract.
"""

import unittest

from core.constants import ErrorCode
from core.exceptions import (
    AdapterError,
    AuthorizationError,
    ReentrantCallError,
    SafetyError,
    StateError,
    ValidationError,
    VaultError,
)


class TestErrorCodes(unittest.TestCase):
    """ErrorCode values are stable strings."""

    def test_values_match_names(self):
        for code in ErrorCode:
            self.assertEqual(code.value, code.name)

    def test_taxonomy_codes_present(self):
        for name in (
            "ZERO_ADDRESS", "ZERO_AMOUNT", "DEPOSIT_TOO_SMALL", "INSUFFICIENT_SHARES",
            "UNAUTHORIZED_CALLER", "NOT_GOVERNANCE",
            "ALREADY_INITIALIZED", "SOURCE_ALREADY_WHITELISTED", "SOURCE_NOT_WHITELISTED",
            "UPGRADE_ALREADY_SCHEDULED", "NO_UPGRADE_SCHEDULED", "TIMELOCK_NOT_EXPIRED",
            "PROPOSAL_NOT_ACTIVE", "PROPOSAL_NOT_SUCCEEDED", "PROPOSAL_NOT_QUEUED",
            "ALREADY_VOTED", "SLIPPAGE_TOO_HIGH", "EXCEEDS_MAX_SLIPPAGE",
        ):
            self.assertIn(name, ErrorCode.__members__)


class TestVaultError(unittest.TestCase):
    """VaultError rendering and serialization."""

    def test_str_includes_code(self):
        err = StateError("Vault is paused", ErrorCode.VAULT_PAUSED)
        self.assertEqual(str(err), "[VAULT_PAUSED] Vault is paused")

    def test_default_code(self):
        self.assertEqual(VaultError("x").code, ErrorCode.UNKNOWN)

    def test_to_dict(self):
        err = ValidationError("too small", ErrorCode.DEPOSIT_TOO_SMALL, {"amount": 1})
        self.assertEqual(
            err.to_dict(),
            {"code": "DEPOSIT_TOO_SMALL", "message": "too small", "details": {"amount": 1}},
        )

    def test_categories_are_vault_errors(self):
        for cls in (ValidationError, AuthorizationError, StateError, SafetyError):
            self.assertTrue(issubclass(cls, VaultError))

    def test_adapter_error_code(self):
        self.assertEqual(AdapterError("down").code, ErrorCode.ADAPTER_FAILURE)

    def test_reentrant_is_state_error(self):
        err = ReentrantCallError("vault")
        self.assertIsInstance(err, StateError)
        self.assertEqual(err.code, ErrorCode.REENTRANT_CALL)
        self.assertEqual(err.details, {"guard": "vault"})


if __name__ == "__main__":
    unittest.main()
