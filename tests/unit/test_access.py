"""
Unit tests for core/access.py.
"""

import pytest

from core.access import (
    GovernanceCapability,
    require_authority,
    require_authority_or_governance,
    require_identity,
)
from core.constants import ErrorCode
from core.exceptions import AuthorizationError, ValidationError


def test_require_identity():
    assert require_identity("alice") == "alice"
    with pytest.raises(ValidationError) as exc_info:
        require_identity("", "recipient")
    assert exc_info.value.code == ErrorCode.ZERO_ADDRESS
    assert exc_info.value.details == {"field": "recipient"}


def test_require_authority():
    require_authority("admin", "admin")
    with pytest.raises(AuthorizationError) as exc_info:
        require_authority("mallory", "admin")
    assert exc_info.value.code == ErrorCode.UNAUTHORIZED_CALLER


def test_capability_is_not_authority():
    with pytest.raises(AuthorizationError):
        require_authority(GovernanceCapability("admin"), "admin")


def test_authority_or_governance():
    capability = GovernanceCapability("governance")
    require_authority_or_governance("admin", "admin", capability)
    require_authority_or_governance(capability, "admin", capability)
    with pytest.raises(AuthorizationError) as exc_info:
        require_authority_or_governance(GovernanceCapability("governance"), "admin", capability)
    assert exc_info.value.code == ErrorCode.NOT_GOVERNANCE
    with pytest.raises(AuthorizationError):
        require_authority_or_governance("governance", "admin", capability)
