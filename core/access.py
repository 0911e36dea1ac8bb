# PATH: core/access.py
"""
Access control.

Administrative calls name their caller explicitly and are checked
against the stored authority. Governance-gated calls may instead present
a GovernanceCapability, an object handed to the governor when the
system is wired. Holding the object is the proof; no caller identity is
impersonated.
"""

from typing import Union

from core.constants import ErrorCode
from core.exceptions import AuthorizationError, ValidationError


class GovernanceCapability:
    """Unforgeable token that authorizes governance-gated actions."""

    __slots__ = ("holder",)

    def __init__(self, holder: str):
        self.holder = holder

    def __repr__(self) -> str:
        return f"GovernanceCapability(holder={self.holder!r})"


Caller = Union[str, GovernanceCapability]


def require_identity(value: str, field: str = "account") -> str:
    """Reject empty identities."""
    if not value:
        raise ValidationError(f"{field} is empty", ErrorCode.ZERO_ADDRESS, {"field": field})
    return value


def require_authority(caller: Caller, authority: str) -> None:
    """Only the stored authority may proceed."""
    if isinstance(caller, GovernanceCapability) or caller != authority:
        raise AuthorizationError(
            "Caller is not the vault authority",
            ErrorCode.UNAUTHORIZED_CALLER,
            {"caller": repr(caller)},
        )


def require_authority_or_governance(
    caller: Caller,
    authority: str,
    capability: GovernanceCapability,
) -> None:
    """The authority, or the bearer of this exact governance capability, may proceed."""
    if isinstance(caller, GovernanceCapability):
        if caller is capability:
            return
    elif caller == authority:
        return
    raise AuthorizationError(
        "Caller is neither the authority nor governance",
        ErrorCode.NOT_GOVERNANCE,
        {"caller": repr(caller)},
    )
