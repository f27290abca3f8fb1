"""Caller authorization for privileged transitions."""

from enum import Enum

from .exceptions import ContractPausedError, UnauthorizedError
from .models import ContractSettings


class Role(str, Enum):
    """Roles a caller can be checked against."""
    OWNER = "owner"
    ORACLE = "oracle"
    GOVERNANCE = "governance"
    MARKETPLACE = "marketplace"


_ROLE_FIELDS = {
    Role.OWNER: "owner",
    Role.ORACLE: "oracle_collaborator",
    Role.GOVERNANCE: "governance_collaborator",
    Role.MARKETPLACE: "marketplace_collaborator",
}


def require_caller(expected: str, caller: str) -> None:
    """Raise UnauthorizedError unless `caller` is exactly `expected`."""
    if caller != expected:
        raise UnauthorizedError(f"Caller {caller!r} is not authorized")


def require_role(settings: ContractSettings, role: Role, caller: str) -> None:
    """Check `caller` against the identity configured for `role`."""
    require_caller(getattr(settings, _ROLE_FIELDS[role]), caller)


def require_unpaused(settings: ContractSettings) -> None:
    """Raise ContractPausedError while the contract is paused."""
    if settings.paused:
        raise ContractPausedError("Contract is paused")
