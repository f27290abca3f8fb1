"""Custom exceptions for the VPP aggregation core."""

from enum import Enum


class ErrorCode(Enum):
    """Error codes reported by rejected transitions."""
    UNAUTHORIZED = 100
    INVALID_AMOUNT = 101
    INVALID_DEVICE = 102
    PAUSED = 103
    GOVERNANCE_NOT_APPROVED = 104
    INVALID_TIMESTAMP = 105
    INVALID_THRESHOLD = 106


class VPPError(Exception):
    """Base exception for VPP errors."""
    pass


class AggregationError(VPPError):
    """Exception raised when a transition is rejected.

    Exactly one code is carried per rejection; the state is left untouched.
    """
    code = None

    def __init__(self, message: str = ""):
        super().__init__(message or self.code.name)

    @property
    def value(self) -> int:
        return self.code.value


class UnauthorizedError(AggregationError):
    """Caller does not hold the required role."""
    code = ErrorCode.UNAUTHORIZED


class InvalidAmountError(AggregationError):
    """Energy amount is non-positive or would breach the reserve."""
    code = ErrorCode.INVALID_AMOUNT


class InvalidDeviceError(AggregationError):
    """Device, report or plant record is missing or inactive."""
    code = ErrorCode.INVALID_DEVICE


class ContractPausedError(AggregationError):
    """Mutating call while the contract is paused."""
    code = ErrorCode.PAUSED


class GovernanceNotApprovedError(AggregationError):
    """Proposal was not approved by the governance collaborator."""
    code = ErrorCode.GOVERNANCE_NOT_APPROVED


class InvalidTimestampError(AggregationError):
    """Current time could not be obtained."""
    code = ErrorCode.INVALID_TIMESTAMP


class InvalidThresholdError(AggregationError):
    """Reserve threshold must be positive."""
    code = ErrorCode.INVALID_THRESHOLD


class TimeSourceError(VPPError):
    """Exception raised when the time source cannot supply a value."""
    pass


class StateStoreError(VPPError):
    """Exception raised for state store errors."""
    pass


class ConfigurationError(VPPError):
    """Exception raised for configuration errors."""
    pass


class ValidationError(VPPError):
    """Base exception for validation errors."""
    pass


class ValidationTypeError(ValidationError):
    """Exception raised for type validation errors."""
    pass


ERRORS_BY_CODE = {
    cls.code: cls
    for cls in (
        UnauthorizedError,
        InvalidAmountError,
        InvalidDeviceError,
        ContractPausedError,
        GovernanceNotApprovedError,
        InvalidTimestampError,
        InvalidThresholdError,
    )
}
