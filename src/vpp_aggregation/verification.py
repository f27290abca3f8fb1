"""Oracle attestation of production reports."""

from .auth import Role, require_role, require_unpaused
from .events import Event, EventType
from .exceptions import InvalidDeviceError
from .state import KeySpace, Transaction
from .validation import EnergyValidator


def verify_report(txn: Transaction, device_id: int, report_id: int, caller: str) -> Event:
    """Mark a stored report as verified. Re-verifying is a no-op."""
    settings = txn.settings
    require_unpaused(settings)
    EnergyValidator.validate_identifier(device_id)
    EnergyValidator.validate_identifier(report_id)
    require_role(settings, Role.ORACLE, caller)

    report = txn.get(KeySpace.REPORTS, (device_id, report_id))
    if report is None:
        raise InvalidDeviceError(f"No report {report_id} for device {device_id}")

    already_verified = report.verified
    if not already_verified:
        txn.set(KeySpace.REPORTS, (device_id, report_id), report.verify())

    return Event(
        type=EventType.REPORT_VERIFIED,
        caller=caller,
        details={
            "device_id": device_id,
            "report_id": report_id,
            "already_verified": already_verified,
        },
    )
