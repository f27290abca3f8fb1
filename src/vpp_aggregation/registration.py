"""Production report registration."""

from .auth import require_unpaused
from .collaborators import TimeSource
from .events import Event, EventType
from .exceptions import InvalidAmountError, InvalidDeviceError, InvalidTimestampError, TimeSourceError
from .models import ProductionReport
from .state import KeySpace, Transaction
from .validation import EnergyValidator


def register_device_energy(
    txn: Transaction,
    time_source: TimeSource,
    device_id: int,
    energy_kwh: int,
    report_id: int,
    caller: str
) -> Event:
    """Record a production report and credit device and global totals.

    Checks run in order and the first failure wins: paused, unknown or
    inactive device, non-positive amount, unavailable time. A report already
    stored under (device_id, report_id) is overwritten.
    """
    settings = txn.settings
    require_unpaused(settings)
    EnergyValidator.validate_identifier(device_id)
    EnergyValidator.validate_identifier(report_id)
    EnergyValidator.validate_energy(energy_kwh)

    aggregate = txn.get(KeySpace.DEVICES, device_id)
    if aggregate is None or not aggregate.active:
        raise InvalidDeviceError(f"Device {device_id} is not registered or inactive")

    if energy_kwh <= 0:
        raise InvalidAmountError(f"Energy must be positive, got {energy_kwh}")

    try:
        now = time_source.now()
    except TimeSourceError as e:
        raise InvalidTimestampError(str(e)) from e

    txn.set(
        KeySpace.REPORTS,
        (device_id, report_id),
        ProductionReport(energy_kwh=energy_kwh, timestamp=now),
    )
    txn.set(KeySpace.DEVICES, device_id, aggregate.credit(energy_kwh, now))
    txn.update_settings(total_vpp_energy=settings.total_vpp_energy + energy_kwh)

    return Event(
        type=EventType.ENERGY_REGISTERED,
        caller=caller,
        timestamp=now,
        details={"device_id": device_id, "report_id": report_id, "energy_kwh": energy_kwh},
    )
