"""Supply balancing against the protected reserve."""

from dataclasses import replace

from .auth import require_unpaused
from .events import Event, EventType
from .exceptions import InvalidAmountError, InvalidDeviceError
from .state import KeySpace, Transaction
from .validation import EnergyValidator


def balance_supply(txn: Transaction, vpp_id: int, required_energy: int, caller: str) -> Event:
    """Withdraw `required_energy` from the global and plant totals.

    The withdrawal must leave at least the reserve threshold behind.
    Device aggregates are not drawn down, so their sum drifts above the
    global total after every successful call.
    """
    settings = txn.settings
    require_unpaused(settings)
    EnergyValidator.validate_identifier(vpp_id)
    EnergyValidator.validate_energy(required_energy)

    stats = txn.get(KeySpace.VPP_STATS, vpp_id)
    if stats is None:
        raise InvalidDeviceError(f"No statistics for plant {vpp_id}")

    if required_energy <= 0:
        raise InvalidAmountError(f"Required energy must be positive, got {required_energy}")

    if settings.total_vpp_energy < required_energy + settings.reserve_threshold:
        raise InvalidAmountError(
            f"Withdrawing {required_energy} would breach reserve "
            f"{settings.reserve_threshold} (available {settings.total_vpp_energy})"
        )

    txn.update_settings(total_vpp_energy=settings.total_vpp_energy - required_energy)
    txn.set(
        KeySpace.VPP_STATS,
        vpp_id,
        replace(stats, total_energy=stats.total_energy - required_energy),
    )

    return Event(
        type=EventType.SUPPLY_BALANCED,
        caller=caller,
        details={"vpp_id": vpp_id, "required_energy": required_energy},
    )
