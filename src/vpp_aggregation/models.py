"""Data models for the VPP aggregation core."""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from .exceptions import ERRORS_BY_CODE, ErrorCode

DeviceId = int
ReportId = int
VppId = int
Timestamp = int


class ReportStatus(str, Enum):
    """Attestation status of a production report.

    Allowed transition: PENDING -> VERIFIED. There is no path back.
    """
    PENDING = "pending"
    VERIFIED = "verified"


@dataclass(frozen=True)
class DeviceAggregate:
    """Running total of accepted energy for one device."""
    total_energy: int = 0
    last_updated: Timestamp = 0
    active: bool = True

    def credit(self, energy_kwh: int, timestamp: Timestamp) -> "DeviceAggregate":
        """Return a copy with an accepted report applied."""
        return replace(
            self,
            total_energy=self.total_energy + energy_kwh,
            last_updated=timestamp,
        )

    def activated(self) -> "DeviceAggregate":
        """Return an active copy. Devices are never deactivated by this core."""
        return replace(self, active=True)


@dataclass(frozen=True)
class ProductionReport:
    """A single timestamped energy submission from a device."""
    energy_kwh: int
    timestamp: Timestamp
    status: ReportStatus = ReportStatus.PENDING

    @property
    def verified(self) -> bool:
        return self.status is ReportStatus.VERIFIED

    def verify(self) -> "ProductionReport":
        """Return the attested copy; energy and timestamp are untouched."""
        if self.verified:
            return self
        return replace(self, status=ReportStatus.VERIFIED)


@dataclass(frozen=True)
class VppStats:
    """Per-plant rollup of energy, reserve snapshot and last forecast."""
    total_energy: int = 0
    reserve_threshold: int = 0
    last_forecast: int = 0


@dataclass(frozen=True)
class ForecastRecord:
    """Archived forecast. `actual_energy` is reconciled outside this core."""
    predicted_energy: int
    actual_energy: int = 0


@dataclass(frozen=True)
class ContractSettings:
    """Process-wide configuration record.

    Every write produces a new record with `version` incremented.
    """
    owner: str
    governance_collaborator: str
    oracle_collaborator: str
    marketplace_collaborator: str
    reserve_threshold: int = 1000
    total_vpp_energy: int = 0
    paused: bool = False
    version: int = 0

    def evolve(self, **changes) -> "ContractSettings":
        """Return a new version of the settings with `changes` applied."""
        return replace(self, version=self.version + 1, **changes)


@dataclass
class TransitionResult:
    """Outcome of a submitted transition: a payload or exactly one error code."""
    ok: bool
    value: object = None
    error: Optional[ErrorCode] = None

    def unwrap(self):
        """Return the payload or re-raise the rejection."""
        if self.ok:
            return self.value
        raise ERRORS_BY_CODE[self.error]()
