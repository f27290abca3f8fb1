"""Forecasting of near-term plant output from stored device aggregates."""

from dataclasses import dataclass, field
from typing import List, Tuple, Optional
import logging

import numpy as np

from .auth import require_unpaused
from .collaborators import TimeSource
from .events import Event, EventType
from .exceptions import InvalidAmountError, InvalidDeviceError, InvalidTimestampError, TimeSourceError
from .models import ForecastRecord, VppStats
from .state import KeySpace, Transaction, StateStore
from .validation import EnergyValidator

# 24 hours at 10-minute granularity. Declared for reporting; not enforced.
FORECAST_WINDOW = 144

# Placeholder sample: not derived from the plant or the device population.
FORECAST_SAMPLE_DEVICES: Tuple[int, ...] = (1, 2, 3, 4, 5)


@dataclass
class ForecastConfig:
    """Configuration for forecasting."""
    window: int = FORECAST_WINDOW
    sample_device_ids: Tuple[int, ...] = field(default_factory=lambda: FORECAST_SAMPLE_DEVICES)


class ForecastEngine:
    """Simple moving-average forecaster over a fixed device sample."""

    def __init__(self, config: Optional[ForecastConfig] = None):
        self.config = config or ForecastConfig()
        self.logger = logging.getLogger("vpp_aggregation.forecasting")

    def sample_totals(self, txn: Transaction) -> np.ndarray:
        """Energy totals of the sample devices; missing devices count as zero."""
        totals = []
        for device_id in self.config.sample_device_ids:
            aggregate = txn.get(KeySpace.DEVICES, device_id)
            totals.append(aggregate.total_energy if aggregate is not None else 0)
        return np.array(totals, dtype=np.int64)

    def compute(self, txn: Transaction) -> int:
        """Integer mean of the sample totals, truncated toward zero."""
        try:
            totals = self.sample_totals(txn)
            if totals.size == 0:
                raise ZeroDivisionError("empty forecast sample")
            if int(totals.max()) > np.iinfo(np.int64).max // totals.size:
                raise OverflowError("sample total exceeds 64-bit range")
            forecast = int(totals.sum()) // int(totals.size)
        except (ArithmeticError, OverflowError, ValueError) as e:
            raise InvalidAmountError(f"Forecast computation failed: {e}") from e
        return forecast

    def generate(self, txn: Transaction, time_source: TimeSource, vpp_id: int, caller: str) -> Tuple[int, Event]:
        """Compute, archive and publish a forecast for `vpp_id`."""
        settings = txn.settings
        require_unpaused(settings)
        EnergyValidator.validate_identifier(vpp_id)

        if txn.get(KeySpace.VPP_STATS, vpp_id) is None:
            raise InvalidDeviceError(f"No statistics for plant {vpp_id}")

        forecast = self.compute(txn)

        try:
            now = time_source.now()
        except TimeSourceError as e:
            raise InvalidTimestampError(str(e)) from e

        txn.set(KeySpace.FORECASTS, (vpp_id, now), ForecastRecord(predicted_energy=forecast))
        txn.set(
            KeySpace.VPP_STATS,
            vpp_id,
            VppStats(
                total_energy=settings.total_vpp_energy,
                reserve_threshold=settings.reserve_threshold,
                last_forecast=forecast,
            ),
        )
        self.logger.debug(f"Plant {vpp_id} forecast {forecast} over window {self.config.window}")

        event = Event(
            type=EventType.FORECAST_GENERATED,
            caller=caller,
            timestamp=now,
            details={"vpp_id": vpp_id, "predicted_energy": forecast},
        )
        return forecast, event


def forecast_history(store: StateStore, vpp_id: int) -> List[Tuple[int, ForecastRecord]]:
    """Archived forecasts for a plant, oldest first."""
    history = [
        (timestamp, record)
        for (plant, timestamp), record in store.items(KeySpace.FORECASTS)
        if plant == vpp_id
    ]
    return sorted(history, key=lambda item: item[0])
