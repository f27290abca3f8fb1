"""Core aggregation contract: read surface, transitions and event delivery."""

from typing import Callable, List, Optional, Tuple
import logging

from . import admin, balancing, registration, verification
from .auth import Role
from .collaborators import GovernanceCollaborator, SystemTimeSource, TimeSource, StaticGovernance
from .config import AggregationConfig
from .events import Event, EventType, RejectionEvent
from .exceptions import AggregationError, TimeSourceError
from .forecasting import ForecastEngine, ForecastConfig, forecast_history
from .models import (
    ContractSettings,
    DeviceAggregate,
    ForecastRecord,
    ProductionReport,
    TransitionResult,
    VppStats,
)
from .state import KeySpace, StateStore

EventListener = Callable[[Event], None]


class AggregationContract:
    """Energy-accounting state machine for a virtual power plant.

    Every write method takes the authenticated caller explicitly, runs in one
    store transaction, and either commits all of its writes or raises an
    `AggregationError` carrying exactly one error code.
    """

    def __init__(
        self,
        store: StateStore,
        time_source: Optional[TimeSource] = None,
        governance: Optional[GovernanceCollaborator] = None,
        forecast_config: Optional[ForecastConfig] = None
    ):
        self.store = store
        self.time_source = time_source or SystemTimeSource()
        self.governance = governance or StaticGovernance()
        self.forecaster = ForecastEngine(forecast_config)
        self.logger = logging.getLogger("vpp_aggregation.contract")
        self._listeners: List[EventListener] = []

    @classmethod
    def from_config(
        cls,
        config: AggregationConfig,
        time_source: Optional[TimeSource] = None,
        governance: Optional[GovernanceCollaborator] = None
    ) -> "AggregationContract":
        """Build a contract and provision the genesis devices and plants."""
        config.ensure_valid()
        store = StateStore(config.initial_settings())
        contract = cls(
            store,
            time_source=time_source,
            governance=governance,
            forecast_config=config.forecast.to_forecast_config(),
        )
        for seed in config.genesis.devices:
            contract.provision_device(seed.device_id, active=seed.active)
        for vpp_id in config.genesis.plants:
            contract.provision_vpp(vpp_id)
        contract.logger.info(
            f"{config.name}: {len(config.genesis.devices)} device(s), "
            f"{len(config.genesis.plants)} plant(s) provisioned"
        )
        return contract

    # Provisioning seam for the external registration collaborator

    def provision_device(self, device_id: int, active: bool = True) -> DeviceAggregate:
        """Create a device aggregate, or activate an existing one."""
        with self.store.transaction() as txn:
            aggregate = txn.get(KeySpace.DEVICES, device_id)
            if aggregate is None:
                aggregate = DeviceAggregate(active=active)
            elif active:
                aggregate = aggregate.activated()
            txn.set(KeySpace.DEVICES, device_id, aggregate)
        return aggregate

    def provision_vpp(self, vpp_id: int, stats: Optional[VppStats] = None) -> VppStats:
        """Create the statistics record for a plant."""
        stats = stats or VppStats(reserve_threshold=self.store.settings.reserve_threshold)
        self.store.set(KeySpace.VPP_STATS, vpp_id, stats)
        return stats

    # Events

    def subscribe(self, listener: EventListener) -> None:
        """Register a callback invoked after each transition."""
        self._listeners.append(listener)

    def _publish(self, event: Event) -> None:
        for listener in self._listeners:
            try:
                listener(event)
            except Exception as e:
                self.logger.error(f"Event listener failed on {event.type.value}: {e}")

    def _stamp(self, event: Event) -> Event:
        """Fill in the publication time for transitions that do not read the clock."""
        if event.timestamp is None:
            try:
                event.timestamp = self.time_source.now()
            except TimeSourceError:
                self.logger.debug(f"No timestamp available for {event.type.value}")
        return event

    def _run(self, operation: str, caller: str, transition: Callable):
        """Execute `transition` in one transaction and publish the outcome."""
        try:
            with self.store.transaction() as txn:
                outcome = transition(txn)
            payload, event = outcome if isinstance(outcome, tuple) else (None, outcome)
        except AggregationError as e:
            self.logger.warning(f"{operation} rejected for {caller!r}: {e.code.name} ({e})")
            self._publish(self._stamp(RejectionEvent(
                type=EventType.TRANSITION_REJECTED,
                caller=caller,
                operation=operation,
                error_code=e.value,
            )))
            raise
        self.logger.info(f"{operation} accepted for {caller!r}")
        self._publish(self._stamp(event))
        return payload

    def submit(self, operation: str, *args, **kwargs) -> TransitionResult:
        """Invoke a write method and report the outcome as a result value."""
        try:
            value = getattr(self, operation)(*args, **kwargs)
        except AggregationError as e:
            return TransitionResult(ok=False, value=e.value, error=e.code)
        return TransitionResult(ok=True, value=value)

    # Read surface

    def get_device_aggregate(self, device_id: int) -> Optional[DeviceAggregate]:
        return self.store.get_device(device_id)

    def get_production_report(self, device_id: int, report_id: int) -> Optional[ProductionReport]:
        return self.store.get_report(device_id, report_id)

    def get_vpp_stats(self, vpp_id: int) -> Optional[VppStats]:
        return self.store.get_vpp_stats(vpp_id)

    def get_forecast(self, vpp_id: int, timestamp: int) -> Optional[ForecastRecord]:
        return self.store.get_forecast(vpp_id, timestamp)

    def get_forecast_history(self, vpp_id: int) -> List[Tuple[int, ForecastRecord]]:
        return forecast_history(self.store, vpp_id)

    def is_paused(self) -> bool:
        return self.store.settings.paused

    def get_total_vpp_energy(self) -> int:
        return self.store.settings.total_vpp_energy

    def get_reserve_threshold(self) -> int:
        return self.store.settings.reserve_threshold

    def get_settings(self) -> ContractSettings:
        return self.store.settings

    def get_device_energy_drift(self) -> int:
        """Sum of device totals minus the global total.

        Balancing never draws down device aggregates, so this grows by the
        withdrawn amount after every successful `balance_supply`.
        """
        device_sum = sum(aggregate.total_energy for _, aggregate in self.store.items(KeySpace.DEVICES))
        return device_sum - self.get_total_vpp_energy()

    # Write surface

    def register_device_energy(self, device_id: int, energy_kwh: int, report_id: int, caller: str) -> bool:
        """Record a production report for an active device."""
        self._run("register_device_energy", caller, lambda txn: registration.register_device_energy(
            txn, self.time_source, device_id, energy_kwh, report_id, caller
        ))
        return True

    def verify_report(self, device_id: int, report_id: int, caller: str) -> bool:
        """Attest a report. Oracle only."""
        self._run("verify_report", caller, lambda txn: verification.verify_report(
            txn, device_id, report_id, caller
        ))
        return True

    def generate_forecast(self, vpp_id: int, caller: str) -> int:
        """Compute, archive and return the forecast for a plant."""
        return self._run("generate_forecast", caller, lambda txn: self.forecaster.generate(
            txn, self.time_source, vpp_id, caller
        ))

    def balance_supply(self, vpp_id: int, required_energy: int, caller: str) -> bool:
        """Consume aggregated energy without crossing the reserve."""
        self._run("balance_supply", caller, lambda txn: balancing.balance_supply(
            txn, vpp_id, required_energy, caller
        ))
        return True

    def update_reserve_threshold(self, new_threshold: int, proposal_id: int, caller: str) -> bool:
        """Change the reserve once governance approves the proposal."""
        self._run("update_reserve_threshold", caller, lambda txn: admin.update_reserve_threshold(
            txn, self.governance, new_threshold, proposal_id, caller
        ))
        return True

    def pause(self, caller: str) -> bool:
        self._run("pause", caller, lambda txn: admin.set_paused(txn, True, caller))
        return True

    def unpause(self, caller: str) -> bool:
        self._run("unpause", caller, lambda txn: admin.set_paused(txn, False, caller))
        return True

    def set_governance_collaborator(self, new_governance: str, caller: str) -> bool:
        self._run("set_governance_collaborator", caller, lambda txn: admin.set_collaborator(
            txn, Role.GOVERNANCE, new_governance, caller
        ))
        return True

    def set_oracle_collaborator(self, new_oracle: str, caller: str) -> bool:
        self._run("set_oracle_collaborator", caller, lambda txn: admin.set_collaborator(
            txn, Role.ORACLE, new_oracle, caller
        ))
        return True

    def set_marketplace_collaborator(self, new_marketplace: str, caller: str) -> bool:
        self._run("set_marketplace_collaborator", caller, lambda txn: admin.set_collaborator(
            txn, Role.MARKETPLACE, new_marketplace, caller
        ))
        return True
