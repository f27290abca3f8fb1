"""
Key-value state store for the aggregation core.

Holds device aggregates, production reports, plant statistics, forecast
history and the single settings record. Every transition runs inside
`StateStore.transaction()`, which serializes callers on one process-wide lock,
stages writes against a consistent snapshot and commits them together.
"""

from contextlib import contextmanager
from dataclasses import asdict
from enum import Enum
from pathlib import Path
from typing import Dict, Any, Optional, Union, Iterator, Tuple, Hashable
import json
import logging
import re
import threading

import yaml

from .exceptions import StateStoreError
from .models import (
    DeviceAggregate,
    ProductionReport,
    ReportStatus,
    VppStats,
    ForecastRecord,
    ContractSettings,
)


class KeySpace(Enum):
    """Addressable record families."""
    DEVICES = "devices"
    REPORTS = "reports"
    VPP_STATS = "vpp_stats"
    FORECASTS = "forecasts"
    SETTINGS = "settings"


SETTINGS_KEY = "settings"

_RECORD_TYPES = {
    KeySpace.DEVICES: DeviceAggregate,
    KeySpace.REPORTS: ProductionReport,
    KeySpace.VPP_STATS: VppStats,
    KeySpace.FORECASTS: ForecastRecord,
    KeySpace.SETTINGS: ContractSettings,
}

_COMPOSITE_SPACES = (KeySpace.REPORTS, KeySpace.FORECASTS)

# Ids may be negative, so "-1-2" decodes to (-1, 2).
_COMPOSITE_KEY = re.compile(r"^(-?\d+)-(-?\d+)$")


class Transaction:
    """Staged view over the store used by a single transition."""

    def __init__(self, store: "StateStore"):
        self._store = store
        self._writes: Dict[KeySpace, Dict[Hashable, Any]] = {space: {} for space in KeySpace}

    def get(self, space: KeySpace, key: Hashable) -> Optional[Any]:
        """Return the staged or committed record, or None when absent."""
        staged = self._writes[space]
        if key in staged:
            return staged[key]
        return self._store.get(space, key)

    def set(self, space: KeySpace, key: Hashable, record: Any) -> None:
        """Stage a full-record replacement."""
        expected = _RECORD_TYPES[space]
        if not isinstance(record, expected):
            raise StateStoreError(
                f"{space.value} expects {expected.__name__}, got {type(record).__name__}"
            )
        self._writes[space][key] = record

    @property
    def settings(self) -> ContractSettings:
        return self.get(KeySpace.SETTINGS, SETTINGS_KEY)

    def update_settings(self, **changes) -> ContractSettings:
        """Stage a new settings version and return it."""
        settings = self.settings.evolve(**changes)
        self.set(KeySpace.SETTINGS, SETTINGS_KEY, settings)
        return settings

    @property
    def write_count(self) -> int:
        return sum(len(writes) for writes in self._writes.values())

    def _apply(self) -> None:
        for space, writes in self._writes.items():
            self._store._data[space].update(writes)


class StateStore:
    """In-memory key-value store with atomic transactions."""

    def __init__(self, settings: ContractSettings):
        self.logger = logging.getLogger("vpp_aggregation.store")
        self._lock = threading.RLock()
        self._data: Dict[KeySpace, Dict[Hashable, Any]] = {space: {} for space in KeySpace}
        self._data[KeySpace.SETTINGS][SETTINGS_KEY] = settings

    def get(self, space: KeySpace, key: Hashable) -> Optional[Any]:
        """Return the committed record for `key`, or None when absent."""
        return self._data[space].get(key)

    @contextmanager
    def transaction(self) -> Iterator[Transaction]:
        """Run a unit of work atomically.

        Writes staged on the yielded transaction are applied only when the
        block exits normally; any exception discards them.
        """
        with self._lock:
            txn = Transaction(self)
            yield txn
            txn._apply()
            if txn.write_count:
                self.logger.debug(f"Committed {txn.write_count} record(s)")

    def set(self, space: KeySpace, key: Hashable, record: Any) -> None:
        """Replace a single record in its own transaction."""
        with self.transaction() as txn:
            txn.set(space, key, record)

    @property
    def settings(self) -> ContractSettings:
        return self._data[KeySpace.SETTINGS][SETTINGS_KEY]

    def items(self, space: KeySpace) -> Iterator[Tuple[Hashable, Any]]:
        """Iterate over a consistent copy of one key space."""
        with self._lock:
            snapshot = list(self._data[space].items())
        return iter(snapshot)

    # Typed accessors

    def get_device(self, device_id: int) -> Optional[DeviceAggregate]:
        return self.get(KeySpace.DEVICES, device_id)

    def get_report(self, device_id: int, report_id: int) -> Optional[ProductionReport]:
        return self.get(KeySpace.REPORTS, (device_id, report_id))

    def get_vpp_stats(self, vpp_id: int) -> Optional[VppStats]:
        return self.get(KeySpace.VPP_STATS, vpp_id)

    def get_forecast(self, vpp_id: int, timestamp: int) -> Optional[ForecastRecord]:
        return self.get(KeySpace.FORECASTS, (vpp_id, timestamp))

    # Snapshots

    def to_dict(self) -> Dict[str, Any]:
        """Convert the whole state to a plain dictionary."""
        with self._lock:
            data: Dict[str, Any] = {}
            for space in KeySpace:
                if space is KeySpace.SETTINGS:
                    data[space.value] = asdict(self.settings)
                    continue
                data[space.value] = {
                    _encode_key(key): _encode_record(record)
                    for key, record in self._data[space].items()
                }
            return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StateStore":
        """Create a store from a dictionary produced by `to_dict`."""
        try:
            store = cls(ContractSettings(**data[KeySpace.SETTINGS.value]))
            for space in KeySpace:
                if space is KeySpace.SETTINGS:
                    continue
                record_type = _RECORD_TYPES[space]
                for raw_key, raw_record in (data.get(space.value) or {}).items():
                    key = _decode_key(raw_key, composite=space in _COMPOSITE_SPACES)
                    if record_type is ProductionReport:
                        raw_record = dict(raw_record, status=ReportStatus(raw_record["status"]))
                    store._data[space][key] = record_type(**raw_record)
        except (KeyError, TypeError, ValueError) as e:
            raise StateStoreError(f"Malformed state snapshot: {e}") from e
        return store

    def save_to_file(self, file_path: Union[str, Path]) -> None:
        """Save a snapshot as YAML or JSON depending on the suffix."""
        file_path = Path(file_path)
        data = self.to_dict()

        if file_path.suffix.lower() in ['.yaml', '.yml']:
            with open(file_path, 'w') as f:
                yaml.safe_dump(data, f, default_flow_style=False, indent=2)
        elif file_path.suffix.lower() == '.json':
            with open(file_path, 'w') as f:
                json.dump(data, f, indent=2)
        else:
            raise ValueError(f"Unsupported file format: {file_path.suffix}")
        self.logger.info(f"State snapshot written to {file_path}")

    @classmethod
    def load_from_file(cls, file_path: Union[str, Path]) -> "StateStore":
        """Load a snapshot written by `save_to_file`."""
        file_path = Path(file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"State snapshot not found: {file_path}")

        if file_path.suffix.lower() in ['.yaml', '.yml']:
            with open(file_path, 'r') as f:
                data = yaml.safe_load(f)
        elif file_path.suffix.lower() == '.json':
            with open(file_path, 'r') as f:
                data = json.load(f)
        else:
            raise ValueError(f"Unsupported file format: {file_path.suffix}")

        return cls.from_dict(data)


def _encode_key(key: Hashable) -> str:
    if isinstance(key, tuple):
        return "-".join(str(part) for part in key)
    return str(key)


def _decode_key(raw: str, composite: bool) -> Hashable:
    if composite:
        match = _COMPOSITE_KEY.match(str(raw))
        if match is None:
            raise ValueError(f"Malformed composite key: {raw!r}")
        return int(match.group(1)), int(match.group(2))
    return int(raw)


def _encode_record(record: Any) -> Dict[str, Any]:
    data = asdict(record)
    if isinstance(record, ProductionReport):
        data["status"] = record.status.value
    return data
