"""
Tests for the state store: absent markers, atomic transactions and snapshots.
"""

import sys
import tempfile
import unittest
from pathlib import Path

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from vpp_aggregation.collaborators import ManualTimeSource, SystemTimeSource
from vpp_aggregation.exceptions import StateStoreError, TimeSourceError
from vpp_aggregation.models import (
    ContractSettings, DeviceAggregate, ProductionReport, ReportStatus, VppStats, ForecastRecord
)
from vpp_aggregation.state import KeySpace, StateStore


def make_settings(**overrides):
    values = dict(
        owner="deployer",
        governance_collaborator="gov",
        oracle_collaborator="oracle",
        marketplace_collaborator="market",
    )
    values.update(overrides)
    return ContractSettings(**values)


class TestStateStore(unittest.TestCase):
    """Test suite for StateStore."""

    def setUp(self):
        self.store = StateStore(make_settings())

    def test_absent_records_return_none(self):
        self.assertIsNone(self.store.get_device(1))
        self.assertIsNone(self.store.get_report(1, 1))
        self.assertIsNone(self.store.get_vpp_stats(1))
        self.assertIsNone(self.store.get_forecast(1, 0))

    def test_set_replaces_record(self):
        self.store.set(KeySpace.DEVICES, 1, DeviceAggregate(total_energy=5))
        self.store.set(KeySpace.DEVICES, 1, DeviceAggregate(total_energy=9, active=False))
        self.assertEqual(self.store.get_device(1), DeviceAggregate(total_energy=9, active=False))

    def test_transaction_commits_all_writes(self):
        with self.store.transaction() as txn:
            txn.set(KeySpace.DEVICES, 1, DeviceAggregate(total_energy=10))
            txn.set(KeySpace.VPP_STATS, 1, VppStats(total_energy=10))
            # Staged writes are visible inside the transaction only
            self.assertEqual(txn.get(KeySpace.DEVICES, 1).total_energy, 10)
            self.assertIsNone(self.store.get_device(1))
        self.assertEqual(self.store.get_device(1).total_energy, 10)
        self.assertEqual(self.store.get_vpp_stats(1).total_energy, 10)

    def test_failed_transaction_writes_nothing(self):
        with self.assertRaises(RuntimeError):
            with self.store.transaction() as txn:
                txn.set(KeySpace.DEVICES, 1, DeviceAggregate(total_energy=10))
                txn.update_settings(total_vpp_energy=10)
                raise RuntimeError("abort")
        self.assertIsNone(self.store.get_device(1))
        self.assertEqual(self.store.settings.total_vpp_energy, 0)
        self.assertEqual(self.store.settings.version, 0)

    def test_wrong_record_type_rejected(self):
        with self.assertRaises(StateStoreError):
            self.store.set(KeySpace.DEVICES, 1, VppStats())

    def test_settings_versioned(self):
        with self.store.transaction() as txn:
            txn.update_settings(paused=True)
            txn.update_settings(reserve_threshold=5)
        self.assertTrue(self.store.settings.paused)
        self.assertEqual(self.store.settings.reserve_threshold, 5)
        self.assertEqual(self.store.settings.version, 2)

    def _populate(self):
        self.store.set(KeySpace.DEVICES, 3, DeviceAggregate(total_energy=42, last_updated=7))
        self.store.set(
            KeySpace.REPORTS, (3, 11),
            ProductionReport(energy_kwh=42, timestamp=7, status=ReportStatus.VERIFIED),
        )
        self.store.set(KeySpace.VPP_STATS, 2, VppStats(total_energy=42, reserve_threshold=1000))
        self.store.set(KeySpace.FORECASTS, (2, 7), ForecastRecord(predicted_energy=8))
        with self.store.transaction() as txn:
            txn.update_settings(total_vpp_energy=42)

    def test_snapshot_roundtrip_yaml(self):
        self._populate()
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "state.yaml"
            self.store.save_to_file(path)
            restored = StateStore.load_from_file(path)
        self.assertEqual(restored.to_dict(), self.store.to_dict())
        self.assertTrue(restored.get_report(3, 11).verified)
        self.assertEqual(restored.get_forecast(2, 7).predicted_energy, 8)

    def test_snapshot_roundtrip_json(self):
        self._populate()
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "state.json"
            self.store.save_to_file(path)
            restored = StateStore.load_from_file(path)
        self.assertEqual(restored.settings, self.store.settings)
        self.assertEqual(restored.get_device(3), self.store.get_device(3))

    def test_snapshot_keeps_negative_ids(self):
        self.store.set(KeySpace.REPORTS, (-1, -2), ProductionReport(energy_kwh=5, timestamp=3))
        self.store.set(KeySpace.DEVICES, -4, DeviceAggregate(total_energy=5))
        restored = StateStore.from_dict(self.store.to_dict())
        self.assertEqual(restored.get_report(-1, -2).energy_kwh, 5)
        self.assertEqual(restored.get_device(-4).total_energy, 5)

    def test_snapshot_errors(self):
        with self.assertRaises(ValueError):
            self.store.save_to_file("state.txt")
        with self.assertRaises(FileNotFoundError):
            StateStore.load_from_file("/nonexistent/state.yaml")
        with self.assertRaises(StateStoreError):
            StateStore.from_dict({"devices": {}})


class TestTimeSources(unittest.TestCase):
    """Test suite for the time source collaborators."""

    def test_system_time_never_decreases(self):
        clock = SystemTimeSource()
        first = clock.now()
        self.assertGreater(first, 0)
        self.assertGreaterEqual(clock.now(), first)

    def test_manual_time_rejects_rewind(self):
        clock = ManualTimeSource(start=100)
        with self.assertRaises(ValueError):
            clock.set_time(50)
        with self.assertRaises(ValueError):
            clock.advance(-1)
        clock.set_unavailable()
        with self.assertRaises(TimeSourceError):
            clock.now()


if __name__ == "__main__":
    unittest.main()
