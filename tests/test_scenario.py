"""
End-to-end scenarios, event delivery and result-style submission.
"""

import sys
import threading
import unittest
from pathlib import Path

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from vpp_aggregation import (
    AggregationConfig, AggregationContract, ErrorCode, ManualTimeSource, StaticGovernance
)
from vpp_aggregation.config import DeviceSeed
from vpp_aggregation.events import EventType
from vpp_aggregation.exceptions import ContractPausedError, InvalidAmountError, UnauthorizedError

OWNER = "deployer"
ORACLE = "SP000000000000000000002Q6VF78"
USER = "wallet_1"


class TestEndToEnd(unittest.TestCase):
    """Full lifecycle of a plant."""

    def setUp(self):
        config = AggregationConfig()
        config.genesis.devices = [DeviceSeed(1)]
        config.genesis.plants = [1]
        self.clock = ManualTimeSource(start=1)
        self.contract = AggregationContract.from_config(
            config, time_source=self.clock, governance=StaticGovernance(approve_all=True)
        )
        self.events = []
        self.contract.subscribe(self.events.append)

    def test_register_verify_balance_pause(self):
        self.contract.register_device_energy(1, 500, 1, USER)
        self.assertEqual(self.contract.get_total_vpp_energy(), 500)

        self.contract.verify_report(1, 1, ORACLE)
        report = self.contract.get_production_report(1, 1)
        self.assertTrue(report.verified)
        self.assertEqual(report.energy_kwh, 500)

        self.assertEqual(self.contract.get_reserve_threshold(), 1000)
        with self.assertRaises(InvalidAmountError):
            self.contract.balance_supply(1, 2000, USER)
        self.assertEqual(self.contract.get_total_vpp_energy(), 500)

        self.contract.pause(OWNER)
        with self.assertRaises(ContractPausedError):
            self.contract.register_device_energy(1, 500, 2, USER)

        self.contract.unpause(OWNER)
        self.assertTrue(self.contract.register_device_energy(1, 500, 2, USER))
        self.assertEqual(self.contract.get_total_vpp_energy(), 1000)

    def test_events_follow_commits(self):
        self.contract.register_device_energy(1, 500, 1, USER)
        self.contract.verify_report(1, 1, ORACLE)
        self.contract.generate_forecast(1, USER)
        with self.assertRaises(InvalidAmountError):
            self.contract.balance_supply(1, 2000, USER)
        self.contract.update_reserve_threshold(100, 1, USER)
        self.contract.balance_supply(1, 300, USER)

        types = [event.type for event in self.events]
        self.assertEqual(types, [
            EventType.ENERGY_REGISTERED,
            EventType.REPORT_VERIFIED,
            EventType.FORECAST_GENERATED,
            EventType.TRANSITION_REJECTED,
            EventType.RESERVE_THRESHOLD_UPDATED,
            EventType.SUPPLY_BALANCED,
        ])
        rejection = self.events[3]
        self.assertEqual(rejection.operation, "balance_supply")
        self.assertEqual(rejection.error_code, 101)
        self.assertEqual(self.events[0].details["energy_kwh"], 500)

    def test_failing_listener_does_not_undo_commit(self):
        def broken(event):
            raise RuntimeError("listener down")

        self.contract.subscribe(broken)
        self.contract.register_device_energy(1, 500, 1, USER)
        self.assertEqual(self.contract.get_total_vpp_energy(), 500)

    def test_submit_reports_codes(self):
        result = self.contract.submit("register_device_energy", 1, 500, 1, USER)
        self.assertTrue(result.ok)
        self.assertTrue(result.value)

        result = self.contract.submit("register_device_energy", 999, 500, 1, USER)
        self.assertFalse(result.ok)
        self.assertEqual(result.value, 102)
        self.assertEqual(result.error, ErrorCode.INVALID_DEVICE)

        result = self.contract.submit("generate_forecast", 1, USER)
        self.assertEqual(result.unwrap(), 100)

        result = self.contract.submit("pause", USER)
        with self.assertRaises(UnauthorizedError) as ctx:
            result.unwrap()
        self.assertEqual(ctx.exception.code, ErrorCode.UNAUTHORIZED)

    def test_concurrent_registrations_are_serialized(self):
        def worker(offset):
            for i in range(50):
                self.contract.register_device_energy(1, 1, offset * 1000 + i, USER)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(self.contract.get_total_vpp_energy(), 200)
        self.assertEqual(self.contract.get_device_aggregate(1).total_energy, 200)
        self.assertEqual(self.contract.get_device_energy_drift(), 0)

    def test_submit_reports_codes_for_negative_ids(self):
        result = self.contract.submit("register_device_energy", -1, 500, 1, USER)
        self.assertFalse(result.ok)
        self.assertEqual(result.value, 102)

        self.contract.pause(OWNER)
        result = self.contract.submit("register_device_energy", -1, 500, 1, USER)
        self.assertEqual(result.error, ErrorCode.PAUSED)
        self.assertEqual(result.value, 103)

        result = self.contract.submit("update_reserve_threshold", 5, -3, USER)
        self.assertEqual(result.value, 103)
        self.assertEqual(self.contract.get_reserve_threshold(), 1000)

    def test_every_event_carries_a_timestamp(self):
        self.clock.set_time(40)
        self.contract.register_device_energy(1, 500, 1, USER)
        self.clock.advance(5)
        self.contract.verify_report(1, 1, ORACLE)
        self.contract.pause(OWNER)
        with self.assertRaises(ContractPausedError):
            self.contract.balance_supply(1, 10, USER)

        self.assertEqual([event.timestamp for event in self.events], [40, 45, 45, 45])

    def test_events_published_when_clock_unavailable(self):
        self.contract.register_device_energy(1, 500, 1, USER)
        self.clock.set_unavailable()
        self.contract.verify_report(1, 1, ORACLE)

        self.assertEqual(self.events[-1].type, EventType.REPORT_VERIFIED)
        self.assertIsNone(self.events[-1].timestamp)


if __name__ == "__main__":
    unittest.main()
