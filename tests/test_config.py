"""
Tests for configuration loading, validation and contract bootstrapping.
"""

import logging
import sys
import tempfile
import unittest
from pathlib import Path

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from vpp_aggregation import AggregationContract, ManualTimeSource
from vpp_aggregation.config import (
    AggregationConfig, ConfigFormat, DeviceSeed, ValidationLevel
)
from vpp_aggregation.exceptions import ConfigurationError


class TestAggregationConfig(unittest.TestCase):
    """Test suite for AggregationConfig."""

    def test_defaults_are_valid(self):
        config = AggregationConfig()
        result = config.validate()
        self.assertTrue(result.is_valid, result.errors)
        self.assertEqual(config.reserve.initial_threshold, 1000)
        self.assertEqual(config.forecast.window, 144)
        self.assertEqual(config.forecast.sample_device_ids, [1, 2, 3, 4, 5])

    def test_invalid_values_reported(self):
        config = AggregationConfig()
        config.reserve.initial_threshold = 0
        config.monitoring.log_level = "LOUD"
        config.principals.oracle = ""
        config.genesis.plants = [1, 1]

        result = config.validate()

        self.assertFalse(result.is_valid)
        self.assertEqual(len(result.errors), 4)
        self.assertTrue(any(error.startswith("reserve: ") for error in result.errors))

    def test_strict_level_refuses_bootstrap(self):
        config = AggregationConfig()
        config.reserve.initial_threshold = -1
        with self.assertRaises(ConfigurationError):
            AggregationContract.from_config(config)

    def test_permissive_level_allows_bootstrap(self):
        config = AggregationConfig()
        config.forecast.window = 0
        config.validation_level = ValidationLevel.PERMISSIVE
        contract = AggregationContract.from_config(config, time_source=ManualTimeSource())
        self.assertEqual(contract.forecaster.config.window, 0)

    def test_roundtrip_through_files(self):
        config = AggregationConfig(name="Test Plant")
        config.principals.owner = "admin"
        config.genesis.devices = [DeviceSeed(1), DeviceSeed(4, active=False)]
        config.genesis.plants = [7]

        with tempfile.TemporaryDirectory() as tmp:
            for fmt, suffix in ((ConfigFormat.YAML, "yaml"), (ConfigFormat.JSON, "json")):
                path = Path(tmp) / f"config.{suffix}"
                config.save_to_file(path, format=fmt)
                loaded = AggregationConfig.load_from_file(path)
                self.assertEqual(loaded.to_dict(), config.to_dict())

    def test_merge_overrides_nested_values(self):
        base = AggregationConfig()
        override = AggregationConfig.from_dict({"reserve": {"initial_threshold": 250}})
        merged = base.merge(override)
        self.assertEqual(merged.reserve.initial_threshold, 250)

    def test_merge_keeps_validation_level(self):
        base = AggregationConfig()
        base.validation_level = ValidationLevel.WARN
        merged = base.merge(AggregationConfig.from_dict({"name": "Merged"}))
        self.assertEqual(merged.validation_level, ValidationLevel.WARN)
        self.assertEqual(merged.name, "Merged")

    def test_genesis_provisioning(self):
        config = AggregationConfig.from_dict({
            "principals": {"owner": "admin"},
            "genesis": {
                "devices": [{"device_id": 1}, {"device_id": 2, "active": False}],
                "plants": [3],
            },
        })
        contract = AggregationContract.from_config(config, time_source=ManualTimeSource())

        self.assertTrue(contract.get_device_aggregate(1).active)
        self.assertFalse(contract.get_device_aggregate(2).active)
        self.assertEqual(contract.get_vpp_stats(3).reserve_threshold, 1000)
        self.assertEqual(contract.get_settings().owner, "admin")
        self.assertTrue(contract.pause("admin"))

    def test_setup_logging_attaches_file_handler(self):
        with tempfile.TemporaryDirectory() as tmp:
            config = AggregationConfig()
            config.monitoring.log_level = "DEBUG"
            config.monitoring.log_file = str(Path(tmp) / "vpp.log")
            config.setup_logging()

            logger = logging.getLogger("vpp_aggregation")
            self.assertEqual(logger.level, logging.DEBUG)
            file_handlers = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]
            self.assertTrue(file_handlers)
            for handler in file_handlers:
                logger.removeHandler(handler)
                handler.close()

    def test_validate_and_log(self):
        config = AggregationConfig()
        with self.assertLogs("vpp_aggregation.config", level="INFO"):
            self.assertTrue(config.validate_and_log())


if __name__ == "__main__":
    unittest.main()
