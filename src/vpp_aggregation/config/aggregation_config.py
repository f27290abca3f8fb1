"""
Main aggregation configuration class that integrates all configuration components.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, Optional, List
import logging

from .base import BaseConfig, ConfigValidationResult, ValidationLevel
from ..exceptions import ConfigurationError
from ..forecasting import FORECAST_WINDOW, FORECAST_SAMPLE_DEVICES, ForecastConfig
from ..models import ContractSettings

DEFAULT_PRINCIPAL = "SP000000000000000000002Q6VF78"


@dataclass
class PrincipalConfig:
    """Trusted identities."""
    owner: str = "deployer"
    governance: str = DEFAULT_PRINCIPAL
    oracle: str = DEFAULT_PRINCIPAL
    marketplace: str = DEFAULT_PRINCIPAL

    def validate(self) -> ConfigValidationResult:
        """Validate principal configuration."""
        result = ConfigValidationResult(is_valid=True)

        for role in ("owner", "governance", "oracle", "marketplace"):
            value = getattr(self, role)
            if not value or not isinstance(value, str):
                result.add_error(f"{role} identity must be a non-empty string")

        if self.owner and self.owner == self.oracle:
            result.add_warning("Owner and oracle share one identity")

        return result


@dataclass
class ReserveConfig:
    """Reserve policy."""
    initial_threshold: int = 1000

    def validate(self) -> ConfigValidationResult:
        """Validate reserve configuration."""
        result = ConfigValidationResult(is_valid=True)

        if not isinstance(self.initial_threshold, int) or self.initial_threshold <= 0:
            result.add_error(f"Reserve threshold must be a positive integer, got {self.initial_threshold}")

        return result


@dataclass
class ForecastSettings:
    """Forecast sampling parameters."""
    window: int = FORECAST_WINDOW
    sample_device_ids: List[int] = field(default_factory=lambda: list(FORECAST_SAMPLE_DEVICES))

    def validate(self) -> ConfigValidationResult:
        """Validate forecast configuration."""
        result = ConfigValidationResult(is_valid=True)

        if self.window <= 0:
            result.add_error(f"Forecast window must be > 0, got {self.window}")

        if not self.sample_device_ids:
            result.add_error("Forecast sample must name at least one device")

        if len(set(self.sample_device_ids)) != len(self.sample_device_ids):
            result.add_warning("Forecast sample contains duplicate devices")

        return result

    def to_forecast_config(self) -> ForecastConfig:
        return ForecastConfig(window=self.window, sample_device_ids=tuple(self.sample_device_ids))


@dataclass
class MonitoringConfig:
    """Configuration for logging."""
    log_level: str = "INFO"
    log_file: Optional[str] = None

    def validate(self) -> ConfigValidationResult:
        """Validate monitoring configuration."""
        result = ConfigValidationResult(is_valid=True)

        valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.log_level not in valid_log_levels:
            result.add_error(f"Invalid log level: {self.log_level}")

        return result


@dataclass
class DeviceSeed:
    """A device handed over by the registration collaborator."""
    device_id: int
    active: bool = True


@dataclass
class GenesisConfig:
    """Devices and plants provisioned before the first transition."""
    devices: List[DeviceSeed] = field(default_factory=list)
    plants: List[int] = field(default_factory=list)

    def validate(self) -> ConfigValidationResult:
        """Validate genesis configuration."""
        result = ConfigValidationResult(is_valid=True)

        device_ids = [seed.device_id for seed in self.devices]
        if len(set(device_ids)) != len(device_ids):
            result.add_error("Duplicate device ids in genesis")
        if len(set(self.plants)) != len(self.plants):
            result.add_error("Duplicate plant ids in genesis")
        for identifier in device_ids + list(self.plants):
            if not isinstance(identifier, int):
                result.add_error(f"Invalid identifier: {identifier}")

        return result


@dataclass
class AggregationConfig(BaseConfig):
    """Main aggregation configuration class."""

    name: str = "VPP Aggregation"
    principals: PrincipalConfig = field(default_factory=PrincipalConfig)
    reserve: ReserveConfig = field(default_factory=ReserveConfig)
    forecast: ForecastSettings = field(default_factory=ForecastSettings)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)
    genesis: GenesisConfig = field(default_factory=GenesisConfig)
    config_version: str = "1.0"

    def __post_init__(self):
        """Initialize after dataclass creation."""
        super().__init__()

    def setup_logging(self) -> None:
        """Attach handlers to the package logger per the monitoring section."""
        logger = logging.getLogger("vpp_aggregation")
        logger.setLevel(getattr(logging, self.monitoring.log_level))

        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        # Console handler
        if not logger.handlers:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(formatter)
            logger.addHandler(console_handler)

        # File handler if specified
        if self.monitoring.log_file:
            file_handler = logging.FileHandler(self.monitoring.log_file)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    def validate(self) -> ConfigValidationResult:
        """Validate the entire aggregation configuration."""
        result = ConfigValidationResult(is_valid=True)

        if not self.name:
            result.add_error("Name cannot be empty")

        components = [
            ("principals", self.principals),
            ("reserve", self.reserve),
            ("forecast", self.forecast),
            ("monitoring", self.monitoring),
            ("genesis", self.genesis),
        ]

        for component_name, component in components:
            result.extend(component.validate(), prefix=f"{component_name}: ")

        return result

    def ensure_valid(self) -> None:
        """Apply the validation level; STRICT raises on any error."""
        result = self.validate()
        if result.is_valid or self.validation_level == ValidationLevel.PERMISSIVE:
            return
        if self.validation_level == ValidationLevel.STRICT:
            raise ConfigurationError("; ".join(result.errors))
        for error in result.errors:
            self._logger.warning(f"Validation error: {error}")

    def initial_settings(self) -> ContractSettings:
        """Settings record the store starts from."""
        return ContractSettings(
            owner=self.principals.owner,
            governance_collaborator=self.principals.governance,
            oracle_collaborator=self.principals.oracle,
            marketplace_collaborator=self.principals.marketplace,
            reserve_threshold=self.reserve.initial_threshold,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "name": self.name,
            "principals": {
                "owner": self.principals.owner,
                "governance": self.principals.governance,
                "oracle": self.principals.oracle,
                "marketplace": self.principals.marketplace
            },
            "reserve": {
                "initial_threshold": self.reserve.initial_threshold
            },
            "forecast": {
                "window": self.forecast.window,
                "sample_device_ids": list(self.forecast.sample_device_ids)
            },
            "monitoring": {
                "log_level": self.monitoring.log_level,
                "log_file": self.monitoring.log_file
            },
            "genesis": {
                "devices": [
                    {"device_id": seed.device_id, "active": seed.active}
                    for seed in self.genesis.devices
                ],
                "plants": list(self.genesis.plants)
            },
            "config_version": self.config_version
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AggregationConfig':
        """Create configuration from dictionary."""
        principals_data = data.get("principals", {})
        principals = PrincipalConfig(
            owner=principals_data.get("owner", "deployer"),
            governance=principals_data.get("governance", DEFAULT_PRINCIPAL),
            oracle=principals_data.get("oracle", DEFAULT_PRINCIPAL),
            marketplace=principals_data.get("marketplace", DEFAULT_PRINCIPAL)
        )

        reserve_data = data.get("reserve", {})
        reserve = ReserveConfig(
            initial_threshold=reserve_data.get("initial_threshold", 1000)
        )

        forecast_data = data.get("forecast", {})
        forecast = ForecastSettings(
            window=forecast_data.get("window", FORECAST_WINDOW),
            sample_device_ids=list(forecast_data.get("sample_device_ids", FORECAST_SAMPLE_DEVICES))
        )

        monitoring_data = data.get("monitoring", {})
        monitoring = MonitoringConfig(
            log_level=monitoring_data.get("log_level", "INFO"),
            log_file=monitoring_data.get("log_file")
        )

        genesis_data = data.get("genesis", {})
        genesis = GenesisConfig(
            devices=[
                DeviceSeed(device_id=seed["device_id"], active=seed.get("active", True))
                for seed in genesis_data.get("devices", [])
            ],
            plants=list(genesis_data.get("plants", []))
        )

        return cls(
            name=data.get("name", "VPP Aggregation"),
            principals=principals,
            reserve=reserve,
            forecast=forecast,
            monitoring=monitoring,
            genesis=genesis,
            config_version=data.get("config_version", "1.0")
        )

    def validate_and_log(self) -> bool:
        """Validate configuration and log results."""
        result = self.validate()

        logger = logging.getLogger("vpp_aggregation.config")

        if result.is_valid:
            logger.info("Configuration validation passed")
        else:
            logger.error("Configuration validation failed")
            for error in result.errors:
                logger.error(f"Validation error: {error}")

        for warning in result.warnings:
            logger.warning(f"Validation warning: {warning}")

        return result.is_valid
