"""
Configuration package for the VPP aggregation core.
Provides hierarchical, validatable configuration management.
"""

from .base import (
    BaseConfig,
    ConfigFormat,
    ValidationLevel,
    ConfigValidationResult
)

from .aggregation_config import (
    PrincipalConfig,
    ReserveConfig,
    ForecastSettings,
    MonitoringConfig,
    DeviceSeed,
    GenesisConfig,
    AggregationConfig
)

__all__ = [
    # Base configuration classes
    "BaseConfig",
    "ConfigFormat",
    "ValidationLevel",
    "ConfigValidationResult",

    # Aggregation configuration components
    "PrincipalConfig",
    "ReserveConfig",
    "ForecastSettings",
    "MonitoringConfig",
    "DeviceSeed",
    "GenesisConfig",

    # Main configuration class
    "AggregationConfig"
]
