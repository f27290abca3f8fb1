"""VPP aggregation core library initialization."""

from .core import AggregationContract
from .config import AggregationConfig
from .collaborators import (
    TimeSource,
    SystemTimeSource,
    ManualTimeSource,
    GovernanceCollaborator,
    StaticGovernance,
)
from .exceptions import VPPError, AggregationError, ErrorCode
from .models import (
    DeviceAggregate,
    ProductionReport,
    ReportStatus,
    VppStats,
    ForecastRecord,
    ContractSettings,
    TransitionResult,
)
from .state import StateStore

__version__ = "0.1.0"
__author__ = "VPP Development Team"
__license__ = "MIT"

__all__ = [
    "AggregationContract",
    "AggregationConfig",
    "StateStore",
    "TimeSource",
    "SystemTimeSource",
    "ManualTimeSource",
    "GovernanceCollaborator",
    "StaticGovernance",
    "VPPError",
    "AggregationError",
    "ErrorCode",
    "DeviceAggregate",
    "ProductionReport",
    "ReportStatus",
    "VppStats",
    "ForecastRecord",
    "ContractSettings",
    "TransitionResult",
]
