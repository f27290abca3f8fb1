"""Event definitions for the VPP aggregation core."""

from enum import Enum
from typing import Dict, Any, Optional
from dataclasses import dataclass, field


class EventType(str, Enum):
    """Types of aggregation events."""
    # Energy events
    ENERGY_REGISTERED = "energy_registered"
    REPORT_VERIFIED = "report_verified"

    # Plant events
    FORECAST_GENERATED = "forecast_generated"
    SUPPLY_BALANCED = "supply_balanced"

    # Configuration events
    RESERVE_THRESHOLD_UPDATED = "reserve_threshold_updated"
    CONTRACT_PAUSED = "contract_paused"
    CONTRACT_UNPAUSED = "contract_unpaused"
    COLLABORATOR_CHANGED = "collaborator_changed"

    TRANSITION_REJECTED = "transition_rejected"


@dataclass
class Event:
    """Base event class."""
    type: EventType
    caller: str
    timestamp: Optional[int] = None
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass
class RejectionEvent(Event):
    """Emitted when a transition is rejected."""
    operation: str = ""
    error_code: Optional[int] = None
