"""
External collaborators consumed by the aggregation core.

The time source and the governance approval check live outside this core;
these interfaces are the only way transitions reach them.
"""

from abc import ABC, abstractmethod
from typing import Iterable, Optional, Set
import logging
import time

from .exceptions import TimeSourceError


class TimeSource(ABC):
    """Supplies a monotonically non-decreasing timestamp."""

    @abstractmethod
    def now(self) -> int:
        """Return the current timestamp or raise TimeSourceError."""
        pass


class SystemTimeSource(TimeSource):
    """Wall-clock seconds, clamped so the value never decreases."""

    def __init__(self):
        self._last = 0

    def now(self) -> int:
        current = int(time.time())
        self._last = max(self._last, current)
        return self._last


class ManualTimeSource(TimeSource):
    """Time source driven by the caller, for simulations and tests."""

    def __init__(self, start: int = 0):
        self._current: Optional[int] = start

    def advance(self, ticks: int = 1) -> int:
        """Move the clock forward by `ticks`."""
        if ticks < 0:
            raise ValueError("Time cannot move backwards")
        if self._current is None:
            raise TimeSourceError("Time source is unavailable")
        self._current += ticks
        return self._current

    def set_unavailable(self) -> None:
        """Simulate missing time data."""
        self._current = None

    def set_time(self, timestamp: int) -> None:
        if self._current is not None and timestamp < self._current:
            raise ValueError("Time cannot move backwards")
        self._current = timestamp

    def now(self) -> int:
        if self._current is None:
            raise TimeSourceError("Time source is unavailable")
        return self._current


class GovernanceCollaborator(ABC):
    """Answers whether a governance proposal is approved."""

    @abstractmethod
    def is_approved(self, proposal_id: int) -> bool:
        """Return True when `proposal_id` is approved."""
        pass


class StaticGovernance(GovernanceCollaborator):
    """Governance stub backed by a fixed set of approved proposals.

    With `approve_all` every proposal is approved.
    """

    def __init__(self, approved: Iterable[int] = (), approve_all: bool = False):
        self.approved: Set[int] = set(approved)
        self.approve_all = approve_all

    def approve(self, proposal_id: int) -> None:
        self.approved.add(proposal_id)

    def revoke(self, proposal_id: int) -> None:
        self.approved.discard(proposal_id)

    def is_approved(self, proposal_id: int) -> bool:
        return self.approve_all or proposal_id in self.approved


def check_approval(governance: GovernanceCollaborator, proposal_id: int) -> bool:
    """Ask the collaborator for approval; any failure counts as not approved."""
    try:
        return bool(governance.is_approved(proposal_id))
    except Exception as e:
        logging.getLogger("vpp_aggregation.governance").warning(
            f"Governance check for proposal {proposal_id} failed: {e}"
        )
        return False
