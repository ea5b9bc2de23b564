"""
Sample aggregation for one recording session.

A Sweep collects the readings taken while the user turns around. Two policies
are supported:

    FIRST_WRITE_WINS    one elevation per whole azimuth degree (rounded),
                        the first one seen is kept. A full turn gives at
                        most 360 entries, exported in ascending azimuth.
    CONSECUTIVE_CHANGE  every reading whose truncated azimuth differs from
                        the previous stored one is appended. Revisited
                        bearings show up again, in recording order.

The session itself is a small value object. aggregate() takes the session and
one reading and returns the session to use for the next reading; only the
sensor stream consumer calls it, so the sweep is never shared.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional, Tuple

from horizon.orientation import Reading, round_half_up

log = logging.getLogger(__name__)

# Wrap heuristic: last reading just below north, current just past it
WRAP_FROM_DEG = 300.0
WRAP_TO_DEG = 60.0


class AggregationPolicy(Enum):
    FIRST_WRITE_WINS = "first"
    CONSECUTIVE_CHANGE = "consecutive"

    @classmethod
    def parse(cls, value) -> "AggregationPolicy":
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        for policy in cls:
            if key in (policy.value, policy.name.lower()):
                return policy
        raise ValueError(f"Unknown aggregation policy '{value}' (expected first or consecutive)")


class Sweep:
    """Azimuth -> elevation samples of a single session."""

    def __init__(self, policy: AggregationPolicy = AggregationPolicy.FIRST_WRITE_WINS):
        self.policy = policy
        self._by_azimuth: Dict[int, int] = {}
        self._ordered: List[Tuple[int, int]] = []

    def key_for(self, azimuth: float) -> int:
        if self.policy is AggregationPolicy.FIRST_WRITE_WINS:
            return round_half_up(azimuth) % 360
        return int(azimuth) % 360

    def add(self, reading: Reading) -> bool:
        """Store the reading if the policy accepts it. Returns True when stored."""
        key = self.key_for(reading.azimuth)

        if self.policy is AggregationPolicy.FIRST_WRITE_WINS:
            if key in self._by_azimuth:
                return False
            self._by_azimuth[key] = reading.elevation
            return True

        if self._ordered and self._ordered[-1][0] == key:
            return False
        self._ordered.append((key, reading.elevation))
        return True

    def entries(self) -> List[Tuple[int, int]]:
        """(azimuth, elevation) pairs in export order."""
        if self.policy is AggregationPolicy.FIRST_WRITE_WINS:
            return sorted(self._by_azimuth.items())
        return list(self._ordered)

    def get(self, azimuth: int) -> Optional[int]:
        if self.policy is AggregationPolicy.FIRST_WRITE_WINS:
            return self._by_azimuth.get(azimuth)
        for key, elevation in self._ordered:
            if key == azimuth:
                return elevation
        return None

    def __len__(self) -> int:
        if self.policy is AggregationPolicy.FIRST_WRITE_WINS:
            return len(self._by_azimuth)
        return len(self._ordered)

    def __repr__(self) -> str:
        return f"Sweep(policy={self.policy.value}, samples={len(self)})"


@dataclass(frozen=True)
class RecordingSession:
    active: bool = False
    sweep: Sweep = field(default_factory=Sweep)
    last_azimuth: Optional[float] = None

    @classmethod
    def start(cls, policy: AggregationPolicy = AggregationPolicy.FIRST_WRITE_WINS) -> "RecordingSession":
        return cls(active=True, sweep=Sweep(policy), last_azimuth=None)


def is_full_rotation(previous: Optional[float], current: float) -> bool:
    """
    True when the azimuth just wrapped past north.

    Only a heuristic: a fast flick across north also triggers it, and a slow
    partial sweep never does.
    """
    if previous is None:
        return False
    return previous > WRAP_FROM_DEG and current < WRAP_TO_DEG


def aggregate(session: RecordingSession, reading: Reading, auto_stop: bool = True) -> RecordingSession:
    """
    Fold one reading into the session.

    Inactive sessions are returned unchanged. When auto_stop is set and the
    reading completes a full rotation, the session comes back inactive and
    the wrapping reading is not stored.
    """
    if not session.active:
        return session

    if auto_stop and is_full_rotation(session.last_azimuth, reading.azimuth):
        log.info("Full rotation detected (%.1f° -> %.1f°), %d samples",
                 session.last_azimuth, reading.azimuth, len(session.sweep))
        return finish(session)

    session.sweep.add(reading)
    return replace(session, last_azimuth=reading.azimuth)


def finish(session: RecordingSession) -> RecordingSession:
    if not session.active:
        return session
    return replace(session, active=False)
