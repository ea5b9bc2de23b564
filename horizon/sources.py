"""
Orientation sources the scanner can consume.

A source is an iterable of OrientationEvent plus an is_available() check,
which stands in for "does this device have a rotation vector sensor".
"""

import os
from abc import ABC, abstractmethod
from typing import Callable, Iterator, Optional

import numpy as np
from scipy.spatial.transform import Rotation as R

from horizon.data_loader import DataLoader
from horizon.errors import SensorUnavailable
from horizon.orientation import OrientationEvent, PointingMode, rotation_vector_to_orientation


class OrientationSource(ABC):
    @abstractmethod
    def is_available(self) -> bool:
        pass

    @abstractmethod
    def __iter__(self) -> Iterator[OrientationEvent]:
        pass


class LogReplaySource(OrientationSource):
    """Replays ROT / ORI records from a recorded sensor log, in timestamp order."""

    def __init__(self, path: str, loader: Optional[DataLoader] = None):
        if not os.path.exists(path):
            raise SensorUnavailable(f"Sensor log not found: {path}")
        self.path = path
        self.df = (loader or DataLoader()).load_orientation(path)

    def is_available(self) -> bool:
        return not self.df.empty

    def __len__(self) -> int:
        return len(self.df)

    def __iter__(self) -> Iterator[OrientationEvent]:
        for row in self.df.itertuples(index=False):
            yield OrientationEvent(row.timestamp_ms, row.azimuth, row.pitch, row.roll)


def default_profile(azimuth_deg: np.ndarray) -> np.ndarray:
    """A hilly horizon: a few degrees up, with a ridge to the south-west."""
    ridge = 6.0 * np.exp(-((azimuth_deg - 225.0) / 25.0) ** 2)
    return 3.0 + 1.5 * np.sin(np.radians(3.0 * azimuth_deg)) + ridge


class SyntheticSweepSource(OrientationSource):
    """
    Generates the rotation vectors of a phone turning clockwise through a
    horizon profile, as the phone itself would report them.

    Phone mode tilts the top edge up by the elevation. Camera mode keeps the
    phone near upright, with |pitch| at 90 minus the elevation.
    """

    def __init__(self,
                 mode: PointingMode = PointingMode.PHONE,
                 start_deg: float = 0.0,
                 turns: float = 1.05,
                 step_deg: float = 0.5,
                 profile: Callable[[np.ndarray], np.ndarray] = default_profile,
                 noise_deg: float = 0.0,
                 rate_hz: float = 60.0,
                 seed: Optional[int] = None):
        self.mode = PointingMode.parse(mode)
        self.start_deg = start_deg
        self.turns = turns
        self.step_deg = step_deg
        self.profile = profile
        self.noise_deg = noise_deg
        self.rate_hz = rate_hz
        self.seed = seed

    def is_available(self) -> bool:
        return True

    def rotation_vectors(self) -> np.ndarray:
        """N x 4 Android rotation vectors [x, y, z, w]."""
        n = len(self)
        heading = self.start_deg + np.arange(n) * self.step_deg
        elevation = np.asarray(self.profile(heading % 360.0), dtype=float)

        if self.noise_deg > 0:
            rng = np.random.default_rng(self.seed)
            elevation = elevation + rng.normal(0.0, self.noise_deg, n)

        # Top edge raised by t: device = Rz(-heading) * Rx(t), Android pitch = -t
        if self.mode is PointingMode.CAMERA:
            tilt = 90.0 - elevation
        else:
            tilt = elevation

        rot = R.from_euler('ZX', np.stack([-heading, tilt], axis=1), degrees=True)
        return rot.as_quat()

    def __iter__(self) -> Iterator[OrientationEvent]:
        vectors = self.rotation_vectors()
        apr = rotation_vector_to_orientation(vectors)
        dt_ms = 1000.0 / self.rate_hz
        for i, (azimuth, pitch, roll) in enumerate(apr):
            yield OrientationEvent(i * dt_ms, float(azimuth), float(pitch), float(roll))

    def __len__(self) -> int:
        return max(int(round(self.turns * 360.0 / self.step_deg)), 1)
