"""
Orientation sampling: rotation vector -> azimuth / elevation.

Follows the Android conventions the sensor logs are recorded with:

    Device frame:  X right edge, Y top edge, Z out of the screen
    World frame:   X east, Y magnetic north, Z up (ENU)

The rotation matrix R maps device vectors into the world frame, so its
columns are the device axes expressed in world coordinates. getOrientation()
then reads azimuth from where the top edge points, pitch from how far the
top edge is raised, and roll from the screen normal.

Usage:
    from horizon.orientation import PointingMode, sample_orientation

    reading = sample_orientation(event, PointingMode.CAMERA)
    print(format_reading(reading))
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple

import numpy as np
from scipy.spatial.transform import Rotation as R


class PointingMode(Enum):
    """Which part of the phone is aimed at the horizon."""
    PHONE = "phone"    # top edge of the phone
    CAMERA = "camera"  # rear camera, phone held upright

    @classmethod
    def parse(cls, value) -> "PointingMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown pointing mode '{value}' (expected phone or camera)") from None


class OrientationEvent(NamedTuple):
    timestamp_ms: float
    azimuth: float  # rad
    pitch: float    # rad
    roll: float     # rad


@dataclass(frozen=True)
class Reading:
    """One sampled direction. Azimuth keeps its fraction, elevation is whole degrees."""
    azimuth: float  # deg, [0, 360)
    elevation: int  # deg, positive above the horizon


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves towards +inf (platform rounding, not banker's)."""
    return int(math.floor(value + 0.5))


# =============================================================================
# Rotation vector decomposition
# =============================================================================

def rotation_vector_to_matrix(values) -> np.ndarray:
    """
    Convert Android rotation vectors to rotation matrices.

    Args:
        values: (x, y, z) or (x, y, z, w), or an N x 3 / N x 4 array of them.
            When w is absent (or NaN) it is recovered as sqrt(1 - x² - y² - z²),
            clamped to 0 like SensorManager.getRotationMatrixFromVector.

    Returns:
        3 x 3 matrix, or N x 3 x 3 for batched input.
    """
    v = np.asarray(values, dtype=float)
    single = v.ndim == 1
    v = np.atleast_2d(v)
    if v.shape[1] < 3:
        raise ValueError(f"Rotation vector needs at least 3 components, got {v.shape[1]}")

    xyz = v[:, :3]
    w = v[:, 3] if v.shape[1] > 3 else np.full(len(v), np.nan)
    missing = np.isnan(w)
    if np.any(missing):
        w_sq = 1.0 - np.sum(xyz[missing] ** 2, axis=1)
        w = w.copy()
        w[missing] = np.sqrt(np.clip(w_sq, 0.0, None))

    # scipy wants scalar-last [x, y, z, w], same order Android reports
    quats = np.column_stack([xyz, w])
    matrices = R.from_quat(quats).as_matrix()
    return matrices[0] if single else matrices


def matrix_to_orientation(matrix) -> np.ndarray:
    """
    SensorManager.getOrientation() for one matrix or a stack of them.

    Returns:
        [azimuth, pitch, roll] in radians (N x 3 for batched input).
        Azimuth is in (-pi, pi], pitch in [-pi/2, pi/2].
    """
    m = np.asarray(matrix, dtype=float)
    single = m.ndim == 2
    m = m.reshape(-1, 3, 3)

    azimuth = np.arctan2(m[:, 0, 1], m[:, 1, 1])
    pitch = np.arcsin(np.clip(-m[:, 2, 1], -1.0, 1.0))
    roll = np.arctan2(-m[:, 2, 0], m[:, 2, 2])

    apr = np.stack([azimuth, pitch, roll], axis=1)
    return apr[0] if single else apr


def rotation_vector_to_orientation(values) -> np.ndarray:
    """Rotation vector(s) straight to [azimuth, pitch, roll] radians."""
    return matrix_to_orientation(rotation_vector_to_matrix(values))


# =============================================================================
# Sampling
# =============================================================================

def normalize_azimuth(azimuth_rad: float) -> float:
    """Compass bearing in degrees, wrapped into [0, 360)."""
    deg = math.degrees(azimuth_rad)
    bearing = (deg + 360.0) % 360.0
    # float modulo can land exactly on the divisor for tiny negative inputs
    return 0.0 if bearing >= 360.0 else bearing


def elevation_for(pitch_rad: float, mode: PointingMode) -> int:
    """
    Elevation above the horizon for the given pitch.

    Phone mode aims the top edge, so raising it (negative pitch) is positive
    elevation. Camera mode aims the rear lens of an upright phone, which
    looks at the horizon when |pitch| is 90 and straight up when pitch is 0.
    """
    pitch_deg = math.degrees(pitch_rad)
    if mode is PointingMode.CAMERA:
        return round_half_up(90.0 - abs(pitch_deg))
    return round_half_up(-pitch_deg)


def sample_orientation(event: OrientationEvent, mode: PointingMode) -> Reading:
    return Reading(
        azimuth=normalize_azimuth(event.azimuth),
        elevation=elevation_for(event.pitch, mode),
    )


def format_reading(reading: Reading) -> str:
    return f"Azimuth: {int(reading.azimuth)}°  Elevation: {reading.elevation}°"
