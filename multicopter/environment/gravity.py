"""Uniform gravity for short-range multicopter flight.

Over the few kilometres a multirotor covers, gravity is treated as a constant
vector in the world frame. Its direction follows the world frame convention:

- NED: North-East-Down, gravity along +z (default)
- ENU: East-North-Up, gravity along -z

Example:
    >>> from multicopter.environment import WorldFrame, gravity_vector
    >>>
    >>> g = gravity_vector(WorldFrame.ENU)  # [0, 0, -9.80665] m/s^2
"""

from enum import Enum, auto

import numpy as np
from beartype import beartype
from numpy.typing import NDArray

# Standard gravity at sea level
G0: float = 9.80665  # [m/s^2]


class WorldFrame(Enum):
    """World frame axis conventions."""

    NED = auto()  # z down
    ENU = auto()  # z up


@beartype
def gravity_vector(frame: WorldFrame = WorldFrame.NED, g0: float = G0) -> NDArray[np.float64]:
    """Gravitational acceleration in the given world frame.

    Args:
        frame: World frame convention
        g0: Gravity magnitude [m/s^2]

    Returns:
        Acceleration vector [gx, gy, gz] [m/s^2]
    """
    if g0 < 0:
        raise ValueError(f"Gravity magnitude must be non-negative, got {g0}")

    if frame == WorldFrame.NED:
        return np.array([0.0, 0.0, g0])
    elif frame == WorldFrame.ENU:
        return np.array([0.0, 0.0, -g0])
    else:
        raise ValueError(f"Unknown world frame: {frame}")


def ned_gravity() -> NDArray[np.float64]:
    """Standard gravity in the NED frame."""
    return gravity_vector(WorldFrame.NED)
