"""Inertial measurement hand-off.

The simulator produces truth specific force and angular velocity for the
step it just completed; an ``InertialSensor`` turns those into accelerometer
and gyroscope readings. Noise and bias models belong to the sensor, not to
the plant, so any object with a matching ``measure`` method can be plugged
in.

Example:
    >>> sim = MulticopterSimulator.with_motor_count(4, imu=IdealInertialSensor())
    >>> sim.step_rk4(0.002, command)
    >>> reading = sim.get_imu_measurement()
    >>> reading.accelerometer, reading.gyroscope
"""

from typing import NamedTuple, Protocol, runtime_checkable

import numpy as np
from beartype import beartype
from numpy.typing import NDArray


class ImuMeasurement(NamedTuple):
    """One accelerometer + gyroscope reading, both in body frame."""
    accelerometer: NDArray[np.float64]  # Specific force [m/s^2]
    gyroscope: NDArray[np.float64]      # Angular velocity [rad/s]


@runtime_checkable
class InertialSensor(Protocol):
    """Protocol for inertial sensor emulators."""

    def measure(
        self,
        specific_force: NDArray[np.float64],
        angular_velocity: NDArray[np.float64],
    ) -> ImuMeasurement:
        """Produce a reading from body-frame truth values."""
        ...


@beartype
class IdealInertialSensor:
    """Noise-free sensor reporting the truth values."""

    def measure(
        self,
        specific_force: NDArray[np.float64],
        angular_velocity: NDArray[np.float64],
    ) -> ImuMeasurement:
        """Return copies of the inputs as the reading."""
        return ImuMeasurement(
            accelerometer=specific_force.copy(),
            gyroscope=angular_velocity.copy(),
        )
