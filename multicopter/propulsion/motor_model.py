"""Rotor models for multicopter simulation.

Each motor is described by one ``MotorConfig`` record: its pose in the body
frame, its spin direction and its electrical/mechanical constants. The
``MotorModel`` maps rotor speeds to body-frame thrust and control moment and
provides the first-order speed dynamics.

Conventions:
- The propeller axis is the local +z axis of the motor frame; positive thrust
  acts along +z.
- ``direction`` is the sign of the reaction torque about that axis
  (-1 if a positive rotation rate produces a negative moment).
- Speeds are non-negative magnitudes [rad/s].

Example:
    >>> from multicopter.propulsion import MotorModel
    >>> from multicopter.vehicle import quad_x_motors
    >>>
    >>> model = MotorModel(quad_x_motors(arm_length=0.1))
    >>> thrust = model.thrust_force(np.full(4, 800.0))  # [N], body frame
"""

from collections.abc import Sequence
from dataclasses import dataclass, field, replace

import numpy as np
from beartype import beartype
from numba import njit
from numpy.typing import NDArray

# =============================================================================
# Motor Configuration
# =============================================================================


@beartype
@dataclass
class MotorConfig:
    """Physical description of a single rotor.

    Attributes:
        rotation: 3x3 rotation matrix from motor frame to body frame
        position: Motor origin (arm vector) in body frame [m]
        direction: Reaction torque sign about the motor axis (+1 or -1)
        thrust_coefficient: Thrust per squared speed [N/(rad/s)^2]
        torque_coefficient: Reaction torque per squared speed [N*m/(rad/s)^2]
        time_constant: First-order spin-up/spin-down constant [s]
        min_speed: Lower speed bound [rad/s]
        max_speed: Upper speed bound [rad/s]
    """
    rotation: NDArray[np.float64] = field(default_factory=lambda: np.eye(3))
    position: NDArray[np.float64] = field(default_factory=lambda: np.zeros(3))
    direction: int = 1
    thrust_coefficient: float = 1.91e-6
    torque_coefficient: float = 2.6e-7
    time_constant: float = 0.02
    min_speed: float = 0.0
    max_speed: float = 2200.0

    def __post_init__(self) -> None:
        """Validate motor parameters."""
        if self.rotation.shape != (3, 3):
            raise ValueError(f"Rotation must be shape (3, 3), got {self.rotation.shape}")
        if not np.allclose(self.rotation.T @ self.rotation, np.eye(3), atol=1e-9) or \
                np.linalg.det(self.rotation) < 0:
            raise ValueError("Rotation must be a proper orthonormal matrix")
        if self.position.shape != (3,):
            raise ValueError(f"Position must be shape (3,), got {self.position.shape}")
        if self.direction not in (-1, 1):
            raise ValueError(f"Direction must be +1 or -1, got {self.direction}")
        if self.thrust_coefficient < 0 or self.torque_coefficient < 0:
            raise ValueError("Thrust and torque coefficients must be non-negative")
        if not self.time_constant > 0:
            raise ValueError(f"Time constant must be positive, got {self.time_constant}")
        if self.min_speed < 0:
            raise ValueError(f"Minimum speed must be non-negative, got {self.min_speed}")
        if self.min_speed > self.max_speed:
            raise ValueError(
                f"Minimum speed {self.min_speed} exceeds maximum speed {self.max_speed}"
            )

    @property
    def axis(self) -> NDArray[np.float64]:
        """Propeller axis (motor +z) expressed in the body frame."""
        return self.rotation[:, 2].copy()


# =============================================================================
# Numba-Optimized Core Functions
# =============================================================================


@njit(cache=True)
def _rotor_forces_and_moments(
    axes: np.ndarray,
    arms: np.ndarray,
    thrust_coefficients: np.ndarray,
    torque_coefficients: np.ndarray,
    directions: np.ndarray,
    speeds: np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    """Sum rotor thrust and moment contributions in the body frame."""
    thrust = np.zeros(3)
    moment = np.zeros(3)

    for i in range(speeds.shape[0]):
        speed_sq = speeds[i] * speeds[i]
        f = thrust_coefficients[i] * speed_sq
        fx = f * axes[i, 0]
        fy = f * axes[i, 1]
        fz = f * axes[i, 2]

        thrust[0] += fx
        thrust[1] += fy
        thrust[2] += fz

        # Arm moment: r x F
        moment[0] += arms[i, 1] * fz - arms[i, 2] * fy
        moment[1] += arms[i, 2] * fx - arms[i, 0] * fz
        moment[2] += arms[i, 0] * fy - arms[i, 1] * fx

        # Propeller drag reaction about the motor axis
        tau = directions[i] * torque_coefficients[i] * speed_sq
        moment[0] += tau * axes[i, 0]
        moment[1] += tau * axes[i, 1]
        moment[2] += tau * axes[i, 2]

    return thrust, moment


# =============================================================================
# Motor Model
# =============================================================================


@beartype
class MotorModel:
    """Ordered set of rotors acting on one airframe.

    Example:
        >>> model = MotorModel(quad_x_motors(arm_length=0.08))
        >>> speeds = np.full(4, 900.0)
        >>> thrust, moment = model.forces_and_moments(speeds)
        >>> speeds_dot = model.speed_derivative(speeds, np.full(4, 1200.0))
    """

    def __init__(self, motors: Sequence[MotorConfig]) -> None:
        """Initialize motor model.

        Args:
            motors: One record per motor, in index order
        """
        if len(motors) == 0:
            raise ValueError("At least one motor is required")
        self._motors = tuple(motors)
        self._pack()

    def _pack(self) -> None:
        """Cache per-motor parameters as contiguous arrays for the kernels."""
        self._axes = np.ascontiguousarray([m.axis for m in self._motors], dtype=np.float64)
        self._arms = np.ascontiguousarray([m.position for m in self._motors], dtype=np.float64)
        self._thrust_coefficients = np.array([m.thrust_coefficient for m in self._motors])
        self._torque_coefficients = np.array([m.torque_coefficient for m in self._motors])
        self._directions = np.array([float(m.direction) for m in self._motors])
        self._time_constants = np.array([m.time_constant for m in self._motors])
        self._min_speeds = np.array([m.min_speed for m in self._motors])
        self._max_speeds = np.array([m.max_speed for m in self._motors])

    @property
    def num_motors(self) -> int:
        """Number of motors."""
        return len(self._motors)

    @property
    def motors(self) -> tuple[MotorConfig, ...]:
        """Motor records in index order."""
        return self._motors

    def motor(self, index: int) -> MotorConfig:
        """Get the record of one motor."""
        self.check_index(index)
        return self._motors[index]

    def check_index(self, index: int) -> None:
        """Raise IndexError unless 0 <= index < num_motors."""
        if not 0 <= index < self.num_motors:
            raise IndexError(
                f"Motor index {index} out of range for {self.num_motors} motors"
            )

    def check_length(self, values: NDArray[np.float64], name: str = "motor speeds") -> None:
        """Raise ValueError unless ``values`` has one entry per motor."""
        if values.shape != (self.num_motors,):
            raise ValueError(
                f"Expected {self.num_motors} {name}, got shape {values.shape}"
            )

    def update_motor(self, index: int, **changes) -> None:
        """Replace fields of one motor record.

        The new record is validated before anything is swapped in.
        """
        self.check_index(index)
        updated = replace(self._motors[index], **changes)
        motors = list(self._motors)
        motors[index] = updated
        self._motors = tuple(motors)
        self._pack()

    def update_all(self, **changes) -> None:
        """Replace the same fields on every motor record."""
        self._motors = tuple(replace(m, **changes) for m in self._motors)
        self._pack()

    def forces_and_moments(
        self,
        speeds: NDArray[np.float64],
    ) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        """Body-frame thrust force [N] and control moment [N*m]."""
        self.check_length(speeds)
        return _rotor_forces_and_moments(
            self._axes,
            self._arms,
            self._thrust_coefficients,
            self._torque_coefficients,
            self._directions,
            np.ascontiguousarray(speeds),
        )

    def thrust_force(self, speeds: NDArray[np.float64]) -> NDArray[np.float64]:
        """Total thrust in body frame [N].

        Each motor contributes ``k_T * speed^2`` along its propeller axis.
        """
        return self.forces_and_moments(speeds)[0]

    def control_moment(self, speeds: NDArray[np.float64]) -> NDArray[np.float64]:
        """Total moment about the center of gravity in body frame [N*m].

        Sum of the arm moments ``r x F`` and the reaction torques
        ``direction * k_Q * speed^2`` about each motor axis.
        """
        return self.forces_and_moments(speeds)[1]

    def speed_derivative(
        self,
        speeds: NDArray[np.float64],
        commands: NDArray[np.float64],
    ) -> NDArray[np.float64]:
        """First-order lag of each rotor toward its clamped command [rad/s^2]."""
        self.check_length(speeds)
        self.check_length(commands, "motor speed commands")
        targets = np.clip(commands, self._min_speeds, self._max_speeds)
        return (targets - speeds) / self._time_constants

    def saturate(self, speeds: NDArray[np.float64]) -> NDArray[np.float64]:
        """Clamp every speed into its motor's bounds."""
        self.check_length(speeds)
        return np.clip(speeds, self._min_speeds, self._max_speeds)

    def minimum_speeds(self) -> NDArray[np.float64]:
        """Configured minimum speed of each motor."""
        return self._min_speeds.copy()

    def maximum_speeds(self) -> NDArray[np.float64]:
        """Configured maximum speed of each motor."""
        return self._max_speeds.copy()
