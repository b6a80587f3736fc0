"""Airframe configuration for multicopter simulation.

``VehicleConfig`` holds the rigid-body and aerodynamic properties shared by
the whole airframe; per-rotor properties live in ``MotorConfig`` records.
Standard rotor layouts are provided as factories.

Example:
    >>> from multicopter.vehicle import VehicleConfig, quad_x_motors
    >>>
    >>> vehicle = VehicleConfig(mass=1.0, inertia=np.diag([4.9e-3, 4.9e-3, 6.9e-3]))
    >>> motors = quad_x_motors(arm_length=0.08)
"""

from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np
from beartype import beartype
from numpy.typing import NDArray

from multicopter.environment.gravity import ned_gravity
from multicopter.propulsion.motor_model import MotorConfig

# =============================================================================
# Vehicle Configuration
# =============================================================================


@beartype
@dataclass
class VehicleConfig:
    """Rigid-body and aerodynamic properties of the airframe.

    Attributes:
        mass: Vehicle mass [kg]
        inertia: 3x3 inertia tensor about CG in body frame [kg*m^2]
        aero_moment_coefficient: 3x3 quadratic rate-damping matrix [N*m*s^2]
        drag_coefficient: Quadratic translational drag coefficient [N*s^2/m^2]
        force_noise_power: Process force noise power spectral density [N^2*s]
        moment_noise_power: Process moment noise power spectral density [(N*m)^2*s]
        gravity: Gravitational acceleration in world frame [m/s^2]
    """
    mass: float = 1.0
    inertia: NDArray[np.float64] = field(default_factory=lambda: np.diag([4.9e-3, 4.9e-3, 6.9e-3]))
    aero_moment_coefficient: NDArray[np.float64] = field(default_factory=lambda: np.zeros((3, 3)))
    drag_coefficient: float = 0.0
    force_noise_power: float = 0.0
    moment_noise_power: float = 0.0
    gravity: NDArray[np.float64] = field(default_factory=ned_gravity)

    def __post_init__(self) -> None:
        """Validate vehicle properties."""
        if not self.mass > 0:
            raise ValueError(f"Mass must be positive, got {self.mass}")
        if self.inertia.shape != (3, 3):
            raise ValueError(f"Inertia must be shape (3, 3), got {self.inertia.shape}")
        if not np.allclose(self.inertia, self.inertia.T):
            raise ValueError("Inertia must be symmetric")
        try:
            np.linalg.cholesky(self.inertia)
        except np.linalg.LinAlgError as err:
            raise ValueError("Inertia must be positive-definite") from err
        if self.aero_moment_coefficient.shape != (3, 3):
            raise ValueError(
                f"Aero moment coefficient must be shape (3, 3), got {self.aero_moment_coefficient.shape}"
            )
        if self.drag_coefficient < 0:
            raise ValueError(f"Drag coefficient must be non-negative, got {self.drag_coefficient}")
        if self.force_noise_power < 0 or self.moment_noise_power < 0:
            raise ValueError("Process noise powers must be non-negative")
        if self.gravity.shape != (3,):
            raise ValueError(f"Gravity must be shape (3,), got {self.gravity.shape}")

    @classmethod
    def default(cls) -> "VehicleConfig":
        """Representative 1 kg racing quadrotor with light damping and noise."""
        return cls(
            mass=1.0,
            inertia=np.diag([4.9e-3, 4.9e-3, 6.9e-3]),
            aero_moment_coefficient=np.diag([3.0e-7, 3.0e-7, 3.0e-7]),
            drag_coefficient=0.1,
            force_noise_power=5.0e-4,
            moment_noise_power=1.25e-7,
        )

    @property
    def weight(self) -> float:
        """Magnitude of the gravitational force [N]."""
        return self.mass * float(np.linalg.norm(self.gravity))


# =============================================================================
# Standard Layouts
# =============================================================================

# Rotation taking the motor +z axis onto body -z (rotor pushing "up" in FRD)
_MOTOR_AXIS_UP = np.diag([1.0, -1.0, -1.0])


@beartype
def quad_x_motors(
    arm_length: float = 0.08,
    thrust_coefficient: float = 1.91e-6,
    torque_coefficient: float = 2.6e-7,
    time_constant: float = 0.02,
    min_speed: float = 0.0,
    max_speed: float = 2200.0,
) -> list[MotorConfig]:
    """Four rotors in an X layout for a forward-right-down body frame.

    Motors are numbered front-right, rear-left, front-left, rear-right.
    Front-right and rear-left share one spin direction, the other diagonal
    the opposite one, so equal speeds cancel both arm and reaction moments.

    Args:
        arm_length: Distance from CG to each rotor [m]
        thrust_coefficient: Thrust per squared speed [N/(rad/s)^2]
        torque_coefficient: Reaction torque per squared speed [N*m/(rad/s)^2]
        time_constant: Rotor time constant [s]
        min_speed: Lower speed bound [rad/s]
        max_speed: Upper speed bound [rad/s]

    Returns:
        Motor records in index order
    """
    d = arm_length / np.sqrt(2.0)
    layout = [
        (np.array([d, d, 0.0]), 1),
        (np.array([-d, -d, 0.0]), 1),
        (np.array([d, -d, 0.0]), -1),
        (np.array([-d, d, 0.0]), -1),
    ]

    return [
        MotorConfig(
            rotation=_MOTOR_AXIS_UP.copy(),
            position=position,
            direction=direction,
            thrust_coefficient=thrust_coefficient,
            torque_coefficient=torque_coefficient,
            time_constant=time_constant,
            min_speed=min_speed,
            max_speed=max_speed,
        )
        for position, direction in layout
    ]


@beartype
def hover_motor_speed(vehicle: VehicleConfig, motors: Sequence[MotorConfig]) -> float:
    """Equal rotor speed whose combined thrust balances the vehicle weight.

    Assumes every rotor axis is parallel to gravity at level attitude.
    """
    total_coefficient = sum(m.thrust_coefficient for m in motors)
    if total_coefficient <= 0:
        raise ValueError("Motors produce no thrust")
    return float(np.sqrt(vehicle.weight / total_coefficient))
