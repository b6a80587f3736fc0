"""Vehicle state representation for multicopter simulation.

The state vector contains:
- Position (3): [x, y, z] in world frame (NED by default)
- Velocity (3): [vx, vy, vz] in world frame
- Quaternion (4): [q0, q1, q2, q3] attitude (scalar-first convention)
- Angular velocity (3): [p, q, r] body rates in body frame
- Motor speeds (N): one rotor speed per motor [rad/s]

Total: 13 + N state variables

Coordinate frames:
- World: fixed inertial frame (North-East-Down unless gravity is overridden)
- Body: vehicle body frame, origin at center of gravity

Quaternion convention:
- Scalar-first: q = [q0, q1, q2, q3] where q0 is the scalar part
- Represents rotation from body frame to world frame
"""

from dataclasses import dataclass

import numpy as np
from beartype import beartype
from numpy.typing import NDArray

# Number of rigid body entries ahead of the motor speeds in the flat array
RIGID_BODY_STATE_SIZE: int = 13

IDENTITY_QUATERNION = np.array([1.0, 0.0, 0.0, 0.0])

# =============================================================================
# Quaternion Utilities
# =============================================================================


@beartype
def normalize_quaternion(q: NDArray[np.float64]) -> NDArray[np.float64]:
    """Normalize a quaternion to unit length."""
    norm = np.linalg.norm(q)
    if norm < 1e-10:
        return IDENTITY_QUATERNION.copy()
    return q / norm


@beartype
def quaternion_multiply(q1: NDArray[np.float64], q2: NDArray[np.float64]) -> NDArray[np.float64]:
    """Multiply two quaternions (Hamilton product).

    Args:
        q1: First quaternion [q0, q1, q2, q3]
        q2: Second quaternion [q0, q1, q2, q3]

    Returns:
        Product quaternion q1 * q2
    """
    w1, x1, y1, z1 = q1
    w2, x2, y2, z2 = q2

    return np.array([
        w1*w2 - x1*x2 - y1*y2 - z1*z2,
        w1*x2 + x1*w2 + y1*z2 - z1*y2,
        w1*y2 - x1*z2 + y1*w2 + z1*x2,
        w1*z2 + x1*y2 - y1*x2 + z1*w2,
    ])


@beartype
def quaternion_to_dcm(q: NDArray[np.float64]) -> NDArray[np.float64]:
    """Convert quaternion to rotation matrix.

    Args:
        q: Quaternion [q0, q1, q2, q3] representing rotation from frame A to B

    Returns:
        3x3 matrix R such that v_B = R @ v_A
    """
    q = normalize_quaternion(q)
    q0, q1, q2, q3 = q

    return np.array([
        [1 - 2*(q2**2 + q3**2), 2*(q1*q2 - q0*q3), 2*(q1*q3 + q0*q2)],
        [2*(q1*q2 + q0*q3), 1 - 2*(q1**2 + q3**2), 2*(q2*q3 - q0*q1)],
        [2*(q1*q3 - q0*q2), 2*(q2*q3 + q0*q1), 1 - 2*(q1**2 + q2**2)],
    ])


@beartype
def axis_angle_to_quaternion(axis: NDArray[np.float64], angle: float) -> NDArray[np.float64]:
    """Quaternion for a rotation of ``angle`` radians about ``axis``."""
    norm = np.linalg.norm(axis)
    if norm < 1e-12:
        raise ValueError("Rotation axis must be non-zero")
    half = 0.5 * angle
    return np.concatenate([[np.cos(half)], np.sin(half) * axis / norm])


@beartype
def euler_to_quaternion(roll: float, pitch: float, yaw: float) -> NDArray[np.float64]:
    """Convert Euler angles (ZYX sequence) to quaternion.

    Args:
        roll: Roll angle (rotation about X) in radians
        pitch: Pitch angle (rotation about Y) in radians
        yaw: Yaw angle (rotation about Z) in radians

    Returns:
        Quaternion [q0, q1, q2, q3]
    """
    cr, sr = np.cos(roll / 2), np.sin(roll / 2)
    cp, sp = np.cos(pitch / 2), np.sin(pitch / 2)
    cy, sy = np.cos(yaw / 2), np.sin(yaw / 2)

    q0 = cr * cp * cy + sr * sp * sy
    q1 = sr * cp * cy - cr * sp * sy
    q2 = cr * sp * cy + sr * cp * sy
    q3 = cr * cp * sy - sr * sp * cy

    return normalize_quaternion(np.array([q0, q1, q2, q3]))


@beartype
def quaternion_to_euler(q: NDArray[np.float64]) -> tuple[float, float, float]:
    """Convert quaternion to Euler angles (ZYX sequence).

    Args:
        q: Quaternion [q0, q1, q2, q3]

    Returns:
        Tuple of (roll, pitch, yaw) in radians
    """
    q = normalize_quaternion(q)
    q0, q1, q2, q3 = q

    # Roll (rotation about X)
    sinr_cosp = 2 * (q0 * q1 + q2 * q3)
    cosr_cosp = 1 - 2 * (q1**2 + q2**2)
    roll = float(np.arctan2(sinr_cosp, cosr_cosp))

    # Pitch (rotation about Y) - handle gimbal lock
    sinp = 2 * (q0 * q2 - q3 * q1)
    pitch = float(np.copysign(np.pi / 2, sinp) if abs(sinp) >= 1 else np.arcsin(sinp))

    # Yaw (rotation about Z)
    siny_cosp = 2 * (q0 * q3 + q1 * q2)
    cosy_cosp = 1 - 2 * (q2**2 + q3**2)
    yaw = float(np.arctan2(siny_cosp, cosy_cosp))

    return roll, pitch, yaw


# =============================================================================
# State Classes
# =============================================================================


@beartype
@dataclass
class VehicleState:
    """Full multicopter state.

    The attitude is stored exactly as given. Simulator steps keep it on the
    unit sphere; explicit setters are responsible for passing unit quaternions.

    Attributes:
        position: [x, y, z] position in world frame [m]
        velocity: [vx, vy, vz] velocity in world frame [m/s]
        angular_velocity: [p, q, r] body angular rates [rad/s]
        attitude: [q0, q1, q2, q3] body-to-world quaternion (scalar-first)
        motor_speeds: rotor speed of each motor [rad/s]
    """
    position: NDArray[np.float64]
    velocity: NDArray[np.float64]
    angular_velocity: NDArray[np.float64]
    attitude: NDArray[np.float64]
    motor_speeds: NDArray[np.float64]

    def __post_init__(self) -> None:
        """Validate shapes."""
        if self.position.shape != (3,):
            raise ValueError(f"Position must be shape (3,), got {self.position.shape}")
        if self.velocity.shape != (3,):
            raise ValueError(f"Velocity must be shape (3,), got {self.velocity.shape}")
        if self.angular_velocity.shape != (3,):
            raise ValueError(f"Angular velocity must be shape (3,), got {self.angular_velocity.shape}")
        if self.attitude.shape != (4,):
            raise ValueError(f"Attitude must be shape (4,), got {self.attitude.shape}")
        if self.motor_speeds.ndim != 1:
            raise ValueError(f"Motor speeds must be 1-D, got shape {self.motor_speeds.shape}")

    @classmethod
    def at_rest(cls, motor_speeds: NDArray[np.float64]) -> "VehicleState":
        """State at the origin with identity attitude and no motion."""
        return cls(
            position=np.zeros(3),
            velocity=np.zeros(3),
            angular_velocity=np.zeros(3),
            attitude=IDENTITY_QUATERNION.copy(),
            motor_speeds=np.array(motor_speeds, dtype=np.float64),
        )

    @property
    def num_motors(self) -> int:
        """Number of motor speed entries."""
        return int(self.motor_speeds.shape[0])

    def to_array(self) -> NDArray[np.float64]:
        """Convert state to flat array for integration."""
        return np.concatenate([
            self.position,
            self.velocity,
            self.attitude,
            self.angular_velocity,
            self.motor_speeds,
        ])

    @classmethod
    def from_array(cls, arr: NDArray[np.float64]) -> "VehicleState":
        """Create state from flat array (motor count inferred from length)."""
        if arr.shape[0] < RIGID_BODY_STATE_SIZE:
            raise ValueError(
                f"State array needs at least {RIGID_BODY_STATE_SIZE} entries, got {arr.shape[0]}"
            )
        return cls(
            position=arr[0:3].copy(),
            velocity=arr[3:6].copy(),
            attitude=arr[6:10].copy(),
            angular_velocity=arr[10:13].copy(),
            motor_speeds=arr[13:].copy(),
        )

    def copy(self) -> "VehicleState":
        """Create a copy of this state."""
        return VehicleState(
            position=self.position.copy(),
            velocity=self.velocity.copy(),
            angular_velocity=self.angular_velocity.copy(),
            attitude=self.attitude.copy(),
            motor_speeds=self.motor_speeds.copy(),
        )

    @property
    def dcm_body_to_world(self) -> NDArray[np.float64]:
        """Get DCM that transforms vectors from body to world frame."""
        return quaternion_to_dcm(self.attitude)

    @property
    def dcm_world_to_body(self) -> NDArray[np.float64]:
        """Get DCM that transforms vectors from world to body frame."""
        return self.dcm_body_to_world.T

    @property
    def euler_angles(self) -> tuple[float, float, float]:
        """Get Euler angles (roll, pitch, yaw) in radians."""
        return quaternion_to_euler(self.attitude)


@beartype
@dataclass
class StateDerivative:
    """Time derivative of the vehicle state.

    Attributes:
        position_dot: d(position)/dt = velocity [m/s]
        velocity_dot: d(velocity)/dt = acceleration [m/s^2]
        attitude_dot: d(quaternion)/dt
        angular_velocity_dot: d(omega)/dt = angular acceleration [rad/s^2]
        motor_speeds_dot: rotor angular acceleration [rad/s^2]
    """
    position_dot: NDArray[np.float64]
    velocity_dot: NDArray[np.float64]
    attitude_dot: NDArray[np.float64]
    angular_velocity_dot: NDArray[np.float64]
    motor_speeds_dot: NDArray[np.float64]

    def to_array(self) -> NDArray[np.float64]:
        """Convert to flat array for integration."""
        return np.concatenate([
            self.position_dot,
            self.velocity_dot,
            self.attitude_dot,
            self.angular_velocity_dot,
            self.motor_speeds_dot,
        ])
