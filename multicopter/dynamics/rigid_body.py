"""Multicopter rigid body equations of motion.

Computes state derivatives from rotor thrust and moments, aerodynamic drag
and rate damping, gravity and stochastic process disturbances.

The equations use:
- Newton's second law for translational motion in the world frame
- Euler's equations for rotational motion: M = I * alpha + omega x (I * omega)
- Quaternion kinematics for attitude propagation: q_dot = 0.5 * q (x) (0, omega)
- A first-order lag for each rotor speed

Example:
    >>> from multicopter.dynamics import RigidBodyDynamics, VehicleState
    >>> from multicopter.propulsion import MotorModel
    >>> from multicopter.vehicle import VehicleConfig, quad_x_motors
    >>>
    >>> dynamics = RigidBodyDynamics(VehicleConfig(), MotorModel(quad_x_motors()))
    >>> state = VehicleState.at_rest(np.zeros(4))
    >>> state_dot = dynamics.derivatives(state, np.full(4, 1100.0))
"""

import numpy as np
from beartype import beartype
from numba import njit
from numpy.typing import NDArray

from multicopter.dynamics.state import StateDerivative, VehicleState, quaternion_to_dcm
from multicopter.environment.process_noise import ProcessNoiseSample
from multicopter.propulsion.motor_model import MotorModel
from multicopter.vehicle.config import VehicleConfig

# =============================================================================
# Numba-Optimized Core Functions
# =============================================================================


@njit(cache=True)
def _quaternion_kinematics(
    q0: float, q1: float, q2: float, q3: float,
    p: float, q: float, r: float,
) -> tuple[float, float, float, float]:
    """Numba-optimized q_dot = 0.5 * q (x) (0, omega)."""
    return (
        0.5 * (-p*q1 - q*q2 - r*q3),
        0.5 * (p*q0 + r*q2 - q*q3),
        0.5 * (q*q0 - r*q1 + p*q3),
        0.5 * (r*q0 + q*q1 - p*q2),
    )


# =============================================================================
# Force and Moment Terms
# =============================================================================


@beartype
def quaternion_derivative(
    q: NDArray[np.float64],
    omega: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Compute quaternion time derivative from angular velocity.

    Args:
        q: Current body-to-world quaternion [q0, q1, q2, q3]
        omega: Angular velocity in body frame [p, q, r] [rad/s]

    Returns:
        Quaternion derivative dq/dt
    """
    return np.array(_quaternion_kinematics(
        float(q[0]), float(q[1]), float(q[2]), float(q[3]),
        float(omega[0]), float(omega[1]), float(omega[2]),
    ))


@beartype
def euler_rotational_dynamics(
    omega: NDArray[np.float64],
    moment: NDArray[np.float64],
    inertia: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Compute angular acceleration from Euler's equations.

    Euler's equations: I * omega_dot = M - omega x (I * omega)

    Args:
        omega: Angular velocity in body frame [p, q, r] [rad/s]
        moment: Applied moment in body frame [Mx, My, Mz] [N*m]
        inertia: 3x3 inertia tensor [kg*m^2]

    Returns:
        Angular acceleration [p_dot, q_dot, r_dot] [rad/s^2]
    """
    # Gyroscopic term: omega x (I * omega)
    I_omega = inertia @ omega
    gyroscopic = np.cross(omega, I_omega)

    return np.linalg.solve(inertia, moment - gyroscopic)


@beartype
def drag_force(velocity: NDArray[np.float64], drag_coefficient: float) -> NDArray[np.float64]:
    """Quadratic translational drag, -c_d * v * |v| [N]."""
    speed = float(np.linalg.norm(velocity))
    if speed == 0.0:
        return np.zeros(3)
    return -drag_coefficient * speed * velocity


@beartype
def aero_damping_moment(
    omega: NDArray[np.float64],
    coefficient: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Quadratic rate damping, -C * omega * |omega| [N*m]."""
    rate = float(np.linalg.norm(omega))
    if rate == 0.0:
        return np.zeros(3)
    return -rate * (coefficient @ omega)


# =============================================================================
# Complete Dynamics Model
# =============================================================================


@beartype
class RigidBodyDynamics:
    """Complete multicopter dynamics model.

    Combines rotor thrust and moments, aerodynamics, gravity and process
    disturbances into state derivatives. The vehicle configuration may be
    swapped between steps.

    Example:
        >>> dynamics = RigidBodyDynamics(vehicle, motor_model)
        >>> noise = ProcessNoiseSample.zero()
        >>> state_dot = dynamics.derivatives(state, command, noise)
    """

    def __init__(self, vehicle: VehicleConfig, motor_model: MotorModel) -> None:
        """Initialize dynamics model.

        Args:
            vehicle: Airframe properties
            motor_model: Rotor set (shared, not copied)
        """
        self.vehicle = vehicle
        self.motor_model = motor_model

    def external_force(
        self,
        state: VehicleState,
        thrust_body: NDArray[np.float64],
        stochastic_force: NDArray[np.float64],
    ) -> NDArray[np.float64]:
        """Sum of non-gravitational forces in world frame [N]."""
        thrust_world = quaternion_to_dcm(state.attitude) @ thrust_body
        drag = drag_force(state.velocity, self.vehicle.drag_coefficient)
        return thrust_world + drag + stochastic_force

    def velocity_derivative(
        self,
        state: VehicleState,
        thrust_body: NDArray[np.float64],
        stochastic_force: NDArray[np.float64],
    ) -> NDArray[np.float64]:
        """Acceleration in world frame [m/s^2]."""
        force = self.external_force(state, thrust_body, stochastic_force)
        return force / self.vehicle.mass + self.vehicle.gravity

    def angular_velocity_derivative(
        self,
        state: VehicleState,
        control_moment: NDArray[np.float64],
        stochastic_moment: NDArray[np.float64],
    ) -> NDArray[np.float64]:
        """Angular acceleration in body frame [rad/s^2]."""
        aero = aero_damping_moment(state.angular_velocity, self.vehicle.aero_moment_coefficient)
        moment = control_moment + aero + stochastic_moment
        return euler_rotational_dynamics(state.angular_velocity, moment, self.vehicle.inertia)

    def derivatives(
        self,
        state: VehicleState,
        motor_speed_command: NDArray[np.float64],
        noise: ProcessNoiseSample | None = None,
    ) -> StateDerivative:
        """Compute state derivatives.

        Args:
            state: Current vehicle state
            motor_speed_command: Commanded speed of each motor [rad/s]
            noise: Disturbance held over the step (none if omitted)

        Returns:
            State derivatives
        """
        if noise is None:
            noise = ProcessNoiseSample.zero()

        thrust, control_moment = self.motor_model.forces_and_moments(state.motor_speeds)

        return StateDerivative(
            position_dot=state.velocity.copy(),
            velocity_dot=self.velocity_derivative(state, thrust, noise.force),
            attitude_dot=quaternion_derivative(state.attitude, state.angular_velocity),
            angular_velocity_dot=self.angular_velocity_derivative(state, control_moment, noise.moment),
            motor_speeds_dot=self.motor_model.speed_derivative(state.motor_speeds, motor_speed_command),
        )

    def specific_force(
        self,
        state: VehicleState,
        stochastic_force: NDArray[np.float64],
    ) -> NDArray[np.float64]:
        """Proper acceleration sensed by an accelerometer, in body frame [m/s^2].

        Gravity is excluded; thrust, drag and the given disturbance are not.
        """
        thrust = self.motor_model.thrust_force(state.motor_speeds)
        force_world = self.external_force(state, thrust, stochastic_force)
        return state.dcm_world_to_body @ force_world / self.vehicle.mass
