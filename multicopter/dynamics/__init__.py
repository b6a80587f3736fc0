"""Dynamics module for multicopter rigid body simulation.

This module provides the equations of motion, the state representation and
the fixed-step integrators.

Example:
    >>> from multicopter.dynamics import RigidBodyDynamics, VehicleState, rk4_step
    >>>
    >>> dynamics = RigidBodyDynamics(vehicle, motor_model)
    >>> state = VehicleState.at_rest(motor_model.minimum_speeds())
    >>> state = rk4_step(state, 0.002, lambda s: dynamics.derivatives(s, command), motor_model)
"""

from multicopter.dynamics.integrators import (
    IntegrationMethod,
    euler_step,
    integrate,
    restore_invariants,
    rk4_step,
)
from multicopter.dynamics.rigid_body import (
    RigidBodyDynamics,
    aero_damping_moment,
    drag_force,
    euler_rotational_dynamics,
    quaternion_derivative,
)
from multicopter.dynamics.state import (
    StateDerivative,
    VehicleState,
    axis_angle_to_quaternion,
    euler_to_quaternion,
    normalize_quaternion,
    quaternion_multiply,
    quaternion_to_dcm,
    quaternion_to_euler,
)

__all__ = [
    # State
    "VehicleState",
    "StateDerivative",
    # Quaternion utilities
    "quaternion_to_dcm",
    "axis_angle_to_quaternion",
    "euler_to_quaternion",
    "quaternion_to_euler",
    "quaternion_multiply",
    "normalize_quaternion",
    # Rigid body dynamics
    "RigidBodyDynamics",
    "aero_damping_moment",
    "drag_force",
    "quaternion_derivative",
    "euler_rotational_dynamics",
    # Integration
    "IntegrationMethod",
    "euler_step",
    "integrate",
    "restore_invariants",
    "rk4_step",
]
