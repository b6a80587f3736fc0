"""Fixed-step integrators for the multicopter state.

Both schemes take a derivative function that closes over the step's command
and disturbance sample, so the disturbance is drawn once per step and held
across every stage.

Every step finishes with ``restore_invariants``: the attitude quaternion is
renormalized and each motor speed is clamped into its bounds. Intermediate
RK4 stages renormalize the attitude they evaluate at but leave motor speeds
unclamped; the commanded target inside the motor derivative is already
clamped.
"""

from collections.abc import Callable
from enum import Enum

import numpy as np
from beartype import beartype

from multicopter.dynamics.state import (
    StateDerivative,
    VehicleState,
    normalize_quaternion,
)
from multicopter.propulsion.motor_model import MotorModel

DerivativesFn = Callable[[VehicleState], StateDerivative]

_ATTITUDE = slice(6, 10)


class IntegrationMethod(Enum):
    """Available integration schemes."""

    EXPLICIT_EULER = "explicit_euler"  # First order, one evaluation
    RK4 = "rk4"                        # Fourth order, four evaluations


def _stage_state(y: np.ndarray) -> VehicleState:
    """Build the state an RK4 stage is evaluated at."""
    y = y.copy()
    y[_ATTITUDE] = normalize_quaternion(y[_ATTITUDE])
    return VehicleState.from_array(y)


@beartype
def restore_invariants(state: VehicleState, motor_model: MotorModel) -> VehicleState:
    """Renormalize attitude and saturate motor speeds.

    Args:
        state: State straight out of an integration update
        motor_model: Rotor set providing speed bounds

    Returns:
        New state satisfying both invariants
    """
    return VehicleState(
        position=state.position,
        velocity=state.velocity,
        angular_velocity=state.angular_velocity,
        attitude=normalize_quaternion(state.attitude),
        motor_speeds=motor_model.saturate(state.motor_speeds),
    )


@beartype
def euler_step(
    state: VehicleState,
    dt: float,
    derivatives_fn: DerivativesFn,
    motor_model: MotorModel,
) -> VehicleState:
    """Perform one explicit Euler step.

    Args:
        state: Current state
        dt: Time step [s]
        derivatives_fn: Function that computes StateDerivative from VehicleState
        motor_model: Rotor set providing speed bounds

    Returns:
        State at t + dt
    """
    y0 = state.to_array()
    y1 = y0 + dt * derivatives_fn(state).to_array()

    return restore_invariants(VehicleState.from_array(y1), motor_model)


@beartype
def rk4_step(
    state: VehicleState,
    dt: float,
    derivatives_fn: DerivativesFn,
    motor_model: MotorModel,
) -> VehicleState:
    """Perform one RK4 integration step.

    Args:
        state: Current state
        dt: Time step [s]
        derivatives_fn: Function that computes StateDerivative from VehicleState
        motor_model: Rotor set providing speed bounds

    Returns:
        State at t + dt
    """
    y0 = state.to_array()

    def f(y: np.ndarray) -> np.ndarray:
        return derivatives_fn(_stage_state(y)).to_array()

    # RK4 stages
    k1 = derivatives_fn(state).to_array()
    k2 = f(y0 + dt/2 * k1)
    k3 = f(y0 + dt/2 * k2)
    k4 = f(y0 + dt * k3)

    # Update
    y1 = y0 + (dt / 6) * (k1 + 2*k2 + 2*k3 + k4)

    return restore_invariants(VehicleState.from_array(y1), motor_model)


@beartype
def integrate(
    method: IntegrationMethod,
    state: VehicleState,
    dt: float,
    derivatives_fn: DerivativesFn,
    motor_model: MotorModel,
) -> VehicleState:
    """Advance ``state`` by one step of the given scheme."""
    if method == IntegrationMethod.EXPLICIT_EULER:
        return euler_step(state, dt, derivatives_fn, motor_model)
    elif method == IntegrationMethod.RK4:
        return rk4_step(state, dt, derivatives_fn, motor_model)
    else:
        raise ValueError(f"Unknown integration method: {method}")
