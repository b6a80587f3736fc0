"""Multicopter - Rigid-body flight dynamics for software-in-the-loop testing.

This package provides a multirotor plant model: rotor thrust and moments,
quadratic drag and rate damping, gravity and stochastic process disturbances,
integrated with explicit Euler or fourth-order Runge-Kutta, plus synthetic
inertial measurements consistent with the integrated physics.

Example:
    >>> from multicopter import MulticopterSimulator, SimConfig, VehicleConfig, quad_x_motors
    >>>
    >>> sim = MulticopterSimulator(
    ...     VehicleConfig.default(),
    ...     quad_x_motors(arm_length=0.08),
    ...     SimConfig(seed=42),
    ... )
    >>> sim.step_rk4(0.002, np.full(4, 1133.0))
    >>> accel, gyro = sim.get_imu_measurement()
"""

__version__ = "0.1.0"

# Dynamics
from multicopter.dynamics import (
    IntegrationMethod,
    RigidBodyDynamics,
    StateDerivative,
    VehicleState,
    euler_to_quaternion,
    quaternion_to_euler,
)

# Environment
from multicopter.environment import (
    G0,
    ProcessNoise,
    ProcessNoiseSample,
    WorldFrame,
    gravity_vector,
)

# Propulsion
from multicopter.propulsion import (
    MotorConfig,
    MotorModel,
)

# Sensors
from multicopter.sensors import (
    IdealInertialSensor,
    ImuMeasurement,
    InertialSensor,
)

# Simulation
from multicopter.simulation import (
    MulticopterSimulator,
    SimConfig,
    SimulationResult,
)

# Vehicle
from multicopter.vehicle import (
    VehicleConfig,
    hover_motor_speed,
    quad_x_motors,
)

__all__ = [
    "__version__",
    # Dynamics
    "IntegrationMethod",
    "RigidBodyDynamics",
    "StateDerivative",
    "VehicleState",
    "euler_to_quaternion",
    "quaternion_to_euler",
    # Environment
    "G0",
    "ProcessNoise",
    "ProcessNoiseSample",
    "WorldFrame",
    "gravity_vector",
    # Propulsion
    "MotorConfig",
    "MotorModel",
    # Sensors
    "IdealInertialSensor",
    "ImuMeasurement",
    "InertialSensor",
    # Simulation
    "MulticopterSimulator",
    "SimConfig",
    "SimulationResult",
    # Vehicle
    "VehicleConfig",
    "hover_motor_speed",
    "quad_x_motors",
]
