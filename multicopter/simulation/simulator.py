"""Step-driven flight simulation for multicopters.

Provides a software-in-the-loop plant where external autopilot code controls
the loop. The simulator maintains the "truth" state and propagates physics in
response to commanded motor speeds.

Architecture:
    Autopilot code owns the simulation loop and calls:
    - sim.get_state() -> current truth state
    - sim.step_rk4(dt, command) / sim.step_euler(dt, command) -> propagate physics
    - sim.get_imu_measurement() -> sensor reading for the step just taken

Example:
    >>> from multicopter.simulation import MulticopterSimulator, SimConfig
    >>> from multicopter.vehicle import VehicleConfig, quad_x_motors
    >>>
    >>> sim = MulticopterSimulator(VehicleConfig.default(), quad_x_motors(), SimConfig(seed=7))
    >>> sim.reset_motor_speeds()
    >>>
    >>> while flying:
    ...     state = sim.get_state()
    ...     imu = sim.get_imu_measurement()
    ...
    ...     # Your autopilot code here
    ...     command = autopilot.compute(state, imu)
    ...
    ...     sim.step_rk4(0.002, command)
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, replace

import numpy as np
from beartype import beartype
from numpy.typing import NDArray

from multicopter.dynamics.integrators import IntegrationMethod, integrate
from multicopter.dynamics.rigid_body import RigidBodyDynamics
from multicopter.dynamics.state import StateDerivative, VehicleState
from multicopter.environment.process_noise import ProcessNoise, ProcessNoiseSample
from multicopter.propulsion.motor_model import MotorConfig, MotorModel
from multicopter.sensors.imu import IdealInertialSensor, ImuMeasurement, InertialSensor
from multicopter.vehicle.config import VehicleConfig

logger = logging.getLogger(__name__)

# Largest accepted deviation from unit norm for attitudes passed to setters
ATTITUDE_NORM_TOLERANCE: float = 1e-6

# =============================================================================
# Configuration
# =============================================================================


@beartype
@dataclass
class SimConfig:
    """Simulation configuration.

    Attributes:
        method: Integration scheme used by ``step``
        seed: Seed of the process noise stream (None for OS entropy)
        record_history: Whether to keep the state after every step
    """
    method: IntegrationMethod = IntegrationMethod.RK4
    seed: int | None = None
    record_history: bool = False


# =============================================================================
# Simulator
# =============================================================================


@beartype
class MulticopterSimulator:
    """Step-driven multicopter plant.

    Owns the vehicle state, the rotor set and one process noise stream. Each
    step draws a single disturbance sample, integrates with it and keeps it so
    the next sensor query sees the same realization.

    Access to one instance must be serialized by the caller; separate
    instances share nothing.

    Example:
        >>> sim = MulticopterSimulator.with_motor_count(4)
        >>> for _ in range(500):
        ...     sim.step_euler(0.001, np.full(4, 1000.0))
        >>> position = sim.get_position()
    """

    def __init__(
        self,
        vehicle: VehicleConfig,
        motors: Sequence[MotorConfig],
        config: SimConfig | None = None,
        imu: InertialSensor | None = None,
    ) -> None:
        """Initialize simulator at rest with motors at minimum speed.

        Args:
            vehicle: Airframe properties
            motors: One record per motor, in index order
            config: Simulation configuration
            imu: Sensor emulator (ideal sensor if omitted)
        """
        self.config = config or SimConfig()
        self.imu = imu if imu is not None else IdealInertialSensor()

        self._vehicle = vehicle
        self._motor_model = MotorModel(motors)
        self._dynamics = RigidBodyDynamics(self._vehicle, self._motor_model)
        self._noise = ProcessNoise(self.config.seed)
        self._noise_sample = ProcessNoiseSample.zero()
        self._state = VehicleState.at_rest(self._motor_model.minimum_speeds())
        self._time = 0.0
        self._history: list[tuple[float, VehicleState]] = []
        if self.config.record_history:
            self._history.append((self._time, self._state.copy()))

        logger.debug(
            "Created simulator with %d motors, mass %.3f kg, %s integration",
            self.num_copter, vehicle.mass, self.config.method.value,
        )

    @classmethod
    def from_parameters(
        cls,
        num_copter: int,
        thrust_coefficient: float,
        torque_coefficient: float,
        min_motor_speed: float,
        max_motor_speed: float,
        motor_time_constant: float,
        mass: float,
        inertia: NDArray[np.float64],
        aero_moment_coefficient: NDArray[np.float64],
        drag_coefficient: float,
        moment_noise_power: float,
        force_noise_power: float,
        gravity: NDArray[np.float64],
        config: SimConfig | None = None,
        imu: InertialSensor | None = None,
    ) -> "MulticopterSimulator":
        """Create simulator from the full parameter set.

        All motors share the given properties and start with an identity pose
        and positive spin direction; use ``set_motor_frame`` to place them.

        Args:
            num_copter: Number of motors
            thrust_coefficient: Thrust per squared speed [N/(rad/s)^2]
            torque_coefficient: Reaction torque per squared speed [N*m/(rad/s)^2]
            min_motor_speed: Lower speed bound [rad/s]
            max_motor_speed: Upper speed bound [rad/s]
            motor_time_constant: Rotor time constant [s]
            mass: Vehicle mass [kg]
            inertia: 3x3 inertia tensor [kg*m^2]
            aero_moment_coefficient: 3x3 rate-damping matrix [N*m*s^2]
            drag_coefficient: Quadratic drag coefficient [N*s^2/m^2]
            moment_noise_power: Moment noise power spectral density [(N*m)^2*s]
            force_noise_power: Force noise power spectral density [N^2*s]
            gravity: Gravitational acceleration in world frame [m/s^2]
            config: Simulation configuration
            imu: Sensor emulator
        """
        if num_copter < 1:
            raise ValueError(f"Motor count must be positive, got {num_copter}")

        vehicle = VehicleConfig(
            mass=mass,
            inertia=inertia,
            aero_moment_coefficient=aero_moment_coefficient,
            drag_coefficient=drag_coefficient,
            force_noise_power=force_noise_power,
            moment_noise_power=moment_noise_power,
            gravity=gravity,
        )
        motors = [
            MotorConfig(
                thrust_coefficient=thrust_coefficient,
                torque_coefficient=torque_coefficient,
                time_constant=motor_time_constant,
                min_speed=min_motor_speed,
                max_speed=max_motor_speed,
            )
            for _ in range(num_copter)
        ]

        return cls(vehicle=vehicle, motors=motors, config=config, imu=imu)

    @classmethod
    def with_motor_count(
        cls,
        num_copter: int,
        config: SimConfig | None = None,
        imu: InertialSensor | None = None,
    ) -> "MulticopterSimulator":
        """Create simulator with placeholder physical properties.

        Vehicle and motor properties take their dataclass defaults (noise-free,
        drag-free); set the real values through the setters before stepping.
        """
        if num_copter < 1:
            raise ValueError(f"Motor count must be positive, got {num_copter}")

        motors = [MotorConfig() for _ in range(num_copter)]
        return cls(vehicle=VehicleConfig(), motors=motors, config=config, imu=imu)

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    @property
    def num_copter(self) -> int:
        """Number of motors (fixed for the instance lifetime)."""
        return self._motor_model.num_motors

    @property
    def vehicle(self) -> VehicleConfig:
        """Current airframe properties."""
        return self._vehicle

    @property
    def motors(self) -> tuple[MotorConfig, ...]:
        """Current motor records in index order."""
        return self._motor_model.motors

    @property
    def time(self) -> float:
        """Simulated time accumulated over steps [s]."""
        return self._time

    def _set_vehicle(self, vehicle: VehicleConfig) -> None:
        self._vehicle = vehicle
        self._dynamics.vehicle = vehicle

    def set_vehicle_properties(
        self,
        mass: float,
        inertia: NDArray[np.float64],
        aero_moment_coefficient: NDArray[np.float64],
        drag_coefficient: float,
        moment_noise_power: float,
        force_noise_power: float,
    ) -> None:
        """Replace airframe properties (gravity is kept)."""
        self._set_vehicle(replace(
            self._vehicle,
            mass=mass,
            inertia=inertia,
            aero_moment_coefficient=aero_moment_coefficient,
            drag_coefficient=drag_coefficient,
            moment_noise_power=moment_noise_power,
            force_noise_power=force_noise_power,
        ))
        logger.debug("Vehicle properties updated: mass %.3f kg", mass)

    def set_gravity(self, gravity: NDArray[np.float64]) -> None:
        """Replace the gravity vector (world frame) [m/s^2]."""
        self._set_vehicle(replace(self._vehicle, gravity=gravity))
        logger.debug("Gravity set to %s", gravity)

    def set_motor_frame(
        self,
        rotation: NDArray[np.float64],
        position: NDArray[np.float64],
        direction: int,
        index: int,
    ) -> None:
        """Set the pose and spin direction of one motor.

        Args:
            rotation: 3x3 rotation from motor frame to body frame
            position: Motor origin in body frame [m]
            direction: Reaction torque sign (+1 or -1)
            index: Motor index
        """
        self._motor_model.update_motor(
            index, rotation=rotation, position=position, direction=direction,
        )
        logger.debug("Motor %d frame set at %s, direction %+d", index, position, direction)

    def set_motor_properties(
        self,
        thrust_coefficient: float,
        torque_coefficient: float,
        time_constant: float,
        min_speed: float,
        max_speed: float,
        index: int | None = None,
    ) -> None:
        """Set rotor constants of one motor, or of all motors if index is None.

        Current motor speeds are re-clamped into the new bounds.
        """
        changes = dict(
            thrust_coefficient=thrust_coefficient,
            torque_coefficient=torque_coefficient,
            time_constant=time_constant,
            min_speed=min_speed,
            max_speed=max_speed,
        )
        if index is None:
            self._motor_model.update_all(**changes)
        else:
            self._motor_model.update_motor(index, **changes)

        self._state.motor_speeds = self._motor_model.saturate(self._state.motor_speeds)
        logger.debug(
            "Motor properties set for %s",
            "all motors" if index is None else f"motor {index}",
        )

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    def _check_vector(self, value: NDArray[np.float64], size: int, name: str) -> None:
        if value.shape != (size,):
            raise ValueError(f"{name} must be shape ({size},), got {value.shape}")
        if not np.all(np.isfinite(value)):
            raise ValueError(f"{name} must be finite")

    def _check_attitude(self, attitude: NDArray[np.float64]) -> None:
        self._check_vector(attitude, 4, "Attitude")
        norm = float(np.linalg.norm(attitude))
        if abs(norm - 1.0) > ATTITUDE_NORM_TOLERANCE:
            raise ValueError(f"Attitude must be a unit quaternion, got norm {norm}")

    def set_motor_speed(self, speed: float, index: int | None = None) -> None:
        """Set one motor speed, or all of them if index is None.

        Speeds outside a motor's bounds are clamped; NaN is rejected.
        """
        if np.isnan(speed):
            raise ValueError("Motor speed must not be NaN")
        speeds = self._state.motor_speeds.copy()
        if index is None:
            speeds[:] = speed
        else:
            self._motor_model.check_index(index)
            speeds[index] = speed
        self._state.motor_speeds = self._motor_model.saturate(speeds)

    def reset_motor_speeds(self) -> None:
        """Set every motor to its own configured minimum speed."""
        self._state.motor_speeds = self._motor_model.minimum_speeds()
        logger.debug("Motor speeds reset to minimum")

    def set_pose(self, position: NDArray[np.float64], attitude: NDArray[np.float64]) -> None:
        """Set position and attitude; velocities and motor speeds are kept."""
        self._check_vector(position, 3, "Position")
        self._check_attitude(attitude)
        self._state.position = position.copy()
        self._state.attitude = attitude.copy()

    def set_state(
        self,
        position: NDArray[np.float64],
        velocity: NDArray[np.float64],
        angular_velocity: NDArray[np.float64],
        attitude: NDArray[np.float64],
        motor_speeds: NDArray[np.float64],
    ) -> None:
        """Overwrite the full vehicle state.

        Values are stored exactly as given.
        """
        self._check_vector(position, 3, "Position")
        self._check_vector(velocity, 3, "Velocity")
        self._check_vector(angular_velocity, 3, "Angular velocity")
        self._check_attitude(attitude)
        self._check_vector(motor_speeds, self.num_copter, "Motor speeds")

        self._state = VehicleState(
            position=position.copy(),
            velocity=velocity.copy(),
            angular_velocity=angular_velocity.copy(),
            attitude=attitude.copy(),
            motor_speeds=motor_speeds.copy(),
        )

    def get_state(self) -> VehicleState:
        """Get current truth state.

        Returns a copy to prevent external modification.
        """
        return self._state.copy()

    def get_position(self) -> NDArray[np.float64]:
        """Position in world frame [m]."""
        return self._state.position.copy()

    def get_attitude(self) -> NDArray[np.float64]:
        """Body-to-world attitude quaternion [q0, q1, q2, q3]."""
        return self._state.attitude.copy()

    def get_velocity(self) -> NDArray[np.float64]:
        """Velocity in world frame [m/s]."""
        return self._state.velocity.copy()

    def get_angular_velocity(self) -> NDArray[np.float64]:
        """Angular velocity in body frame [rad/s]."""
        return self._state.angular_velocity.copy()

    def get_motor_speeds(self) -> NDArray[np.float64]:
        """Speed of each motor [rad/s]."""
        return self._state.motor_speeds.copy()

    # -------------------------------------------------------------------------
    # Propagation
    # -------------------------------------------------------------------------

    def step(
        self,
        dt: float,
        motor_speed_command: NDArray[np.float64],
        method: IntegrationMethod | None = None,
    ) -> VehicleState:
        """Propagate physics by one time step.

        Args:
            dt: Time step [s]
            motor_speed_command: Commanded speed of each motor [rad/s]
            method: Integration scheme (config default if omitted)

        Returns:
            New state after integration
        """
        if not (np.isfinite(dt) and dt > 0):
            raise ValueError(f"Time step must be positive and finite, got {dt}")
        self._motor_model.check_length(motor_speed_command, "motor speed commands")
        if np.any(np.isnan(motor_speed_command)):
            raise ValueError("Motor speed commands must not be NaN")

        noise = self._noise.sample(
            dt, self._vehicle.force_noise_power, self._vehicle.moment_noise_power,
        )
        command = motor_speed_command.copy()

        def derivatives_fn(state: VehicleState) -> StateDerivative:
            return self._dynamics.derivatives(state, command, noise)

        self._state = integrate(
            method if method is not None else self.config.method,
            self._state,
            dt,
            derivatives_fn,
            self._motor_model,
        )
        self._noise_sample = noise
        self._time += dt

        if self.config.record_history:
            self._history.append((self._time, self._state.copy()))

        return self.get_state()

    def step_euler(self, dt: float, motor_speed_command: NDArray[np.float64]) -> VehicleState:
        """Propagate one explicit Euler step."""
        return self.step(dt, motor_speed_command, IntegrationMethod.EXPLICIT_EULER)

    def step_rk4(self, dt: float, motor_speed_command: NDArray[np.float64]) -> VehicleState:
        """Propagate one fourth-order Runge-Kutta step."""
        return self.step(dt, motor_speed_command, IntegrationMethod.RK4)

    def get_history(self) -> list[tuple[float, VehicleState]]:
        """Get recorded (time, state) pairs."""
        return [(t, s.copy()) for t, s in self._history]

    def clear_history(self) -> None:
        """Restart the record from the current state, or empty it when not recording."""
        if self.config.record_history:
            self._history = [(self._time, self._state.copy())]
        else:
            self._history = []

    # -------------------------------------------------------------------------
    # Sensing
    # -------------------------------------------------------------------------

    @property
    def noise_sample(self) -> ProcessNoiseSample:
        """Disturbance realization of the most recent step."""
        return ProcessNoiseSample(
            force=self._noise_sample.force.copy(),
            moment=self._noise_sample.moment.copy(),
        )

    def get_specific_force(self) -> NDArray[np.float64]:
        """Body-frame specific force at the current state [m/s^2].

        Uses the disturbance force retained from the most recent step.
        """
        return self._dynamics.specific_force(self._state, self._noise_sample.force)

    def get_imu_measurement(self) -> ImuMeasurement:
        """Accelerometer and gyroscope reading for the most recent step."""
        return self.imu.measure(self.get_specific_force(), self._state.angular_velocity.copy())
