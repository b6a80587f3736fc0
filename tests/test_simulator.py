"""Unit tests for the step-driven MulticopterSimulator.

Tests the simulation infrastructure for accuracy and physical correctness.
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from multicopter.dynamics import IntegrationMethod, euler_to_quaternion
from multicopter.environment import G0, ProcessNoise, WorldFrame, gravity_vector
from multicopter.sensors import IdealInertialSensor, ImuMeasurement
from multicopter.simulation import MulticopterSimulator, SimConfig, SimulationResult
from multicopter.vehicle import VehicleConfig, hover_motor_speed, quad_x_motors

METHODS = (IntegrationMethod.EXPLICIT_EULER, IntegrationMethod.RK4)


def make_sim(seed: int | None = 0, **vehicle_kwargs) -> MulticopterSimulator:
    vehicle = VehicleConfig(**vehicle_kwargs)
    return MulticopterSimulator(vehicle, quad_x_motors(), SimConfig(seed=seed))


def noisy_sim(seed: int = 0) -> MulticopterSimulator:
    return MulticopterSimulator(VehicleConfig.default(), quad_x_motors(), SimConfig(seed=seed))


# =============================================================================
# Simulator Initialization Tests
# =============================================================================


class TestSimulatorInit:
    """Test simulator construction."""

    def test_starts_at_rest(self):
        """New simulator is at the origin, level, with motors at minimum."""
        sim = MulticopterSimulator(VehicleConfig(), quad_x_motors(min_speed=100.0))

        assert_allclose(sim.get_position(), np.zeros(3))
        assert_allclose(sim.get_velocity(), np.zeros(3))
        assert_allclose(sim.get_angular_velocity(), np.zeros(3))
        assert_allclose(sim.get_attitude(), [1.0, 0.0, 0.0, 0.0])
        assert_allclose(sim.get_motor_speeds(), np.full(4, 100.0))
        assert sim.num_copter == 4
        assert sim.time == 0.0

    def test_from_parameters(self):
        """Full parameter set builds a uniform rotor set."""
        sim = MulticopterSimulator.from_parameters(
            num_copter=6,
            thrust_coefficient=2.0e-6,
            torque_coefficient=3.0e-7,
            min_motor_speed=50.0,
            max_motor_speed=1800.0,
            motor_time_constant=0.03,
            mass=1.5,
            inertia=np.diag([0.01, 0.01, 0.02]),
            aero_moment_coefficient=np.zeros((3, 3)),
            drag_coefficient=0.05,
            moment_noise_power=0.0,
            force_noise_power=0.0,
            gravity=gravity_vector(WorldFrame.NED),
        )

        assert sim.num_copter == 6
        assert sim.vehicle.mass == 1.5
        assert all(m.thrust_coefficient == 2.0e-6 for m in sim.motors)
        assert all(m.max_speed == 1800.0 for m in sim.motors)
        assert_allclose(sim.get_motor_speeds(), np.full(6, 50.0))

    def test_with_motor_count(self):
        """Placeholder construction only fixes the rotor count."""
        sim = MulticopterSimulator.with_motor_count(8)
        assert sim.num_copter == 8
        assert sim.get_motor_speeds().shape == (8,)

    def test_zero_motors_rejected(self):
        """A simulator needs at least one motor."""
        with pytest.raises(ValueError):
            MulticopterSimulator.with_motor_count(0)
        with pytest.raises(ValueError):
            MulticopterSimulator(VehicleConfig(), [])


# =============================================================================
# Free Fall and Hover Tests
# =============================================================================


class TestFreeFall:
    """Test gravity-only propagation."""

    def test_free_fall_velocity(self):
        """Velocity grows as g * t under both schemes."""
        dt = 0.01
        n_steps = 100

        for method in METHODS:
            sim = make_sim()
            for _ in range(n_steps):
                sim.step(dt, np.zeros(4), method)

            assert_allclose(sim.get_velocity(), [0.0, 0.0, G0 * n_steps * dt], atol=1e-10)
            assert_allclose(sim.time, n_steps * dt)

    def test_free_fall_position_rk4(self):
        """RK4 reproduces 0.5 * g * t^2 exactly for constant gravity."""
        sim = make_sim()
        for _ in range(100):
            sim.step_rk4(0.01, np.zeros(4))

        assert_allclose(sim.get_position(), [0.0, 0.0, 0.5 * G0 * 1.0**2], atol=1e-9)

    def test_free_fall_position_euler(self):
        """Explicit Euler lags the exact position by one step of velocity."""
        dt = 0.01
        n_steps = 100
        sim = make_sim()
        for _ in range(n_steps):
            sim.step_euler(dt, np.zeros(4))

        expected = G0 * dt**2 * n_steps * (n_steps - 1) / 2
        assert_allclose(sim.get_position(), [0.0, 0.0, expected], atol=1e-9)

    def test_gravity_override(self):
        """ENU gravity accelerates the vehicle toward -Z."""
        sim = make_sim()
        sim.set_gravity(gravity_vector(WorldFrame.ENU))

        sim.step_rk4(0.1, np.zeros(4))

        assert_allclose(sim.get_velocity(), [0.0, 0.0, -G0 * 0.1], atol=1e-12)


class TestHover:
    """Test trimmed hover."""

    def test_hover_holds_position(self):
        """Hover speed keeps the vehicle in place."""
        sim = make_sim(mass=1.2)
        speed = hover_motor_speed(sim.vehicle, sim.motors)
        sim.set_motor_speed(speed)
        command = np.full(4, speed)

        for _ in range(500):
            sim.step_rk4(0.002, command)

        assert_allclose(sim.get_position(), np.zeros(3), atol=1e-9)
        assert_allclose(sim.get_angular_velocity(), np.zeros(3), atol=1e-12)
        assert_allclose(sim.get_attitude(), [1.0, 0.0, 0.0, 0.0], atol=1e-12)


# =============================================================================
# Attitude and Motor Tests
# =============================================================================


class TestAttitudePropagation:
    """Test quaternion propagation."""

    def test_unit_norm_under_noise(self):
        """Attitude stays unit-norm through noisy random flight."""
        rng = np.random.default_rng(3)

        for method in METHODS:
            sim = noisy_sim(seed=11)
            for _ in range(300):
                command = rng.uniform(0.0, 2200.0, size=4)
                sim.step(0.002, command, method)
                assert abs(np.linalg.norm(sim.get_attitude()) - 1.0) < 1e-9

    def test_constant_yaw_rate(self):
        """Spinning at 1 rad/s about body Z for 1 s yaws by 1 rad."""
        dt = 0.001
        expected = np.array([np.cos(0.5), 0.0, 0.0, np.sin(0.5)])

        for method, atol in ((IntegrationMethod.RK4, 1e-8), (IntegrationMethod.EXPLICIT_EULER, 1e-6)):
            sim = make_sim(gravity=np.zeros(3))
            sim.set_state(
                position=np.zeros(3),
                velocity=np.zeros(3),
                angular_velocity=np.array([0.0, 0.0, 1.0]),
                attitude=np.array([1.0, 0.0, 0.0, 0.0]),
                motor_speeds=np.zeros(4),
            )
            for _ in range(1000):
                sim.step(dt, np.zeros(4), method)

            assert_allclose(sim.get_attitude(), expected, atol=atol)


class TestMotorSpeeds:
    """Test rotor speed propagation and bounds."""

    def test_spin_up_time_constant(self):
        """After one time constant a rotor reaches 1 - 1/e of the step."""
        sim = make_sim()
        for _ in range(20):  # 0.02 s time constant
            sim.step_rk4(0.001, np.full(4, 1000.0))

        assert_allclose(sim.get_motor_speeds(), 1000.0 * (1 - np.exp(-1.0)), rtol=1e-6)

    def test_bounds_hold_for_any_command(self):
        """Out-of-range commands never push speeds past the bounds."""
        rng = np.random.default_rng(8)

        for method in METHODS:
            sim = MulticopterSimulator(
                VehicleConfig(), quad_x_motors(min_speed=100.0, max_speed=2000.0),
            )
            for _ in range(200):
                sim.step(0.01, rng.uniform(-1000.0, 5000.0, size=4), method)
                speeds = sim.get_motor_speeds()
                assert np.all(speeds >= 100.0)
                assert np.all(speeds <= 2000.0)

    def test_set_motor_speed_clamps(self):
        """Directly set speeds are clamped into the bounds."""
        sim = make_sim()
        sim.set_motor_speed(5000.0)
        assert_allclose(sim.get_motor_speeds(), np.full(4, 2200.0))

        sim.set_motor_speed(-5.0, 1)
        assert_allclose(sim.get_motor_speeds(), [2200.0, 0.0, 2200.0, 2200.0])

        with pytest.raises(IndexError):
            sim.set_motor_speed(100.0, 4)

    def test_reset_uses_each_minimum(self):
        """Reset sends each motor to its own minimum speed."""
        sim = make_sim()
        for i in range(4):
            sim.set_motor_properties(1.91e-6, 2.6e-7, 0.02, 50.0 * i, 2200.0, index=i)
        sim.set_motor_speed(1500.0)

        sim.reset_motor_speeds()

        assert_allclose(sim.get_motor_speeds(), [0.0, 50.0, 100.0, 150.0])

    def test_properties_reclamp_current_speeds(self):
        """Lowering the maximum clamps speeds already above it."""
        sim = make_sim()
        sim.set_motor_speed(2000.0)
        sim.set_motor_properties(1.91e-6, 2.6e-7, 0.02, 0.0, 1000.0)
        assert_allclose(sim.get_motor_speeds(), np.full(4, 1000.0))

    def test_motor_frame_changes_moment(self):
        """Moving one motor off-center yields a pitching moment."""
        sim = MulticopterSimulator.with_motor_count(1)
        sim.set_gravity(np.zeros(3))
        sim.set_motor_frame(np.eye(3), np.array([0.1, 0.0, 0.0]), -1, 0)
        sim.set_motor_speed(1000.0)

        sim.step_euler(0.001, np.array([1000.0]))

        # Thrust along body +Z at +X arm: r x F points along -Y
        assert sim.get_angular_velocity()[1] < 0.0


# =============================================================================
# State Access Tests
# =============================================================================


class TestStateAccess:
    """Test setters and getters."""

    def test_getters_return_copies(self):
        """Mutating returned arrays does not touch the simulator."""
        sim = make_sim()

        sim.get_position()[0] = 99.0
        sim.get_attitude()[0] = 0.0
        sim.get_motor_speeds()[0] = 1.0
        state = sim.get_state()
        state.velocity[2] = 5.0

        assert sim.get_position()[0] == 0.0
        assert sim.get_attitude()[0] == 1.0
        assert sim.get_motor_speeds()[0] == 0.0
        assert sim.get_velocity()[2] == 0.0

    def test_set_state_roundtrip(self):
        """State written through the setter reads back exactly."""
        sim = make_sim()
        position = np.array([1.0, -2.0, -10.0])
        velocity = np.array([0.3, 0.1, -0.2])
        angular_velocity = np.array([0.05, -0.02, 0.4])
        attitude = euler_to_quaternion(0.1, 0.05, 1.2)
        motor_speeds = np.array([900.0, 950.0, 1000.0, 1050.0])

        sim.set_state(position, velocity, angular_velocity, attitude, motor_speeds)

        assert np.array_equal(sim.get_position(), position)
        assert np.array_equal(sim.get_velocity(), velocity)
        assert np.array_equal(sim.get_angular_velocity(), angular_velocity)
        assert np.array_equal(sim.get_attitude(), attitude)
        assert np.array_equal(sim.get_motor_speeds(), motor_speeds)

    def test_set_pose_keeps_rates(self):
        """Pose update leaves velocities and motor speeds alone."""
        sim = make_sim()
        sim.set_motor_speed(700.0)
        attitude = euler_to_quaternion(0.0, 0.0, 0.5)

        sim.set_pose(np.array([5.0, 0.0, -1.0]), attitude)

        assert np.array_equal(sim.get_attitude(), attitude)
        assert_allclose(sim.get_position(), [5.0, 0.0, -1.0])
        assert_allclose(sim.get_motor_speeds(), np.full(4, 700.0))

    def test_non_unit_attitude_rejected(self):
        """Attitudes off the unit sphere are refused."""
        sim = make_sim()
        with pytest.raises(ValueError, match="unit quaternion"):
            sim.set_pose(np.zeros(3), np.array([2.0, 0.0, 0.0, 0.0]))
        assert_allclose(sim.get_attitude(), [1.0, 0.0, 0.0, 0.0])

    def test_malformed_state_rejected(self):
        """Wrong shapes and non-finite values are refused."""
        sim = make_sim()
        with pytest.raises(ValueError):
            sim.set_state(
                np.zeros(3), np.zeros(3), np.zeros(3),
                np.array([1.0, 0.0, 0.0, 0.0]), np.zeros(3),
            )
        with pytest.raises(ValueError):
            sim.set_pose(np.array([np.nan, 0.0, 0.0]), np.array([1.0, 0.0, 0.0, 0.0]))

    def test_invalid_properties_keep_config(self):
        """Rejected configuration changes leave the previous values."""
        sim = make_sim(mass=1.3)

        with pytest.raises(ValueError):
            sim.set_vehicle_properties(-1.0, np.eye(3), np.zeros((3, 3)), 0.0, 0.0, 0.0)
        with pytest.raises(ValueError):
            sim.set_motor_properties(1.91e-6, 2.6e-7, 0.02, 3000.0, 2000.0)
        with pytest.raises(IndexError):
            sim.set_motor_frame(np.eye(3), np.zeros(3), 1, 7)

        assert sim.vehicle.mass == 1.3
        assert all(m.min_speed == 0.0 and m.max_speed == 2200.0 for m in sim.motors)

    def test_vehicle_properties_update(self):
        """Airframe properties are replaced and gravity kept."""
        sim = make_sim()
        sim.set_vehicle_properties(2.0, np.diag([0.02, 0.02, 0.04]), np.zeros((3, 3)), 0.2, 0.0, 0.0)

        assert sim.vehicle.mass == 2.0
        assert sim.vehicle.drag_coefficient == 0.2
        assert_allclose(sim.vehicle.gravity, [0.0, 0.0, G0])


# =============================================================================
# Step Validation Tests
# =============================================================================


class TestStepValidation:
    """Test that rejected steps have no side effects."""

    def test_rejected_steps_leave_state(self):
        """Bad time steps and commands change neither state nor noise stream."""
        sim = noisy_sim(seed=21)
        reference = noisy_sim(seed=21)
        before = sim.get_state().to_array()

        for dt in (0.0, -1.0, float("nan"), float("inf")):
            with pytest.raises(ValueError):
                sim.step_rk4(dt, np.full(4, 1000.0))
        with pytest.raises(ValueError):
            sim.step_rk4(0.01, np.full(3, 1000.0))

        assert np.array_equal(sim.get_state().to_array(), before)
        assert sim.time == 0.0

        sim.step_rk4(0.01, np.full(4, 1000.0))
        reference.step_rk4(0.01, np.full(4, 1000.0))
        assert np.array_equal(sim.get_state().to_array(), reference.get_state().to_array())

    def test_nan_command_rejected(self):
        """A NaN command entry is refused before the noise draw."""
        sim = noisy_sim(seed=21)
        reference = noisy_sim(seed=21)
        before = sim.get_state().to_array()

        for method in METHODS:
            with pytest.raises(ValueError, match="NaN"):
                sim.step(0.01, np.array([np.nan, 1000.0, 1000.0, 1000.0]), method)

        assert np.array_equal(sim.get_state().to_array(), before)
        assert sim.time == 0.0

        sim.step_rk4(0.01, np.full(4, 1000.0))
        reference.step_rk4(0.01, np.full(4, 1000.0))
        assert np.array_equal(sim.get_state().to_array(), reference.get_state().to_array())

    def test_infinite_command_saturates(self):
        """Infinite commands are pursued only up to the speed bounds."""
        sim = make_sim()
        sim.step_rk4(0.01, np.array([np.inf, -np.inf, 1000.0, 1000.0]))

        speeds = sim.get_motor_speeds()
        assert np.all(np.isfinite(sim.get_state().to_array()))
        assert np.all(speeds >= 0.0)
        assert np.all(speeds <= 2200.0)

    def test_nan_motor_speed_setters_rejected(self):
        """Setters refuse NaN motor speeds and keep the previous ones."""
        sim = make_sim()
        sim.set_motor_speed(800.0)

        with pytest.raises(ValueError):
            sim.set_motor_speed(float("nan"))
        with pytest.raises(ValueError):
            sim.set_motor_speed(float("nan"), 2)
        with pytest.raises(ValueError):
            sim.set_state(
                np.zeros(3), np.zeros(3), np.zeros(3),
                np.array([1.0, 0.0, 0.0, 0.0]),
                np.array([800.0, np.nan, 800.0, 800.0]),
            )

        assert_allclose(sim.get_motor_speeds(), np.full(4, 800.0))


class TestNoiseSampling:
    """Test that each step holds a single disturbance realization."""

    def test_rk4_holds_one_sample_across_stages(self):
        """Constant disturbance over all four stages gives v = dt * F / m."""
        dt = 0.01
        sim = make_sim(seed=31, mass=2.0, force_noise_power=1.0e-3, gravity=np.zeros(3))

        sim.step_rk4(dt, np.zeros(4))

        force = sim.noise_sample.force
        assert np.any(force != 0.0)
        assert_allclose(sim.get_velocity(), dt * force / 2.0, rtol=0.0, atol=1e-14)

    def test_one_draw_per_step(self):
        """The stream advances by exactly one sample per step."""
        dt = 0.01
        sim = make_sim(seed=31, mass=2.0, force_noise_power=1.0e-3, gravity=np.zeros(3))
        reference = ProcessNoise(seed=31)

        for method in METHODS:
            sim.step(dt, np.zeros(4), method)
            expected = reference.sample(dt, 1.0e-3, 0.0)
            assert np.array_equal(sim.noise_sample.force, expected.force)
            assert np.array_equal(sim.noise_sample.moment, expected.moment)


# =============================================================================
# Determinism Tests
# =============================================================================


class TestDeterminism:
    """Test seeded reproducibility and instance isolation."""

    def test_same_seed_same_trajectory(self):
        """Equal seeds and inputs give identical trajectories."""
        a = noisy_sim(seed=5)
        b = noisy_sim(seed=5)
        command = np.full(4, 1200.0)

        for _ in range(50):
            a.step_rk4(0.002, command)
            b.step_rk4(0.002, command)

        assert np.array_equal(a.get_state().to_array(), b.get_state().to_array())

    def test_different_seeds_diverge(self):
        """Distinct seeds give distinct disturbance realizations."""
        a = noisy_sim(seed=5)
        b = noisy_sim(seed=6)
        a.step_rk4(0.002, np.full(4, 1200.0))
        b.step_rk4(0.002, np.full(4, 1200.0))

        assert not np.array_equal(a.get_velocity(), b.get_velocity())

    def test_instances_are_independent(self):
        """Stepping one simulator does not disturb another."""
        a = noisy_sim(seed=5)
        b = noisy_sim(seed=5)
        command = np.full(4, 1200.0)

        for _ in range(10):
            a.step_euler(0.002, command)
        for _ in range(10):
            b.step_euler(0.002, command)

        assert np.array_equal(a.get_state().to_array(), b.get_state().to_array())


# =============================================================================
# IMU Tests
# =============================================================================


class TestImu:
    """Test the inertial measurement hand-off."""

    def test_default_sensor_is_ideal(self):
        """Without an explicit sensor the reading is the truth."""
        sim = make_sim()
        assert isinstance(sim.imu, IdealInertialSensor)

    def test_reading_at_rest_before_stepping(self):
        """Stopped rotors and no disturbance sense nothing."""
        reading = make_sim().get_imu_measurement()
        assert isinstance(reading, ImuMeasurement)
        assert_allclose(reading.accelerometer, np.zeros(3))
        assert_allclose(reading.gyroscope, np.zeros(3))

    def test_accelerometer_uses_step_disturbance(self):
        """The reading reflects the disturbance drawn for the last step."""
        sim = make_sim(seed=17, mass=2.0, force_noise_power=1.0e-3)
        sim.step_rk4(0.01, np.zeros(4))

        reading = sim.get_imu_measurement()
        noise = sim.noise_sample

        assert np.any(noise.force != 0.0)
        assert_allclose(reading.accelerometer, noise.force / 2.0, atol=1e-12)
        assert_allclose(reading.gyroscope, sim.get_angular_velocity())

    def test_hover_senses_gravity_reaction(self):
        """At hover the accelerometer reads the thrust, -g along body Z."""
        sim = make_sim()
        speed = hover_motor_speed(sim.vehicle, sim.motors)
        sim.set_motor_speed(speed)
        sim.step_rk4(0.002, np.full(4, speed))

        reading = sim.get_imu_measurement()
        assert_allclose(reading.accelerometer, [0.0, 0.0, -G0], atol=1e-9)

    def test_custom_sensor(self):
        """Any object with a matching measure method can be plugged in."""

        class BiasedSensor:
            def measure(self, specific_force, angular_velocity):
                return ImuMeasurement(specific_force + 0.1, angular_velocity - 0.01)

        sim = MulticopterSimulator(VehicleConfig(), quad_x_motors(), imu=BiasedSensor())
        reading = sim.get_imu_measurement()

        assert_allclose(reading.accelerometer, np.full(3, 0.1))
        assert_allclose(reading.gyroscope, np.full(3, -0.01))


# =============================================================================
# History Tests
# =============================================================================


class TestHistory:
    """Test trajectory recording and export."""

    @pytest.fixture
    def recorded_sim(self):
        """Simulator that has recorded ten free-fall steps."""
        sim = MulticopterSimulator(
            VehicleConfig(), quad_x_motors(), SimConfig(seed=1, record_history=True),
        )
        for _ in range(10):
            sim.step_rk4(0.01, np.zeros(4))
        return sim

    def test_history_off_by_default(self):
        """Nothing is recorded unless requested."""
        sim = make_sim()
        sim.step_rk4(0.01, np.zeros(4))
        assert sim.get_history() == []

    def test_history_records_every_step(self, recorded_sim):
        """Initial state plus one entry per step."""
        history = recorded_sim.get_history()

        assert len(history) == 11
        assert history[0][0] == 0.0
        assert_allclose(history[-1][0], 0.1)
        assert np.array_equal(history[-1][1].to_array(), recorded_sim.get_state().to_array())

    def test_clear_history(self, recorded_sim):
        """Clearing keeps only the current state."""
        recorded_sim.clear_history()
        history = recorded_sim.get_history()

        assert len(history) == 1
        assert_allclose(history[0][0], 0.1)

    def test_clear_history_when_not_recording(self):
        """Clearing an unrecorded simulator leaves the record empty."""
        sim = make_sim()
        sim.step_rk4(0.01, np.zeros(4))

        sim.clear_history()
        sim.step_rk4(0.01, np.zeros(4))

        assert sim.get_history() == []

    def test_result_arrays(self, recorded_sim):
        """Result exposes stacked arrays of each component."""
        result = SimulationResult.from_simulator(recorded_sim)

        assert len(result) == 11
        assert result.position.shape == (11, 3)
        assert result.attitude.shape == (11, 4)
        assert result.motor_speeds.shape == (11, 4)
        assert_allclose(result.velocity[:, 2], G0 * result.time, atol=1e-10)

    def test_to_dataframe(self, recorded_sim):
        """DataFrame export has one row per record and one column per motor."""
        df = SimulationResult.from_simulator(recorded_sim).to_dataframe()

        assert df.height == 11
        assert {"time", "x", "vz", "roll", "yaw", "motor_0", "motor_3"} <= set(df.columns)
        assert_allclose(df["z"].to_numpy(), 0.5 * G0 * df["time"].to_numpy() ** 2, atol=1e-9)

    def test_empty_result_rejected(self):
        """Exporting an empty record is an error."""
        result = SimulationResult.from_simulator(make_sim())
        with pytest.raises(ValueError):
            result.to_dataframe()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
