"""Recorded trajectories from a simulator run.

Example:
    >>> sim = MulticopterSimulator(vehicle, motors, SimConfig(record_history=True))
    >>> for _ in range(1000):
    ...     sim.step_rk4(0.002, command)
    >>> result = SimulationResult.from_simulator(sim)
    >>> df = result.to_dataframe()
"""

from dataclasses import dataclass

import numpy as np
from beartype import beartype
from numpy.typing import NDArray

from multicopter.dynamics.state import VehicleState
from multicopter.simulation.simulator import MulticopterSimulator


@beartype
@dataclass
class SimulationResult:
    """Time history of vehicle states.

    Provides convenient access to trajectory data and analysis.
    """
    times: list[float]
    states: list[VehicleState]

    def __post_init__(self) -> None:
        if len(self.times) != len(self.states):
            raise ValueError(
                f"Got {len(self.times)} times for {len(self.states)} states"
            )

    @classmethod
    def from_simulator(cls, sim: MulticopterSimulator) -> "SimulationResult":
        """Create result from simulator history."""
        history = sim.get_history()
        return cls(times=[t for t, _ in history], states=[s for _, s in history])

    def __len__(self) -> int:
        return len(self.states)

    @property
    def time(self) -> NDArray[np.float64]:
        """Time array [s]."""
        return np.array(self.times, dtype=np.float64)

    @property
    def position(self) -> NDArray[np.float64]:
        """Position history [m], shape (N, 3)."""
        return np.array([s.position for s in self.states])

    @property
    def velocity(self) -> NDArray[np.float64]:
        """Velocity history [m/s], shape (N, 3)."""
        return np.array([s.velocity for s in self.states])

    @property
    def attitude(self) -> NDArray[np.float64]:
        """Quaternion history, shape (N, 4)."""
        return np.array([s.attitude for s in self.states])

    @property
    def angular_velocity(self) -> NDArray[np.float64]:
        """Body rate history [rad/s], shape (N, 3)."""
        return np.array([s.angular_velocity for s in self.states])

    @property
    def motor_speeds(self) -> NDArray[np.float64]:
        """Motor speed history [rad/s], shape (N, num_motors)."""
        return np.array([s.motor_speeds for s in self.states])

    @property
    def euler_angles(self) -> NDArray[np.float64]:
        """Roll, pitch, yaw history [rad], shape (N, 3)."""
        return np.array([s.euler_angles for s in self.states])

    def to_dataframe(self):
        """Convert to Polars DataFrame."""
        import polars as pl

        if not self.states:
            raise ValueError("No states recorded")

        position = self.position
        velocity = self.velocity
        euler = self.euler_angles
        rates = self.angular_velocity
        columns = {
            "time": self.time,
            "x": position[:, 0],
            "y": position[:, 1],
            "z": position[:, 2],
            "vx": velocity[:, 0],
            "vy": velocity[:, 1],
            "vz": velocity[:, 2],
            "roll": euler[:, 0],
            "pitch": euler[:, 1],
            "yaw": euler[:, 2],
            "p": rates[:, 0],
            "q": rates[:, 1],
            "r": rates[:, 2],
        }
        speeds = self.motor_speeds
        for i in range(speeds.shape[1]):
            columns[f"motor_{i}"] = speeds[:, i]

        return pl.DataFrame(columns)
