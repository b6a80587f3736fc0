"""Simulation module for multicopter software-in-the-loop testing.

Provides the step-driven simulation interface where autopilot code controls
the loop and the simulator maintains truth state.

Example:
    >>> from multicopter.simulation import MulticopterSimulator, SimConfig
    >>>
    >>> sim = MulticopterSimulator.with_motor_count(4, SimConfig(seed=0))
    >>>
    >>> # Autopilot loop
    >>> while sim.time < 10.0:
    ...     command = autopilot.compute(sim.get_state(), sim.get_imu_measurement())
    ...     sim.step_rk4(0.002, command)
"""

from multicopter.simulation.results import SimulationResult
from multicopter.simulation.simulator import (
    MulticopterSimulator,
    SimConfig,
)

__all__ = [
    "MulticopterSimulator",
    "SimConfig",
    "SimulationResult",
]
