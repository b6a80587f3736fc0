"""Stochastic process disturbances for multicopter simulation.

Unmodeled aerodynamic effects (turbulence, blade flapping, ground effect) are
lumped into a random force and moment acting on the vehicle. Each is modeled
as continuous white noise with power spectral density ``S`` and discretized
with the Euler-Maruyama rule: over a step ``dt`` the equivalent constant
disturbance is Gaussian with standard deviation ``sqrt(S / dt)``.

The generator owns its random stream. Two generators built with the same seed
produce identical sequences; generators never share state.

Example:
    >>> from multicopter.environment import ProcessNoise
    >>>
    >>> noise = ProcessNoise(seed=42)
    >>> force, moment = noise.sample(dt=0.01, force_power=5e-4, moment_power=1.25e-7)
"""

from typing import NamedTuple

import numpy as np
from beartype import beartype
from numpy.typing import NDArray


class ProcessNoiseSample(NamedTuple):
    """Disturbance realization held constant over one step."""
    force: NDArray[np.float64]   # World frame [N]
    moment: NDArray[np.float64]  # Body frame [N*m]

    @classmethod
    def zero(cls) -> "ProcessNoiseSample":
        """Sample with no disturbance."""
        return cls(force=np.zeros(3), moment=np.zeros(3))


@beartype
class ProcessNoise:
    """Per-step Gaussian force/moment disturbance generator.

    Attributes:
        seed: Seed the stream was created with (None for OS entropy)
    """

    def __init__(self, seed: int | None = None) -> None:
        """Initialize the random stream.

        Args:
            seed: Seed for ``numpy.random.default_rng``
        """
        self.seed = seed
        self._rng = np.random.default_rng(seed)

    def reseed(self, seed: int | None = None) -> None:
        """Restart the stream from a new seed."""
        self.seed = seed
        self._rng = np.random.default_rng(seed)

    def sample(
        self,
        dt: float,
        force_power: float,
        moment_power: float,
    ) -> ProcessNoiseSample:
        """Draw the disturbance for one step.

        Three standard normals are drawn for the force, then three for the
        moment, even when a power is zero, so the stream position depends only
        on the number of steps taken.

        Args:
            dt: Step length [s]
            force_power: Force noise power spectral density [N^2*s]
            moment_power: Moment noise power spectral density [(N*m)^2*s]

        Returns:
            Force and moment held constant over the step
        """
        if not dt > 0:
            raise ValueError(f"Time step must be positive, got {dt}")
        if force_power < 0 or moment_power < 0:
            raise ValueError("Noise powers must be non-negative")

        force = self._rng.standard_normal(3) * np.sqrt(force_power / dt)
        moment = self._rng.standard_normal(3) * np.sqrt(moment_power / dt)

        return ProcessNoiseSample(force=force, moment=moment)
