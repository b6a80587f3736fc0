"""Environment models for multicopter simulation.

Provides the gravity convention and the stochastic process disturbances.

Example:
    >>> from multicopter.environment import ProcessNoise, gravity_vector
    >>>
    >>> g = gravity_vector()  # NED, m/s^2
    >>> noise = ProcessNoise(seed=1)
    >>> force, moment = noise.sample(0.01, 5e-4, 1.25e-7)
"""

from multicopter.environment.gravity import (
    G0,
    WorldFrame,
    gravity_vector,
)
from multicopter.environment.process_noise import (
    ProcessNoise,
    ProcessNoiseSample,
)

__all__ = [
    "G0",
    "WorldFrame",
    "gravity_vector",
    "ProcessNoise",
    "ProcessNoiseSample",
]
