"""Vehicle modeling for multicopter simulation.

Provides airframe properties and standard rotor layouts.

Example:
    >>> from multicopter.vehicle import VehicleConfig, quad_x_motors
    >>>
    >>> vehicle = VehicleConfig.default()
    >>> motors = quad_x_motors(arm_length=0.08)
"""

from multicopter.vehicle.config import (
    VehicleConfig,
    hover_motor_speed,
    quad_x_motors,
)

__all__ = [
    "VehicleConfig",
    "hover_motor_speed",
    "quad_x_motors",
]
