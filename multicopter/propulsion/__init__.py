"""Propulsion module for rotor modeling.

Maps rotor speeds to body-frame thrust and moments and provides the
first-order rotor speed dynamics.

Example:
    >>> from multicopter.propulsion import MotorModel
    >>>
    >>> model = MotorModel(quad_x_motors())
    >>> thrust, moment = model.forces_and_moments(np.full(4, 1100.0))
"""

from multicopter.propulsion.motor_model import (
    MotorConfig,
    MotorModel,
)

__all__ = [
    "MotorConfig",
    "MotorModel",
]
