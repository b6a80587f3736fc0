"""Sensor interfaces for multicopter simulation."""

from multicopter.sensors.imu import (
    IdealInertialSensor,
    ImuMeasurement,
    InertialSensor,
)

__all__ = [
    "IdealInertialSensor",
    "ImuMeasurement",
    "InertialSensor",
]
