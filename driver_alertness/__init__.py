"""
Driver Alertness Classification Engine

Real-time driver state classification (attentive, drowsy, distracted,
talking, yawning, no driver) from per-frame face detector measurements.
"""

__version__ = "1.0.0"
__author__ = "Driver Alertness Team"
__description__ = "Debounced driver alertness classification from face detector output"

from .core.engine import DriverStateEngine
from .core.observation import DriverState, FaceObservation, Point2D, DetectorOptions
