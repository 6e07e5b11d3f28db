"""
Observation Data Model

Per-frame face observations delivered by the external face detector, the
driver state labels emitted by the engine and the detector options the host
forwards to the detector.
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Dict, Any, Mapping, Optional, Sequence, Tuple

from ..utils.logger import get_logger

logger = get_logger(__name__)

# Contour identifiers used by the mouth analysis
UPPER_LIP_BOTTOM = "UPPER_LIP_BOTTOM"
LOWER_LIP_TOP = "LOWER_LIP_TOP"


class DriverState(str, Enum):
    """Driver state emitted once per processed observation."""
    NO_DRIVER = "NoDriver"
    ATTENTIVE = "Attentive"
    DROWSY = "Drowsy"
    DISTRACTED = "Distracted"
    YAWNING = "Yawning"
    TALKING = "Talking"

    @property
    def status_text(self) -> str:
        """Human-readable status line for display."""
        return STATUS_TEXT[self]


STATUS_TEXT = {
    DriverState.NO_DRIVER: "No driver detected",
    DriverState.ATTENTIVE: "✅ Driver Attentive",
    DriverState.DROWSY: "⚠️ Drowsy Driver Detected!",
    DriverState.DISTRACTED: "⚠️ Distracted Driver!",
    DriverState.YAWNING: "⚠️ Driver Yawning!",
    DriverState.TALKING: "⚠️ Driver Talking!",
}

MONITORING_TEXT = "Monitoring..."


@dataclass(frozen=True)
class Point2D:
    """A contour point in image coordinates."""
    x: float
    y: float

    @classmethod
    def from_value(cls, value: Any) -> "Point2D":
        """Build a point from ``{"x": .., "y": ..}``, an ``(x, y)`` pair or a Point2D."""
        if isinstance(value, Point2D):
            return value
        if isinstance(value, Mapping):
            return cls(_to_float(value.get('x'), 'x', 0.0), _to_float(value.get('y'), 'y', 0.0))
        if isinstance(value, (list, tuple)) and len(value) == 2:
            return cls(_to_float(value[0], 'x', 0.0), _to_float(value[1], 'y', 0.0))
        raise ValueError(f"Invalid contour point: {value!r}")


@dataclass(frozen=True)
class FaceObservation:
    """
    Structured measurements for one detected face in one frame.

    Missing eye probabilities mean fully open eyes and missing angles mean a
    frontal head, so partial detector output never raises an alarm on its own.
    ``None`` is accepted for any field and replaced by its default.
    """
    left_eye_open: Optional[float] = 1.0
    right_eye_open: Optional[float] = 1.0
    yaw_angle: Optional[float] = 0.0
    pitch_angle: Optional[float] = 0.0
    contours: Optional[Mapping[str, Tuple[Point2D, ...]]] = field(default_factory=dict)

    # detector key -> field name
    _DETECTOR_KEYS = {
        'leftEyeOpenProbability': 'left_eye_open',
        'rightEyeOpenProbability': 'right_eye_open',
        'yawAngle': 'yaw_angle',
        'pitchAngle': 'pitch_angle',
    }

    # field name -> value used when the detector leaves it out
    _DEFAULTS = {
        'left_eye_open': 1.0,
        'right_eye_open': 1.0,
        'yaw_angle': 0.0,
        'pitch_angle': 0.0,
    }

    def __post_init__(self):
        for name, default in self._DEFAULTS.items():
            if getattr(self, name) is None:
                object.__setattr__(self, name, default)
        if self.contours is None:
            object.__setattr__(self, 'contours', {})

    def contour(self, name: str) -> Tuple[Point2D, ...]:
        """Return the named contour, empty when the detector did not supply it."""
        return self.contours.get(name, ())

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FaceObservation":
        """
        Build an observation from a detector face record.

        Accepts the detector's camelCase keys (``leftEyeOpenProbability``,
        ``yawAngle``, ...) as well as the field names. ``None`` values fall back
        to the defaults.

        Raises:
            ValueError: if a value cannot be read as a number or point list
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"Face record must be an object, got {type(data).__name__}")

        values: Dict[str, float] = {}
        for key, name in cls._DETECTOR_KEYS.items():
            raw = data.get(key, data.get(name))
            values[name] = _to_float(raw, key, cls._DEFAULTS[name])

        return cls(contours=parse_contours(data.get('contours')), **values)


def parse_contours(raw: Optional[Mapping[str, Any]]) -> Dict[str, Tuple[Point2D, ...]]:
    """Convert a mapping of contour name -> point list into Point2D tuples."""
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ValueError(f"Contours must be an object, got {type(raw).__name__}")

    contours = {}
    for name, points in raw.items():
        if points is None:
            continue
        if not isinstance(points, (list, tuple)):
            raise ValueError(f"Contour {name} must be a list of points")
        contours[str(name)] = tuple(Point2D.from_value(p) for p in points)
    return contours


def _to_float(value: Any, name: str, default: float) -> float:
    if value is None:
        return default
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be a number, got {value!r}") from None


@dataclass
class DetectorOptions:
    """Face detector options, passed through to the detector unmodified."""
    performance_mode: str = "accurate"
    landmark_mode: str = "all"
    contour_mode: str = "all"
    classification_mode: str = "all"

    _DETECTOR_KEYS = {
        'performanceMode': 'performance_mode',
        'landmarkMode': 'landmark_mode',
        'contourMode': 'contour_mode',
        'classificationMode': 'classification_mode',
    }

    @classmethod
    def from_dict(cls, options: Mapping[str, Any]) -> "DetectorOptions":
        """Build options from camelCase or snake_case keys; unknown keys are ignored."""
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in options.items():
            name = cls._DETECTOR_KEYS.get(key, key)
            if name in known:
                values[name] = value
            else:
                logger.warning(f"Ignoring unknown detector option: {key}")
        return cls(**values)

    def to_detector_dict(self) -> Dict[str, Any]:
        """Options keyed the way the detector expects them."""
        return {key: getattr(self, name) for key, name in self._DETECTOR_KEYS.items()}


def first_face(faces: Optional[Sequence[Any]]) -> Optional[Any]:
    """Return the first face of a detector callback payload, or None."""
    if not faces:
        return None
    return faces[0]


def as_observation(face: Any) -> Optional[FaceObservation]:
    """Accept a FaceObservation, a detector record or None."""
    if face is None or isinstance(face, FaceObservation):
        return face
    return FaceObservation.from_dict(face)

