"""
Driver State Engine

Combines the eye/head classifier and the mouth dynamics tracker into one
driver state per face observation, in fixed priority order:

    no face  -> NoDriver (and every counter and history window is cleared)
    eyes     -> Drowsy
    head     -> Distracted
    mouth    -> Yawning / Talking
    default  -> Attentive

The engine is driven synchronously by a single producer and is not safe for
concurrent use.
"""

import copy
import time
from collections import Counter, deque
from typing import Any, Dict, Mapping, Optional, Sequence, Union

from .observation import (
    DriverState, DetectorOptions, FaceObservation, MONITORING_TEXT,
    as_observation, first_face,
)
from .geometry import lip_open_ratio
from .eye_head import EyeHeadClassifier
from .mouth_dynamics import MouthDynamicsTracker
from ..utils.config import Config, config as default_config
from ..utils.logger import get_logger, log_function_call

logger = get_logger(__name__)


class DriverStateEngine:
    """Turns a stream of face observations into debounced driver states."""

    def __init__(self, engine_config: Optional[Config] = None):
        """
        Initialize the engine.

        Args:
            engine_config: Configuration to read thresholds and detector
                options from (a private copy of the global configuration
                when omitted)
        """
        self.config = engine_config if engine_config is not None else copy.deepcopy(default_config)
        self.eye_head = EyeHeadClassifier(self.config.eye_head)
        self.mouth = MouthDynamicsTracker(self.config.mouth)
        self.detector_options = DetectorOptions(**vars(self.config.detector))

        self.state: Optional[DriverState] = None
        self.last_lip_ratio = 0.0

        # Session metrics
        self.frames_processed = 0
        self.state_counts: Counter = Counter()
        self.processing_times: deque = deque(maxlen=100)

        logger.info("Driver state engine initialized")

    @log_function_call
    def configure(self, options: Union[DetectorOptions, Mapping[str, Any]]) -> DetectorOptions:
        """
        Store the face detector options.

        The options are only kept for the host to hand to the detector; they do
        not change classification.

        Args:
            options: DetectorOptions or a dict with camelCase or snake_case keys

        Returns:
            The stored options
        """
        if not isinstance(options, DetectorOptions):
            options = DetectorOptions.from_dict(options)
        self.detector_options = options
        logger.info(f"Detector options: {options.to_detector_dict()}")
        return options

    def process(self, observation: Optional[FaceObservation]) -> DriverState:
        """
        Classify one face observation.

        Args:
            observation: The face seen this cycle, or None when no face was found

        Returns:
            The driver state for this cycle
        """
        start_time = time.perf_counter()

        if observation is None:
            # Clear history so old states do not linger when a face comes back
            self.reset_trackers()
            state = DriverState.NO_DRIVER
        else:
            state = self._classify(observation)

        self.processing_times.append(time.perf_counter() - start_time)
        self.frames_processed += 1
        self.state_counts[state] += 1

        if state != self.state:
            logger.log_state_change(self.state.value if self.state else None,
                                    state.value, self.frames_processed)
        self.state = state
        return state

    def process_faces(self, faces: Optional[Sequence[Any]]) -> DriverState:
        """
        Classify a detector callback payload.

        Args:
            faces: Detected faces (FaceObservation or detector records); only
                the first face is used and an empty list means no driver

        Returns:
            The driver state for this cycle
        """
        return self.process(as_observation(first_face(faces)))

    def _classify(self, observation: FaceObservation) -> DriverState:
        verdict = self.eye_head.update(
            observation.left_eye_open,
            observation.right_eye_open,
            observation.yaw_angle,
            observation.pitch_angle,
        )
        if verdict is not None:
            return verdict

        self.last_lip_ratio = lip_open_ratio(observation.contours)
        verdict = self.mouth.update(self.last_lip_ratio)
        if verdict is not None:
            return verdict

        return DriverState.ATTENTIVE

    def reset_trackers(self) -> None:
        """Clear every debounce counter and history window."""
        self.eye_head.reset()
        self.mouth.reset()
        self.last_lip_ratio = 0.0

    def reset(self) -> None:
        """Reset trackers and session metrics."""
        self.reset_trackers()
        self.state = None
        self.frames_processed = 0
        self.state_counts.clear()
        self.processing_times.clear()
        logger.info("Driver state engine reset")

    @property
    def status_text(self) -> str:
        """Display text for the current state."""
        if self.state is None:
            return MONITORING_TEXT
        return self.state.status_text

    def get_session_summary(self) -> Dict[str, Any]:
        """Frame counts per state and processing latency."""
        times_ms = [t * 1000 for t in self.processing_times]
        return {
            'frames_processed': self.frames_processed,
            'state_counts': {s.value: self.state_counts.get(s, 0) for s in DriverState},
            'current_state': self.state.value if self.state else None,
            'avg_latency_ms': sum(times_ms) / len(times_ms) if times_ms else 0.0,
            'max_latency_ms': max(times_ms) if times_ms else 0.0,
        }
