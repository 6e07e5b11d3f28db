"""
Eye and Head Pose Classifier

Debounced drowsiness (closed eyes) and distraction (head turned away) checks.
"""

from typing import Optional

from .observation import DriverState
from ..utils.config import EyeHeadConfig


class EyeHeadClassifier:
    """Counts consecutive closed-eye and looking-away frames."""

    def __init__(self, eye_head_config: Optional[EyeHeadConfig] = None):
        self.config = eye_head_config or EyeHeadConfig()
        self.closed_eye_frames = 0
        self.distracted_frames = 0

    def update(self, left_eye_open: float, right_eye_open: float,
               yaw: float, pitch: float) -> Optional[DriverState]:
        """
        Update both counters for one frame.

        Drowsiness is checked first; while it is reported the distraction
        counter is left untouched for that frame.

        Returns:
            DriverState.DROWSY, DriverState.DISTRACTED or None
        """
        cfg = self.config

        avg_eye = (left_eye_open + right_eye_open) / 2.0
        if avg_eye < cfg.eye_closed_threshold:
            self.closed_eye_frames += 1
        else:
            self.closed_eye_frames = 0

        if self.closed_eye_frames > cfg.drowsy_confirm_frames:
            return DriverState.DROWSY

        # Side look (yaw) or up/down (pitch)
        if abs(yaw) > cfg.yaw_limit_deg or abs(pitch) > cfg.pitch_limit_deg:
            self.distracted_frames += 1
        else:
            self.distracted_frames = 0

        if self.distracted_frames > cfg.distracted_confirm_frames:
            return DriverState.DISTRACTED

        return None

    def reset(self) -> None:
        self.closed_eye_frames = 0
        self.distracted_frames = 0
