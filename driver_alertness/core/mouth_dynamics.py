"""
Mouth Dynamics Module

Separates talking from yawning using a short rolling history of lip opening
ratios. Yawning is a large, steady opening with few open/closed flips;
talking is a stream of small, frequent oscillations. Both need several
consecutive qualifying frames before a label is reported.
"""

import numpy as np
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Optional

from .observation import DriverState
from ..utils.config import MouthConfig
from ..utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class MouthHistory:
    """Rolling lip ratio and open flag windows, evicted in lockstep."""
    max_history: int = 20
    lip_ratio_window: Deque[float] = field(init=False)
    open_flag_window: Deque[int] = field(init=False)

    def __post_init__(self):
        self.lip_ratio_window = deque(maxlen=self.max_history)
        self.open_flag_window = deque(maxlen=self.max_history)

    def append(self, lip_ratio: float, is_open: bool) -> None:
        self.lip_ratio_window.append(lip_ratio)
        self.open_flag_window.append(1 if is_open else 0)

    def clear(self) -> None:
        self.lip_ratio_window.clear()
        self.open_flag_window.clear()

    def __len__(self) -> int:
        return len(self.lip_ratio_window)


@dataclass(frozen=True)
class MouthMetrics:
    """Window statistics computed on one update."""
    samples: int
    avg: float
    variance: float
    transitions: int
    open_ratio: float


class MouthDynamicsTracker:
    """Tracks lip opening over time and reports Talking or Yawning."""

    def __init__(self, mouth_config: Optional[MouthConfig] = None):
        """
        Initialize the mouth dynamics tracker.

        Args:
            mouth_config: Thresholds and window sizes (defaults when omitted)
        """
        self.config = mouth_config or MouthConfig()
        self.history = MouthHistory(self.config.max_history)
        self.talking_frames = 0
        self.yawning_frames = 0
        self.last_metrics: Optional[MouthMetrics] = None

    def update(self, lip_ratio: float) -> Optional[DriverState]:
        """
        Add one lip ratio sample and classify the mouth behaviour.

        Args:
            lip_ratio: Normalized lip opening for the current frame

        Returns:
            DriverState.YAWNING, DriverState.TALKING or None
        """
        cfg = self.config
        self.history.append(lip_ratio, lip_ratio > cfg.open_threshold)

        if len(self.history) < cfg.min_samples:
            self.last_metrics = None
            return None  # need a few frames

        metrics = self.compute_metrics()
        self.last_metrics = metrics
        if logger.is_debug_enabled():
            logger.log_mouth_metrics(lip_ratio, metrics.avg, metrics.variance,
                                     metrics.transitions, metrics.open_ratio)

        if self.is_yawn_pattern(metrics):
            self.yawning_frames += 1
            self.talking_frames = 0
            if self.yawning_frames > cfg.yawn_confirm_frames:
                return DriverState.YAWNING
            return None
        self.yawning_frames = 0

        if self.is_talk_pattern(metrics):
            self.talking_frames += 1
            if self.talking_frames > cfg.talk_confirm_frames:
                return DriverState.TALKING
            return None
        self.talking_frames = 0

        return None

    def compute_metrics(self) -> MouthMetrics:
        """Mean, population variance, flip count and open fraction of the windows."""
        ratios = np.fromiter(self.history.lip_ratio_window, dtype=float)
        flags = np.fromiter(self.history.open_flag_window, dtype=int)

        return MouthMetrics(
            samples=len(ratios),
            avg=float(ratios.mean()),
            variance=float(ratios.var()),
            transitions=int(np.count_nonzero(np.diff(flags))),
            open_ratio=float(flags.mean()),
        )

    def is_yawn_pattern(self, metrics: MouthMetrics) -> bool:
        """Big and steady opening: high average, few flips, mostly open."""
        cfg = self.config
        return (metrics.avg > cfg.yawn_avg_threshold
                and metrics.transitions <= cfg.yawn_max_transitions
                and metrics.open_ratio > cfg.yawn_open_fraction)

    def is_talk_pattern(self, metrics: MouthMetrics) -> bool:
        """Frequent fluctuations: many flips and some spread in the ratios."""
        cfg = self.config
        return (metrics.transitions >= cfg.talk_min_transitions
                and metrics.variance > cfg.talk_variance_threshold)

    def reset(self) -> None:
        """Drop the history and both debounce counters."""
        self.history.clear()
        self.talking_frames = 0
        self.yawning_frames = 0
        self.last_metrics = None
