"""
Logging utilities for the driver alertness engine.
"""

import logging
import sys
import time
import functools
from datetime import datetime
from typing import Optional
from pathlib import Path

from .config import Config, config

ROOT_LOGGER_NAME = "driver_alertness"


def resolve_level(level) -> int:
    """Map a level name to its number, WARNING when the name is unknown."""
    resolved = logging.getLevelName(str(level).upper())
    return resolved if isinstance(resolved, int) else logging.WARNING


class AlertnessLogger:
    """Custom logger for the driver alertness engine.

    Module loggers (``driver_alertness.*``) carry no handlers of their own and
    propagate to the package logger, so one console level applies everywhere.
    """

    def __init__(self, name: str = ROOT_LOGGER_NAME, log_file: Optional[str] = None):
        """Initialize the logger."""
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.DEBUG)

        # Prevent duplicate handlers
        if self.logger.handlers or name.startswith(ROOT_LOGGER_NAME + "."):
            return

        # Create formatters
        detailed_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
        )
        simple_formatter = logging.Formatter(
            '%(asctime)s - %(levelname)s - %(message)s'
        )

        # Console handler goes to stderr so replayed states on stdout stay clean
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(resolve_level(config.logging.console_level))
        console_handler.setFormatter(simple_formatter)
        self.logger.addHandler(console_handler)
        self.logger.propagate = False

        # File handler (if logging is enabled)
        if config.logging.enable_file_logging or log_file is not None:
            if log_file is None:
                logs_dir = Path(config.logging.log_dir)
                logs_dir.mkdir(parents=True, exist_ok=True)

                # Create log file with timestamp
                timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
                log_file = logs_dir / f"driver_alertness_{timestamp}.log"

            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(detailed_formatter)
            self.logger.addHandler(file_handler)

    def _handlers(self):
        owner = self.logger
        while owner is not None and not owner.handlers and owner.propagate:
            owner = owner.parent
        return owner.handlers if owner is not None else []

    def set_console_level(self, level: str) -> None:
        """Change the level of the console handler."""
        for handler in self._handlers():
            if not isinstance(handler, logging.FileHandler):
                handler.setLevel(resolve_level(level))

    def is_debug_enabled(self) -> bool:
        """True when any handler would emit DEBUG records."""
        return any(handler.level <= logging.DEBUG for handler in self._handlers())

    def debug(self, message: str) -> None:
        """Log debug message."""
        self.logger.debug(message)

    def info(self, message: str) -> None:
        """Log info message."""
        self.logger.info(message)

    def warning(self, message: str) -> None:
        """Log warning message."""
        self.logger.warning(message)

    def error(self, message: str) -> None:
        """Log error message."""
        self.logger.error(message)

    def critical(self, message: str) -> None:
        """Log critical message."""
        self.logger.critical(message)

    def log_performance(self, frames: int, avg_latency_ms: float, max_latency_ms: float) -> None:
        """Log per-frame processing cost."""
        self.info(f"Performance - Frames: {frames}, Avg latency: {avg_latency_ms:.3f}ms, "
                  f"Max latency: {max_latency_ms:.3f}ms")

    def log_state_change(self, previous: Optional[str], current: str, frame_index: int) -> None:
        """Log a change of the emitted driver state."""
        self.info(f"Driver state - Frame {frame_index}: {previous or 'None'} -> {current}")

    def log_mouth_metrics(self, lip_ratio: float, avg: float, variance: float,
                          transitions: int, open_ratio: float) -> None:
        """Log mouth dynamics statistics."""
        self.debug(f"Mouth - Ratio: {lip_ratio:.3f}, Avg: {avg:.3f}, Variance: {variance:.5f}, "
                   f"Transitions: {transitions}, Open: {open_ratio:.2f}")

    def log_error_with_context(self, error: Exception, context: str) -> None:
        """Log error with additional context."""
        self.error(f"Error in {context}: {str(error)}")
        if error.__traceback__ is not None:
            import traceback
            self.debug("Traceback: " + "".join(traceback.format_tb(error.__traceback__)))

    def log_system_info(self, cfg: Optional[Config] = None) -> None:
        """Log system information."""
        import numpy as np

        cfg = cfg or config

        self.info("=== System Information ===")
        self.info(f"Python Version: {sys.version}")
        self.info(f"NumPy Version: {np.__version__}")

        # Log configuration
        self.info("=== Configuration ===")
        self.info(f"Mouth: open>{cfg.mouth.open_threshold}, yawn avg>{cfg.mouth.yawn_avg_threshold}, "
                  f"talk var>{cfg.mouth.talk_variance_threshold}, window={cfg.mouth.max_history}")
        self.info(f"Eyes: closed<{cfg.eye_head.eye_closed_threshold} for >{cfg.eye_head.drowsy_confirm_frames} frames")
        self.info(f"Head: |yaw|>{cfg.eye_head.yaw_limit_deg}, |pitch|>{cfg.eye_head.pitch_limit_deg} "
                  f"for >{cfg.eye_head.distracted_confirm_frames} frames")


# Global logger instance
logger = AlertnessLogger()


def get_logger(name: str = ROOT_LOGGER_NAME) -> AlertnessLogger:
    """Get a logger instance."""
    return AlertnessLogger(name)


def log_function_call(func):
    """Decorator to log function calls."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger.debug(f"Calling {func.__name__}")
        try:
            result = func(*args, **kwargs)
            logger.debug(f"Completed {func.__name__}")
            return result
        except Exception as e:
            logger.log_error_with_context(e, func.__name__)
            raise
    return wrapper


def log_performance_metrics(func):
    """Decorator to log performance metrics."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.perf_counter()
        try:
            result = func(*args, **kwargs)
            processing_time = (time.perf_counter() - start_time) * 1000  # Convert to milliseconds
            logger.debug(f"{func.__name__} took {processing_time:.2f}ms")
            return result
        except Exception as e:
            logger.log_error_with_context(e, func.__name__)
            raise
    return wrapper
