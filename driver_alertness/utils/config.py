"""
Configuration management for the driver alertness engine.
"""

import os
import json
import logging
from dataclasses import dataclass, fields, asdict
from typing import Dict, Any, Optional


_log = logging.getLogger(__name__)


@dataclass
class MouthConfig:
    """Mouth dynamics thresholds (talking vs yawning)."""
    open_threshold: float = 0.22           # lip ratio above which the mouth counts as open
    yawn_avg_threshold: float = 0.3
    talk_variance_threshold: float = 0.001
    max_history: int = 20                  # ~0.6s @ ~30fps
    min_samples: int = 6
    yawn_max_transitions: int = 2
    yawn_open_fraction: float = 0.7
    talk_min_transitions: int = 5
    yawn_confirm_frames: int = 5
    talk_confirm_frames: int = 8


@dataclass
class EyeHeadConfig:
    """Eye closure and head pose thresholds."""
    eye_closed_threshold: float = 0.30
    drowsy_confirm_frames: int = 15
    yaw_limit_deg: float = 25.0
    pitch_limit_deg: float = 20.0
    distracted_confirm_frames: int = 10


@dataclass
class DetectorConfig:
    """Options forwarded untouched to the external face detector."""
    performance_mode: str = "accurate"     # fast, accurate
    landmark_mode: str = "all"             # none, all
    contour_mode: str = "all"              # none, all
    classification_mode: str = "all"       # none, all (eye open probabilities)


@dataclass
class LoggingConfig:
    """Logging settings."""
    enable_file_logging: bool = False
    log_dir: str = "logs"
    console_level: str = "WARNING"


class Config:
    """Main configuration class for the driver alertness engine."""

    SECTIONS = ('mouth', 'eye_head', 'detector', 'logging')

    def __init__(self, config_file: Optional[str] = None):
        """Initialize configuration with optional config file."""
        self.mouth = MouthConfig()
        self.eye_head = EyeHeadConfig()
        self.detector = DetectorConfig()
        self.logging = LoggingConfig()

        if config_file and os.path.exists(config_file):
            self.load_from_file(config_file)

    def load_from_file(self, config_file: str) -> None:
        """Load configuration from JSON file."""
        try:
            with open(config_file, 'r') as f:
                config_data = json.load(f)
        except (OSError, ValueError) as e:
            _log.warning(f"Could not load config file {config_file}: {e}")
            return

        if not isinstance(config_data, dict):
            _log.warning(f"Could not load config file {config_file}: "
                         f"expected a JSON object, got {type(config_data).__name__}")
            return

        self.update_from_dict(config_data)

    def update_from_dict(self, config_data: Dict[str, Any]) -> None:
        """
        Update sections from a nested dictionary.

        Unknown sections and keys are ignored. A value whose type does not
        match the setting keeps the current value. Both cases are logged.
        """
        for section_name, section_data in config_data.items():
            if section_name not in self.SECTIONS or not isinstance(section_data, dict):
                _log.warning(f"Ignoring unknown config section: {section_name}")
                continue
            section = getattr(self, section_name)
            types = {f.name: f.type for f in fields(section)}
            for key, value in section_data.items():
                if key not in types:
                    _log.warning(f"Ignoring unknown config key: {section_name}.{key}")
                    continue
                try:
                    setattr(section, key, _coerce(value, types[key]))
                except ValueError as e:
                    _log.warning(f"Ignoring invalid value for {section_name}.{key}: {e}")

    def to_dict(self) -> Dict[str, Any]:
        """Return the configuration as a nested dictionary."""
        return {name: asdict(getattr(self, name)) for name in self.SECTIONS}

    def save_to_file(self, config_file: str) -> None:
        """Save current configuration to JSON file."""
        directory = os.path.dirname(config_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(config_file, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    def validate_config(self) -> bool:
        """Validate configuration settings."""
        errors = []

        # Values assigned in code bypass the checks in update_from_dict
        for section_name in self.SECTIONS:
            section = getattr(self, section_name)
            for field in fields(section):
                try:
                    _coerce(getattr(section, field.name), field.type)
                except ValueError as e:
                    errors.append(f"{section_name}.{field.name}: {e}")
        if errors:
            return self._report(errors)

        mouth = self.mouth
        eye_head = self.eye_head

        # Mouth thresholds
        for name in ('open_threshold', 'yawn_avg_threshold', 'talk_variance_threshold'):
            if getattr(mouth, name) <= 0:
                errors.append(f"mouth.{name} must be positive")

        if not 0 < mouth.yawn_open_fraction <= 1:
            errors.append("mouth.yawn_open_fraction must be in (0, 1]")

        if mouth.max_history < 2:
            errors.append("mouth.max_history must be at least 2")

        if not 1 <= mouth.min_samples <= mouth.max_history:
            errors.append("mouth.min_samples must be between 1 and max_history")

        # Talking and yawning must never qualify on the same window
        if mouth.yawn_max_transitions >= mouth.talk_min_transitions:
            errors.append("mouth.yawn_max_transitions must be below talk_min_transitions")

        # Eye / head thresholds
        if not 0 <= eye_head.eye_closed_threshold <= 1:
            errors.append("eye_head.eye_closed_threshold must be between 0 and 1")

        if eye_head.yaw_limit_deg <= 0 or eye_head.pitch_limit_deg <= 0:
            errors.append("eye_head angle limits must be positive")

        # Debounce counts
        for section_name, section in (('mouth', mouth), ('eye_head', eye_head)):
            for field in fields(section):
                if field.name.endswith('_confirm_frames') and getattr(section, field.name) < 0:
                    errors.append(f"{section_name}.{field.name} must not be negative")

        if self.logging.console_level.upper() not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            errors.append(f"Unknown console log level: {self.logging.console_level}")

        if errors:
            return self._report(errors)

        return True

    @staticmethod
    def _report(errors) -> bool:
        _log.error("Configuration validation errors:")
        for error in errors:
            _log.error(f"  - {error}")
        return False


def _coerce(value: Any, expected: type) -> Any:
    """Return ``value`` as ``expected``; raise ValueError when it is not one."""
    if isinstance(value, bool):
        if expected is bool:
            return value
    elif expected is int:
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
    elif expected is float:
        if isinstance(value, (int, float)):
            return float(value)
    elif isinstance(value, expected):
        return value
    raise ValueError(f"expected {expected.__name__}, got {value!r}")


# Default configuration file path
DEFAULT_CONFIG_FILE = os.environ.get("DRIVER_ALERTNESS_CONFIG", "data/configs/driver_alertness.json")

# Global configuration instance
config = Config(DEFAULT_CONFIG_FILE)
