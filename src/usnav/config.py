"""
Configuration schema and defaults for a navigation session.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict

from usnav.constants import DEFAULT_IMAGE_SUFFIX, DEFAULT_TRANSFORM_NAMES


def _type_name(expected_type: Any) -> str:
    if isinstance(expected_type, tuple):
        return " or ".join(t.__name__ for t in expected_type)
    return expected_type.__name__


@dataclass
class ConfigSchema:
    """
    Schema definition for configuration validation.

    Attributes:
        optional: Dictionary of optional config keys with (type, default_value).
        constraints: Dictionary of key -> validation function returning bool.
    """
    optional: Dict[str, tuple] = field(default_factory=dict)  # key -> (type, default)
    constraints: Dict[str, Callable[[Any], bool]] = field(default_factory=dict)

    def validate(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate and normalize a configuration dictionary.

        Args:
            config: Configuration dictionary to validate.

        Returns:
            Normalized configuration with defaults filled in.

        Raises:
            ValueError: If a value has the wrong type.
            ValueError: If constraints are violated.
            ValueError: If unknown keys are present.
        """
        validated = {}

        for key, (expected_type, default) in self.optional.items():
            if key in config:
                value = config[key]
                if not isinstance(value, expected_type):
                    raise ValueError(
                        f"Config key '{key}' must be {_type_name(expected_type)}, "
                        f"got {type(value).__name__}"
                    )
                validated[key] = value
            else:
                validated[key] = default

        for key, constraint_fn in self.constraints.items():
            if key in validated:
                if not constraint_fn(validated[key]):
                    raise ValueError(f"Constraint violated for config key: {key}")

        # Typo detection
        valid_keys = set(self.optional.keys())
        unknown_keys = set(config.keys()) - valid_keys
        if unknown_keys:
            raise ValueError(
                f"Unknown config keys: {unknown_keys}. "
                f"Valid keys are: {valid_keys}"
            )

        return validated


def get_default_config() -> Dict[str, Any]:
    """
    Get the default configuration for a navigation session.

    Returns:
        Dictionary of default configuration values.

    Configuration keys:
        transform_names: Transform names whose ToTracker records carry frame
                         poses.
        image_suffix: Suffix of the derived per-frame image filename.
        calibration_path: CSV file with the image-to-probe calibration. Empty
                          to use the calibration of the recording setup.
        missing_status_is_valid: Validity given to frames that have no
                                 transform status record.
    """
    return {
        "transform_names": tuple(DEFAULT_TRANSFORM_NAMES),
        "image_suffix": DEFAULT_IMAGE_SUFFIX,
        "calibration_path": "",
        "missing_status_is_valid": False,
    }


def get_config_schema() -> ConfigSchema:
    """
    Get the configuration schema for validation.

    Returns:
        ConfigSchema instance defining the optional keys and constraints.
    """
    defaults = get_default_config()
    return ConfigSchema(
        optional={
            "transform_names": ((tuple, list), defaults["transform_names"]),
            "image_suffix": (str, defaults["image_suffix"]),
            "calibration_path": (str, defaults["calibration_path"]),
            "missing_status_is_valid": (bool, defaults["missing_status_is_valid"]),
        },
        constraints={
            "transform_names": lambda v: len(v) > 0 and all(isinstance(n, str) and n for n in v),
            "image_suffix": lambda v: v.startswith("."),
        },
    )
