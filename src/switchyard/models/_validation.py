"""Configuration validation utilities for models."""

import warnings
from typing import Any, Mapping, Type

from typing_extensions import get_type_hints


def validate_config_keys(config_dict: Mapping[str, Any], config_class: Type) -> None:
    """Warn about config keys that are not fields of the model's config TypedDict.

    Args:
        config_dict: Dictionary of configuration parameters
        config_class: TypedDict class to validate against
    """
    valid_keys = set(get_type_hints(config_class).keys())
    invalid_keys = set(config_dict.keys()) - valid_keys

    if invalid_keys:
        warnings.warn(
            f"Invalid configuration parameters: {sorted(invalid_keys)}.\nValid parameters are: {sorted(valid_keys)}.",
            stacklevel=4,
        )
