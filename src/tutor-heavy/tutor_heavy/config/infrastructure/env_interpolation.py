"""Recursive ${ENV_VAR} interpolation for raw config data.

``${NAME}`` requires the variable to be set. ``${NAME:-fallback}`` uses the
fallback text when it is not, so optional provider keys never block loading.
"""

import os
import re
from typing import TypeAlias

_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")

RawValue: TypeAlias = (
    str | int | float | bool | None | list["RawValue"] | dict[str, "RawValue"]
)


def collect_missing_vars(data: RawValue) -> list[str]:
    """
    Walk the data tree and return the names of all referenced env vars that
    are not set and carry no fallback. Every missing var is collected.
    """
    missing: list[str] = []
    _collect(data, missing)
    return missing


def _collect(data: RawValue, missing: list[str]) -> None:
    if isinstance(data, str):
        for match in _ENV_VAR_PATTERN.finditer(data):
            var_name, fallback = match.group(1), match.group(2)
            if fallback is None and var_name not in os.environ and var_name not in missing:
                missing.append(var_name)
    elif isinstance(data, list):
        for item in data:
            _collect(item, missing)
    elif isinstance(data, dict):
        for value in data.values():
            _collect(value, missing)


def interpolate(data: RawValue) -> RawValue:
    """
    Recursively substitute ${ENV_VAR} occurrences with their runtime values.

    Call `collect_missing_vars` first; a variable without fallback that is
    still unset here raises KeyError.
    """
    if isinstance(data, str):
        return _ENV_VAR_PATTERN.sub(_substitute, data)
    if isinstance(data, list):
        return [interpolate(item) for item in data]
    if isinstance(data, dict):
        return {key: interpolate(value) for key, value in data.items()}
    return data


def _substitute(match: re.Match[str]) -> str:
    var_name, fallback = match.group(1), match.group(2)
    if fallback is not None:
        return os.environ.get(var_name, fallback)
    return os.environ[var_name]
