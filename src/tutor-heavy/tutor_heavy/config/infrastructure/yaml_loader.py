"""YAML config loader — parses, interpolates env vars, validates, and emits observer events."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from tutor_heavy.config.domain.config import TutorConfig
from tutor_heavy.config.domain.observer import ConfigObserver
from tutor_heavy.config.infrastructure.env_interpolation import (
    collect_missing_vars,
    interpolate,
)
from tutor_heavy.config.infrastructure.errors import (
    ConfigLoadError,
    ConfigValidationError,
    MissingEnvVarsError,
)

_HIGH_TEMPERATURE = 1.0


class YamlConfigLoader:
    """Loads, interpolates, validates, and returns a TutorConfig from a YAML file."""

    def __init__(self, observer: ConfigObserver) -> None:
        self._observer = observer

    def load(self, path: Path) -> TutorConfig:
        """
        Load, interpolate, validate, and return a TutorConfig from a YAML file.

        Raises:
            ConfigLoadError: if the file does not exist.
            MissingEnvVarsError: if any ${ENV_VAR} references are unset (all collected first).
            ConfigValidationError: if the YAML is invalid, the schema is violated,
                or plan items reference unknown providers.
        """
        raw = _parse_yaml(path=path)
        _check_missing_env_vars(raw=raw)
        interpolated = interpolate(raw)
        _check_plan_references(interpolated=interpolated)
        cfg = _build_config(resolved=interpolated)
        _emit_warnings(cfg=cfg, observer=self._observer)
        self._observer.config_loaded(
            name=cfg.name, version=cfg.version, plan_size=len(cfg.plan)
        )
        return cfg


def _parse_yaml(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except FileNotFoundError as exc:
        raise ConfigLoadError(path=path) from exc
    except yaml.YAMLError as exc:
        raise ConfigValidationError(f"invalid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigValidationError("top-level YAML value must be a mapping")
    return data


def _check_missing_env_vars(raw: Any) -> None:
    """Raise MissingEnvVarsError if any ${ENV_VAR} references in raw are unset."""
    missing = collect_missing_vars(raw)
    if missing:
        raise MissingEnvVarsError(missing)


def _check_plan_references(interpolated: dict[str, Any]) -> None:
    """
    Validate that plan item ids are unique and every item names a provider
    defined in the catalog.

    Raises:
        ConfigValidationError: listing ALL invalid references before raising
            (not just the first one).
    """
    providers_raw: Any = interpolated.get("providers", {}) or {}
    plan_raw: Any = interpolated.get("plan", []) or []
    if not isinstance(providers_raw, dict) or not isinstance(plan_raw, list):
        # Shape errors are reported by schema validation.
        return
    defined = set(providers_raw.keys())

    problems: list[str] = []
    seen_ids: set[Any] = set()
    for index, item in enumerate(plan_raw):
        if not isinstance(item, dict):
            continue
        label = item.get("id", index)
        if label in seen_ids:
            problems.append(f"duplicate plan item id '{label}'")
        seen_ids.add(label)
        provider = item.get("provider")
        if provider is not None and provider not in defined:
            problems.append(
                f"plan item '{label}' references unknown provider '{provider}'"
            )

    if problems:
        raise ConfigValidationError("; ".join(problems))


def _build_config(resolved: Any) -> TutorConfig:
    try:
        return TutorConfig.model_validate(resolved)
    except ValidationError as exc:
        raise ConfigValidationError(str(exc)) from exc


def _emit_warnings(cfg: TutorConfig, observer: ConfigObserver) -> None:
    for item in cfg.plan:
        if item.temperature > _HIGH_TEMPERATURE:
            observer.config_high_temperature_warning(
                plan_item=item.id, temperature=item.temperature
            )
