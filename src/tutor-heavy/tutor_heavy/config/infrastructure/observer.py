"""Structlog implementation of the ConfigObserver port."""

import structlog


class StructlogConfigObserver:
    """Delegates config domain events to structlog.

    Satisfies the ConfigObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def config_loaded(self, name: str, version: str, plan_size: int) -> None:
        self._log.info("config.loaded", name=name, version=version, plan_size=plan_size)

    def config_high_temperature_warning(self, plan_item: str, temperature: float) -> None:
        self._log.warning(
            "config.high_temperature_warning",
            plan_item=plan_item,
            temperature=temperature,
            message="Temperature > 1.0 tends to produce unparseable answers",
        )
