"""Observer port for the config domain — defines events in domain language."""

from typing import Protocol


class ConfigObserver(Protocol):
    def config_loaded(self, name: str, version: str, plan_size: int) -> None: ...

    def config_high_temperature_warning(self, plan_item: str, temperature: float) -> None: ...
