"""Top-level TutorConfig aggregate — the root configuration object."""

from collections.abc import Iterable
from typing import TypeAlias

from pydantic import BaseModel, Field

from tutor_heavy.config.domain.execution import ExecutionConfig
from tutor_heavy.config.domain.plan import RunPlanItem
from tutor_heavy.config.domain.provider import ProviderConfig

ProviderId: TypeAlias = str


class TutorConfig(BaseModel, frozen=True):
    """Root configuration aggregate: provider catalog plus the run plan."""

    name: str = Field(min_length=1)
    version: str = Field(min_length=1)
    providers: dict[ProviderId, ProviderConfig] = Field(min_length=1)
    plan: list[RunPlanItem] = Field(min_length=1)
    execution: ExecutionConfig = ExecutionConfig()

    def optional_providers(self) -> list[ProviderId]:
        """Provider ids that only run when explicitly included, in plan order."""
        seen: list[ProviderId] = []
        for item in self.plan:
            if item.optional and item.provider not in seen:
                seen.append(item.provider)
        return seen

    def plan_for(self, include: Iterable[ProviderId] = ()) -> list[RunPlanItem]:
        """Return the base plan followed by the optional items whose provider is included."""
        included = set(include)
        base = [item for item in self.plan if not item.optional]
        extra = [item for item in self.plan if item.optional and item.provider in included]
        return base + extra
