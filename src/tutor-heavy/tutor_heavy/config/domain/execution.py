"""Execution configuration models."""

from pydantic import BaseModel, Field


class RetryConfig(BaseModel, frozen=True):
    max_attempts: int = Field(default=1, ge=1)
    initial_backoff_seconds: float = Field(default=1.0, ge=0.0)
    backoff_multiplier: float = Field(default=2.0, ge=1.0)


class ExecutionConfig(BaseModel, frozen=True):
    max_output_tokens: int = Field(default=1024, ge=1)
    timeout_seconds: float | None = Field(default=None, gt=0.0)
    retry: RetryConfig = RetryConfig()
