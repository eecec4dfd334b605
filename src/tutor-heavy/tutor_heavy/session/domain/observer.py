"""Observer port for the session domain — defines events in domain language."""

from typing import Protocol


class SessionObserver(Protocol):
    """Observer port emitting structured events while a session solves a prompt.

    Implementations may log to structlog, record for tests, or emit metrics.
    """

    def session_started(
        self, session_id: str, plan_size: int, plan_items: list[str]
    ) -> None: ...

    def session_completed(
        self,
        session_id: str,
        winner_run_id: str,
        consensus: bool,
        reason: str,
        elapsed_seconds: float,
    ) -> None: ...

    def run_started(
        self, session_id: str, run_id: str, provider: str, temperature: float
    ) -> None: ...

    def run_verified(
        self, session_id: str, run_id: str, final: str, score: float
    ) -> None: ...

    def run_failed(self, session_id: str, run_id: str, reason: str) -> None: ...

    def run_retry(
        self,
        session_id: str,
        run_id: str,
        attempt: int,
        reason: str,
        backoff_seconds: float,
    ) -> None: ...
