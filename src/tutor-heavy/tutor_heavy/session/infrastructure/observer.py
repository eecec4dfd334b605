"""StructlogSessionObserver — production observer that delegates to structlog."""

import structlog


class StructlogSessionObserver:
    """Logs session domain events to structlog.

    Does NOT inherit from SessionObserver (structural typing via Protocol).
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def session_started(
        self, session_id: str, plan_size: int, plan_items: list[str]
    ) -> None:
        self._log.info(
            "session.started",
            session_id=session_id,
            plan_size=plan_size,
            plan_items=plan_items,
        )

    def session_completed(
        self,
        session_id: str,
        winner_run_id: str,
        consensus: bool,
        reason: str,
        elapsed_seconds: float,
    ) -> None:
        self._log.info(
            "session.completed",
            session_id=session_id,
            winner_run_id=winner_run_id,
            consensus=consensus,
            reason=reason,
            elapsed_seconds=round(elapsed_seconds, 2),
        )

    def run_started(
        self, session_id: str, run_id: str, provider: str, temperature: float
    ) -> None:
        self._log.info(
            "session.run_started",
            session_id=session_id,
            run_id=run_id,
            provider=provider,
            temperature=temperature,
        )

    def run_verified(
        self, session_id: str, run_id: str, final: str, score: float
    ) -> None:
        self._log.info(
            "session.run_verified",
            session_id=session_id,
            run_id=run_id,
            final=final,
            score=score,
        )

    def run_failed(self, session_id: str, run_id: str, reason: str) -> None:
        self._log.warning(
            "session.run_failed",
            session_id=session_id,
            run_id=run_id,
            reason=reason,
        )

    def run_retry(
        self,
        session_id: str,
        run_id: str,
        attempt: int,
        reason: str,
        backoff_seconds: float,
    ) -> None:
        self._log.warning(
            "session.run_retry",
            session_id=session_id,
            run_id=run_id,
            attempt=attempt,
            reason=reason,
            backoff_seconds=backoff_seconds,
        )
