"""TutorSession — fans a prompt out over the run plan and arbitrates the answers."""

import asyncio
import random
import time
import uuid
from collections.abc import Iterable

from tutor_heavy.arbitration.domain.arbiter import pick_winner
from tutor_heavy.arbitration.domain.run import TutorRun
from tutor_heavy.config.domain.config import ProviderId, TutorConfig
from tutor_heavy.config.domain.plan import RunPlanItem
from tutor_heavy.core.errors import TutorHeavyError
from tutor_heavy.provider.domain.prompts import compose_llm_prompt
from tutor_heavy.provider.domain.request import LLMRequest
from tutor_heavy.provider.domain.runner import ProviderRunnerFactory
from tutor_heavy.session.domain.observer import SessionObserver
from tutor_heavy.session.domain.result import SessionResult
from tutor_heavy.verification.domain.prompt import Prompt
from tutor_heavy.verification.domain.verifier import verify

_MAX_SEED = 1_000_000


class TutorSession:
    """Solves one prompt with every planned model configuration and picks an answer.

    The session is free of infrastructure dependencies: it receives a runner
    factory and an observer, so backends can be swapped for testing.
    """

    def __init__(
        self,
        config: TutorConfig,
        runner_factory: ProviderRunnerFactory,
        observer: SessionObserver,
        rng: random.Random | None = None,
    ) -> None:
        self._config = config
        self._runner_factory = runner_factory
        self._observer = observer
        self._rng = rng if rng is not None else random.Random()

    async def solve(
        self, prompt: Prompt, include: Iterable[ProviderId] = ()
    ) -> SessionResult:
        """Run the plan concurrently, verify each answer, and arbitrate once.

        A failed invocation, a timeout, or unparseable output becomes a failure
        placeholder run; it never aborts the batch. Runs are returned in plan
        order.
        """
        session_id = str(uuid.uuid4())
        plan = self._config.plan_for(include=include)

        self._observer.session_started(
            session_id=session_id,
            plan_size=len(plan),
            plan_items=[item.id for item in plan],
        )
        started_at = time.monotonic()

        runs: list[TutorRun | None] = [None] * len(plan)
        async with asyncio.TaskGroup() as tg:
            for index, item in enumerate(plan):
                tg.create_task(
                    self._run_one(
                        session_id=session_id,
                        prompt=prompt,
                        item=item,
                        index=index,
                        runs=runs,
                    )
                )

        completed = [run for run in runs if run is not None]
        decision = pick_winner(completed)
        elapsed_seconds = time.monotonic() - started_at

        self._observer.session_completed(
            session_id=session_id,
            winner_run_id=decision.winner.id,
            consensus=decision.consensus,
            reason=decision.reason,
            elapsed_seconds=elapsed_seconds,
        )

        return SessionResult(
            session_id=session_id,
            prompt=prompt,
            runs=completed,
            decision=decision,
            elapsed_seconds=elapsed_seconds,
        )

    async def _run_one(
        self,
        session_id: str,
        prompt: Prompt,
        item: RunPlanItem,
        index: int,
        runs: list[TutorRun | None],
    ) -> None:
        """Invoke one plan item with retry and backoff, then verify its output.

        Writes exactly one run (verified or placeholder) into runs[index].
        """
        seed = self._rng.randrange(_MAX_SEED)
        run_id = f"{item.id}-{seed}"
        self._observer.run_started(
            session_id=session_id,
            run_id=run_id,
            provider=item.provider,
            temperature=item.temperature,
        )

        try:
            raw = await self._invoke(
                session_id=session_id,
                run_id=run_id,
                prompt=prompt,
                item=item,
                seed=seed,
            )
            answer = verify(prompt=prompt, raw=raw)
        except TutorHeavyError as exc:
            runs[index] = self._fail(session_id, run_id, item, reason=str(exc))
            return
        except TimeoutError:
            reason = f"Failed to invoke provider '{item.provider}': timed out"
            runs[index] = self._fail(session_id, run_id, item, reason=reason)
            return

        runs[index] = TutorRun.from_verified(
            run_id=run_id, provider=item.label, answer=answer
        )
        self._observer.run_verified(
            session_id=session_id,
            run_id=run_id,
            final=answer.final,
            score=answer.score,
        )

    async def _invoke(
        self,
        session_id: str,
        run_id: str,
        prompt: Prompt,
        item: RunPlanItem,
        seed: int,
    ) -> str:
        execution = self._config.execution
        retry_cfg = execution.retry
        backoff = retry_cfg.initial_backoff_seconds
        runner = self._runner_factory.create(item.provider)
        request = LLMRequest(
            prompt=compose_llm_prompt(prompt.content),
            temperature=item.temperature,
            seed=seed,
            max_output_tokens=execution.max_output_tokens,
            image_base64=prompt.image_base64,
        )

        attempt = 1
        while True:
            try:
                async with asyncio.timeout(execution.timeout_seconds):
                    return await runner.complete(request)
            except TutorHeavyError as exc:
                if not exc.retriable or attempt >= retry_cfg.max_attempts:
                    raise
                self._observer.run_retry(
                    session_id=session_id,
                    run_id=run_id,
                    attempt=attempt,
                    reason=str(exc),
                    backoff_seconds=backoff,
                )
            await asyncio.sleep(backoff)
            backoff *= retry_cfg.backoff_multiplier
            attempt += 1

    def _fail(
        self, session_id: str, run_id: str, item: RunPlanItem, reason: str
    ) -> TutorRun:
        self._observer.run_failed(session_id=session_id, run_id=run_id, reason=reason)
        return TutorRun.failure(run_id=run_id, provider=item.label, reason=reason)
