"""Tests for TutorSession orchestration."""

import random

import pytest

from tests.provider.fake_runner import FakeProviderRunner, FakeRunnerFactory
from tests.session.fake_observer import FakeSessionObserver
from tutor_heavy.arbitration.domain.run import FAILURE_SENTINEL, FAILURE_SIGNAL
from tutor_heavy.config.domain.config import TutorConfig
from tutor_heavy.config.domain.execution import ExecutionConfig, RetryConfig
from tutor_heavy.config.domain.plan import RunPlanItem
from tutor_heavy.config.domain.provider import ProviderConfig
from tutor_heavy.provider.infrastructure.errors import ProviderInvocationError
from tutor_heavy.session.application.solver import TutorSession
from tutor_heavy.verification.domain.prompt import Prompt


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _answer(final: str, short_reason: str = "Addition", check: str = "substitution") -> str:
    return (
        f'{{"final": "{final}", "units": "", '
        f'"short_reason": "{short_reason}", "check": "{check}"}}'
    )


def _make_config(
    execution: ExecutionConfig | None = None,
    with_optional: bool = False,
) -> TutorConfig:
    plan = [
        RunPlanItem(id="alpha-1", provider="alpha", label="Alpha #1", temperature=0.4),
        RunPlanItem(id="beta", provider="beta", label="Beta", temperature=0.45),
        RunPlanItem(id="gamma", provider="gamma", label="Gamma", temperature=0.35),
    ]
    if with_optional:
        plan.append(
            RunPlanItem(
                id="delta", provider="delta", label="Delta", temperature=0.5, optional=True
            )
        )
    return TutorConfig(
        name="test",
        version="1",
        providers={
            pid: ProviderConfig(name=pid.title(), model=f"test/{pid}")
            for pid in ("alpha", "beta", "gamma", "delta")
        },
        plan=plan,
        execution=execution if execution is not None else ExecutionConfig(),
    )


def _make_session(
    runners: dict[str, FakeProviderRunner],
    config: TutorConfig | None = None,
) -> tuple[TutorSession, FakeSessionObserver, FakeRunnerFactory]:
    observer = FakeSessionObserver()
    factory = FakeRunnerFactory(runners=runners)
    session = TutorSession(
        config=config if config is not None else _make_config(),
        runner_factory=factory,
        observer=observer,
        rng=random.Random(0),
    )
    return session, observer, factory


def _prompt(content: str = "2+2", image_base64: str | None = None) -> Prompt:
    return Prompt(content=content, image_base64=image_base64)


def _fast_retry(max_attempts: int) -> ExecutionConfig:
    return ExecutionConfig(
        retry=RetryConfig(max_attempts=max_attempts, initial_backoff_seconds=0.0)
    )


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------


class TestSolve:
    """solve() runs every plan item and arbitrates once over the results."""

    async def test_unanimous_answer_is_consensus(self) -> None:
        session, _, _ = _make_session(
            {pid: FakeProviderRunner(_answer("4")) for pid in ("alpha", "beta", "gamma")}
        )

        result = await session.solve(prompt=_prompt("2+2"))

        assert result.decision.consensus is True
        assert result.decision.winner.final == "4"
        assert result.decision.reason == "3 of 3 agree"

    async def test_runs_follow_plan_order(self) -> None:
        session, _, _ = _make_session(
            {
                "alpha": FakeProviderRunner(_answer("4"), delay_seconds=0.03),
                "beta": FakeProviderRunner(_answer("5"), delay_seconds=0.01),
                "gamma": FakeProviderRunner(_answer("6")),
            }
        )

        result = await session.solve(prompt=_prompt())

        assert [run.provider for run in result.runs] == ["Alpha #1", "Beta", "Gamma"]
        assert [run.final for run in result.runs] == ["4", "5", "6"]

    async def test_best_score_wins_without_agreement(self) -> None:
        session, _, _ = _make_session(
            {
                "alpha": FakeProviderRunner(_answer("5")),
                "beta": FakeProviderRunner(_answer("4")),
                "gamma": FakeProviderRunner(_answer("6")),
            }
        )

        result = await session.solve(prompt=_prompt("2+2"))

        assert result.decision.consensus is False
        assert result.decision.winner.final == "4"

    async def test_run_ids_start_with_plan_item_id(self) -> None:
        session, _, _ = _make_session(
            {pid: FakeProviderRunner(_answer("4")) for pid in ("alpha", "beta", "gamma")}
        )

        result = await session.solve(prompt=_prompt())

        assert [run.id.rsplit("-", 1)[0] for run in result.runs] == [
            "alpha-1",
            "beta",
            "gamma",
        ]
        assert len({run.id for run in result.runs}) == 3

    async def test_result_carries_prompt_and_timing(self) -> None:
        session, _, _ = _make_session(
            {pid: FakeProviderRunner(_answer("4")) for pid in ("alpha", "beta", "gamma")}
        )
        prompt = _prompt("2+2")

        result = await session.solve(prompt=prompt)

        assert result.prompt == prompt
        assert result.elapsed_seconds >= 0.0
        assert result.session_id


# ---------------------------------------------------------------------------
# Requests sent to runners
# ---------------------------------------------------------------------------


class TestRequests:
    """Each plan item produces one request with its own sampling parameters."""

    async def test_request_uses_item_temperature_and_config_tokens(self) -> None:
        runners = {pid: FakeProviderRunner(_answer("4")) for pid in ("alpha", "beta", "gamma")}
        config = _make_config(execution=ExecutionConfig(max_output_tokens=300))
        session, _, _ = _make_session(runners, config=config)

        await session.solve(prompt=_prompt())

        assert runners["beta"].requests[0].temperature == pytest.approx(0.45)
        assert runners["beta"].requests[0].max_output_tokens == 300

    async def test_request_prompt_wraps_content(self) -> None:
        runners = {pid: FakeProviderRunner(_answer("4")) for pid in ("alpha", "beta", "gamma")}
        session, _, _ = _make_session(runners)

        await session.solve(prompt=_prompt("3*3"))

        assert "3*3" in runners["alpha"].requests[0].prompt

    async def test_image_is_forwarded(self) -> None:
        runners = {pid: FakeProviderRunner(_answer("4")) for pid in ("alpha", "beta", "gamma")}
        session, _, _ = _make_session(runners)

        await session.solve(prompt=_prompt(image_base64="QUJD"))

        assert runners["gamma"].requests[0].image_base64 == "QUJD"

    async def test_seeded_rng_is_reproducible(self) -> None:
        seeds: list[list[int]] = []
        for _ in range(2):
            runners = {
                pid: FakeProviderRunner(_answer("4")) for pid in ("alpha", "beta", "gamma")
            }
            session, _, _ = _make_session(runners)
            await session.solve(prompt=_prompt())
            seeds.append([runners[pid].requests[0].seed for pid in ("alpha", "beta", "gamma")])

        assert seeds[0] == seeds[1]


# ---------------------------------------------------------------------------
# Failures become placeholders
# ---------------------------------------------------------------------------


class TestFailurePlaceholders:
    """A failing run is recorded as a placeholder and never aborts the batch."""

    async def test_invocation_error_becomes_placeholder(self) -> None:
        session, observer, _ = _make_session(
            {
                "alpha": FakeProviderRunner(_answer("4")),
                "beta": FakeProviderRunner(ProviderInvocationError("beta", "401")),
                "gamma": FakeProviderRunner(_answer("4")),
            }
        )

        result = await session.solve(prompt=_prompt("2+2"))

        failed = result.runs[1]
        assert failed.final == FAILURE_SENTINEL
        assert failed.score == pytest.approx(-1.0)
        assert failed.signals == [FAILURE_SIGNAL]
        assert failed.provider == "Beta"
        assert result.decision.winner.final == "4"
        assert len(observer.failed) == 1
        assert "401" in observer.failed[0].reason

    async def test_malformed_output_becomes_placeholder(self) -> None:
        session, observer, _ = _make_session(
            {
                "alpha": FakeProviderRunner("I believe the answer is 4."),
                "beta": FakeProviderRunner(_answer("4")),
                "gamma": FakeProviderRunner(_answer("5")),
            }
        )

        result = await session.solve(prompt=_prompt("2+2"))

        assert result.runs[0].is_failure
        assert observer.failed[0].reason.startswith("Failed to parse model output")
        assert result.decision.winner.final == "4"

    async def test_unconfigured_provider_becomes_placeholder(self) -> None:
        session, observer, _ = _make_session(
            {
                "alpha": FakeProviderRunner(_answer("4")),
                "beta": FakeProviderRunner(_answer("4")),
            }
        )

        result = await session.solve(prompt=_prompt())

        assert result.runs[2].is_failure
        assert "not configured" in observer.failed[0].reason

    async def test_timeout_becomes_placeholder(self) -> None:
        config = _make_config(execution=ExecutionConfig(timeout_seconds=0.01))
        session, observer, _ = _make_session(
            {
                "alpha": FakeProviderRunner(_answer("4")),
                "beta": FakeProviderRunner(_answer("4")),
                "gamma": FakeProviderRunner(_answer("4"), delay_seconds=1.0),
            },
            config=config,
        )

        result = await session.solve(prompt=_prompt())

        assert result.runs[2].is_failure
        assert observer.failed[0].reason == "Failed to invoke provider 'gamma': timed out"

    async def test_all_runs_failing_still_decides(self) -> None:
        error = ProviderInvocationError("x", "down")
        session, _, _ = _make_session(
            {pid: FakeProviderRunner(error) for pid in ("alpha", "beta", "gamma")}
        )

        result = await session.solve(prompt=_prompt())

        assert len(result.runs) == 3
        assert all(run.is_failure for run in result.runs)
        assert result.decision.winner.id == result.runs[0].id

    async def test_deeply_nested_output_becomes_placeholder(self) -> None:
        session, observer, _ = _make_session(
            {
                "alpha": FakeProviderRunner('{"note": 1} prose {' + "[" * 100_000),
                "beta": FakeProviderRunner(_answer("4")),
                "gamma": FakeProviderRunner(_answer("4")),
            }
        )

        result = await session.solve(prompt=_prompt("2+2"))

        assert result.runs[0].is_failure
        assert observer.failed[0].reason.startswith("Failed to parse model output")
        assert [run.final for run in result.runs[1:]] == ["4", "4"]
        assert result.decision.consensus is True


# ---------------------------------------------------------------------------
# Retry
# ---------------------------------------------------------------------------


class TestRetry:
    """Only retriable errors are retried, up to max_attempts."""

    async def test_retriable_error_is_retried(self) -> None:
        alpha = FakeProviderRunner(
            [ProviderInvocationError("alpha", "rate limited", retriable=True), _answer("4")]
        )
        session, observer, _ = _make_session(
            {
                "alpha": alpha,
                "beta": FakeProviderRunner(_answer("4")),
                "gamma": FakeProviderRunner(_answer("4")),
            },
            config=_make_config(execution=_fast_retry(max_attempts=2)),
        )

        result = await session.solve(prompt=_prompt())

        assert len(alpha.requests) == 2
        assert not result.runs[0].is_failure
        assert len(observer.retries) == 1
        assert observer.retries[0].attempt == 1

    async def test_non_retriable_error_is_not_retried(self) -> None:
        alpha = FakeProviderRunner([ProviderInvocationError("alpha", "401"), _answer("4")])
        session, observer, _ = _make_session(
            {
                "alpha": alpha,
                "beta": FakeProviderRunner(_answer("4")),
                "gamma": FakeProviderRunner(_answer("4")),
            },
            config=_make_config(execution=_fast_retry(max_attempts=3)),
        )

        result = await session.solve(prompt=_prompt())

        assert len(alpha.requests) == 1
        assert result.runs[0].is_failure
        assert observer.retries == []

    async def test_gives_up_after_max_attempts(self) -> None:
        alpha = FakeProviderRunner(ProviderInvocationError("alpha", "busy", retriable=True))
        session, observer, _ = _make_session(
            {
                "alpha": alpha,
                "beta": FakeProviderRunner(_answer("4")),
                "gamma": FakeProviderRunner(_answer("4")),
            },
            config=_make_config(execution=_fast_retry(max_attempts=3)),
        )

        result = await session.solve(prompt=_prompt())

        assert len(alpha.requests) == 3
        assert result.runs[0].is_failure
        assert [event.attempt for event in observer.retries] == [1, 2]

    async def test_single_attempt_is_not_retried(self) -> None:
        alpha = FakeProviderRunner(ProviderInvocationError("alpha", "busy", retriable=True))
        session, observer, _ = _make_session(
            {
                "alpha": alpha,
                "beta": FakeProviderRunner(_answer("4")),
                "gamma": FakeProviderRunner(_answer("4")),
            },
            config=_make_config(execution=_fast_retry(max_attempts=1)),
        )

        result = await session.solve(prompt=_prompt())

        assert len(alpha.requests) == 1
        assert result.runs[0].is_failure
        assert observer.retries == []


# ---------------------------------------------------------------------------
# Optional providers
# ---------------------------------------------------------------------------


class TestOptionalProviders:
    """Optional plan items run only when included."""

    async def test_optional_item_skipped_by_default(self) -> None:
        runners = {
            pid: FakeProviderRunner(_answer("4")) for pid in ("alpha", "beta", "gamma", "delta")
        }
        session, _, _ = _make_session(runners, config=_make_config(with_optional=True))

        result = await session.solve(prompt=_prompt())

        assert len(result.runs) == 3
        assert runners["delta"].requests == []

    async def test_included_optional_item_runs_last(self) -> None:
        runners = {
            pid: FakeProviderRunner(_answer("4")) for pid in ("alpha", "beta", "gamma", "delta")
        }
        session, _, _ = _make_session(runners, config=_make_config(with_optional=True))

        result = await session.solve(prompt=_prompt(), include=["delta"])

        assert [run.provider for run in result.runs][-1] == "Delta"
        assert result.decision.reason == "4 of 4 agree"


# ---------------------------------------------------------------------------
# Observer events
# ---------------------------------------------------------------------------


class TestObserverEvents:
    """The session reports its lifecycle to the observer."""

    async def test_session_started_and_completed(self) -> None:
        session, observer, _ = _make_session(
            {pid: FakeProviderRunner(_answer("4")) for pid in ("alpha", "beta", "gamma")}
        )

        result = await session.solve(prompt=_prompt())

        assert len(observer.started) == 1
        assert observer.started[0].plan_items == ["alpha-1", "beta", "gamma"]
        assert len(observer.completed) == 1
        assert observer.completed[0].session_id == result.session_id
        assert observer.completed[0].winner_run_id == result.decision.winner.id
        assert observer.completed[0].consensus is True

    async def test_run_events(self) -> None:
        session, observer, _ = _make_session(
            {pid: FakeProviderRunner(_answer("4")) for pid in ("alpha", "beta", "gamma")}
        )

        await session.solve(prompt=_prompt())

        assert len(observer.runs_started) == 3
        assert len(observer.verified) == 3
        assert {event.final for event in observer.verified} == {"4"}
