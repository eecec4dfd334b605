"""Arbiter — consensus-first, score-fallback selection over verified runs."""

import re
from collections.abc import Sequence

from tutor_heavy.arbitration.domain.decision import ArbiterDecision
from tutor_heavy.arbitration.domain.errors import EmptyInputError
from tutor_heavy.arbitration.domain.run import TutorRun

BEST_BY_SCORE_REASON = "best by score"

_DISALLOWED = re.compile(r"[^a-zа-я0-9.,+\-]")


def normalize_answer(text: str) -> str:
    """Lowercase and strip everything outside Latin/Cyrillic letters, digits and ``.,+-``."""
    return _DISALLOWED.sub("", text.lower()).strip()


def pick_winner(runs: Sequence[TutorRun]) -> ArbiterDecision:
    """Select one run from a completed snapshot.

    Runs are grouped by normalized final answer in first-seen order. The first
    group with two or more members is the consensus group and its highest
    scoring member wins. Without any such group the highest scoring run
    overall wins. Score ties go to the earlier run.

    Raises:
        EmptyInputError: if runs is empty.
    """
    if not runs:
        raise EmptyInputError()

    groups: dict[str, list[TutorRun]] = {}
    for run in runs:
        groups.setdefault(normalize_answer(run.final), []).append(run)

    for members in groups.values():
        if len(members) >= 2:
            return ArbiterDecision(
                winner=_highest_score(members),
                consensus=True,
                reason=f"{len(members)} of {len(runs)} agree",
            )

    return ArbiterDecision(
        winner=_highest_score(runs),
        consensus=False,
        reason=BEST_BY_SCORE_REASON,
    )


def _highest_score(runs: Sequence[TutorRun]) -> TutorRun:
    # max() keeps the first of equal maxima, preserving input order on ties.
    return max(runs, key=lambda run: run.score)
