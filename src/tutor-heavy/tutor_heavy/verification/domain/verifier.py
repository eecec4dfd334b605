"""Output verifier — parses one raw model response and scores its plausibility.

Scoring starts from a base confidence for a syntactically valid answer and adds
independent adjustments. Every check records exactly one signal, in a fixed
order: numeric, multiple choice, units, short reason, check.
"""

import json
import re

from pydantic import ValidationError

from tutor_heavy.verification.domain.answer import ModelOutput, VerifiedAnswer
from tutor_heavy.verification.domain.errors import ExpressionError, MalformedOutputError
from tutor_heavy.verification.domain.expression import evaluate_expression
from tutor_heavy.verification.domain.prompt import Prompt

BASE_SCORE = 0.25

NUMERIC_MATCH_BONUS = 0.5
NUMERIC_MISMATCH_PENALTY = -0.15
NUMERIC_UNCHECKED_BONUS = 0.1
NUMERIC_UNPARSEABLE_PENALTY = -0.1
MCQ_BONUS = 0.15
UNITS_MATCH_BONUS = 0.1
UNITS_MISMATCH_PENALTY = -0.05
REASON_BONUS = 0.05
CHECK_BONUS = 0.05

MIN_REASON_LENGTH = 8
MIN_CHECK_LENGTH = 4

_NUMERIC_PATTERN = re.compile(r"(-?\d+[\d.,]*(?:e[-+]?\d+)?)", re.IGNORECASE)
_MCQ_PATTERN = re.compile(r"\b([A-DА-Д])[).:]", re.IGNORECASE)
_UNIT_PATTERN = re.compile(r"([A-Za-zμµΩ°/%]+)$")
_RELATION_LINE = re.compile(r"[=<>]|\d")
_RELATION_PREFIX = re.compile(r"^.*[:=]")

_decoder = json.JSONDecoder()


def parse_model_output(raw: str) -> ModelOutput:
    """Extract and validate the answer object embedded in raw model text.

    The span between the first ``{`` and the last ``}`` is tried first, so
    prose or code fences around a single object are tolerated. When that span
    does not validate (e.g. stray braces in surrounding prose), every ``{`` is
    tried in order with a JSON decoder and the first valid object wins.

    Raises:
        MalformedOutputError: if no valid answer object can be extracted.
    """
    text = raw.strip()
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1:
        raise MalformedOutputError("no JSON object found in response")

    try:
        return ModelOutput.model_validate_json(text[start : end + 1])
    except ValidationError as exc:
        span_error = exc

    position = start
    while position != -1:
        try:
            candidate, _ = _decoder.raw_decode(text, position)
        except (json.JSONDecodeError, RecursionError):
            # Deeply nested brackets exhaust the decoder's recursion limit.
            candidate = None
        if isinstance(candidate, dict):
            try:
                return ModelOutput.model_validate(candidate)
            except ValidationError:
                pass
        position = text.find("{", position + 1)

    raise MalformedOutputError(_describe(span_error))


def verify(prompt: Prompt, raw: str) -> VerifiedAnswer:
    """Parse raw model output and score it against the prompt.

    Pure: no I/O and no shared state, safe to call concurrently for every run.

    Raises:
        MalformedOutputError: if the raw text carries no valid answer object.
    """
    output = parse_model_output(raw)
    final = output.final.strip()
    signals: list[str] = []
    score = BASE_SCORE

    score += _check_numeric(final=final, content=prompt.content, signals=signals)
    score += _check_choice(final=final, signals=signals)
    score += _check_units(units=output.units, signals=signals)

    if len(output.short_reason) >= MIN_REASON_LENGTH:
        signals.append("short_reason: brief justification provided")
        score += REASON_BONUS
    else:
        signals.append("short_reason: too short")

    if len(output.check) >= MIN_CHECK_LENGTH:
        signals.append("check: verification provided")
        score += CHECK_BONUS
    else:
        signals.append("check: too short")

    return VerifiedAnswer(
        final=final,
        units=output.units,
        short_reason=output.short_reason,
        check=output.check,
        score=round(score, 3),
        signals=signals,
    )


def recompute_expected(content: str) -> float | None:
    """Recompute a reference value from the prompt, trying the last relation first.

    Each candidate line (one containing a relation sign or a digit) contributes
    the text after its last ``:`` or ``=``. Lines that fail to evaluate are
    skipped. Returns None when no line yields a number.
    """
    lines = [line.strip() for line in content.splitlines()]
    candidates = [line for line in lines if line and _RELATION_LINE.search(line)]
    for line in reversed(candidates):
        expression = _RELATION_PREFIX.sub("", line).strip()
        if not expression:
            continue
        try:
            return evaluate_expression(expression)
        except ExpressionError:
            continue
    return None


def _check_numeric(final: str, content: str, signals: list[str]) -> float:
    match = _NUMERIC_PATTERN.search(final)
    if match is None:
        signals.append("numeric-check: no numeric answer")
        return 0.0

    token = re.sub(r"[,\s]", "", match.group(1))
    try:
        value = evaluate_expression(token)
    except ExpressionError as exc:
        signals.append(f"numeric-check: could not parse ({exc.reason})")
        return NUMERIC_UNPARSEABLE_PENALTY

    expected = recompute_expected(content)
    if expected is None:
        signals.append("numeric-check: no reference value, left unchanged")
        return NUMERIC_UNCHECKED_BONUS

    delta = abs(expected - value)
    tolerance = max(1e-6, abs(expected) * 1e-6)
    if delta <= tolerance:
        signals.append(f"numeric-check: match (|Δ|={delta:.2e})")
        return NUMERIC_MATCH_BONUS
    signals.append(f"numeric-check: mismatch (|Δ|={delta:.2e})")
    return NUMERIC_MISMATCH_PENALTY


def _check_choice(final: str, signals: list[str]) -> float:
    match = _MCQ_PATTERN.search(final)
    if match is None:
        signals.append("mcq-choice: none")
        return 0.0
    signals.append(f"mcq-choice: option {match.group(1).upper()}")
    return MCQ_BONUS


def _check_units(units: str | None, signals: list[str]) -> float:
    cleaned = (units or "").strip()
    if not cleaned:
        signals.append("units: not provided")
        return 0.0
    if _UNIT_PATTERN.search(cleaned):
        signals.append(f"units: {cleaned}")
        return UNITS_MATCH_BONUS
    signals.append("units: format not recognized")
    return UNITS_MISMATCH_PENALTY


def _describe(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    if location:
        return f"{location}: {first['msg']}"
    return first["msg"]
