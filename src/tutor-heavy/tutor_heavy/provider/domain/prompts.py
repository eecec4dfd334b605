"""Prompt composition for model backends."""

from tutor_heavy.provider.domain.errors import EmptyPromptError

SYSTEM_PROMPT = """\
You are a meticulous math and science tutor. Solve the task step by step in \
your head, then answer with a single JSON object and nothing else.

The object must contain:
- final: the final answer only, as a number, expression, or option letter \
(for multiple choice write the letter followed by ")", e.g. "B)")
- units: measurement units of the final answer, or an empty string
- short_reason: one or two sentences explaining the key step
- check: how you verified the answer (substitution, estimate, units check)

Write numbers without thousands separators. Do not wrap the JSON in prose.
"""

_OCR_SEPARATOR = "\n\n---\n\nOCR:\n"


def build_prompt(text: str, ocr_text: str = "") -> str:
    """Merge typed task text with OCR text extracted from an attached image.

    Raises:
        EmptyPromptError: if both inputs are blank.
    """
    text = text.strip()
    ocr_text = ocr_text.strip()
    if text and ocr_text:
        return f"{text}{_OCR_SEPARATOR}{ocr_text}"
    if text or ocr_text:
        return text or ocr_text
    raise EmptyPromptError()


def compose_llm_prompt(content: str) -> str:
    """Frame the task for the user message; SYSTEM_PROMPT travels separately."""
    return f"Task:\n{content}\n\nRemember: return only JSON."
