"""
Attempt evaluation - decide whether a submission solves a lesson.

The built-in evaluator compares program output against the lesson's expected
output. A sandboxed runner can replace it as long as it keeps the
evaluate(lesson, output) -> Verdict signature.
"""

from typing import Optional, Protocol

from debugquest.schemas import Lesson, Verdict


class Evaluator(Protocol):
    def evaluate(self, lesson: Lesson, submitted_output: Optional[str]) -> Verdict:
        ...


def normalize_output(output: Optional[str]) -> str:
    """Strip leading/trailing whitespace. Internal whitespace is kept."""
    return (output or "").strip()


def evaluate(lesson: Lesson, submitted_output: Optional[str]) -> Verdict:
    """Pass iff the trimmed output equals the trimmed expected output."""
    if normalize_output(submitted_output) == normalize_output(lesson.expected_output):
        return Verdict.PASS
    return Verdict.FAIL


class OutputMatchEvaluator:
    """Exact output matching after trimming both ends."""

    def evaluate(self, lesson: Lesson, submitted_output: Optional[str]) -> Verdict:
        return evaluate(lesson, submitted_output)
