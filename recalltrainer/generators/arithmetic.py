from __future__ import annotations

"""Arithmetic problem stream for quick-math trials.

The stream is checked on every keystroke: the moment the typed text
parses to the current answer, the problem counts as solved and a new one
is drawn. Explicit submits of a wrong answer count as an attempt.
"""

import random
import re
from dataclasses import dataclass
from typing import List, Optional

ADD_PROBABILITY = 0.7
MAX_WIDTH = 9

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


@dataclass(frozen=True)
class Problem:
    a: int
    b: int
    op: str
    answer: int

    def text(self) -> str:
        return f"{self.a} {self.op} {self.b}"


def operand_range(width: int) -> tuple[int, int]:
    width = min(MAX_WIDTH, max(1, int(width)))
    return 10 ** (width - 1), 10 ** width - 1


def make_problem(a: int, b: int, op: str) -> Problem:
    """Build a problem; subtraction swaps operands so the answer is never negative."""
    if op not in ("+", "-"):
        raise ValueError(f"Unsupported operation: {op}")
    if op == "-" and b > a:
        a, b = b, a
    answer = a + b if op == "+" else a - b
    return Problem(a=a, b=b, op=op, answer=answer)


def generate_problem(width: int, rng: random.Random, op: Optional[str] = None) -> Problem:
    lo, hi = operand_range(width)
    a = rng.randint(lo, hi)
    b = rng.randint(lo, hi)
    if op is None:
        op = "+" if rng.random() < ADD_PROBABILITY else "-"
    return make_problem(a, b, op)


def parse_answer(text: str) -> Optional[int]:
    """Leading integer of `text`, or None ("12abc" parses as 12)."""
    m = _LEADING_INT.match(text or "")
    if m is None:
        return None
    return int(m.group(1))


class ProblemStream:
    """Current problem plus the running correct/attempted counters."""

    def __init__(self, width: int, rng: random.Random, op: Optional[str] = None) -> None:
        self.width = width
        self.rng = rng
        self.op = op
        self.correct = 0
        self.attempted = 0
        self.typed = ""
        self.history: List[Problem] = []
        self.current = generate_problem(width, rng, op)

    def _advance(self) -> None:
        self.history.append(self.current)
        self.current = generate_problem(self.width, self.rng, self.op)
        self.typed = ""

    def keystroke(self, text: str) -> bool:
        """Replace the typed text; True if it solved the current problem."""
        self.typed = text
        value = parse_answer(text)
        if value is not None and value == self.current.answer:
            self.correct += 1
            self.attempted += 1
            self._advance()
            return True
        return False

    def submit(self, text: str) -> bool:
        """Explicit enter: a wrong answer is an attempt and moves on."""
        if self.keystroke(text):
            return True
        if not (text or "").strip():
            return False
        self.attempted += 1
        self._advance()
        return False
