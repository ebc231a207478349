from __future__ import annotations

"""Scoring engine: compare recalled input to ground truth.

Five policies, one per content family group:

- positional: character-by-character over the ground truth (digits, binary)
- tokens: word-by-word after splitting free text (word list, word palace)
- identity: k-th selection vs k-th presented identity (image sequence)
- paired: first/last name fields per face, two points per face
- raw counter: live correct/attempted count (quick math)

Every policy yields a ScoreCard with a per-position comparison so the
result view can show what went wrong. An empty ground truth scores 0.
"""

import math
import re
from dataclasses import dataclass
from typing import Any, Hashable, Literal, Mapping, Sequence, Tuple

Precision = Literal["integer", "one_decimal"]
Delimiter = Literal["lines", "words"]

_WORD_SPLIT = re.compile(r"[\s,]+")


@dataclass(frozen=True)
class Comparison:
    target: str
    given: str
    correct: bool


@dataclass(frozen=True)
class ScoreCard:
    correct: int
    total: int
    percentage: float
    comparison: Tuple[Comparison, ...] = ()
    extras: Tuple[str, ...] = ()


def percentage(correct: int, total: int, precision: Precision = "integer") -> float:
    """Half-up rounded percentage; a zero denominator yields 0."""
    if total <= 0:
        return 0
    raw = correct * 100.0 / total
    if precision == "integer":
        return int(math.floor(raw + 0.5))
    return math.floor(raw * 10.0 + 0.5) / 10.0


def strip_to_alphabet(text: str, alphabet: str) -> str:
    allowed = set(alphabet)
    return "".join(ch for ch in (text or "") if ch in allowed)


def score_positional(truth: str, recalled: str, alphabet: str, precision: Precision = "integer") -> ScoreCard:
    """Index-by-index match after dropping characters outside `alphabet`.

    Input past the end of the ground truth is ignored.
    """
    clean = strip_to_alphabet(recalled, alphabet)
    rows = []
    correct = 0
    for i, target in enumerate(truth):
        given = clean[i] if i < len(clean) else ""
        ok = given == target
        if ok:
            correct += 1
        rows.append(Comparison(target=target, given=given, correct=ok))
    total = len(truth)
    return ScoreCard(correct=correct, total=total, percentage=percentage(correct, total, precision), comparison=tuple(rows))


def tokenize(text: str, delimiter: Delimiter) -> list[str]:
    if delimiter == "lines":
        parts = (text or "").split("\n")
    else:
        parts = _WORD_SPLIT.split((text or "").strip())
    return [p.strip().lower() for p in parts if p.strip()]


def score_tokens(
    truth: Sequence[str],
    recalled: str,
    delimiter: Delimiter = "words",
    precision: Precision = "integer",
) -> ScoreCard:
    """Case-insensitive positional word match; trailing extras never count."""
    given_tokens = tokenize(recalled, delimiter)
    targets = [t.lower() for t in truth]
    rows = []
    correct = 0
    for i, target in enumerate(targets):
        given = given_tokens[i] if i < len(given_tokens) else ""
        ok = given == target
        if ok:
            correct += 1
        rows.append(Comparison(target=target, given=given, correct=ok))
    extras = tuple(given_tokens[len(targets):])
    for extra in extras:
        rows.append(Comparison(target="", given=extra, correct=False))
    total = len(targets)
    return ScoreCard(
        correct=correct,
        total=total,
        percentage=percentage(correct, total, precision),
        comparison=tuple(rows),
        extras=extras,
    )


def score_identity(
    truth_ids: Sequence[Hashable],
    selected_ids: Sequence[Hashable],
    precision: Precision = "integer",
) -> ScoreCard:
    """The k-th selection fills recall position k."""
    rows = []
    correct = 0
    for i, target in enumerate(truth_ids):
        given = selected_ids[i] if i < len(selected_ids) else None
        ok = given is not None and given == target
        if ok:
            correct += 1
        rows.append(Comparison(target=str(target), given="" if given is None else str(given), correct=ok))
    total = len(truth_ids)
    return ScoreCard(correct=correct, total=total, percentage=percentage(correct, total, precision), comparison=tuple(rows))


def _norm(value: Any) -> str:
    return str(value or "").strip().lower()


def score_paired(
    truth: Mapping[Hashable, Tuple[str, str]],
    answers: Mapping[Hashable, Mapping[str, str]],
    precision: Precision = "integer",
) -> ScoreCard:
    """Two independent fields per item; maximum is 2 x len(truth)."""
    rows = []
    correct = 0
    for key, (first, last) in truth.items():
        entry = answers.get(key) or {}
        for field_name, target in (("first", first), ("last", last)):
            given = str(entry.get(field_name, "") or "")
            ok = _norm(given) == _norm(target)
            if ok:
                correct += 1
            rows.append(Comparison(target=target, given=given.strip(), correct=ok))
    total = 2 * len(truth)
    return ScoreCard(correct=correct, total=total, percentage=percentage(correct, total, precision), comparison=tuple(rows))


def score_raw_counter(correct: int, attempted: int, precision: Precision = "integer") -> ScoreCard:
    correct = max(0, int(correct))
    attempted = max(correct, int(attempted))
    return ScoreCard(correct=correct, total=attempted, percentage=percentage(correct, attempted, precision))
