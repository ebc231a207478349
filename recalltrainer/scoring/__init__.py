from .engine import (
    Comparison,
    ScoreCard,
    percentage,
    score_identity,
    score_paired,
    score_positional,
    score_raw_counter,
    score_tokens,
    strip_to_alphabet,
    tokenize,
)

__all__ = [
    "Comparison",
    "ScoreCard",
    "percentage",
    "score_identity",
    "score_paired",
    "score_positional",
    "score_raw_counter",
    "score_tokens",
    "strip_to_alphabet",
    "tokenize",
]
