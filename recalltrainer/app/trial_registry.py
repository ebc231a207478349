from __future__ import annotations

"""Trial registry and metadata.

Expose trial metadata, resolve and clamp parameters, and provide the
per-family pieces a session needs: ground-truth generation, the
presentation plan, the recall buffer and the scoring policy.
"""

import random
from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional, Sequence

from ..audio.speech import spell_group
from ..generators.arithmetic import ProblemStream
from ..generators.banks import FACE_BANK_SIZE, IMAGE_BANK_SIZE, ContentBanks
from ..generators.faces import generate_face_cards
from ..generators.images import generate_image_sequence
from ..generators.sequences import BINARY, DIGITS, chunk, generate_sequence
from ..generators.words import generate_word_list, generate_word_mix
from ..scoring.engine import (
    Delimiter,
    Precision,
    ScoreCard,
    score_identity,
    score_paired,
    score_positional,
    score_raw_counter,
    score_tokens,
)
from ..session.buffers import FieldRecall, LiveRecall, SelectionRecall, TextRecall
from ..session.config import TrialConfig, clamp_params
from ..session.states import GroundTruth
from ..timing.scheduler import Mode, PresentationPlan
from .explain import warn

RecallMode = Literal["text", "selection", "fields", "live"]
ScoringPolicy = Literal["positional", "tokens", "identity", "paired", "raw"]


@dataclass(frozen=True)
class TrialMeta:
    id: str
    name: str
    description: str
    parameters_schema: Dict[str, Any]
    presets: Dict[str, Dict[str, Any]]
    scheduler: Mode
    recall: RecallMode
    scoring: ScoringPolicy
    precision: Precision = "integer"
    alphabet: str = DIGITS
    delimiter: Delimiter = "words"
    preload: bool = False


def _int(minimum: int, maximum: int, default: int) -> Dict[str, Any]:
    return {"type": "integer", "minimum": minimum, "maximum": maximum, "default": default}


def _schema(**props: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": "object", "properties": props, "required": list(props.keys())}


def _digits_meta() -> TrialMeta:
    from .presets import DIGITS_PRESETS

    return TrialMeta(
        id="digits",
        name="Digits",
        description="Memorize a digit string at your own pace, then type it back.",
        parameters_schema=_schema(count=_int(10, 1000, 10)),
        presets=DIGITS_PRESETS,
        scheduler="manual",
        recall="text",
        scoring="positional",
        precision="one_decimal",
    )


def _words_meta() -> TrialMeta:
    from .presets import WORDS_PRESETS

    return TrialMeta(
        id="words",
        name="Word List",
        description="Memorize a list of words at your own pace and recall them in order.",
        parameters_schema=_schema(count=_int(5, 100, 10)),
        presets=WORDS_PRESETS,
        scheduler="manual",
        recall="text",
        scoring="tokens",
        precision="one_decimal",
        delimiter="words",
    )


def _number_wall_meta() -> TrialMeta:
    from .presets import NUMBER_WALL_PRESETS

    return TrialMeta(
        id="number_wall",
        name="Number Wall",
        description="A timed wall of grouped digits.",
        parameters_schema=_schema(
            count=_int(5, 1000, 100),
            time_limit_s=_int(30, 3600, 300),
            group_size=_int(1, 10, 5),
        ),
        presets=NUMBER_WALL_PRESETS,
        scheduler="countdown",
        recall="text",
        scoring="positional",
    )


def _binary_surge_meta() -> TrialMeta:
    from .presets import BINARY_SURGE_PRESETS

    return TrialMeta(
        id="binary_surge",
        name="Binary Surge",
        description="A timed run of grouped binary digits.",
        parameters_schema=_schema(
            count=_int(3, 3000, 120),
            time_limit_s=_int(30, 3600, 300),
            group_size=_int(1, 10, 3),
        ),
        presets=BINARY_SURGE_PRESETS,
        scheduler="countdown",
        recall="text",
        scoring="positional",
        alphabet=BINARY,
    )


def _word_palace_meta() -> TrialMeta:
    from .presets import WORD_PALACE_PRESETS

    return TrialMeta(
        id="word_palace",
        name="Word Palace",
        description="A timed mix of concrete and abstract words, recalled one per line.",
        parameters_schema=_schema(
            count=_int(1, 60, 40),
            time_limit_s=_int(30, 3600, 300),
            abstract_pct=_int(0, 100, 50),
        ),
        presets=WORD_PALACE_PRESETS,
        scheduler="countdown",
        recall="text",
        scoring="tokens",
        delimiter="lines",
    )


def _spoken_numbers_meta() -> TrialMeta:
    from .presets import SPOKEN_NUMBERS_PRESETS

    return TrialMeta(
        id="spoken_numbers",
        name="Spoken Numbers",
        description="Digits read aloud in small groups at a fixed pace.",
        parameters_schema=_schema(
            count=_int(1, 500, 50),
            pace_ms=_int(300, 5000, 1000),
            group_size=_int(1, 4, 2),
        ),
        presets=SPOKEN_NUMBERS_PRESETS,
        scheduler="spoken",
        recall="text",
        scoring="positional",
    )


def _image_sequence_meta() -> TrialMeta:
    from .presets import IMAGE_SEQUENCE_PRESETS

    return TrialMeta(
        id="image_sequence",
        name="Image Sequence",
        description="Images shown one at a time; pick them back in order.",
        parameters_schema=_schema(
            count=_int(2, IMAGE_BANK_SIZE, 20),
            pace_ms=_int(100, 10000, 1000),
        ),
        presets=IMAGE_SEQUENCE_PRESETS,
        scheduler="paced",
        recall="selection",
        scoring="identity",
        preload=True,
    )


def _names_meta() -> TrialMeta:
    from .presets import NAMES_PRESETS

    return TrialMeta(
        id="names",
        name="Names and Faces",
        description="Learn a name for each face, then name the faces in shuffled order.",
        parameters_schema=_schema(
            count=_int(1, FACE_BANK_SIZE, 20),
            time_limit_s=_int(30, 3600, 300),
        ),
        presets=NAMES_PRESETS,
        scheduler="countdown",
        recall="fields",
        scoring="paired",
    )


def _quick_math_meta() -> TrialMeta:
    from .presets import QUICK_MATH_PRESETS

    return TrialMeta(
        id="quick_math",
        name="Quick Math",
        description="Solve as many additions and subtractions as you can before time runs out.",
        parameters_schema=_schema(
            time_limit_s=_int(10, 3600, 60),
            digit_width=_int(1, 4, 2),
        ),
        presets=QUICK_MATH_PRESETS,
        scheduler="countdown",
        recall="live",
        scoring="raw",
    )


def list_trials() -> List[TrialMeta]:
    return [
        _digits_meta(),
        _words_meta(),
        _number_wall_meta(),
        _binary_surge_meta(),
        _word_palace_meta(),
        _spoken_numbers_meta(),
        _image_sequence_meta(),
        _names_meta(),
        _quick_math_meta(),
    ]


def get_trial(trial_id: str) -> TrialMeta:
    for m in list_trials():
        if m.id == trial_id:
            return m
    raise KeyError(f"Unknown trial id: {trial_id}")


def resolve_params(meta: TrialMeta, preset: str = "default", overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """preset -> overrides -> clamp. Unknown presets fall back to `default`."""
    if preset not in meta.presets:
        warn(f"Unknown preset '{preset}' for {meta.id}, using 'default'.")
        preset = "default"
    params = {**meta.presets.get(preset, {}), **{k: v for k, v in (overrides or {}).items() if v is not None}}
    return clamp_params(meta.parameters_schema, params)


# --- Per-family session pieces ---

def generate_truth(meta: TrialMeta, config: TrialConfig, banks: ContentBanks, rng: random.Random) -> GroundTruth:
    family = meta.id
    if family in ("digits", "number_wall", "binary_surge", "spoken_numbers"):
        seq = generate_sequence(config.count, meta.alphabet, rng)
        groups = chunk(seq, config.group_size) if family != "digits" else []
        return GroundTruth(family=family, items=tuple(seq), groups=tuple(groups))
    if family == "words":
        return GroundTruth(family=family, items=tuple(generate_word_list(config.count, banks.words, rng)))
    if family == "word_palace":
        words = generate_word_mix(config.count, config.abstract_pct or 0, banks.words, rng)
        return GroundTruth(family=family, items=tuple(words))
    if family == "image_sequence":
        seq = generate_image_sequence(config.count, banks.images, rng)
        return GroundTruth(family=family, items=seq.sequence, options=seq.options)
    if family == "names":
        cards = generate_face_cards(config.count, banks.faces, banks.names, rng)
        return GroundTruth(family=family, items=tuple(cards))
    if family == "quick_math":
        # problems are drawn live by the recall buffer's stream
        return GroundTruth(family=family)
    raise KeyError(f"Unsupported trial for generation: {family}")


def assets_for(meta: TrialMeta, truth: GroundTruth) -> Sequence[Any]:
    return truth.items if meta.preload else ()


def make_plan(meta: TrialMeta, config: TrialConfig, truth: GroundTruth, session_cfg: Optional[Dict[str, Any]] = None) -> PresentationPlan:
    session_cfg = session_cfg or {}
    if meta.scheduler == "manual":
        return PresentationPlan(mode="manual")
    if meta.scheduler == "countdown":
        return PresentationPlan(mode="countdown", seconds=int(config.time_limit_s or 0))
    if meta.scheduler == "spoken":
        return PresentationPlan(
            mode="spoken",
            steps=len(truth.groups),
            pace_ms=int(config.pace_ms or 1000),
            lead_in_ms=int(session_cfg.get("spoken_lead_in_ms", 1000)),
            utterances=tuple(spell_group(g) for g in truth.groups),
        )
    if meta.scheduler == "paced":
        return PresentationPlan(
            mode="paced",
            steps=len(truth),
            pace_ms=int(config.pace_ms or 1000),
            grace_ms=int(session_cfg.get("image_grace_ms", 500)),
        )
    raise KeyError(f"Unsupported scheduler: {meta.scheduler}")


def make_buffer(meta: TrialMeta, config: TrialConfig, rng: random.Random):
    if meta.recall == "text":
        return TextRecall()
    if meta.recall == "selection":
        return SelectionRecall()
    if meta.recall == "fields":
        return FieldRecall()
    if meta.recall == "live":
        return LiveRecall(ProblemStream(int(config.digit_width or 2), rng))
    raise KeyError(f"Unsupported recall mode: {meta.recall}")


def score(meta: TrialMeta, truth: GroundTruth, buffer: Any) -> ScoreCard:
    if meta.scoring == "positional":
        return score_positional(truth.text, buffer.text, meta.alphabet, meta.precision)
    if meta.scoring == "tokens":
        return score_tokens([str(w) for w in truth.items], buffer.text, meta.delimiter, meta.precision)
    if meta.scoring == "identity":
        return score_identity([e.id for e in truth.items], list(buffer.selected), meta.precision)
    if meta.scoring == "paired":
        pairs = {c.id: (c.first, c.last) for c in truth.items}
        return score_paired(pairs, buffer.entries, meta.precision)
    if meta.scoring == "raw":
        return score_raw_counter(buffer.stream.correct, buffer.stream.attempted, meta.precision)
    raise KeyError(f"Unsupported scoring policy: {meta.scoring}")
