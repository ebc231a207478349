from .config import TrialConfig, build_trial_config, clamp_params, clamp_value
from .states import (
    Configuring,
    Finished,
    GroundTruth,
    InvalidTransition,
    Loading,
    Presenting,
    Recalling,
    SessionState,
    Timestamps,
    transition,
)

__all__ = [
    "TrialConfig",
    "build_trial_config",
    "clamp_params",
    "clamp_value",
    "Configuring",
    "Finished",
    "GroundTruth",
    "InvalidTransition",
    "Loading",
    "Presenting",
    "Recalling",
    "SessionState",
    "Timestamps",
    "transition",
]
