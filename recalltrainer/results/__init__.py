from .schema import FAMILIES, TrialResult

__all__ = ["FAMILIES", "TrialResult"]
