from .policy import apply_age_policy, enforce_skill_sets, normalize_score
from .ranking import rank_by_score
from .types import MatchRequest, MatchResult

__all__ = [
    "apply_age_policy",
    "enforce_skill_sets",
    "normalize_score",
    "rank_by_score",
    "MatchRequest",
    "MatchResult",
]
