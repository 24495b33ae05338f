from __future__ import annotations

from typing import Any, List, Sequence

from .types import MatchRequest, MatchResult


def clamp(x: float, lo: float, hi: float) -> float:
    return lo if x < lo else (hi if x > hi else x)


def normalize_score(raw: Any) -> int:
    """
    Coerce a model-reported score to an int in [0, 100].
    Raises ValueError for anything that is not a finite number.
    """
    if isinstance(raw, bool):
        raise ValueError("matchScore must be a number")
    if isinstance(raw, str):
        raw = raw.strip().rstrip("%")
    value = float(raw)
    if value != value or value in (float("inf"), float("-inf")):
        raise ValueError("matchScore must be finite")
    return int(round(clamp(value, 0.0, 100.0)))


def _canonical(items: Sequence[str]) -> dict[str, str]:
    return {s.strip().lower(): s for s in items if s and s.strip()}


def enforce_skill_sets(
        *,
        veteran_skills: Sequence[str],
        relevant: Sequence[str],
        missing: Sequence[str],
) -> tuple[List[str], List[str]]:
    """
    relevant -> only the veteran's own skills (veteran spelling, model order).
    missing  -> drop anything the veteran already lists.
    """
    own = _canonical(veteran_skills)

    relevant_out: List[str] = []
    for s in relevant:
        key = s.strip().lower()
        if key in own and own[key] not in relevant_out:
            relevant_out.append(own[key])

    missing_out: List[str] = []
    seen = set()
    for s in missing:
        key = s.strip().lower()
        if not key or key in own or key in seen:
            continue
        seen.add(key)
        missing_out.append(s.strip())

    return relevant_out, missing_out


def apply_age_policy(result: MatchResult, request: MatchRequest, *, penalty_factor: float) -> MatchResult:
    """
    Over a stated maximum age the score is scaled by penalty_factor.
    No maximum, or within it: the score is returned untouched.
    """
    if not request.over_age_limit:
        return result
    penalized = int(round(result.match_score * clamp(penalty_factor, 0.0, 1.0)))
    return MatchResult(
        match_score=penalized,
        relevant_skills=result.relevant_skills,
        missing_skills=result.missing_skills,
        overall_fit=result.overall_fit,
    )
