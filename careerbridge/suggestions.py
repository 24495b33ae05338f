"""
careerbridge/suggestions.py

Job suggestions for a veteran: every visible job is scored concurrently,
each with its own outcome, then the list is ranked by match score.

- READY:       the scorer returned a MatchResult
- UNAVAILABLE: the scorer failed or the deadline passed for that job
- CANCELLED:   the owning view was closed before the job resolved
"""
from __future__ import annotations

import math
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from careerbridge import config
from careerbridge.llm.scorer import MatchScorer, MatchScorerError
from careerbridge.log import get_logger
from careerbridge.matching.ranking import rank_by_score
from careerbridge.matching.types import MatchRequest, MatchResult
from careerbridge.models import Job, User

log = get_logger(__name__)

PROFILE_INCOMPLETE_NOTICE = "Please update your profile with skills to see better job matches."
MATCH_UNAVAILABLE_NOTICE = "Could not fetch match details."

_POLL_SECONDS = 0.1
_GRACE_SECONDS = 2.0


class SuggestionStatus(str, Enum):
    READY = "ready"
    UNAVAILABLE = "unavailable"
    CANCELLED = "cancelled"


class ScoringCancelled(Exception):
    """The token was cancelled before the scoring call started."""


class CancellationToken:
    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass(frozen=True)
class JobSuggestion:
    job: Job
    status: SuggestionStatus
    match: Optional[MatchResult] = None
    error: Optional[str] = None   # user-facing notice
    reason: Optional[str] = None  # developer detail

    @property
    def score(self) -> Optional[int]:
        return self.match.match_score if self.match is not None else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job": self.job.to_dict(),
            "status": self.status.value,
            "match": self.match.to_dict() if self.match is not None else None,
            "error": self.error,
        }


@dataclass(frozen=True)
class SuggestionsResult:
    veteran_id: str
    suggestions: List[JobSuggestion]
    profile_incomplete: bool
    duration_ms: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "veteran_id": self.veteran_id,
            "profile_incomplete": self.profile_incomplete,
            "notice": PROFILE_INCOMPLETE_NOTICE if self.profile_incomplete else None,
            "suggestions": [s.to_dict() for s in self.suggestions],
            "duration_ms": self.duration_ms,
        }


def job_description_text(job: Job) -> str:
    """Free-text description handed to the scorer, built from the posting."""
    lines = [
        f"Title: {job.title}",
        f"Employer: {job.employer_name}",
        f"Location: {job.location}",
    ]
    if job.employment_type is not None:
        lines.append(f"Employment Type: {job.employment_type.value}")
    if job.required_skills:
        lines.append(f"Required Skills: {', '.join(job.required_skills)}")
    lines.append("")
    lines.append(job.description)
    return "\n".join(lines)


def build_match_request(veteran: User, job: Job) -> MatchRequest:
    return MatchRequest(
        veteran_skills=list(veteran.skills or []),
        job_description=job_description_text(job),
        desired_industry=list(veteran.desired_industry or []),
        desired_job_title=list(veteran.desired_job_title or []),
        veteran_age=veteran.age,
        max_age_requirement=job.max_age_requirement,
        veteran_highest_qualification=veteran.highest_qualification,
    )


def _score_one(
        scorer: MatchScorer,
        request: MatchRequest,
        timeout: float,
        token: CancellationToken,
) -> MatchResult:
    if token.cancelled:
        raise ScoringCancelled()
    return scorer.score(request, timeout=timeout)


def _resolve(job: Job, future: Future) -> JobSuggestion:
    try:
        match = future.result()
    except ScoringCancelled:
        return JobSuggestion(job=job, status=SuggestionStatus.CANCELLED)
    except MatchScorerError as exc:
        log.warning("Match unavailable for job %s: %s", job.id, exc)
        return JobSuggestion(
            job=job,
            status=SuggestionStatus.UNAVAILABLE,
            error=MATCH_UNAVAILABLE_NOTICE,
            reason=str(exc),
        )
    except Exception as exc:
        log.error("Unexpected scoring failure for job %s: %s", job.id, type(exc).__name__)
        return JobSuggestion(
            job=job,
            status=SuggestionStatus.UNAVAILABLE,
            error=MATCH_UNAVAILABLE_NOTICE,
            reason=type(exc).__name__,
        )
    return JobSuggestion(job=job, status=SuggestionStatus.READY, match=match)


def score_jobs(
        scorer: MatchScorer,
        veteran: User,
        jobs: Sequence[Job],
        *,
        timeout: float,
        max_workers: int,
        token: Optional[CancellationToken] = None,
) -> List[JobSuggestion]:
    """
    Score every job independently. Returns one JobSuggestion per job, in
    listing order. A failure, timeout or cancellation affects only the jobs
    it hits.
    """
    if not jobs:
        return []
    token = token or CancellationToken()
    workers = max(1, min(max_workers, len(jobs)))

    # Each wave of `workers` jobs gets the full per-request deadline.
    waves = math.ceil(len(jobs) / workers)
    deadline = time.monotonic() + (timeout * waves) + _GRACE_SECONDS

    outcomes: Dict[int, JobSuggestion] = {}
    pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="careerbridge-match")
    futures: Dict[Future, int] = {}
    try:
        for idx, job in enumerate(jobs):
            fut = pool.submit(_score_one, scorer, build_match_request(veteran, job), timeout, token)
            futures[fut] = idx

        pending = set(futures)
        while pending and not token.cancelled:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            done, pending = wait(pending, timeout=min(remaining, _POLL_SECONDS), return_when=FIRST_COMPLETED)
            for fut in done:
                idx = futures[fut]
                outcomes[idx] = _resolve(jobs[idx], fut)
    finally:
        # Running calls finish on their own deadline; their results are dropped.
        pool.shutdown(wait=False, cancel_futures=True)

    for fut, idx in futures.items():
        if idx in outcomes:
            continue
        if fut.done() and not fut.cancelled():
            outcomes[idx] = _resolve(jobs[idx], fut)
        elif token.cancelled:
            outcomes[idx] = JobSuggestion(job=jobs[idx], status=SuggestionStatus.CANCELLED)
        else:
            log.warning("Match timed out for job %s", jobs[idx].id)
            outcomes[idx] = JobSuggestion(
                job=jobs[idx],
                status=SuggestionStatus.UNAVAILABLE,
                error=MATCH_UNAVAILABLE_NOTICE,
                reason="deadline exceeded",
            )

    return [outcomes[i] for i in range(len(jobs))]


def rank_suggestions(suggestions: Sequence[JobSuggestion]) -> List[JobSuggestion]:
    """Descending match score; equal scores and unscored jobs keep listing order."""
    return rank_by_score(suggestions, lambda s: s.score)


class SuggestionView:
    """
    One veteran's suggestions view. Leaving the `with` block (or calling
    close()) cancels whatever scoring is still outstanding.
    """

    def __init__(
            self,
            scorer: MatchScorer,
            *,
            timeout: Optional[float] = None,
            max_workers: Optional[int] = None,
    ) -> None:
        cfg = config.load_match_config()
        self._scorer = scorer
        self._timeout = timeout if timeout is not None else cfg.timeout_seconds
        self._max_workers = max_workers if max_workers is not None else cfg.max_workers
        self.token = CancellationToken()

    def __enter__(self) -> "SuggestionView":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self.token.cancel()

    def load(self, veteran: User, jobs: Sequence[Job]) -> SuggestionsResult:
        start = time.time()
        items = score_jobs(
            self._scorer,
            veteran,
            jobs,
            timeout=self._timeout,
            max_workers=self._max_workers,
            token=self.token,
        )
        return SuggestionsResult(
            veteran_id=veteran.id,
            suggestions=rank_suggestions(items),
            profile_incomplete=not veteran.skills,
            duration_ms=int((time.time() - start) * 1000),
        )
