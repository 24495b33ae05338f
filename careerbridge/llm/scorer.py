"""
careerbridge/llm/scorer.py

MatchScorer protocol + LLMMatchScorer / FailoverMatchScorer implementations.

- One LLM call per (veteran, job) pair, hard per-request timeout
- Response must be a JSON object with matchScore / relevantSkills /
  missingSkills / overallFit; anything else is a MatchScorerError
- Skill lists and the age policy are enforced on the parsed result
- API key MUST NOT appear in any log or exception message
"""
from __future__ import annotations

import json
import random
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

from careerbridge import config as _config
from careerbridge.llm.prompt import _SYSTEM_PROMPT, build_match_prompt
from careerbridge.log import get_logger
from careerbridge.matching.policy import apply_age_policy, enforce_skill_sets, normalize_score
from careerbridge.matching.types import MatchRequest, MatchResult

log = get_logger(__name__)

TRANSIENT_HINTS = (
    "rate limit",
    "ratelimit",
    "too many requests",
    "overloaded",
    "temporarily overloaded",
    "timeout",
    "timed out",
    "try again",
    "server error",
    "503",
    "529",
)

# Top-level optional imports so tests can patch them via module attribute.
# The actual ImportError (if library not installed) is raised at call time.
try:
    import anthropic
except ImportError:
    anthropic = None  # type: ignore[assignment]

try:
    import openai
except ImportError:
    openai = None  # type: ignore[assignment]


class MatchScorerError(Exception):
    """Raised when scoring fails for any reason (timeout, bad output, API error)."""


class MatchScorer(Protocol):
    def score(self, request: MatchRequest, *, timeout: Optional[float] = None) -> MatchResult:
        ...


def parse_match_response(text: str) -> Dict[str, Any]:
    """
    Extract the JSON object from a model reply. Code fences and stray prose
    around the object are tolerated.
    """
    body = (text or "").strip()
    if not body:
        raise MatchScorerError("LLM returned an empty response.")
    start = body.find("{")
    end = body.rfind("}")
    if start == -1 or end <= start:
        raise MatchScorerError("LLM response contained no JSON object.")
    try:
        data = json.loads(body[start:end + 1])
    except ValueError:
        raise MatchScorerError("LLM response was not valid JSON.") from None
    if not isinstance(data, dict):
        raise MatchScorerError("LLM response was not a JSON object.")
    return data


def _string_list(data: Dict[str, Any], key: str) -> List[str]:
    value = data.get(key)
    if value is None:
        raise MatchScorerError(f"LLM response missing '{key}'.")
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise MatchScorerError(f"LLM response field '{key}' must be a list of strings.")
    return value


def build_match_result(
        data: Dict[str, Any],
        request: MatchRequest,
        *,
        age_penalty_factor: float,
) -> MatchResult:
    """Validate a decoded response and apply the post-scoring policies."""
    if "matchScore" not in data:
        raise MatchScorerError("LLM response missing 'matchScore'.")
    try:
        score = normalize_score(data["matchScore"])
    except (TypeError, ValueError):
        raise MatchScorerError("LLM response field 'matchScore' is not a number.") from None

    relevant, missing = enforce_skill_sets(
        veteran_skills=request.veteran_skills,
        relevant=_string_list(data, "relevantSkills"),
        missing=_string_list(data, "missingSkills"),
    )

    overall_fit = data.get("overallFit")
    if not isinstance(overall_fit, str) or not overall_fit.strip():
        raise MatchScorerError("LLM response missing 'overallFit'.")

    result = MatchResult(
        match_score=score,
        relevant_skills=relevant,
        missing_skills=missing,
        overall_fit=overall_fit.strip(),
    )
    return apply_age_policy(result, request, penalty_factor=age_penalty_factor)


class LLMMatchScorer:
    """
    Calls an LLM (Anthropic or OpenAI) to score one veteran against one job.
    """

    _MAX_TOKENS = 800

    def __init__(
            self,
            *,
            api_key: str,
            model: Optional[str] = None,
            provider: str = "anthropic",
            timeout_seconds: Optional[float] = None,
            qualification_weight: Optional[int] = None,
            age_penalty_factor: Optional[float] = None,
    ) -> None:
        if not api_key:
            raise MatchScorerError("LLM API key must not be empty.")
        match_cfg = _config.load_match_config()
        self._api_key = api_key
        self._provider = provider.strip().lower()
        self._model = (model or _config._DEFAULT_MODELS.get(self._provider) or _config.CAREERBRIDGE_LLM_MODEL).strip()
        self._timeout = timeout_seconds if timeout_seconds is not None else match_cfg.timeout_seconds
        self._qualification_weight = (
            qualification_weight if qualification_weight is not None else match_cfg.qualification_weight
        )
        self._age_penalty_factor = (
            age_penalty_factor if age_penalty_factor is not None else match_cfg.age_penalty_factor
        )

        if self._provider not in ("anthropic", "openai"):
            raise MatchScorerError(
                f"Unsupported provider '{self._provider}'. Use 'anthropic' or 'openai'."
            )

    @property
    def provider(self) -> str:
        return self._provider

    @property
    def model(self) -> str:
        return self._model

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def score(self, request: MatchRequest, *, timeout: Optional[float] = None) -> MatchResult:
        """
        Return the MatchResult for one request.
        Raises MatchScorerError on any failure.
        The API key is never included in the exception message.
        """
        prompt = build_match_prompt(request, qualification_weight=self._qualification_weight)
        deadline = timeout if timeout is not None else self._timeout
        try:
            if self._provider == "anthropic":
                raw = self._call_anthropic(prompt, deadline)
            else:
                raw = self._call_openai(prompt, deadline)
        except MatchScorerError:
            raise
        except Exception as exc:
            # Sanitize: never let the key propagate through exception messages
            raise MatchScorerError(f"LLM call failed: {type(exc).__name__}") from None

        data = parse_match_response(raw)
        return build_match_result(data, request, age_penalty_factor=self._age_penalty_factor)

    # ------------------------------------------------------------------
    # Provider implementations
    # ------------------------------------------------------------------

    def _call_anthropic(self, prompt: str, timeout: float) -> str:
        if anthropic is None:
            raise MatchScorerError(
                "Package 'anthropic' is not installed. Run: pip install anthropic"
            )

        client = anthropic.Anthropic(api_key=self._api_key)
        try:
            message = client.messages.create(
                model=self._model,
                max_tokens=self._MAX_TOKENS,
                timeout=timeout,
                system=_SYSTEM_PROMPT,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APITimeoutError:
            raise MatchScorerError(f"Anthropic API timed out after {timeout:g} seconds.")
        except anthropic.APIError as exc:
            raise MatchScorerError(f"Anthropic API error: {type(exc).__name__}") from None

        for block in message.content:
            if block.type == "text":
                return block.text
        raise MatchScorerError("Anthropic returned no text content.")

    def _call_openai(self, prompt: str, timeout: float) -> str:
        if openai is None:
            raise MatchScorerError(
                "Package 'openai' is not installed. Run: pip install openai"
            )

        client = openai.OpenAI(api_key=self._api_key, timeout=timeout)
        try:
            response = client.chat.completions.create(
                model=self._model,
                max_tokens=self._MAX_TOKENS,
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": _SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
            )
        except openai.APITimeoutError:
            raise MatchScorerError(f"OpenAI API timed out after {timeout:g} seconds.")
        except openai.APIError as exc:
            raise MatchScorerError(f"OpenAI API error: {type(exc).__name__}") from None

        content = response.choices[0].message.content
        if not content:
            raise MatchScorerError("OpenAI returned empty content.")
        return content


def _is_transient_error(err: Exception) -> bool:
    msg = (str(err) or "").lower()
    return any(h in msg for h in TRANSIENT_HINTS)


def _sleep_backoff(attempt: int) -> None:
    # attempt=0 -> ~0.8s, attempt=1 -> ~1.6s, with jitter
    base = 0.8 * (2 ** attempt)
    jitter = random.uniform(0.0, 0.25)
    time.sleep(base + jitter)


@dataclass
class FailoverState:
    consecutive_failures: int = 0
    disabled: bool = False
    disabled_reason: Optional[str] = None
    # Stick to the first successful candidate within a session
    sticky_provider: Optional[str] = None
    sticky_model: Optional[str] = None


class FailoverMatchScorer:
    """
    - tries a provider/model chain
    - retries transient errors (rate limit/overloaded/timeout)
    - circuit breaker after N consecutive requests that exhausted the chain
    - sticky success (don't flap once one works)

    Shared across scoring threads; state changes happen under a lock.
    """

    def __init__(
            self,
            *,
            api_key_resolver: Callable[[str], Optional[str]],
            candidates: List[Tuple[str, str]],
            max_retries: int = 2,
            breaker_consecutive_fails: int = 2,
            timeout_seconds: Optional[float] = None,
    ) -> None:
        self._api_key_resolver = api_key_resolver
        self._candidates = list(candidates)
        self._max_retries = max(0, max_retries)
        self._breaker_fails = max(1, breaker_consecutive_fails)
        self._timeout = timeout_seconds
        self._state = FailoverState()
        self._lock = threading.Lock()

    def is_disabled(self) -> bool:
        with self._lock:
            return self._state.disabled

    def score(self, request: MatchRequest, *, timeout: Optional[float] = None) -> MatchResult:
        with self._lock:
            if self._state.disabled:
                raise MatchScorerError(f"LLM scoring disabled: {self._state.disabled_reason}")
            ordered = self._ordered_candidates()

        last_err: Optional[Exception] = None

        for provider, model in ordered:
            api_key = self._api_key_resolver(provider)
            if not api_key:
                last_err = MatchScorerError(f"Missing API key for provider: {provider}")
                continue

            scorer = LLMMatchScorer(
                api_key=api_key,
                provider=provider,
                model=model,
                timeout_seconds=self._timeout,
            )

            for attempt in range(self._max_retries + 1):
                try:
                    out = scorer.score(request, timeout=timeout)
                    with self._lock:
                        self._state.consecutive_failures = 0
                        self._state.disabled = False
                        self._state.disabled_reason = None
                        self._state.sticky_provider = provider
                        self._state.sticky_model = model
                    return out
                except MatchScorerError as e:
                    last_err = e
                    if _is_transient_error(e) and attempt < self._max_retries:
                        _sleep_backoff(attempt)
                        continue
                    break

            log.warning("Scoring candidate %s/%s failed: %s", provider, model, last_err)

        # Only a request that exhausted the whole chain counts toward the breaker.
        with self._lock:
            self._state.consecutive_failures += 1
            if self._state.consecutive_failures >= self._breaker_fails and not self._state.disabled:
                self._state.disabled = True
                self._state.disabled_reason = (
                    f"circuit-breaker tripped after {self._state.consecutive_failures} failed requests"
                )
                log.warning("LLM scoring %s", self._state.disabled_reason)

        if last_err is None:
            last_err = MatchScorerError("LLM scoring failed: no candidates available")
        raise last_err

    def _ordered_candidates(self) -> List[Tuple[str, str]]:
        if self._state.sticky_provider and self._state.sticky_model:
            sticky = (self._state.sticky_provider, self._state.sticky_model)
            rest = [c for c in self._candidates if c != sticky]
            return [sticky] + rest
        return list(self._candidates)


def build_scorer(
        *,
        api_key_resolver: Callable[[str], Optional[str]] = _config.resolve_api_key,
) -> MatchScorer:
    """
    Scorer from the environment: the failover chain when
    CAREERBRIDGE_LLM_CHAIN is set, otherwise the single configured provider.
    Raises MatchScorerError when no API key is available.
    """
    failover = _config.load_llm_failover_config()
    match_cfg = _config.load_match_config()
    if failover.chain:
        return FailoverMatchScorer(
            api_key_resolver=api_key_resolver,
            candidates=failover.chain,
            max_retries=failover.max_retries,
            breaker_consecutive_fails=failover.breaker_consecutive_fails,
            timeout_seconds=match_cfg.timeout_seconds,
        )

    provider = _config.CAREERBRIDGE_LLM_PROVIDER
    api_key = api_key_resolver(provider)
    if not api_key:
        raise MatchScorerError(
            f"No API key configured for '{provider}'. Set CAREERBRIDGE_LLM_KEY."
        )
    return LLMMatchScorer(
        api_key=api_key,
        provider=provider,
        model=_config.CAREERBRIDGE_LLM_MODEL,
        timeout_seconds=match_cfg.timeout_seconds,
    )
