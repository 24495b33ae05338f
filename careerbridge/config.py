# careerbridge/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

# --- Storage ---

CAREERBRIDGE_DATA_DIR: str = os.environ.get("CAREERBRIDGE_DATA_DIR", "").strip() or ".careerbridge"

# --- Logging ---

CAREERBRIDGE_LOG_LEVEL: str = os.environ.get("CAREERBRIDGE_LOG_LEVEL", "WARNING").strip().upper() or "WARNING"

# --- LLM Match Scoring ---

# Never logged, never written to disk, never included in structured output.
CAREERBRIDGE_LLM_KEY: str | None = os.environ.get("CAREERBRIDGE_LLM_KEY") or None

# Provider selection: "anthropic" | "openai"  (default: anthropic)
CAREERBRIDGE_LLM_PROVIDER: str = os.environ.get("CAREERBRIDGE_LLM_PROVIDER", "anthropic").strip().lower()

# Override via CAREERBRIDGE_LLM_MODEL env var.
_DEFAULT_MODELS: dict[str, str] = {
    "anthropic": "claude-sonnet-4-6",
    "openai": "gpt-4o-mini",
}
CAREERBRIDGE_LLM_MODEL: str = (
        os.environ.get("CAREERBRIDGE_LLM_MODEL", "").strip()
        or _DEFAULT_MODELS.get(CAREERBRIDGE_LLM_PROVIDER, "claude-sonnet-4-6")
)

_PROVIDER_KEY_VARS: dict[str, Tuple[str, ...]] = {
    "anthropic": ("CAREERBRIDGE_ANTHROPIC_KEY", "CAREERBRIDGE_LLM_KEY", "ANTHROPIC_API_KEY"),
    "openai": ("CAREERBRIDGE_OPENAI_KEY", "CAREERBRIDGE_LLM_KEY", "OPENAI_API_KEY"),
}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _parse_llm_chain(raw: str | None) -> List[Tuple[str, str]]:
    """
    Parses: "anthropic/claude-sonnet-4-6,openai/gpt-4o-mini"
    -> [("anthropic","claude-sonnet-4-6"), ...]
    """
    if not raw:
        return []
    items: List[Tuple[str, str]] = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        if "/" not in part:
            # Allow "gpt-4o-mini" shorthand -> assume openai
            items.append(("openai", part))
            continue
        provider, model = part.split("/", 1)
        provider = provider.strip().lower()
        model = model.strip()
        if provider and model:
            items.append((provider, model))
    return items


def data_dir() -> Path:
    return Path(os.environ.get("CAREERBRIDGE_DATA_DIR", "").strip() or CAREERBRIDGE_DATA_DIR)


def resolve_api_key(provider: str) -> Optional[str]:
    """First non-empty key for the provider, most specific variable first."""
    for name in _PROVIDER_KEY_VARS.get(provider.strip().lower(), ()):
        value = os.getenv(name)
        if value:
            return value
    return None


def llm_configured() -> bool:
    return any(resolve_api_key(p) for p in _PROVIDER_KEY_VARS)


@dataclass(frozen=True)
class LLMFailoverConfig:
    chain: List[Tuple[str, str]]
    max_retries: int
    breaker_consecutive_fails: int


def load_llm_failover_config() -> LLMFailoverConfig:
    return LLMFailoverConfig(
        chain=_parse_llm_chain(os.getenv("CAREERBRIDGE_LLM_CHAIN")),
        max_retries=_env_int("CAREERBRIDGE_LLM_MAX_RETRIES", 2),
        breaker_consecutive_fails=_env_int("CAREERBRIDGE_LLM_CIRCUIT_BREAKER_FAILS", 2),
    )


@dataclass(frozen=True)
class MatchConfig:
    timeout_seconds: float
    max_workers: int
    # 0 keeps qualification purely narrative
    qualification_weight: int
    age_penalty_factor: float


def load_match_config() -> MatchConfig:
    timeout = _env_float("CAREERBRIDGE_MATCH_TIMEOUT_SECONDS", 20.0)
    factor = _env_float("CAREERBRIDGE_AGE_PENALTY_FACTOR", 0.5)
    return MatchConfig(
        timeout_seconds=timeout if timeout > 0 else 20.0,
        max_workers=max(1, _env_int("CAREERBRIDGE_MATCH_MAX_WORKERS", 8)),
        qualification_weight=min(100, max(0, _env_int("CAREERBRIDGE_QUALIFICATION_WEIGHT", 0))),
        age_penalty_factor=min(1.0, max(0.0, factor)),
    )
