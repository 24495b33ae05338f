"""
smoke_test_scoring.py - Live match-scoring smoke test.

Scores one sample veteran against a sample job with the configured
provider, once within a stated age limit and once over it.

Usage (from repo root):
    CAREERBRIDGE_LLM_KEY=<your-key> python scripts/smoke_test_scoring.py

Requirements:
    - pip install -e . must have been run.
    - Internet access to the configured provider.

Exit codes:
    0  - all checks passed
    1  - a check failed
    2  - no API key configured (misconfiguration)
"""
from __future__ import annotations

from pprint import pprint

from careerbridge import config
from careerbridge.llm.scorer import MatchScorerError, build_scorer
from careerbridge.matching.types import MatchRequest

PASS = "✅"
FAIL = "❌"

_JOB = (
    "Title: Warehouse Operations Supervisor\n"
    "Employer: Harbor Freight Lines\n"
    "Location: Long Beach, CA\n"
    "Required Skills: Leadership, Logistics Management, Forklift Certification\n"
    "\n"
    "Supervise a 20-person crew moving containers between the port and our warehouses."
)


def check(label: str, condition: bool) -> bool:
    print(f"  {PASS if condition else FAIL}  {label}")
    return condition


def main() -> int:
    print("\n=== CareerBridge Smoke Test: Match Scoring ===\n")

    if not config.llm_configured():
        print("ERROR: no LLM key set. Export CAREERBRIDGE_LLM_KEY (or a provider key).")
        return 2

    try:
        scorer = build_scorer()
    except MatchScorerError as exc:
        print(f"ERROR: {exc}")
        return 2

    base = dict(
        veteran_skills=["Leadership", "Logistics Management", "Risk Management"],
        job_description=_JOB,
        desired_industry=["Logistics"],
        desired_job_title=["Operations Supervisor"],
        veteran_highest_qualification="Associate Degree",
        max_age_requirement=45,
    )

    print(">>> Scoring within the age limit...")
    within = scorer.score(MatchRequest(veteran_age=38, **base))
    pprint(within.to_dict())

    print("\n>>> Scoring over the age limit...")
    over = scorer.score(MatchRequest(veteran_age=58, **base))
    pprint(over.to_dict())

    print("\n>>> Checks")
    ok = all([
        check("score within 0-100", 0 <= within.match_score <= 100),
        check("relevant skills are the veteran's own", set(within.relevant_skills) <= set(base["veteran_skills"])),
        check("forklift certification reported missing",
              any("forklift" in s.lower() for s in within.missing_skills)),
        check("over-age score is lower", over.match_score < within.match_score),
    ])
    return 0 if ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
