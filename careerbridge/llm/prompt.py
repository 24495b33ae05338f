"""
careerbridge/llm/prompt.py

Builds the match-scoring prompt from a MatchRequest.

The policy text below defines what a correct score means:
- skills drive the score
- industry/title preferences adjust it moderately
- exceeding a stated maximum age reduces it significantly; otherwise age is neutral
- qualification is contextual (optionally weighted, see qualification_weight)
The model must answer with a single JSON object.
"""
from __future__ import annotations

from typing import List, Optional

from careerbridge.matching.types import MatchRequest

NOT_SPECIFIED = "Not specified"

_SYSTEM_PROMPT = """\
You are an AI-powered career advisor, specializing in helping military veterans translate their \
skills and preferences to civilian job opportunities.
You evaluate how well one veteran fits one job opening and answer ONLY with a JSON object, \
no prose before or after it, with exactly these keys:
  "matchScore": number from 0 to 100,
  "relevantSkills": array of strings taken from the veteran's skills,
  "missingSkills": array of strings required by the job but absent from the veteran's skills,
  "overallFit": string.\
"""


def _join_or_unspecified(values: Optional[List[str]]) -> str:
    cleaned = [v for v in (values or []) if v]
    return ", ".join(cleaned) if cleaned else NOT_SPECIFIED


def _value_or_unspecified(value: object) -> str:
    if value is None or value == "":
        return NOT_SPECIFIED
    return str(value)


def _qualification_instruction(weight: int) -> str:
    if weight <= 0:
        return (
            "   - The veteran's highest qualification and how it relates to the job description. "
            "Treat it as context for the summary and a soft influence only; it has no fixed weight."
        )
    return (
        "   - The veteran's highest qualification and how it relates to the job description. "
        f"Qualification fit may move the score by at most {weight} points in either direction."
    )


def build_match_prompt(request: MatchRequest, *, qualification_weight: int = 0) -> str:
    """
    Assemble the user-turn prompt for one (veteran, job) pair.
    Returns a single string ready to send as the user message.
    """
    age_line = ""
    if request.max_age_requirement is not None:
        age_line = (
            "   The job states a maximum age requirement, so the overall fit MUST include "
            "an explicit sentence on whether the veteran's age is within it.\n"
        )

    prompt = f"""\
Your task is to:
1. Calculate a match score (0-100). This score should primarily be based on the alignment between \
the veteran's skills and the job requirements.
   Also consider:
   - If the job's industry and title align with the veteran's stated preferences, and let this \
moderately influence the score.
   - The veteran's age in relation to the job's maximum age requirement. If a maximum age requirement \
is specified and the veteran is older, significantly reduce the match score. If no maximum age \
requirement is specified, or if the veteran's age is within the limit, age should not negatively \
impact the score.
{_qualification_instruction(qualification_weight)}
2. Identify which skills from the veteran's profile are most relevant to the job opening.
3. Identify any skills required for the job that are NOT present in the veteran's profile.
4. Provide a summary of how well the veteran aligns with the job. This summary should cover skill \
alignment, potential skill gaps, areas of strength, explicitly state how the job's industry and role \
compare to the veteran's preferences, and how the veteran's age and qualification align with the job.
{age_line}
If the veteran lists no skills, still score the job from preferences and qualification and say so \
in the summary.

Veteran Skills: {_join_or_unspecified(request.veteran_skills)}
Veteran Desired Industries: {_join_or_unspecified(request.desired_industry)}
Veteran Desired Job Titles: {_join_or_unspecified(request.desired_job_title)}
Veteran Age: {_value_or_unspecified(request.veteran_age)}
Veteran Highest Qualification: {_value_or_unspecified(request.veteran_highest_qualification)}
Job Description: {request.job_description}
Job Maximum Age Requirement: {_value_or_unspecified(request.max_age_requirement)}

Respond with the JSON object only.\
"""
    return prompt
