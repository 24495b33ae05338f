from careerbridge.llm.prompt import NOT_SPECIFIED, build_match_prompt
from careerbridge.matching.types import MatchRequest


def _request(**overrides):
    base = dict(
        veteran_skills=["Leadership", "Cybersecurity"],
        job_description="Title: Security Analyst\n\nMonitor the SOC.",
        desired_industry=["Technology"],
        desired_job_title=["Security Analyst"],
        veteran_age=41,
        max_age_requirement=None,
        veteran_highest_qualification="Bachelor's Degree",
    )
    base.update(overrides)
    return MatchRequest(**base)


def test_prompt_lists_every_input():
    prompt = build_match_prompt(_request())

    assert "Veteran Skills: Leadership, Cybersecurity" in prompt
    assert "Veteran Desired Industries: Technology" in prompt
    assert "Veteran Desired Job Titles: Security Analyst" in prompt
    assert "Veteran Age: 41" in prompt
    assert "Veteran Highest Qualification: Bachelor's Degree" in prompt
    assert "Monitor the SOC." in prompt
    assert f"Job Maximum Age Requirement: {NOT_SPECIFIED}" in prompt


def test_missing_inputs_render_as_not_specified():
    prompt = build_match_prompt(_request(
        veteran_skills=[], desired_industry=[], desired_job_title=[],
        veteran_age=None, veteran_highest_qualification=None,
    ))

    assert f"Veteran Skills: {NOT_SPECIFIED}" in prompt
    assert f"Veteran Desired Industries: {NOT_SPECIFIED}" in prompt
    assert f"Veteran Age: {NOT_SPECIFIED}" in prompt
    assert f"Veteran Highest Qualification: {NOT_SPECIFIED}" in prompt
    assert "lists no skills" in prompt


def test_max_age_adds_explicit_age_statement():
    without = build_match_prompt(_request())
    with_limit = build_match_prompt(_request(max_age_requirement=40))

    assert "Job Maximum Age Requirement: 40" in with_limit
    assert "explicit sentence" in with_limit
    assert "explicit sentence" not in without
    assert "significantly reduce the match score" in with_limit


def test_qualification_weight_changes_instruction():
    narrative = build_match_prompt(_request())
    weighted = build_match_prompt(_request(), qualification_weight=15)

    assert "no fixed weight" in narrative
    assert "at most 15 points" in weighted
    assert "no fixed weight" not in weighted
