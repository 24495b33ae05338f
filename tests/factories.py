"""Builders shared by the unit tests."""
from typing import Callable, Optional

from careerbridge.matching.types import MatchRequest, MatchResult
from careerbridge.models import EmploymentType, Job, Role, User
from careerbridge.store import JobFields


def make_employer(email: str = "hr@acme.example", company: str = "Acme Corp") -> User:
    return User(email=email, name="Dana Hiring", role=Role.EMPLOYER, company_name=company)


def make_veteran(
        email: str = "vet@example.com",
        skills: Optional[list] = None,
        age: Optional[int] = None,
) -> User:
    return User(
        email=email,
        name="Sam Veteran",
        role=Role.VETERAN,
        military_branch="Army",
        skills=["Leadership", "Cybersecurity"] if skills is None else skills,
        desired_industry=["Logistics"],
        desired_job_title=["Operations Manager"],
        age=age,
        highest_qualification="Bachelor's Degree",
    )


def make_job(job_id: str, title: str, *, max_age: Optional[int] = None) -> Job:
    return Job(
        id=job_id,
        employer_id="user-employer",
        employer_name="Acme Corp",
        title=title,
        description=f"{title} role supporting regional freight operations.",
        location="Norfolk, VA",
        required_skills=["Leadership"],
        posted_date="2026-01-01T00:00:00+00:00",
        max_age_requirement=max_age,
        employment_type=EmploymentType.FULL_TIME,
    )


def logistics_job_fields(max_age: Optional[int] = None) -> JobFields:
    return JobFields(
        title="Logistics Coordinator",
        description="Coordinate inbound and outbound freight across three regional warehouses.",
        location="Norfolk, VA",
        required_skills=["Leadership", "Logistics Management"],
        max_age_requirement=max_age,
    )


class FakeScorer:
    """
    Scorer stand-in: `respond(request)` decides the outcome per call.
    Records every request it sees.
    """

    def __init__(self, respond: Callable[[MatchRequest], MatchResult]) -> None:
        self._respond = respond
        self.requests: list = []

    def score(self, request: MatchRequest, *, timeout: Optional[float] = None) -> MatchResult:
        self.requests.append(request)
        return self._respond(request)


def result_with_score(score: int) -> MatchResult:
    return MatchResult(
        match_score=score,
        relevant_skills=["Leadership"],
        missing_skills=["Logistics Management"],
        overall_fit="Solid leadership background; logistics experience is the main gap.",
    )
