from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class MatchRequest:
    """
    One scoring call. to_dict() produces the wire contract keys.
    """
    veteran_skills: List[str]
    job_description: str
    desired_industry: List[str] = field(default_factory=list)
    desired_job_title: List[str] = field(default_factory=list)
    veteran_age: Optional[int] = None
    max_age_requirement: Optional[int] = None
    veteran_highest_qualification: Optional[str] = None

    @property
    def over_age_limit(self) -> bool:
        return (
            self.max_age_requirement is not None
            and self.veteran_age is not None
            and self.veteran_age > self.max_age_requirement
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "veteranSkills": list(self.veteran_skills),
            "jobDescription": self.job_description,
        }
        if self.desired_industry:
            d["desiredIndustry"] = list(self.desired_industry)
        if self.desired_job_title:
            d["desiredJobTitle"] = list(self.desired_job_title)
        if self.veteran_age is not None:
            d["veteranAge"] = self.veteran_age
        if self.max_age_requirement is not None:
            d["maxAgeRequirement"] = self.max_age_requirement
        if self.veteran_highest_qualification:
            d["veteranHighestQualification"] = self.veteran_highest_qualification
        return d


@dataclass(frozen=True)
class MatchResult:
    match_score: int  # 0-100
    relevant_skills: List[str]
    missing_skills: List[str]
    overall_fit: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "matchScore": self.match_score,
            "relevantSkills": list(self.relevant_skills),
            "missingSkills": list(self.missing_skills),
            "overallFit": self.overall_fit,
        }
