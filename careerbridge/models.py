from __future__ import annotations

import random
import string
import time
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class Role(str, Enum):
    VETERAN = "veteran"
    MENTOR = "mentor"
    EMPLOYER = "employer"


class ApplicationStatus(str, Enum):
    APPLIED = "Applied"
    UNDER_REVIEW = "Under Review"
    INTERVIEW_SCHEDULED = "Interview Scheduled"
    OFFER_RECEIVED = "Offer Received"
    REJECTED = "Rejected"


class EmploymentType(str, Enum):
    FULL_TIME = "Full-time"
    PART_TIME = "Part-time"
    CONTRACT = "Contract"
    INTERNSHIP = "Internship"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    return utc_now().isoformat()


def normalize_whitespace(text: str) -> str:
    return " ".join((text or "").split()).strip()


def normalize_email(email: str) -> str:
    return normalize_whitespace(email).lower()


def clean_list(values: Optional[List[str]]) -> List[str]:
    """Trimmed, non-empty, first-occurrence-wins (case-insensitive)."""
    out: List[str] = []
    seen = set()
    for v in values or []:
        nv = normalize_whitespace(str(v))
        if nv and nv.lower() not in seen:
            out.append(nv)
            seen.add(nv.lower())
    return out


def split_csv(raw: Optional[str]) -> List[str]:
    return clean_list((raw or "").split(","))


def _stamped_id(prefix: str) -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"{prefix}-{int(time.time() * 1000)}-{suffix}"


def new_user_id() -> str:
    return _stamped_id("user")


def new_job_id() -> str:
    return _stamped_id("job")


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(p.capitalize() for p in rest)


def _to_wire(obj: Any) -> Dict[str, Any]:
    """
    Serialize a flat dataclass to camelCase keys, dropping unset optionals.
    Enums are written as their values.
    """
    d: Dict[str, Any] = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        if value is None:
            continue
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, list):
            value = list(value)
        d[_camel(f.name)] = value
    return d


def _from_wire(cls: Any, data: Dict[str, Any]) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise TypeError(f"{cls.__name__} record must be an object, got {type(data).__name__}")
    kwargs: Dict[str, Any] = {}
    for f in fields(cls):
        if not f.init:
            continue
        key = _camel(f.name)
        if key in data:
            kwargs[f.name] = data[key]
    return kwargs


def _require_text(name: str, value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a string, got {type(value).__name__}")
    return value


def _optional_text(name: str, value: Any) -> Optional[str]:
    if value is None:
        return None
    return _require_text(name, value)


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise TypeError("expected a number, got bool")
    return int(value)


_USER_TEXT_FIELDS = (
    "id",
    "military_branch",
    "military_experience_summary",
    "location_preference",
    "employment_type",
    "highest_qualification",
    "professional_title",
    "company",
    "industry",
    "mentoring_availability",
    "mentoring_communication",
    "mentoring_motivation",
    "company_name",
    "company_industry",
    "company_website",
    "company_size",
    "company_description",
    "contact_person_job_title",
    "hiring_focus",
)


@dataclass
class User:
    """
    A registered person. Role is fixed at creation; attributes that belong
    to another role are carried but unused.
    """
    email: str
    name: str
    role: Role
    id: str = field(default_factory=new_user_id)

    # Veteran
    military_branch: Optional[str] = None
    years_of_service: Optional[int] = None
    military_experience_summary: Optional[str] = None
    skills: Optional[List[str]] = None
    desired_industry: Optional[List[str]] = None
    desired_job_title: Optional[List[str]] = None
    location_preference: Optional[str] = None
    employment_type: Optional[str] = None
    age: Optional[int] = None
    highest_qualification: Optional[str] = None

    # Mentor
    professional_title: Optional[str] = None
    company: Optional[str] = None
    industry: Optional[str] = None
    years_professional_experience: Optional[int] = None
    areas_of_expertise: Optional[List[str]] = None
    mentoring_availability: Optional[str] = None
    mentoring_communication: Optional[str] = None
    mentoring_motivation: Optional[str] = None

    # Employer
    company_name: Optional[str] = None
    company_industry: Optional[str] = None
    company_website: Optional[str] = None
    company_size: Optional[str] = None
    company_description: Optional[str] = None
    contact_person_job_title: Optional[str] = None
    company_locations: Optional[List[str]] = None
    hiring_focus: Optional[str] = None

    def __post_init__(self) -> None:
        self.role = Role(self.role)
        self.email = normalize_email(_require_text("email", self.email))
        self.name = normalize_whitespace(_require_text("name", self.name))
        for text_field in _USER_TEXT_FIELDS:
            _optional_text(text_field, getattr(self, text_field))
        for list_field in ("skills", "desired_industry", "desired_job_title", "areas_of_expertise", "company_locations"):
            value = getattr(self, list_field)
            if value is not None:
                if not isinstance(value, list):
                    raise TypeError(f"{list_field} must be a list")
                setattr(self, list_field, clean_list(value))
        for int_field in ("years_of_service", "age", "years_professional_experience"):
            setattr(self, int_field, _optional_int(getattr(self, int_field)))

    @property
    def display_name(self) -> str:
        return self.company_name or self.name

    def to_dict(self) -> Dict[str, Any]:
        return _to_wire(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        kwargs = _from_wire(cls, data)
        for required in ("id", "email", "name", "role"):
            if required not in kwargs:
                raise KeyError(required)
        return cls(**kwargs)


@dataclass(frozen=True)
class Job:
    """
    A posting. Immutable once created; employer_id references an Employer.
    """
    id: str
    employer_id: str
    employer_name: str
    title: str
    description: str
    location: str
    required_skills: List[str]
    posted_date: str
    max_age_requirement: Optional[int] = None
    employment_type: Optional[EmploymentType] = None

    def __post_init__(self) -> None:
        for text_field in ("id", "employer_id", "employer_name", "title", "description", "location", "posted_date"):
            _require_text(text_field, getattr(self, text_field))
        object.__setattr__(self, "title", normalize_whitespace(self.title))
        object.__setattr__(self, "location", normalize_whitespace(self.location))
        object.__setattr__(self, "description", (self.description or "").strip())
        if not isinstance(self.required_skills, list):
            raise TypeError("requiredSkills must be a list")
        object.__setattr__(self, "required_skills", clean_list(self.required_skills))
        object.__setattr__(self, "max_age_requirement", _optional_int(self.max_age_requirement))
        if self.employment_type is not None:
            object.__setattr__(self, "employment_type", EmploymentType(self.employment_type))

    def to_dict(self) -> Dict[str, Any]:
        return _to_wire(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Job":
        return cls(**_from_wire(cls, data))


@dataclass(frozen=True)
class Application:
    """
    One veteran's application to one job; (job_id, veteran_id) is the key.
    Status changes produce a new record.
    """
    job_id: str
    veteran_id: str
    status: ApplicationStatus = ApplicationStatus.APPLIED
    applied_date: str = field(default_factory=utc_now_iso)

    def __post_init__(self) -> None:
        for text_field in ("job_id", "veteran_id", "applied_date"):
            _require_text(text_field, getattr(self, text_field))
        object.__setattr__(self, "status", ApplicationStatus(self.status))

    @property
    def key(self) -> tuple[str, str]:
        return self.job_id, self.veteran_id

    def to_dict(self) -> Dict[str, Any]:
        return _to_wire(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Application":
        kwargs = _from_wire(cls, data)
        for required in ("job_id", "veteran_id", "applied_date"):
            if required not in kwargs:
                raise KeyError(required)
        return cls(**kwargs)
