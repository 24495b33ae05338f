"""
careerbridge/validation.py

Form-level checks for registration and job posting. Builders raise
ValidationError (all field messages at once) and never touch the store.
"""
from __future__ import annotations

import re
from typing import Dict, List, Optional, Sequence, Union
from urllib.parse import urlparse

from careerbridge.models import EmploymentType, Role, User, clean_list, normalize_whitespace, split_csv
from careerbridge.store import JobFields

MILITARY_BRANCHES: List[str] = [
    "Army", "Navy", "Air Force", "Marine Corps", "Coast Guard", "Space Force",
]

COMMON_SKILLS: List[str] = [
    "Leadership",
    "Project Management",
    "Teamwork",
    "Communication",
    "Problem Solving",
    "Technical Repair",
    "Logistics Management",
    "Operations Management",
    "Data Analysis",
    "Cybersecurity",
    "Instruction & Training",
    "Strategic Planning",
    "Risk Management",
    "Adaptability",
    "Discipline",
    "Attention to Detail",
    "Mechanical Aptitude",
    "Electrical Systems",
    "Software Development",
    "Network Administration",
]

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

ListInput = Union[str, Sequence[str], None]


class ValidationError(Exception):
    """One or more form fields are invalid; `errors` maps field -> message."""

    def __init__(self, errors: Dict[str, str]) -> None:
        self.errors = dict(errors)
        super().__init__("; ".join(f"{k}: {v}" for k, v in self.errors.items()))


def _as_list(value: ListInput) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return split_csv(value)
    return clean_list(list(value))


def _text(value: Optional[str]) -> Optional[str]:
    cleaned = normalize_whitespace(value or "")
    return cleaned or None


def _optional_number(errors: Dict[str, str], field: str, value: object, *, minimum: int, message: str) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        number = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        errors[field] = "Must be a whole number"
        return None
    if number < minimum:
        errors[field] = message
        return None
    return number


class _Checker:
    def __init__(self) -> None:
        self.errors: Dict[str, str] = {}

    def min_length(self, field: str, value: Optional[str], n: int, message: str) -> str:
        cleaned = normalize_whitespace(value or "")
        if len(cleaned) < n:
            self.errors[field] = message
        return cleaned

    def email(self, field: str, value: Optional[str]) -> str:
        cleaned = normalize_whitespace(value or "")
        if not _EMAIL_RE.match(cleaned):
            self.errors[field] = "Invalid email address"
        return cleaned

    def raise_if_any(self) -> None:
        if self.errors:
            raise ValidationError(self.errors)


def veteran_from_form(
        *,
        name: str,
        email: str,
        military_branch: str,
        skills: ListInput = None,
        desired_industry: ListInput = None,
        desired_job_title: ListInput = None,
        years_of_service: object = None,
        military_experience_summary: Optional[str] = None,
        location_preference: Optional[str] = None,
        employment_type: Optional[str] = None,
        age: object = None,
        highest_qualification: Optional[str] = None,
) -> User:
    c = _Checker()
    name = c.min_length("name", name, 2, "Name must be at least 2 characters")
    email = c.email("email", email)
    branch = normalize_whitespace(military_branch or "")
    if not branch:
        c.errors["military_branch"] = "Branch is required"
    elif branch.lower() not in {b.lower() for b in MILITARY_BRANCHES}:
        c.errors["military_branch"] = f"Branch must be one of: {', '.join(MILITARY_BRANCHES)}"
    else:
        branch = next(b for b in MILITARY_BRANCHES if b.lower() == branch.lower())
    years = _optional_number(c.errors, "years_of_service", years_of_service, minimum=0,
                             message="Years of service cannot be negative")
    veteran_age = _optional_number(c.errors, "age", age, minimum=1, message="Age must be a positive number")
    c.raise_if_any()

    return User(
        email=email,
        name=name,
        role=Role.VETERAN,
        military_branch=branch,
        years_of_service=years,
        military_experience_summary=_text(military_experience_summary),
        skills=_as_list(skills),
        desired_industry=_as_list(desired_industry),
        desired_job_title=_as_list(desired_job_title),
        location_preference=_text(location_preference),
        employment_type=_text(employment_type),
        age=veteran_age,
        highest_qualification=_text(highest_qualification),
    )


def mentor_from_form(
        *,
        name: str,
        email: str,
        professional_title: str,
        company: str,
        industry: str,
        years_professional_experience: object,
        areas_of_expertise: ListInput,
        mentoring_availability: Optional[str] = None,
        mentoring_communication: Optional[str] = None,
        mentoring_motivation: Optional[str] = None,
) -> User:
    c = _Checker()
    name = c.min_length("name", name, 2, "Name must be at least 2 characters")
    email = c.email("email", email)
    title = c.min_length("professional_title", professional_title, 1, "Job title is required")
    company = c.min_length("company", company, 1, "Company is required")
    industry = c.min_length("industry", industry, 1, "Industry is required")
    years = _optional_number(c.errors, "years_professional_experience", years_professional_experience,
                             minimum=0, message="Years of experience cannot be negative")
    if years is None and "years_professional_experience" not in c.errors:
        c.errors["years_professional_experience"] = "Years of experience is required"
    expertise = _as_list(areas_of_expertise)
    if not expertise:
        c.errors["areas_of_expertise"] = "Please list areas of expertise (comma-separated)"
    motivation = _text(mentoring_motivation)
    if motivation is not None and len(motivation) < 10:
        c.errors["mentoring_motivation"] = "Motivation statement is too short"
    c.raise_if_any()

    return User(
        email=email,
        name=name,
        role=Role.MENTOR,
        professional_title=title,
        company=company,
        industry=industry,
        years_professional_experience=years,
        areas_of_expertise=expertise,
        mentoring_availability=_text(mentoring_availability),
        mentoring_communication=_text(mentoring_communication),
        mentoring_motivation=motivation,
    )


def employer_from_form(
        *,
        company_name: str,
        company_industry: str,
        contact_person_name: str,
        contact_person_email: str,
        company_website: Optional[str] = None,
        company_size: Optional[str] = None,
        company_description: Optional[str] = None,
        contact_person_job_title: Optional[str] = None,
        company_locations: ListInput = None,
        hiring_focus: Optional[str] = None,
) -> User:
    c = _Checker()
    company = c.min_length("company_name", company_name, 1, "Company name is required")
    industry = c.min_length("company_industry", company_industry, 1, "Industry is required")
    contact = c.min_length("contact_person_name", contact_person_name, 2,
                           "Contact name must be at least 2 characters")
    email = c.email("contact_person_email", contact_person_email)
    website = _text(company_website)
    if website is not None:
        parsed = urlparse(website)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            c.errors["company_website"] = "Invalid website URL"
    c.raise_if_any()

    return User(
        email=email,
        name=contact,
        role=Role.EMPLOYER,
        company_name=company,
        company_industry=industry,
        company_website=website,
        company_size=_text(company_size),
        company_description=_text(company_description),
        contact_person_job_title=_text(contact_person_job_title),
        company_locations=_as_list(company_locations),
        hiring_focus=_text(hiring_focus),
    )


def job_fields_from_form(
        *,
        title: str,
        description: str,
        location: str,
        required_skills: ListInput,
        max_age_requirement: object = None,
        employment_type: Optional[str] = None,
) -> JobFields:
    c = _Checker()
    title = c.min_length("title", title, 3, "Job title must be at least 3 characters")
    desc = (description or "").strip()
    if len(desc) < 20:
        c.errors["description"] = "Description must be at least 20 characters"
    location = c.min_length("location", location, 2, "Location is required")
    skills = _as_list(required_skills)
    if not skills:
        c.errors["required_skills"] = "Please list at least one required skill (comma-separated)"
    max_age = _optional_number(c.errors, "max_age_requirement", max_age_requirement, minimum=1,
                               message="Maximum age must be a positive number")
    etype: Optional[EmploymentType] = None
    if employment_type:
        try:
            etype = EmploymentType(employment_type)
        except ValueError:
            allowed = ", ".join(e.value for e in EmploymentType)
            c.errors["employment_type"] = f"Employment type must be one of: {allowed}"
    c.raise_if_any()

    return JobFields(
        title=title,
        description=desc,
        location=location,
        required_skills=skills,
        max_age_requirement=max_age,
        employment_type=etype,
    )
