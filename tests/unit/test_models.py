import pytest

from careerbridge.models import (
    Application,
    ApplicationStatus,
    EmploymentType,
    Job,
    Role,
    User,
    new_job_id,
    new_user_id,
    split_csv,
)


def test_user_normalizes_email_and_lists():
    u = User(
        email="  Sam.Vet@Example.COM ",
        name="  Sam   Veteran ",
        role="veteran",
        skills=[" Leadership", "leadership", "", "Cybersecurity "],
    )
    assert u.email == "sam.vet@example.com"
    assert u.name == "Sam Veteran"
    assert u.role is Role.VETERAN
    assert u.skills == ["Leadership", "Cybersecurity"]


def test_user_to_dict_uses_camel_case_and_omits_unset():
    u = User(email="a@b.co", name="Al", role=Role.EMPLOYER, id="user-1", company_name="Acme Corp")
    d = u.to_dict()
    assert d == {
        "email": "a@b.co",
        "name": "Al",
        "role": "employer",
        "id": "user-1",
        "companyName": "Acme Corp",
    }


def test_user_display_name_prefers_company():
    assert User(email="a@b.co", name="Al", role=Role.EMPLOYER, company_name="Acme").display_name == "Acme"
    assert User(email="a@b.co", name="Al", role=Role.EMPLOYER).display_name == "Al"


def test_user_from_dict_requires_identity_fields():
    with pytest.raises(KeyError):
        User.from_dict({"email": "a@b.co", "name": "Al", "role": "veteran"})


def test_user_from_dict_rejects_unknown_role():
    with pytest.raises(ValueError):
        User.from_dict({"id": "u", "email": "a@b.co", "name": "Al", "role": "admiral"})


def test_job_round_trips_through_dict():
    job = Job(
        id="job-1",
        employer_id="user-1",
        employer_name="Acme Corp",
        title="Logistics Coordinator",
        description="Coordinate freight.",
        location="Norfolk, VA",
        required_skills=["Leadership", "Logistics Management"],
        posted_date="2026-01-01T00:00:00+00:00",
        max_age_requirement=45,
        employment_type=EmploymentType.FULL_TIME,
    )
    d = job.to_dict()
    assert d["employerId"] == "user-1"
    assert d["requiredSkills"] == ["Leadership", "Logistics Management"]
    assert d["employmentType"] == "Full-time"
    assert Job.from_dict(d) == job


def test_job_rejects_non_list_skills():
    with pytest.raises(TypeError):
        Job.from_dict({
            "id": "job-1", "employerId": "u", "employerName": "A", "title": "T",
            "description": "D", "location": "L", "requiredSkills": "Leadership",
            "postedDate": "2026-01-01",
        })


def test_application_defaults_to_applied_with_timestamp():
    app = Application(job_id="job-1", veteran_id="user-2")
    assert app.status is ApplicationStatus.APPLIED
    assert app.applied_date
    assert app.key == ("job-1", "user-2")
    assert app.to_dict()["status"] == "Applied"


def test_application_status_accepts_wire_values():
    app = Application.from_dict({"jobId": "j", "veteranId": "v", "status": "Interview Scheduled", "appliedDate": "x"})
    assert app.status is ApplicationStatus.INTERVIEW_SCHEDULED


def test_generated_ids_have_prefix_and_are_unique():
    ids = {new_job_id() for _ in range(50)}
    assert len(ids) == 50
    assert all(i.startswith("job-") for i in ids)
    assert new_user_id().startswith("user-")


def test_split_csv_trims_and_dedupes():
    assert split_csv(" Leadership, ,Cybersecurity,leadership ") == ["Leadership", "Cybersecurity"]
    assert split_csv(None) == []


@pytest.mark.parametrize(
    "record",
    [
        {"id": "u", "email": "a@b.co", "name": 5, "role": "veteran"},
        {"id": "u", "email": None, "name": "Al", "role": "veteran"},
        {"id": "u", "email": "a@b.co", "name": "Al", "role": "employer", "companyName": {"x": 1}},
    ],
)
def test_user_rejects_non_string_text(record):
    with pytest.raises(TypeError):
        User.from_dict(record)


def test_job_rejects_non_string_title():
    with pytest.raises(TypeError):
        Job.from_dict({
            "id": "job-1", "employerId": "u", "employerName": "A", "title": 123,
            "description": "D", "location": "L", "requiredSkills": [], "postedDate": "2026-01-01",
        })


def test_application_from_dict_requires_applied_date():
    with pytest.raises(KeyError):
        Application.from_dict({"jobId": "j", "veteranId": "v", "status": "Applied"})
