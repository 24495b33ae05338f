import json
import logging

from careerbridge.models import ApplicationStatus, Role
from careerbridge.storage import (
    ALL_KEYS,
    KEY_ALL_USERS,
    KEY_APPLICATIONS,
    KEY_CURRENT_USER,
    KEY_JOBS,
    JsonFileStorage,
    MemoryStorage,
)
from careerbridge.store import ProfileStore, Session, StoreError
from factories import logistics_job_fields, make_employer, make_veteran


# ---------------------------------------------------------------------------
# register / login / logout
# ---------------------------------------------------------------------------

def test_register_signs_in_and_persists(store, storage):
    session = Session()
    result = store.register(session, make_veteran())

    assert result.ok
    assert result.message == "Welcome, Sam Veteran!"
    assert session.user is result.value
    assert store.restore_session().user == result.value
    assert json.loads(storage.get(KEY_ALL_USERS))[0]["email"] == "vet@example.com"
    assert json.loads(storage.get(KEY_CURRENT_USER))["id"] == result.value.id


def test_duplicate_email_is_rejected_across_roles(store):
    assert store.register(Session(), make_veteran(email="same@example.com")).ok

    session = Session()
    result = store.register(session, make_employer(email="SAME@example.com"))

    assert not result.ok
    assert result.error is StoreError.DUPLICATE_EMAIL
    assert result.message == "This email is already registered. Please log in."
    assert len(store.users) == 1
    assert session.user is None


def test_login_matches_email_and_role(store):
    vet = store.register(Session(), make_veteran()).value

    session = Session()
    ok = store.login(session, "  VET@example.com ", Role.VETERAN)
    assert ok.ok and ok.value == vet
    assert session.has_role(Role.VETERAN)

    mismatch = store.login(Session(), "vet@example.com", Role.EMPLOYER)
    assert not mismatch.ok
    assert mismatch.error is StoreError.NOT_FOUND
    assert "role mismatch" in mismatch.message

    unknown = store.login(Session(), "nobody@example.com", Role.VETERAN)
    assert unknown.error is StoreError.NOT_FOUND

    bad_role = store.login(Session(), "vet@example.com", "admiral")
    assert bad_role.error is StoreError.NOT_FOUND


def test_logout_clears_session_but_keeps_data(store, storage, veteran_session):
    store.logout(veteran_session)

    assert veteran_session.user is None
    assert storage.get(KEY_CURRENT_USER) is None
    assert store.restore_session().user is None
    assert len(store.users) == 1


# ---------------------------------------------------------------------------
# post / apply / status
# ---------------------------------------------------------------------------

def test_only_employers_post_jobs(store, veteran_session):
    result = store.post_job(veteran_session, logistics_job_fields())
    assert result.error is StoreError.NOT_AUTHORIZED
    assert store.jobs == []

    anonymous = store.post_job(Session(), logistics_job_fields())
    assert anonymous.error is StoreError.NOT_AUTHORIZED


def test_post_job_stamps_employer_fields(store, employer_session):
    result = store.post_job(employer_session, logistics_job_fields(max_age=45))

    job = result.value
    assert result.ok
    assert job.id.startswith("job-")
    assert job.employer_id == employer_session.user.id
    assert job.employer_name == "Acme Corp"
    assert job.max_age_requirement == 45
    assert job.posted_date
    assert store.jobs_by_employer(employer_session.user.id) == [job]


def test_unregistered_session_user_cannot_post(store):
    ghost = Session(user=make_employer(email="ghost@example.com"))
    assert store.post_job(ghost, logistics_job_fields()).error is StoreError.NOT_AUTHORIZED


def test_apply_rules(store, employer_session, veteran_session):
    job = store.post_job(employer_session, logistics_job_fields()).value

    assert store.apply_to_job(employer_session, job.id).error is StoreError.NOT_AUTHORIZED
    assert store.apply_to_job(veteran_session, "job-missing").error is StoreError.JOB_NOT_FOUND

    first = store.apply_to_job(veteran_session, job.id)
    second = store.apply_to_job(veteran_session, job.id)

    assert first.ok
    assert first.value.status is ApplicationStatus.APPLIED
    assert second.error is StoreError.ALREADY_APPLIED
    assert second.message == "You have already applied for this job."
    assert len(store.applications) == 1


def test_status_update_requires_owning_employer(store, employer_session, veteran_session):
    job = store.post_job(employer_session, logistics_job_fields()).value
    vet_id = veteran_session.user.id
    store.apply_to_job(veteran_session, job.id)

    rival = Session()
    store.register(rival, make_employer(email="hr@rival.example", company="Rival Inc"))

    denied = store.update_application_status(rival, job.id, vet_id, ApplicationStatus.REJECTED)
    assert denied.error is StoreError.NOT_AUTHORIZED

    by_vet = store.update_application_status(veteran_session, job.id, vet_id, ApplicationStatus.OFFER_RECEIVED)
    assert by_vet.error is StoreError.NOT_AUTHORIZED

    assert store.applications_by_job(job.id)[0].status is ApplicationStatus.APPLIED


def test_status_update_missing_records(store, employer_session, veteran_session):
    job = store.post_job(employer_session, logistics_job_fields()).value

    missing_job = store.update_application_status(employer_session, "job-x", "v", ApplicationStatus.REJECTED)
    assert missing_job.error is StoreError.JOB_NOT_FOUND

    missing_app = store.update_application_status(
        employer_session, job.id, veteran_session.user.id, ApplicationStatus.REJECTED,
    )
    assert missing_app.error is StoreError.APPLICATION_NOT_FOUND


def test_status_update_is_idempotent(store, employer_session, veteran_session):
    job = store.post_job(employer_session, logistics_job_fields()).value
    applied = store.apply_to_job(veteran_session, job.id).value

    first = store.update_application_status(
        employer_session, job.id, applied.veteran_id, ApplicationStatus.UNDER_REVIEW,
    )
    second = store.update_application_status(
        employer_session, job.id, applied.veteran_id, ApplicationStatus.UNDER_REVIEW,
    )

    assert first.message == "Status changed to Under Review."
    assert first.value == second.value
    assert second.value.applied_date == applied.applied_date
    assert store.applications == [second.value]


def test_applicants_for_job_pairs_users(store, employer_session, veteran_session):
    job = store.post_job(employer_session, logistics_job_fields()).value
    store.apply_to_job(veteran_session, job.id)

    [(application, applicant)] = store.applicants_for_job(job.id)
    assert application.veteran_id == applicant.id
    assert applicant.name == "Sam Veteran"


# ---------------------------------------------------------------------------
# persistence
# ---------------------------------------------------------------------------

def test_reload_restores_all_collections(store, storage, employer_session, veteran_session):
    job = store.post_job(employer_session, logistics_job_fields()).value
    store.apply_to_job(veteran_session, job.id)

    reloaded = ProfileStore.load(storage)

    assert reloaded.users == store.users
    assert reloaded.jobs == store.jobs
    assert reloaded.applications == store.applications
    assert reloaded.restore_session().user == veteran_session.user


def test_loads_existing_stored_state(load_json):
    state = load_json("stored_state.json")
    storage = MemoryStorage({k: json.dumps(v) for k, v in state.items()})

    store = ProfileStore.load(storage)

    assert [u.role for u in store.users] == [Role.VETERAN, Role.EMPLOYER]
    assert store.jobs[0].title == "Port Operations Supervisor"
    assert store.applications[0].status is ApplicationStatus.UNDER_REVIEW
    assert store.restore_session().user.name == "Jordan Reyes"


def test_corrupt_key_is_cleared_and_others_survive(caplog, load_json):
    state = load_json("stored_state.json")
    raw = {k: json.dumps(v) for k, v in state.items()}
    raw[KEY_JOBS] = "{not json"
    storage = MemoryStorage(raw)

    with caplog.at_level(logging.WARNING, logger="careerbridge"):
        store = ProfileStore.load(storage)

    assert store.jobs == []
    assert storage.get(KEY_JOBS) is None
    assert len(store.users) == 2
    assert len(store.applications) == 1
    assert KEY_JOBS in caplog.text


def test_wrong_shape_is_treated_as_corrupt():
    storage = MemoryStorage({
        KEY_ALL_USERS: json.dumps({"not": "a list"}),
        KEY_APPLICATIONS: json.dumps([{"jobId": "j"}]),
    })

    store = ProfileStore.load(storage)

    assert store.users == []
    assert store.applications == []
    assert all(storage.get(k) is None for k in ALL_KEYS)


def test_wrong_typed_text_fields_are_treated_as_corrupt(caplog, load_json):
    state = load_json("stored_state.json")
    state[KEY_JOBS][0]["title"] = 123
    state[KEY_ALL_USERS][1]["name"] = 5
    state[KEY_CURRENT_USER]["email"] = ["jordan@example.com"]
    storage = MemoryStorage({k: json.dumps(v) for k, v in state.items()})

    with caplog.at_level(logging.WARNING, logger="careerbridge"):
        store = ProfileStore.load(storage)

    assert store.jobs == []
    assert store.users == []
    assert store.restore_session().user is None
    assert storage.get(KEY_JOBS) is None
    assert storage.get(KEY_ALL_USERS) is None
    assert len(store.applications) == 1
    assert "TypeError" in caplog.text


def test_application_without_applied_date_is_corrupt(load_json):
    state = load_json("stored_state.json")
    del state[KEY_APPLICATIONS][0]["appliedDate"]
    storage = MemoryStorage({k: json.dumps(v) for k, v in state.items()})

    store = ProfileStore.load(storage)

    assert store.applications == []
    assert storage.get(KEY_APPLICATIONS) is None
    assert len(store.jobs) == 1


def test_undecodable_file_is_cleared(tmp_path, load_json):
    state = load_json("stored_state.json")
    storage = JsonFileStorage(tmp_path)
    for key, value in state.items():
        storage.set(key, json.dumps(value))
    storage.path_for(KEY_JOBS).write_bytes(b"[\xff\xfe]")

    store = ProfileStore.load(storage)

    assert store.jobs == []
    assert not storage.path_for(KEY_JOBS).exists()
    assert len(store.users) == 2
    assert len(store.applications) == 1
    assert store.restore_session().user.name == "Jordan Reyes"


def test_employer_posts_and_veteran_applies_end_to_end(storage):
    store = ProfileStore.load(storage)

    employer = Session()
    store.register(employer, make_employer())
    job = store.post_job(employer, logistics_job_fields()).value
    store.logout(employer)

    veteran = Session()
    store.register(veteran, make_veteran())
    assert store.apply_to_job(veteran, job.id).ok
    store.logout(veteran)

    store = ProfileStore.load(storage)
    employer = Session()
    store.login(employer, "hr@acme.example", Role.EMPLOYER)
    [(application, applicant)] = store.applicants_for_job(job.id)
    assert application.status is ApplicationStatus.APPLIED
    assert applicant.skills == ["Leadership", "Cybersecurity"]

    result = store.update_application_status(
        employer, job.id, applicant.id, ApplicationStatus.OFFER_RECEIVED,
    )

    assert result.ok
    [(application, _)] = store.applicants_for_job(job.id)
    assert application.status is ApplicationStatus.OFFER_RECEIVED
    assert store.applications_by_veteran(applicant.id)[0].status is ApplicationStatus.OFFER_RECEIVED
    assert ProfileStore.load(storage).applications[0].status is ApplicationStatus.OFFER_RECEIVED
