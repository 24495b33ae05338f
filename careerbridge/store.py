"""
careerbridge/store.py

Profile Store: the in-process registry of Users, Jobs and Applications.

- Every mutation takes an explicit Session (the acting user) and checks
  role and ownership itself.
- Policy rejections come back as a failed StoreResult; state is untouched.
- After each mutation the affected collection is rewritten in full to the
  key-value storage. On load, a key that fails to decode is cleared and the
  collection starts empty, without affecting the other keys.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Generic, List, Optional, Tuple, TypeVar

from careerbridge.log import get_logger
from careerbridge.models import (
    Application,
    ApplicationStatus,
    EmploymentType,
    Job,
    Role,
    User,
    new_job_id,
    normalize_email,
    utc_now_iso,
)
from careerbridge.storage import (
    KEY_ALL_USERS,
    KEY_APPLICATIONS,
    KEY_CURRENT_USER,
    KEY_JOBS,
    KeyValueStorage,
)

log = get_logger(__name__)

T = TypeVar("T")


class StoreError(str, Enum):
    DUPLICATE_EMAIL = "duplicate_email"
    NOT_FOUND = "not_found"
    NOT_AUTHORIZED = "not_authorized"
    JOB_NOT_FOUND = "job_not_found"
    ALREADY_APPLIED = "already_applied"
    APPLICATION_NOT_FOUND = "application_not_found"


@dataclass(frozen=True)
class StoreResult(Generic[T]):
    ok: bool
    value: Optional[T] = None
    error: Optional[StoreError] = None
    message: str = ""

    @classmethod
    def success(cls, value: T, message: str = "") -> "StoreResult[T]":
        return cls(ok=True, value=value, message=message)

    @classmethod
    def failure(cls, error: StoreError, message: str) -> "StoreResult[T]":
        return cls(ok=False, error=error, message=message)


@dataclass
class Session:
    """The acting user for one interactive session (None when signed out)."""
    user: Optional[User] = None

    @property
    def signed_in(self) -> bool:
        return self.user is not None

    def has_role(self, role: Role) -> bool:
        return self.user is not None and self.user.role == role


@dataclass(frozen=True)
class JobFields:
    """Employer-supplied part of a Job; the store stamps the rest."""
    title: str
    description: str
    location: str
    required_skills: List[str]
    max_age_requirement: Optional[int] = None
    employment_type: Optional[EmploymentType] = None


def _decode_user(data: Any) -> Optional[User]:
    if data is None:
        return None
    return User.from_dict(data)


def _decode_list(decode: Callable[[Dict[str, Any]], T]) -> Callable[[Any], List[T]]:
    def _decode(data: Any) -> List[T]:
        if not isinstance(data, list):
            raise TypeError(f"expected a list, got {type(data).__name__}")
        return [decode(item) for item in data]
    return _decode


class ProfileStore:
    """
    Owns the Users, Jobs and Applications collections.

    Construct with ProfileStore.load(storage) to rehydrate persisted state,
    or ProfileStore(storage) for an empty store.
    """

    def __init__(self, storage: KeyValueStorage) -> None:
        self._storage = storage
        self._users: List[User] = []
        self._jobs: List[Job] = []
        self._applications: List[Application] = []
        self._current_user: Optional[User] = None

    # ------------------------------------------------------------------
    # Loading / persistence
    # ------------------------------------------------------------------

    @classmethod
    def load(cls, storage: KeyValueStorage) -> "ProfileStore":
        store = cls(storage)
        store._current_user = store._read_key(KEY_CURRENT_USER, _decode_user, None)
        store._users = store._read_key(KEY_ALL_USERS, _decode_list(User.from_dict), [])
        store._jobs = store._read_key(KEY_JOBS, _decode_list(Job.from_dict), [])
        store._applications = store._read_key(KEY_APPLICATIONS, _decode_list(Application.from_dict), [])
        return store

    def _read_key(self, key: str, decode: Callable[[Any], T], default: T) -> T:
        try:
            raw = self._storage.get(key)
            if raw is None or not raw.strip():
                return default
            return decode(json.loads(raw))
        except (ValueError, KeyError, TypeError) as exc:
            log.warning("Discarding unreadable stored value for %s (%s)", key, type(exc).__name__)
            self._storage.delete(key)
            return default

    def _write(self, key: str, payload: Any) -> None:
        self._storage.set(key, json.dumps(payload, indent=2))

    def _persist_users(self) -> None:
        self._write(KEY_ALL_USERS, [u.to_dict() for u in self._users])

    def _persist_jobs(self) -> None:
        self._write(KEY_JOBS, [j.to_dict() for j in self._jobs])

    def _persist_applications(self) -> None:
        self._write(KEY_APPLICATIONS, [a.to_dict() for a in self._applications])

    def _persist_current_user(self) -> None:
        if self._current_user is None:
            self._storage.delete(KEY_CURRENT_USER)
        else:
            self._write(KEY_CURRENT_USER, self._current_user.to_dict())

    def _set_current(self, session: Session, user: Optional[User]) -> None:
        session.user = user
        self._current_user = user
        self._persist_current_user()

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def restore_session(self) -> Session:
        """Session for the persisted current user, if any."""
        return Session(user=self._current_user)

    def register(self, session: Session, user: User) -> StoreResult[User]:
        if any(u.email == user.email for u in self._users):
            return StoreResult.failure(
                StoreError.DUPLICATE_EMAIL,
                "This email is already registered. Please log in.",
            )
        self._users.append(user)
        self._persist_users()
        self._set_current(session, user)
        log.info("Registered %s %s", user.role.value, user.id)
        return StoreResult.success(user, f"Welcome, {user.name}!")

    def login(self, session: Session, email: str, role: Role) -> StoreResult[User]:
        wanted = normalize_email(email)
        try:
            wanted_role = Role(role)
        except ValueError:
            wanted_role = None
        found = next((u for u in self._users if u.email == wanted and u.role == wanted_role), None)
        if found is None:
            return StoreResult.failure(
                StoreError.NOT_FOUND,
                "User not found or role mismatch. Please check your credentials or register.",
            )
        self._set_current(session, found)
        return StoreResult.success(found, f"Welcome back, {found.name}!")

    def logout(self, session: Session) -> None:
        self._set_current(session, None)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _registered_actor(self, session: Session, role: Role) -> Optional[User]:
        if not session.has_role(role):
            return None
        return self.user_by_id(session.user.id)  # type: ignore[union-attr]

    def post_job(self, session: Session, fields: JobFields) -> StoreResult[Job]:
        employer = self._registered_actor(session, Role.EMPLOYER)
        if employer is None or employer.role != Role.EMPLOYER:
            return StoreResult.failure(StoreError.NOT_AUTHORIZED, "Only employers can post jobs.")

        job = Job(
            id=new_job_id(),
            employer_id=employer.id,
            employer_name=employer.display_name,
            title=fields.title,
            description=fields.description,
            location=fields.location,
            required_skills=list(fields.required_skills),
            posted_date=utc_now_iso(),
            max_age_requirement=fields.max_age_requirement,
            employment_type=fields.employment_type,
        )
        self._jobs.append(job)
        self._persist_jobs()
        log.info("Employer %s posted %s", employer.id, job.id)
        return StoreResult.success(job, f"Job '{job.title}' posted.")

    def apply_to_job(self, session: Session, job_id: str) -> StoreResult[Application]:
        veteran = self._registered_actor(session, Role.VETERAN)
        if veteran is None or veteran.role != Role.VETERAN:
            return StoreResult.failure(StoreError.NOT_AUTHORIZED, "Only veterans can apply for jobs.")
        job = self.job_by_id(job_id)
        if job is None:
            return StoreResult.failure(StoreError.JOB_NOT_FOUND, "Job not found.")
        if self._find_application(job_id, veteran.id) is not None:
            return StoreResult.failure(StoreError.ALREADY_APPLIED, "You have already applied for this job.")

        application = Application(job_id=job_id, veteran_id=veteran.id)
        self._applications.append(application)
        self._persist_applications()
        return StoreResult.success(application, f"You have successfully applied for {job.title}.")

    def update_application_status(
            self,
            session: Session,
            job_id: str,
            veteran_id: str,
            status: ApplicationStatus,
    ) -> StoreResult[Application]:
        employer = self._registered_actor(session, Role.EMPLOYER)
        job = self.job_by_id(job_id)
        if employer is None or (job is not None and job.employer_id != employer.id):
            return StoreResult.failure(
                StoreError.NOT_AUTHORIZED,
                "Only the employer who posted this job can update its applications.",
            )
        if job is None:
            return StoreResult.failure(StoreError.JOB_NOT_FOUND, "Job not found.")

        index = self._find_application(job_id, veteran_id)
        if index is None:
            return StoreResult.failure(StoreError.APPLICATION_NOT_FOUND, "Application not found.")

        new_status = ApplicationStatus(status)
        current = self._applications[index]
        updated = Application(
            job_id=current.job_id,
            veteran_id=current.veteran_id,
            status=new_status,
            applied_date=current.applied_date,
        )
        self._applications[index] = updated
        self._persist_applications()
        return StoreResult.success(updated, f"Status changed to {new_status.value}.")

    def _find_application(self, job_id: str, veteran_id: str) -> Optional[int]:
        for i, app in enumerate(self._applications):
            if app.job_id == job_id and app.veteran_id == veteran_id:
                return i
        return None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def users(self) -> List[User]:
        return list(self._users)

    @property
    def jobs(self) -> List[Job]:
        return list(self._jobs)

    @property
    def applications(self) -> List[Application]:
        return list(self._applications)

    def user_by_id(self, user_id: str) -> Optional[User]:
        return next((u for u in self._users if u.id == user_id), None)

    def job_by_id(self, job_id: str) -> Optional[Job]:
        return next((j for j in self._jobs if j.id == job_id), None)

    def jobs_by_employer(self, employer_id: str) -> List[Job]:
        return [j for j in self._jobs if j.employer_id == employer_id]

    def applications_by_veteran(self, veteran_id: str) -> List[Application]:
        return [a for a in self._applications if a.veteran_id == veteran_id]

    def applications_by_job(self, job_id: str) -> List[Application]:
        return [a for a in self._applications if a.job_id == job_id]

    def applicants_for_job(self, job_id: str) -> List[Tuple[Application, Optional[User]]]:
        return [(a, self.user_by_id(a.veteran_id)) for a in self.applications_by_job(job_id)]
