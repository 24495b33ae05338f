from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Callable, List, Optional

from careerbridge import config
from careerbridge.llm.scorer import MatchScorer, MatchScorerError, build_scorer
from careerbridge.models import ApplicationStatus, EmploymentType, Role
from careerbridge.storage import JsonFileStorage
from careerbridge.store import ProfileStore, Session, StoreResult
from careerbridge.suggestions import (
    PROFILE_INCOMPLETE_NOTICE,
    SuggestionStatus,
    SuggestionView,
    SuggestionsResult,
)
from careerbridge.validation import (
    COMMON_SKILLS,
    MILITARY_BRANCHES,
    ValidationError,
    employer_from_form,
    job_fields_from_form,
    mentor_from_form,
    veteran_from_form,
)

EXIT_OK = 0
EXIT_REJECTED = 1
EXIT_INVALID = 2

Handler = Callable[[argparse.Namespace, ProfileStore, Session], int]


def _report(result: StoreResult) -> int:
    if result.ok:
        if result.message:
            print(result.message)
        return EXIT_OK
    print(f"[CareerBridge] {result.message}", file=sys.stderr)
    return EXIT_REJECTED


def _require(session: Session, role: Role) -> bool:
    if session.has_role(role):
        return True
    print(f"[CareerBridge] Access denied. Please log in as a {role.value}.", file=sys.stderr)
    return False


# ----------------------------------------------------------------------
# Registration / session
# ----------------------------------------------------------------------

def _cmd_register_veteran(args: argparse.Namespace, store: ProfileStore, session: Session) -> int:
    user = veteran_from_form(
        name=args.name,
        email=args.email,
        military_branch=args.military_branch,
        skills=args.skills,
        desired_industry=args.desired_industry,
        desired_job_title=args.desired_job_title,
        years_of_service=args.years_of_service,
        military_experience_summary=args.summary,
        location_preference=args.location_preference,
        employment_type=args.employment_type,
        age=args.age,
        highest_qualification=args.qualification,
    )
    return _report(store.register(session, user))


def _cmd_register_mentor(args: argparse.Namespace, store: ProfileStore, session: Session) -> int:
    user = mentor_from_form(
        name=args.name,
        email=args.email,
        professional_title=args.title,
        company=args.company,
        industry=args.industry,
        years_professional_experience=args.years_experience,
        areas_of_expertise=args.expertise,
        mentoring_availability=args.availability,
        mentoring_communication=args.communication,
        mentoring_motivation=args.motivation,
    )
    return _report(store.register(session, user))


def _cmd_register_employer(args: argparse.Namespace, store: ProfileStore, session: Session) -> int:
    user = employer_from_form(
        company_name=args.company_name,
        company_industry=args.industry,
        contact_person_name=args.contact_name,
        contact_person_email=args.email,
        company_website=args.website,
        company_size=args.size,
        company_description=args.description,
        contact_person_job_title=args.contact_title,
        company_locations=args.locations,
        hiring_focus=args.hiring_focus,
    )
    return _report(store.register(session, user))


def _cmd_login(args: argparse.Namespace, store: ProfileStore, session: Session) -> int:
    return _report(store.login(session, args.email, Role(args.role)))


def _cmd_logout(args: argparse.Namespace, store: ProfileStore, session: Session) -> int:
    store.logout(session)
    print("Signed out.")
    return EXIT_OK


def _cmd_whoami(args: argparse.Namespace, store: ProfileStore, session: Session) -> int:
    if session.user is None:
        print("Not signed in.")
        return EXIT_OK
    u = session.user
    print(f"{u.name} <{u.email}>  [{u.role.value}]  id={u.id}")
    if u.role == Role.VETERAN:
        print(f"   skills: {', '.join(u.skills or []) or '-'}")
    elif u.role == Role.MENTOR:
        print(f"   title: {u.professional_title or '-'} @ {u.company or '-'}")
        print(f"   expertise: {', '.join(u.areas_of_expertise or []) or '-'}")
    else:
        print(f"   company: {u.company_name or '-'}")
    return EXIT_OK


# ----------------------------------------------------------------------
# Employer
# ----------------------------------------------------------------------

def _cmd_post_job(args: argparse.Namespace, store: ProfileStore, session: Session) -> int:
    fields = job_fields_from_form(
        title=args.title,
        description=args.description,
        location=args.location,
        required_skills=args.skills,
        max_age_requirement=args.max_age,
        employment_type=args.employment_type,
    )
    result = store.post_job(session, fields)
    code = _report(result)
    if result.ok and result.value is not None:
        print(f"   job id: {result.value.id}")
    return code


def _cmd_jobs(args: argparse.Namespace, store: ProfileStore, session: Session) -> int:
    if not _require(session, Role.EMPLOYER):
        return EXIT_REJECTED
    posted = store.jobs_by_employer(session.user.id)  # type: ignore[union-attr]
    if not posted:
        print("You haven't posted any jobs yet.")
        return EXIT_OK
    for job in posted:
        count = len(store.applications_by_job(job.id))
        print(f"{job.id}  {job.title} — {job.location}  ({count} applicant{'s' if count != 1 else ''})")
    return EXIT_OK


def _cmd_applicants(args: argparse.Namespace, store: ProfileStore, session: Session) -> int:
    if not _require(session, Role.EMPLOYER):
        return EXIT_REJECTED
    job = store.job_by_id(args.job_id)
    if job is None or job.employer_id != session.user.id:  # type: ignore[union-attr]
        print("[CareerBridge] Job not found among your postings.", file=sys.stderr)
        return EXIT_REJECTED
    rows = store.applicants_for_job(job.id)
    print(f"Applicants for {job.title}:")
    if not rows:
        print("   (none yet)")
    for app, veteran in rows:
        name = veteran.name if veteran else "Unknown applicant"
        skills = ", ".join((veteran.skills or []) if veteran else [])
        print(f"   {app.veteran_id}  {name}  [{app.status.value}]  applied {app.applied_date[:10]}")
        if skills:
            print(f"      skills: {skills}")
    return EXIT_OK


def _cmd_set_status(args: argparse.Namespace, store: ProfileStore, session: Session) -> int:
    return _report(
        store.update_application_status(session, args.job_id, args.veteran_id, ApplicationStatus(args.status))
    )


# ----------------------------------------------------------------------
# Veteran
# ----------------------------------------------------------------------

def _cmd_apply(args: argparse.Namespace, store: ProfileStore, session: Session) -> int:
    return _report(store.apply_to_job(session, args.job_id))


def _cmd_applications(args: argparse.Namespace, store: ProfileStore, session: Session) -> int:
    if not _require(session, Role.VETERAN):
        return EXIT_REJECTED
    apps = store.applications_by_veteran(session.user.id)  # type: ignore[union-attr]
    if not apps:
        print("You haven't applied for any jobs yet.")
        return EXIT_OK
    for app in apps:
        job = store.job_by_id(app.job_id)
        title = job.title if job else "Job not found"
        print(f"{app.job_id}  {title}  [{app.status.value}]  applied {app.applied_date[:10]}")
    return EXIT_OK


def print_suggestions(result: SuggestionsResult) -> None:
    print("\n=== Job Suggestions ===")
    if result.profile_incomplete:
        print(f"Note: {PROFILE_INCOMPLETE_NOTICE}")
    if not result.suggestions:
        print("No job suggestions available right now. Check back later.")
        return
    for idx, s in enumerate(result.suggestions, start=1):
        j = s.job
        print(f"\n{idx}) {j.title} @ {j.employer_name} — {j.location}  (id={j.id})")
        if s.status == SuggestionStatus.READY and s.match is not None:
            m = s.match
            print(f"   match: {m.match_score}%")
            print(f"   relevant skills: {', '.join(m.relevant_skills) or '-'}")
            print(f"   missing skills: {', '.join(m.missing_skills) or '-'}")
            print(f"   fit: {m.overall_fit}")
        elif s.status == SuggestionStatus.CANCELLED:
            print("   match: cancelled")
        else:
            print(f"   match: {s.error}")
    print(f"\nDuration: {result.duration_ms}ms")


def _cmd_suggestions(
        args: argparse.Namespace,
        store: ProfileStore,
        session: Session,
        *,
        scorer_factory: Optional[Callable[[], MatchScorer]] = None,
) -> int:
    if not _require(session, Role.VETERAN):
        return EXIT_REJECTED
    try:
        scorer = (scorer_factory or build_scorer)()
    except MatchScorerError as exc:
        print(f"[CareerBridge] Match scoring unavailable: {exc}", file=sys.stderr)
        return EXIT_REJECTED

    with SuggestionView(scorer) as view:
        result = view.load(session.user, store.jobs)  # type: ignore[arg-type]

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print_suggestions(result)
    return EXIT_OK


# ----------------------------------------------------------------------
# Parser
# ----------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="careerbridge",
        description="CareerBridge: connect veterans, mentors and employers",
    )
    parser.add_argument("--data-dir", type=str, default="", help="Storage directory (default: CAREERBRIDGE_DATA_DIR or .careerbridge)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("register-veteran", help="Register as a veteran")
    p.add_argument("--name", required=True)
    p.add_argument("--email", required=True)
    p.add_argument("--military-branch", required=True, help=f"One of: {', '.join(MILITARY_BRANCHES)}")
    p.add_argument("--skills", default="", help=f"Comma-separated, e.g. {', '.join(COMMON_SKILLS[:3])}")
    p.add_argument("--desired-industry", default="", help="Comma-separated")
    p.add_argument("--desired-job-title", default="", help="Comma-separated")
    p.add_argument("--years-of-service", default=None)
    p.add_argument("--summary", default=None, help="Military experience summary")
    p.add_argument("--location-preference", default=None)
    p.add_argument("--employment-type", default=None)
    p.add_argument("--age", default=None)
    p.add_argument("--qualification", default=None, help="Highest qualification")
    p.set_defaults(handler=_cmd_register_veteran)

    p = sub.add_parser("register-mentor", help="Register as a mentor")
    p.add_argument("--name", required=True)
    p.add_argument("--email", required=True)
    p.add_argument("--title", required=True, help="Professional title")
    p.add_argument("--company", required=True)
    p.add_argument("--industry", required=True)
    p.add_argument("--years-experience", required=True)
    p.add_argument("--expertise", required=True, help="Comma-separated areas of expertise")
    p.add_argument("--availability", default=None)
    p.add_argument("--communication", default=None)
    p.add_argument("--motivation", default=None)
    p.set_defaults(handler=_cmd_register_mentor)

    p = sub.add_parser("register-employer", help="Register as an employer")
    p.add_argument("--company-name", required=True)
    p.add_argument("--industry", required=True)
    p.add_argument("--contact-name", required=True)
    p.add_argument("--email", required=True, help="Contact person email")
    p.add_argument("--website", default=None)
    p.add_argument("--size", default=None)
    p.add_argument("--description", default=None)
    p.add_argument("--contact-title", default=None)
    p.add_argument("--locations", default="", help="Comma-separated")
    p.add_argument("--hiring-focus", default=None)
    p.set_defaults(handler=_cmd_register_employer)

    p = sub.add_parser("login", help="Sign in with email and role")
    p.add_argument("--email", required=True)
    p.add_argument("--role", required=True, choices=[r.value for r in Role])
    p.set_defaults(handler=_cmd_login)

    p = sub.add_parser("logout", help="Sign out")
    p.set_defaults(handler=_cmd_logout)

    p = sub.add_parser("whoami", help="Show the signed-in user")
    p.set_defaults(handler=_cmd_whoami)

    p = sub.add_parser("post-job", help="Post a job (employers)")
    p.add_argument("--title", required=True)
    p.add_argument("--description", required=True)
    p.add_argument("--location", required=True)
    p.add_argument("--skills", required=True, help="Comma-separated required skills")
    p.add_argument("--max-age", default=None)
    p.add_argument("--employment-type", default=None, choices=[e.value for e in EmploymentType])
    p.set_defaults(handler=_cmd_post_job)

    p = sub.add_parser("jobs", help="List your posted jobs (employers)")
    p.set_defaults(handler=_cmd_jobs)

    p = sub.add_parser("applicants", help="List applicants for one of your jobs (employers)")
    p.add_argument("--job-id", required=True)
    p.set_defaults(handler=_cmd_applicants)

    p = sub.add_parser("set-status", help="Change an applicant's status (employers)")
    p.add_argument("--job-id", required=True)
    p.add_argument("--veteran-id", required=True)
    p.add_argument("--status", required=True, choices=[s.value for s in ApplicationStatus])
    p.set_defaults(handler=_cmd_set_status)

    p = sub.add_parser("apply", help="Apply for a job (veterans)")
    p.add_argument("--job-id", required=True)
    p.set_defaults(handler=_cmd_apply)

    p = sub.add_parser("applications", help="Track your applications (veterans)")
    p.set_defaults(handler=_cmd_applications)

    p = sub.add_parser("suggestions", help="AI-scored job suggestions (veterans)")
    p.add_argument("--json", action="store_true", help="Print JSON only (machine-readable)")
    p.set_defaults(handler=_cmd_suggestions)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    base_dir = Path(args.data_dir) if args.data_dir else config.data_dir()

    store = ProfileStore.load(JsonFileStorage(base_dir))
    session = store.restore_session()

    handler: Handler = args.handler
    try:
        return handler(args, store, session)
    except ValidationError as exc:
        print("[CareerBridge] Please fix the following:", file=sys.stderr)
        for field, message in exc.errors.items():
            print(f"   {field}: {message}", file=sys.stderr)
        return EXIT_INVALID


if __name__ == "__main__":
    raise SystemExit(main())
