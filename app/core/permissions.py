"""
Authorization predicates.

Pure functions over the caller dict produced by app.core.auth
({"user_id", "email", "role", ...}) and entity rows. No I/O, no side effects.
"""

LOCKED_APPLICATION_STATUSES = frozenset({"shortlisted", "accepted"})


def is_owner(actor_id, resource_owner_id) -> bool:
    return actor_id is not None and actor_id == resource_owner_id


def has_role(actor: dict, role: str) -> bool:
    return bool(actor) and actor.get("role") == role


def can_mutate_job(actor: dict, job: dict) -> bool:
    return has_role(actor, "employer") and is_owner(actor["user_id"], job["employer_id"])


def can_mutate_application_status(actor: dict, application: dict, job: dict) -> bool:
    # Status belongs to whoever owns the posting, not the applicant
    return has_role(actor, "employer") and is_owner(actor["user_id"], job["employer_id"])


def can_withdraw(actor: dict, application: dict) -> bool:
    return (
        is_owner(actor["user_id"], application["applicant_id"])
        and application["status"] not in LOCKED_APPLICATION_STATUSES
    )
