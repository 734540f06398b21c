from app.core.permissions import (
    can_mutate_application_status, can_mutate_job, can_withdraw, has_role, is_owner,
)

STUDENT = {"user_id": 1, "role": "student"}
EMPLOYER = {"user_id": 2, "role": "employer"}
OTHER_EMPLOYER = {"user_id": 3, "role": "employer"}
JOB = {"job_id": 10, "employer_id": 2}


def test_is_owner_requires_matching_id():
    assert is_owner(2, 2)
    assert not is_owner(2, 3)
    assert not is_owner(None, None)


def test_has_role():
    assert has_role(STUDENT, "student")
    assert not has_role(STUDENT, "employer")
    assert not has_role(None, "student")


def test_only_owning_employer_mutates_job():
    assert can_mutate_job(EMPLOYER, JOB)
    assert not can_mutate_job(OTHER_EMPLOYER, JOB)
    # A student whose id happens to match is still not an employer
    assert not can_mutate_job({"user_id": 2, "role": "student"}, JOB)


def test_application_status_belongs_to_job_owner():
    application = {"application_id": 5, "applicant_id": 1, "status": "pending"}
    assert can_mutate_application_status(EMPLOYER, application, JOB)
    assert not can_mutate_application_status(OTHER_EMPLOYER, application, JOB)
    assert not can_mutate_application_status(STUDENT, application, JOB)


def test_withdraw_rules():
    for status in ("pending", "reviewed", "rejected"):
        assert can_withdraw(STUDENT, {"applicant_id": 1, "status": status})
    for status in ("shortlisted", "accepted"):
        assert not can_withdraw(STUDENT, {"applicant_id": 1, "status": status})
    assert not can_withdraw({"user_id": 9, "role": "student"}, {"applicant_id": 1, "status": "pending"})
