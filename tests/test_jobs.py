from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from app.db.postgres import get_db_session
from app.db.tables import companies
from app.services import job_registry


def _company(company_id):
    with get_db_session() as db:
        return db.execute(select(companies).where(companies.c.company_id == company_id)).mappings().first()


def test_create_fills_defaults_and_provisions_company(client, employer, post_job):
    job = post_job(employer)

    assert job["salary"] == "Negotiable"
    assert job["salary_type"] == "hourly"
    assert job["job_type"] == "part-time"
    assert job["category"] == "other"
    assert job["work_hours"] == "Flexible"
    assert job["experience"] == "none"
    assert job["education"] == "none"
    assert job["vacancies"] == 1
    assert job["skills"] == []
    assert job["contact_email"] == "hoa@brewhouse.vn"
    assert job["is_active"] is True
    assert job["is_featured"] is False
    assert job["views"] == 0
    assert job["application_count"] == 0
    assert job["is_accepting_applications"] is True
    assert job["employer"]["user_id"] == employer["user_id"]

    company = _company(job["company_id"])
    assert company["name"] == "Hoa Nguyen"
    assert company["job_count"] == 1

    second = post_job(employer, title="Cashier evening shift")
    assert second["company_id"] == job["company_id"]
    assert _company(job["company_id"])["job_count"] == 2


def test_company_name_hint_used_on_first_posting(client, employer, post_job):
    job = post_job(employer, company_name="Brew House")
    assert job["company"]["name"] == "Brew House"


def test_students_cannot_post(client, student, job_fields):
    response = client.post("/api/jobs", json=job_fields(), headers=student["headers"])
    assert response.status_code == 403


def test_create_validation_errors(client, employer, job_fields):
    response = client.post(
        "/api/jobs",
        json=job_fields(title="Hi", description="too short", salary_min=-5),
        headers=employer["headers"],
    )
    assert response.status_code == 400
    fields = {e["field"] for e in response.json()["errors"]}
    assert {"title", "description", "salary_min"} <= fields


def test_salary_range_checked(client, employer, job_fields):
    response = client.post(
        "/api/jobs", json=job_fields(salary_min=50000, salary_max=20000), headers=employer["headers"]
    )
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "salary_max"


def test_get_counts_views(client, employer, post_job):
    job = post_job(employer)
    for expected in (1, 2, 3):
        response = client.get(f"/api/jobs/{job['job_id']}")
        assert response.status_code == 200
        assert response.json()["views"] == expected

    assert client.get("/api/jobs/9999").status_code == 404


def test_partial_update_keeps_other_fields(client, employer, post_job):
    job = post_job(employer, salary="25,000 VND/hour", category="service")
    response = client.put(
        f"/api/jobs/{job['job_id']}", json={"title": "Senior barista"}, headers=employer["headers"]
    )
    assert response.status_code == 200
    updated = response.json()
    assert updated["title"] == "Senior barista"
    assert updated["salary"] == "25,000 VND/hour"
    assert updated["category"] == "service"
    assert updated["description"] == job["description"]


def test_update_validates_merged_record(client, employer, post_job):
    job = post_job(employer, salary_min=20000)
    response = client.put(
        f"/api/jobs/{job['job_id']}", json={"salary_max": 10000}, headers=employer["headers"]
    )
    assert response.status_code == 400
    assert response.json()["error"] == "validation_failed"


def test_only_owner_can_update_or_delete(client, employer, other_employer, post_job):
    job = post_job(employer)
    url = f"/api/jobs/{job['job_id']}"

    assert client.put(url, json={"title": "Taken over job"}, headers=other_employer["headers"]).status_code == 403
    assert client.delete(url, headers=other_employer["headers"]).status_code == 403
    assert client.put("/api/jobs/9999", json={"title": "Missing job"}, headers=employer["headers"]).status_code == 404


def test_toggle_active_moves_job_count(client, employer, post_job):
    job = post_job(employer)
    url = f"/api/jobs/{job['job_id']}"

    response = client.put(url, json={"is_active": False}, headers=employer["headers"])
    assert response.json()["is_active"] is False
    assert _company(job["company_id"])["job_count"] == 0

    # Same value again is not a toggle
    client.put(url, json={"is_active": False}, headers=employer["headers"])
    assert _company(job["company_id"])["job_count"] == 0

    client.put(url, json={"is_active": True}, headers=employer["headers"])
    assert _company(job["company_id"])["job_count"] == 1


def test_delete_cascades_applications(client, employer, student, other_student, post_job):
    job = post_job(employer)
    for applicant in (student, other_student):
        client.post("/api/applications", json={"job_id": job["job_id"]}, headers=applicant["headers"])
    client.post(f"/api/users/saved-jobs/{job['job_id']}", headers=student["headers"])

    response = client.delete(f"/api/jobs/{job['job_id']}", headers=employer["headers"])
    assert response.status_code == 200
    assert "2 application(s)" in response.json()["message"]
    assert _company(job["company_id"])["job_count"] == 0

    assert client.get(f"/api/jobs/{job['job_id']}").status_code == 404
    mine = client.get("/api/applications/student/my-applications", headers=student["headers"]).json()
    assert mine["applications"] == []
    saved = client.get("/api/users/saved-jobs", headers=student["headers"]).json()
    assert saved["saved_jobs"] == []


def test_expired_job_flags(client, employer, post_job):
    deadline = (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()
    job = post_job(employer, application_deadline=deadline)
    assert job["is_expired"] is True
    assert job["is_accepting_applications"] is False


def test_listing_filters_and_pagination(client, employer, post_job):
    post_job(employer, title="Math tutor for grade 10", category="tutoring", salary_min=150000,
             location="Hanoi")
    post_job(employer, title="Delivery rider", category="delivery", salary="20k per order")
    post_job(employer, title="Shop assistant", category="sales", salary_min=30000)
    hidden = post_job(employer, title="Inactive posting")
    client.put(f"/api/jobs/{hidden['job_id']}", json={"is_active": False}, headers=employer["headers"])

    everything = client.get("/api/jobs").json()
    assert everything["pagination"] == {"current": 1, "pages": 1, "total": 3}

    tutoring = client.get("/api/jobs", params={"category": "tutoring"}).json()
    assert [j["title"] for j in tutoring["jobs"]] == ["Math tutor for grade 10"]

    hanoi = client.get("/api/jobs", params={"location": "hanoi"}).json()
    assert hanoi["pagination"]["total"] == 1

    search = client.get("/api/jobs", params={"search": "rider tutor"}).json()
    assert search["pagination"]["total"] == 2

    # Numeric threshold OR free-text match on the salary field
    by_number = client.get("/api/jobs", params={"salary_min": "100000"}).json()
    assert [j["title"] for j in by_number["jobs"]] == ["Math tutor for grade 10"]
    by_text = client.get("/api/jobs", params={"salary_min": "per order"}).json()
    assert [j["title"] for j in by_text["jobs"]] == ["Delivery rider"]

    page = client.get("/api/jobs", params={"limit": 2, "page": 2, "sort_by": "title", "sort_order": "asc"}).json()
    assert page["pagination"] == {"current": 2, "pages": 2, "total": 3}
    assert [j["title"] for j in page["jobs"]] == ["Shop assistant"]

    assert client.get("/api/jobs", params={"job_type": "night-shift"}).status_code == 400


def test_featured(client, employer, post_job):
    post_job(employer, title="Regular posting")
    post_job(employer, title="Featured posting", is_featured=True)
    featured = client.get("/api/jobs/featured").json()["jobs"]
    assert [j["title"] for j in featured] == ["Featured posting"]


def test_employer_jobs_with_application_breakdown(client, employer, student, other_student, post_job):
    job = post_job(employer)
    post_job(employer, title="Second posting here")
    client.post("/api/applications", json={"job_id": job["job_id"]}, headers=student["headers"])
    application = client.post(
        "/api/applications", json={"job_id": job["job_id"]}, headers=other_student["headers"]
    ).json()
    client.put(f"/api/applications/{application['application_id']}/status",
               json={"status": "rejected"}, headers=employer["headers"])

    body = client.get("/api/jobs/employer/my-jobs", headers=employer["headers"]).json()
    assert body["pagination"]["total"] == 2
    stats = {j["job_id"]: j["application_stats"] for j in body["jobs"]}
    assert stats[job["job_id"]] == {"pending": 1, "rejected": 1}

    inactive = client.get("/api/jobs/employer/my-jobs", params={"status": "inactive"},
                          headers=employer["headers"]).json()
    assert inactive["jobs"] == []


def test_salary_threshold_uses_leading_digits(client, employer, post_job):
    post_job(employer, title="Barista weekend shift", salary="Negotiable", salary_min=6000000)
    post_job(employer, title="Flyer distribution", salary="Negotiable", salary_min=3000000)

    for threshold in ("5000000d", "5000000 VND"):
        listing = client.get("/api/jobs", params={"salary_min": threshold}).json()
        assert listing["pagination"]["total"] == 1
        assert listing["jobs"][0]["title"] == "Barista weekend shift"


def test_delete_rolls_back_when_an_application_slips_in(client, employer, post_job, monkeypatch):
    job = post_job(employer)

    def foreign_key_violation(db, company_id, delta):
        raise IntegrityError("DELETE FROM jobs", {}, Exception("violates foreign key constraint"))

    monkeypatch.setattr(job_registry.counters, "adjust_job_count", foreign_key_violation)

    response = client.delete(f"/api/jobs/{job['job_id']}", headers=employer["headers"])
    assert response.status_code == 400
    assert response.json()["error"] == "conflict"
    assert "violates" not in response.json()["detail"]

    monkeypatch.undo()
    assert client.get(f"/api/jobs/{job['job_id']}").status_code == 200
    assert _company(job["company_id"])["job_count"] == 1
