from sqlalchemy import select, update
from sqlalchemy.exc import OperationalError

from app.db.postgres import get_db_session
from app.db.tables import companies, jobs
from app.services import counters


def _counts(job_id, company_id):
    with get_db_session() as db:
        application_count = db.execute(
            select(jobs.c.application_count).where(jobs.c.job_id == job_id)
        ).scalar_one()
        job_count = db.execute(
            select(companies.c.job_count).where(companies.c.company_id == company_id)
        ).scalar_one()
    return application_count, job_count


def test_adjustments_floor_at_zero(client, employer, post_job):
    job = post_job(employer)
    with get_db_session() as db:
        assert counters.adjust_application_count(db, job["job_id"], -3)
        assert counters.adjust_job_count(db, job["company_id"], -5)
    assert _counts(job["job_id"], job["company_id"]) == (0, 0)


def test_missing_row_is_logged_as_drift(caplog):
    assert counters.apply_counter_delta(counters.adjust_application_count, 424242, +1) is False
    assert "Consistency drift" in caplog.text


def test_reconcile_repairs_drift(client, employer, student, post_job):
    job = post_job(employer)
    client.post("/api/applications", json={"job_id": job["job_id"]}, headers=student["headers"])
    with get_db_session() as db:
        db.execute(update(jobs).where(jobs.c.job_id == job["job_id"]).values(application_count=7))
        db.execute(update(companies).where(companies.c.company_id == job["company_id"]).values(job_count=0))

    corrected = counters.reconcile_counters()

    assert corrected["jobs"] == [{"job_id": job["job_id"], "stored": 7, "actual": 1}]
    assert corrected["companies"] == [{"company_id": job["company_id"], "stored": 0, "actual": 1}]
    assert _counts(job["job_id"], job["company_id"]) == (1, 1)

    # Nothing left to fix
    assert counters.reconcile_counters() == {"jobs": [], "companies": []}


def test_failed_adjustment_is_logged_as_drift(caplog):
    def connection_lost(db, job_id, delta):
        raise OperationalError("UPDATE jobs", {}, Exception("server closed the connection"))

    assert counters.apply_counter_delta(connection_lost, 1, -1) is False
    assert "Consistency drift: connection_lost(1, -1) failed" in caplog.text


def test_lost_database_is_reported_without_driver_detail(client, employer, post_job, monkeypatch):
    job = post_job(employer)

    def connection_lost(db, job_id):
        raise OperationalError("UPDATE jobs", {}, Exception("could not connect to db-primary:5432"))

    monkeypatch.setattr(counters, "increment_views", connection_lost)

    response = client.get(f"/api/jobs/{job['job_id']}")
    assert response.status_code == 500
    assert response.json() == {"detail": "Service temporarily unavailable", "error": "store_unavailable"}
    assert "db-primary" not in response.text
