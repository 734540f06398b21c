from app.core.config import get_settings
from app.core.errors import StoreUnavailable


def test_profile_update_filters_role_fields(client, student, employer):
    response = client.put("/api/users/profile", headers=student["headers"], json={
        "bio": "Second-year CS student",
        "school": "HCMUT",
        "major": "Computer Science",
        "year": "2",
        "skills": ["  python ", "", "excel"],
        "position": "Owner",
    })
    assert response.status_code == 200
    body = response.json()
    assert body["school"] == "HCMUT"
    assert body["year"] == "2"
    assert body["skills"] == ["python", "excel"]
    assert body["position"] is None

    employer_body = client.put("/api/users/profile", headers=employer["headers"],
                               json={"position": "Store manager", "school": "Ignored"}).json()
    assert employer_body["position"] == "Store manager"
    assert employer_body["school"] is None
    assert employer_body["job_stats"] == {"active": 0, "total": 0}


def test_profile_update_only_touches_sent_fields(client, student):
    client.put("/api/users/profile", headers=student["headers"], json={"bio": "Hello", "major": "Math"})
    body = client.put("/api/users/profile", headers=student["headers"], json={"major": "Physics"}).json()
    assert body["bio"] == "Hello"
    assert body["major"] == "Physics"


def test_view_other_profile(client, student, employer):
    response = client.get(f"/api/users/profile/{student['user_id']}", headers=employer["headers"])
    assert response.status_code == 200
    assert response.json()["name"] == "Linh Tran"
    assert client.get("/api/users/profile/9999", headers=employer["headers"]).status_code == 404


def test_resume_upload_rules(client, student, employer, blobs):
    bad_type = client.post("/api/users/upload-resume", headers=student["headers"],
                           files={"file": ("cv.docx", b"data", "application/msword")})
    assert bad_type.status_code == 400

    too_big = b"0" * (get_settings().resume_max_mb * 1024 * 1024 + 1)
    large = client.post("/api/users/upload-resume", headers=student["headers"],
                        files={"file": ("cv.pdf", too_big, "application/pdf")})
    assert large.status_code == 413

    employer_try = client.post("/api/users/upload-resume", headers=employer["headers"],
                               files={"file": ("cv.pdf", b"%PDF", "application/pdf")})
    assert employer_try.status_code == 403

    ok = client.post("/api/users/upload-resume", headers=student["headers"],
                     files={"file": ("cv.pdf", b"%PDF-1.4", "application/pdf")})
    assert ok.status_code == 200
    reference = ok.json()["reference"]
    assert reference in blobs.files

    profile = client.get("/api/users/profile", headers=student["headers"]).json()
    assert profile["resume"] == reference

    download = client.get(f"/api/files/{reference}", headers=employer["headers"])
    assert download.status_code == 200
    assert download.content == b"%PDF-1.4"
    assert download.headers["content-type"] == "application/pdf"


def test_avatar_upload(client, employer):
    response = client.post("/api/users/upload-avatar", headers=employer["headers"],
                           files={"file": ("me.png", b"\x89PNG....", "image/png")})
    assert response.status_code == 200
    profile = client.get("/api/users/profile", headers=employer["headers"]).json()
    assert profile["avatar"] == response.json()["reference"]

    assert client.get("/api/files/missing", headers=employer["headers"]).status_code == 404


def test_saved_jobs(client, employer, student, post_job):
    job = post_job(employer)
    url = f"/api/users/saved-jobs/{job['job_id']}"

    assert client.post(url, headers=student["headers"]).status_code == 200
    again = client.post(url, headers=student["headers"])
    assert again.status_code == 400
    assert again.json()["error"] == "conflict"
    assert client.post("/api/users/saved-jobs/9999", headers=student["headers"]).status_code == 404

    saved = client.get("/api/users/saved-jobs", headers=student["headers"]).json()["saved_jobs"]
    assert [s["job_id"] for s in saved] == [job["job_id"]]
    assert saved[0]["company"]["name"] == "Hoa Nguyen"

    assert client.delete(url, headers=student["headers"]).status_code == 200
    assert client.get("/api/users/saved-jobs", headers=student["headers"]).json()["saved_jobs"] == []


def test_saved_jobs_keep_newest_up_to_limit(client, employer, student, post_job, monkeypatch):
    monkeypatch.setattr("app.services.saved_jobs.settings.saved_jobs_limit", 3)
    job_ids = [post_job(employer, title=f"Weekend shift {i}")["job_id"] for i in range(5)]
    for job_id in job_ids:
        client.post(f"/api/users/saved-jobs/{job_id}", headers=student["headers"])

    saved = client.get("/api/users/saved-jobs", headers=student["headers"]).json()["saved_jobs"]
    assert [s["job_id"] for s in saved] == list(reversed(job_ids[-3:]))


def test_recommended_jobs(client, employer, student, post_job):
    post_job(employer, title="Python tutor", category="tutoring", skills=["Python"])
    post_job(employer, title="Warehouse helper", category="delivery")
    post_job(employer, title="Café sales staff", category="sales")
    client.put("/api/users/profile", headers=student["headers"], json={"skills": ["python", "sales"]})

    recommended = client.get("/api/users/recommended-jobs", headers=student["headers"]).json()
    titles = {j["title"] for j in recommended["recommended_jobs"]}
    assert titles == {"Python tutor", "Café sales staff"}


def test_recommended_jobs_by_major_keyword(client, employer, student, post_job):
    post_job(employer, title="Accounting assistant")
    post_job(employer, title="Delivery rider")
    client.put("/api/users/profile", headers=student["headers"], json={"major": "Accounting"})

    recommended = client.get("/api/users/recommended-jobs", headers=student["headers"]).json()
    assert [j["title"] for j in recommended["recommended_jobs"]] == ["Accounting assistant"]


def test_name_cannot_be_cleared(client, student):
    response = client.put("/api/users/profile", headers=student["headers"], json={"name": None, "bio": "Hi"})
    assert response.status_code == 200
    assert response.json()["name"] == "Linh Tran"
    assert response.json()["bio"] == "Hi"


def test_reupload_discards_replaced_avatar(client, student, blobs):
    first = client.post("/api/users/upload-avatar", headers=student["headers"],
                        files={"file": ("a.png", b"\x89PNG-1", "image/png")}).json()["reference"]
    second = client.post("/api/users/upload-avatar", headers=student["headers"],
                         files={"file": ("b.png", b"\x89PNG-2", "image/png")}).json()["reference"]
    assert first not in blobs.files
    assert second in blobs.files


def test_reupload_keeps_resume_sent_with_an_application(client, employer, student, post_job, blobs):
    job = post_job(employer)
    first = client.post("/api/users/upload-resume", headers=student["headers"],
                        files={"file": ("cv.pdf", b"%PDF-old", "application/pdf")}).json()["reference"]
    client.post("/api/applications", json={"job_id": job["job_id"]}, headers=student["headers"])

    second = client.post("/api/users/upload-resume", headers=student["headers"],
                         files={"file": ("cv.pdf", b"%PDF-new", "application/pdf")}).json()["reference"]
    assert first in blobs.files
    assert client.get(f"/api/files/{first}", headers=employer["headers"]).content == b"%PDF-old"

    client.post("/api/users/upload-resume", headers=student["headers"],
                files={"file": ("cv.pdf", b"%PDF-newer", "application/pdf")})
    assert second not in blobs.files


def test_discard_logs_when_blob_store_is_down(blobs, caplog):
    def unavailable(reference):
        raise StoreUnavailable()

    blobs.delete = unavailable
    blobs.discard("0123456789abcdef01234567")
    assert "left orphaned" in caplog.text
