"""
Shared fixtures.

The app runs against a throwaway SQLite file and an in-memory blob store,
so neither PostgreSQL nor MongoDB is needed. Settings are read once, so the
environment is set before anything under app/ is imported.
"""

import os
import tempfile
import uuid

_TMP_DIR = tempfile.mkdtemp(prefix="jobboard-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["MONGODB_TIMEOUT_MS"] = "200"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient

from app.core.errors import NotFound
from app.db.postgres import engine
from app.db.tables import metadata
from app.main import app
from app.services.blob_store import BlobStore, get_blob_store

LONG_DESCRIPTION = (
    "Help customers at our campus coffee shop, prepare drinks, keep the counter "
    "clean and handle the register during busy hours."
)


class MemoryBlobStore(BlobStore):
    """Blob store double keeping files in a dict."""

    def __init__(self):
        # no GridFS bucket
        self.files = {}

    def store(self, content, filename, content_type, kind, owner_id=None):
        reference = uuid.uuid4().hex[:24]
        self.files[reference] = (content, content_type, filename)
        return reference

    def open(self, reference):
        if reference not in self.files:
            raise NotFound("File not found")
        return self.files[reference]

    def delete(self, reference):
        if self.files.pop(reference, None) is None:
            raise NotFound("File not found")


@pytest.fixture(autouse=True)
def fresh_db():
    metadata.drop_all(engine)
    metadata.create_all(engine)
    yield


@pytest.fixture
def blobs():
    store = MemoryBlobStore()
    app.dependency_overrides[get_blob_store] = lambda: store
    yield store
    app.dependency_overrides.pop(get_blob_store, None)


@pytest.fixture
def client(blobs):
    return TestClient(app)


def _register(client, name, email, user_type, password="secret123"):
    response = client.post("/api/auth/register", json={
        "name": name, "email": email, "password": password, "user_type": user_type,
    })
    assert response.status_code == 201, response.text
    body = response.json()
    return {
        "user_id": body["user_id"],
        "email": email,
        "role": user_type,
        "name": name,
        "headers": {"Authorization": f"Bearer {body['access_token']}"},
    }


@pytest.fixture
def student(client):
    return _register(client, "Linh Tran", "linh@campusmail.com", "student")


@pytest.fixture
def other_student(client):
    return _register(client, "Minh Pham", "minh@campusmail.com", "student")


@pytest.fixture
def employer(client):
    return _register(client, "Hoa Nguyen", "hoa@brewhouse.vn", "employer")


@pytest.fixture
def other_employer(client):
    return _register(client, "Bao Le", "bao@tutorhub.vn", "employer")


def job_payload(**overrides):
    payload = {
        "title": "Barista (part-time)",
        "description": LONG_DESCRIPTION,
        "location": "Ho Chi Minh City",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def post_job(client):
    """post_job(owner, **fields) -> created job body"""
    def _post(owner, **fields):
        response = client.post("/api/jobs", json=job_payload(**fields), headers=owner["headers"])
        assert response.status_code == 201, response.text
        return response.json()
    return _post


@pytest.fixture
def register_user(client):
    """register_user(name, email, user_type) -> {user_id, email, role, name, headers}"""
    def _make(name, email, user_type, password="secret123"):
        return _register(client, name, email, user_type, password)
    return _make


@pytest.fixture
def job_fields():
    return job_payload
