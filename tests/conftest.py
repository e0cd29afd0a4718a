import os
import shutil
import tempfile
from pathlib import Path

# Configure a throwaway database and bucket before importing app modules.
_SESSION_DIR = Path(tempfile.mkdtemp(prefix="crm_pytest_"))

os.environ["DB_DRIVER_NAME"] = "sqlite"
os.environ["DB_DATABASE_NAME"] = str(_SESSION_DIR / "crm.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("BUCKET_NAME", "crm-test")
os.environ.setdefault("BUCKET_HOST", "bucket.test")
os.environ.setdefault("MAX_UPLOAD_SIZE_MB", "1")

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from crm_backend.api.utils import create_access_token, get_storage
from crm_backend.database.config.connection_engine import connection_engine, metadata
from crm_backend.database.core import mailer
from crm_backend.database.core.users import insert_user
from crm_backend.database.entities.user import User
from crm_backend.main import app
from crm_backend.storage.lifecycle import ObjectStorage, UploadedFile


class InMemoryBucket:
    """Stand-in for ``S3Bucket`` keeping objects in a dict."""

    def __init__(self):
        self.objects = {}
        self.public = set()
        self.fail_on = set()

    def _maybe_fail(self, operation):
        if operation in self.fail_on:
            raise RuntimeError(f"{operation} failed")

    def put(self, key, data, content_type):
        self._maybe_fail("put")
        self.objects[key] = {"data": data, "content_type": content_type}

    def make_public(self, key):
        self._maybe_fail("make_public")
        self.public.add(key)

    def delete(self, key):
        self._maybe_fail("delete")
        self.objects.pop(key, None)
        self.public.discard(key)

    def exists(self, key):
        self._maybe_fail("exists")
        return key in self.objects

    def list(self):
        return [{"key": key, "size": len(obj["data"]), "created_at": None} for key, obj in self.objects.items()]

    def open_read_stream(self, key, chunk_size=4):
        self._maybe_fail("read")
        data = self.objects[key]["data"]
        for start in range(0, len(data), chunk_size):
            yield data[start:start + chunk_size]


class Clock:
    def __init__(self, start=1700000000.0):
        self.now = start

    def __call__(self):
        self.now += 0.001
        return self.now


def pytest_sessionfinish(session, exitstatus):
    shutil.rmtree(_SESSION_DIR, ignore_errors=True)


@pytest.fixture(autouse=True)
def database():
    metadata.drop_all(connection_engine)
    metadata.create_all(connection_engine)
    yield
    metadata.drop_all(connection_engine)


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch):
    sender = MagicMock()
    monkeypatch.setattr(mailer, "send_email", sender)
    return sender


@pytest.fixture
def bucket():
    return InMemoryBucket()


@pytest.fixture
def storage(bucket):
    return ObjectStorage(bucket, bucket_name="crm-test", host="bucket.test", clock=Clock())


@pytest.fixture
def client(storage):
    app.state.storage = storage
    app.dependency_overrides[get_storage] = lambda: storage
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_user(email="owner@example.com", fullname="Owner Name", telephone=None):
    return insert_user(
        user=User(fullname=fullname, email=email, password="Secret#123", role="admin", country="Greece", telephone=telephone)
    )


@pytest.fixture
def user():
    return make_user()


@pytest.fixture
def other_user():
    return make_user(email="other@example.com", fullname="Other Person")


@pytest.fixture
def auth(user):
    return {"Authorization": create_access_token(user.id)}


def upload(name="logo.png", data=b"\x89PNG-data", content_type="image/png"):
    return UploadedFile(filename=name, content_type=content_type, data=data)
