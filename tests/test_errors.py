from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm.exc import StaleDataError

from crm_backend.api.errors import (
    DependencyError,
    NotFoundError,
    ObjectNotFoundError,
    ValidationError,
    register_exception_handlers,
)


def build_app():
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/validation")
    def validation():
        raise ValidationError(["Name is required", "Email is required"])

    @app.get("/missing")
    def missing():
        raise NotFoundError("Lead not found")

    @app.get("/object")
    def object_missing():
        raise ObjectNotFoundError("File images/a.png not found")

    @app.get("/dependency")
    def dependency():
        raise DependencyError("Service could not be updated")

    @app.get("/stale")
    def stale():
        raise StaleDataError("version mismatch")

    @app.get("/boom")
    def boom():
        raise RuntimeError("secret internals")

    return app


client = TestClient(build_app(), raise_server_exceptions=False)


def test_validation_messages_are_joined():
    r = client.get("/validation")
    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "Name is required, Email is required"}


def test_taxonomy_status_codes():
    assert client.get("/missing").status_code == 404
    assert client.get("/object").status_code == 404
    assert client.get("/dependency").status_code == 500
    assert client.get("/stale").status_code == 400


def test_unexpected_errors_hide_details():
    r = client.get("/boom")
    assert r.status_code == 500
    assert r.json() == {"success": False, "error": "Server Error"}
