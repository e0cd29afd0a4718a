import pytest

from conftest import make_user

from crm_backend.api.utils import create_access_token
from crm_backend.database.core.notifications import NotificationSink


@pytest.fixture
def service(client, user, auth):
    return client.post(
        f"/api/services/{user.id}/new",
        json={"name": "Web design", "details": "Websites for small and medium businesses"},
        headers=auth,
    ).json()["data"]


@pytest.fixture
def lead(client, user, auth, service):
    return client.post(
        f"/api/leads/{user.id}/new",
        json={
            "fullname": "Maria Papadopoulou",
            "email": "maria@example.com",
            "country": "Greece",
            "leadSource": "TikTok",
            "message": "Interested in a new website",
            "service": service["id"],
        },
        headers=auth,
    ).json()["data"]


def test_convert_moves_the_lead_to_clients(client, user, auth, service, lead):
    r = client.post(f"/api/clients/{user.id}/convert/{lead['id']}", headers=auth)
    assert r.status_code == 201
    converted = r.json()["data"]
    assert converted["email"] == "maria@example.com"
    assert converted["details"] == "Interested in a new website"
    assert converted["lead_source"] == "Other"
    assert converted["owner"] == str(user.id)

    details = client.get(f"/api/services/fetch/single/{service['id']}").json()["data"]
    assert details["leads"] == []
    assert [c["id"] for c in details["clients"]] == [converted["id"]]
    assert client.get(f"/api/leads/fetch/single/{lead['id']}", headers=auth).status_code == 404


def test_clients_are_private_to_their_owner(client, user, auth):
    created = client.post(
        f"/api/clients/{user.id}/new",
        json={"fullname": "Acme Corporation", "email": "hello@acme.example", "country": "Greece"},
        headers=auth,
    ).json()["data"]

    stranger = make_user(email="stranger@example.com", fullname="Some Stranger")
    stranger_auth = {"Authorization": create_access_token(stranger.id)}
    r = client.get(f"/api/clients/{stranger.id}/fetch/single/{created['id']}", headers=stranger_auth)
    assert r.status_code == 403
    assert client.get(f"/api/clients/{stranger.id}/fetch/all", headers=stranger_auth).json()["count"] == 0

    r = client.request(
        "DELETE", f"/api/clients/{stranger.id}/delete/many", json={"ids": [created["id"]]}, headers=stranger_auth
    )
    assert r.status_code == 403
    assert client.get(f"/api/clients/{user.id}/fetch/all", headers=auth).json()["count"] == 1


def test_files_are_stored_and_removed(client, user, auth, bucket):
    created = client.post(
        f"/api/clients/{user.id}/new",
        json={"fullname": "Acme Corporation", "email": "hello@acme.example", "country": "Greece"},
        headers=auth,
    ).json()["data"]

    r = client.put(
        f"/api/clients/{user.id}/files/add/{created['id']}",
        files=[("files", ("contract.pdf", b"%PDF-1.4", "application/pdf"))],
        headers=auth,
    )
    assert r.status_code == 200
    [url] = r.json()["data"]["files"]
    assert "/documents/" in url
    assert len(bucket.objects) == 1

    r = client.put(f"/api/clients/{user.id}/files/remove/{created['id']}", json={"file": url}, headers=auth)
    assert r.status_code == 200
    assert r.json()["data"]["files"] == []
    assert bucket.objects == {}


def test_rejected_upload_leaves_client_untouched(client, user, auth, bucket):
    created = client.post(
        f"/api/clients/{user.id}/new",
        json={"fullname": "Acme Corporation", "email": "hello@acme.example", "country": "Greece"},
        headers=auth,
    ).json()["data"]

    r = client.put(
        f"/api/clients/{user.id}/files/add/{created['id']}",
        files=[("files", ("virus.exe", b"MZ", "application/octet-stream"))],
        headers=auth,
    )
    assert r.status_code == 400
    assert bucket.objects == {}


def test_deleting_a_client_discards_its_files(client, user, auth, bucket, service):
    created = client.post(
        f"/api/clients/{user.id}/new",
        json={"fullname": "Acme Corporation", "email": "hello@acme.example", "country": "Greece", "service": service["id"]},
        headers=auth,
    ).json()["data"]
    client.put(
        f"/api/clients/{user.id}/files/add/{created['id']}",
        files=[("files", ("brief.txt", b"notes", "text/plain"))],
        headers=auth,
    )

    r = client.delete(f"/api/clients/{user.id}/delete/single/{created['id']}", headers=auth)
    assert r.status_code == 200
    assert bucket.objects == {}
    assert client.get(f"/api/services/fetch/single/{service['id']}").json()["data"]["clients"] == []


def test_failed_bucket_delete_is_reported_after_the_client_update(client, user, auth, bucket):
    created = client.post(
        f"/api/clients/{user.id}/new",
        json={"fullname": "Acme Corporation", "email": "hello@acme.example", "country": "Greece"},
        headers=auth,
    ).json()["data"]
    url = client.put(
        f"/api/clients/{user.id}/files/add/{created['id']}",
        files=[("files", ("brief.txt", b"notes", "text/plain"))],
        headers=auth,
    ).json()["data"]["files"][0]

    bucket.fail_on.add("delete")
    r = client.put(f"/api/clients/{user.id}/files/remove/{created['id']}", json={"file": url}, headers=auth)
    assert r.status_code == 500
    assert r.json()["success"] is False
    assert client.get(f"/api/clients/{user.id}/fetch/single/{created['id']}", headers=auth).json()["data"]["files"] == []


def test_failed_upload_discards_the_files_already_stored(client, user, auth, bucket, monkeypatch):
    created = client.post(
        f"/api/clients/{user.id}/new",
        json={"fullname": "Acme Corporation", "email": "hello@acme.example", "country": "Greece"},
        headers=auth,
    ).json()["data"]
    put = bucket.put

    def failing_put(key, data, content_type):
        if key.endswith("-invoice.pdf"):
            raise RuntimeError("put failed")
        put(key, data, content_type)

    monkeypatch.setattr(bucket, "put", failing_put)
    r = client.put(
        f"/api/clients/{user.id}/files/add/{created['id']}",
        files=[
            ("files", ("contract.pdf", b"%PDF-1.4", "application/pdf")),
            ("files", ("invoice.pdf", b"%PDF-1.4", "application/pdf")),
        ],
        headers=auth,
    )
    assert r.status_code == 500
    assert bucket.objects == {}
    assert client.get(f"/api/clients/{user.id}/fetch/single/{created['id']}", headers=auth).json()["data"]["files"] == []


def test_bulk_client_delete_survives_a_failing_feed(client, user, auth, monkeypatch):
    ids = [
        client.post(
            f"/api/clients/{user.id}/new",
            json={"fullname": fullname, "email": email, "country": "Greece"},
            headers=auth,
        ).json()["data"]["id"]
        for fullname, email in [("Acme Corporation", "hello@acme.example"), ("Globex Limited", "info@globex.example")]
    ]

    def failing_append(self, **kwargs):
        raise RuntimeError("notification store is down")

    monkeypatch.setattr(NotificationSink, "append", failing_append)
    r = client.request("DELETE", f"/api/clients/{user.id}/delete/many", json={"ids": ids}, headers=auth)
    assert r.status_code == 200
    assert r.json()["success"] is True
    assert client.get(f"/api/clients/{user.id}/fetch/all", headers=auth).json()["count"] == 0
