import pytest

from crm_backend.database.core.notifications import NotificationSink


@pytest.fixture
def service(client, user, auth):
    r = client.post(
        f"/api/services/{user.id}/new",
        json={"name": "Web design", "details": "Websites for small and medium businesses"},
        headers=auth,
    )
    assert r.status_code == 201
    return r.json()["data"]


def new_lead(client, user, auth, **overrides):
    body = {"fullname": "Maria Papadopoulou", "email": "maria@example.com", "country": "Greece", "leadSource": "Google"}
    body.update(overrides)
    return client.post(f"/api/leads/{user.id}/new", json=body, headers=auth)


def test_service_validation_is_batched(client, user, auth):
    r = client.post(f"/api/services/{user.id}/new", json={"details": "short"}, headers=auth)
    assert r.status_code == 400
    assert r.json() == {
        "success": False,
        "error": "Service name is required, Minimum characters required for details is 20",
    }


def test_writes_require_matching_owner(client, user, other_user, auth):
    r = client.post(f"/api/services/{other_user.id}/new", json={"name": "Web design"}, headers=auth)
    assert r.status_code == 403
    r = client.post(f"/api/services/{user.id}/new", json={"name": "Web design"})
    assert r.status_code == 401
    assert r.json()["error"] == "Invalid Headers"


def test_duplicate_service_name_is_rejected(client, user, auth, service):
    r = client.post(f"/api/services/{user.id}/new", json={"name": "Web design"}, headers=auth)
    assert r.status_code == 400


def test_lead_links_to_service(client, user, auth, service):
    r = new_lead(client, user, auth, service=service["id"])
    assert r.status_code == 201
    lead = r.json()["data"]
    assert lead["service"] == service["id"]

    details = client.get(f"/api/services/fetch/single/{service['id']}").json()["data"]
    assert [item["id"] for item in details["leads"]] == [lead["id"]]


def test_lead_with_unknown_service_is_not_created(client, user, auth):
    r = new_lead(client, user, auth, service="00000000-0000-0000-0000-000000000001")
    assert r.status_code == 404
    assert client.get("/api/leads/fetch/all", headers=auth).json()["count"] == 0


def test_duplicate_lead_email(client, user, auth):
    assert new_lead(client, user, auth).status_code == 201
    r = new_lead(client, user, auth, fullname="Someone Else", email="MARIA@example.com")
    assert r.status_code == 400
    assert r.json()["error"] == "Lead with this email already exists in your account"


def test_editing_lead_moves_it_between_services(client, user, auth, service):
    other = client.post(
        f"/api/services/{user.id}/new",
        json={"name": "Marketing", "details": "Campaigns on every social network"},
        headers=auth,
    ).json()["data"]
    lead = new_lead(client, user, auth, service=service["id"]).json()["data"]

    r = client.put(f"/api/leads/{user.id}/edit/{lead['id']}", json={"service": other["id"]}, headers=auth)
    assert r.status_code == 200

    services = {s["id"]: s for s in client.get("/api/services/fetch/all").json()["data"]}
    assert services[service["id"]]["leads"] == []
    assert services[other["id"]]["leads"] == [lead["id"]]


def test_service_with_leads_cannot_be_deleted(client, user, auth, service):
    lead = new_lead(client, user, auth, service=service["id"]).json()["data"]

    r = client.delete(f"/api/services/{user.id}/delete/single/{service['id']}", headers=auth)
    assert r.status_code == 403
    assert r.json()["error"] == "Cannot delete service with associated leads, you have to delete the leads first"

    assert client.delete(f"/api/leads/{user.id}/delete/single/{lead['id']}", headers=auth).status_code == 200
    assert client.get(f"/api/services/fetch/single/{service['id']}").json()["data"]["leads"] == []
    assert client.delete(f"/api/services/{user.id}/delete/single/{service['id']}", headers=auth).status_code == 200


def test_bulk_lead_delete_is_all_or_nothing(client, user, auth, service):
    first = new_lead(client, user, auth, service=service["id"]).json()["data"]
    second = new_lead(client, user, auth, fullname="Nikos Georgiou", email="nikos@example.com").json()["data"]
    missing = "00000000-0000-0000-0000-000000000001"

    r = client.request("DELETE", f"/api/leads/{user.id}/delete/many", json={"ids": [first["id"], missing]}, headers=auth)
    assert r.status_code == 403
    assert client.get("/api/leads/fetch/all", headers=auth).json()["count"] == 2

    r = client.request("DELETE", f"/api/leads/{user.id}/delete/many", json={"ids": [first["id"], second["id"]]}, headers=auth)
    assert r.json() == {"success": True, "message": "2 leads deleted successfully", "count": 2}
    assert client.get(f"/api/services/fetch/single/{service['id']}").json()["data"]["leads"] == []


def test_mutations_are_recorded_in_the_feed(client, user, auth, service):
    new_lead(client, user, auth)
    feed = client.get(f"/api/notifications/{user.id}/fetch/mine", headers=auth).json()["data"]
    assert feed["unread"] == 2
    assert [n["type"] for n in feed["notifications"]] == ["create", "create"]
    assert {n["related_model"] for n in feed["notifications"]} == {"Service", "Lead"}


def test_bulk_lead_delete_survives_a_failing_feed(client, user, auth, service, monkeypatch):
    first = new_lead(client, user, auth, service=service["id"]).json()["data"]
    second = new_lead(client, user, auth, fullname="Nikos Georgiou", email="nikos@example.com").json()["data"]

    def failing_append(self, **kwargs):
        raise RuntimeError("notification store is down")

    monkeypatch.setattr(NotificationSink, "append", failing_append)
    r = client.request("DELETE", f"/api/leads/{user.id}/delete/many", json={"ids": [first["id"], second["id"]]}, headers=auth)
    assert r.json() == {"success": True, "message": "2 leads deleted successfully", "count": 2}
    assert client.get("/api/leads/fetch/all", headers=auth).json()["count"] == 0
    assert client.get(f"/api/services/fetch/single/{service['id']}").json()["data"]["leads"] == []


def test_overlong_email_is_a_validation_error(client, user, auth):
    r = new_lead(client, user, auth, email="a" * 45 + "@example.com")
    assert r.status_code == 400
    assert r.json()["error"] == "Maximum characters required for email is 50"
    assert client.get("/api/leads/fetch/all", headers=auth).json()["count"] == 0
