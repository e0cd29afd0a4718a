from crm_backend.api.utils import create_access_token


def test_announcement_lifecycle(client, user, auth):
    r = client.post(
        f"/api/announcements/{user.id}/new",
        json={"title": "Office closed", "description": "Closed on Monday for the holiday"},
        headers=auth,
    )
    assert r.status_code == 201
    announcement = r.json()["data"]
    assert announcement["uploaded_by"] == str(user.id)

    assert client.get("/api/announcements/fetch/all").json()["count"] == 1
    r = client.delete(f"/api/announcements/{user.id}/delete/single/{announcement['id']}", headers=auth)
    assert r.status_code == 200
    assert client.get(f"/api/announcements/fetch/single/{announcement['id']}").status_code == 404


def test_announcement_requires_title_and_description(client, user, auth):
    r = client.post(f"/api/announcements/{user.id}/new", json={}, headers=auth)
    assert r.json() == {"success": False, "error": "Title is required, Description is required"}


def test_faq_edit_and_bulk_delete(client, user, other_user, auth):
    ids = []
    for question in ("How do I pay?", "Where are you?"):
        r = client.post(f"/api/faqs/{user.id}/new", json={"question": question, "answer": "See the site."}, headers=auth)
        ids.append(r.json()["data"]["id"])

    r = client.put(f"/api/faqs/{user.id}/edit/{ids[0]}", json={"answer": "By card or transfer."}, headers=auth)
    assert r.json()["data"]["answer"] == "By card or transfer."
    assert r.json()["data"]["question"] == "How do I pay?"

    other_auth = {"Authorization": create_access_token(other_user.id)}
    r = client.request("DELETE", f"/api/faqs/{other_user.id}/delete/many", json={"ids": ids}, headers=other_auth)
    assert r.status_code == 403

    r = client.request("DELETE", f"/api/faqs/{user.id}/delete/many", json={"ids": ids}, headers=auth)
    assert r.json()["count"] == 2
    assert client.get("/api/faqs/fetch/all").json()["count"] == 0
