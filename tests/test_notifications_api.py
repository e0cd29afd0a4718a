from crm_backend.api.utils import create_access_token


def create_service(client, user, auth, name="Web design"):
    return client.post(
        f"/api/services/{user.id}/new",
        json={"name": name, "details": "Websites for small and medium businesses"},
        headers=auth,
    )


def my_feed(client, user, auth):
    return client.get(f"/api/notifications/{user.id}/fetch/mine", headers=auth).json()


def test_mark_read(client, user, auth):
    create_service(client, user, auth)
    create_service(client, user, auth, name="Marketing")
    feed = my_feed(client, user, auth)
    ids = [n["id"] for n in feed["data"]["notifications"]]

    r = client.put(f"/api/notifications/{user.id}/read", json={"ids": ids[:1]}, headers=auth)
    assert r.status_code == 200
    assert my_feed(client, user, auth)["data"]["unread"] == 1


def test_other_users_notifications_are_off_limits(client, user, other_user, auth):
    create_service(client, user, auth)
    [notification] = my_feed(client, user, auth)["data"]["notifications"]
    other_auth = {"Authorization": create_access_token(other_user.id)}

    r = client.get(f"/api/notifications/{other_user.id}/fetch/single/{notification['id']}", headers=other_auth)
    assert r.status_code == 403
    r = client.request(
        "DELETE", f"/api/notifications/{other_user.id}/delete/many", json={"ids": [notification["id"]]}, headers=other_auth
    )
    assert r.status_code == 403
    assert r.json()["error"] == "You do not have permission to modify some or all of the selected notifications"


def test_delete_single(client, user, auth):
    create_service(client, user, auth)
    [notification] = my_feed(client, user, auth)["data"]["notifications"]
    r = client.delete(f"/api/notifications/{user.id}/delete/single/{notification['id']}", headers=auth)
    assert r.status_code == 200
    assert my_feed(client, user, auth)["count"] == 0
