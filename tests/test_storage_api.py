from crm_backend.api.utils import create_access_token


def test_upload_report_download_delete(client, user, auth):
    r = client.post(
        f"/api/storage/{user.id}/upload",
        files=[
            ("files", ("notes.txt", b"hello storage", "text/plain")),
            ("files", ("logo.png", b"\x89PNG", "image/png")),
        ],
        headers=auth,
    )
    assert r.status_code == 201
    text_url, image_url = r.json()["data"]

    report = client.get(f"/api/storage/{user.id}/fetch/report", headers=auth).json()["data"]
    assert sorted(report) == ["documents", "images"]
    assert report["documents"]["size"] == len(b"hello storage")

    key = text_url.split("/crm-test/", 1)[1]
    r = client.get(f"/api/storage/{user.id}/download/{key}", headers=auth)
    assert r.status_code == 200
    assert r.content == b"hello storage"
    assert r.headers["content-disposition"].startswith("attachment;")

    r = client.delete(f"/api/storage/{user.id}/delete/{key}", headers=auth)
    assert r.status_code == 200
    r = client.delete(f"/api/storage/{user.id}/delete/{key}", headers=auth)
    assert r.status_code == 404


def test_replace_by_filename(client, user, auth, storage):
    url = client.post(
        f"/api/storage/{user.id}/upload", files=[("files", ("logo.png", b"\x89PNG", "image/png"))], headers=auth
    ).json()["data"][0]
    filename = url.rsplit("/", 1)[1]

    r = client.put(
        f"/api/storage/{user.id}/replace/{filename}",
        files={"file": ("logo-v2.png", b"\x89PNG-2", "image/png")},
        headers=auth,
    )
    assert r.status_code == 200
    assert storage.exists(r.json()["data"])
    assert not storage.exists(url)


def test_rejected_upload(client, user, auth, bucket):
    r = client.post(
        f"/api/storage/{user.id}/upload", files=[("files", ("tool.exe", b"MZ", "application/octet-stream"))], headers=auth
    )
    assert r.status_code == 400
    assert bucket.objects == {}


def test_storage_needs_a_token(client, user):
    assert client.get(f"/api/storage/{user.id}/fetch/report").status_code == 401


def upload_one(client, user, auth, name="a.pdf", data=b"%PDF-1.4"):
    r = client.post(
        f"/api/storage/{user.id}/upload", files=[("files", (name, data, "application/pdf"))], headers=auth
    )
    assert r.status_code == 201
    return r.json()["data"][0]


def test_storage_is_private_to_the_uploader(client, user, other_user, auth, storage):
    url = upload_one(client, user, auth)
    key = url.split("/crm-test/", 1)[1]
    other_auth = {"Authorization": create_access_token(other_user.id)}

    r = client.delete(f"/api/storage/{other_user.id}/delete/{key}", headers=other_auth)
    assert r.status_code == 404
    assert r.json()["error"] == "File not found in user's storage"
    r = client.put(
        f"/api/storage/{other_user.id}/replace/{key}",
        files={"file": ("b.pdf", b"%PDF-2", "application/pdf")},
        headers=other_auth,
    )
    assert r.status_code == 404
    assert client.get(f"/api/storage/{other_user.id}/download/{key}", headers=other_auth).status_code == 404
    assert client.get(f"/api/storage/{other_user.id}/fetch/report", headers=other_auth).json()["data"] == {}

    assert storage.exists(url)
    assert list(storage.bucket.objects) == [key]


def test_record_files_are_out_of_reach_of_the_storage_routes(client, user, auth, storage):
    created = client.post(
        f"/api/clients/{user.id}/new",
        json={"fullname": "Acme Corporation", "email": "hello@acme.example", "country": "Greece"},
        headers=auth,
    ).json()["data"]
    [url] = client.put(
        f"/api/clients/{user.id}/files/add/{created['id']}",
        files=[("files", ("contract.pdf", b"%PDF-1.4", "application/pdf"))],
        headers=auth,
    ).json()["data"]["files"]

    key = url.split("/crm-test/", 1)[1]
    assert client.delete(f"/api/storage/{user.id}/delete/{key}", headers=auth).status_code == 404
    assert storage.exists(url)
    assert client.get(f"/api/storage/{user.id}/fetch/report", headers=auth).json()["data"] == {}


def test_storage_changes_are_recorded_in_the_feed(client, user, auth):
    url = upload_one(client, user, auth)
    key = url.split("/crm-test/", 1)[1]
    replaced = client.put(
        f"/api/storage/{user.id}/replace/{key}",
        files={"file": ("b.pdf", b"%PDF-2", "application/pdf")},
        headers=auth,
    ).json()["data"]
    client.delete(f"/api/storage/{user.id}/delete/{replaced.split('/crm-test/', 1)[1]}", headers=auth)

    feed = client.get(f"/api/notifications/{user.id}/fetch/mine", headers=auth).json()["data"]["notifications"]
    assert sorted(n["type"] for n in feed) == ["add", "delete", "edit"]
    assert {n["related_model"] for n in feed} == {"File"}
