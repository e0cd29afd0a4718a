import re

from crm_backend.database.core.users import fetch_user_by_email

REGISTRATION = {
    "fullname": "Eleni Kosta",
    "email": "eleni@example.com",
    "password": "Str0ng#Pass",
    "role": "sales",
    "country": "Greece",
}


def last_body(sent_emails):
    return sent_emails.call_args.kwargs["body"]


def test_register_sends_activation_code(client, sent_emails):
    r = client.post("/api/users/register", json=REGISTRATION)
    assert r.status_code == 201
    data = r.json()["data"]
    assert data["token"].startswith("Bearer ")
    assert data["user"]["verified"] is False
    assert "password" not in data["user"]

    code = re.search(r"code is: (\d+)", last_body(sent_emails)).group(1)
    r = client.post("/api/users/verify", json={"email": "eleni@example.com", "code": code})
    assert r.status_code == 200
    assert fetch_user_by_email(email="eleni@example.com").verified is True


def test_register_reports_every_missing_field(client):
    r = client.post("/api/users/register", json={"email": "not-an-email", "password": "weak"})
    assert r.status_code == 400
    error = r.json()["error"]
    assert "Fullname is required" in error
    assert "User's role is required" in error
    assert "Please provide a valid email" in error
    assert "Password is invalid" in error


def test_duplicate_email(client):
    client.post("/api/users/register", json=REGISTRATION)
    r = client.post("/api/users/register", json=REGISTRATION)
    assert r.json() == {"success": False, "error": "Email already exists"}


def test_failed_activation_email_clears_the_code(client, sent_emails):
    sent_emails.side_effect = OSError("smtp down")
    r = client.post("/api/users/register", json=REGISTRATION)
    assert r.status_code == 500
    assert r.json()["error"] == "Error sending email"
    assert fetch_user_by_email(email="eleni@example.com").otp_code is None


def test_wrong_code_is_rejected(client):
    client.post("/api/users/register", json=REGISTRATION)
    r = client.post("/api/users/verify", json={"email": "eleni@example.com", "code": "not-it"})
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid OTP."


def test_login(client, user):
    r = client.post("/api/users/login", json={"email": "OWNER@example.com", "password": "Secret#123"})
    assert r.status_code == 200
    token = r.json()["data"]["token"]
    assert client.get("/api/users/me", headers={"Authorization": token}).json()["data"]["id"] == str(user.id)


def test_login_failures_look_the_same(client, user):
    wrong_password = client.post("/api/users/login", json={"email": "owner@example.com", "password": "nope"})
    unknown_email = client.post("/api/users/login", json={"email": "ghost@example.com", "password": "nope"})
    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json()


def test_password_reset_round(client, user, sent_emails):
    r = client.post("/api/users/forgot-password", json={"email": "owner@example.com"})
    assert r.status_code == 200
    token = re.search(r"/auth/resetpassword/(\S+)", last_body(sent_emails)).group(1)

    r = client.put(f"/api/users/reset-password/{token}", json={"password": "N3w#Password"})
    assert r.status_code == 200
    assert client.post("/api/users/login", json={"email": "owner@example.com", "password": "N3w#Password"}).status_code == 200

    r = client.put(f"/api/users/reset-password/{token}", json={"password": "An0ther#Pass"})
    assert r.json()["error"] == "Invalid token or token expired."


def test_forgot_password_does_not_reveal_accounts(client, user, sent_emails):
    known = client.post("/api/users/forgot-password", json={"email": "owner@example.com"}).json()
    unknown = client.post("/api/users/forgot-password", json={"email": "ghost@example.com"}).json()
    assert known == unknown
    assert sent_emails.call_count == 1


def test_failed_reset_email_clears_the_token(client, user, sent_emails):
    sent_emails.side_effect = OSError("smtp down")
    r = client.post("/api/users/forgot-password", json={"email": "owner@example.com"})
    assert r.status_code == 500
    assert fetch_user_by_email(email="owner@example.com").reset_password_token is None


def test_avatar_replacement(client, user, auth, storage):
    first = client.put(
        f"/api/users/{user.id}/edit",
        data={"city": "Athens"},
        files={"avatar": ("me.png", b"\x89PNG-1", "image/png")},
        headers=auth,
    ).json()["data"]
    assert first["city"] == "athens"

    second = client.put(
        f"/api/users/{user.id}/edit",
        files={"avatar": ("me-again.png", b"\x89PNG-2", "image/png")},
        headers=auth,
    ).json()["data"]
    assert storage.exists(second["image"])
    assert not storage.exists(first["image"])


def test_profile_edit_reports_field_and_avatar_errors_together(client, user, auth, bucket):
    r = client.put(
        f"/api/users/{user.id}/edit",
        data={"fullname": "ab", "telephone": "1"},
        files={"avatar": ("evil.exe", b"MZ", "application/octet-stream")},
        headers=auth,
    )
    assert r.status_code == 400
    assert r.json()["error"] == (
        "Minimum characters required for fullname is 4, "
        "Minimum characters required for telephone number is 3, "
        "File type .exe is not supported"
    )
    assert bucket.objects == {}


def test_expired_and_forged_tokens(client, user):
    r = client.get("/api/users/me", headers={"Authorization": "Bearer aaa.bbb.ccc"})
    assert r.status_code == 401
    assert r.json()["error"] == "Invalid Token"
    assert client.get("/api/users/me", headers={"Authorization": "Token abc"}).json()["error"] == "Invalid Headers"
