from __future__ import annotations

from flask import Flask

from tourbook.app import get_container
from tourbook.domain.users.entities import Role
from tourbook.tests.fakes import InMemoryUserRepository, RecordingEmailSender, bearer

SIGNUP = {
    "name": "Bob Smith",
    "email": "Bob@Example.com",
    "password": "pass1234",
    "passwordConfirm": "pass1234",
}


def session_cookie(response) -> str:
    return next(
        header for header in response.headers.getlist("Set-Cookie") if header.startswith("jwt=")
    )


def test_signup_sets_cookie_sends_welcome_and_hides_password(
    app: Flask, email_sender: RecordingEmailSender
) -> None:
    with app.test_client() as client:
        response = client.post("/api/v1/users/signup", json=SIGNUP)

    body = response.get_json()
    assert response.status_code == 201
    assert body["status"] == "success"
    assert body["token"]
    assert body["data"]["user"]["email"] == "bob@example.com"
    assert body["data"]["user"]["role"] == "user"
    assert b"password" not in response.data
    cookie = session_cookie(response)
    assert cookie.startswith(f"jwt={body['token']}")
    assert "HttpOnly" in cookie
    assert email_sender.sent == [("bob@example.com", "welcome", "http://localhost/me")]


def test_signup_password_mismatch(app: Flask) -> None:
    with app.test_client() as client:
        response = client.post(
            "/api/v1/users/signup", json={**SIGNUP, "passwordConfirm": "different1"}
        )

    assert response.status_code == 422
    assert response.get_json()["error"] == "password_mismatch"


def test_signup_rejects_invalid_email(app: Flask) -> None:
    with app.test_client() as client:
        response = client.post("/api/v1/users/signup", json={**SIGNUP, "email": "not-an-email"})

    body = response.get_json()
    assert response.status_code == 422
    assert body["error"] == "validation_error"
    assert "email" in body["context"]["fields"]


def test_signup_duplicate_email(app: Flask, users: InMemoryUserRepository) -> None:
    users.seed(email="bob@example.com")

    with app.test_client() as client:
        response = client.post("/api/v1/users/signup", json=SIGNUP)

    assert response.status_code == 409
    assert response.get_json()["error"] == "user_already_exists"


def test_login_and_logout(app: Flask, users: InMemoryUserRepository) -> None:
    users.seed()

    with app.test_client() as client:
        ok = client.post(
            "/api/v1/users/login", json={"email": "alice@example.com", "password": "pass1234"}
        )
        logout = client.get("/api/v1/users/logout")

    assert ok.status_code == 200
    assert session_cookie(ok).startswith(f"jwt={ok.get_json()['token']}")
    assert logout.status_code == 200
    assert session_cookie(logout).startswith("jwt=loggedout")


def test_login_failure_does_not_reveal_which_part_was_wrong(
    app: Flask, users: InMemoryUserRepository
) -> None:
    users.seed()

    with app.test_client() as client:
        wrong_password = client.post(
            "/api/v1/users/login", json={"email": "alice@example.com", "password": "nope-nope"}
        )
        unknown_email = client.post(
            "/api/v1/users/login", json={"email": "eve@example.com", "password": "pass1234"}
        )

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.get_json() == unknown_email.get_json()


def test_me_requires_session(app: Flask, users: InMemoryUserRepository) -> None:
    user = users.seed()
    token = get_container(app).credential_service.issue_token(user.id)

    with app.test_client() as client:
        anonymous = client.get("/api/v1/users/me")
        authed = client.get("/api/v1/users/me", headers=bearer(token))

    assert anonymous.status_code == 401
    assert anonymous.get_json()["error"] == "unauthenticated"
    assert authed.status_code == 200
    assert authed.get_json()["data"]["data"]["email"] == "alice@example.com"


def test_session_cookie_is_accepted(app: Flask, users: InMemoryUserRepository) -> None:
    users.seed()

    with app.test_client() as client:
        login = client.post(
            "/api/v1/users/login", json={"email": "alice@example.com", "password": "pass1234"}
        )
        assert login.status_code == 200
        response = client.get("/api/v1/users/me")

    assert response.status_code == 200


def test_garbage_token_is_invalid(app: Flask) -> None:
    with app.test_client() as client:
        response = client.get("/api/v1/users/me", headers=bearer("abc.def.ghi"))

    assert response.status_code == 401
    assert response.get_json()["error"] == "invalid_token"


def test_update_me_refuses_passwords(app: Flask, users: InMemoryUserRepository) -> None:
    user = users.seed()
    token = get_container(app).credential_service.issue_token(user.id)

    with app.test_client() as client:
        refused = client.patch(
            "/api/v1/users/updateMe",
            json={"password": "newpass99", "passwordConfirm": "newpass99"},
            headers=bearer(token),
        )
        renamed = client.patch(
            "/api/v1/users/updateMe",
            json={"name": "Alice Cooper", "role": "admin"},
            headers=bearer(token),
        )

    assert refused.status_code == 400
    assert refused.get_json()["error"] == "password_update_not_allowed"
    assert renamed.status_code == 200
    assert renamed.get_json()["data"]["data"]["name"] == "Alice Cooper"
    assert users.users[user.id].role is Role.USER


def test_delete_me_deactivates_account(app: Flask, users: InMemoryUserRepository) -> None:
    user = users.seed()
    token = get_container(app).credential_service.issue_token(user.id)

    with app.test_client() as client:
        deleted = client.delete("/api/v1/users/deleteMe", headers=bearer(token))
        after = client.get("/api/v1/users/me", headers=bearer(token))

    assert deleted.status_code == 204
    assert users.users[user.id].active is False
    assert after.status_code == 401
    assert after.get_json()["error"] == "user_not_found"


def test_forgot_then_reset_password(
    app: Flask, users: InMemoryUserRepository, email_sender: RecordingEmailSender
) -> None:
    user = users.seed()

    with app.test_client() as client:
        forgot = client.post("/api/v1/users/forgotPassword", json={"email": "alice@example.com"})
        reset_url = email_sender.sent[-1][2]
        assert reset_url.startswith("http://localhost/api/v1/users/resetPassword/")
        path = reset_url.removeprefix("http://localhost")
        reset = client.patch(
            path, json={"password": "brandnew1", "passwordConfirm": "brandnew1"}
        )
        reused = client.patch(
            path, json={"password": "brandnew2", "passwordConfirm": "brandnew2"}
        )

    assert forgot.status_code == 200
    assert forgot.get_json()["message"] == "Token sent to email!"
    assert reset.status_code == 200
    assert reset.get_json()["token"]
    assert users.users[user.id].password_hash == "hashed:brandnew1"
    assert reused.status_code == 400
    assert reused.get_json()["error"] == "invalid_or_expired_token"


def test_forgot_password_for_unknown_email(app: Flask) -> None:
    with app.test_client() as client:
        response = client.post("/api/v1/users/forgotPassword", json={"email": "x@example.com"})

    assert response.status_code == 404


def test_forgot_password_delivery_failure(
    app: Flask, users: InMemoryUserRepository, email_sender: RecordingEmailSender
) -> None:
    user = users.seed()
    email_sender.fail = True

    with app.test_client() as client:
        response = client.post("/api/v1/users/forgotPassword", json={"email": "alice@example.com"})

    assert response.status_code == 500
    assert response.get_json()["status"] == "error"
    assert users.users[user.id].password_reset_token is None


def test_update_my_password(app: Flask, users: InMemoryUserRepository) -> None:
    user = users.seed()
    token = get_container(app).credential_service.issue_token(user.id)

    with app.test_client() as client:
        wrong = client.patch(
            "/api/v1/users/updateMyPassword",
            json={
                "passwordCurrent": "guess-again",
                "password": "newpass99",
                "passwordConfirm": "newpass99",
            },
            headers=bearer(token),
        )
        ok = client.patch(
            "/api/v1/users/updateMyPassword",
            json={
                "passwordCurrent": "pass1234",
                "password": "newpass99",
                "passwordConfirm": "newpass99",
            },
            headers=bearer(token),
        )

    assert wrong.status_code == 401
    assert wrong.get_json()["error"] == "wrong_password"
    assert ok.status_code == 200
    assert session_cookie(ok).startswith(f"jwt={ok.get_json()['token']}")
    assert users.users[user.id].password_hash == "hashed:newpass99"
