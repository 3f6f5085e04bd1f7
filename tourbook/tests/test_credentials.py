from __future__ import annotations

from datetime import UTC, datetime, timedelta

import jwt
import pytest

from tourbook.application.services.credentials import CredentialService, hash_reset_token
from tourbook.domain.users.exceptions import (
    DeliveryFailedError,
    InvalidCredentialsError,
    InvalidOrExpiredTokenError,
    InvalidTokenError,
    NoSuchUserError,
    PasswordMismatchError,
    PasswordTooShortError,
    StalePasswordError,
    TokenExpiredError,
    UnauthenticatedError,
    UserAlreadyExistsError,
    UserNotFoundError,
    WrongPasswordError,
)
from tourbook.shared.config import AppConfig
from tourbook.tests.fakes import (
    TEST_SECRET,
    DeterministicHasher,
    InMemoryUserRepository,
    RecordingEmailSender,
    fixed_clock,
)


def service_at(
    moment: datetime,
    users: InMemoryUserRepository,
    config: AppConfig,
    email: RecordingEmailSender | None = None,
) -> CredentialService:
    return CredentialService(
        users=users,
        password_hasher=DeterministicHasher(),
        email=email or RecordingEmailSender(),
        config=config.auth,
        clock=fixed_clock(moment),
    )


def capture_reset_url(store: list[str]):
    def build(raw: str) -> str:
        store.append(raw)
        return f"http://localhost/api/v1/users/resetPassword/{raw}"

    return build


def test_issued_token_carries_id_and_lifetime(credentials: CredentialService) -> None:
    token = credentials.issue_token("abc")

    claims = jwt.decode(token, TEST_SECRET, algorithms=["HS256"])
    assert claims["id"] == "abc"
    assert claims["exp"] - claims["iat"] == 90 * 24 * 3600


def test_register_creates_user_and_sends_welcome(
    credentials: CredentialService,
    users: InMemoryUserRepository,
    email_sender: RecordingEmailSender,
) -> None:
    user = credentials.register(
        name="  Bob Smith ",
        email="Bob@Example.com",
        password="pass1234",
        password_confirm="pass1234",
        account_url="http://localhost/me",
    )

    assert user.email == "bob@example.com"
    assert user.name == "Bob Smith"
    assert users.users[user.id].password_hash == "hashed:pass1234"
    assert email_sender.sent == [("bob@example.com", "welcome", "http://localhost/me")]


def test_register_survives_welcome_failure(
    users: InMemoryUserRepository, config: AppConfig
) -> None:
    service = service_at(datetime.now(UTC), users, config, RecordingEmailSender(fail=True))

    user = service.register(
        name="Bob",
        email="bob@example.com",
        password="pass1234",
        password_confirm="pass1234",
        account_url="http://localhost/me",
    )

    assert user.id in users.users


def test_register_rejects_duplicate_email(
    credentials: CredentialService, users: InMemoryUserRepository
) -> None:
    users.seed(email="alice@example.com")

    with pytest.raises(UserAlreadyExistsError):
        credentials.register(
            name="Alice",
            email="ALICE@example.com",
            password="pass1234",
            password_confirm="pass1234",
            account_url="http://localhost/me",
        )


def test_register_validates_password(credentials: CredentialService) -> None:
    with pytest.raises(PasswordTooShortError):
        credentials.register(
            name="Bob", email="b@example.com", password="short", password_confirm="short",
            account_url="",
        )
    with pytest.raises(PasswordMismatchError):
        credentials.register(
            name="Bob", email="b@example.com", password="pass1234", password_confirm="pass12345",
            account_url="",
        )


def test_unknown_email_and_wrong_password_are_indistinguishable(
    credentials: CredentialService, users: InMemoryUserRepository
) -> None:
    users.seed(email="alice@example.com", password="pass1234")

    with pytest.raises(InvalidCredentialsError) as unknown:
        credentials.verify_credentials("nobody@example.com", "pass1234")
    with pytest.raises(InvalidCredentialsError) as wrong:
        credentials.verify_credentials("alice@example.com", "wrong-pass")

    assert unknown.value.to_dict() == wrong.value.to_dict()


def test_verify_credentials_returns_user(
    credentials: CredentialService, users: InMemoryUserRepository
) -> None:
    seeded = users.seed()

    assert credentials.verify_credentials(" Alice@Example.com", "pass1234").id == seeded.id


def test_authenticate_request_resolves_user(
    credentials: CredentialService, users: InMemoryUserRepository
) -> None:
    seeded = users.seed()

    user = credentials.authenticate_request(credentials.issue_token(seeded.id))

    assert user.id == seeded.id
    assert user.password_hash is None


def test_missing_token_is_unauthenticated(credentials: CredentialService) -> None:
    with pytest.raises(UnauthenticatedError):
        credentials.authenticate_request(None)


def test_tampered_token_is_invalid(
    credentials: CredentialService, users: InMemoryUserRepository
) -> None:
    seeded = users.seed()
    forged = jwt.encode({"id": seeded.id, "iat": 1, "exp": 4102444800}, "a-different-secret-that-is-long-enough-to-sign")

    with pytest.raises(InvalidTokenError):
        credentials.authenticate_request(forged)
    with pytest.raises(InvalidTokenError):
        credentials.authenticate_request("not-a-token")


def test_expired_token_is_rejected(users: InMemoryUserRepository, config: AppConfig) -> None:
    seeded = users.seed()
    issued_long_ago = service_at(datetime.now(UTC) - timedelta(days=91), users, config)
    token = issued_long_ago.issue_token(seeded.id)

    with pytest.raises(TokenExpiredError):
        service_at(datetime.now(UTC), users, config).authenticate_request(token)


def test_token_for_deleted_user_is_rejected(
    credentials: CredentialService, users: InMemoryUserRepository
) -> None:
    seeded = users.seed()
    token = credentials.issue_token(seeded.id)
    users.deactivate(seeded.id)

    with pytest.raises(UserNotFoundError):
        credentials.authenticate_request(token)


def test_token_older_than_password_change_is_stale(
    credentials: CredentialService, users: InMemoryUserRepository, config: AppConfig
) -> None:
    seeded = users.seed()
    old_token = service_at(datetime.now(UTC) - timedelta(hours=1), users, config).issue_token(
        seeded.id
    )

    _, fresh_token = credentials.change_password(seeded, "pass1234", "newpass99", "newpass99")

    with pytest.raises(StalePasswordError):
        credentials.authenticate_request(old_token)
    assert credentials.authenticate_request(fresh_token).id == seeded.id


def test_optional_authenticate_swallows_auth_failures(
    credentials: CredentialService, users: InMemoryUserRepository
) -> None:
    seeded = users.seed()

    assert credentials.optional_authenticate(None) is None
    assert credentials.optional_authenticate("garbage") is None
    assert credentials.optional_authenticate(credentials.issue_token(seeded.id)).id == seeded.id


def test_change_password_requires_current_password(
    credentials: CredentialService, users: InMemoryUserRepository
) -> None:
    seeded = users.seed()

    with pytest.raises(WrongPasswordError):
        credentials.change_password(seeded, "not-it-at-all", "newpass99", "newpass99")
    assert users.users[seeded.id].password_hash == "hashed:pass1234"


def test_change_password_sets_changed_at_just_before_now(
    users: InMemoryUserRepository, config: AppConfig
) -> None:
    seeded = users.seed()
    now = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)

    service_at(now, users, config).change_password(seeded, "pass1234", "newpass99", "newpass99")

    stored = users.users[seeded.id]
    assert stored.password_hash == "hashed:newpass99"
    assert stored.password_changed_at == now - timedelta(seconds=1)


def test_forgot_password_stores_hashed_token(
    credentials: CredentialService,
    users: InMemoryUserRepository,
    email_sender: RecordingEmailSender,
) -> None:
    seeded = users.seed()
    raw: list[str] = []

    credentials.request_password_reset("alice@example.com", capture_reset_url(raw))

    stored = users.users[seeded.id]
    assert len(raw[0]) == 64
    assert stored.password_reset_token == hash_reset_token(raw[0])
    assert stored.password_reset_token != raw[0]
    assert email_sender.sent[0][1] == "password_reset"
    assert email_sender.sent[0][2].endswith(raw[0])


def test_forgot_password_unknown_email(credentials: CredentialService) -> None:
    with pytest.raises(NoSuchUserError):
        credentials.request_password_reset("ghost@example.com", capture_reset_url([]))


def test_forgot_password_rolls_back_on_delivery_failure(
    users: InMemoryUserRepository, config: AppConfig
) -> None:
    seeded = users.seed()
    service = service_at(datetime.now(UTC), users, config, RecordingEmailSender(fail=True))

    with pytest.raises(DeliveryFailedError):
        service.request_password_reset("alice@example.com", capture_reset_url([]))

    stored = users.users[seeded.id]
    assert stored.password_reset_token is None
    assert stored.password_reset_expires is None
    assert users.reset_writes[-1] == (None, None)


def test_reset_token_is_single_use(
    credentials: CredentialService, users: InMemoryUserRepository
) -> None:
    seeded = users.seed()
    raw: list[str] = []
    credentials.request_password_reset("alice@example.com", capture_reset_url(raw))

    user, token = credentials.reset_password(raw[0], "brandnew1", "brandnew1")

    assert user.id == seeded.id
    assert credentials.authenticate_request(token).id == seeded.id
    assert users.users[seeded.id].password_hash == "hashed:brandnew1"
    with pytest.raises(InvalidOrExpiredTokenError):
        credentials.reset_password(raw[0], "another12", "another12")


def test_expired_reset_token_is_rejected(
    credentials: CredentialService, users: InMemoryUserRepository, config: AppConfig
) -> None:
    users.seed()
    raw: list[str] = []
    earlier = service_at(datetime.now(UTC) - timedelta(minutes=11), users, config)
    earlier.request_password_reset("alice@example.com", capture_reset_url(raw))

    with pytest.raises(InvalidOrExpiredTokenError):
        credentials.reset_password(raw[0], "brandnew1", "brandnew1")


def test_reset_with_unknown_token(credentials: CredentialService) -> None:
    with pytest.raises(InvalidOrExpiredTokenError):
        credentials.reset_password("0" * 64, "brandnew1", "brandnew1")
