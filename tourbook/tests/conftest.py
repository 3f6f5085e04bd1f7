from __future__ import annotations

import pytest
from flask import Flask

from tourbook.app import create_app
from tourbook.application.services.credentials import CredentialService
from tourbook.infrastructure.container import Container
from tourbook.shared.config import AppConfig
from tourbook.tests.fakes import (
    DeterministicHasher,
    InMemoryUserRepository,
    RecordingEmailSender,
    fake_components,
    make_config,
)


@pytest.fixture()
def config() -> AppConfig:
    return make_config()


@pytest.fixture()
def users() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture()
def email_sender() -> RecordingEmailSender:
    return RecordingEmailSender()


@pytest.fixture()
def credentials(
    users: InMemoryUserRepository, email_sender: RecordingEmailSender, config: AppConfig
) -> CredentialService:
    return CredentialService(
        users=users,
        password_hasher=DeterministicHasher(),
        email=email_sender,
        config=config.auth,
    )


@pytest.fixture()
def container(
    config: AppConfig, users: InMemoryUserRepository, email_sender: RecordingEmailSender
) -> Container:
    return Container(
        config,
        overrides=fake_components(user_repository=users, email_sender=email_sender),
    )


@pytest.fixture()
def app(config: AppConfig, container: Container) -> Flask:
    return create_app(config, container=container)
