from __future__ import annotations

import re

from pydantic import Field, field_validator
from pydantic_core import PydanticCustomError

from .base import CamelModel

_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _check_email(value: str) -> str:
    value = value.strip().lower()
    if not _EMAIL.match(value):
        raise PydanticCustomError("email_invalid", "Please provide a valid email", {})
    return value


class SignupRequestDTO(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    email: str = Field(max_length=254)
    password: str = Field(min_length=1, max_length=128)
    password_confirm: str = Field(max_length=128)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return _check_email(value)


class LoginRequestDTO(CamelModel):
    email: str = Field(min_length=1, max_length=254)
    password: str = Field(min_length=1, max_length=128)


class ForgotPasswordRequestDTO(CamelModel):
    email: str = Field(min_length=1, max_length=254)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return _check_email(value)


class ResetPasswordRequestDTO(CamelModel):
    password: str = Field(min_length=1, max_length=128)
    password_confirm: str = Field(max_length=128)


class UpdatePasswordRequestDTO(CamelModel):
    password_current: str = Field(min_length=1, max_length=128)
    password: str = Field(min_length=1, max_length=128)
    password_confirm: str = Field(max_length=128)


class UpdateMeRequestDTO(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    email: str | None = Field(default=None, max_length=254)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str | None) -> str | None:
        return _check_email(value) if value is not None else None
