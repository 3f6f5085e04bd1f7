from __future__ import annotations

from pydantic import Field

from tourbook.domain.users.entities import Role

from .auth import UpdateMeRequestDTO


class UserUpdateDTO(UpdateMeRequestDTO):
    """Admin edit of an account; passwords are never changed here."""

    role: Role | None = None
    photo: str | None = Field(default=None, max_length=255)
