"""Authenticated session value."""

from pydantic import BaseModel, ConfigDict


class Session(BaseModel):
    """Identity of the signed-in user. Immutable; replaced on login/logout."""

    model_config = ConfigDict(frozen=True)

    is_authenticated: bool = False
    user_id: str | None = None
    username: str | None = None

    @classmethod
    def anonymous(cls) -> "Session":
        return cls()
