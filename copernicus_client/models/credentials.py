"""Credential model shared by the config, resolver and client."""

from pydantic import BaseModel

MASKED_PASSWORD = "***MASKED***"


class Credentials(BaseModel):
    """Copernicus Marine username/password pair."""

    username: str
    password: str

    @property
    def is_complete(self) -> bool:
        """Both values are present and non-empty."""
        return bool(self.username) and bool(self.password)

    def masked(self) -> "Credentials":
        """Return a copy that is safe to log or display."""
        return self.model_copy(update={"password": MASKED_PASSWORD})

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, password={MASKED_PASSWORD!r})"

    __str__ = __repr__
