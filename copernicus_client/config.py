"""Session configuration and the persisted credentials file."""

import logging
import os
from pathlib import Path

from dotenv import dotenv_values, set_key

from copernicus_client.models.credentials import Credentials

logger = logging.getLogger(__name__)

USERNAME_ENV = "COPERNICUS_USERNAME"
PASSWORD_ENV = "COPERNICUS_PASSWORD"
CREDENTIALS_FILE_ENV = "COPERNICUS_CREDENTIALS_FILE"
DEBUG_ENV = "COPERNICUS_DEBUG"

CREDENTIALS_DIR_NAME = ".copernicus_client"
CREDENTIALS_FILE_NAME = "credentials.txt"
CREDENTIALS_FILE_MODE = 0o600


def default_credentials_file() -> Path:
    return Path.home() / CREDENTIALS_DIR_NAME / CREDENTIALS_FILE_NAME


class CredentialStore:
    """Username/password persisted as a dotenv file.

    The file uses the same keys as the environment variables, with values
    quoted so that spaces, `#` and quotes survive a round trip:

        COPERNICUS_USERNAME='my_user'
        COPERNICUS_PASSWORD='my_password'
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self._path = Path(path) if path is not None else default_credentials_file()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def exists(self) -> bool:
        return self._path.is_file()

    def save(self, credentials: Credentials) -> Path:
        """Write the credentials, replacing any previous file.

        Returns:
            The path that was written.
        """
        self._path.parent.mkdir(parents=True, exist_ok=True)
        # set_key edits in place; start from an empty file
        self._path.write_text("", encoding="utf-8")
        set_key(self._path, USERNAME_ENV, credentials.username)
        set_key(self._path, PASSWORD_ENV, credentials.password)
        try:
            os.chmod(self._path, CREDENTIALS_FILE_MODE)
        except OSError as e:
            logger.debug("Could not restrict permissions on %s: %s", self._path, e)
        logger.info("Credentials saved to %s", self._path)
        return self._path

    def load(self) -> Credentials | None:
        """Read the credentials file.

        Returns:
            Credentials, or None if the file is absent or lacks either key.
        """
        if not self.exists:
            return None

        values = dotenv_values(self._path, interpolate=False)
        username = values.get(USERNAME_ENV)
        password = values.get(PASSWORD_ENV)
        if not username or not password:
            logger.debug("Credentials file %s is incomplete", self._path)
            return None
        return Credentials(username=username, password=password)

    def clear(self) -> bool:
        """Delete the credentials file.

        Returns:
            True if a file was removed.
        """
        if not self.exists:
            return False
        self._path.unlink()
        logger.info("Removed credentials file %s", self._path)
        return True


class CopernicusConfig:
    """Explicit session configuration passed to each client call.

    Holds the session-level username/password that sit between explicit
    arguments and environment variables in the credential chain.

    Use `CopernicusConfig.from_env()` or `CopernicusConfig.from_file()` to
    seed a configuration; an empty config defers entirely to the environment.
    """

    def __init__(
        self,
        *,
        username: str | None = None,
        password: str | None = None,
        credentials_file: str | Path | None = None,
        debug: bool = False,
    ) -> None:
        """Initialize the configuration.

        Args:
            username: Copernicus Marine username for this session.
            password: Copernicus Marine password for this session.
            credentials_file: Location of the persisted credentials file.
            debug: Log the keyword arguments forwarded to copernicusmarine.
        """
        self.username = username
        self.password = password
        self.credentials_file = (
            Path(credentials_file) if credentials_file is not None else default_credentials_file()
        )
        self.debug = debug

    @classmethod
    def from_env(cls) -> "CopernicusConfig":
        """Create a configuration from environment variables.

        Optional environment variables:
            COPERNICUS_USERNAME: Session username.
            COPERNICUS_PASSWORD: Session password.
            COPERNICUS_CREDENTIALS_FILE: Path of the persisted credentials file.
            COPERNICUS_DEBUG: Set to "1" to enable debug logging.
        """
        return cls(
            username=os.environ.get(USERNAME_ENV) or None,
            password=os.environ.get(PASSWORD_ENV) or None,
            credentials_file=os.environ.get(CREDENTIALS_FILE_ENV) or None,
            debug=os.environ.get(DEBUG_ENV, "") == "1",
        )

    @classmethod
    def from_file(cls, path: str | Path | None = None) -> "CopernicusConfig":
        """Create a configuration seeded from the persisted credentials file.

        An absent or incomplete file yields a configuration without credentials.
        """
        store = CredentialStore(path)
        credentials = store.load()
        if credentials is None:
            return cls(credentials_file=store.path)
        return cls(
            username=credentials.username,
            password=credentials.password,
            credentials_file=store.path,
        )

    @property
    def has_credentials(self) -> bool:
        return bool(self.username) and bool(self.password)

    @property
    def store(self) -> CredentialStore:
        return CredentialStore(self.credentials_file)

    def set_credentials(self, username: str, password: str) -> None:
        self.username = username
        self.password = password

    def clear_credentials(self) -> None:
        self.username = None
        self.password = None

    def __repr__(self) -> str:
        password = "***" if self.password else None
        return (
            f"CopernicusConfig(username={self.username!r}, password={password!r}, "
            f"credentials_file={str(self.credentials_file)!r}, debug={self.debug!r})"
        )
