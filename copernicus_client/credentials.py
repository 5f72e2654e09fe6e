"""Credential resolution for Copernicus Marine.

Each of username and password is resolved independently, first match wins:

    1. explicit argument (an empty string counts as given)
    2. session configuration (`CopernicusConfig`)
    3. environment variables COPERNICUS_USERNAME / COPERNICUS_PASSWORD
    4. interactive prompt

The persisted credentials file is written by `setup_credentials(persist=True)`
and read back with `CopernicusConfig.from_file()`.
"""

import getpass
import logging
import os
import warnings
from collections.abc import Callable
from typing import Any

from copernicus_client.config import PASSWORD_ENV, USERNAME_ENV, CopernicusConfig, CredentialStore
from copernicus_client.exceptions import CopernicusCredentialsError, CopernicusValidationError
from copernicus_client.models.credentials import MASKED_PASSWORD, Credentials

logger = logging.getLogger(__name__)

USERNAME_PROMPT = "Enter your Copernicus Marine username: "
PASSWORD_PROMPT = "Enter your Copernicus Marine password: "
CREDENTIALS_REQUIRED_MESSAGE = (
    "Username and password are required. Use setup_credentials() to store them."
)
CREDENTIALS_INCOMPLETE_MESSAGE = "Copernicus credentials not fully configured"

PromptFunc = Callable[[str], str]


def _from_env(name: str) -> str | None:
    return os.environ.get(name) or None


def _ask(label: str, prompt_func: PromptFunc, message: str) -> str | None:
    logger.info("No %s found in stored credentials.", label)
    try:
        return prompt_func(message)
    except (EOFError, OSError) as e:
        logger.warning("Cannot prompt for %s: no interactive input available (%s)", label, e)
        return None


def get_credentials(
    config: CopernicusConfig | None = None,
    *,
    mask_password: bool = True,
) -> dict[str, Any]:
    """Look up stored credentials without prompting.

    Checks the session configuration, then the environment variables.

    Args:
        config: Session configuration to consult first.
        mask_password: Replace a present password with "***MASKED***".

    Returns:
        Dict with "username" and "password"; missing values are None.
    """
    username = (config.username if config else None) or _from_env(USERNAME_ENV)
    password = (config.password if config else None) or _from_env(PASSWORD_ENV)

    if password is not None and mask_password:
        password = MASKED_PASSWORD
    return {"username": username, "password": password}


def resolve_credentials(
    username: str | None = None,
    password: str | None = None,
    *,
    config: CopernicusConfig | None = None,
    prompt: bool = True,
    input_func: PromptFunc = input,
    getpass_func: PromptFunc = getpass.getpass,
) -> Credentials:
    """Resolve username and password through the full precedence chain.

    Args:
        username: Explicit username, wins over every other source.
        password: Explicit password, wins over every other source.
        config: Session configuration.
        prompt: Ask interactively for values still missing.
        input_func: Prompt used for the username.
        getpass_func: Prompt used for the password (input is not echoed).

    Returns:
        Complete Credentials.

    Raises:
        CopernicusCredentialsError: If either value is missing or empty
            after every source has been tried.
    """
    stored = get_credentials(config, mask_password=False)

    if username is None:
        username = stored["username"]
    if password is None:
        password = stored["password"]

    if prompt:
        if username is None:
            username = _ask("username", input_func, USERNAME_PROMPT)
        if password is None:
            password = _ask("password", getpass_func, PASSWORD_PROMPT)

    if not username or not password:
        raise CopernicusCredentialsError(CREDENTIALS_REQUIRED_MESSAGE)
    return Credentials(username=username, password=password)


def setup_credentials(
    username: str | None = None,
    password: str | None = None,
    *,
    config: CopernicusConfig,
    store_credentials: bool = True,
    persist: bool = False,
    store: CredentialStore | None = None,
    prompt_if_missing: bool = True,
    input_func: PromptFunc = input,
    getpass_func: PromptFunc = getpass.getpass,
) -> bool:
    """Configure credentials for a session and optionally persist them.

    Args:
        username: Username, resolved through the chain when omitted.
        password: Password, resolved through the chain when omitted.
        config: Session configuration that receives the credentials.
        store_credentials: Keep the credentials in `config`.
        persist: Also write them to the credentials file.
        store: File store to write to (default: `config.store`).
        prompt_if_missing: Ask interactively for missing values.
        input_func: Prompt used for the username.
        getpass_func: Prompt used for the password.

    Returns:
        True if both values were configured. Emits a UserWarning and returns
        False otherwise.
    """
    try:
        credentials = resolve_credentials(
            username,
            password,
            config=config,
            prompt=prompt_if_missing,
            input_func=input_func,
            getpass_func=getpass_func,
        )
    except CopernicusCredentialsError:
        warnings.warn(
            f"{CREDENTIALS_INCOMPLETE_MESSAGE}. Provide a username and password.",
            UserWarning,
            stacklevel=2,
        )
        return False

    if store_credentials:
        config.set_credentials(credentials.username, credentials.password)
    if persist:
        (store or config.store).save(credentials)

    logger.info("Copernicus credentials configured for user: %s", credentials.username)
    return True


def clear_credentials(
    config: CopernicusConfig | None = None,
    *,
    environment: bool = False,
    store: CredentialStore | None = None,
) -> None:
    """Clear stored credentials.

    Args:
        config: Session configuration to clear.
        environment: Also unset COPERNICUS_USERNAME / COPERNICUS_PASSWORD.
        store: Also delete this credentials file.
    """
    if config is not None:
        config.clear_credentials()
    if environment:
        os.environ.pop(USERNAME_ENV, None)
        os.environ.pop(PASSWORD_ENV, None)
    if store is not None:
        store.clear()
    logger.info("Copernicus credentials cleared")


def validate_credentials(config: CopernicusConfig | None = None) -> bool:
    """Check that credentials are available locally.

    No remote call is made; the remote service validates them on first use.
    """
    credentials = get_credentials(config, mask_password=False)
    if not credentials["username"] or not credentials["password"]:
        logger.warning("No credentials found. Run setup_credentials() to configure them.")
        return False

    logger.info(
        "Credentials appear to be configured correctly for user: %s",
        credentials["username"],
    )
    return True


def set_env_credentials(username: str | None = None, password: str | None = None) -> None:
    """Export credentials as COPERNICUS_USERNAME / COPERNICUS_PASSWORD.

    Raises:
        CopernicusValidationError: If either value is missing.
    """
    if not username or not password:
        raise CopernicusValidationError("Both username and password are required")
    os.environ[USERNAME_ENV] = username
    os.environ[PASSWORD_ENV] = password
    logger.info("Credentials exported to %s / %s", USERNAME_ENV, PASSWORD_ENV)
