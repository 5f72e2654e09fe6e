"""Copernicus Marine client for Python.

Thin wrapper around the `copernicusmarine` toolbox that resolves
credentials, builds request arguments and turns remote failures into
logged hints.

Public API:
    CopernicusClient - download, open_dataset, read_dataframe
    CopernicusConfig - explicit session configuration
    CredentialStore - persisted credentials file

Internal (not for direct use):
    _internal.runtime - Python discovery, install and import
    _internal.hints - Error hints
"""

from copernicus_client._version import __version__
from copernicus_client.client import CopernicusClient, get_client
from copernicus_client.config import CopernicusConfig, CredentialStore
from copernicus_client.credentials import (
    clear_credentials,
    get_credentials,
    resolve_credentials,
    set_env_credentials,
    setup_credentials,
    validate_credentials,
)
from copernicus_client.exceptions import (
    CopernicusConfigError,
    CopernicusCredentialsError,
    CopernicusError,
    CopernicusRuntimeError,
    CopernicusValidationError,
)
from copernicus_client.models import Credentials, default_output_filename

__all__ = [
    "__version__",
    "CopernicusClient",
    "get_client",
    "CopernicusConfig",
    "CredentialStore",
    "Credentials",
    "default_output_filename",
    "clear_credentials",
    "get_credentials",
    "resolve_credentials",
    "set_env_credentials",
    "setup_credentials",
    "validate_credentials",
    "CopernicusError",
    "CopernicusConfigError",
    "CopernicusCredentialsError",
    "CopernicusRuntimeError",
    "CopernicusValidationError",
]
