"""Public exceptions for the Copernicus client."""


class CopernicusError(Exception):
    """Base exception for all Copernicus client errors."""


class CopernicusConfigError(CopernicusError):
    """The copernicusmarine module has not been set up for this client."""


class CopernicusCredentialsError(CopernicusError):
    """Username or password could not be resolved."""


class CopernicusValidationError(CopernicusError):
    """Validation error for request arguments."""


class CopernicusRuntimeError(CopernicusError):
    """Error locating Python or installing/importing copernicusmarine."""

    def __init__(self, message: str, command: list[str] | None = None) -> None:
        super().__init__(message)
        self.command = command
