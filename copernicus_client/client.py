"""User-facing client for Copernicus Marine data access.

Example usage:
    from copernicus_client import CopernicusClient, CopernicusConfig

    client = CopernicusClient(CopernicusConfig(username="me", password="secret"))
    client.setup()

    path = client.download(
        dataset_id="cmems_mod_glo_phy_anfc_0.083deg_P1D-m",
        variables=["zos"],
        start_date="2025-06-01",
        end_date="2025-06-05",
        bbox=(-10, 5, 35, 50),
    )
"""

import getpass
import logging
import time
from datetime import date, timedelta
from pathlib import Path
from types import ModuleType
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from copernicus_client._internal import runtime
from copernicus_client._internal.hints import Operation, hint_for
from copernicus_client._internal.redaction import redact_kwargs
from copernicus_client.config import CopernicusConfig, CredentialStore
from copernicus_client.credentials import (
    CREDENTIALS_REQUIRED_MESSAGE,
    PromptFunc,
    clear_credentials,
    get_credentials,
    resolve_credentials,
    setup_credentials,
    validate_credentials,
)
from copernicus_client.exceptions import (
    CopernicusConfigError,
    CopernicusCredentialsError,
    CopernicusError,
    CopernicusValidationError,
)
from copernicus_client.models.credentials import Credentials
from copernicus_client.models.requests import (
    DEFAULT_BBOX,
    DEFAULT_DATASET_VERSION,
    DEFAULT_DEPTH,
    DatasetRequest,
    SubsetRequest,
)

logger = logging.getLogger(__name__)

NOT_CONFIGURED_MESSAGE = "Copernicus Marine is not configured. Run setup() first."

TEST_DATASET_ID = "cmems_mod_glo_phy_anfc_0.083deg_P1D-m"
TEST_VARIABLE = "zos"
TEST_BBOX = (0.0, 1.0, 40.0, 41.0)
TEST_OUTPUT_FILE = "test_copernicus_download.nc"
TEST_DAYS_BACK = 3

SAMPLE_ORIGIN_LONGITUDE = 0.0
SAMPLE_ORIGIN_LATITUDE = 40.0

RequestT = TypeVar("RequestT", bound=BaseModel)


def _days_ago(days: int) -> str:
    return (date.today() - timedelta(days=days)).isoformat()


class CopernicusClient:
    """Wrapper around the copernicusmarine module.

    Remote operations are best-effort: failures raised by copernicusmarine are
    logged with a hint and turned into a None (or False) result. Caller
    mistakes detected before any remote call raise:

        CopernicusCredentialsError: username or password could not be resolved
        CopernicusConfigError: `setup()` has not been run
        CopernicusValidationError: invalid request arguments

    Credentials are resolved per call: explicit argument, then the session
    `config`, then COPERNICUS_USERNAME / COPERNICUS_PASSWORD, then an
    interactive prompt (disabled with `prompt=False`).
    """

    def __init__(
        self,
        config: CopernicusConfig | None = None,
        *,
        module: ModuleType | Any | None = None,
        prompt: bool = True,
        input_func: PromptFunc = input,
        getpass_func: PromptFunc = getpass.getpass,
    ) -> None:
        """Initialize the client.

        Args:
            config: Session configuration. Defaults to an empty config.
            module: An already-imported copernicusmarine module (or a stand-in
                with the same functions). When omitted, call `setup()`.
            prompt: Ask interactively for missing credentials.
            input_func: Prompt used for the username.
            getpass_func: Prompt used for the password.
        """
        self._config = config if config is not None else CopernicusConfig()
        self._module = module
        self._python: str | None = None
        self._prompt = prompt
        self._input_func = input_func
        self._getpass_func = getpass_func

    @classmethod
    def from_env(cls, **kwargs: Any) -> "CopernicusClient":
        """Create a client whose config is read from environment variables."""
        return cls(CopernicusConfig.from_env(), **kwargs)

    @property
    def config(self) -> CopernicusConfig:
        return self._config

    @property
    def module(self) -> Any | None:
        return self._module

    @property
    def python(self) -> str | None:
        """Interpreter located by `setup()`."""
        return self._python

    def _log_debug(self, message: str, *args: Any) -> None:
        if self._config.debug:
            logger.debug(message, *args)

    # =========================================================================
    # Setup
    # =========================================================================

    def setup(self, *, install: bool = True) -> bool:
        """Locate Python, optionally install copernicusmarine, and import it.

        Raises:
            CopernicusRuntimeError: If Python or the module cannot be found.
        """
        loaded = runtime.setup_runtime(install=install)
        self._python = loaded.python
        self._module = loaded.module
        return True

    def reinstall_package(self) -> bool:
        """Force-reinstall copernicusmarine and re-import it."""
        if not runtime.reinstall_package():
            return False
        self._module = runtime.import_module()
        return True

    def is_ready(self, verbose: bool = True) -> bool:
        """Check that the module is loaded and credentials are available.

        Args:
            verbose: Log the status of each check and the next steps.

        Returns:
            True if both the module and credentials are available.
        """
        module_ok = self._module is not None
        credentials = get_credentials(self._config, mask_password=False)
        credentials_ok = credentials["username"] is not None and credentials["password"] is not None

        if verbose:
            logger.info("Checking Copernicus Marine environment:")
            if module_ok:
                logger.info("Python module copernicusmarine: OK")
            else:
                logger.info("Python module copernicusmarine: NOT AVAILABLE")
                logger.info("Run setup() to configure")

            if credentials_ok:
                logger.info("Credentials configured for user: %s", credentials["username"])
            else:
                logger.info("Credentials: NOT CONFIGURED")
                logger.info("Run setup_credentials() to configure")

            if module_ok and credentials_ok:
                logger.info("Ready to use Copernicus Marine! Run test() for a test download")
            else:
                logger.info("Setup incomplete:")
                if not module_ok:
                    logger.info("1. Run: setup()")
                if not credentials_ok:
                    logger.info("2. Run: setup_credentials('username', 'password')")

        return module_ok and credentials_ok

    # =========================================================================
    # Credentials
    # =========================================================================

    def setup_credentials(
        self,
        username: str | None = None,
        password: str | None = None,
        *,
        store_credentials: bool = True,
        persist: bool = False,
        prompt_if_missing: bool | None = None,
    ) -> bool:
        """Store credentials in this client's config (and optionally on disk)."""
        return setup_credentials(
            username,
            password,
            config=self._config,
            store_credentials=store_credentials,
            persist=persist,
            prompt_if_missing=self._prompt if prompt_if_missing is None else prompt_if_missing,
            input_func=self._input_func,
            getpass_func=self._getpass_func,
        )

    def get_credentials(self, *, mask_password: bool = True) -> dict[str, Any]:
        return get_credentials(self._config, mask_password=mask_password)

    def clear_credentials(self, *, environment: bool = False, persisted: bool = False) -> None:
        store: CredentialStore | None = self._config.store if persisted else None
        clear_credentials(self._config, environment=environment, store=store)

    def validate_credentials(self) -> bool:
        return validate_credentials(self._config)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _resolve_credentials(self, username: str | None, password: str | None) -> Credentials:
        return resolve_credentials(
            username,
            password,
            config=self._config,
            prompt=self._prompt,
            input_func=self._input_func,
            getpass_func=self._getpass_func,
        )

    def _require_module(self) -> Any:
        if self._module is None:
            raise CopernicusConfigError(NOT_CONFIGURED_MESSAGE)
        return self._module

    @staticmethod
    def _build(model: type[RequestT], **fields: Any) -> RequestT:
        try:
            return model(**fields)
        except ValidationError as e:
            raise CopernicusValidationError(str(e)) from e

    @staticmethod
    def _report_failure(label: str, error: Exception, operation: Operation) -> None:
        logger.error("%s: %s", label, error)
        hint = hint_for(str(error), operation=operation)
        if hint:
            logger.warning(hint)

    # =========================================================================
    # Remote operations
    # =========================================================================

    def download(
        self,
        dataset_id: str,
        variables: str | list[str],
        start_date: str | date,
        end_date: str | date,
        bbox: tuple[float, float, float, float] | list[float] = DEFAULT_BBOX,
        depth: tuple[float, float] | list[float] = DEFAULT_DEPTH,
        dataset_version: str = DEFAULT_DATASET_VERSION,
        output_file: str | Path | None = None,
        username: str | None = None,
        password: str | None = None,
        verbose: bool = True,
        **extra: Any,
    ) -> Path | None:
        """Download a subset of a dataset to a NetCDF file.

        Args:
            dataset_id: Exact dataset identifier.
            variables: Variable name or list of names.
            start_date: Start date, YYYY-MM-DD.
            end_date: End date, YYYY-MM-DD.
            bbox: (xmin, xmax, ymin, ymax).
            depth: (minimum, maximum) depth in metres.
            dataset_version: Dataset version.
            output_file: Output path; defaults to `copernicus_<start>-<end>.nc`.
            username: Overrides every other credential source.
            password: Overrides every other credential source.
            verbose: Log request details and download statistics.
            **extra: Forwarded unchanged to `copernicusmarine.subset`.

        Returns:
            Absolute path of the downloaded file, or None if it failed.
        """
        credentials = self._resolve_credentials(username, password)
        module = self._require_module()

        request = self._build(
            SubsetRequest,
            dataset_id=dataset_id,
            variables=variables,
            start_date=start_date,
            end_date=end_date,
            bbox=bbox,
            depth=depth,
            dataset_version=dataset_version,
            output_file=str(output_file) if output_file is not None else None,
            username=credentials.username,
            password=credentials.password,
            extra=extra,
        )
        output_path = Path(request.output_file)  # type: ignore[arg-type]
        output_path.parent.mkdir(parents=True, exist_ok=True)

        if verbose:
            logger.info("Downloading: %s", request.dataset_id)
            logger.info("Period: %s to %s", request.start_date, request.end_date)
            logger.info("Variables: %s", ", ".join(request.variables))
            logger.info("Region: %s", request.bbox.describe())
            if not request.has_default_depth:
                logger.info("Depth: %s to %s m", request.depth.minimum, request.depth.maximum)
            logger.info("File: %s", output_path)

        kwargs = request.to_kwargs()
        self._log_debug("subset(%s)", redact_kwargs(kwargs))

        start_time = time.monotonic()
        try:
            response = module.subset(**kwargs)
        except Exception as e:
            self._report_failure("Download error", e, "download")
            return None
        elapsed = time.monotonic() - start_time

        # copernicusmarine renames the file when the target already exists
        file_path = getattr(response, "file_path", None)
        if isinstance(file_path, (str, Path)):
            output_path = Path(file_path)

        if not output_path.exists():
            logger.error("File was not created: %s", output_path)
            return None

        resolved = output_path.resolve()
        if verbose:
            size_mb = resolved.stat().st_size / 1024 / 1024
            logger.info("Download successful!")
            logger.info("Size: %.2f MB", size_mb)
            logger.info("Time: %.2f minutes", elapsed / 60)
            logger.info("Location: %s", resolved)
        return resolved

    def _dataset_request(
        self,
        dataset_id: str,
        variables: str | list[str] | None,
        start_date: str | date | None,
        end_date: str | date | None,
        bbox: tuple[float, float, float, float] | list[float] | None,
        depth: tuple[float, float] | list[float] | None,
        dataset_version: str | None,
        username: str | None,
        password: str | None,
        extra: dict[str, Any],
    ) -> DatasetRequest:
        credentials = self._resolve_credentials(username, password)
        return self._build(
            DatasetRequest,
            dataset_id=dataset_id,
            variables=variables,
            start_date=start_date,
            end_date=end_date,
            bbox=bbox,
            depth=depth,
            dataset_version=dataset_version,
            username=credentials.username,
            password=credentials.password,
            extra=extra,
        )

    @staticmethod
    def _log_dataset_request(request: DatasetRequest) -> None:
        if request.variables is not None:
            logger.info("Variables: %s", ", ".join(request.variables))
        else:
            logger.info("Variables: all available")
        if request.start_date is not None or request.end_date is not None:
            logger.info("Period: %s to %s", request.start_date, request.end_date)
        if request.bbox is not None:
            logger.info("Region: %s", request.bbox.describe())
        if request.depth is not None:
            logger.info("Depth: %s to %s m", request.depth.minimum, request.depth.maximum)

    def open_dataset(
        self,
        dataset_id: str,
        variables: str | list[str] | None = None,
        start_date: str | date | None = None,
        end_date: str | date | None = None,
        bbox: tuple[float, float, float, float] | list[float] | None = None,
        depth: tuple[float, float] | list[float] | None = None,
        dataset_version: str | None = None,
        username: str | None = None,
        password: str | None = None,
        verbose: bool = True,
        **extra: Any,
    ) -> Any | None:
        """Open a remote dataset lazily, without downloading a file.

        Filters that are not given are not forwarded.

        Returns:
            The `xarray.Dataset` returned by copernicusmarine, or None if it
            failed.
        """
        request = self._dataset_request(
            dataset_id, variables, start_date, end_date, bbox, depth,
            dataset_version, username, password, extra,
        )
        module = self._require_module()

        if verbose:
            logger.info("Opening dataset: %s", request.dataset_id)
            self._log_dataset_request(request)

        kwargs = request.to_kwargs()
        self._log_debug("open_dataset(%s)", redact_kwargs(kwargs))

        start_time = time.monotonic()
        try:
            dataset = module.open_dataset(**kwargs)
        except Exception as e:
            self._report_failure("Error opening dataset", e, "open_dataset")
            return None

        if verbose:
            logger.info("Dataset opened in %.2f seconds", time.monotonic() - start_time)
        return dataset

    def read_dataframe(
        self,
        dataset_id: str,
        variables: str | list[str] | None = None,
        start_date: str | date | None = None,
        end_date: str | date | None = None,
        bbox: tuple[float, float, float, float] | list[float] | None = None,
        depth: tuple[float, float] | list[float] | None = None,
        dataset_version: str | None = None,
        username: str | None = None,
        password: str | None = None,
        verbose: bool = True,
        **extra: Any,
    ) -> Any | None:
        """Load a dataset subset into memory as a table.

        Returns:
            The `pandas.DataFrame` returned by copernicusmarine, or None if it
            failed.
        """
        request = self._dataset_request(
            dataset_id, variables, start_date, end_date, bbox, depth,
            dataset_version, username, password, extra,
        )
        module = self._require_module()

        if verbose:
            logger.info("Reading dataframe from: %s", request.dataset_id)
            self._log_dataset_request(request)

        kwargs = request.to_kwargs()
        self._log_debug("read_dataframe(%s)", redact_kwargs(kwargs))

        start_time = time.monotonic()
        try:
            dataframe = module.read_dataframe(**kwargs)
        except Exception as e:
            self._report_failure("Error reading dataframe", e, "read_dataframe")
            return None

        if verbose:
            logger.info("Dataframe loaded in %.2f seconds", time.monotonic() - start_time)
            shape = getattr(dataframe, "shape", None)
            if isinstance(shape, tuple) and len(shape) == 2:
                logger.info("Dimensions: %s rows x %s columns", shape[0], shape[1])
            columns = getattr(dataframe, "columns", None)
            if columns is not None:
                logger.info("Columns: %s", ", ".join(str(column) for column in columns))
        return dataframe

    # =========================================================================
    # Smoke tests
    # =========================================================================

    def test(self, username: str | None = None, password: str | None = None) -> bool:
        """Download a tiny subset to check that everything works.

        The file is removed afterwards.

        Returns:
            True if the test download succeeded.
        """
        logger.info("Testing download from Copernicus Marine...")
        test_date = _days_ago(TEST_DAYS_BACK)

        try:
            path = self.download(
                dataset_id=TEST_DATASET_ID,
                variables=TEST_VARIABLE,
                start_date=test_date,
                end_date=test_date,
                bbox=TEST_BBOX,
                output_file=TEST_OUTPUT_FILE,
                username=username,
                password=password,
                verbose=False,
            )
        except CopernicusCredentialsError:
            logger.error(CREDENTIALS_REQUIRED_MESSAGE)
            return False
        except CopernicusError as e:
            logger.error("Error in test download: %s", e)
            return False

        if path is None or not path.exists():
            logger.error("Error in test download. Check your configuration with is_ready()")
            return False

        logger.info("Test download successful! %s (%.1f KB)", path.name, path.stat().st_size / 1024)
        path.unlink()
        return True

    def test_open(self, username: str | None = None, password: str | None = None) -> bool:
        """Open a small region of the test dataset."""
        logger.info("Testing dataset opening...")
        try:
            dataset = self.open_dataset(
                dataset_id=TEST_DATASET_ID,
                variables=TEST_VARIABLE,
                bbox=TEST_BBOX,
                username=username,
                password=password,
                verbose=False,
            )
        except CopernicusCredentialsError:
            logger.error(CREDENTIALS_REQUIRED_MESSAGE)
            return False
        except CopernicusError as e:
            logger.error("Error in open_dataset test: %s", e)
            return False

        if dataset is None:
            logger.error("Error in open_dataset test")
            return False
        logger.info("open_dataset is working")
        return True

    def test_read_dataframe(self, username: str | None = None, password: str | None = None) -> bool:
        """Read one day of the test dataset as a dataframe."""
        logger.info("Testing dataframe reading...")
        test_date = _days_ago(TEST_DAYS_BACK)
        try:
            dataframe = self.read_dataframe(
                dataset_id=TEST_DATASET_ID,
                variables=TEST_VARIABLE,
                start_date=test_date,
                end_date=test_date,
                bbox=TEST_BBOX,
                username=username,
                password=password,
                verbose=False,
            )
        except CopernicusCredentialsError:
            logger.error(CREDENTIALS_REQUIRED_MESSAGE)
            return False
        except CopernicusError as e:
            logger.error("Error in read_dataframe test: %s", e)
            return False

        if dataframe is None:
            logger.error("Error in read_dataframe test. Check your configuration with is_ready()")
            return False
        logger.info("read_dataframe is working")
        return True

    def sample_data(
        self,
        dataset_id: str,
        variables: str | list[str] | None = None,
        days_back: int = TEST_DAYS_BACK,
        bbox_size: float = 1.0,
        verbose: bool = True,
    ) -> Any | None:
        """Read a one-day, `bbox_size`-degree sample for quick exploration.

        Args:
            dataset_id: Dataset identifier.
            variables: Variables to read; defaults to "zos".
            days_back: How many days before today to sample.
            bbox_size: Side of the sample region in degrees, anchored at
                longitude 0, latitude 40.
            verbose: Log progress.
        """
        if variables is None:
            variables = TEST_VARIABLE
            if verbose:
                logger.info("Using default variable: %s", TEST_VARIABLE)

        sample_date = _days_ago(days_back)
        bbox = (
            SAMPLE_ORIGIN_LONGITUDE,
            SAMPLE_ORIGIN_LONGITUDE + bbox_size,
            SAMPLE_ORIGIN_LATITUDE,
            SAMPLE_ORIGIN_LATITUDE + bbox_size,
        )
        return self.read_dataframe(
            dataset_id=dataset_id,
            variables=variables,
            start_date=sample_date,
            end_date=sample_date,
            bbox=bbox,
            verbose=verbose,
        )


def get_client() -> CopernicusClient:
    """Get a client configured from environment variables.

    The client still needs `setup()` (or an injected module) before remote
    operations can run.
    """
    return CopernicusClient.from_env()
