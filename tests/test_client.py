"""Tests for CopernicusClient."""

import logging
import os
import types
from datetime import date, datetime, timedelta
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from copernicus_client._internal import runtime
from copernicus_client._internal.hints import DATE_HINT, MEMORY_HINT, VARIABLE_HINT
from copernicus_client.client import (
    NOT_CONFIGURED_MESSAGE,
    TEST_DATASET_ID,
    TEST_OUTPUT_FILE,
    CopernicusClient,
    get_client,
)
from copernicus_client.config import CopernicusConfig
from copernicus_client.exceptions import (
    CopernicusConfigError,
    CopernicusCredentialsError,
    CopernicusValidationError,
)


def make_module(*, fail_with=None, write_file=True):
    """Stand-in for the copernicusmarine module."""
    module = MagicMock(name="copernicusmarine")

    def subset(**kwargs):
        if fail_with is not None:
            raise fail_with
        if write_file:
            Path(kwargs["output_filename"]).write_bytes(b"\x89HDF" + b"\0" * 2048)

    module.subset.side_effect = subset
    if fail_with is not None:
        module.open_dataset.side_effect = fail_with
        module.read_dataframe.side_effect = fail_with
    return module


def make_renaming_module():
    """Stand-in that writes `<stem>_(1)<suffix>` and reports it, as copernicusmarine does."""
    module = MagicMock(name="copernicusmarine")

    def subset(**kwargs):
        target = Path(kwargs["output_filename"])
        renamed = target.with_name(f"{target.stem}_(1){target.suffix}")
        renamed.write_bytes(b"\x89HDF" + b"\0" * 2048)
        return SimpleNamespace(file_path=renamed)

    module.subset.side_effect = subset
    return module


def make_client(module=None, **config):
    config.setdefault("username", "test_user")
    config.setdefault("password", "test_pass")
    return CopernicusClient(CopernicusConfig(**config), module=module, prompt=False)


@pytest.fixture(autouse=True)
def clean_env():
    with patch.dict(os.environ, {}, clear=True):
        yield


class TestSetup:
    """Tests for setup(), is_ready() and from_env()."""

    def test_setup_loads_module(self):
        """Should keep the imported module and interpreter."""
        module = types.ModuleType("copernicusmarine")
        loaded = runtime.Runtime(python="/usr/bin/python3", module=module)
        with patch.object(runtime, "setup_runtime", return_value=loaded) as setup_runtime:
            client = CopernicusClient()
            assert client.setup(install=False) is True

        setup_runtime.assert_called_once_with(install=False)
        assert client.module is module
        assert client.python == "/usr/bin/python3"

    def test_reinstall_reimports(self):
        """Should re-import the module after a successful reinstall."""
        module = types.ModuleType("copernicusmarine")
        with (
            patch.object(runtime, "reinstall_package", return_value=True),
            patch.object(runtime, "import_module", return_value=module),
        ):
            client = CopernicusClient()
            assert client.reinstall_package() is True
        assert client.module is module

    def test_from_env(self):
        """Should build the config from environment variables."""
        env = {"COPERNICUS_USERNAME": "env_user", "COPERNICUS_PASSWORD": "env_pass"}
        with patch.dict(os.environ, env):
            client = get_client()
        assert isinstance(client, CopernicusClient)
        assert client.config.username == "env_user"

    def test_is_ready_nothing(self, caplog):
        """Should report a missing module and missing credentials."""
        caplog.set_level(logging.INFO)
        client = CopernicusClient(prompt=False)
        assert client.is_ready() is False
        assert "Python module copernicusmarine: NOT AVAILABLE" in caplog.text
        assert "Credentials: NOT CONFIGURED" in caplog.text

    def test_is_ready_without_credentials(self, caplog):
        """Should be False when only the module is loaded."""
        caplog.set_level(logging.INFO)
        client = CopernicusClient(module=make_module(), prompt=False)
        assert client.is_ready() is False
        assert "Python module copernicusmarine: OK" in caplog.text
        assert "Credentials: NOT CONFIGURED" in caplog.text

    def test_is_ready(self, caplog):
        """Should be True with both module and credentials."""
        caplog.set_level(logging.INFO)
        assert make_client(make_module()).is_ready() is True
        assert "Credentials configured for user: test_user" in caplog.text
        assert "Ready to use Copernicus Marine" in caplog.text

    def test_is_ready_uses_environment(self):
        """Should accept credentials from the environment."""
        env = {"COPERNICUS_USERNAME": "env_user", "COPERNICUS_PASSWORD": "env_pass"}
        client = CopernicusClient(module=make_module(), prompt=False)
        with patch.dict(os.environ, env):
            assert client.is_ready(verbose=False) is True

    def test_is_ready_quiet(self, caplog):
        """Should not log when verbose is False."""
        caplog.set_level(logging.INFO)
        assert CopernicusClient(prompt=False).is_ready(verbose=False) is False
        assert caplog.text == ""


class TestClientCredentials:
    """Tests for the credential helpers bound to a client."""

    def test_setup_and_get(self):
        """Should store credentials in the client's config."""
        client = CopernicusClient(prompt=False)
        assert client.setup_credentials("user", "pass") is True
        assert client.get_credentials() == {"username": "user", "password": "***MASKED***"}
        assert client.validate_credentials() is True

    def test_persist_and_clear(self, tmp_path):
        """Should write and later remove the credentials file."""
        client = CopernicusClient(CopernicusConfig(credentials_file=tmp_path / "c.txt"), prompt=False)
        client.setup_credentials("user", "pass", persist=True)
        assert client.config.store.exists is True

        client.clear_credentials(persisted=True)
        assert client.config.has_credentials is False
        assert client.config.store.exists is False


class TestDownload:
    """Tests for download()."""

    def test_requires_credentials(self):
        """Should fail before any remote call when credentials are empty."""
        module = make_module()
        client = CopernicusClient(module=module, prompt=False)
        with pytest.raises(CopernicusCredentialsError, match="Username and password are required"):
            client.download("test_dataset", "test_var", "2024-01-01", "2024-01-01", username="", password="")
        module.subset.assert_not_called()

    def test_explicit_empty_beats_config(self):
        """An explicit empty password should not fall back to the config."""
        module = make_module()
        client = make_client(module)
        with pytest.raises(CopernicusCredentialsError):
            client.download("test_dataset", "test_var", "2024-01-01", "2024-01-01", password="")
        module.subset.assert_not_called()

    def test_requires_setup(self):
        """Should refuse to run before setup()."""
        client = make_client()
        with pytest.raises(CopernicusConfigError) as exc_info:
            client.download("test_dataset", "test_var", "2024-01-01", "2024-01-01")
        assert str(exc_info.value) == NOT_CONFIGURED_MESSAGE

    def test_success(self, tmp_path, caplog):
        """Should return the absolute path of the new file."""
        caplog.set_level(logging.INFO)
        output = tmp_path / "data" / "out.nc"
        client = make_client(make_module())

        result = client.download("ds", ["zos"], "2024-01-15", "2024-01-20", output_file=output)

        assert result == output.resolve()
        assert result.is_absolute()
        assert "Download successful!" in caplog.text
        assert "Downloading: ds" in caplog.text

    def test_default_output_filename(self, tmp_path, monkeypatch):
        """Should derive copernicus_<start>-<end>.nc in the working directory."""
        monkeypatch.chdir(tmp_path)
        module = make_module()
        client = make_client(module)

        result = client.download("ds", "zos", "2024-01-15", "2024-01-20", verbose=False)

        assert module.subset.call_args.kwargs["output_filename"] == "copernicus_20240115-20240120.nc"
        assert result == (tmp_path / "copernicus_20240115-20240120.nc").resolve()

    def test_forwards_arguments(self, tmp_path):
        """Should map bbox and depth positionally and forward everything else."""
        module = make_module()
        client = make_client(module)

        client.download(
            "ds",
            ["thetao", "so"],
            "2024-01-01",
            "2024-01-31",
            bbox=(-75, -70, -40, -35),
            depth=(1.5, 200),
            dataset_version="202311",
            output_file=tmp_path / "out.nc",
            verbose=False,
            overwrite=True,
        )

        kwargs = module.subset.call_args.kwargs
        assert kwargs["variables"] == ["thetao", "so"]
        assert kwargs["start_datetime"] == "2024-01-01T00:00:00"
        assert kwargs["end_datetime"] == "2024-01-31T00:00:00"
        assert kwargs["minimum_longitude"] == -75
        assert kwargs["maximum_longitude"] == -70
        assert kwargs["minimum_latitude"] == -40
        assert kwargs["maximum_latitude"] == -35
        assert kwargs["minimum_depth"] == 1.5
        assert kwargs["maximum_depth"] == 200
        assert kwargs["dataset_version"] == "202311"
        assert kwargs["coordinates_selection_method"] == "strict-inside"
        assert kwargs["username"] == "test_user"
        assert kwargs["password"] == "test_pass"
        assert kwargs["overwrite"] is True

    def test_explicit_credentials_win(self, tmp_path):
        """Should forward explicit credentials over the session config."""
        module = make_module()
        make_client(module).download(
            "ds", "zos", "2024-01-01", "2024-01-01",
            output_file=tmp_path / "out.nc", username="arg_user", password="arg_pass", verbose=False,
        )
        kwargs = module.subset.call_args.kwargs
        assert (kwargs["username"], kwargs["password"]) == ("arg_user", "arg_pass")

    def test_prefers_reported_file_path(self, tmp_path):
        """Should return the file the remote call reports when it renames the output."""
        output = tmp_path / "out.nc"
        output.write_bytes(b"old")
        client = make_client(make_renaming_module())

        result = client.download("ds", "zos", "2024-01-15", "2024-01-20", output_file=output, verbose=False)

        assert result == (tmp_path / "out_(1).nc").resolve()
        assert output.read_bytes() == b"old"

    def test_datetime_dates_keep_calendar_day(self, tmp_path, monkeypatch):
        """Should drop the time of day from datetime arguments."""
        monkeypatch.chdir(tmp_path)
        module = make_module()
        make_client(module).download(
            "ds", "zos", datetime(2024, 1, 15, 10, 30), datetime(2024, 1, 20), verbose=False
        )
        kwargs = module.subset.call_args.kwargs
        assert kwargs["start_datetime"] == "2024-01-15T00:00:00"
        assert kwargs["output_filename"] == "copernicus_20240115-20240120.nc"

    def test_malformed_date(self, tmp_path):
        """Should reject dates that are not YYYY-MM-DD before any remote call."""
        module = make_module()
        with pytest.raises(CopernicusValidationError, match="YYYY-MM-DD"):
            make_client(module).download(
                "ds", "zos", "2024/01/15", "2024-01-20", output_file=tmp_path / "out.nc", verbose=False
            )
        module.subset.assert_not_called()

    def test_creates_output_directory(self, tmp_path):
        """Should create missing parent directories."""
        output = tmp_path / "a" / "b" / "out.nc"
        make_client(make_module(write_file=False)).download(
            "ds", "zos", "2024-01-01", "2024-01-01", output_file=output, verbose=False
        )
        assert output.parent.is_dir()

    def test_remote_error_returns_none(self, tmp_path, caplog):
        """Should log the error with a hint and return None."""
        module = make_module(fail_with=RuntimeError("Requested date is outside the dataset range"))
        result = make_client(module).download(
            "ds", "zos", "2030-01-01", "2030-01-01", output_file=tmp_path / "out.nc", verbose=False
        )
        assert result is None
        assert "Download error" in caplog.text
        assert DATE_HINT in caplog.text

    def test_file_not_created(self, tmp_path, caplog):
        """Should return None when the remote call produced no file."""
        result = make_client(make_module(write_file=False)).download(
            "ds", "zos", "2024-01-01", "2024-01-01", output_file=tmp_path / "out.nc", verbose=False
        )
        assert result is None
        assert "File was not created" in caplog.text

    def test_invalid_bbox(self, tmp_path):
        """Should raise a validation error before calling the module."""
        module = make_module()
        with pytest.raises(CopernicusValidationError):
            make_client(module).download("ds", "zos", "2024-01-01", "2024-01-01", bbox=(1, 2))
        module.subset.assert_not_called()

    def test_debug_log_redacts_password(self, tmp_path, caplog):
        """Should log forwarded arguments without the password."""
        caplog.set_level(logging.DEBUG, logger="copernicus_client.client")
        client = make_client(make_module(), debug=True)
        client.download("ds", "zos", "2024-01-01", "2024-01-01", output_file=tmp_path / "o.nc", verbose=False)
        assert "subset(" in caplog.text
        assert "test_pass" not in caplog.text
        assert "[REDACTED]" in caplog.text

    def test_prompts_for_missing_credentials(self, tmp_path):
        """Should prompt when the client allows it."""
        module = make_module()
        client = CopernicusClient(
            module=module, input_func=lambda m: "typed_user", getpass_func=lambda m: "typed_pass"
        )
        client.download("ds", "zos", "2024-01-01", "2024-01-01", output_file=tmp_path / "o.nc", verbose=False)
        assert module.subset.call_args.kwargs["username"] == "typed_user"


class TestOpenDataset:
    """Tests for open_dataset()."""

    def test_requires_credentials(self):
        """Should fail before any remote call when credentials are empty."""
        module = make_module()
        client = CopernicusClient(module=module, prompt=False)
        with pytest.raises(CopernicusCredentialsError, match="Username and password are required"):
            client.open_dataset("test_dataset", username="", password="")
        module.open_dataset.assert_not_called()

    def test_requires_setup(self):
        """Should refuse to run before setup()."""
        with pytest.raises(CopernicusConfigError):
            make_client().open_dataset("test_dataset")

    def test_forwards_only_given_filters(self):
        """Should only send dataset id and credentials by default."""
        module = make_module()
        dataset = object()
        module.open_dataset.return_value = dataset

        assert make_client(module).open_dataset("ds", verbose=False) is dataset
        assert module.open_dataset.call_args.kwargs == {
            "dataset_id": "ds",
            "username": "test_user",
            "password": "test_pass",
        }

    def test_forwards_filters(self):
        """Should map every given filter to the remote names."""
        module = make_module()
        make_client(module).open_dataset(
            "ds",
            variables="zos",
            start_date="2025-06-01",
            end_date="2025-06-10",
            bbox=[-10, 5, 35, 50],
            depth=[0, 5],
            dataset_version="202406",
            verbose=False,
        )
        kwargs = module.open_dataset.call_args.kwargs
        assert kwargs["variables"] == ["zos"]
        assert kwargs["start_datetime"] == "2025-06-01T00:00:00"
        assert kwargs["end_datetime"] == "2025-06-10T00:00:00"
        assert (
            kwargs["minimum_longitude"],
            kwargs["maximum_longitude"],
            kwargs["minimum_latitude"],
            kwargs["maximum_latitude"],
        ) == (-10, 5, 35, 50)
        assert (kwargs["minimum_depth"], kwargs["maximum_depth"]) == (0, 5)

    def test_remote_error_returns_none(self, caplog):
        """Should log the error with a hint and return None."""
        module = make_module(fail_with=ValueError("Unknown variable 'foo'"))
        assert make_client(module).open_dataset("ds", variables="foo", verbose=False) is None
        assert "Error opening dataset" in caplog.text
        assert VARIABLE_HINT in caplog.text


class TestReadDataframe:
    """Tests for read_dataframe()."""

    def test_returns_dataframe(self, caplog):
        """Should return the table and log its shape."""
        caplog.set_level(logging.INFO)
        module = make_module()
        table = SimpleNamespace(shape=(3, 2), columns=["time", "zos"])
        module.read_dataframe.return_value = table

        assert make_client(module).read_dataframe("ds", variables=["zos"]) is table
        assert "3 rows x 2 columns" in caplog.text
        assert "Columns: time, zos" in caplog.text

    def test_requires_credentials(self):
        """Should fail before any remote call when credentials are empty."""
        module = make_module()
        with pytest.raises(CopernicusCredentialsError):
            CopernicusClient(module=module, prompt=False).read_dataframe("ds", username="", password="")
        module.read_dataframe.assert_not_called()

    def test_memory_hint(self, caplog):
        """Should suggest smaller requests on memory errors."""
        module = make_module(fail_with=MemoryError("Not enough memory"))
        assert make_client(module).read_dataframe("ds", verbose=False) is None
        assert "Error reading dataframe" in caplog.text
        assert MEMORY_HINT in caplog.text


class TestSmokeTests:
    """Tests for test(), test_open(), test_read_dataframe() and sample_data()."""

    def test_download_test_success(self, tmp_path, monkeypatch, caplog):
        """Should download the test file and clean it up."""
        caplog.set_level(logging.INFO)
        monkeypatch.chdir(tmp_path)
        module = make_module()

        assert make_client(module).test() is True
        kwargs = module.subset.call_args.kwargs
        assert kwargs["dataset_id"] == TEST_DATASET_ID
        assert kwargs["output_filename"] == TEST_OUTPUT_FILE
        assert not (tmp_path / TEST_OUTPUT_FILE).exists()
        assert "Testing download from Copernicus Marine" in caplog.text

    def test_download_test_removes_reported_file(self, tmp_path, monkeypatch):
        """Should delete the renamed file it downloaded and leave an older one alone."""
        monkeypatch.chdir(tmp_path)
        existing = tmp_path / TEST_OUTPUT_FILE
        existing.write_bytes(b"old")

        assert make_client(make_renaming_module()).test() is True
        assert existing.read_bytes() == b"old"
        assert not (tmp_path / "test_copernicus_download_(1).nc").exists()

    def test_download_test_missing_credentials(self, caplog):
        """Should return False without prompting or raising."""
        assert CopernicusClient(module=make_module(), prompt=False).test(username="", password="") is False
        assert "Username and password are required" in caplog.text

    def test_download_test_not_configured(self):
        """Should return False when setup() has not run."""
        assert make_client().test() is False

    def test_download_test_remote_failure(self, tmp_path, monkeypatch):
        """Should return False when the remote call fails."""
        monkeypatch.chdir(tmp_path)
        module = make_module(fail_with=RuntimeError("Mock download - no real connection"))
        assert make_client(module).test() is False

    def test_open_test(self, caplog):
        """Should return True when a dataset is returned."""
        caplog.set_level(logging.INFO)
        assert make_client(make_module()).test_open() is True
        assert "Testing dataset opening" in caplog.text

    def test_open_test_missing_credentials(self):
        """Should return False when credentials are missing."""
        assert CopernicusClient(module=make_module(), prompt=False).test_open(username="", password="") is False

    def test_open_test_failure(self):
        """Should return False when opening fails."""
        module = make_module(fail_with=RuntimeError("Mock open_dataset - no real connection"))
        assert make_client(module).test_open() is False

    def test_read_dataframe_test(self):
        """Should return True when a table is returned."""
        assert make_client(make_module()).test_read_dataframe() is True

    def test_read_dataframe_test_failure(self):
        """Should return False when reading fails."""
        module = make_module(fail_with=RuntimeError("boom"))
        assert make_client(module).test_read_dataframe() is False

    def test_sample_data(self):
        """Should read one day over a small region anchored at 0E, 40N."""
        module = make_module()
        make_client(module).sample_data("ds", days_back=5, bbox_size=2, verbose=False)

        expected_date = (date.today() - timedelta(days=5)).isoformat()
        kwargs = module.read_dataframe.call_args.kwargs
        assert kwargs["variables"] == ["zos"]
        assert kwargs["start_datetime"] == f"{expected_date}T00:00:00"
        assert kwargs["end_datetime"] == f"{expected_date}T00:00:00"
        assert (
            kwargs["minimum_longitude"],
            kwargs["maximum_longitude"],
            kwargs["minimum_latitude"],
            kwargs["maximum_latitude"],
        ) == (0, 2, 40, 42)
