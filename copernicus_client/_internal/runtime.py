"""Locate Python, install and import the copernicusmarine module."""

import importlib
import logging
import os
import shutil
import subprocess
import sys
from collections.abc import Iterable
from types import ModuleType

from copernicus_client.exceptions import CopernicusRuntimeError

logger = logging.getLogger(__name__)

PACKAGE_NAME = "copernicusmarine"

# Microsoft Store app-execution aliases are stubs that cannot run pip.
WINDOWS_STORE_MARKER = "windowsapps"

WELL_KNOWN_PYTHONS: tuple[str, ...] = (
    "C:/Python311/python.exe",
    "C:/Python312/python.exe",
    "C:/Python310/python.exe",
    "/usr/local/bin/python3",
    "/usr/bin/python3",
)

NO_PYTHON_MESSAGE = (
    "No Python found outside of WindowsApps. Please install Python from "
    "https://www.python.org/downloads/ and add it to PATH."
)
IMPORT_ERROR_MESSAGE = "Could not import copernicusmarine. Run: reinstall_package()"


class Runtime:
    """A located interpreter together with the imported client module."""

    def __init__(self, python: str, module: ModuleType) -> None:
        self.python = python
        self.module = module

    def __repr__(self) -> str:
        return f"Runtime(python={self.python!r}, module={self.module.__name__!r})"


def candidate_pythons() -> list[str]:
    """Interpreters to try, in order, without duplicates.

    The running interpreter comes first so that an installed package is
    importable by this process.
    """
    candidates = [
        sys.executable,
        shutil.which("python3"),
        shutil.which("python"),
        *WELL_KNOWN_PYTHONS,
    ]
    seen: set[str] = set()
    unique: list[str] = []
    for path in candidates:
        if path and path not in seen:
            seen.add(path)
            unique.append(path)
    return unique


def find_python(candidates: Iterable[str] | None = None) -> str:
    """Return the first existing interpreter outside WindowsApps.

    Raises:
        CopernicusRuntimeError: If no usable interpreter is found.
    """
    for path in candidates if candidates is not None else candidate_pythons():
        if WINDOWS_STORE_MARKER in path.lower():
            continue
        if os.path.isfile(path):
            logger.info("Using Python at: %s", path)
            return path
    raise CopernicusRuntimeError(NO_PYTHON_MESSAGE)


def _run(command: list[str]) -> None:
    logger.debug("Running: %s", " ".join(command))
    subprocess.run(command, check=True, capture_output=True, text=True)


def install_package(python: str, *, force: bool = False) -> bool:
    """Install copernicusmarine with pip for the given interpreter.

    Falls back to a bare `pip install` if `python -m pip` fails.

    Returns:
        True if either command succeeded, False otherwise.
    """
    flags = ["--force-reinstall"] if force else []
    command = [python, "-m", "pip", "install", *flags, PACKAGE_NAME]
    try:
        _run(command)
        logger.info("%s installed", PACKAGE_NAME)
        return True
    except (subprocess.CalledProcessError, OSError) as e:
        logger.warning(
            "Error installing %s, attempting manual pip install: %s", PACKAGE_NAME, e
        )

    fallback = ["pip", "install", *flags, PACKAGE_NAME]
    try:
        _run(fallback)
        logger.info("%s installed with pip", PACKAGE_NAME)
        return True
    except (subprocess.CalledProcessError, OSError) as e:
        logger.error("Could not install %s: %s", PACKAGE_NAME, e)
        return False


def import_module(name: str = PACKAGE_NAME) -> ModuleType:
    """Import the client module.

    Raises:
        CopernicusRuntimeError: If the module cannot be imported.
    """
    importlib.invalidate_caches()
    try:
        return importlib.import_module(name)
    except ImportError as e:
        raise CopernicusRuntimeError(IMPORT_ERROR_MESSAGE) from e


def setup_runtime(*, install: bool = True) -> Runtime:
    """Locate Python, optionally install copernicusmarine, then import it."""
    python = find_python()
    if install:
        install_package(python)
    return Runtime(python=python, module=import_module())


def reinstall_package() -> bool:
    """Force-reinstall copernicusmarine for the located interpreter."""
    python = find_python()
    reinstalled = install_package(python, force=True)
    if reinstalled:
        logger.info("%s reinstalled", PACKAGE_NAME)
    return reinstalled
