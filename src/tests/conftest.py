"""Root pytest configuration and shared fixtures for the matrixci test suite."""

import logging

import pytest

from matrixci.core.constants import EnvVars, ServiceDefaults
from matrixci_logging.utils import (
    CONSOLE_LOGGING_ENV,
    LOG_DIR_ENV,
    LOG_LEVEL_ENV,
    NO_FILE_LOGGING_ENV,
)

_ISOLATED_ENV = (
    EnvVars.REPO_ROOT,
    EnvVars.DB_IMAGE,
    EnvVars.DB_NAME,
    EnvVars.DB_USER,
    EnvVars.DB_PASSWORD,
    EnvVars.TOOLCHAIN_IMAGE,
    LOG_LEVEL_ENV,
    LOG_DIR_ENV,
    CONSOLE_LOGGING_ENV,
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep tests away from the user's config, logs and MATRIXCI_* variables."""
    for name in _ISOLATED_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv(NO_FILE_LOGGING_ENV, "1")
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    yield


@pytest.fixture(autouse=True)
def reset_package_loggers():
    """Undo logger configuration done by CLI invocations."""
    yield
    for name in ("matrixci", "matrixci_logging"):
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
        logger.propagate = True
        logger.setLevel(logging.NOTSET)


@pytest.fixture
def repo_root(tmp_path):
    """Provide a repository root with a lockfile and the local init directories."""
    root = tmp_path / "repo"
    root.mkdir()
    (root / "Cargo.lock").write_text("version = 3\n", encoding="utf-8")
    for index, init_dir in enumerate(ServiceDefaults.LOCAL_INIT_DIRS):
        path = root / init_dir
        path.mkdir(parents=True)
        (path / f"{index}-init.sql").write_text("SELECT 1;\n", encoding="utf-8")
    return root
