"""Fixtures shared by the matrixci unit tests."""

import subprocess
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest

from matrixci.core.config import PipelineSettings
from matrixci.core.models import (
    DatabaseCredentials,
    FetchedTree,
    InitSource,
    LocalPath,
    ServiceSpec,
    ToolchainSpec,
)
from matrixci.core.project_config import default_config
from matrixci.services.command_executor import CommandExecutor

PINNED_COMMIT = "0f1e2d3c4b5a69788796a5b4c3d2e1f00f1e2d3c"

GIT_LOCKFILE = f"""\
version = 3

[[package]]
name = "serde"
version = "1.0.197"
source = "registry+https://github.com/rust-lang/crates.io-index"
checksum = "3fb1c873e1b9b056a4dc4c0c198b24c3ffa059243875552b2bd0933b1aee4ce2"

[[package]]
name = "winvoice-adapter-postgres"
version = "0.19.1"
source = "git+https://github.com/Iron-E/winvoice-adapter-postgres?branch=main#{PINNED_COMMIT}"
dependencies = [
 "serde",
]
"""


def _completed(returncode=0, stdout="", stderr="", args=None):
    return subprocess.CompletedProcess(args or [], returncode, stdout, stderr)


@pytest.fixture
def completed():
    """Provide a factory for CompletedProcess results."""
    return _completed


@pytest.fixture
def pinned_commit():
    return PINNED_COMMIT


@pytest.fixture
def git_lockfile(repo_root):
    """Write a lockfile pinning the postgres adapter to a git revision."""
    path = repo_root / "Cargo.lock"
    path.write_text(GIT_LOCKFILE, encoding="utf-8")
    return path


@pytest.fixture
def mock_executor():
    """Provide a CommandExecutor mock whose commands all succeed quietly."""
    executor = Mock(spec=CommandExecutor)
    executor.execute.return_value = _completed()
    executor.execute_async = AsyncMock(return_value=_completed())
    return executor


@pytest.fixture
def credentials():
    return DatabaseCredentials(database="winvoice-server", user="user", password="password")


@pytest.fixture
def service_spec(repo_root, tmp_path, credentials):
    """Provide a ServiceSpec with two local sources and a fetched one."""
    remote_checkout = tmp_path / "checkout"
    (remote_checkout / "src/schema/initializable").mkdir(parents=True)
    (remote_checkout / "src/schema/initializable" / "schema.sql").write_text(
        "CREATE TABLE t ();\n",
        encoding="utf-8",
    )
    local = [
        InitSource(LocalPath(Path(d)), "/docker-entrypoint-initdb.d")
        for d in (
            "src/server/auth/initializable_with_authorization",
            "src/server/db_session_store/initializable",
        )
    ]
    remote = InitSource(
        FetchedTree(
            "https://github.com/Iron-E/winvoice-adapter-postgres",
            PINNED_COMMIT,
            "src/schema/initializable",
            remote_checkout,
        ),
        "/docker-entrypoint-initdb.d",
    )
    return ServiceSpec(
        image="postgres:16.2",
        credentials=credentials,
        init_sources=(*local, remote),
    )


@pytest.fixture
def toolchain():
    return ToolchainSpec(
        image="rust:alpine",
        tool_version="0.6.20",
        workdir="/workspace",
        rustflags="-C target-feature=-crt-static",
    )


@pytest.fixture
def settings(repo_root):
    """Provide default pipeline settings for ``repo_root``."""
    return PipelineSettings.from_mapping(repo_root, default_config(), environ={})
