"""Unit tests for the feature-matrix test service."""

import contextlib
import subprocess
from unittest.mock import AsyncMock

import pytest

from matrixci.core.models import ServiceSpec
from matrixci.core.scope import DEFAULT_SCOPE, SERIAL_TEST_ARGS, MatrixConfig
from matrixci.services.test import MatrixTestService, build_matrix_command

HACK_ARGS = DEFAULT_SCOPE.to_hack_args()


class FakeEnvironment:
    """Records bindings and runs commands through an AsyncMock."""

    def __init__(self, toolchain, returncode=0, stdout="test result: ok\n", stderr=""):
        self.toolchain = toolchain
        self.bindings = {}
        self.env = {}
        self.exec = AsyncMock(
            return_value=subprocess.CompletedProcess([], returncode, stdout, stderr),
        )
        self.sessions = 0

    def with_service_binding(self, name, service):
        self.bindings[name] = service
        return self

    def with_env_variable(self, key, value):
        self.env[key] = value
        return self

    @contextlib.asynccontextmanager
    async def session(self):
        self.sessions += 1
        yield self


class TestBuildMatrixCommand:
    """Tests for the cargo hack invocation."""

    def test_default_invocation(self, service_spec):
        """Test the full command for the database service."""
        assert build_matrix_command(service_spec, DEFAULT_SCOPE) == [
            "cargo",
            "hack",
            *HACK_ARGS,
            "test",
            "--",
            "--test-threads",
            "1",
        ]

    @pytest.mark.parametrize(
        "extra",
        [
            [],
            ["--no-fail-fast"],
            ["--", "--nocapture"],
            ["--release", "--", "--nocapture", "--ignored"],
            ["--", "--test-threads", "8"],
            ["--", "--test-threads=8", "--nocapture"],
            ["--", "--nocapture", "--test-threads"],
        ],
    )
    def test_serial_args_always_terminate_harness_args(self, service_spec, extra):
        """Test that --test-threads 1 ends every invocation against the database."""
        command = build_matrix_command(service_spec, DEFAULT_SCOPE, extra)

        assert tuple(command[-2:]) == SERIAL_TEST_ARGS
        harness = command[command.index("--") + 1 :]
        assert harness.count("--test-threads") == 1
        assert not any(arg.startswith("--test-threads=") for arg in harness)
        assert "8" not in harness

    def test_extra_args_are_split_on_separator(self, service_spec):
        command = build_matrix_command(
            service_spec, DEFAULT_SCOPE, ["--release", "--", "--nocapture"],
        )
        assert command[len(HACK_ARGS) + 2 :] == [
            "test",
            "--release",
            "--",
            "--nocapture",
            "--test-threads",
            "1",
        ]

    def test_serial_args_follow_service_flag(self, service_spec):
        """Test that only services sharing state force serial execution."""
        parallel_ok = ServiceSpec(
            image=service_spec.image,
            credentials=service_spec.credentials,
            init_sources=service_spec.init_sources,
            requires_serial_tests=False,
        )
        assert build_matrix_command(parallel_ok, DEFAULT_SCOPE) == [
            "cargo", "hack", *HACK_ARGS, "test",
        ]

    def test_matrix_scope_is_used(self, service_spec):
        matrix = MatrixConfig(features=frozenset({"a"}))
        command = build_matrix_command(service_spec, matrix)
        assert command[:4] == ["cargo", "hack", "--feature-powerset", "test"]


class TestMatrixTestServiceRun:
    """Tests for running the matrix in the toolchain environment."""

    @pytest.mark.asyncio
    async def test_binds_database_and_injects_environment(
        self, repo_root, mock_executor, service_spec, toolchain,
    ):
        """Test service binding, DATABASE_URL and RUSTFLAGS."""
        env = FakeEnvironment(toolchain)
        service = MatrixTestService(repo_root, mock_executor)

        await service.run(env, service_spec, DEFAULT_SCOPE)

        assert env.bindings == {"db": service_spec}
        assert env.env == {
            "DATABASE_URL": "postgresql://user:password@db/winvoice-server",
            "RUSTFLAGS": "-C target-feature=-crt-static",
        }

    @pytest.mark.asyncio
    async def test_returns_captured_output(
        self, repo_root, mock_executor, service_spec, toolchain,
    ):
        """Test that stdout and the command are returned."""
        env = FakeEnvironment(toolchain, stdout="running 12 tests\n")
        service = MatrixTestService(repo_root, mock_executor)

        result = await service.run(env, service_spec, DEFAULT_SCOPE, ["--", "--nocapture"])

        assert result.output == "running 12 tests\n"
        assert result.succeeded
        assert result.command[-3:] == ("--nocapture", "--test-threads", "1")
        env.exec.assert_awaited_once_with(list(result.command))
        assert env.sessions == 1

    @pytest.mark.asyncio
    async def test_test_failure_is_reported_not_raised(
        self, repo_root, mock_executor, service_spec, toolchain,
    ):
        env = FakeEnvironment(toolchain, returncode=101, stdout="FAILED\n", stderr="error")
        service = MatrixTestService(repo_root, mock_executor)

        result = await service.run(env, service_spec, DEFAULT_SCOPE)

        assert result.exit_code == 101
        assert result.output == "FAILED\n"

    @pytest.mark.asyncio
    async def test_custom_binding_name(self, repo_root, mock_executor, service_spec, toolchain):
        env = FakeEnvironment(toolchain)
        service = MatrixTestService(repo_root, mock_executor, binding_name="postgres")

        await service.run(env, service_spec, DEFAULT_SCOPE)

        assert set(env.bindings) == {"postgres"}
        assert env.env["DATABASE_URL"].endswith("@postgres/winvoice-server")
