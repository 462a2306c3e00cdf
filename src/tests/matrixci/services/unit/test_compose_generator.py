"""Unit tests for ComposeGeneratorService."""

from pathlib import Path

import pytest
import yaml

from matrixci.core.errors import ConfigurationError
from matrixci.core.models import DatabaseCredentials, InitSource, LocalPath, ServiceSpec
from matrixci.services.docker import ComposeGeneratorService
from matrixci.services.docker.compose_generator_service import compose_str

MOUNT = "/docker-entrypoint-initdb.d"


def _generate(service, repo_root, toolchain, env=None):
    generator = ComposeGeneratorService(repo_root)
    path = generator.generate(
        "matrixci-repo",
        "db",
        service,
        toolchain,
        "toolchain",
        env or {"DATABASE_URL": "postgresql://user:password@db/winvoice-server"},
    )
    return generator, yaml.safe_load(path.read_text())


class TestStageInitSources:
    """Tests for staging init scripts in execution order."""

    def test_prefixes_preserve_source_order(self, repo_root, service_spec):
        """Test that staged names sort in source order."""
        generator = ComposeGeneratorService(repo_root)

        mounts = generator.stage_init_sources(service_spec.init_sources)

        assert len(mounts) == 1
        staged_dir, mount_path = mounts[0]
        assert mount_path == MOUNT
        assert sorted(p.name for p in staged_dir.iterdir()) == [
            "00-0-init.sql",
            "01-1-init.sql",
            "02-schema.sql",
        ]

    def test_source_order_wins_over_script_names(self, repo_root):
        """Test that a later source never runs before an earlier one."""
        first = repo_root / "first"
        second = repo_root / "second"
        first.mkdir()
        second.mkdir()
        (first / "z.sql").write_text("")
        (second / "a.sql").write_text("")
        sources = (
            InitSource(LocalPath(Path("first")), MOUNT),
            InitSource(LocalPath(Path("second")), MOUNT),
        )

        staged_dir, _ = ComposeGeneratorService(repo_root).stage_init_sources(sources)[0]

        assert sorted(p.name for p in staged_dir.iterdir()) == ["00-z.sql", "01-a.sql"]

    def test_separate_mount_paths(self, repo_root):
        (repo_root / "a").mkdir()
        (repo_root / "b").mkdir()
        sources = (
            InitSource(LocalPath(Path("a")), "/one"),
            InitSource(LocalPath(Path("b")), "/two"),
        )
        mounts = ComposeGeneratorService(repo_root).stage_init_sources(sources)
        assert [mount for _, mount in mounts] == ["/one", "/two"]
        assert mounts[0][0] != mounts[1][0]

    def test_restaging_replaces_previous_run(self, repo_root, service_spec):
        generator = ComposeGeneratorService(repo_root)
        staged_dir, _ = generator.stage_init_sources(service_spec.init_sources)[0]
        (staged_dir / "leftover.sql").write_text("")

        staged_dir, _ = generator.stage_init_sources(service_spec.init_sources)[0]

        assert not (staged_dir / "leftover.sql").exists()

    def test_missing_directory(self, repo_root):
        sources = (InitSource(LocalPath(Path("missing")), MOUNT),)
        with pytest.raises(ConfigurationError, match="does not exist"):
            ComposeGeneratorService(repo_root).stage_init_sources(sources)


class TestGenerate:
    """Tests for rendering the compose file."""

    def test_database_service(self, repo_root, service_spec, toolchain):
        """Test the rendered database service."""
        generator, compose = _generate(service_spec, repo_root, toolchain)

        assert compose["name"] == "matrixci-repo"
        db = compose["services"]["db"]
        assert db["image"] == "postgres:16.2"
        assert db["environment"] == {
            "POSTGRES_DB": "winvoice-server",
            "POSTGRES_USER": "user",
            "POSTGRES_PASSWORD": "password",
        }
        assert db["volumes"] == [
            {
                "type": "bind",
                "source": str(generator.initdb_dir / "mount-0"),
                "target": MOUNT,
                "read_only": True,
            },
        ]
        assert "pg_isready -h localhost" in db["healthcheck"]["test"][1]

    def test_toolchain_service(self, repo_root, service_spec, toolchain):
        """Test the rendered toolchain service."""
        generator, compose = _generate(service_spec, repo_root, toolchain)

        tc = compose["services"]["toolchain"]
        assert tc["working_dir"] == "/workspace"
        assert tc["depends_on"] == {"db": {"condition": "service_healthy"}}
        assert tc["environment"] == {
            "DATABASE_URL": "postgresql://user:password@db/winvoice-server",
        }
        assert tc["volumes"][0]["source"] == str(repo_root)
        assert tc["volumes"][0]["target"] == "/workspace"
        assert tc["build"]["context"] == str(generator.build_context)
        dockerfile = tc["build"]["dockerfile_inline"]
        assert "FROM rust:alpine" in dockerfile
        assert "cargo install cargo-hack --version 0.6.20 --locked" in dockerfile

    def test_dollar_signs_are_escaped(self, repo_root, service_spec, toolchain):
        """Test that secrets with $ survive compose interpolation."""
        service = ServiceSpec(
            image=service_spec.image,
            credentials=DatabaseCredentials("winvoice-server", "user", "pa$word"),
            init_sources=service_spec.init_sources,
        )
        _, compose = _generate(service, repo_root, toolchain)
        assert compose["services"]["db"]["environment"]["POSTGRES_PASSWORD"] == "pa$$word"

    def test_writes_to_cache(self, repo_root, service_spec, toolchain):
        generator, _ = _generate(service_spec, repo_root, toolchain)
        assert generator.output_file == repo_root / ".cache/matrixci/docker-compose.yaml"
        assert generator.output_file.is_file()


def test_compose_str_quotes_and_escapes():
    assert compose_str("a$b") == '"a$$b"'
    assert compose_str(Path("/x y")) == '"/x y"'
