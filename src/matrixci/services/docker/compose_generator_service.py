"""Docker Compose generation service.

Renders the compose file of one pipeline run from a Jinja2 template: the bound
database service plus the toolchain service that runs the feature matrix.
"""

import json
import shutil
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from matrixci.core.errors import ConfigurationError
from matrixci.core.models import InitSource, ServiceSpec, ToolchainSpec
from matrixci.core.paths import CachePaths, DockerConstants
from matrixci.core.yaml import YamlOperationError, parse_yaml
from matrixci.managers.base.service import BaseService

if TYPE_CHECKING:
    from matrixci.services.command_executor import CommandExecutor

TEMPLATES_DIR = Path(__file__).resolve().parents[2] / "templates"


def compose_str(value: object) -> str:
    """Quote a value for compose YAML, escaping ``$`` interpolation."""
    return json.dumps(str(value).replace("$", "$$"))


class ComposeGeneratorService(BaseService):
    """Service for generating the pipeline's docker-compose.yaml."""

    def __init__(
        self,
        repo_root: Path,
        command_executor: Optional["CommandExecutor"] = None,
        templates_dir: Path = TEMPLATES_DIR,
    ) -> None:
        """Initialize the compose generator service.

        Parameters
        ----------
        repo_root : Path
            Repository root directory
        command_executor : CommandExecutor | None, optional
            Unused; accepted for orchestrator registration
        templates_dir : Path
            Directory holding the compose template
        """
        super().__init__(repo_root, command_executor)
        self.output_file = CachePaths.compose_file(repo_root)
        self.initdb_dir = CachePaths.initdb_dir(repo_root)
        self.build_context = CachePaths.toolchain_context(repo_root)

        self.jinja_env = Environment(
            loader=FileSystemLoader(templates_dir),
            autoescape=select_autoescape(),
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )
        self.jinja_env.filters["compose_str"] = compose_str

    def stage_init_sources(self, sources: tuple[InitSource, ...]) -> list[tuple[Path, str]]:
        """Copy init scripts into one directory per mount path.

        The postgres entrypoint runs the scripts of its init directory in
        alphabetical order, so every entry is prefixed with the zero-padded index
        of its source. Scripts of a later source therefore always run after
        those of an earlier one.

        Returns
        -------
        list[tuple[Path, str]]
            ``(staged host directory, container mount path)`` pairs, ordered by
            first appearance of each mount path

        Raises
        ------
        ConfigurationError
            If a source directory does not exist
        """
        if self.initdb_dir.exists():
            shutil.rmtree(self.initdb_dir)

        staged: dict[str, Path] = {}
        width = max(2, len(str(len(sources))))

        for index, source in enumerate(sources):
            src_dir = source.content_root.resolve(self.repo_root)
            if not src_dir.is_dir():
                msg = f"Init script directory does not exist: {src_dir}"
                raise ConfigurationError(msg)

            if source.mount_path not in staged:
                staged[source.mount_path] = self.ensure_directory(
                    self.initdb_dir / f"mount-{len(staged)}",
                )
            target_dir = staged[source.mount_path]

            for entry in sorted(src_dir.iterdir(), key=lambda p: p.name):
                target = target_dir / f"{index:0{width}d}-{entry.name}"
                if entry.is_dir():
                    shutil.copytree(entry, target)
                else:
                    shutil.copy2(entry, target)
            self.log_debug("Staged init source %d from %s", index, src_dir)

        return [(path, mount) for mount, path in staged.items()]

    def render(
        self,
        project: str,
        binding: str,
        service: ServiceSpec,
        toolchain: ToolchainSpec,
        toolchain_name: str,
        toolchain_env: Mapping[str, str],
        init_mounts: list[tuple[Path, str]],
    ) -> str:
        """Render compose YAML for one service binding and the toolchain."""
        template = self.jinja_env.get_template(DockerConstants.TEMPLATE_NAME)
        return template.render(
            project=project,
            binding=binding,
            service=service,
            service_env=service.credentials.as_env(),
            init_mounts=init_mounts,
            toolchain=toolchain,
            toolchain_name=toolchain_name,
            toolchain_env=dict(toolchain_env),
            build_context=self.build_context,
            repo_root=self.repo_root,
        )

    def generate(
        self,
        project: str,
        binding: str,
        service: ServiceSpec,
        toolchain: ToolchainSpec,
        toolchain_name: str,
        toolchain_env: Mapping[str, str],
    ) -> Path:
        """Stage init scripts and write docker-compose.yaml.

        Returns
        -------
        Path
            The generated compose file

        Raises
        ------
        ConfigurationError
            If staging fails or the rendered file is not valid YAML
        """
        init_mounts = self.stage_init_sources(service.init_sources)
        self.ensure_directory(self.build_context)

        content = self.render(
            project,
            binding,
            service,
            toolchain,
            toolchain_name,
            toolchain_env,
            init_mounts,
        )
        try:
            parse_yaml(content, str(self.output_file))
        except YamlOperationError as e:
            raise ConfigurationError(str(e)) from e

        self.ensure_directory(self.output_file.parent)
        self.output_file.write_text(content, encoding="utf-8")
        self.log_info("Generated compose file: %s", self.output_file)
        return self.output_file
