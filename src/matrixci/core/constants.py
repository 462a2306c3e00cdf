"""Constants and enums for matrixci."""

from enum import Enum


class LogLevel(str, Enum):
    """Supported log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


ALL_LOG_LEVELS = [level.value for level in LogLevel]


class ExitCode:
    """Exit codes for CLI operations."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    NOT_FOUND = 2
    CONFIG_ERROR = 3
    PERMISSION_ERROR = 4
    TIMEOUT = 124


class Icons:
    """Unicode icons for CLI output."""

    SUCCESS = "✅"
    ERROR = "❌"
    WARNING = "⚠️"
    INFO = "📄"
    DOCKER = "🐳"
    TEST = "🧪"
    LOCK = "🔒"
    ARROW_RIGHT = "→"


class EnvVars:
    """Environment variable names."""

    REPO_ROOT = "MATRIXCI_REPO_ROOT"

    DB_IMAGE = "MATRIXCI_DB_IMAGE"
    DB_NAME = "MATRIXCI_DB_NAME"
    DB_USER = "MATRIXCI_DB_USER"
    DB_PASSWORD = "MATRIXCI_DB_PASSWORD"
    TOOLCHAIN_IMAGE = "MATRIXCI_TOOLCHAIN_IMAGE"

    # Injected into the toolchain environment
    DATABASE_URL = "DATABASE_URL"
    RUSTFLAGS = "RUSTFLAGS"


class LockfileDefaults:
    """Where the tracked dependency is declared and where it lives."""

    DEPENDENCY = "winvoice-adapter-postgres"
    CANONICAL_ORIGIN = "https://github.com/Iron-E/winvoice-adapter-postgres"
    REMOTE_INIT_SUBTREE = "src/schema/initializable"

    # Lines searched around a ``name = "..."`` declaration for its source field
    CONTEXT_LINES = 3


class ServiceDefaults:
    """Database service defaults."""

    NAME = "db"
    IMAGE = "postgres:16.2"
    DATABASE = "winvoice-server"
    USER = "user"
    PASSWORD = "password"  # noqa: S105
    INIT_MOUNT = "/docker-entrypoint-initdb.d"
    LOCAL_INIT_DIRS = (
        "src/server/auth/initializable_with_authorization",
        "src/server/db_session_store/initializable",
    )


class ToolchainDefaults:
    """Toolchain environment defaults."""

    NAME = "toolchain"
    IMAGE = "rust:alpine"
    WORKDIR = "/workspace"
    RUSTFLAGS = "-C target-feature=-crt-static"
    TEST_COMMAND = "test"
