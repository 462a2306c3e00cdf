"""Feature-matrix scope definitions.

Which cargo features ``cargo hack`` combines, and which it must leave out or
force on. This module is data plus the rendering of that data into
``cargo hack`` flags.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from matrixci.core.errors import ConfigurationError

CARGO_HACK_VERSION = "0.6.20"

# Tests create and drop named roles in the shared database, so they must never
# run concurrently against it.
SERIAL_TEST_ARGS = ("--test-threads", "1")


def _as_set(values: Iterable[str] | str | None) -> frozenset[str]:
    if values is None:
        return frozenset()
    if isinstance(values, str):
        values = values.split(",")
    return frozenset(v.strip() for v in values if v and v.strip())


@dataclass(frozen=True)
class MatrixConfig:
    """Feature-matrix configuration handed to ``cargo hack``.

    Parameters
    ----------
    features : frozenset[str]
        Every toggleable feature of the crate under test
    at_least_one_of : frozenset[frozenset[str]]
        Groups of which each combination must enable at least one member
    excluded : frozenset[str]
        Features never combined
    included : frozenset[str]
        Features forced on in every combination
    skipped : frozenset[str]
        Features omitted from the power set entirely
    tool_version : str
        Pinned ``cargo-hack`` version
    """

    features: frozenset[str]
    at_least_one_of: frozenset[frozenset[str]] = field(default_factory=frozenset)
    excluded: frozenset[str] = field(default_factory=frozenset)
    included: frozenset[str] = field(default_factory=frozenset)
    skipped: frozenset[str] = field(default_factory=frozenset)
    tool_version: str = CARGO_HACK_VERSION

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Check that every referenced feature is a declared feature.

        Raises
        ------
        ConfigurationError
            If an exclude/include/skip/at-least-one-of entry is unknown
        """
        named = {
            "exclude": self.excluded,
            "include": self.included,
            "skip": self.skipped,
            "at-least-one-of": frozenset().union(*self.at_least_one_of),
        }
        for option, values in named.items():
            unknown = values - self.features
            if unknown:
                msg = (
                    f"Matrix option '{option}' references undeclared features: "
                    f"{', '.join(sorted(unknown))}"
                )
                raise ConfigurationError(msg)

        if not self.tool_version:
            msg = "Matrix tool version must be pinned"
            raise ConfigurationError(msg)

    def to_hack_args(self) -> list[str]:
        """Render the configuration as ``cargo hack`` arguments."""
        args = ["--feature-powerset"]
        for group in sorted(sorted(g) for g in self.at_least_one_of):
            args.extend(["--at-least-one-of", ",".join(group)])
        if self.excluded:
            args.extend(["--exclude-features", ",".join(sorted(self.excluded))])
        if self.included:
            args.extend(["--include-features", ",".join(sorted(self.included))])
        if self.skipped:
            args.extend(["--skip", ",".join(sorted(self.skipped))])
        return args

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "MatrixConfig":
        """Build a configuration from the ``matrix:`` config section.

        Raises
        ------
        ConfigurationError
            If the section is malformed or violates the subset rule
        """
        groups = data.get("at_least_one_of") or []
        if isinstance(groups, str):
            groups = [groups]
        if not isinstance(groups, list):
            msg = "Matrix option 'at_least_one_of' must be a list of groups"
            raise ConfigurationError(msg)

        return cls(
            features=_as_set(data.get("features")),
            at_least_one_of=frozenset(_as_set(g) for g in groups if _as_set(g)),
            excluded=_as_set(data.get("exclude")),
            included=_as_set(data.get("include")),
            skipped=_as_set(data.get("skip")),
            tool_version=str(data.get("tool_version") or CARGO_HACK_VERSION),
        )


DEFAULT_SCOPE = MatrixConfig(
    features=frozenset({"bin", "postgres", "test-postgres", "watchman"}),
    at_least_one_of=frozenset({frozenset({"bin", "postgres"})}),
    # watchman does not build on alpine
    excluded=frozenset({"watchman"}),
    included=frozenset({"test-postgres"}),
    skipped=frozenset({"watchman"}),
)
