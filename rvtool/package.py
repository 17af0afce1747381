"""R package records and the dependencies they declare."""

from __future__ import annotations

import enum
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

from rvtool.remotes import PackageRemote
from rvtool.version import Version, VersionRequirement

BASE_PACKAGES = frozenset(
    {
        "base",
        "compiler",
        "datasets",
        "graphics",
        "grDevices",
        "grid",
        "methods",
        "parallel",
        "splines",
        "stats",
        "stats4",
        "tcltk",
        "tools",
        "utils",
    }
)


class PackageType(enum.Enum):
    """Whether a package comes as source or as a prebuilt binary."""

    SOURCE = "source"
    BINARY = "binary"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Dependency:
    """A dependency on another package, optionally with a version requirement."""

    name: str
    requirement: VersionRequirement | None = None

    def as_toml_value(self) -> str | dict[str, str]:
        """The value used for this dependency in a project config file."""
        if self.requirement is None:
            return self.name
        return {"name": self.name, "requirement": str(self.requirement)}


@dataclass
class Package:
    """One package entry from a PACKAGES or DESCRIPTION file."""

    name: str = ""
    version: Version = field(default_factory=Version)
    r_requirement: VersionRequirement | None = None
    depends: list[Dependency] = field(default_factory=list)
    imports: list[Dependency] = field(default_factory=list)
    suggests: list[Dependency] = field(default_factory=list)
    enhances: list[Dependency] = field(default_factory=list)
    linking_to: list[Dependency] = field(default_factory=list)
    license: str = ""
    md5_sum: str = ""
    path: str | None = None
    recommended: bool = False
    needs_compilation: bool = False
    # Maps the original remote string to (package name, remote).
    remotes: dict[str, tuple[str | None, PackageRemote]] = field(default_factory=dict)
    # Filled in for packages built from git, e.g. by R-Universe.
    remote_url: str | None = None
    remote_sha: str | None = None
    remote_subdir: str | None = None

    def works_with_r_version(self, r_version: Version) -> bool:
        """Whether the package's R requirement, if any, accepts ``r_version``."""
        if self.r_requirement is None:
            return True
        return self.r_requirement.is_satisfied(r_version)

    def dependencies_to_install(self, install_suggestions: bool) -> InstallationDependencies:
        """The non-base dependencies needed to install this package."""
        direct = [*self.depends, *self.imports]
        # LinkingTo entries may already be listed in Depends.
        for dep in self.linking_to:
            if not any(existing.name == dep.name for existing in direct):
                direct.append(dep)

        suggests = (
            [dep for dep in self.suggests if dep.name not in BASE_PACKAGES]
            if install_suggestions
            else []
        )
        return InstallationDependencies(
            direct=[dep for dep in direct if dep.name not in BASE_PACKAGES],
            suggests=suggests,
        )


@dataclass
class InstallationDependencies:
    """Dependencies to install: the required ones and the suggested ones."""

    direct: list[Dependency] = field(default_factory=list)
    suggests: list[Dependency] = field(default_factory=list)


def _report_walk_error(error: OSError) -> None:
    print(f"Failed to read entry: {error}", file=sys.stderr)


def is_binary_package(path: str | os.PathLike[str], name: str) -> bool:
    """Whether the folder holds compiled R files for package ``name``."""
    target = f"{name}.rdx"
    root_path = Path(path)
    if root_path.is_file():
        return root_path.name == target
    for root, _dirs, files in os.walk(root_path, onerror=_report_walk_error):
        if target in files and Path(root, target).is_file():
            return True
    return False