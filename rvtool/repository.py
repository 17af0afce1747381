"""Package databases of CRAN-like repositories and R-Universe."""

from __future__ import annotations

import json
import os
import pickle
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from rvtool.package import Dependency, Package, PackageType
from rvtool.parser import parse_package_file
from rvtool.remotes import parse_remote
from rvtool.version import Version, VersionRequirement

RECOMMENDED_PACKAGES = frozenset(
    {
        "boot",
        "class",
        "cluster",
        "codetools",
        "foreign",
        "KernSmooth",
        "lattice",
        "MASS",
        "Matrix",
        "mgcv",
        "nlme",
        "nnet",
        "rpart",
        "spatial",
        "survival",
    }
)

_ROLES = ("Depends", "Imports", "Suggests", "LinkingTo", "Enhances")

PackageIndex = dict[str, list[Package]]


class RepositoryDatabaseError(Exception):
    """Raised when a package database cannot be read from disk."""

    def __init__(self, message: str = "Failed to load package database") -> None:
        super().__init__(message)


def _find_in(
    index: PackageIndex,
    name: str,
    version_requirement: VersionRequirement | None,
    r_version: Version,
) -> Package | None:
    # Entries keep file order; scan from the end and keep the one with the
    # highest R requirement that the given R version satisfies.
    max_r_version: Version | None = None
    found: Package | None = None
    for package in reversed(index.get(name, [])):
        if not package.works_with_r_version(r_version):
            continue
        if version_requirement is not None and not version_requirement.is_satisfied(
            package.version
        ):
            continue
        requirement = package.r_requirement
        if max_r_version is None:
            if requirement is None:
                found = package
            else:
                max_r_version = requirement.version
                found = package
        elif requirement is not None and requirement.version > max_r_version:
            max_r_version = requirement.version
            found = package
    return found


@dataclass
class RepositoryDatabase:
    """The packages a repository offers, as source and per-R-version binaries."""

    url: str
    source_packages: PackageIndex = field(default_factory=dict)
    # Keyed by the (major, minor) R version the binaries were built for.
    binary_packages: dict[tuple[int, int], PackageIndex] = field(default_factory=dict)

    @classmethod
    def load(cls, path: str | os.PathLike[str]) -> RepositoryDatabase:
        """Read a database written by :meth:`persist`."""
        try:
            with open(path, "rb") as handle:
                data = pickle.load(handle)
        except OSError as exc:
            raise RepositoryDatabaseError() from exc
        except Exception as exc:
            raise RepositoryDatabaseError() from exc
        if not isinstance(data, cls):
            raise RepositoryDatabaseError()
        return data

    def persist(self, path: str | os.PathLike[str]) -> None:
        """Write the database to ``path``, creating parent folders."""
        target = Path(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "wb") as handle:
                pickle.dump(self, handle)
        except OSError as exc:
            raise RepositoryDatabaseError("Failed to save package database") from exc

    def parse_source(self, content: str) -> None:
        """Replace the source packages with those of a PACKAGES file."""
        self.source_packages = parse_package_file(content)

    def parse_binary(self, content: str, r_version: tuple[int, int]) -> None:
        """Set the binary packages for one (major, minor) R version."""
        major, minor = r_version
        self.binary_packages[(major, minor)] = parse_package_file(content)

    def parse_runiverse_api(self, content: str) -> None:
        """Replace the source packages with those of an R-Universe API listing."""
        self.source_packages = {
            name: [package] for name, package in parse_runiverse_api_file(content).items()
        }

    def find_package(
        self,
        name: str,
        version_requirement: VersionRequirement | None,
        r_version: Version,
        force_source: bool,
    ) -> tuple[Package, PackageType] | None:
        """Find a package, preferring a binary unless ``force_source`` is set."""
        if not force_source:
            binaries = self.binary_packages.get(r_version.major_minor())
            if binaries is not None:
                package = _find_in(binaries, name, version_requirement, r_version)
                if package is not None:
                    return package, PackageType.BINARY
        package = _find_in(self.source_packages, name, version_requirement, r_version)
        if package is None:
            return None
        return package, PackageType.SOURCE

    def binary_count(self, r_version: tuple[int, int]) -> int:
        """Number of binary packages for the given (major, minor) R version."""
        return len(self.binary_packages.get(tuple(r_version), {}))

    def source_count(self) -> int:
        """Number of source packages."""
        return len(self.source_packages)


def _yes_no(value: Any) -> bool:
    if value in ("Yes", "yes"):
        return True
    if value in ("No", "no"):
        return False
    raise ValueError(f"expected 'Yes' or 'No', got '{value}'")


def _required(entry: dict[str, Any], key: str) -> Any:
    try:
        return entry[key]
    except KeyError:
        raise ValueError(f"missing field `{key}`") from None


def _requirement(version: str) -> VersionRequirement:
    return VersionRequirement.parse(f"({version})")


def _dependencies_for(deps: list[dict[str, Any]], role: str) -> list[Dependency]:
    return [
        Dependency(dep["package"])
        if dep.get("version") is None
        else Dependency(dep["package"], _requirement(dep["version"]))
        for dep in deps
        if dep["role"] == role and dep["package"] != "R"
    ]


def _package_from_api(entry: dict[str, Any]) -> Package:
    name = _required(entry, "Package")
    version = Version.parse(_required(entry, "Version"))
    license_ = _required(entry, "License")
    md5_sum = _required(entry, "MD5sum")
    needs_compilation = _yes_no(_required(entry, "NeedsCompilation"))
    remote_url = _required(entry, "RemoteUrl")
    remote_sha = _required(entry, "RemoteSha")
    dependencies = entry.get("_dependencies") or []

    for dep in dependencies:
        _required(dep, "package")
        role = _required(dep, "role")
        if role not in _ROLES:
            raise ValueError(f"unknown dependency role `{role}`")

    r_requirement = next(
        (
            _requirement(dep["version"])
            for dep in dependencies
            if dep["package"] == "R" and dep.get("version") is not None
        ),
        None,
    )
    remotes = {remote: parse_remote(remote) for remote in entry.get("Remotes") or []}

    return Package(
        name=name,
        version=version,
        r_requirement=r_requirement,
        depends=_dependencies_for(dependencies, "Depends"),
        imports=_dependencies_for(dependencies, "Imports"),
        suggests=_dependencies_for(dependencies, "Suggests"),
        enhances=_dependencies_for(dependencies, "Enhances"),
        linking_to=_dependencies_for(dependencies, "LinkingTo"),
        license=license_,
        md5_sum=md5_sum,
        path=None,
        recommended=name in RECOMMENDED_PACKAGES,
        needs_compilation=needs_compilation,
        remotes=remotes,
        remote_url=remote_url,
        remote_sha=remote_sha,
        remote_subdir=entry.get("RemoteSubdir"),
    )


def parse_runiverse_api_file(content: str) -> dict[str, Package]:
    """Parse an R-Universe API package listing into packages by name.

    Raises ``ValueError`` on malformed content.
    """
    entries = json.loads(content)
    if not isinstance(entries, list):
        raise ValueError("expected a list of packages")
    packages: dict[str, Package] = {}
    for entry in entries:
        package = _package_from_api(entry)
        packages[package.name] = package
    return packages