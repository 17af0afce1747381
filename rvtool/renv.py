"""Reading renv lock files and resolving their packages to project sources."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Sequence, Union
from urllib.parse import urlsplit

from rvtool.repository import RECOMMENDED_PACKAGES, RepositoryDatabase
from rvtool.version import Operator, Version, VersionRequirement

_REPOSITORY = "Repository"
_GITHUB = "GitHub"
_LOCAL = "Local"


class FromJsonFileError(Exception):
    """Raised when a lock file cannot be read or parsed; the cause is chained."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        super().__init__(f"Error reading `{path}`")
        self.path = Path(path)


@dataclass(frozen=True)
class RenvRepository:
    """A repository listed in the ``R`` section of a lock file."""

    name: str
    url: str


@dataclass(frozen=True)
class _PackageInfo:
    package: str
    version: Version
    source: str
    repository: str | None = None
    remote_type: str | None = None
    remote_host: str | None = None
    remote_repo: str | None = None
    remote_username: str | None = None
    remote_sha: str | None = None
    remote_subdir: str | None = None
    remote_url: str | None = None
    requirements: tuple[str, ...] = ()
    hash: str | None = None


@dataclass(frozen=True)
class _RepositorySource:
    repository: RenvRepository


@dataclass(frozen=True)
class _GitSource:
    git: str
    sha: str
    directory: str | None = None


@dataclass(frozen=True)
class _LocalSource:
    path: str


_Source = Union[_RepositorySource, _GitSource, _LocalSource]


class _ResolveError(Exception):
    pass


@dataclass(frozen=True)
class ResolvedRenv:
    """A lock file package together with the source it resolved to."""

    package_info: _PackageInfo
    source: _Source

    @property
    def name(self) -> str:
        return self.package_info.package

    def __str__(self) -> str:
        name = self.package_info.package
        source = self.source
        if isinstance(source, _RepositorySource):
            return f'{{ name = "{name}", repository = "{source.repository.name}" }}'
        if isinstance(source, _GitSource):
            directory = (
                f", directory = {source.directory}" if source.directory is not None else ""
            )
            return (
                f'{{ name = "{name}", git = "{source.git}", '
                f'commit = "{source.sha}"{directory} }}'
            )
        return f'{{ name = "{name}", path = "{source.path}" }}'


def _quoted(message: str) -> str:
    escaped = message.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


@dataclass(frozen=True)
class UnresolvedRenv:
    """A lock file package that could not be resolved, with the reason."""

    package_info: _PackageInfo
    error: str

    @property
    def name(self) -> str:
        return self.package_info.package

    def __str__(self) -> str:
        return (
            f"`{self.package_info.package}` could not be resolved due to: "
            f"{_quoted(self.error)}"
        )


def _required(entry: dict[str, Any], key: str) -> Any:
    if not isinstance(entry, dict):
        raise ValueError("expected an object")
    try:
        return entry[key]
    except KeyError:
        raise ValueError(f"missing field `{key}`") from None


def _optional_str(entry: dict[str, Any], key: str) -> str | None:
    value = entry.get(key)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"field `{key}` must be a string")
    return value


def _version(value: Any) -> Version:
    if not isinstance(value, str):
        raise ValueError("Invalid version number")
    try:
        return Version.parse(value)
    except ValueError:
        raise ValueError("Invalid version number") from None


def _package_info(entry: dict[str, Any]) -> _PackageInfo:
    package = _required(entry, "Package")
    source = _required(entry, "Source")
    if not isinstance(package, str) or not isinstance(source, str):
        raise ValueError("`Package` and `Source` must be strings")
    requirements = entry.get("Requirements") or []
    if not isinstance(requirements, list):
        raise ValueError("`Requirements` must be a list")
    return _PackageInfo(
        package=package,
        version=_version(_required(entry, "Version")),
        source=source,
        repository=_optional_str(entry, "Repository"),
        remote_type=_optional_str(entry, "RemoteType"),
        remote_host=_optional_str(entry, "RemoteHost"),
        remote_repo=_optional_str(entry, "RemoteRepo"),
        remote_username=_optional_str(entry, "RemoteUsername"),
        remote_sha=_optional_str(entry, "RemoteSha"),
        remote_subdir=_optional_str(entry, "RemoteSubdir"),
        remote_url=_optional_str(entry, "RemoteUrl"),
        requirements=tuple(str(r) for r in requirements),
        hash=_optional_str(entry, "Hash"),
    )


def _trim_start(text: str, prefix: str) -> str:
    while prefix and text.startswith(prefix):
        text = text[len(prefix):]
    return text


def _trim_end(text: str, suffix: str) -> str:
    while suffix and text.endswith(suffix):
        text = text[: -len(suffix)]
    return text


def _resolve_repository(
    info: _PackageInfo,
    repositories: Sequence[RenvRepository],
    databases: Sequence[tuple[RepositoryDatabase, bool]],
    r_version: Version,
) -> _Source:
    # Packages with a git remote (common with R-Universe) are treated as git.
    if info.remote_url is not None and info.remote_sha is not None:
        return _GitSource(info.remote_url, info.remote_sha, info.remote_subdir)

    requirement = VersionRequirement(info.version, Operator.EQUAL)
    pairs = [
        (repo, db, force_source)
        for repo, (db, force_source) in zip(repositories, databases)
    ]

    if info.repository is not None:
        preferred = next((p for p in pairs if p[0].name == info.repository), None)
        if preferred is not None:
            repo, db, force_source = preferred
            if db.find_package(info.package, requirement, r_version, force_source) is not None:
                return _RepositorySource(repo)

    for repo, db, force_source in pairs:
        found = db.find_package(info.package, None, r_version, force_source)
        if found is None:
            continue
        package, _ = found
        if package.version == info.version:
            return _RepositorySource(repo)
        raise _ResolveError(
            f"Package version ({info.version}) not found in repositories. "
            f"Found version {package.version} in {repo.url}"
        )
    raise _ResolveError("Package not found in repositories")


def _resolve_github(info: _PackageInfo) -> _Source:
    if info.remote_host is None:
        raise _ResolveError("RemoteHost not found")
    if info.remote_repo is None:
        raise _ResolveError("RemoteRepo not found")
    if info.remote_username is None:
        raise _ResolveError("RemoteUsername not found")
    if info.remote_sha is None:
        raise _ResolveError("RemoteSha not found")
    base_url = _trim_end(
        _trim_start(_trim_start(info.remote_host, "https://"), "api."), "api/v3"
    )
    git = f"https://{base_url}/{info.remote_username}/{info.remote_repo}"
    return _GitSource(git, info.remote_sha, info.remote_subdir)


def _resolve_local(info: _PackageInfo) -> _Source:
    if info.remote_url is None:
        raise _ResolveError("RemoteUrl not found")
    return _LocalSource(info.remote_url)


@dataclass
class RenvLock:
    """The content of an renv lock file."""

    r_version: Version
    repositories: list[RenvRepository] = field(default_factory=list)
    packages: dict[str, _PackageInfo] = field(default_factory=dict)

    @classmethod
    def parse_renv_lock(cls, path: str | os.PathLike[str]) -> RenvLock:
        """Read and parse the lock file at ``path``."""
        try:
            content = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise FromJsonFileError(path) from exc
        try:
            return cls._from_json(json.loads(content))
        except (ValueError, TypeError, AttributeError) as exc:
            raise FromJsonFileError(path) from exc

    @classmethod
    def _from_json(cls, data: Any) -> RenvLock:
        r_info = _required(data, "R")
        raw_repos = _required(r_info, "Repositories")
        if not isinstance(raw_repos, list):
            raise ValueError("`Repositories` must be a list")
        repositories = [
            RenvRepository(name=str(_required(r, "Name")), url=str(_required(r, "URL")))
            for r in raw_repos
        ]
        raw_packages = _required(data, "Packages")
        if not isinstance(raw_packages, dict):
            raise ValueError("`Packages` must be an object")
        packages = {key: _package_info(entry) for key, entry in raw_packages.items()}
        return cls(
            r_version=_version(_required(r_info, "Version")),
            repositories=repositories,
            packages=packages,
        )

    def resolve(
        self, repository_databases: Sequence[tuple[RepositoryDatabase, bool]]
    ) -> tuple[list[ResolvedRenv], list[UnresolvedRenv]]:
        """Resolve every package; both lists come back sorted by package name.

        Recommended packages from repositories are skipped.
        """
        resolved: list[ResolvedRenv] = []
        unresolved: list[UnresolvedRenv] = []
        for info in self.packages.values():
            if info.source == _REPOSITORY and info.package in RECOMMENDED_PACKAGES:
                continue
            try:
                if info.source == _REPOSITORY:
                    source = _resolve_repository(
                        info, self.repositories, repository_databases, self.r_version
                    )
                elif info.source == _GITHUB:
                    source = _resolve_github(info)
                elif info.source == _LOCAL:
                    source = _resolve_local(info)
                else:
                    raise _ResolveError(f"Source ({info.source}) is not supported")
            except _ResolveError as exc:
                unresolved.append(UnresolvedRenv(info, str(exc)))
            else:
                resolved.append(ResolvedRenv(info, source))

        resolved.sort(key=lambda r: r.package_info.package)
        unresolved.sort(key=lambda u: u.package_info.package)
        return resolved, unresolved

    def config_repositories(self) -> list[RenvRepository]:
        """The lock file's repositories, with their URLs checked to be absolute."""
        for repo in self.repositories:
            if not urlsplit(repo.url).scheme:
                raise ValueError(f"Invalid repository URL: {repo.url}")
        return list(self.repositories)