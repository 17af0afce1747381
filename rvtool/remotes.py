"""Parsing of entries from the ``Remotes`` field of R package metadata."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Union


class _RemoteType(enum.Enum):
    GIT = "git"
    GITHUB = "github"
    GITLAB = "gitlab"
    BITBUCKET = "bitbucket"
    SVN = "svn"
    URL = "url"
    LOCAL = "local"
    BIOC = "bioc"


_HOSTED_BASE_URLS = {
    _RemoteType.GITHUB: "https://github.com/",
    _RemoteType.GITLAB: "https://gitlab.com/",
    _RemoteType.BITBUCKET: "https://bitbucket.org/",
}


@dataclass(frozen=True)
class GitRemote:
    """A package hosted in a git repository.

    ``reference`` may be a tag, branch or commit; which one is only known
    once the repository is cloned.
    """

    url: str
    reference: str | None = None
    pull_request: str | None = None
    directory: str | None = None


@dataclass(frozen=True)
class UrlRemote:
    """A package available as an archive at a URL."""

    url: str


@dataclass(frozen=True)
class BiocRemote:
    """A Bioconductor package."""

    spec: str


@dataclass(frozen=True)
class LocalRemote:
    """A package at a local path."""

    path: str


@dataclass(frozen=True)
class OtherRemote:
    """A remote kind that is recorded but not handled."""

    spec: str


PackageRemote = Union[GitRemote, UrlRemote, BiocRemote, LocalRemote, OtherRemote]


def _name_and_directory(text: str) -> tuple[str, str | None]:
    pieces = text.split("/")
    if len(pieces) < 2:
        raise ValueError(f"Invalid remote repository path: {text!r}")
    directory = pieces[2] if len(pieces) == 3 else None
    return pieces[1], directory


def _parse_github_like_url(base_url: str, content: str) -> tuple[str, GitRemote]:
    reference = None
    pull_request = None
    path = content
    if "@" in content:
        path, _, reference = content.partition("@")
    elif "#" in content:
        path, _, pull_request = content.partition("#")

    name, directory = _name_and_directory(path)
    remote = GitRemote(
        url=f"{base_url}{path}",
        reference=reference,
        pull_request=pull_request,
        directory=directory,
    )
    return name, remote


def _strip_git_suffix(name: str) -> str:
    while name.endswith(".git"):
        name = name[: -len(".git")]
    return name


def parse_remote(content: str) -> tuple[str | None, PackageRemote]:
    """Parse one remote entry into an optional package name and the remote."""
    explicit_name = ""
    name_part, sep, rest = content.partition("=")
    if sep:
        explicit_name, content = name_part, rest

    kind_part, sep, rest = content.partition("::")
    if sep:
        try:
            remote_type = _RemoteType(kind_part)
        except ValueError:
            raise ValueError(f"Unknown remote type: {kind_part}") from None
        content = rest
    else:
        remote_type = _RemoteType.GITHUB

    remote: PackageRemote
    if remote_type in _HOSTED_BASE_URLS:
        name, remote = _parse_github_like_url(_HOSTED_BASE_URLS[remote_type], content)
    elif remote_type is _RemoteType.GIT:
        if "git@" in content:
            host, _, path = content.partition(":")
            name, remote = _parse_github_like_url(f"{host}:", path)
            name = _strip_git_suffix(name)
        else:
            name, remote = _parse_github_like_url("", content)
    elif remote_type is _RemoteType.SVN:
        name, remote = "", OtherRemote(content)
    elif remote_type is _RemoteType.URL:
        name, remote = "", UrlRemote(content)
    elif remote_type is _RemoteType.BIOC:
        name, remote = "", BiocRemote(content)
    else:
        name, remote = "", LocalRemote(content)

    if explicit_name:
        return explicit_name, remote
    return (name or None), remote