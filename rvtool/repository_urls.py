"""URLs of package files and tarballs in CRAN-like repositories."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Iterable, Sequence
from urllib.parse import SplitResult, quote, urlencode, urlsplit, urlunsplit

PACKAGE_FILENAME = "PACKAGES"

_SEMANTIC_RE = re.compile(r"^\s*(\d+)(?:\.(\d+))?(?:\.(\d+))?\s*$")
# Characters left as they are in a single path segment; everything else is
# percent-encoded, including "/", "%" and "\".
_SEGMENT_SAFE = "!$&'()*+,;=:@[]^|"


class OsKind(enum.Enum):
    """The family of operating system packages are fetched for."""

    WINDOWS = "windows"
    MACOS = "macos"
    LINUX = "linux"
    OTHER = "other"


@dataclass(frozen=True)
class SystemInfo:
    """What is known about the system: OS, Linux distribution, arch, codename, version."""

    os_kind: OsKind
    distro: str | None = None
    arch: str | None = None
    codename: str | None = None
    version: str = ""

    @property
    def semantic_version(self) -> tuple[int, int, int] | None:
        """The OS version as (major, minor, patch), or None if it is not numeric."""
        match = _SEMANTIC_RE.match(self.version)
        if match is None:
            return None
        major, minor, patch = match.groups()
        return int(major), int(minor or 0), int(patch or 0)

    @property
    def tarball_extension(self) -> str:
        """File extension of binary package archives on this OS."""
        if self.os_kind is OsKind.WINDOWS:
            return "zip"
        if self.os_kind is OsKind.MACOS:
            return "tgz"
        return "tar.gz"


@dataclass(frozen=True)
class TarballUrls:
    """Where a package tarball can be found: source, binary (if any) and archive."""

    source: str
    binary: str | None
    archive: str


def _split(url: str) -> SplitResult | None:
    parts = urlsplit(url)
    path = parts.path
    if not path and parts.netloc:
        path = "/"
    if not parts.scheme or not path.startswith("/"):
        return None
    return parts._replace(path=path)


def _encode(segment: str) -> str:
    return quote(segment, safe=_SEGMENT_SAFE)


def _extend_path(path: str, segments: Iterable[str], encode: bool = True) -> str:
    for segment in segments:
        if segment in (".", ".."):
            continue
        if len(path) > 1 or path == "":
            path += "/"
        path += _encode(segment) if encode else segment
    return path


def _with_query_pairs(parts: SplitResult, pairs: list[tuple[str, str]]) -> SplitResult:
    extra = urlencode(pairs)
    query = f"{parts.query}&{extra}" if parts.query else extra
    return parts._replace(query=query)


def _join(parts: SplitResult) -> str:
    return urlunsplit(parts)


def get_distro_name(sysinfo: SystemInfo, distro: str) -> str | None:
    """The distribution name used in Posit Package Manager binary URLs."""
    version = sysinfo.semantic_version
    if distro in ("ubuntu", "debian"):
        # These are served under their codenames.
        return sysinfo.codename
    if version is None:
        return None
    major, minor, _ = version
    if distro == "centos":
        return f"centos{major}" if major >= 7 else None
    if distro == "rocky":
        # Rocky Linux is served as rhel, starting at 9.
        return f"rhel{major}" if major >= 9 else None
    if distro in ("opensuse", "suse"):
        if major >= 15 and minor >= 5:
            return f"opensuse{major}{minor}"
        return None
    if distro == "redhat":
        # RHEL 7 and 8 are served as centos; from 9 on as rhel.
        if major >= 9:
            return f"rhel{major}"
        if major >= 7:
            return f"centos{major}"
        return None
    return None


def get_source_path(url: str, file_path: Sequence[str]) -> str:
    """The URL of ``file_path`` under ``src/contrib`` of the repository."""
    parts = _split(url)
    if parts is None:
        raise ValueError(f"Not a valid absolute url: {url}")
    path = _extend_path(parts.path, ["src", "contrib", *file_path])
    return _join(parts._replace(path=path))


def get_archive_tarball_path(url: str, name: str, version: str) -> str:
    """The URL of an archived source tarball: ``src/contrib/Archive/<name>/<name>_<version>.tar.gz``."""
    return get_source_path(url, ["Archive", name, f"{name}_{version}.tar.gz"])


def _windows_url(parts: SplitResult, file_path: Sequence[str], r_version: tuple[int, int]) -> str:
    major, minor = r_version
    path = _extend_path(
        parts.path, ["bin", "windows", "contrib", f"{major}.{minor}", *file_path]
    )
    return _join(parts._replace(path=path))


def _mac_url(
    parts: SplitResult,
    file_path: Sequence[str],
    r_version: tuple[int, int],
    sysinfo: SystemInfo,
) -> str | None:
    arch = sysinfo.arch
    if arch is None:
        return None
    segments = ["bin", "macosx"]
    # x86_64 binaries for R <= 4.2 live without the arch folder.
    if not (arch == "x86_64" and r_version <= (4, 2)):
        segments.append(f"big-sur-{arch}")
    major, minor = r_version
    segments.extend(["contrib", f"{major}.{minor}", *file_path])
    return _join(parts._replace(path=_extend_path(parts.path, segments)))


def _linux_url(
    parts: SplitResult,
    file_path: Sequence[str],
    r_version: tuple[int, int],
    sysinfo: SystemInfo,
    distro: str,
) -> str | None:
    major, minor = r_version
    pairs = [("r_version", f"{major}.{minor}")]
    if sysinfo.arch is not None:
        pairs.append(("arch", sysinfo.arch))

    existing = parts.path[1:].split("/")
    if "__linux__" in existing:
        path = _extend_path(parts.path, ["src", "contrib", *file_path])
        return _join(_with_query_pairs(parts._replace(path=path), pairs))

    distro_name = get_distro_name(sysinfo, distro)
    if distro_name is None:
        return None
    edition = existing.pop()
    path = _extend_path("/", existing, encode=False)
    path = _extend_path(path, ["__linux__", distro_name])
    path = _extend_path(path, [edition], encode=False)
    path = _extend_path(path, ["src", "contrib", *file_path])
    return _join(_with_query_pairs(parts._replace(path=path), pairs))


def get_binary_path(
    url: str,
    file_path: Sequence[str],
    r_version: tuple[int, int],
    sysinfo: SystemInfo,
) -> str | None:
    """The URL of the binary form of ``file_path``, or None where binaries are not served.

    ``file_path`` holds the file name, preceded by any extra path elements.
    Binaries are not supported for R older than 3.6.
    """
    r_version = (r_version[0], r_version[1])
    if r_version < (3, 6):
        return None
    parts = _split(url)
    if parts is None:
        return None
    if sysinfo.os_kind is OsKind.WINDOWS:
        return _windows_url(parts, file_path, r_version)
    if sysinfo.os_kind is OsKind.MACOS:
        return _mac_url(parts, file_path, r_version, sysinfo)
    if sysinfo.os_kind is OsKind.LINUX and sysinfo.distro is not None:
        return _linux_url(parts, file_path, r_version, sysinfo, sysinfo.distro)
    return None


def get_tarball_urls(
    repository: str,
    name: str,
    version: str,
    path: str | None,
    r_version: tuple[int, int],
    sysinfo: SystemInfo,
) -> TarballUrls:
    """The source, binary and archive URLs of a package from a repository.

    ``path`` is the optional ``Path`` field of the PACKAGES entry.
    """
    prefix = path.split("/") if path is not None else []
    binary_name = f"{name}_{version}.{sysinfo.tarball_extension}"
    source_name = f"{name}_{version}.tar.gz"
    return TarballUrls(
        source=get_source_path(repository, [*prefix, source_name]),
        binary=get_binary_path(repository, [*prefix, binary_name], r_version, sysinfo),
        archive=get_archive_tarball_path(repository, name, version),
    )


def get_package_file_urls(
    url: str, r_version: tuple[int, int], sysinfo: SystemInfo
) -> tuple[str, str | None]:
    """The source and binary URLs of the repository's PACKAGES file."""
    return (
        get_source_path(url, [PACKAGE_FILENAME]),
        get_binary_path(url, [PACKAGE_FILENAME], r_version, sysinfo),
    )