# rvtool

`rvtool` is a library of the core pieces needed to manage R package libraries
from Python. It reads R package metadata and looks packages up in repository
indexes. It builds download URLs, runs `R CMD INSTALL`, and matches the packages
of an `renv.lock` file to their sources. It has no dependencies outside the
standard library.

## Installation

```
pip install rvtool
```

To run the test suite:

```
pip install "rvtool[test]"
pytest
```

## Modules

- `rvtool.version`
  - `Version` parses R-style versions such as `1.7-7-1` or `2023.8.2.1`.
    Versions compare on their numeric parts, so `1.0 == 1.0.0`.
  - `Version.major_minor()` returns the first two parts.
  - `Version.hazy_match()` compares only as many parts as the version spells out,
    so `4.4` matches `4.4.1`.
  - `Operator` and `VersionRequirement` handle requirements written as
    `(>= 1.0.2)`. `VersionRequirement.is_satisfied()` checks a version against one.
- `rvtool.remotes`
  - `parse_remote` reads one `Remotes:` entry, such as `r-lib/httr@v0.4`,
    `gitlab::jimhester/covr`, `yaml=vubiostat/r-yaml` or `url::https://...`.
  - It returns an optional package name and one of `GitRemote`, `UrlRemote`,
    `BiocRemote`, `LocalRemote` or `OtherRemote`.
  - An unknown remote type raises `ValueError`.
- `rvtool.package`
  - `Package` is one package entry. `Dependency` is a package name with an optional
    `VersionRequirement`. `PackageType` is `SOURCE` or `BINARY`.
  - `Package.dependencies_to_install()` returns an `InstallationDependencies`. Its
    `direct` list holds the Depends, Imports and LinkingTo entries; its `suggests`
    list holds the suggestions. Base R packages are left out of both.
  - `is_binary_package(path, name)` tells whether a folder holds `<name>.rdx`.
- `rvtool.parser`
  - `parse_dependencies` reads a dependency field.
  - `parse_package_file` reads a `PACKAGES` file into lists of `Package` keyed by
    name, in file order.
- `rvtool.description`
  - `parse_description_file` and `parse_description_file_in_folder` read a
    `DESCRIPTION` file.
  - `parse_version` reads only its `Version:` field.
- `rvtool.repository`
  - `RepositoryDatabase` holds the source packages of a repository and binary
    packages per `(major, minor)` R version.
  - It is filled from `PACKAGES` files with `parse_source` and `parse_binary`, or
    from an R-Universe API listing with `parse_runiverse_api`.
  - `find_package` prefers a binary unless `force_source` is set. When several
    entries match, it picks the one with the highest R requirement that the R
    version meets.
  - `persist` and `load` save the database to disk and read it back. `load`
    raises `RepositoryDatabaseError` when the file cannot be read.
- `rvtool.builtin`
  - `BuiltinPackages` holds the base and recommended packages, keyed by name.
  - `get_builtin_versions_from_library(r_cmd)` collects them from the library
    folder of an R installation.
- `rvtool.r_cmd`
  - `RCommandLine` runs R to get its version (`version()`) or its library folder
    (`get_r_library()`).
  - `RCommandLine.install()` installs a source folder with `R CMD INSTALL` and
    returns R's combined output.
  - `find_r_version_command` looks for a matching R. It checks the `PATH` first,
    then rig-style executables, then `/opt/R/*/bin/R`.
  - `kill_all_r_processes` terminates installs that are still running.
  - Failures raise `InstallError`, `VersionError` or `LibraryError`.
  - `find_r_version` pulls an `X.Y.Z` version out of `R --version` output.
- `rvtool.repository_urls`
  - `SystemInfo` describes the OS (`OsKind`), the Linux distribution, the
    architecture, the codename and the version.
  - `get_source_path`, `get_binary_path` and `get_archive_tarball_path` build
    CRAN-style URLs.
  - `get_tarball_urls` returns a `TarballUrls` with the source, binary and archive
    URLs of a package.
  - `get_package_file_urls` returns the source and binary URLs of a repository's
    `PACKAGES` file.
  - Linux binary URLs follow the `__linux__/<distro>/...?r_version=X.Y&arch=...`
    layout.
- `rvtool.renv`
  - `RenvLock.parse_renv_lock` reads an `renv.lock` file. It raises
    `FromJsonFileError` when the file cannot be read or parsed.
  - `RenvLock.resolve` matches each package to a repository, a git remote or a
    local path. It returns sorted lists of `ResolvedRenv` and `UnresolvedRenv`.
  - `RenvLock.config_repositories` lists the lock file's repositories as
    `RenvRepository` objects.

## Examples

```python
from rvtool.version import Version, VersionRequirement
from rvtool.remotes import parse_remote
from rvtool.repository import RepositoryDatabase

req = VersionRequirement.parse("(>= 1.0.2)")
assert req.is_satisfied(Version.parse("1.1"))

name, remote = parse_remote("r-lib/httr@v0.4")
# name == "httr", remote.url == "https://github.com/r-lib/httr", remote.reference == "v0.4"

db = RepositoryDatabase("https://cran.example.com")
with open("PACKAGES") as handle:
    db.parse_source(handle.read())
found = db.find_package("cluster", None, Version.parse("4.4.1"), False)
if found:
    package, kind = found
    print(package.name, package.version, kind)
```

```python
from rvtool.repository_urls import OsKind, SystemInfo, get_tarball_urls

sysinfo = SystemInfo(OsKind.WINDOWS, arch="x86_64")
urls = get_tarball_urls("https://cran.example.com", "cli", "3.6.3", None, (4, 4), sysinfo)
# urls.source  == "https://cran.example.com/src/contrib/cli_3.6.3.tar.gz"
# urls.binary  == "https://cran.example.com/bin/windows/contrib/4.4/cli_3.6.3.zip"
# urls.archive == "https://cran.example.com/src/contrib/Archive/cli/cli_3.6.3.tar.gz"
```

## What it does not do

`rvtool` is a library of building blocks. It is not a complete package manager:

- It has no command-line program.
- It does not resolve a whole project's dependency tree.
- It does not download anything.
- It does not keep a package cache.
- It does not write project configuration or lock files.
- It does not sync a library with a project.

It builds the URLs and finds packages in indexes you give it. It installs a
single package folder when asked. Fetching the files and deciding what to
install are left to the caller.