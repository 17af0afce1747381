"""Reading of DESCRIPTION files of single R packages."""

from __future__ import annotations

import os
from pathlib import Path

from rvtool.package import Package
from rvtool.parser import parse_package_file
from rvtool.version import Version

DESCRIPTION_FILENAME = "DESCRIPTION"


def parse_description_file(content: str) -> Package | None:
    """Parse the content of a DESCRIPTION file, or return None if it names no package."""
    packages = parse_package_file(content + "\n")
    for entries in packages.values():
        return entries[0]
    return None


def parse_description_file_in_folder(folder: str | os.PathLike[str]) -> Package:
    """Parse the DESCRIPTION file inside ``folder``.

    Raises ``OSError`` if it cannot be read and ``ValueError`` if it is invalid.
    """
    description_path = Path(folder) / DESCRIPTION_FILENAME
    try:
        content = description_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise OSError(f"Could not read destination file at {description_path} {exc}") from exc
    package = parse_description_file(content)
    if package is None:
        raise ValueError(f"Invalid DESCRIPTION file at {description_path}")
    return package


def parse_version(file_path: str | os.PathLike[str]) -> Version:
    """Read only the ``Version:`` field of a DESCRIPTION file."""
    with open(file_path, encoding="utf-8", errors="replace") as handle:
        for line in handle:
            if line.startswith("Version:"):
                return Version.parse(line[len("Version:"):].strip())
    raise ValueError("Version not found.")