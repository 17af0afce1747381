"""Packages that ship with an R installation."""

from __future__ import annotations

import logging
import os
import pickle
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from rvtool.description import parse_description_file_in_folder
from rvtool.package import BASE_PACKAGES, Package
from rvtool.repository import RECOMMENDED_PACKAGES

logger = logging.getLogger(__name__)


@dataclass
class BuiltinPackages:
    """Base and recommended packages found in an R library, by name."""

    packages: dict[str, Package] = field(default_factory=dict)

    @classmethod
    def load(cls, path: str | os.PathLike[str]) -> BuiltinPackages | None:
        """Read a saved set; return None if it cannot be read."""
        try:
            with open(path, "rb") as handle:
                data = pickle.load(handle)
        except Exception:
            return None
        return data if isinstance(data, cls) else None

    def persist(self, path: str | os.PathLike[str]) -> None:
        """Write the set to ``path``, creating parent folders."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "wb") as handle:
            pickle.dump(self, handle)


def get_builtin_versions_from_library(r_cmd: Any) -> BuiltinPackages:
    """Collect the base and recommended packages from the library of ``r_cmd``.

    If the library cannot be found, the result is empty.
    """
    try:
        library = r_cmd.get_r_library()
    except Exception as exc:
        logger.error("Failed to find library: %s", exc)
        return BuiltinPackages()

    builtins = BuiltinPackages()
    for entry in Path(library).iterdir():
        try:
            package = parse_description_file_in_folder(entry)
        except (OSError, ValueError) as exc:
            logger.error("Error parsing description file in %s: %s", entry, exc)
            continue
        if package.name in BASE_PACKAGES or package.name in RECOMMENDED_PACKAGES:
            builtins.packages[package.name] = package
    return builtins