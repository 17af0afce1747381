"""Parsing of PACKAGES files as served by CRAN-like repositories."""

from __future__ import annotations

import re

from rvtool.package import Dependency, Package
from rvtool.remotes import parse_remote
from rvtool.version import Version, VersionRequirement

_KEY_VALUE_RE = re.compile(r"^(?P<key>\w+):(?P<value>.*(?:\n\s+.*)*)", re.MULTILINE)
_ANY_SPACE_RE = re.compile(r"\s+")


def parse_dependencies(content: str) -> list[Dependency]:
    """Parse a comma separated dependency field such as ``a, b (>= 1.0)``."""
    deps = []
    for raw in content.split(","):
        # A trailing comma leaves an empty piece behind.
        if not raw:
            continue
        dep = raw.strip()
        name, paren, rest = dep.partition("(")
        if paren:
            requirement = VersionRequirement.parse((paren + rest).strip())
            deps.append(Dependency(name.strip(), requirement))
        else:
            deps.append(Dependency(dep))
    return deps


def _parse_entry(block: str) -> Package:
    package = Package()
    for match in _KEY_VALUE_RE.finditer(block):
        key = match["key"]
        value = _ANY_SPACE_RE.sub(" ", match["value"]).strip()
        match key:
            case "Package":
                package.name = value
            case "Version":
                package.version = Version.parse(value)
            case "Depends":
                for dep in parse_dependencies(value):
                    if dep.name == "R":
                        package.r_requirement = dep.requirement
                    else:
                        package.depends.append(dep)
            case "Imports":
                package.imports = parse_dependencies(value)
            case "LinkingTo":
                package.linking_to = parse_dependencies(value)
            case "Suggests":
                package.suggests = parse_dependencies(value)
            case "Enhances":
                package.enhances = parse_dependencies(value)
            case "License":
                package.license = value
            case "MD5sum":
                package.md5_sum = value
            case "NeedsCompilation":
                package.needs_compilation = value == "yes"
            case "Path":
                package.path = value
            case "Priority":
                if value == "recommended":
                    package.recommended = True
            case "Remotes":
                for original in value.split(","):
                    package.remotes[original] = parse_remote(original.strip())
            case _:
                pass
    return package


def parse_package_file(content: str) -> dict[str, list[Package]]:
    """Parse a PACKAGES file into packages grouped by name.

    A name may appear several times; entries are kept in file order.
    Invalid content raises ``ValueError``.
    """
    packages: dict[str, list[Package]] = {}
    for block in content.replace("\r\n", "\n").split("\n\n"):
        package = _parse_entry(block)
        if package.name:
            packages.setdefault(package.name, []).append(package)
    return packages