"""Package versions and version requirements as found in R package metadata."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from functools import total_ordering

_NUM_PARTS = 10
_U32_MAX = 2**32 - 1
_PART_RE = re.compile(r"\+?[0-9]+")


class Operator(enum.Enum):
    """Comparison operator used in a version requirement."""

    EQUAL = "=="
    GREATER = ">"
    LOWER = "<"
    GREATER_OR_EQUAL = ">="
    LOWER_OR_EQUAL = "<="

    @classmethod
    def parse(cls, text: str) -> Operator:
        """Parse an operator such as ``>=``, ignoring surrounding whitespace."""
        try:
            return cls(text.strip())
        except ValueError:
            raise ValueError(f"Unknown version operator: {text!r}") from None

    def __str__(self) -> str:
        return self.value


def _parse_part(part: str, original: str) -> int:
    if not _PART_RE.fullmatch(part):
        raise ValueError(f"{original} cannot be parsed as a version")
    value = int(part)
    if value > _U32_MAX:
        raise ValueError(f"{original} cannot be parsed as a version")
    return value


@total_ordering
@dataclass(frozen=True, eq=False)
class Version:
    """A dotted/dashed numeric version; compares on its numeric parts only."""

    parts: tuple[int, ...] = (0,) * _NUM_PARTS
    original: str = ""

    @classmethod
    def parse(cls, text: str) -> Version:
        """Parse versions like ``1.0.0``, ``1.7-7-1`` or ``2023.8.2.1``."""
        numbers = [
            _parse_part(part, text)
            for part in text.strip().replace("-", ".").split(".")
        ]
        numbers = (numbers + [0] * _NUM_PARTS)[:_NUM_PARTS]
        return cls(parts=tuple(numbers), original=text)

    def major_minor(self) -> tuple[int, int]:
        """The first two components; meant for R versions."""
        return (self.parts[0], self.parts[1])

    def hazy_match(self, other: Version) -> bool:
        """Match ``other`` on as many components as this version spells out.

        ``4.4`` matches ``4.4.1`` but ``4.4.2`` does not.
        """
        count = len(self.original.replace("-", ".").split("."))
        return self.parts[:count] == other.parts[:count]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.parts == other.parts

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.parts < other.parts

    def __hash__(self) -> int:
        return hash(self.parts)

    def __str__(self) -> str:
        return self.original


@dataclass(frozen=True)
class VersionRequirement:
    """A constraint such as ``(>= 4.5)`` on a package version."""

    version: Version
    op: Operator

    @classmethod
    def parse(cls, text: str) -> VersionRequirement:
        """Parse a requirement written as ``(<op> <version>)``."""
        current = ""
        version: Version | None = None
        op: Operator | None = None

        for char in text.strip():
            if char == "(":
                continue
            if char == " ":
                # Line wrapping can leave several spaces after the operator.
                if op is None:
                    op = Operator.parse(current)
                    current = ""
                continue
            if char == ")":
                version = Version.parse(current)
                continue
            current += char

        if version is None or op is None:
            raise ValueError(f"Invalid version requirement: {text!r}")
        return cls(version=version, op=op)

    def is_satisfied(self, version: Version) -> bool:
        """Whether ``version`` meets this requirement."""
        if self.op is Operator.EQUAL:
            return version == self.version
        if self.op is Operator.GREATER:
            return version > self.version
        if self.op is Operator.LOWER:
            return version < self.version
        if self.op is Operator.GREATER_OR_EQUAL:
            return version >= self.version
        return version <= self.version

    def __str__(self) -> str:
        return f"({self.op} {self.version})"