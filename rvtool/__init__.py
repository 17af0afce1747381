"""Reading R package metadata and repository indexes, building repository URLs,
running R, and resolving renv lockfiles."""

__version__ = "0.8.0"

__all__ = [
    "builtin",
    "description",
    "package",
    "parser",
    "r_cmd",
    "remotes",
    "renv",
    "repository",
    "repository_urls",
    "version",
]