import pytest

from rvtool.package import Dependency
from rvtool.parser import parse_dependencies, parse_package_file
from rvtool.remotes import GitRemote
from rvtool.version import VersionRequirement


def test_can_parse_dependencies():
    res = parse_dependencies("stringr, testthat (>= 1.0.2), httr(>= 1.1.0), yaml")
    assert res == [
        Dependency("stringr"),
        Dependency("testthat", VersionRequirement.parse("(>= 1.0.2)")),
        Dependency("httr", VersionRequirement.parse("(>= 1.1.0)")),
        Dependency("yaml"),
    ]


def test_can_parse_dependencies_with_trailing_comma():
    res = parse_dependencies("R (>= 2.1.5),")
    assert res == [Dependency("R", VersionRequirement.parse("(>= 2.1.5)"))]


def test_invalid_requirement_raises():
    with pytest.raises(ValueError):
        parse_dependencies("pkg (~= 1.0)")


def test_works_on_weird_linebreaks():
    content = """
Package: admiraldev
Version: 1.2.0
Depends: R (>= 4.1)
Imports: cli (>= 3.0.0), dplyr (>= 1.0.5), glue (>=
     1.6.0), lifecycle (>= 0.1.0), lubridate (>=
     1.7.4), purrr (>= 0.3.3), rlang (>= 0.4.4),
     stringr (>= 1.4.0), tidyr (>= 1.0.2),
     tidyselect (>= 1.0.0)
Suggests: diffdf, DT, htmltools, knitr, methods,
     pkgdown, rmarkdown, spelling, testthat (>=
     3.2.0), withr
MD5sum: 4499ab1d94ad9e3f54d86dc12e704e3f
NeedsCompilation: no
    """
    packages = parse_package_file(content)
    assert len(packages) == 1
    package = packages["admiraldev"][0]
    assert len(package.imports) == 10
    assert package.imports[2] == Dependency("glue", VersionRequirement.parse("(>= 1.6.0)"))
    assert len(package.suggests) == 10
    assert str(package.r_requirement) == "(>= 4.1)"
    assert package.md5_sum == "4499ab1d94ad9e3f54d86dc12e704e3f"
    assert package.needs_compilation is False
    assert package.depends == []


def test_multiple_entries_keep_file_order():
    content = (
        "Package: cluster\nVersion: 2.1.7\nDepends: R (>= 3.4.0)\n\n"
        "Package: zyp\nVersion: 0.10-1.1\n\n"
        "Package: cluster\nVersion: 2.1.8\nDepends: R (>= 3.5.0)\n"
        "NeedsCompilation: yes\nPriority: recommended\n\n"
        "Package: zyp\nVersion: 0.11\n"
    )
    packages = parse_package_file(content)
    assert len(packages) == 2
    cluster = packages["cluster"]
    assert len(cluster) == 2
    assert str(cluster[0].version) == "2.1.7"
    assert str(cluster[1].version) == "2.1.8"
    assert str(cluster[1].r_requirement) == "(>= 3.5.0)"
    assert cluster[1].needs_compilation is True
    assert cluster[1].recommended is True
    assert cluster[0].recommended is False
    assert len(packages["zyp"]) == 2


def test_windows_line_endings():
    content = "Package: a\r\nVersion: 1.0\r\n\r\nPackage: b\r\nVersion: 2.0\r\n"
    packages = parse_package_file(content)
    assert sorted(packages) == ["a", "b"]


def test_path_and_depends_without_r():
    content = "Package: p\nVersion: 1.0\nDepends: R, methods, x (>= 2)\nPath: 4.1.0/Recommended\n"
    package = parse_package_file(content)["p"][0]
    assert package.r_requirement is None
    assert [d.name for d in package.depends] == ["methods", "x"]
    assert package.path == "4.1.0/Recommended"


def test_works_on_shinytest2_linking_to():
    content = (
        "Package: shinytest2\n"
        "Version: 0.3.2\n"
        "Imports: R6 (>= 2.4.0), callr, checkmate (>= 2.0.0), cli,\n"
        "    globals (>= 0.14.0), httr, jsonlite, pingr, rlang (>= 1.0.0)\n"
        "Suggests: deSolve, diffobj, ggplot2, knitr, plotly, rmarkdown\n"
        "LinkingTo: cpp11\n"
        "\n"
    )
    packages = parse_package_file(content)
    assert len(packages) == 1
    assert packages["shinytest2"][0].linking_to == [Dependency("cpp11")]


def test_remotes_are_parsed():
    content = "Package: p\nVersion: 1.0\nRemotes: gsm=gilead-biostats/gsm@v2.2.2\n"
    package = parse_package_file(content)["p"][0]
    name, remote = package.remotes["gsm=gilead-biostats/gsm@v2.2.2"]
    assert name == "gsm"
    assert remote == GitRemote(
        url="https://github.com/gilead-biostats/gsm", reference="v2.2.2"
    )


def test_empty_content():
    assert parse_package_file("") == {}