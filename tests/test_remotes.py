import pytest

from rvtool.remotes import (
    BiocRemote,
    GitRemote,
    LocalRemote,
    OtherRemote,
    UrlRemote,
    parse_remote,
)


@pytest.mark.parametrize(
    "text, expected_name, expected_remote",
    [
        ("r-lib/testthat", "testthat", GitRemote("https://github.com/r-lib/testthat")),
        (
            "r-lib/httr@v0.4",
            "httr",
            GitRemote("https://github.com/r-lib/httr", reference="v0.4"),
        ),
        (
            "r-lib/testthat@c67018fa4970",
            "testthat",
            GitRemote("https://github.com/r-lib/testthat", reference="c67018fa4970"),
        ),
        (
            "klutometis/roxygen#142",
            "roxygen",
            GitRemote("https://github.com/klutometis/roxygen", pull_request="142"),
        ),
        (
            "github::tidyverse/ggplot2",
            "ggplot2",
            GitRemote("https://github.com/tidyverse/ggplot2"),
        ),
        (
            "gitlab::jimhester/covr",
            "covr",
            GitRemote("https://gitlab.com/jimhester/covr"),
        ),
        (
            "git::git@example.com:djnavarro/lsr.git",
            "lsr",
            GitRemote("git@example.com:djnavarro/lsr.git"),
        ),
        (
            "git::git@example.com:username/repo.git@a1b2c3d4",
            "repo",
            GitRemote("git@example.com:username/repo.git", reference="a1b2c3d4"),
        ),
        (
            "git::https://github.com/igraph/rigraph.git@main",
            None,
            GitRemote("https://github.com/igraph/rigraph.git", reference="main"),
        ),
        (
            "bitbucket::sulab/mygene.r@default",
            "mygene.r",
            GitRemote("https://bitbucket.org/sulab/mygene.r", reference="default"),
        ),
        (
            "bioc::3.3/SummarizedExperiment#117513",
            None,
            BiocRemote("3.3/SummarizedExperiment#117513"),
        ),
        (
            "svn::https://github.com/tidyverse/stringr",
            None,
            OtherRemote("https://github.com/tidyverse/stringr"),
        ),
        (
            "url::https://github.com/tidyverse/stringr/archive/HEAD.zip",
            None,
            UrlRemote("https://github.com/tidyverse/stringr/archive/HEAD.zip"),
        ),
        ("local::/pkgs/testthat", None, LocalRemote("/pkgs/testthat")),
        (
            "clindata=Gilead-BioStats/clindata",
            "clindata",
            GitRemote("https://github.com/Gilead-BioStats/clindata"),
        ),
        (
            "yaml=vubiostat/r-yaml",
            "yaml",
            GitRemote("https://github.com/vubiostat/r-yaml"),
        ),
        (
            "insightsengineering/teal.data",
            "teal.data",
            GitRemote("https://github.com/insightsengineering/teal.data"),
        ),
        (
            "dmlc/xgboost/R-package",
            "xgboost",
            GitRemote("https://github.com/dmlc/xgboost/R-package", directory="R-package"),
        ),
    ],
)
def test_can_parse_remotes(text, expected_name, expected_remote):
    name, remote = parse_remote(text)
    assert name == expected_name
    assert remote == expected_remote


def test_explicit_name_with_reference():
    name, remote = parse_remote("gsm=gilead-biostats/gsm@v2.2.2")
    assert name == "gsm"
    assert remote.url == "https://github.com/gilead-biostats/gsm"
    assert remote.reference == "v2.2.2"


def test_unknown_remote_type_raises():
    with pytest.raises(ValueError, match="Unknown remote type"):
        parse_remote("cran::something")