[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rvtool"
version = "0.8.0"
description = "Building blocks for managing R packages: versions, PACKAGES and DESCRIPTION files, repositories, remotes, R invocation and renv lockfiles"
requires-python = ">=3.10"
dependencies = []
keywords = ["R", "CRAN", "packages", "renv", "dependencies", "repository"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Software Distribution",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["rvtool"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
