[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "tally"
version = "1.0.3"
description = "Count the crates depending on a crate over time from a crates.io database dump"
requires-python = ">=3.10"
dependencies = []
keywords = ["crates.io", "dependencies", "statistics", "semver"]
classifiers = [
    "Development Status :: 5 - Production/Stable",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.setuptools.packages.find]
include = ["tally*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
