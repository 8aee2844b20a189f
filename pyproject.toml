[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ffconf"
version = "0.1.0"
description = "Flag sets with getopt-style parsing, plus environment variables and config files as lower-priority sources."
requires-python = ">=3.10"
dependencies = []
keywords = ["flags", "command-line", "configuration", "getopt", "environment", "config-file"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Libraries",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["ffconf"]

[tool.pytest.ini_options]
addopts = "-ra"
