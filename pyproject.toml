[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "p1split"
version = "1.0.0"
description = "Read, check and parse DSMR P1 smart meter telegrams and copy them to several outputs"
requires-python = ">=3.10"
dependencies = []
keywords = ["dsmr", "p1", "smart meter", "obis", "telegram", "energy", "crc16", "splitter"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Home Automation",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
p1split = "p1split.splitter:main"

[tool.hatch.build.targets.wheel]
packages = ["p1split"]

[tool.hatch.build.targets.sdist]
include = ["p1split", "tests", "README.md", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
