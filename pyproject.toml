[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "polonius"
version = "0.13.0"
description = "Datalog-style borrow checking analysis over control-flow facts"
requires-python = ">=3.10"
keywords = ["compiler", "borrowck", "datalog", "static-analysis"]
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
    "Topic :: Software Development :: Compilers",
]
dependencies = []

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["polonius"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
