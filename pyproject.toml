[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sushell"
version = "0.1.0"
description = "Core state, builtins, job control and arithmetic evaluation for a bash-compatible shell"
requires-python = ">=3.10"
dependencies = []
keywords = ["shell", "bash", "builtins", "arithmetic", "job-control"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Shells",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["sushell"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
