[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mutagate"
version = "0.1.0"
description = "Path-based mutation of Kubernetes-style objects with schema conflict checking and match rules"
requires-python = ">=3.10"
dependencies = []
keywords = ["kubernetes", "mutation", "admission", "policy", "path", "schema"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["mutagate"]

[tool.hatch.build.targets.sdist]
include = ["mutagate", "tests"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
