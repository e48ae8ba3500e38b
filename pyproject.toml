[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pagemem"
version = "0.1.0"
description = "Main-memory server for a teaching operating system: multi-level page tables, frame bitmap, swap area and memory dumps over a small TCP protocol"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "paging",
    "page-table",
    "virtual-memory",
    "swap",
    "operating-systems",
    "simulation",
    "tcp",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
pagemem = "pagemem.server:main"

[tool.hatch.build.targets.wheel]
packages = ["pagemem"]

[tool.hatch.build.targets.sdist]
include = ["pagemem", "tests", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
