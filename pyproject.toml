[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "taskweave"
version = "0.1.0"
description = "Build task dependency graphs with subflows, conditions and priorities, and run them on a bounded worker pool."
requires-python = ">=3.10"
dependencies = []
keywords = ["taskflow", "dag", "workflow", "scheduler", "concurrency", "task graph"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["taskweave"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
