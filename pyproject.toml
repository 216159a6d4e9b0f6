[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "triagebot"
version = "0.1.0"
description = "Issue and pull request triage automation: reviewer assignment, labelling, pings, mentions, merge-commit warnings and summary notes"
requires-python = ">=3.10"
dependencies = []
keywords = ["triage", "github", "bot", "issues", "pull-requests", "labels", "review"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: AsyncIO",
    "Topic :: Software Development :: Bug Tracking",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["triagebot"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
