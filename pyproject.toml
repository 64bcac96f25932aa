[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "roster"
version = "0.1.0"
description = "An in-memory key-value server that speaks the Redis protocol (RESP)."
requires-python = ">=3.11"
keywords = ["redis", "resp", "resp3", "key-value", "server", "in-memory", "database"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: No Input/Output (Daemon)",
    "Framework :: AsyncIO",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database :: Database Engines/Servers",
]
dependencies = [
    "python-dotenv",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
roster = "roster.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["roster"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py311"
