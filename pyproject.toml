[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "todoserve"
version = "0.1.0"
description = "A small JSON HTTP service for per-user todo lists with session-based login, stored in SQLite"
requires-python = ">=3.10"
keywords = ["todo", "http", "json", "rest", "flask", "sqlite", "sessions"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Web Environment",
    "Framework :: Flask",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
]
dependencies = [
    "flask",
    "bcrypt",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
todoserve = "todoserve.server:main"

[tool.hatch.build.targets.wheel]
packages = ["todoserve"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
