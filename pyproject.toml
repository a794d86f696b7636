[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "jlog"
version = "0.1.0"
description = "Lightweight structured logging that writes one JSON object per line."
requires-python = ">=3.10"
dependencies = []
keywords = ["logging", "json", "structured-logging", "syslog", "sampling"]
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
    "Topic :: System :: Logging",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["jlog"]

[tool.pytest.ini_options]
addopts = "-ra"
