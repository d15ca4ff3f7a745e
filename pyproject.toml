[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "booklend"
version = "0.1.0"
description = "A small book lending service: a server that handles loans, returns and renewals over named pipes, and a client that sends requests to it."
requires-python = ">=3.10"
dependencies = []
keywords = ["library", "lending", "books", "fifo", "named-pipe", "producer-consumer"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Natural Language :: Spanish",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
booklend-server = "booklend.server:main"
booklend-client = "booklend.client:main"

[tool.hatch.build.targets.wheel]
packages = ["booklend"]

[tool.pytest.ini_options]
addopts = "-ra"
