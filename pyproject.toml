[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "peershare"
version = "0.1.0"
description = "A group-based peer-to-peer file sharing tracker and client"
requires-python = ">=3.10"
keywords = ["p2p", "file-sharing", "tracker", "peer-to-peer", "sha1"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: File Sharing",
]
dependencies = []

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
peershare-tracker = "peershare.tracker:main"
peershare-client = "peershare.client:main"

[tool.hatch.build.targets.wheel]
packages = ["peershare"]

[tool.pytest.ini_options]
addopts = "-ra"
