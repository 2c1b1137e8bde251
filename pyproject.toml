[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "netwatch"
version = "0.2.0"
description = "Network monitoring toolkit: device counters interface, socket listings, nload-compatible configuration and connectivity diagnostics"
requires-python = ">=3.11"
dependencies = [
    "tomli-w",
]
keywords = ["network", "monitoring", "bandwidth", "traffic", "connections", "sockets", "diagnostics"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Operating System :: MacOS",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking :: Monitoring",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["netwatch"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
