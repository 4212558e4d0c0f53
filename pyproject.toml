[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "netfiber"
version = "0.1.0"
description = "Socket wrapper, byte streams, URI parsing, byte-order and utility helpers for network programs"
requires-python = ">=3.10"
dependencies = []
keywords = ["socket", "tcp", "udp", "unix-socket", "stream", "uri", "url-encoding", "byteswap"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Application Frameworks",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["netfiber"]

[tool.pytest.ini_options]
addopts = "-ra"
