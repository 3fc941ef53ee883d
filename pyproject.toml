[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "wgtool"
version = "1.0.20210914"
description = "Keys, configuration parsing and status rendering for WireGuard-style tunnel interfaces"
requires-python = ">=3.10"
dependencies = []
keywords = ["wireguard", "vpn", "curve25519", "x25519", "networking", "configuration"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
    "Topic :: Security :: Cryptography",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
wgtool = "wgtool.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["wgtool"]

[tool.pytest.ini_options]
addopts = "-ra"
