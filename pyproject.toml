[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tftplibs"
version = "0.1.0"
description = "Support library for a TFTP/DHCP server suite: message queues, hex dumps, settings, TCP framing, ICMP ping and logging"
requires-python = ">=3.10"
dependencies = []
keywords = ["tftp", "tcp", "icmp", "ping", "md5", "hexdump", "logging", "settings"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: File Transfer Protocol (FTP)",
    "Topic :: System :: Networking",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["tftplibs"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
