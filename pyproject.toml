[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "geoblock"
version = "0.1.0"
description = "WSGI middleware that allows or blocks requests by client IP range and country"
requires-python = ">=3.10"
dependencies = []
keywords = ["wsgi", "middleware", "geoip", "geoblocking", "ip", "cidr", "firewall"]
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
    "Topic :: Internet :: WWW/HTTP :: WSGI :: Middleware",
    "Topic :: Security",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["geoblock"]

[tool.pytest.ini_options]
addopts = "-ra"
