[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "uplinkkit"
version = "0.1.0"
description = "Reed-Solomon erasure-coded streams, piece buffers, ETag readers, retry and listing helpers for distributed object storage clients"
requires-python = ">=3.10"
dependencies = []
keywords = ["erasure-coding", "reed-solomon", "object-storage", "streams", "retry"]
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
    "Topic :: System :: Archiving",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["uplinkkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
