[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "shardemu"
version = "0.1.0"
description = "Building blocks for emulating a sharded blockchain with live account migration: accounts, transactions, blocks, pools and partitioning algorithms."
requires-python = ">=3.10"
keywords = ["blockchain", "sharding", "account migration", "graph partitioning", "CLPA", "pagerank"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Distributed Computing",
]
dependencies = [
    "cryptography",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["shardemu"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
