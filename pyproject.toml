[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "slotrace"
version = "0.1.0"
description = "Race a Geyser gRPC transaction feed against a shredstream proxy and report which one sees each slot first"
requires-python = ">=3.10"
keywords = ["benchmark", "latency", "grpc", "geyser", "shredstream", "slot", "solana"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Framework :: AsyncIO",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Benchmark",
]
dependencies = [
    "grpcio",
    "python-dotenv",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
slotrace = "slotrace.cli:main"
slotrace-grpc = "slotrace.cli:grpc_main"
slotrace-shred = "slotrace.cli:shred_main"

[tool.hatch.build.targets.wheel]
packages = ["slotrace"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
