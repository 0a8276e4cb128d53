[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "xiaozhi-util"
version = "0.1.0"
description = "Thread-safe byte buffer, AES-CTR helpers, a generic resource pool and caller-aware logging."
requires-python = ">=3.10"
keywords = ["resource-pool", "aes-ctr", "logging", "buffer", "thread-safe"]
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
    "Topic :: Software Development :: Libraries",
]
dependencies = [
    "cryptography",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["xiaozhi_util"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
