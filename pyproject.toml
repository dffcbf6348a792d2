[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "svmfixture"
version = "0.7.0"
description = "Protobuf and JSON fuzz fixtures for single-instruction SVM program tests, with deterministic Keccak hashing."
requires-python = ">=3.10"
keywords = ["svm", "fuzzing", "fixtures", "protobuf", "keccak", "testing"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Testing",
]
dependencies = [
    "pycryptodome",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["svmfixture"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
