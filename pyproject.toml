[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "magistrate"
version = "0.1.0"
description = "Serialization of Python objects to compact byte buffers, with sizing, footprinting and polymorphic dispatch"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "serialization",
    "checkpoint",
    "binary",
    "packing",
    "footprint",
    "polymorphism",
]
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
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Topic :: System :: Archiving",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
magistrate-examples = "magistrate.examples:main"

[tool.hatch.build.targets.wheel]
packages = ["magistrate"]

[tool.hatch.build.targets.sdist]
include = ["magistrate", "tests", "README.md", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
