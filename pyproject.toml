[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "avoidance"
version = "0.1.0"
description = "Building blocks for obstacle avoidance planners: polar histograms, field-of-view geometry, frame conversions, transform buffering, companion-process status handling and world file loading."
requires-python = ">=3.10"
dependencies = [
    "numpy",
    "pyyaml",
]
keywords = ["obstacle avoidance", "drone", "uav", "histogram", "planning", "robotics"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["avoidance"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
ignore_missing_imports = true
