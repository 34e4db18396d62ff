[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ramsi"
version = "0.1.0"
description = "Analysis of biomembrane simulations: bilayer thickness, curvature and area per lipid"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = ["molecular dynamics", "membrane", "bilayer", "gromacs", "xtc", "coarse-grained"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Chemistry",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
xtc-length = "ramsi.xtc_length:main"

[tool.hatch.build.targets.wheel]
packages = ["ramsi"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
