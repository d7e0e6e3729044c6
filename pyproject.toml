[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "meshsync"
version = "0.1.0"
description = "Ghost-item synchronization of mesh variables by message passing, with Cartesian grid numbering."
requires-python = ">=3.10"
dependencies = []
keywords = ["mesh", "synchronization", "ghost cells", "message passing", "cartesian grid", "halo exchange"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: System :: Distributed Computing",
    "Topic :: Scientific/Engineering",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["meshsync"]

[tool.pytest.ini_options]
addopts = "-ra"
