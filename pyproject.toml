[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tetrapol"
version = "0.1.0"
description = "TETRAPOL radio frame decoder and encoder with a channel stream builder"
requires-python = ">=3.10"
dependencies = []
keywords = ["tetrapol", "radio", "pmr", "sdr", "decoder", "encoder", "frame"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Telecommunications Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications",
    "Topic :: Communications :: Ham Radio",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
tetrapol-build = "tetrapol.build:main"

[tool.hatch.build.targets.wheel]
packages = ["tetrapol"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
