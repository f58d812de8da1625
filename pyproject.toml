[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "neocd"
version = "0.1.0"
description = "Neo Geo CD emulation components: memory map, DMA, register handlers, timers, video and WAV tracks"
requires-python = ">=3.10"
dependencies = []
keywords = ["emulator", "neo geo", "neo geo cd", "68000", "dma", "timers"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["neocd"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
