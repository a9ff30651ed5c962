[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "strategix"
version = "0.1.0"
description = "Real-time strategy game engine: tile maps, A* path finding, entity features, an asyncio game server and a client-side game model"
requires-python = ">=3.10"
dependencies = []
keywords = ["rts", "strategy", "game", "engine", "pathfinding", "server", "tile map", "asyncio"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: AsyncIO",
    "Topic :: Games/Entertainment :: Real Time Strategy",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
strategix-server = "strategix.kernel:main"

[tool.hatch.build.targets.wheel]
packages = ["strategix"]

[tool.hatch.build.targets.sdist]
include = ["strategix", "tests", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
