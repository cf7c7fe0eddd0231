[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fpsengine"
version = "0.1.0"
description = "A small first-person shooter engine: transforms, scene graph, shaders, player controls and a UDP game server"
requires-python = ">=3.10"
keywords = ["game", "engine", "fps", "opengl", "scene-graph", "transform", "quaternion", "udp"]
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
    "Topic :: Games/Entertainment :: First Person Shooters",
    "Topic :: Multimedia :: Graphics :: 3D Rendering",
]
dependencies = [
    "numpy",
    "pillow",
    "pyglet",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
fpsengine = "fpsengine.game:main"
fpsengine-server = "fpsengine.server:main"

[tool.hatch.build.targets.wheel]
packages = ["fpsengine"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
ignore_missing_imports = true
