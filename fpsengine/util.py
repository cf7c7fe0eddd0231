"""Paths to assets and shaders, file name handling and vector serialization."""

from __future__ import annotations

import os
from typing import Any, Iterable, Mapping

import numpy as np

SRC_DIR = os.environ.get("FPSENGINE_SRC_DIR", ".")
ASSETS_DIR = f"{SRC_DIR}/assets"
SHADERS_DIR = f"{SRC_DIR}/shaders"


def shader_path(name: str) -> str:
    """Path of a shader file in the shaders directory."""
    return f"{SHADERS_DIR}/{name}"


def asset_path(name: str) -> str:
    """Path of a file in the assets directory."""
    return f"{ASSETS_DIR}/{name}"


def extract_filename(filepath: str) -> str:
    """File name without directories and without its last extension."""
    tail = filepath[filepath.rfind("/") + 1:]
    dot = tail.rfind(".")
    return tail if dot == -1 else tail[:dot]


def serialize_vec3(v: Iterable[float]) -> dict[str, float]:
    x, y, z = (float(c) for c in v)
    return {"x": x, "y": y, "z": z}


def deserialize_vec3(data: Mapping[str, Any]) -> np.ndarray:
    return np.array([data["x"], data["y"], data["z"]], dtype=float)