"""Textures: decode image files, then upload them to the GPU."""

from __future__ import annotations

import enum
import logging
import os
from typing import Any, ClassVar, Protocol

import numpy as np
from PIL import Image

log = logging.getLogger(__name__)


class TextureFormat(enum.IntEnum):
    """Pixel formats, valued as the matching GL enumerants."""

    RED = 0x1903
    RGB = 0x1907
    RGBA = 0x1908


def texture_format(components: int) -> TextureFormat:
    """Format for a number of colour components; RGB when unknown."""
    return {
        1: TextureFormat.RED,
        3: TextureFormat.RGB,
        4: TextureFormat.RGBA,
    }.get(components, TextureFormat.RGB)


class TextureUploader(Protocol):
    def upload_texture(
        self, fmt: TextureFormat, width: int, height: int, pixels: bytes
    ) -> int: ...


class _PygletUploader:
    """Uploads pixels through pyglet's image module."""

    _FORMATS: ClassVar[dict[TextureFormat, str]] = {
        TextureFormat.RED: "R",
        TextureFormat.RGB: "RGB",
        TextureFormat.RGBA: "RGBA",
    }
    # The GPU object lives as long as its wrapper, so keep the wrappers.
    _live: ClassVar[dict[int, Any]] = {}

    def upload_texture(self, fmt: TextureFormat, width: int, height: int, pixels: bytes) -> int:
        from pyglet import gl, image

        pitch = len(pixels) // height if height else 0
        data = image.ImageData(width, height, self._FORMATS[fmt], pixels, pitch=pitch)
        texture = data.get_mipmapped_texture()
        gl.glBindTexture(gl.GL_TEXTURE_2D, texture.id)
        gl.glTexParameteri(gl.GL_TEXTURE_2D, gl.GL_TEXTURE_WRAP_S, gl.GL_REPEAT)
        gl.glTexParameteri(gl.GL_TEXTURE_2D, gl.GL_TEXTURE_WRAP_T, gl.GL_REPEAT)
        gl.glTexParameteri(gl.GL_TEXTURE_2D, gl.GL_TEXTURE_MIN_FILTER, gl.GL_LINEAR_MIPMAP_LINEAR)
        gl.glTexParameteri(gl.GL_TEXTURE_2D, gl.GL_TEXTURE_MAG_FILTER, gl.GL_LINEAR)
        self._live[int(texture.id)] = texture
        return int(texture.id)


_NATIVE_COMPONENTS = {"L": 1, "LA": 2, "RGB": 3, "RGBA": 4}


def _decode(path: str) -> np.ndarray | None:
    try:
        with Image.open(path) as img:
            if img.mode not in _NATIVE_COMPONENTS:
                has_alpha = "A" in img.getbands() or "transparency" in img.info
                img = img.convert("RGBA" if has_alpha else "RGB")
            pixels = np.asarray(img, dtype=np.uint8)
    except OSError:
        return None
    if pixels.ndim == 2:
        pixels = pixels[:, :, np.newaxis]
    return pixels


class Texture:
    """An image decoded in memory by ``prepare`` and sent to the GPU by ``load``."""

    def __init__(self, path: str = "", kind: str = "texture_diffuse") -> None:
        self.id = 0
        self.kind = kind
        self.path = str(path)
        self.width = 0
        self.height = 0
        self.components = 0
        self.data: np.ndarray | None = None

    def prepare(self, path: str | os.PathLike[str]) -> "Texture":
        """Decode the image at ``path``; on failure the texture stays unprepared."""
        self.path = os.fspath(path)
        self.data = _decode(self.path)
        if self.data is not None:
            self.height, self.width, self.components = self.data.shape
        return self

    def is_prepared(self) -> bool:
        return self.data is not None

    def load(self, gl: TextureUploader | None = None) -> "Texture":
        """Upload decoded pixels and release them from memory."""
        if self.data is None:
            log.warning("Texture %s not prepared or already load", self.path)
            return self
        uploader = gl if gl is not None else _PygletUploader()
        self.id = uploader.upload_texture(
            texture_format(self.components), self.width, self.height, self.data.tobytes()
        )
        self.data = None
        return self