"""Window, projection and the set of shader programs the game draws with."""

from __future__ import annotations

import enum
import math
from typing import Any, Callable, Sequence

import numpy as np

from .shader import Shader
from .util import shader_path

NEAR_PLANE = 0.1
FAR_PLANE = 400.0


class ShaderID(enum.Enum):
    BASIC = "basic"
    MODEL = "model"
    COLOR = "color"


_SHADER_FILES = {
    ShaderID.BASIC: ("basic.vert", "model.frag"),
    ShaderID.MODEL: ("model.vert", "model.frag"),
    ShaderID.COLOR: ("color.vert", "color.frag"),
}


def perspective(
    fovy: float, aspect: float, near: float = NEAR_PLANE, far: float = FAR_PLANE
) -> np.ndarray:
    """Right-handed perspective projection to clip space with z in [-1, 1]."""
    if aspect == 0:
        raise ValueError("aspect ratio must not be zero")
    if near == far:
        raise ValueError("near and far planes must differ")
    tan_half = math.tan(fovy / 2.0)
    if tan_half == 0:
        raise ValueError("field of view must not be zero")
    m = np.zeros((4, 4))
    m[0, 0] = 1.0 / (aspect * tan_half)
    m[1, 1] = 1.0 / tan_half
    m[2, 2] = -(far + near) / (far - near)
    m[2, 3] = -(2.0 * far * near) / (far - near)
    m[3, 2] = -1.0
    return m


def orthographic(
    left: float,
    right: float,
    bottom: float,
    top: float,
    near: float = NEAR_PLANE,
    far: float = FAR_PLANE,
) -> np.ndarray:
    """Right-handed orthographic projection to clip space with z in [-1, 1]."""
    if left == right or bottom == top or near == far:
        raise ValueError("orthographic volume must have non-zero extent")
    m = np.eye(4)
    m[0, 0] = 2.0 / (right - left)
    m[1, 1] = 2.0 / (top - bottom)
    m[2, 2] = -2.0 / (far - near)
    m[0, 3] = -(right + left) / (right - left)
    m[1, 3] = -(top + bottom) / (top - bottom)
    m[2, 3] = -(far + near) / (far - near)
    return m


ShaderFactory = Callable[[str, str], Any]


class Renderer:
    """Owns the window, the camera projection and the game's shaders."""

    def __init__(
        self,
        width: int = 1280,
        height: int = 720,
        fov: float = 45.0,
        shader_factory: ShaderFactory | None = None,
    ) -> None:
        self.window_size = (width, height)
        self.fov = fov
        self.window: Any = None
        self.shaders: dict[ShaderID, Any] = {}
        self.view = np.eye(4)
        self.projection = np.eye(4)
        self.active_shader: Any = None
        self._shader_factory = shader_factory or Shader

    def startup(self, window_name: str | None = None) -> None:
        """Open a window titled ``window_name`` (none when it is None) and build shaders."""
        if window_name is not None:
            self.window = self._open_window(window_name)
        self.shaders = {
            shader_id: self._shader_factory(shader_path(vert), shader_path(frag))
            for shader_id, (vert, frag) in _SHADER_FILES.items()
        }
        self.use_perspective()

    def _open_window(self, window_name: str) -> Any:
        try:
            import pyglet
            from pyglet import gl

            config = gl.Config(
                major_version=3,
                minor_version=2,
                forward_compatible=True,
                double_buffer=True,
                depth_size=24,
            )
            width, height = self.window_size
            window = pyglet.window.Window(
                width=width,
                height=height,
                caption=window_name,
                resizable=True,
                vsync=False,
                config=config,
            )
        except Exception as exc:
            raise RuntimeError("Failed to create window") from exc
        gl.glEnable(gl.GL_DEPTH_TEST)
        self.window_size = tuple(window.get_size())
        window.push_handlers(on_resize=self.on_resize)
        return window

    def shutdown(self) -> None:
        self.shaders.clear()
        self.active_shader = None
        if self.window is not None:
            self.window.close()
            self.window = None

    def on_resize(self, width: int, height: int) -> None:
        """Track the new window size and refit the perspective projection."""
        self.window_size = (width, height)
        if width > 0 and height > 0:
            self.use_perspective()

    @property
    def aspect(self) -> float:
        width, height = self.window_size
        return width / height

    def use_perspective(self) -> None:
        self.projection = perspective(math.radians(self.fov), self.aspect, NEAR_PLANE, FAR_PLANE)

    def use_orthogonal(self, params: Sequence[float]) -> None:
        """Orthographic projection from (left, right, bottom, top)."""
        left, right, bottom, top = (float(p) for p in params)
        self.projection = orthographic(left, right, bottom, top, NEAR_PLANE, FAR_PLANE)

    def set_fov(self, fov: float) -> None:
        self.fov = fov
        self.use_perspective()

    def reload_shaders(self) -> None:
        for shader in self.shaders.values():
            shader.reload()

    def shader(self, shader_id: ShaderID) -> Any:
        try:
            return self.shaders[shader_id]
        except KeyError:
            raise KeyError(f"shader {shader_id} is not loaded; call startup() first") from None


class ShaderHandle:
    """Binds one of the renderer's shaders for the duration of a ``with`` block."""

    def __init__(self, renderer: Renderer, shader_id: ShaderID) -> None:
        self._renderer = renderer
        self._shader = renderer.shader(shader_id)
        self._previous: Any = None

    @property
    def shader(self) -> Any:
        return self._shader

    def __enter__(self) -> Any:
        self._previous = self._renderer.active_shader
        self._shader.use()
        self._renderer.active_shader = self._shader
        return self._shader

    def __exit__(self, *args: object) -> None:
        self._renderer.active_shader = self._previous
        if self._previous is not None:
            self._previous.use()