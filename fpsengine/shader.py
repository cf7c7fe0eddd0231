"""GLSL shader programs: source loading, compilation and cached uniform setters."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, Sequence

import numpy as np

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShaderSources:
    """The GLSL code of every stage of one program."""

    vertex: str
    fragment: str
    geometry: str | None = None


def read_shader_sources(
    vertex_path: str | os.PathLike[str],
    fragment_path: str | os.PathLike[str],
    geometry_path: str | os.PathLike[str] | None = None,
) -> ShaderSources:
    """Read the stage sources from disk; the geometry stage is optional."""
    geometry = None if geometry_path is None else Path(geometry_path).read_text()
    return ShaderSources(
        vertex=Path(vertex_path).read_text(),
        fragment=Path(fragment_path).read_text(),
        geometry=geometry,
    )


class ShaderBackend(Protocol):
    """The graphics calls a :class:`Shader` needs."""

    def compile_program(self, sources: ShaderSources) -> int: ...

    def delete_program(self, program: int) -> None: ...

    def use_program(self, program: int) -> None: ...

    def get_uniform_location(self, program: int, name: str) -> int: ...

    def uniform_int(self, location: int, value: int) -> None: ...

    def uniform_uint(self, location: int, value: int) -> None: ...

    def uniform_float(self, location: int, value: float) -> None: ...

    def uniform_floats(self, location: int, values: Sequence[float]) -> None: ...

    def uniform_matrix(
        self, location: int, size: int, count: int, values: Sequence[float]
    ) -> None: ...


class _PygletGL:
    """Backend issuing OpenGL calls through pyglet."""

    def __init__(self) -> None:
        from pyglet import gl
        from pyglet.graphics import shader

        self._gl = gl
        self._shader = shader
        self._programs: dict[int, Any] = {}

    def compile_program(self, sources: ShaderSources) -> int:
        stages = [("vertex", sources.vertex, "VERTEX"), ("fragment", sources.fragment, "FRAGMENT")]
        if sources.geometry is not None:
            stages.append(("geometry", sources.geometry, "GEOMETRY"))

        compiled = []
        for kind, code, label in stages:
            try:
                compiled.append(self._shader.Shader(code, kind))
            except self._shader.ShaderException as exc:
                log.error("shader compilation error of type %s:\n%s", label, exc)
                return 0

        try:
            program = self._shader.ShaderProgram(*compiled)
        except self._shader.ShaderException as exc:
            log.error("program linking error of type PROGRAM:\n%s", exc)
            return 0
        finally:
            for stage in compiled:
                stage.delete()

        self._programs[int(program.id)] = program
        return int(program.id)

    def delete_program(self, program: int) -> None:
        wrapper = self._programs.pop(program, None)
        if wrapper is not None:
            wrapper.delete()
        elif program:
            self._gl.glDeleteProgram(program)

    def use_program(self, program: int) -> None:
        self._gl.glUseProgram(program)

    def get_uniform_location(self, program: int, name: str) -> int:
        return int(self._gl.glGetUniformLocation(program, name.encode()))

    def uniform_int(self, location: int, value: int) -> None:
        self._gl.glUniform1i(location, value)

    def uniform_uint(self, location: int, value: int) -> None:
        self._gl.glUniform1ui(location, value)

    def uniform_float(self, location: int, value: float) -> None:
        self._gl.glUniform1f(location, value)

    def uniform_floats(self, location: int, values: Sequence[float]) -> None:
        setter = {
            2: self._gl.glUniform2f,
            3: self._gl.glUniform3f,
            4: self._gl.glUniform4f,
        }[len(values)]
        setter(location, *values)

    def uniform_matrix(
        self, location: int, size: int, count: int, values: Sequence[float]
    ) -> None:
        gl = self._gl
        setter = {
            2: gl.glUniformMatrix2fv,
            3: gl.glUniformMatrix3fv,
            4: gl.glUniformMatrix4fv,
        }[size]
        array = (gl.GLfloat * len(values))(*values)
        setter(location, count, gl.GL_FALSE, array)


def default_gl() -> ShaderBackend:
    """The OpenGL backend of the current context."""
    return _PygletGL()


def _vector(args: tuple[Any, ...], size: int) -> list[float]:
    if len(args) == 1:
        values = np.asarray(args[0], dtype=float).ravel()
    elif len(args) == size:
        values = np.asarray(args, dtype=float)
    else:
        raise TypeError(f"expected one vector or {size} components, got {len(args)} arguments")
    if values.size != size:
        raise ValueError(f"expected {size} components, got {values.size}")
    return [float(v) for v in values]


def _matrices(mats: Any, size: int) -> tuple[int, list[float]]:
    stack = np.asarray(mats, dtype=float)
    if stack.ndim == 2:
        stack = stack[np.newaxis]
    if stack.ndim != 3 or stack.shape[1] != stack.shape[2] or stack.shape[1] < size:
        raise ValueError(f"expected square matrices of at least {size}x{size}, got {stack.shape}")
    stack = stack[:, :size, :size]
    # Column-major order, one matrix after the other.
    values = np.transpose(stack, (0, 2, 1)).ravel()
    return stack.shape[0], [float(v) for v in values]


class Shader:
    """A linked shader program with cached uniform locations."""

    def __init__(
        self,
        vertex_path: str | os.PathLike[str],
        fragment_path: str | os.PathLike[str],
        geometry_path: str | os.PathLike[str] | None = None,
        gl: ShaderBackend | None = None,
    ) -> None:
        self.vertex_path = os.fspath(vertex_path)
        self.fragment_path = os.fspath(fragment_path)
        self.geometry_path = None if geometry_path is None else os.fspath(geometry_path)
        self._gl = gl if gl is not None else default_gl()
        self._locations: dict[str, int] = {}
        self.id = self._load()

    def _load(self) -> int:
        sources = read_shader_sources(self.vertex_path, self.fragment_path, self.geometry_path)
        return self._gl.compile_program(sources)

    def use(self) -> None:
        self._gl.use_program(self.id)

    def reload(self) -> None:
        """Rebuild the program from the files on disk."""
        self._gl.delete_program(self.id)
        self._locations.clear()
        self.id = self._load()

    def uniform_location(self, name: str) -> int:
        if name not in self._locations:
            self._locations[name] = self._gl.get_uniform_location(self.id, name)
        return self._locations[name]

    def set_bool(self, name: str, value: bool) -> None:
        self._gl.uniform_int(self.uniform_location(name), int(bool(value)))

    def set_int(self, name: str, value: int) -> None:
        self._gl.uniform_int(self.uniform_location(name), int(value))

    def set_uint(self, name: str, value: int) -> None:
        if value < 0:
            raise ValueError(f"unsigned uniform cannot be negative: {value}")
        self._gl.uniform_uint(self.uniform_location(name), int(value))

    def set_float(self, name: str, value: float) -> None:
        self._gl.uniform_float(self.uniform_location(name), float(value))

    def set_vec2(self, name: str, *args: Any) -> None:
        self._gl.uniform_floats(self.uniform_location(name), _vector(args, 2))

    def set_vec3(self, name: str, *args: Any) -> None:
        self._gl.uniform_floats(self.uniform_location(name), _vector(args, 3))

    def set_vec4(self, name: str, *args: Any) -> None:
        self._gl.uniform_floats(self.uniform_location(name), _vector(args, 4))

    def set_mat2(self, name: str, mat: Any) -> None:
        count, values = _matrices(mat, 2)
        self._gl.uniform_matrix(self.uniform_location(name), 2, count, values)

    def set_mat3(self, name: str, mat: Any) -> None:
        """Set a 3x3 matrix; larger matrices give their upper-left block."""
        count, values = _matrices(mat, 3)
        self._gl.uniform_matrix(self.uniform_location(name), 3, count, values)

    def set_mat4(self, name: str, mats: Any) -> None:
        """Set one 4x4 matrix or an array of them."""
        count, values = _matrices(mats, 4)
        self._gl.uniform_matrix(self.uniform_location(name), 4, count, values)