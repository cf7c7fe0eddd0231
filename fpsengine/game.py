"""The game loop: scene setup, per-frame update, drawing and scene persistence."""

from __future__ import annotations

import argparse
import enum
import json
import logging
import math
import os
import sys
from pathlib import Path
from typing import Any, Mapping

import numpy as np

from .player import ANIMATION_NAMES, AnimationClip, Camera, Drone, InputState, Key, Player
from .renderer import Renderer, ShaderHandle, ShaderID
from .resources import ResourceManager
from .scene import GameObject
from .transform import Transform

log = logging.getLogger(__name__)

SCENE_FILE = "scene.json"
WINDOW_TITLE = "FPS Game"
FPS_CAP = 1000.0
FPS_SMOOTHING = 0.1
DEFAULT_CLIP_DURATION = 1.0


class GameState(enum.Enum):
    LOADING = "loading"
    RUNNING = "running"


class FpsCounter:
    """Exponentially smoothed frames-per-second estimate."""

    def __init__(self, initial: float = 144.0) -> None:
        self.value = float(initial)

    def update(self, dt: float) -> float:
        """Fold in one frame of ``dt`` seconds; above the cap report infinity."""
        if dt <= 1.0 / FPS_CAP:
            return math.inf
        self.value = FPS_SMOOTHING * (1.0 / dt) + (1.0 - FPS_SMOOTHING) * self.value
        return self.value

    def __str__(self) -> str:
        return f"FPS {self.value:f}"


def _default_animations() -> dict[str, AnimationClip]:
    return {name: AnimationClip(name, DEFAULT_CLIP_DURATION) for name in ANIMATION_NAMES}


class FPSGame:
    """Owns the scene, the camera and the loading/running state machine."""

    def __init__(
        self,
        resources: ResourceManager | None = None,
        controls: InputState | None = None,
        scene_file: str | os.PathLike[str] = SCENE_FILE,
    ) -> None:
        self.resources = resources if resources is not None else ResourceManager()
        self.controls = controls if controls is not None else InputState()
        self.scene_file = Path(scene_file)
        self.camera = Camera()
        self.animations: dict[str, AnimationClip] = _default_animations()
        self.renderer: Renderer | None = None
        self.state = GameState.LOADING
        self.scene: GameObject | None = None
        self.player: Player | None = None
        self.drone: Drone | None = None
        self.use_color_shader = False
        self.cursor_captured = False
        self.fps = FpsCounter()
        self._closed = False

    def __enter__(self) -> "FPSGame":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def build_scene(self) -> GameObject:
        """Create the world and every object in it."""
        world = GameObject("World")
        self.player = Player(self.camera, self.controls, self.animations)
        self.drone = Drone(self.camera, self.controls)
        world.add_child(self.player)
        world.add_child(GameObject("nurse"))
        world.add_child(GameObject("soldier"))
        world.add_child(GameObject("light"))
        world.add_child(self.drone)
        world.add_child(GameObject("terrain"))
        self.scene = world
        return world

    def load_scene(self) -> GameObject:
        """Build the scene, then restore saved transforms where the file has them."""
        scene = self.build_scene()
        try:
            with self.scene_file.open(encoding="utf-8") as fh:
                data = json.load(fh)
            if not isinstance(data, Mapping):
                raise ValueError("scene file must hold an object")
            for entity in scene:
                entry = data.get(entity.name)
                if entry is not None:
                    entity.transform = Transform.from_json(entry["transform"])
        except (OSError, ValueError, KeyError, TypeError) as exc:
            log.error("Unable to load scene: %s", exc)
        return scene

    def save_scene(self) -> None:
        """Write every object's transform to the scene file, keyed by name."""
        if self.scene is None:
            return
        data = {entity.name: {"transform": entity.transform.to_json()} for entity in self.scene}
        try:
            with self.scene_file.open("w", encoding="utf-8") as fh:
                json.dump(data, fh)
        except OSError as exc:
            log.error("Failed to save scene: %s", exc)

    def _require_scene(self) -> GameObject:
        if self.scene is None or self.player is None or self.drone is None:
            raise RuntimeError("the scene has not been loaded yet")
        return self.scene

    def select_player(self) -> None:
        """Hand control to the player and put the camera behind it."""
        self._require_scene()
        self.player.input_enabled = True
        self.player.reset_camera()
        self.drone.disable_input()

    def select_drone(self) -> None:
        """Hand control to the free-flying drone."""
        self._require_scene()
        self.drone.enable_input()
        self.player.input_enabled = False

    def toggle_cursor(self) -> bool:
        """Capture or release the mouse; releasing it stops all character input."""
        self.cursor_captured = not self.cursor_captured
        if not self.cursor_captured:
            if self.player is not None:
                self.player.input_enabled = False
            if self.drone is not None:
                self.drone.disable_input()
        window = self.renderer.window if self.renderer is not None else None
        if window is not None:
            window.set_exclusive_mouse(self.cursor_captured)
        return self.cursor_captured

    def update(self, dt: float) -> None:
        """Advance every object by ``dt`` seconds."""
        scene = self._require_scene()
        scene.for_each(lambda obj: obj.update(dt))
        self.fps.update(dt)

    def step(self, dt: float) -> GameState:
        """Run one frame: finish loading when resources are ready, then update."""
        if self.state is GameState.LOADING and self.resources.is_prepared():
            self.resources.load_all()
            scene = self.load_scene()
            scene.for_each(lambda obj: obj.ready())
            self.state = GameState.RUNNING
        if self.state is GameState.RUNNING:
            self.update(dt)
        return self.state

    def _render(self) -> None:
        if self.renderer is None or self.state is not GameState.RUNNING:
            return
        scene = self._require_scene()
        renderer = self.renderer
        renderer.view = self.camera.view_matrix()
        shader_id = ShaderID.COLOR if self.use_color_shader else ShaderID.MODEL
        with ShaderHandle(renderer, shader_id) as shader:
            shader.set_mat4("view", renderer.view)
            shader.set_mat4("projection", renderer.projection)
            light = scene.find_children("light")
            if light is not None:
                shader.set_vec3("lightPosition", light.transform.position)
            shader.set_vec3("cameraPosition", self.camera.position)
            scene.render(shader)

    def close(self) -> None:
        """Shut every object down and save the scene, once."""
        if self._closed:
            return
        self._closed = True
        if self.state is GameState.RUNNING and self.scene is not None:
            self.scene.for_each(lambda obj: obj.shutdown())
            self.save_scene()


def _bind_window(game: FPSGame, window: Any) -> None:
    from pyglet import gl
    from pyglet.event import EVENT_HANDLED
    from pyglet.window import key, mouse

    keys = {
        key.W: Key.W,
        key.A: Key.A,
        key.S: Key.S,
        key.D: Key.D,
        key.SPACE: Key.SPACE,
        key.ESCAPE: Key.ESCAPE,
    }
    controls = game.controls

    def on_key_press(symbol: int, modifiers: int) -> Any:
        if symbol in keys:
            controls.pressed.add(keys[symbol])
        if symbol == key.ESCAPE:
            game.toggle_cursor()
            return EVENT_HANDLED
        return None

    def on_key_release(symbol: int, modifiers: int) -> None:
        if symbol in keys:
            controls.pressed.discard(keys[symbol])

    def on_mouse_motion(x: int, y: int, dx: int, dy: int) -> None:
        controls.mouse_pos = np.asarray(controls.mouse_pos, dtype=float) + (dx, -dy)

    def on_mouse_drag(x: int, y: int, dx: int, dy: int, buttons: int, modifiers: int) -> None:
        on_mouse_motion(x, y, dx, dy)

    def on_mouse_press(x: int, y: int, button: int, modifiers: int) -> None:
        if button == mouse.RIGHT:
            controls.pressed.add(Key.MOUSE_RIGHT)

    def on_mouse_release(x: int, y: int, button: int, modifiers: int) -> None:
        if button == mouse.RIGHT:
            controls.pressed.discard(Key.MOUSE_RIGHT)

    def on_mouse_scroll(x: int, y: int, scroll_x: float, scroll_y: float) -> None:
        controls.scroll_offset += scroll_y

    def on_draw() -> None:
        gl.glClearColor(0.0, 0.0, 0.0, 1.0)
        gl.glClear(gl.GL_COLOR_BUFFER_BIT | gl.GL_DEPTH_BUFFER_BIT)
        game._render()

    window.push_handlers(
        on_key_press=on_key_press,
        on_key_release=on_key_release,
        on_mouse_motion=on_mouse_motion,
        on_mouse_drag=on_mouse_drag,
        on_mouse_press=on_mouse_press,
        on_mouse_release=on_mouse_release,
        on_mouse_scroll=on_mouse_scroll,
        on_draw=on_draw,
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run the first-person shooter lab.")
    parser.add_argument("--scene-file", default=SCENE_FILE)
    parser.add_argument("--width", type=int, default=1280)
    parser.add_argument("--height", type=int, default=720)
    args = parser.parse_args(argv)

    try:
        import pyglet

        renderer = Renderer(args.width, args.height)
        renderer.startup(WINDOW_TITLE)
        resources = ResourceManager()
        resources.startup()
        try:
            with FPSGame(resources, InputState(), args.scene_file) as game:
                game.renderer = renderer
                _bind_window(game, renderer.window)
                pyglet.clock.schedule(game.step)
                pyglet.app.run()
        finally:
            resources.shutdown()
            renderer.shutdown()
    except Exception as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())