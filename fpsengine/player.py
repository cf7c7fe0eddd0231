"""Player-controlled characters: a third-person soldier and a free-flying drone."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Mapping

import numpy as np

from .particles import GRAVITY
from .scene import GameObject, Weapon
from .timing import SmoothTransform
from .transform import WORLD_UP, Transform, angle_axis, quat_multiply

_EPSILON = float(np.finfo(np.float32).eps)

ANIMATION_NAMES = (
    "aim_idle.fbx",
    "run_forward.fbx",
    "run_backwards.fbx",
    "strafe_right.fbx",
    "strafe_left.fbx",
    "jump_up.fbx",
    "jump_down.fbx",
)

IDLE_CAMERA_OFFSET = (0.8, 0.0, -8.0)
AIM_CAMERA_OFFSET = (0.5, 0.0, -1.7)
AIM_DURATION = 0.25
WEAPON_POSITION = (0.12, 1.5, 0.0)
JUMP_VELOCITY = 3.5


class Movement(enum.Enum):
    IDLE = "Idle"
    RUNNING = "Running"
    JUMPING = "Jumping"
    IN_AIR = "InAir"
    LANDING = "Landing"

    def __str__(self) -> str:
        return self.value


class Key(enum.Enum):
    W = "w"
    A = "a"
    S = "s"
    D = "d"
    SPACE = "space"
    ESCAPE = "escape"
    MOUSE_RIGHT = "mouse_right"


@dataclass
class InputState:
    """Snapshot of the keyboard and mouse as the characters read it."""

    pressed: set[Key] = field(default_factory=set)
    mouse_pos: np.ndarray = field(default_factory=lambda: np.zeros(2))
    scroll_offset: float = 0.0

    def key_pressed(self, key: Key) -> bool:
        return key in self.pressed


@dataclass
class Camera:
    """A viewpoint placed by a transform."""

    transform: Transform = field(default_factory=Transform)

    @property
    def position(self) -> np.ndarray:
        return self.transform.position

    def view_matrix(self) -> np.ndarray:
        return np.linalg.inv(self.transform.model_matrix())


@dataclass
class AnimationClip:
    """A named animation of a fixed length in seconds."""

    name: str
    duration: float
    looping: bool = True

    def __post_init__(self) -> None:
        if self.duration <= 0:
            raise ValueError(f"animation duration must be positive, got {self.duration}")

    def advance(self, time: float, dt: float) -> float:
        """Playback time ``dt`` seconds after ``time``."""
        t = time + dt
        if self.looping:
            return t % self.duration
        return min(max(t, 0.0), self.duration)


def _mouse(controls: InputState) -> np.ndarray:
    return np.array(controls.mouse_pos, dtype=float)


class Player(GameObject):
    """Third-person character that runs, strafes, jumps and aims a weapon."""

    def __init__(
        self,
        camera: Camera,
        controls: InputState,
        animations: Mapping[str, AnimationClip] | None = None,
    ) -> None:
        super().__init__("player")
        self.camera = camera
        self.controls = controls
        self._animations = dict(animations or {})
        self.weapon = self.add_child(Weapon("weapon"))
        self.input_enabled = False
        self.state = Movement.IDLE
        self.velo = np.zeros(3)
        self.velo_at_jump = np.zeros(3)
        self.prev_mouse_pos = _mouse(controls)
        self.speed = 5.0
        self.sensitivity = 0.001
        self.zoom = 0.0
        self.aiming = False
        self.aim_transform = SmoothTransform(
            Transform(IDLE_CAMERA_OFFSET), Transform(AIM_CAMERA_OFFSET), AIM_DURATION
        )
        self.idle: AnimationClip | None = None
        self.run_forward: AnimationClip | None = None
        self.run_backwards: AnimationClip | None = None
        self.strafe_right: AnimationClip | None = None
        self.strafe_left: AnimationClip | None = None
        self.jump_up: AnimationClip | None = None
        self.jump_down: AnimationClip | None = None

    def _clip(self, name: str) -> AnimationClip:
        try:
            return self._animations[name]
        except KeyError:
            raise KeyError(f"no animation named {name!r}") from None

    def ready(self) -> None:
        super().ready()
        self.idle = self._clip("aim_idle.fbx")
        self.run_forward = self._clip("run_forward.fbx")
        self.run_backwards = self._clip("run_backwards.fbx")
        self.strafe_right = self._clip("strafe_right.fbx")
        self.strafe_left = self._clip("strafe_left.fbx")
        self.jump_up = self._clip("jump_up.fbx")
        self.jump_down = self._clip("jump_down.fbx")
        self.reset_camera()

    def reset_camera(self) -> None:
        """Put the weapon back in hand and the camera behind the player."""
        wt = self.weapon.transform
        wt.position = np.array(WEAPON_POSITION, dtype=float)
        wt.rotation = angle_axis(0.0, wt.right())

        t = self.transform.copy()
        t.position = t.position + wt.position + self._camera_delta(self.transform)
        self.camera.transform = t

    def _camera_delta(self, t: Transform) -> np.ndarray:
        at = self.aim_transform.current().position
        return at[2] * t.front() + at[1] * t.up() + at[0] * t.right()

    def update(self, dt: float) -> None:
        super().update(dt)

        self.aim_transform.update(dt if self.aiming else -dt)
        self.aiming = self.controls.key_pressed(Key.MOUSE_RIGHT)

        if not self.input_enabled:
            return

        self.zoom = max(float(self.controls.scroll_offset), 0.0)

        planar = np.zeros(3)
        movable = self.state in (Movement.IDLE, Movement.RUNNING)
        if movable and self.controls.key_pressed(Key.W):
            front = self.transform.front()
            planar[[0, 2]] += front[[0, 2]]
            self.animation = self.run_forward
        elif movable and self.controls.key_pressed(Key.S):
            front = self.transform.front()
            planar[[0, 2]] -= front[[0, 2]]
            self.animation = self.run_backwards

        if movable and self.controls.key_pressed(Key.A):
            right = self.transform.right()
            planar[[0, 2]] -= right[[0, 2]]
            self.animation = self.strafe_left
        elif movable and self.controls.key_pressed(Key.D):
            right = self.transform.right()
            planar[[0, 2]] += right[[0, 2]]
            self.animation = self.strafe_right

        if movable and self.controls.key_pressed(Key.SPACE):
            self.state = Movement.JUMPING
            self.animation = self.jump_up
            self.anim_time = 0.0
            self.velo_at_jump = self.velo.copy()

        if self.state is not Movement.JUMPING and np.linalg.norm(planar) > _EPSILON:
            self.state = Movement.RUNNING
        elif self.state is Movement.RUNNING:
            self.state = Movement.IDLE

        self._move(dt, planar)

        if np.linalg.norm(self.velo) > _EPSILON:
            self.transform.position = self.transform.position + dt * self.velo
        elif self.state is Movement.RUNNING:
            self.state = Movement.IDLE

        self._look(_mouse(self.controls))

    def _move(self, dt: float, planar: np.ndarray) -> None:
        if self.state is Movement.RUNNING:
            planar = self.speed * planar / np.linalg.norm(planar)
            self.velo[0] = planar[0]
            self.velo[2] = planar[2]
        elif self.state is Movement.IDLE:
            self.velo[0] = 0.0
            self.velo[2] = 0.0
            self.animation = self.idle
        elif self.state is Movement.JUMPING:
            self.velo[0] = self.velo_at_jump[0] / 4
            self.velo[2] = self.velo_at_jump[2] / 4
            if self.anim_time > 0.4 * self.animation.duration:
                self.state = Movement.IN_AIR
                self.velo[1] = JUMP_VELOCITY
        elif self.state is Movement.IN_AIR:
            self.velo[0] = self.velo_at_jump[0] / 2
            self.velo[2] = self.velo_at_jump[2] / 2
            self.velo[1] += dt * GRAVITY[1]

            if self.anim_time > 0.95 * self.animation.duration:
                self.anim_time = 0.95 * self.animation.duration

            if self.velo[1] < 0.0 and self.animation is not self.jump_down:
                self.anim_time = 0.0
                self.animation = self.jump_down

            if self.transform.position[1] <= 0.0:
                self.transform.position[1] = 0.0
                self.velo[1] = 0.0
                self.state = Movement.LANDING
        elif self.state is Movement.LANDING:
            self.velo[0] = self.velo_at_jump[0] / 4
            self.velo[2] = self.velo_at_jump[2] / 4
            if self.anim_time > 0.95 * self.jump_down.duration:
                self.velo[0] = self.velo_at_jump[0]
                self.velo[1] = self.velo_at_jump[1]
                self.state = Movement.IDLE

    def _look(self, mouse_pos: np.ndarray) -> None:
        delta = mouse_pos - self.prev_mouse_pos
        self.prev_mouse_pos = mouse_pos

        yaw = angle_axis(-self.sensitivity * delta[0], WORLD_UP)
        self.transform.rotation = quat_multiply(yaw, self.transform.rotation)

        wt = self.weapon.transform.copy()
        wt.rotation = quat_multiply(
            angle_axis(-self.sensitivity * delta[1], wt.right()), self.weapon.transform.rotation
        )
        self.weapon.transform = wt

        t = self.camera.transform.copy()
        pitch = angle_axis(-self.sensitivity * delta[1], t.right())
        t.rotation = quat_multiply(quat_multiply(pitch, yaw), t.rotation)
        t.position = self.transform.position + wt.position + self._camera_delta(t)
        self.camera.transform = t


class Drone(GameObject):
    """A free-flying observer whose view drives the camera."""

    def __init__(self, camera: Camera, controls: InputState) -> None:
        super().__init__("drone")
        self.camera = camera
        self.controls = controls
        self.velo = np.zeros(3)
        self.prev_mouse_pos = _mouse(controls)
        self.speed = 5.0
        self.sensitivity = 0.001
        self.input_enabled = False

    def enable_input(self) -> None:
        self.input_enabled = True
        self.prev_mouse_pos = _mouse(self.controls)

    def disable_input(self) -> None:
        self.input_enabled = False
        self.prev_mouse_pos = _mouse(self.controls)

    def update(self, dt: float) -> None:
        self.velo = np.zeros(3)
        if not self.input_enabled:
            return

        if self.controls.key_pressed(Key.W):
            self.velo += self.transform.front()
        elif self.controls.key_pressed(Key.S):
            self.velo -= self.transform.front()

        if self.controls.key_pressed(Key.A):
            self.velo -= self.transform.right()
        elif self.controls.key_pressed(Key.D):
            self.velo += self.transform.right()

        norm = np.linalg.norm(self.velo)
        if norm > _EPSILON:
            self.velo = self.speed * self.velo / norm
            self.transform.position = self.transform.position + dt * self.velo

        mouse_pos = _mouse(self.controls)
        delta = mouse_pos - self.prev_mouse_pos
        self.prev_mouse_pos = mouse_pos

        yaw = angle_axis(-self.sensitivity * delta[0], WORLD_UP)
        self.transform.rotation = quat_multiply(yaw, self.transform.rotation)

        pitch = angle_axis(-self.sensitivity * delta[1], self.transform.right())
        self.transform.rotation = quat_multiply(pitch, self.transform.rotation)

        self.camera.transform = self.transform.copy()