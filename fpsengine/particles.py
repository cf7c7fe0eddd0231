"""A simple particle emitter spraying boxes in random directions."""

from __future__ import annotations

import random
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Iterable

import numpy as np

from .scene import GameObject
from .transform import WORLD_UP, Transform

GRAVITY = (0.0, -9.81, 0.0)
PARTICLE_COLOR = (1.0, 0.0, 0.0)


def random_float(rng: random.Random | None = None) -> float:
    """A uniformly distributed float in [0, 1)."""
    return (rng or random).random()


@dataclass
class Particle:
    mesh: Any
    transform: Transform
    velocity: np.ndarray
    creation_time: float


class ParticleEmitter(GameObject):
    """Emits ``rate`` particles per second that fall under gravity and expire."""

    def __init__(
        self,
        rate: float = 1.0,
        velocity: float = 10.0,
        gravity: Iterable[float] = GRAVITY,
        lifetime: float = 2.0,
        clock: Callable[[], float] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        super().__init__()
        self.rate = rate
        self.velocity = velocity
        self.gravity = np.asarray(tuple(gravity), dtype=float)
        self.lifetime = lifetime
        self.direction = WORLD_UP.copy()
        self.angle = np.radians(45.0)
        self.mesh: Any = None
        self.particles: deque[Particle] = deque()
        self._clock = clock or time.monotonic
        self._rng = rng
        self._since_previous = 0.0

    def update(self, dt: float) -> None:
        """Move live particles, drop expired ones and emit when it is time."""
        for particle in self.particles:
            particle.velocity = particle.velocity + 0.5 * self.gravity * dt
            particle.transform.position = particle.transform.position + particle.velocity * dt

        now = self._clock()
        while self.particles and now - self.particles[0].creation_time > self.lifetime:
            self.particles.popleft()

        if self.rate > 0 and self._since_previous > 1.0 / self.rate:
            self.particles.append(
                Particle(
                    mesh=self.mesh,
                    transform=self.transform.copy(),
                    velocity=self.create_velocity(),
                    creation_time=now,
                )
            )
            self._since_previous = 0.0

        self._since_previous += dt

    def create_velocity(self) -> np.ndarray:
        """A velocity of magnitude ``velocity`` in a random positive-octant direction."""

        def nonzero() -> float:
            value = random_float(self._rng)
            while value == 0.0:
                value = random_float(self._rng)
            return value

        direction = np.array([nonzero(), nonzero(), nonzero()])
        return self.velocity * direction / np.linalg.norm(direction)

    def render(self, shader: Any) -> None:
        """Draw every particle with ``shader``, placed relative to the emitter."""
        shader.use()
        base = self.world_transform().model_matrix()
        shader.set_vec3("color", PARTICLE_COLOR)
        for particle in self.particles:
            shader.set_mat4("model", base @ particle.transform.model_matrix())
            if particle.mesh is not None:
                particle.mesh.draw(shader)