"""Scene graph: game objects with transforms, children and animation state."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Callable, Iterator, NewType

import numpy as np

from .transform import Transform

Entity = NewType("Entity", int)


class AnimationState(enum.Enum):
    BIND_POSE = "bind_pose"
    ANIMATE = "animate"
    MANUAL = "manual"


class GameObject:
    """A node of the scene graph.

    ``model`` and ``skinned_model`` are drawables with a ``draw(shader)`` method.
    A skinned model may carry ``animations`` (the first becomes the default
    clip) and poses its skeleton through ``apply(animation, time)``.  An
    animation advances playback time through ``advance(time, dt)``.
    """

    def __init__(self, name: str = "", transform: Transform | None = None) -> None:
        self.name = name
        self.transform = transform if transform is not None else Transform()
        self.parent: GameObject | None = None
        self.children: list[GameObject] = []
        self.model: Any = None
        self.skinned_model: Any = None
        self.render_model = True
        self.anim_state = AnimationState.ANIMATE
        self.anim_time = 0.0
        self.animation: Any = None
        self.active = True

    def __iter__(self) -> Iterator["GameObject"]:
        """This object and all its descendants, depth first."""
        yield self
        for child in self.children:
            yield from child

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, children={len(self.children)})"

    def add_child(self, child: "GameObject") -> "GameObject":
        """Attach ``child`` below this object and return it."""
        child.parent = self
        self.children.append(child)
        return child

    def world_transform(self) -> Transform:
        """This object's transform in world coordinates."""
        matrix = self.transform.model_matrix()
        node = self.parent
        while node is not None:
            matrix = node.transform.model_matrix() @ matrix
            node = node.parent
        return Transform.from_matrix(matrix)

    def ready(self) -> None:
        """Called once before the first frame, after every object exists."""
        animations = getattr(self.skinned_model, "animations", None)
        if animations:
            self.animation = animations[0]

    def shutdown(self) -> None:
        """Called after the last frame, before any object is dropped; marks it inactive."""
        self.active = False

    def update(self, dt: float) -> None:
        """Advance animation playback by ``dt`` seconds."""
        if self.anim_state is AnimationState.ANIMATE and self.animation is not None:
            self.anim_time = self.animation.advance(self.anim_time, dt)
        if self.animation is not None and self.skinned_model is not None:
            self.skinned_model.apply(self.animation, self.anim_time)

    def render(self, shader: Any, parent_transform: Any = None) -> None:
        """Draw this object and its children, relative to ``parent_transform``."""
        parent = np.eye(4) if parent_transform is None else np.asarray(parent_transform, dtype=float)
        model_matrix = parent @ self.transform.model_matrix()
        normal_matrix = np.linalg.inv(model_matrix).T

        shader.set_mat4("model", model_matrix)
        shader.set_mat3("normalMatrix", normal_matrix)

        if self.render_model:
            if self.model is not None:
                self.model.draw(shader)
            elif self.skinned_model is not None:
                self.skinned_model.draw(shader)

        for child in self.children:
            child.render(shader, model_matrix)

    def for_each(self, callback: Callable[["GameObject"], Any]) -> None:
        """Call ``callback`` on this object and every descendant, depth first."""
        for node in self:
            callback(node)

    def for_each_with_transform(
        self,
        callback: Callable[["GameObject", np.ndarray], Any],
        parent_transform: Any = None,
    ) -> None:
        """Call ``callback(obj, parent_matrix)`` on this object and every descendant."""
        parent = np.eye(4) if parent_transform is None else np.asarray(parent_transform, dtype=float)
        callback(self, parent)
        total = parent @ self.transform.model_matrix()
        for child in self.children:
            child.for_each_with_transform(callback, total)

    def find_children(self, name: str) -> "GameObject | None":
        """The first object named ``name`` in this subtree, or None."""
        return next((node for node in self if node.name == name), None)

    def find_game_object(self, name: str, kind: type | None = None) -> "GameObject | None":
        """Search the whole scene for ``name``; None if absent or not of ``kind``."""
        found = self.get_scene().find_children(name)
        if kind is not None and not isinstance(found, kind):
            return None
        return found

    def get_scene(self) -> "GameObject":
        """The root of the tree this object belongs to."""
        node = self
        while node.parent is not None:
            node = node.parent
        return node


class Weapon(GameObject):
    """A held item: invisible itself, it only carries its children."""

    def render(self, shader: Any, parent_transform: Any = None) -> None:
        parent = np.eye(4) if parent_transform is None else np.asarray(parent_transform, dtype=float)
        world = Transform.from_matrix(parent @ self.transform.model_matrix())
        for child in self.children:
            child.render(shader, world.model_matrix())


@dataclass
class Scene:
    """A camera together with the root of the objects it looks at."""

    camera: Any = None
    content: GameObject | None = None