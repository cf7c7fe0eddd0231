import numpy as np
import pytest

from fpsengine.scene import AnimationState, GameObject, Scene, Weapon
from fpsengine.transform import Transform


class RecordingShader:
    def __init__(self):
        self.calls = []

    def set_mat4(self, name, value):
        self.calls.append(("mat4", name, np.asarray(value)))

    def set_mat3(self, name, value):
        self.calls.append(("mat3", name, np.asarray(value)))

    def models(self):
        return [value for kind, name, value in self.calls if name == "model"]


class Drawable:
    def __init__(self):
        self.draws = 0

    def draw(self, shader):
        self.draws += 1


class Clip:
    def __init__(self, step):
        self.step = step

    def advance(self, time, dt):
        return time + self.step * dt


class Skinned(Drawable):
    def __init__(self, animations):
        super().__init__()
        self.animations = animations
        self.applied = []

    def apply(self, animation, time):
        self.applied.append((animation, time))


def make_tree():
    root = GameObject("World")
    a = root.add_child(GameObject("a", Transform(position=(1.0, 0.0, 0.0))))
    b = a.add_child(GameObject("b", Transform(position=(0.0, 2.0, 0.0))))
    c = root.add_child(GameObject("c"))
    return root, a, b, c


def test_add_child_sets_parent():
    root, a, b, c = make_tree()
    assert a.parent is root
    assert b.parent is a
    assert root.children == [a, c]


def test_for_each_visits_depth_first():
    root, *_ = make_tree()
    names = []
    root.for_each(lambda obj: names.append(obj.name))
    assert names == ["World", "a", "b", "c"]


def test_find_children_and_missing():
    root, a, b, c = make_tree()
    assert root.find_children("b") is b
    assert a.find_children("c") is None
    assert root.find_children("nothing") is None


def test_find_game_object_searches_whole_scene():
    root, a, b, c = make_tree()
    assert b.find_game_object("c") is c
    assert b.get_scene() is root


def test_find_game_object_with_kind():
    root = GameObject("World")
    weapon = root.add_child(Weapon("weapon"))
    assert root.find_game_object("weapon", Weapon) is weapon
    assert root.find_game_object("World", Weapon) is None


def test_world_transform_composes_parents():
    root, a, b, c = make_tree()
    np.testing.assert_allclose(b.world_transform().position, [1.0, 2.0, 0.0], atol=1e-9)


def test_for_each_with_transform_passes_parent_matrix():
    root, a, b, c = make_tree()
    seen = {}
    root.for_each_with_transform(lambda obj, m: seen.__setitem__(obj.name, m))
    np.testing.assert_allclose(seen["World"], np.eye(4))
    np.testing.assert_allclose(seen["b"], a.transform.model_matrix())


def test_render_sets_model_and_draws():
    root, a, b, c = make_tree()
    a.model = Drawable()
    shader = RecordingShader()
    root.render(shader)
    models = shader.models()
    assert len(models) == 4
    np.testing.assert_allclose(models[1], a.transform.model_matrix())
    assert a.model.draws == 1
    normals = [v for kind, name, v in shader.calls if name == "normalMatrix"]
    np.testing.assert_allclose(normals[1][:3, :3], np.eye(3), atol=1e-12)


def test_render_model_flag_skips_drawing_only_self():
    root, a, b, c = make_tree()
    a.model = Drawable()
    b.model = Drawable()
    a.render_model = False
    root.render(RecordingShader())
    assert a.model.draws == 0
    assert b.model.draws == 1


def test_ready_picks_first_animation():
    obj = GameObject("soldier")
    first, second = Clip(1.0), Clip(2.0)
    obj.skinned_model = Skinned([first, second])
    obj.ready()
    assert obj.animation is first


def test_update_advances_animation_and_poses():
    obj = GameObject("soldier")
    clip = Clip(2.0)
    obj.skinned_model = Skinned([clip])
    obj.ready()
    obj.update(0.5)
    assert obj.anim_time == pytest.approx(1.0)
    assert obj.skinned_model.applied == [(clip, obj.anim_time)]


def test_update_manual_state_keeps_time():
    obj = GameObject("soldier")
    obj.animation = Clip(1.0)
    obj.anim_state = AnimationState.MANUAL
    obj.anim_time = 0.25
    obj.update(1.0)
    assert obj.anim_time == 0.25


def test_weapon_renders_only_children():
    root = GameObject("World")
    weapon = root.add_child(Weapon("weapon", Transform(position=(0.0, 1.5, 0.0))))
    weapon.model = Drawable()
    child = weapon.add_child(GameObject("sight"))
    child.model = Drawable()
    shader = RecordingShader()
    weapon.render(shader)
    assert weapon.model.draws == 0
    assert child.model.draws == 1
    np.testing.assert_allclose(shader.models()[0], weapon.transform.model_matrix(), atol=1e-9)


def test_scene_holds_content():
    root = GameObject("World")
    scene = Scene(camera="cam", content=root)
    assert scene.content.find_children("World") is root
    assert scene.camera == "cam"