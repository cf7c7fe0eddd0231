# fpsengine

A compact engine for a first-person shooter, built on numpy for the maths,
Pillow for image decoding and pyglet for the window and OpenGL calls.

## What is in it

- `fpsengine.transform`: `Transform` (position, quaternion rotation
  `(w, x, y, z)` and scale) with `model_matrix()`, `rotation_matrix()`,
  `front()`, `right()`, `up()`, `from_matrix()`, `from_euler()`, JSON
  conversion (`to_json()` / `from_json()`, rotation stored as Euler angles) and
  `+`. Free functions: `lerp`, `angle_between`, `quat_from_euler`,
  `euler_angles`, `angle_axis`, `quat_multiply`, `quat_rotate`,
  `quat_to_matrix`.
- `fpsengine.util`: `shader_path`, `asset_path`, `extract_filename`,
  `serialize_vec3`, `deserialize_vec3`.
- `fpsengine.timing`: `DeltaTimer` (seconds between ticks, the first tick
  returns 0) and `SmoothTransform` (blends two transforms over a fixed
  duration, time clamped to `[0, duration]`).
- `fpsengine.texture`: `Texture` decodes an image with `prepare()` and uploads
  it with `load()`; `texture_format` maps component counts to `TextureFormat`.
- `fpsengine.shader`: `Shader` reads GLSL files, compiles them through a
  backend (pyglet by default, see `default_gl()`) and caches uniform
  locations; `set_bool`, `set_int`, `set_uint`, `set_float`, `set_vec2/3/4`,
  `set_mat2/3/4`, `use()`, `reload()`.
- `fpsengine.renderer`: `perspective`, `orthographic`, a `Renderer` holding
  the window, projection and the `ShaderID.BASIC`, `MODEL` and `COLOR`
  programs, and `ShaderHandle`, a context manager that binds a shader for a
  `with` block.
- `fpsengine.resources`: `ResourceManager` decodes textures on a worker
  thread (`startup()`, `wait()`, `is_prepared()`) and uploads them on the
  render thread (`load_all()`).
- `fpsengine.scene`: `GameObject` trees (iteration, `for_each`,
  `for_each_with_transform`, `find_children`, `find_game_object`,
  `world_transform`, `render`), `Weapon`, `Scene` and `AnimationState`.
- `fpsengine.particles`: `ParticleEmitter` emitting particles that fall under
  gravity and expire after a lifetime.
- `fpsengine.player`: `Player` (idle, running, jumping, in air and landing
  states, aiming camera) and a free-flying `Drone`, driven by an `InputState`
  and moving a `Camera`.
- `fpsengine.server`: `GameServer`, an asyncio UDP protocol, and `serve()`.
- `fpsengine.game`: `FPSGame` with its loading/running state machine, scene
  persistence and `FpsCounter`.

## Installation

```
pip install fpsengine
```

For the test suite:

```
pip install "fpsengine[test]"
pytest
```

## Running the game

```
fpsengine [--scene-file scene.json] [--width 1280] [--height 720]
```

Shaders are read from `$FPSENGINE_SRC_DIR/shaders` (`basic.vert`,
`model.vert`, `model.frag`, `color.vert`, `color.frag`) and textures from
`$FPSENGINE_SRC_DIR/assets/textures`; `FPSENGINE_SRC_DIR` defaults to the
current directory. Once the textures are prepared the game builds its scene
(player, nurse, soldier, light, drone, terrain), restores object transforms
from the scene file where it has them, and writes every transform back to the
file when it closes.

In the window, W/A/S/D and Space move the character that has input, the mouse
turns it, the right mouse button aims and Escape captures or releases the
mouse pointer; releasing it stops all character input.

## Running the server

```
fpsengine-server [--host 0.0.0.0] [--port 6969] [--interval 0.01]
```

The server registers each new peer address on its first datagram and from
then on sends it a datagram every `interval` seconds; later datagrams from a
known peer are counted and the last one is kept.

## Library use

```python
from fpsengine.util import extract_filename

extract_filename("/some/path/to/file/filename.txt")  # "filename"
```

```python
from fpsengine.transform import Transform, lerp

a = Transform.from_euler((0.0, 0.0, 0.0), (0.0, 0.0, 0.0), (1.0, 1.0, 1.0))
b = Transform.from_euler((10.0, 0.0, 0.0), (0.0, 0.0, 0.0), (1.0, 1.0, 1.0))
halfway = lerp(a, b, 0.5)
matrix = halfway.model_matrix()
restored = Transform.from_json(halfway.to_json())
```

```python
from fpsengine.timing import SmoothTransform

blend = SmoothTransform(a, b, 0.25)
blend.update(0.1)
current = blend.current()
blend.reset()
```

```python
from fpsengine.scene import GameObject

world = GameObject("World")
world.add_child(GameObject("light"))
light = world.find_children("light")
names = [obj.name for obj in world]  # ["World", "light"]
```

## What it does not do

- It loads no 3D models, meshes or skeletons. Scene objects draw only the
  `model` or `skinned_model` objects you attach yourself, so the game window
  shows an empty scene unless you do. Animations are `AnimationClip` values
  that carry a name and a duration; no animation files are read.
- The server's datagrams are a fixed placeholder payload, not game state, and
  there is no network client in the package.
- The game has no on-screen editor or settings panel. Which character takes
  input is chosen in code with `FPSGame.select_player()` or
  `FPSGame.select_drone()`; until one is called, movement keys do nothing.