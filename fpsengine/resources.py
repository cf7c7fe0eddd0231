"""Background loading of the game's textures."""

from __future__ import annotations

import threading
from typing import Mapping

from .texture import Texture, TextureUploader
from .util import ASSETS_DIR

DEFAULT_TEXTURES: dict[str, str] = {
    "bathroom-tiling": "bathroom-tiling.jpg",
    "dirt": "dirt.jpg",
    "loadingScreen": "halloween.jpg",
    "ely": "ely.jpg",
}


def texture_path(name: str, assets_dir: str = ASSETS_DIR) -> str:
    return f"{assets_dir}/textures/{name}"


def model_path(name: str, assets_dir: str = ASSETS_DIR) -> str:
    return f"{assets_dir}/models/{name}"


class ResourceManager:
    """Decodes textures on a worker thread; uploads them on the render thread."""

    def __init__(
        self, assets_dir: str = ASSETS_DIR, textures: Mapping[str, str] | None = None
    ) -> None:
        self.assets_dir = assets_dir
        self._texture_files = dict(DEFAULT_TEXTURES if textures is None else textures)
        self._textures: dict[str, Texture] = {}
        self._lock = threading.Lock()
        self._prepared = threading.Event()
        self._worker: threading.Thread | None = None

    def startup(self) -> None:
        """Start preparing every resource in the background."""
        self._worker = threading.Thread(
            target=self.prepare_all, name="resource-prepare", daemon=True
        )
        self._worker.start()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until preparation finishes; False if ``timeout`` ran out."""
        return self._prepared.wait(timeout)

    def shutdown(self) -> None:
        with self._lock:
            self._textures.clear()
            self._prepared.clear()

    def prepare_all(self) -> None:
        """Decode every texture file into memory."""
        with self._lock:
            for name, filename in self._texture_files.items():
                self._textures[name] = Texture().prepare(texture_path(filename, self.assets_dir))
            self._prepared.set()

    def load_all(self, gl: TextureUploader | None = None) -> None:
        """Upload every prepared texture to the GPU."""
        for texture in self._textures.values():
            texture.load(gl)

    def is_prepared(self) -> bool:
        return self._prepared.is_set()

    def get_texture(self, name: str) -> Texture:
        try:
            return self._textures[name]
        except KeyError:
            raise KeyError(f"no texture named {name!r}") from None