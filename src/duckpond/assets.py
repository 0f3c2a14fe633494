from __future__ import annotations
import os
from concurrent.futures import Future, ThreadPoolExecutor

import cv2
import numpy as np
import pygame
import trimesh

from .geometry import MeshData
from .logging import get_logger

logger = get_logger(__name__)


class Asset:
    """
    Handle for a value decoded in the background.

    Consumers call `poll()` once per frame; it returns the value once the load
    has finished and None before that. A failed load is logged once and the
    handle stays failed for the rest of the session.
    """

    def __init__(self, name: str, path: str, future: Future):
        self.name = name
        self.path = path
        self.future = future
        self.value = None
        self.failed = False
        self.consumed = False

    @property
    def ready(self) -> bool:
        return self.value is not None

    def poll(self):
        if self.value is not None or self.failed:
            return self.value
        if not self.future.done():
            return None
        err = self.future.exception()
        if err is not None:
            self.failed = True
            logger.error(f"Failed to load {self.name} from '{self.path}': {err}")
            return None
        self.value = self.future.result()
        logger.info(f"Loaded {self.name}: {self.path}")
        return self.value

    def take(self):
        """Like poll(), but hands the value out only once."""
        value = self.poll()
        if value is None or self.consumed:
            return None
        self.consumed = True
        return value


def srgb_to_linear(c: np.ndarray) -> np.ndarray:
    return np.where(c <= 0.04045, c / 12.92, ((c + 0.055) / 1.055) ** 2.4)


def mesh_from_trimesh(tm: trimesh.Trimesh, default_color=(1.0, 1.0, 1.0)) -> MeshData:
    positions = np.asarray(tm.vertices, dtype="f4")
    normals = np.asarray(tm.vertex_normals, dtype="f4")
    colors = np.tile(np.asarray(default_color, dtype="f4"), (len(positions), 1))
    if getattr(tm.visual, "kind", None) is not None:
        try:
            rgba = np.asarray(tm.visual.to_color().vertex_colors, dtype=np.float32)
            colors = srgb_to_linear(rgba[:, :3] / 255.0).astype("f4")
        except (AttributeError, ValueError, ImportError) as e:
            logger.warning(f"Model colours unavailable, using flat colour: {e}")
    return MeshData(
        positions=positions,
        normals=normals,
        colors=colors,
        indices=np.asarray(tm.faces, dtype="u4").reshape(-1),
    )


def read_model(path: str, default_color=(1.0, 1.0, 1.0)):
    """Returns (MeshData, trimesh.Trimesh); the trimesh answers ray queries."""
    tm = trimesh.load(path, force="mesh")
    if len(tm.faces) == 0:
        raise ValueError(f"No triangles in model: {path}")
    return mesh_from_trimesh(tm, default_color), tm


def read_image(path: str) -> np.ndarray:
    """RGB uint8 image, flipped so row 0 is the bottom (GL convention)."""
    bgr = cv2.imread(path, cv2.IMREAD_COLOR)
    if bgr is None:
        raise IOError(f"Could not read image: {path}")
    rgb = cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)
    return np.ascontiguousarray(cv2.flip(rgb, 0))


def read_sound(path: str):
    if not os.path.exists(path):
        raise FileNotFoundError(path)
    return pygame.mixer.Sound(path)


class AssetLoader:
    def __init__(self, root: str = ".", workers: int = 2):
        self.root = root
        self.pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="assets")

    def _submit(self, name: str, rel_path: str, fn, *args) -> Asset:
        path = os.path.join(self.root, rel_path)
        logger.info(f"Loading {name} from '{path}'")
        return Asset(name, path, self.pool.submit(fn, path, *args))

    def model(self, rel_path: str, default_color=(1.0, 1.0, 1.0)) -> Asset:
        return self._submit("model", rel_path, read_model, default_color)

    def image(self, rel_path: str) -> Asset:
        return self._submit("image", rel_path, read_image)

    def sound(self, rel_path: str) -> Asset:
        return self._submit("sound", rel_path, read_sound)

    def shutdown(self):
        self.pool.shutdown(wait=False, cancel_futures=True)
