from __future__ import annotations
import numpy as np

from .geometry import hex_to_linear
from .logging import get_logger
from .scene import Node, SceneContext


def normalize_pointer(x: float, y: float, width: int, height: int) -> np.ndarray:
    """Window pixels -> normalized device coordinates, y up, both in [-1, 1]."""
    return np.array(
        [(x / max(1, width)) * 2.0 - 1.0, -(y / max(1, height)) * 2.0 + 1.0]
    )


def ray_plane(origin, direction, normal, point) -> np.ndarray | None:
    denom = float(np.dot(normal, direction))
    if abs(denom) < 1e-9:
        return None
    t = float(np.dot(point - origin, normal)) / denom
    if t < 0.0:
        return None
    return origin + t * direction


class InteractionLayer:
    """
    Pointer handling: tracks the pointer, quacks when the duck is clicked and
    lets the user drag the rod around on a camera-facing plane.
    """

    def __init__(self, scene: SceneContext, player, render_now, width: int, height: int):
        self.scene = scene
        self.player = player
        self.render_now = render_now
        self.width = width
        self.height = height
        self.pointer = np.zeros(2)
        self.dragging: Node | None = None
        self._plane_normal = None
        self._plane_point = None
        self._offset = np.zeros(3)
        self.highlight = hex_to_linear(scene.cfg.rod_highlight)
        self.logger = get_logger(__name__)

    def resize(self, width: int, height: int):
        self.width, self.height = width, height

    def ray(self):
        return self.scene.camera.ray(float(self.pointer[0]), float(self.pointer[1]))

    # --- pointer move ---
    def on_pointer_move(self, x: float, y: float):
        self.pointer = normalize_pointer(x, y, self.width, self.height)
        if self.dragging is not None:
            self._drag_to()

    # --- click ---
    def hits_duck(self) -> bool:
        duck = self.scene.duck
        if duck is None:
            return False
        origin, direction = self.ray()
        return duck.raycast(origin, direction) is not None

    def on_click(self) -> bool:
        self.logger.debug("click")
        hit = self.hits_duck()
        if hit:
            self.player.play()
        self.render_now()
        return hit

    # --- drag ---
    def pick(self) -> tuple[Node, float] | None:
        origin, direction = self.ray()
        best = None
        for node in self.scene.pickable():
            d = node.raycast(origin, direction)
            if d is not None and (best is None or d < best[1]):
                best = (node, d)
        return best

    def on_press(self) -> Node | None:
        picked = self.pick()
        if picked is None:
            return None
        node, _ = picked
        origin, direction = self.ray()
        self._plane_normal = self.scene.camera.forward()
        self._plane_point = node.position.copy()
        hit = ray_plane(origin, direction, self._plane_normal, self._plane_point)
        self._offset = (hit - node.position) if hit is not None else np.zeros(3)
        self.dragging = node
        self.on_drag_start(node)
        return node

    def _drag_to(self):
        origin, direction = self.ray()
        hit = ray_plane(origin, direction, self._plane_normal, self._plane_point)
        if hit is not None:
            self.dragging.position = hit - self._offset

    def on_release(self):
        if self.dragging is None:
            return
        node, self.dragging = self.dragging, None
        self.on_drag_end(node)

    def on_drag_start(self, node: Node):
        node.material.emissive = self.highlight
        self.logger.debug(f"drag start: {node.name}")

    def on_drag_end(self, node: Node):
        node.material.emissive = (0.0, 0.0, 0.0)
        self.player.stop()
        self.logger.debug(f"drag end: {node.name} at {np.round(node.position, 2)}")
