from __future__ import annotations
import math
from dataclasses import dataclass, field

import numpy as np
from pyrr import matrix44, vector

from .config import AppConfig
from .geometry import MeshData, box
from .params import Parameters

UP = np.array([0.0, 1.0, 0.0])


def euler_xyz(rx: float, ry: float, rz: float) -> np.ndarray:
    """3x3 rotation for intrinsic X, then Y, then Z angles (radians)."""
    cx, sx = math.cos(rx), math.sin(rx)
    cy, sy = math.cos(ry), math.sin(ry)
    cz, sz = math.cos(rz), math.sin(rz)
    rot_x = np.array([[1, 0, 0], [0, cx, -sx], [0, sx, cx]])
    rot_y = np.array([[cy, 0, sy], [0, 1, 0], [-sy, 0, cy]])
    rot_z = np.array([[cz, -sz, 0], [sz, cz, 0], [0, 0, 1]])
    return rot_x @ rot_y @ rot_z


def to_gl(m: np.ndarray) -> bytes:
    """Column-major float32 bytes for a mat4 uniform."""
    return np.asarray(m, dtype="f4").T.tobytes()


@dataclass
class Material:
    color: tuple = (1.0, 1.0, 1.0)
    roughness: float = 0.5
    emissive: tuple = (0.0, 0.0, 0.0)


class Node:
    """A placed object. Matrices use the column-vector convention (M @ p)."""

    def __init__(self, name: str, mesh: MeshData | None = None, material=None):
        self.name = name
        self.mesh = mesh
        self.material = material or Material()
        self.position = np.zeros(3)
        self.rotation = np.eye(3)
        self.scale = np.ones(3)
        # set by whoever can answer precise ray queries (e.g. a trimesh mesh)
        self.hit_mesh = None
        self.gpu = None

    def matrix(self) -> np.ndarray:
        m = np.eye(4)
        m[:3, :3] = self.rotation * self.scale[np.newaxis, :]
        m[:3, 3] = self.position
        return m

    def look_at(self, target):
        """Turn the local +Z axis towards `target`."""
        z = np.asarray(target, dtype=np.float64) - self.position
        if np.linalg.norm(z) < 1e-9:
            return
        z = vector.normalise(z)
        x = np.cross(UP, z)
        if np.linalg.norm(x) < 1e-9:
            x = np.cross(np.array([0.0, 0.0, 1.0]), z)
        x = vector.normalise(x)
        y = np.cross(z, x)
        self.rotation = np.column_stack([x, y, z])

    def raycast(self, origin, direction) -> float | None:
        """World-space distance to the nearest hit, or None."""
        if self.mesh is None:
            return None
        inv = np.linalg.inv(self.matrix())
        o = (inv @ np.append(origin, 1.0))[:3]
        d = (inv @ np.append(direction, 0.0))[:3]
        d_len = np.linalg.norm(d)
        if d_len < 1e-12:
            return None
        d = d / d_len

        if self.hit_mesh is not None:
            locations, _, _ = self.hit_mesh.ray.intersects_location(
                ray_origins=[o], ray_directions=[d]
            )
            if len(locations) == 0:
                return None
            local_points = np.asarray(locations, dtype=np.float64)
        else:
            t = ray_aabb(o, d, *self.mesh.bounds)
            if t is None:
                return None
            local_points = (o + t * d)[np.newaxis, :]

        m = self.matrix()
        world = (m[:3, :3] @ local_points.T).T + m[:3, 3]
        return float(np.min(np.linalg.norm(world - origin, axis=1)))


def ray_aabb(origin, direction, lo, hi) -> float | None:
    """Slab test; distance along the ray to the box entry (0 if inside)."""
    with np.errstate(divide="ignore", invalid="ignore"):
        inv = 1.0 / direction
        t1 = (lo - origin) * inv
        t2 = (hi - origin) * inv
    t_near = np.nanmax(np.minimum(t1, t2))
    t_far = np.nanmin(np.maximum(t1, t2))
    if t_far < max(t_near, 0.0):
        return None
    return float(max(t_near, 0.0))


class Camera:
    def __init__(self, fov: float, aspect: float, near: float, far: float):
        self.fov = fov
        self.aspect = aspect
        self.near = near
        self.far = far
        self.position = np.zeros(3)
        self.target = np.array([0.0, 0.0, -1.0])

    def look_at(self, target):
        self.target = np.asarray(target, dtype=np.float64)

    def set_aspect(self, width: int, height: int):
        self.aspect = width / max(1, height)

    def view(self) -> np.ndarray:
        return matrix44.create_look_at(self.position, self.target, UP).T

    def projection(self) -> np.ndarray:
        return matrix44.create_perspective_projection(
            self.fov, self.aspect, self.near, self.far
        ).T

    def forward(self) -> np.ndarray:
        return vector.normalise(self.target - self.position)

    def ray(self, ndc_x: float, ndc_y: float) -> tuple[np.ndarray, np.ndarray]:
        """Picking ray through a normalized device coordinate."""
        inv = np.linalg.inv(self.projection() @ self.view())
        near = inv @ np.array([ndc_x, ndc_y, -1.0, 1.0])
        far = inv @ np.array([ndc_x, ndc_y, 1.0, 1.0])
        near = near[:3] / near[3]
        far = far[:3] / far[3]
        return self.position.copy(), vector.normalise(far - near)


@dataclass
class SceneContext:
    """Everything the frame loop and input handlers share."""

    cfg: AppConfig
    params: Parameters
    camera: Camera
    rod: Node
    duck: Node | None = None
    water_time: float = 0.0
    draggables: list = field(default_factory=list)

    @property
    def rod_visible(self) -> bool:
        return bool(self.params.has_stick)

    def set_stick(self, visible: bool):
        self.params.has_stick = bool(visible)

    def rendered_nodes(self) -> list[Node]:
        nodes = []
        if self.duck is not None:
            nodes.append(self.duck)
        if self.rod_visible:
            nodes.append(self.rod)
        return nodes

    def pickable(self) -> list[Node]:
        rendered = self.rendered_nodes()
        return [n for n in self.draggables if n in rendered]


def make_duck(cfg: AppConfig, mesh: MeshData, hit_mesh=None) -> Node:
    duck = Node(
        "duck",
        mesh=mesh,
        material=Material(color=cfg.duck_color, roughness=cfg.duck_roughness),
    )
    duck.scale = np.full(3, cfg.scale, dtype=np.float64)
    duck.rotation = euler_xyz(0.0, cfg.duck_yaw, 0.0)
    duck.hit_mesh = hit_mesh
    return duck


def build_scene(cfg: AppConfig, params: Parameters | None = None) -> SceneContext:
    r = cfg.ratio
    camera = Camera(
        cfg.camera_fov, cfg.width / max(1, cfg.height), cfg.camera_near, cfg.camera_far
    )
    camera.position = np.array(cfg.camera_position, dtype=np.float64) * r
    camera.look_at((0.0, cfg.camera_target_height * r, 0.0))

    rod = Node(
        "rod",
        mesh=box(cfg.rod_size, cfg.rod_color),
        material=Material(color=cfg.rod_color, roughness=cfg.rod_roughness),
    )
    rod.position = np.array(cfg.rod_position, dtype=np.float64)

    return SceneContext(
        cfg=cfg,
        params=params or Parameters.from_config(cfg),
        camera=camera,
        rod=rod,
        draggables=[rod],
    )
