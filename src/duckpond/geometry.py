from __future__ import annotations
from dataclasses import dataclass

import moderngl
import numpy as np


@dataclass
class MeshData:
    """CPU-side triangle mesh: float32 positions/normals/colors, uint32 indices."""

    positions: np.ndarray  # (n, 3)
    normals: np.ndarray  # (n, 3)
    colors: np.ndarray  # (n, 3) linear RGB
    indices: np.ndarray  # (m * 3,)

    @property
    def bounds(self) -> tuple[np.ndarray, np.ndarray]:
        return self.positions.min(axis=0), self.positions.max(axis=0)

    def interleaved(self) -> np.ndarray:
        return np.hstack([self.positions, self.normals, self.colors]).astype("f4")


def hex_to_linear(value: int) -> tuple[float, float, float]:
    """0xRRGGBB (sRGB) -> linear RGB floats."""
    srgb = np.array(
        [(value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF], dtype=np.float64
    ) / 255.0
    lin = np.where(
        srgb <= 0.04045, srgb / 12.92, ((srgb + 0.055) / 1.055) ** 2.4
    )
    return tuple(float(c) for c in lin)


def box(size=(1.0, 1.0, 1.0), color=(1.0, 1.0, 1.0)) -> MeshData:
    """Axis-aligned box centred on the origin, four vertices per face."""
    hx, hy, hz = (0.5 * float(s) for s in size)
    # (normal, u axis, v axis) per face
    faces = [
        ((1, 0, 0), (0, 0, -1), (0, 1, 0)),
        ((-1, 0, 0), (0, 0, 1), (0, 1, 0)),
        ((0, 1, 0), (1, 0, 0), (0, 0, -1)),
        ((0, -1, 0), (1, 0, 0), (0, 0, 1)),
        ((0, 0, 1), (1, 0, 0), (0, 1, 0)),
        ((0, 0, -1), (-1, 0, 0), (0, 1, 0)),
    ]
    half = np.array([hx, hy, hz])
    positions, normals, indices = [], [], []
    for n, u, v in faces:
        n, u, v = np.array(n), np.array(u), np.array(v)
        base = len(positions)
        for su, sv in ((-1, -1), (1, -1), (1, 1), (-1, 1)):
            positions.append((n + su * u + sv * v) * half)
            normals.append(n)
        indices += [base, base + 1, base + 2, base, base + 2, base + 3]
    positions = np.array(positions, dtype="f4")
    return MeshData(
        positions=positions,
        normals=np.array(normals, dtype="f4"),
        colors=np.tile(np.array(color, dtype="f4"), (len(positions), 1)),
        indices=np.array(indices, dtype="u4"),
    )


def plane(extent: float) -> np.ndarray:
    """Square in the xz plane at y = 0, as a 4-vertex triangle strip."""
    h = 0.5 * float(extent)
    return np.array(
        [-h, 0.0, h, h, 0.0, h, -h, 0.0, -h, h, 0.0, -h], dtype="f4"
    ).reshape(4, 3)


def fullscreen_quad(ctx):
    v = np.array([-1, -1, 1, -1, -1, 1, 1, 1], dtype="f4")
    return ctx.buffer(v.tobytes())


class GpuMesh:
    """Vertex/index buffers for a MeshData bound to a mesh program."""

    def __init__(self, ctx: moderngl.Context, prog, data: MeshData):
        self.data = data
        self.vbo = ctx.buffer(data.interleaved().tobytes())
        self.ibo = ctx.buffer(data.indices.astype("u4").tobytes())
        self.vao = ctx.vertex_array(
            prog,
            [(self.vbo, "3f 3f 3f", "in_position", "in_normal", "in_color")],
            index_buffer=self.ibo,
            index_element_size=4,
        )

    def render(self):
        self.vao.render(moderngl.TRIANGLES)

    def release(self):
        for obj in (self.vao, self.ibo, self.vbo):
            obj.release()
