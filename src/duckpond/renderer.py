from __future__ import annotations
import moderngl
import numpy as np

from . import shaders as S
from .config import AppConfig
from .geometry import GpuMesh, fullscreen_quad, hex_to_linear, plane
from .logging import get_logger
from .scene import Camera, Node, SceneContext, to_gl

ENV_UNIT = 1
NORMALS_UNIT = 0


def set_uniform(prog, name: str, value):
    """Assign a uniform, skipping names the GLSL compiler optimized away."""
    u = prog.get(name, None)
    if u is not None:
        u.value = value


def write_matrix(prog, name: str, m: np.ndarray):
    u = prog.get(name, None)
    if u is not None:
        u.write(to_gl(m))


class Sky:
    def __init__(self, ctx: moderngl.Context, cfg: AppConfig, quad):
        self.ctx = ctx
        self.prog = ctx.program(vertex_shader=S.VS_QUAD, fragment_shader=S.FS_SKY)
        self.vao = ctx.simple_vertex_array(self.prog, quad, "in_vert")
        self.params = {
            "turbidity": cfg.sky_turbidity,
            "rayleigh": cfg.sky_rayleigh,
            "mie_coefficient": cfg.sky_mie_coefficient,
            "mie_directional_g": cfg.sky_mie_directional_g,
        }
        self.sun = (0.0, 1.0, 0.0)
        self.apply(self.prog)
        set_uniform(self.prog, "exposure", cfg.exposure)

    def apply(self, prog):
        """Copy the atmosphere and sun uniforms into `prog`."""
        for k, v in self.params.items():
            set_uniform(prog, k, v)
        set_uniform(prog, "sun_position", self.sun)

    def set_sun(self, direction):
        self.sun = tuple(direction)
        set_uniform(self.prog, "sun_position", self.sun)

    def render(self, camera: Camera):
        inv = np.linalg.inv(camera.projection() @ camera.view())
        write_matrix(self.prog, "inv_view_proj", inv)
        set_uniform(self.prog, "camera_position", tuple(camera.position))
        self.vao.render(moderngl.TRIANGLE_STRIP)


class EnvironmentBaker:
    """
    Captures the sky into a cube texture used for reflections and ambient light.

    Each bake allocates a new cube texture and releases the previous one, so
    repeated sun changes never accumulate GPU memory.
    """

    def __init__(self, ctx: moderngl.Context, cfg: AppConfig, quad):
        self.ctx = ctx
        self.size = cfg.env_map_size
        self.taps = cfg.env_map_taps
        self.logger = get_logger(__name__)
        self.prog = ctx.program(vertex_shader=S.VS_QUAD, fragment_shader=S.FS_ENV_BAKE)
        self.vao = ctx.simple_vertex_array(self.prog, quad, "in_vert")
        self.face_tex = ctx.texture((self.size, self.size), 4, dtype="f2")
        self.fbo = ctx.framebuffer(color_attachments=[self.face_tex])
        self.texture = None
        self.bakes = 0

    def bake(self, sky: Sky):
        sky.apply(self.prog)
        set_uniform(self.prog, "taps", self.taps)
        set_uniform(self.prog, "spread", 2.0 / self.size)

        viewport = self.ctx.viewport
        cube = self.ctx.texture_cube((self.size, self.size), 4, dtype="f2")
        self.fbo.use()
        for face in range(6):
            set_uniform(self.prog, "face", face)
            self.vao.render(moderngl.TRIANGLE_STRIP)
            cube.write(face, self.fbo.read(components=4, dtype="f2"))
        cube.filter = (moderngl.LINEAR, moderngl.LINEAR)
        self.ctx.screen.use()
        self.ctx.viewport = viewport

        if self.texture is not None:
            self.texture.release()
        self.texture = cube
        self.bakes += 1
        self.logger.debug(f"Environment map baked ({self.bakes})")
        return cube

    def release(self):
        if self.texture is not None:
            self.texture.release()
            self.texture = None
        self.fbo.release()
        self.face_tex.release()


class Water:
    def __init__(self, ctx: moderngl.Context, cfg: AppConfig):
        self.ctx = ctx
        self.prog = ctx.program(vertex_shader=S.VS_WATER, fragment_shader=S.FS_WATER)
        self.vbo = ctx.buffer(plane(cfg.water_extent).tobytes())
        self.vao = ctx.simple_vertex_array(self.prog, self.vbo, "in_position")
        # flat normal until the real map arrives
        self.normals = ctx.texture((1, 1), 3, bytes([128, 128, 255]))
        self.has_normals = False

        set_uniform(self.prog, "exposure", cfg.exposure)
        set_uniform(self.prog, "water_color", hex_to_linear(cfg.water_color))
        set_uniform(self.prog, "sun_color", hex_to_linear(cfg.sun_color))
        set_uniform(self.prog, "distortion_scale", cfg.distortion_scale)
        set_uniform(self.prog, "size", cfg.water_size)
        set_uniform(self.prog, "time", 0.0)

    @property
    def uniforms(self):
        """Live uniform objects; the control panel edits their `.value`."""
        return self.prog

    def set_normals(self, rgb: np.ndarray):
        h, w = rgb.shape[:2]
        tex = self.ctx.texture((w, h), 3, rgb.tobytes())
        tex.repeat_x = True
        tex.repeat_y = True
        tex.build_mipmaps()
        tex.filter = (moderngl.LINEAR_MIPMAP_LINEAR, moderngl.LINEAR)
        self.normals.release()
        self.normals = tex
        self.has_normals = True

    def set_sun(self, direction):
        set_uniform(self.prog, "sun_direction", tuple(direction))

    def set_time(self, t: float):
        set_uniform(self.prog, "time", float(t))

    def render(self, camera: Camera):
        write_matrix(self.prog, "model", np.eye(4))
        write_matrix(self.prog, "view", camera.view())
        write_matrix(self.prog, "projection", camera.projection())
        set_uniform(self.prog, "eye", tuple(camera.position))
        set_uniform(self.prog, "normal_sampler", NORMALS_UNIT)
        set_uniform(self.prog, "env_map", ENV_UNIT)
        self.normals.use(location=NORMALS_UNIT)
        self.vao.render(moderngl.TRIANGLE_STRIP)


class MeshPass:
    def __init__(self, ctx: moderngl.Context, cfg: AppConfig):
        self.ctx = ctx
        self.prog = ctx.program(vertex_shader=S.VS_MESH, fragment_shader=S.FS_MESH)
        set_uniform(self.prog, "exposure", cfg.exposure)
        set_uniform(self.prog, "sun_color", hex_to_linear(cfg.sun_color))
        self.uploaded = []

    def draw(self, node: Node, camera: Camera, sun):
        if node.mesh is None:
            return
        if node.gpu is None:
            node.gpu = GpuMesh(self.ctx, self.prog, node.mesh)
            self.uploaded.append(node)
        write_matrix(self.prog, "model", node.matrix())
        write_matrix(self.prog, "view", camera.view())
        write_matrix(self.prog, "projection", camera.projection())
        set_uniform(self.prog, "eye", tuple(camera.position))
        set_uniform(self.prog, "sun_direction", tuple(sun))
        set_uniform(self.prog, "roughness", float(node.material.roughness))
        set_uniform(self.prog, "emissive", tuple(node.material.emissive))
        set_uniform(self.prog, "env_map", ENV_UNIT)
        node.gpu.render()

    def release(self):
        for node in self.uploaded:
            node.gpu.release()
            node.gpu = None
        self.uploaded.clear()


class Renderer:
    def __init__(self, ctx: moderngl.Context, cfg: AppConfig):
        self.ctx = ctx
        self.cfg = cfg
        self.quad = fullscreen_quad(ctx)
        self.sky = Sky(ctx, cfg, self.quad)
        self.water = Water(ctx, cfg)
        self.meshes = MeshPass(ctx, cfg)
        self.environment = EnvironmentBaker(ctx, cfg, self.quad)
        self.frames = 0

    def resize(self, width: int, height: int):
        self.ctx.viewport = (0, 0, max(1, width), max(1, height))

    def render(self, scene: SceneContext):
        camera = scene.camera
        self.ctx.clear(0.0, 0.0, 0.0, 1.0, depth=1.0)

        self.ctx.disable(moderngl.DEPTH_TEST)
        self.sky.render(camera)

        self.ctx.enable(moderngl.DEPTH_TEST)
        if self.environment.texture is not None:
            self.environment.texture.use(location=ENV_UNIT)
        self.water.render(camera)
        for node in scene.rendered_nodes():
            self.meshes.draw(node, camera, self.sky.sun)
        self.frames += 1

    def release(self):
        self.meshes.release()
        self.environment.release()
