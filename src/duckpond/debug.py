from __future__ import annotations
import os
import freetype
import moderngl
import numpy as np

from . import shaders as S
from .config import AppConfig
from .logging import get_logger

LINE_HEIGHT = 18
TEXT_COLOR = (1.0, 1.0, 1.0)
SELECTED_COLOR = (1.0, 0.85, 0.2)
HEADER_COLOR = (0.6, 0.8, 1.0)


class DebugOverlay:
    """Screen-space text for the control panel and frame stats."""

    def __init__(self, ctx: moderngl.Context, cfg: AppConfig):
        self.ctx = ctx
        self.cfg = cfg
        self.width = cfg.width
        self.height = cfg.height
        self.logger = get_logger(__name__)
        self.prog = self.ctx.program(vertex_shader=S.VS_TEXT, fragment_shader=S.FS_TEXT)

        self.max_chars = 2048
        # 6 vertices per char, 4 floats per vertex (x, y, u, v)
        self.vertices = np.zeros((self.max_chars * 6, 4), dtype="f4")
        self.vbo = self.ctx.buffer(self.vertices.tobytes(), dynamic=True)
        self.vao = self.ctx.vertex_array(
            self.prog, [(self.vbo, "2f 2f", "in_vert", "in_uv")]
        )
        self.char_count = 0

        self.glyphs = {}
        self.font_texture = None
        self.font_loaded = False
        font_path = self._find_font_path()

        if font_path:
            try:
                self._load_font(font_path, cfg.panel_font_size)
                self.logger.info(f"Loaded font: {font_path}")
            except (freetype.FT_Exception, OSError) as e:
                self.logger.warning(f"Failed to load font '{font_path}': {e}")
        else:
            self.logger.warning(
                "No font found for the control panel; controls still work but are not drawn."
            )

    def _find_font_path(self) -> str | None:
        for path in [self.cfg.panel_font, *self.cfg.extra_fonts]:
            if os.path.exists(path):
                return path
            self.logger.debug(f"Font not found at: {path}")
        return None

    def _load_font(self, font_path: str, size: int = 16):
        face = freetype.Face(font_path)
        face.set_pixel_sizes(0, size)

        # one pass to size the atlas, one to fill it
        bitmaps = {}
        width, height = 0, 0
        for code in range(32, 127):
            face.load_char(chr(code), freetype.FT_LOAD_RENDER)
            glyph = face.glyph
            bm = glyph.bitmap
            w, h = bm.width, bm.rows
            pixels = None
            if w > 0 and h > 0:
                pixels = np.array(bm.buffer, dtype="u1").reshape((h, w))
            bitmaps[chr(code)] = (
                pixels,
                (w, h),
                (glyph.bitmap_left, glyph.bitmap_top),
                glyph.advance.x >> 6,
            )
            width += w
            height = max(height, h)

        if not width or not height:
            self.logger.warning("Font atlas is empty; panel text will not render.")
            return

        atlas = np.zeros((height, width), dtype="u1")
        x = 0
        for ch, (pixels, (w, h), bearing, advance) in bitmaps.items():
            if pixels is not None:
                atlas[0:h, x : x + w] = pixels
            self.glyphs[ch] = {
                "size": (w, h),
                "bearing": bearing,
                "advance": advance,
                "u": x / width,
            }
            x += w

        self.font_texture = self.ctx.texture(
            (width, height), 1, atlas.tobytes(), dtype="f1"
        )
        self.font_texture.filter = (moderngl.LINEAR, moderngl.LINEAR)
        self.font_texture.repeat_x = False
        self.font_texture.repeat_y = False
        self.font_loaded = True

    def resize(self, width: int, height: int):
        self.width, self.height = max(1, width), max(1, height)

    def _add_char_quad(self, ch, x, y):
        g = self.glyphs[ch]
        w, h = g["size"]
        if w == 0 or h == 0:
            return

        xpos = x + g["bearing"][0]
        ypos = y - (h - g["bearing"][1])
        u0 = g["u"]
        u1 = u0 + w / self.font_texture.width
        v1 = h / self.font_texture.height

        # pixels -> normalized device coordinates
        px = (xpos / self.width) * 2.0 - 1.0
        py = (ypos / self.height) * 2.0 - 1.0
        pw = (w / self.width) * 2.0
        ph = (h / self.height) * 2.0

        i = self.char_count * 6
        self.vertices[i : i + 6] = (
            (px, py + ph, u0, 0.0),
            (px, py, u0, v1),
            (px + pw, py, u1, v1),
            (px, py + ph, u0, 0.0),
            (px + pw, py, u1, v1),
            (px + pw, py + ph, u1, 0.0),
        )
        self.char_count += 1

    def draw(self, lines: list[str], x: int, y: int, color=TEXT_COLOR) -> int:
        """Draws lines top-down starting at baseline (x, y); returns the next y."""
        if not self.font_loaded:
            return y - LINE_HEIGHT * len(lines)
        self.char_count = 0
        cursor_y = y
        for line in lines:
            cursor_x = x
            for ch in line:
                g = self.glyphs.get(ch)
                if g is None or self.char_count >= self.max_chars:
                    continue
                self._add_char_quad(ch, cursor_x, cursor_y)
                cursor_x += g["advance"]
            cursor_y -= LINE_HEIGHT

        if self.char_count > 0:
            self.vbo.write(self.vertices[: self.char_count * 6].tobytes())
            self.prog["textColor"].value = color
            self.prog["fontTexture"].value = 0
            self.font_texture.use(location=0)
            self.ctx.disable(moderngl.DEPTH_TEST)
            self.ctx.enable(moderngl.BLEND)
            self.ctx.blend_func = moderngl.SRC_ALPHA, moderngl.ONE_MINUS_SRC_ALPHA
            self.vao.render(moderngl.TRIANGLES, vertices=self.char_count * 6)
            self.ctx.disable(moderngl.BLEND)
        return cursor_y

    def draw_panel(self, panel, stats: list[str], x: int = 10, y: int | None = None):
        if y is None:
            y = self.height - 20
        y = self.draw(stats, x, y)
        if not panel.visible:
            return
        y -= LINE_HEIGHT // 2
        for text, selected in panel.lines():
            color = SELECTED_COLOR if selected else (
                HEADER_COLOR if text.startswith("[") else TEXT_COLOR
            )
            y = self.draw([text], x, y, color)
