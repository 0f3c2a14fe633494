from __future__ import annotations
import argparse
import shutil
import sys
import time

import glfw, moderngl
import pygame

from . import speech
from .animation import AnimationLoop, PendingAssets
from .assets import AssetLoader
from .config import AppConfig
from .debug import DebugOverlay
from .gui import ControlPanel, build_panel
from .interaction import InteractionLayer
from .logging import get_logger, setup_logging
from .profiler import get_profiler
from .renderer import Renderer
from .scene import build_scene
from .sound import SoundPlayer, init_audio
from .speech import SpeechBridge, UtteranceSlot
from .sun import SunUpdater

KEYS_HELP = (
    "G panel  Up/Down select  Left/Right adjust (Shift x10)  Enter toggle  "
    "M microphone  ESC quit"
)


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Duck Pond")
    p.add_argument("--width", type=int, default=None, help="Window width. Default: from config.")
    p.add_argument("--height", type=int, default=None, help="Window height. Default: from config.")
    p.add_argument(
        "--fullscreen",
        action="store_true",
        help="Open in fullscreen on the primary monitor.",
    )
    p.add_argument(
        "--assets",
        type=str,
        default=None,
        help="Directory holding models/, textures/ and sounds/. Default: from config.",
    )
    p.add_argument(
        "--listen",
        action="store_true",
        help="Start listening for speech immediately (otherwise press M).",
    )
    p.add_argument(
        "--debug",
        action="store_true",
        help="Show the control panel and frame stats at startup.",
    )
    p.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Minimum log level. Default: from config.",
    )
    p.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Log to a file instead of the console.",
    )
    return p.parse_args(argv)


def build_config(args) -> AppConfig:
    cfg = AppConfig()
    if args.width is not None:
        cfg.width = max(1, args.width)
    if args.height is not None:
        cfg.height = max(1, args.height)
    if args.assets is not None:
        cfg.assets_dir = args.assets
    if args.listen:
        cfg.listen_on_start = True
    if args.debug:
        cfg.debug = True
    if args.log_level is not None:
        cfg.log_level = args.log_level
    if args.log_file is not None:
        cfg.log_file = args.log_file
    return cfg


def handle_key(key, action, mods, panel: ControlPanel) -> str | None:
    """Panel and microphone keys. Returns the name of the action taken."""
    if action not in (glfw.PRESS, glfw.REPEAT):
        return None
    fast = bool(mods & glfw.MOD_SHIFT)
    if key == glfw.KEY_G and action == glfw.PRESS:
        panel.toggle()
        return "panel"
    if key == glfw.KEY_M and action == glfw.PRESS:
        speech.toggle_listening()
        return "listen"
    if not panel.visible:
        return None
    if key == glfw.KEY_UP:
        panel.select(-1)
        return "select"
    if key == glfw.KEY_DOWN:
        panel.select(1)
        return "select"
    if key == glfw.KEY_LEFT:
        panel.nudge(-1, fast)
        return "nudge"
    if key == glfw.KEY_RIGHT:
        panel.nudge(1, fast)
        return "nudge"
    if key in (glfw.KEY_ENTER, glfw.KEY_SPACE) and action == glfw.PRESS:
        panel.activate()
        return "activate"
    return None


def frame_stats(fps: float, renderer, player, pending: PendingAssets, debug: bool) -> list[str]:
    """Lines shown above the control panel."""
    stats = [f"FPS: {fps:.1f}"]
    if not debug:
        return stats
    duck = pending.model
    if duck is None or duck.failed:
        duck_state = "missing"
    else:
        duck_state = "loaded" if duck.ready else "loading"
    stats += [
        f"frames: {renderer.frames}",
        f"duck: {duck_state}",
        f"water normals: {'map' if renderer.water.has_normals else 'flat'}",
        f"quacks: {player.plays}",
    ]
    return stats + get_profiler().lines()


def _linux_gl_hint():
    if sys.platform.startswith("linux") and shutil.which("glxinfo") is None:
        return (
            "Linux OpenGL loaders not found.\n"
            "Install the dev libraries:\n"
            "  sudo apt install -y libgl1-mesa-dev libegl1-mesa-dev libglvnd-dev mesa-utils\n"
        )
    return None


def main(argv=None):
    # --- CLI / config ---
    args = parse_args(argv)
    cfg = build_config(args)

    # --- logging ---
    setup_logging(cfg.log_level, cfg.log_file)
    logger = get_logger(__name__)
    logger.info(f"SCALE {cfg.scale}")
    logger.info(f"RATIO {cfg.ratio}")

    # --- window / context ---
    if not glfw.init():
        raise RuntimeError("GLFW init failed")
    glfw.window_hint(glfw.CONTEXT_VERSION_MAJOR, 3)
    glfw.window_hint(glfw.CONTEXT_VERSION_MINOR, 3)
    glfw.window_hint(glfw.OPENGL_PROFILE, glfw.OPENGL_CORE_PROFILE)
    glfw.window_hint(glfw.OPENGL_FORWARD_COMPAT, True)

    monitor = None
    if args.fullscreen:
        monitor = glfw.get_primary_monitor()
        mode = glfw.get_video_mode(monitor)
        cfg.width, cfg.height = mode.size.width, mode.size.height

    win = glfw.create_window(cfg.width, cfg.height, cfg.title, monitor, None)
    glfw.make_context_current(win)
    glfw.swap_interval(1)

    try:
        ctx = moderngl.create_context()
    except Exception:
        logger.error(_linux_gl_hint() or "Failed to create ModernGL context.")
        glfw.terminate()
        raise

    fb_w, fb_h = glfw.get_framebuffer_size(win)
    win_w, win_h = glfw.get_window_size(win)

    # --- scene ---
    scene = build_scene(cfg)
    scene.camera.set_aspect(fb_w, fb_h)
    renderer = Renderer(ctx, cfg)
    renderer.resize(fb_w, fb_h)

    audio_ok = init_audio()
    player = SoundPlayer(cfg)

    loader = AssetLoader(cfg.assets_dir, cfg.loader_workers)
    pending = PendingAssets(
        model=loader.model(cfg.duck_model, cfg.duck_color),
        normals=loader.image(cfg.water_normals),
        sound=loader.sound(cfg.quack_sound) if audio_ok else None,
    )

    sun = SunUpdater(scene.params, renderer)
    sun.update()

    panel = build_panel(
        scene.params, renderer.water.uniforms, sun, cfg.panel_fast_step, visible=cfg.debug
    )
    overlay = DebugOverlay(ctx, cfg)
    overlay.resize(fb_w, fb_h)

    # --- speech ---
    slot = UtteranceSlot()
    bridge = SpeechBridge(slot, cfg)
    speech.install(bridge if bridge.available else None)
    if cfg.listen_on_start:
        speech.start_listening()

    loop = AnimationLoop(scene, renderer, player, slot, pending)
    interaction = InteractionLayer(
        scene, player, lambda: renderer.render(scene), win_w, win_h
    )

    # --- input ---
    def on_cursor(_win, x, y):
        interaction.on_pointer_move(x, y)

    def on_mouse(_win, button, action, _mods):
        if button != glfw.MOUSE_BUTTON_LEFT:
            return
        if action == glfw.PRESS:
            interaction.on_press()
        elif action == glfw.RELEASE:
            interaction.on_release()
            interaction.on_click()

    def on_window_size(_win, w, h):
        interaction.resize(w, h)

    def on_framebuffer_size(_win, w, h):
        if w == 0 or h == 0:
            return
        scene.camera.set_aspect(w, h)
        renderer.resize(w, h)
        overlay.resize(w, h)

    def on_key(_win, key, _scancode, action, mods):
        if key == glfw.KEY_ESCAPE and action == glfw.PRESS:
            glfw.set_window_should_close(win, True)
            return
        handle_key(key, action, mods, panel)

    glfw.set_cursor_pos_callback(win, on_cursor)
    glfw.set_mouse_button_callback(win, on_mouse)
    glfw.set_window_size_callback(win, on_window_size)
    glfw.set_framebuffer_size_callback(win, on_framebuffer_size)
    glfw.set_key_callback(win, on_key)

    logger.info(KEYS_HELP)

    profiler = get_profiler()
    prev_t = time.time()
    frame_count = 0
    log_interval = 1.0  # seconds
    time_since_log = 0.0
    fps = 0.0

    try:
        while not glfw.window_should_close(win):
            with profiler.record("frame"):
                glfw.poll_events()
                loop.tick(glfw.get_time())

                if panel.visible:
                    overlay.draw_panel(
                        panel, frame_stats(fps, renderer, player, pending, cfg.debug)
                    )

            now = time.time()
            actual_dt = now - prev_t
            prev_t = now

            frame_count += 1
            time_since_log += actual_dt
            if time_since_log >= log_interval:
                fps = frame_count / time_since_log
                frame_t_ms = (time_since_log / frame_count) * 1000.0
                logger.info(f"FPS: {fps:.2f} | frame_t: {frame_t_ms:.2f}ms")
                if cfg.debug:
                    profiler.log_stats()
                frame_count = 0
                time_since_log = 0.0

            with profiler.record("swap"):
                glfw.swap_buffers(win)
    finally:
        speech.stop_listening()
        speech.install(None)
        loader.shutdown()
        renderer.release()
        if audio_ok:
            pygame.mixer.quit()
        glfw.terminate()


if __name__ == "__main__":
    main()
