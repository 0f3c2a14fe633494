from concurrent.futures import Future
from types import SimpleNamespace

import glfw
import pytest
from unittest.mock import MagicMock, patch

from duckpond import app, speech
from duckpond.animation import PendingAssets
from duckpond.assets import Asset
from duckpond.config import AppConfig
from duckpond.gui import ControlPanel
from duckpond.scene import build_scene
from duckpond.sound import SoundPlayer
from duckpond.sun import sun_direction


@pytest.fixture
def mock_glfw():
    """Provides a mocked glfw module."""
    with patch("duckpond.app.glfw") as mock:
        mock.init.return_value = True
        mock.get_primary_monitor.return_value = MagicMock()
        mock.get_video_mode.return_value = MagicMock(
            size=MagicMock(width=1920, height=1080)
        )
        mock.create_window.return_value = MagicMock()
        mock.get_framebuffer_size.return_value = (1280, 720)
        mock.get_window_size.return_value = (1280, 720)
        mock.get_time.return_value = 0.0
        # Simulate a few frames and then exit
        mock.window_should_close.side_effect = [False, False, True]
        yield mock


@pytest.fixture
def mock_moderngl():
    """Provides a mocked moderngl module."""
    with patch("duckpond.app.moderngl") as mock:
        mock.create_context.return_value = MagicMock()
        yield mock


@pytest.fixture
def mock_runtime():
    """Mocks the GPU, audio, speech and asset layers used by main()."""
    with (
        patch("duckpond.app.setup_logging"),
        patch("duckpond.app.Renderer") as renderer,
        patch("duckpond.app.DebugOverlay") as overlay,
        patch("duckpond.app.SpeechBridge") as bridge,
        patch("duckpond.app.AssetLoader") as loader,
        patch("duckpond.app.init_audio", return_value=False) as init_audio,
    ):
        for kind in ("model", "image", "sound"):
            getattr(loader.return_value, kind).return_value.take.return_value = None
        yield {
            "renderer": renderer,
            "overlay": overlay,
            "bridge": bridge,
            "loader": loader,
            "init_audio": init_audio,
        }
    speech.install(None)


def test_app_main_defaults(mock_glfw, mock_moderngl, mock_runtime):
    """Test the main function with default arguments."""
    app.main([])
    renderer = mock_runtime["renderer"].return_value

    # Check that the main loop runs
    assert mock_glfw.poll_events.call_count == 2
    assert mock_glfw.swap_buffers.call_count == 2
    assert renderer.render.call_count == 2
    # the initial sun pushes a bake before the first frame
    renderer.environment.bake.assert_called_once()
    # panel is hidden unless --debug
    mock_runtime["overlay"].return_value.draw_panel.assert_not_called()
    # teardown
    mock_runtime["loader"].return_value.shutdown.assert_called_once()
    renderer.release.assert_called_once()
    mock_glfw.terminate.assert_called_once()


def test_app_main_loads_assets_from_dir(mock_glfw, mock_moderngl, mock_runtime):
    app.main(["--assets", "/data/pond"])
    mock_runtime["loader"].assert_called_once()
    assert mock_runtime["loader"].call_args.args[0] == "/data/pond"
    loader = mock_runtime["loader"].return_value
    loader.model.assert_called_once()
    loader.image.assert_called_once()
    # no audio device, so the quack clip is never requested
    loader.sound.assert_not_called()


def test_app_main_with_audio(mock_glfw, mock_moderngl, mock_runtime):
    mock_runtime["init_audio"].return_value = True
    with patch("duckpond.app.pygame") as mock_pygame:
        app.main([])
        mock_runtime["loader"].return_value.sound.assert_called_once()
        mock_pygame.mixer.quit.assert_called_once()


def test_app_main_debug_mode(mock_glfw, mock_moderngl, mock_runtime):
    """Test the main function with debug mode enabled."""
    app.main(["--debug"])
    overlay = mock_runtime["overlay"].return_value
    assert overlay.draw_panel.call_count == 2


def test_app_main_fullscreen(mock_glfw, mock_moderngl, mock_runtime):
    app.main(["--fullscreen"])
    args = mock_glfw.create_window.call_args.args
    assert args[0] == 1920
    assert args[1] == 1080
    assert args[3] is mock_glfw.get_primary_monitor.return_value


def test_app_main_listen_starts_speech(mock_glfw, mock_moderngl, mock_runtime):
    app.main(["--listen"])
    bridge = mock_runtime["bridge"].return_value
    bridge.start.assert_called_once()
    bridge.stop.assert_called_once()


def test_app_main_escape_closes(mock_glfw, mock_moderngl, mock_runtime):
    app.main([])
    on_key = mock_glfw.set_key_callback.call_args.args[1]
    win = mock_glfw.create_window.return_value
    on_key(win, mock_glfw.KEY_ESCAPE, 0, mock_glfw.PRESS, 0)
    mock_glfw.set_window_should_close.assert_called_once_with(win, True)


def test_app_main_context_failure(mock_glfw, mock_moderngl, mock_runtime):
    mock_moderngl.create_context.side_effect = Exception("no GL")
    with pytest.raises(Exception, match="no GL"):
        app.main([])
    mock_glfw.terminate.assert_called_once()
    mock_runtime["renderer"].assert_not_called()


def test_build_config_overrides():
    args = app.parse_args(
        ["--width", "640", "--height", "0", "--debug", "--log-level", "DEBUG", "--log-file", "pond.log"]
    )
    cfg = app.build_config(args)
    assert cfg.width == 640
    assert cfg.height == 1
    assert cfg.debug is True
    assert cfg.log_level == "DEBUG"
    assert cfg.log_file == "pond.log"
    assert cfg.listen_on_start is False


def test_build_config_defaults():
    cfg = app.build_config(app.parse_args([]))
    assert cfg.width == 1280
    assert cfg.assets_dir == "assets"


def _panel():
    panel = ControlPanel(visible=True)
    target = MagicMock(a=1.0, b=False)
    panel.add_number("F", "a", target, "a", 0.0, 100.0, 0.1)
    panel.add_bool("F", "b", target, "b")
    return panel, target


def test_handle_key_panel_navigation():
    panel, target = _panel()
    assert app.handle_key(glfw.KEY_RIGHT, glfw.PRESS, 0, panel) == "nudge"
    assert target.a == pytest.approx(1.1)
    assert app.handle_key(glfw.KEY_LEFT, glfw.REPEAT, glfw.MOD_SHIFT, panel) == "nudge"
    assert target.a == pytest.approx(0.1)
    assert app.handle_key(glfw.KEY_DOWN, glfw.PRESS, 0, panel) == "select"
    assert app.handle_key(glfw.KEY_ENTER, glfw.PRESS, 0, panel) == "activate"
    assert target.b is True


def test_handle_key_ignores_release_and_hidden_panel():
    panel, target = _panel()
    assert app.handle_key(glfw.KEY_RIGHT, glfw.RELEASE, 0, panel) is None
    assert app.handle_key(glfw.KEY_G, glfw.PRESS, 0, panel) == "panel"
    assert panel.visible is False
    assert app.handle_key(glfw.KEY_RIGHT, glfw.PRESS, 0, panel) is None
    assert target.a == 1.0


def test_handle_key_microphone_toggle():
    panel, _ = _panel()
    bridge = MagicMock(listening=False)
    speech.install(bridge)
    try:
        assert app.handle_key(glfw.KEY_M, glfw.PRESS, 0, panel) == "listen"
        bridge.start.assert_called_once()
        # holding the key does not retrigger
        assert app.handle_key(glfw.KEY_M, glfw.REPEAT, 0, panel) is None
    finally:
        speech.install(None)


def test_app_main_first_frame_uses_initial_sun(mock_glfw, mock_moderngl, mock_runtime):
    scenes = []

    def keep_scene(cfg):
        scenes.append(build_scene(cfg))
        return scenes[-1]

    with patch("duckpond.app.build_scene", side_effect=keep_scene):
        app.main([])

    renderer = mock_runtime["renderer"].return_value
    expected = tuple(float(c) for c in sun_direction(2.0, 180.0))
    assert renderer.sky.set_sun.call_args_list[0].args[0] == pytest.approx(expected)
    assert renderer.water.set_sun.call_args_list[0].args[0] == pytest.approx(expected)
    # the sun is set and baked before the first frame renders
    assert renderer.method_calls.index(
        ("environment.bake", (renderer.sky,), {})
    ) < renderer.method_calls.index(("render", (scenes[0],), {}))
    assert scenes[0].rod_visible is False
    assert scenes[0].params.elevation == 2.0
    assert scenes[0].params.azimuth == 180.0


def test_frame_stats_without_debug():
    assert app.frame_stats(59.94, None, None, PendingAssets(), debug=False) == ["FPS: 59.9"]


def test_frame_stats_reports_scene_state():
    renderer = SimpleNamespace(frames=120, water=SimpleNamespace(has_normals=False))
    player = SoundPlayer(AppConfig(), seed=1)
    player.set_clip(MagicMock())
    player.play()
    pending = PendingAssets(model=Asset("model", "duck.glb", Future()))

    stats = app.frame_stats(60.0, renderer, player, pending, debug=True)
    assert stats[:5] == [
        "FPS: 60.0",
        "frames: 120",
        "duck: loading",
        "water normals: flat",
        "quacks: 1",
    ]

    pending.model.future.set_result(("mesh", "hit"))
    pending.model.poll()
    renderer.water.has_normals = True
    stats = app.frame_stats(60.0, renderer, player, pending, debug=True)
    assert "duck: loaded" in stats
    assert "water normals: map" in stats


def test_frame_stats_failed_model():
    renderer = SimpleNamespace(frames=0, water=SimpleNamespace(has_normals=False))
    future = Future()
    future.set_exception(IOError("gone"))
    model = Asset("model", "duck.glb", future)
    model.poll()
    stats = app.frame_stats(0.0, renderer, SoundPlayer(AppConfig()), PendingAssets(model=model), True)
    assert "duck: missing" in stats
