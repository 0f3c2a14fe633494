from unittest.mock import MagicMock

import pytest, moderngl
from duckpond.config import AppConfig


@pytest.fixture(scope="module")
def ctx():
    try:
        return moderngl.create_standalone_context()
    except Exception as e:
        pytest.skip(f"Could not create headless GL context: {e}")


@pytest.fixture
def cfg():
    return AppConfig()


@pytest.fixture
def small_cfg():
    # tiny, fast config for GL-backed tests
    return AppConfig(width=160, height=90, env_map_size=8, env_map_taps=1)


@pytest.fixture
def mock_ctx():
    """A ModernGL context stand-in whose factories return fresh mocks."""
    ctx = MagicMock()
    ctx.program.side_effect = lambda **_: MagicMock()
    ctx.texture.side_effect = lambda *a, **k: MagicMock()
    ctx.texture_cube.side_effect = lambda *a, **k: MagicMock()
    ctx.buffer.side_effect = lambda *a, **k: MagicMock()
    return ctx
