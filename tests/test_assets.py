import logging
from concurrent.futures import Future, wait

import cv2
import numpy as np
import pytest
import trimesh

from duckpond.assets import (
    Asset,
    AssetLoader,
    mesh_from_trimesh,
    read_image,
    read_model,
    read_sound,
)


def _done(value=None, error=None) -> Future:
    f = Future()
    if error is not None:
        f.set_exception(error)
    else:
        f.set_result(value)
    return f


def test_asset_pending_returns_none():
    asset = Asset("model", "duck.glb", Future())
    assert asset.poll() is None
    assert asset.ready is False
    assert asset.failed is False


def test_asset_take_hands_value_out_once():
    asset = Asset("sound", "quack.mp3", _done("clip"))
    assert asset.take() == "clip"
    assert asset.take() is None
    # poll still reports the value
    assert asset.poll() == "clip"
    assert asset.ready


def test_asset_failure_logged_once(caplog):
    asset = Asset("image", "missing.jpg", _done(error=IOError("nope")))
    with caplog.at_level(logging.ERROR, logger="duckpond.assets"):
        assert asset.poll() is None
        assert asset.poll() is None
    assert asset.failed
    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(errors) == 1
    assert "missing.jpg" in errors[0].getMessage()


def test_read_image_flips_to_gl_rows(tmp_path):
    img = np.zeros((4, 2, 3), dtype=np.uint8)
    img[0, :] = (255, 0, 0)  # top row blue in BGR
    path = str(tmp_path / "normals.png")
    cv2.imwrite(path, img)

    rgb = read_image(path)
    assert rgb.shape == (4, 2, 3)
    # top row is now last, and channels are RGB
    np.testing.assert_array_equal(rgb[-1, 0], (0, 0, 255))
    np.testing.assert_array_equal(rgb[0, 0], (0, 0, 0))


def test_read_image_missing_raises(tmp_path):
    with pytest.raises(IOError):
        read_image(str(tmp_path / "absent.jpg"))


def test_read_sound_missing_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_sound(str(tmp_path / "absent.mp3"))


def test_read_model_roundtrips_glb(tmp_path):
    path = str(tmp_path / "cube.glb")
    trimesh.creation.box(extents=(1.0, 1.0, 1.0)).export(path)

    data, tm = read_model(path, default_color=(0.5, 0.5, 0.5))
    assert data.positions.shape[1] == 3
    assert len(data.indices) == 3 * len(tm.faces)
    lo, hi = data.bounds
    np.testing.assert_allclose(hi - lo, (1.0, 1.0, 1.0), atol=1e-5)


def test_mesh_from_trimesh_uses_default_color_without_visuals():
    tm = trimesh.Trimesh(
        vertices=[[0, 0, 0], [1, 0, 0], [0, 1, 0]], faces=[[0, 1, 2]], process=False
    )
    tm.visual = trimesh.visual.ColorVisuals()
    data = mesh_from_trimesh(tm, default_color=(0.2, 0.4, 0.6))
    assert data.colors.shape == (3, 3)
    np.testing.assert_array_equal(data.indices, (0, 1, 2))


def test_loader_reports_missing_file(tmp_path):
    loader = AssetLoader(root=str(tmp_path), workers=1)
    try:
        asset = loader.sound("sounds/quack.mp3")
        wait([asset.future])
        assert asset.poll() is None
        assert asset.failed
        assert asset.path.endswith("quack.mp3")
    finally:
        loader.shutdown()


def test_loader_decodes_image(tmp_path):
    cv2.imwrite(str(tmp_path / "n.png"), np.full((2, 2, 3), 128, np.uint8))
    loader = AssetLoader(root=str(tmp_path), workers=1)
    try:
        asset = loader.image("n.png")
        wait([asset.future])
        assert asset.take().shape == (2, 2, 3)
    finally:
        loader.shutdown()
