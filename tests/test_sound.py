import random
from unittest.mock import MagicMock, patch

import pygame

from duckpond.sound import SoundPlayer, init_audio, pick_volume


def test_pick_volume_range(cfg):
    rng = random.Random(1234)
    seen = {pick_volume(rng, cfg) for _ in range(500)}
    assert seen <= {0.5, 0.6, 0.7, 0.8, 0.9}
    assert len(seen) > 1


def test_pick_volume_edges(cfg):
    rng = MagicMock()
    rng.random.return_value = 0.0
    assert pick_volume(rng, cfg) == 0.5
    rng.random.return_value = 0.999
    assert pick_volume(rng, cfg) == 0.9


def test_play_without_clip_is_silent(cfg):
    player = SoundPlayer(cfg, seed=0)
    player.play()
    assert player.plays == 0


def test_play_restarts_clip(cfg):
    player = SoundPlayer(cfg, seed=0)
    clip = MagicMock()
    player.set_clip(clip)
    clip.set_volume.assert_called_with(0.5)

    player.play()
    player.play()

    assert player.plays == 2
    assert clip.stop.call_count == 2
    assert clip.play.call_count == 2
    assert 0.5 <= player.volume <= 0.9
    clip.set_volume.assert_called_with(player.volume)


def test_stop(cfg):
    player = SoundPlayer(cfg)
    player.stop()
    clip = MagicMock()
    player.set_clip(clip)
    player.stop()
    clip.stop.assert_called_once()


@patch("duckpond.sound.pygame.mixer.init")
def test_init_audio_without_device(mock_init):
    mock_init.side_effect = pygame.error("no audio device")
    assert init_audio() is False


@patch("duckpond.sound.pygame.mixer.init")
def test_init_audio_ok(mock_init):
    assert init_audio() is True
