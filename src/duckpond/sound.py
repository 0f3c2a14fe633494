from __future__ import annotations
import math
import random

import pygame

from .config import AppConfig
from .logging import get_logger

logger = get_logger(__name__)


def init_audio() -> bool:
    """Open the audio device; False when there is none to open."""
    try:
        pygame.mixer.init()
    except pygame.error as e:
        logger.warning(f"Audio unavailable, sound disabled: {e}")
        return False
    return True


def pick_volume(rng: random.Random, cfg: AppConfig) -> float:
    offset = math.floor(rng.random() * cfg.volume_steps) / 10
    return round(cfg.base_volume + offset, 1)


class SoundPlayer:
    """
    Plays one clip at a time. Every trigger restarts the clip from the top at
    a slightly randomized volume.
    """

    def __init__(self, cfg: AppConfig, seed: int | None = None):
        self.cfg = cfg
        self.rng = random.Random(seed)
        self.clip = None
        self.volume = cfg.base_volume
        self.plays = 0

    def set_clip(self, clip):
        self.clip = clip
        self.clip.set_volume(self.cfg.base_volume)

    def play(self):
        if self.clip is None:
            return
        self.volume = pick_volume(self.rng, self.cfg)
        logger.debug(f"quack volume={self.volume:.1f}")
        self.clip.stop()
        self.clip.set_volume(self.volume)
        self.clip.play()
        self.plays += 1

    def stop(self):
        if self.clip is not None:
            self.clip.stop()
