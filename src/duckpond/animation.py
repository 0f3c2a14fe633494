from __future__ import annotations
import math
from dataclasses import dataclass

import numpy as np

from .config import AppConfig
from .logging import get_logger
from .profiler import get_profiler
from .scene import SceneContext, euler_xyz, make_duck
from .speech import contains_wake_word


def duck_height(t: float, cfg: AppConfig) -> float:
    return math.sin(t) * cfg.duck_bob_amplitude + cfg.duck_baseline * cfg.ratio


def duck_rotation(t: float, cfg: AppConfig) -> np.ndarray:
    ax, az = cfg.duck_tilt
    wx, wz = cfg.duck_tilt_rate
    return euler_xyz(ax * math.sin(wx * t), cfg.duck_yaw, az * math.sin(wz * t))


def rod_target(duck_position, cfg: AppConfig) -> np.ndarray:
    """The point the rod aims at: above the duck at a fixed height."""
    return np.array(
        [duck_position[0], cfg.rod_look_height * cfg.ratio, duck_position[2]]
    )


@dataclass
class PendingAssets:
    model: object = None
    normals: object = None
    sound: object = None


class AnimationLoop:
    """
    Per-frame driver. `tick(now)` runs once per display refresh:
    attach finished assets, advance water time by a fixed step, pose the duck
    and rod, react to the last utterance, then render one frame.
    """

    def __init__(
        self,
        scene: SceneContext,
        renderer,
        player,
        utterances,
        pending: PendingAssets | None = None,
    ):
        self.scene = scene
        self.cfg = scene.cfg
        self.renderer = renderer
        self.player = player
        self.utterances = utterances
        self.pending = pending or PendingAssets()
        self.logger = get_logger(__name__)
        self.profiler = get_profiler()

    def attach_assets(self):
        if self.pending.model is not None and self.scene.duck is None:
            loaded = self.pending.model.take()
            if loaded is not None:
                mesh, hit_mesh = loaded
                self.scene.duck = make_duck(self.cfg, mesh, hit_mesh)
                self.logger.info(
                    f"Duck added to scene ({len(mesh.indices) // 3} triangles)"
                )
        if self.pending.normals is not None:
            rgb = self.pending.normals.take()
            if rgb is not None:
                self.renderer.water.set_normals(rgb)
        if self.pending.sound is not None:
            clip = self.pending.sound.take()
            if clip is not None:
                self.player.set_clip(clip)

    def animate_duck(self, t: float):
        duck = self.scene.duck
        if duck is None:
            return
        duck.position[1] = duck_height(t, self.cfg)
        duck.rotation = duck_rotation(t, self.cfg)

    def aim_rod(self):
        rod, duck = self.scene.rod, self.scene.duck
        if rod is None or duck is None:
            return
        rod.look_at(rod_target(duck.position, self.cfg))

    def listen(self) -> bool:
        heard = self.utterances.take()
        if heard and contains_wake_word(heard, self.cfg.wake_words):
            self.logger.info(f"Heard '{heard}', quacking")
            self.player.play()
            return True
        return False

    def tick(self, now: float):
        self.attach_assets()

        self.scene.water_time += self.cfg.water_time_step
        self.renderer.water.set_time(self.scene.water_time)

        self.animate_duck(now)
        self.aim_rod()
        self.listen()

        with self.profiler.record("render"):
            self.renderer.render(self.scene)
