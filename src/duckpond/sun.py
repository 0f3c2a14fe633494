from __future__ import annotations
import math

import numpy as np
from pyrr import vector

from .logging import get_logger
from .params import Parameters
from .profiler import get_profiler


def sun_direction(elevation: float, azimuth: float) -> np.ndarray:
    """
    Unit vector pointing at the sun, y up.

    The polar angle is measured from +y (90 - elevation) and the azimuth
    rotates from +z towards +x.
    """
    phi = math.radians(90.0 - elevation)
    theta = math.radians(azimuth)
    v = np.array(
        [
            math.sin(phi) * math.sin(theta),
            math.cos(phi),
            math.sin(phi) * math.cos(theta),
        ],
        dtype=np.float64,
    )
    return vector.normalise(v)


class SunUpdater:
    """Pushes the sun direction into the sky and water, then re-bakes lighting."""

    def __init__(self, params: Parameters, renderer):
        self.params = params
        self.renderer = renderer
        self.direction = sun_direction(params.elevation, params.azimuth)
        self.logger = get_logger(__name__)
        self.profiler = get_profiler()

    def update(self) -> np.ndarray:
        self.direction = sun_direction(self.params.elevation, self.params.azimuth)
        d = tuple(float(c) for c in self.direction)
        self.renderer.sky.set_sun(d)
        self.renderer.water.set_sun(d)
        with self.profiler.record("env_map"):
            self.renderer.environment.bake(self.renderer.sky)
        self.logger.debug(
            f"Sun elevation={self.params.elevation:.1f} "
            f"azimuth={self.params.azimuth:.1f} -> {d}"
        )
        return self.direction

    # signature matches panel change callbacks
    def on_change(self, _value=None):
        self.update()
