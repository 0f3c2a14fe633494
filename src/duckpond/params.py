from __future__ import annotations
from dataclasses import dataclass

from .config import AppConfig

ELEVATION_RANGE = (0.0, 90.0)
AZIMUTH_RANGE = (-180.0, 180.0)


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, float(value)))


@dataclass
class Parameters:
    """Live panel settings. Only the control panel writes these."""

    has_stick: bool = False
    elevation: float = 2.0
    azimuth: float = 180.0

    def __post_init__(self):
        self.elevation = clamp(self.elevation, *ELEVATION_RANGE)
        self.azimuth = clamp(self.azimuth, *AZIMUTH_RANGE)

    @classmethod
    def from_config(cls, cfg: AppConfig) -> "Parameters":
        return cls(
            has_stick=bool(cfg.has_stick),
            elevation=cfg.elevation,
            azimuth=cfg.azimuth,
        )
