from __future__ import annotations
from typing import Callable

from .logging import get_logger
from .params import AZIMUTH_RANGE, ELEVATION_RANGE, clamp

logger = get_logger(__name__)


class Control:
    """A value on `target.attr`, read and written live (no copy is kept)."""

    def __init__(self, folder: str, label: str, target, attr: str, on_change=None):
        self.folder = folder
        self.label = label
        self.target = target
        self.attr = attr
        self.on_change: Callable | None = on_change

    @property
    def value(self):
        return getattr(self.target, self.attr)

    def _assign(self, value):
        setattr(self.target, self.attr, value)
        logger.debug(f"{self.folder}/{self.label} = {value}")
        if self.on_change is not None:
            self.on_change(value)

    def nudge(self, direction: int, fast: bool = False, fast_step: float = 10.0):
        raise NotImplementedError

    def activate(self):
        pass

    def text(self) -> str:
        return f"{self.label}: {self.value}"


class NumberControl(Control):
    def __init__(self, folder, label, target, attr, lo, hi, step, on_change=None):
        super().__init__(folder, label, target, attr, on_change)
        self.lo = lo
        self.hi = hi
        self.step = step

    def set(self, value: float):
        v = clamp(value, self.lo, self.hi)
        v = round(round(v / self.step) * self.step, 6)
        self._assign(clamp(v, self.lo, self.hi))

    def nudge(self, direction: int, fast: bool = False, fast_step: float = 10.0):
        mult = fast_step if fast else 1.0
        self.set(float(self.value) + direction * self.step * mult)

    def text(self) -> str:
        return f"{self.label}: {float(self.value):.1f}"


class BoolControl(Control):
    def set(self, value: bool):
        self._assign(bool(value))

    def nudge(self, direction: int, fast: bool = False, fast_step: float = 10.0):
        self.set(not self.value)

    def activate(self):
        self.set(not self.value)

    def text(self) -> str:
        return f"{self.label}: {'on' if self.value else 'off'}"


class ControlPanel:
    """Keyboard-driven list of controls grouped into folders."""

    def __init__(self, fast_step: float = 10.0, visible: bool = True):
        self.controls: list[Control] = []
        self.selected = 0
        self.fast_step = fast_step
        self.visible = visible

    def add_number(self, folder, label, target, attr, lo, hi, step, on_change=None):
        c = NumberControl(folder, label, target, attr, lo, hi, step, on_change)
        self.controls.append(c)
        return c

    def add_bool(self, folder, label, target, attr, on_change=None):
        c = BoolControl(folder, label, target, attr, on_change)
        self.controls.append(c)
        return c

    def find(self, label: str) -> Control:
        for c in self.controls:
            if c.label == label:
                return c
        raise KeyError(label)

    @property
    def current(self) -> Control | None:
        if not self.controls:
            return None
        return self.controls[self.selected]

    def select(self, delta: int):
        if self.controls:
            self.selected = (self.selected + delta) % len(self.controls)

    def nudge(self, direction: int, fast: bool = False):
        if self.current is not None:
            self.current.nudge(direction, fast, self.fast_step)

    def activate(self):
        if self.current is not None:
            self.current.activate()

    def toggle(self):
        self.visible = not self.visible

    def lines(self) -> list[tuple[str, bool]]:
        """(text, is_selected) rows with a header per folder."""
        rows = []
        folder = None
        for i, c in enumerate(self.controls):
            if c.folder != folder:
                folder = c.folder
                rows.append((f"[{folder}]", False))
            marker = ">" if i == self.selected else " "
            rows.append((f"{marker} {c.text()}", i == self.selected))
        return rows


def build_panel(params, water_uniforms, sun_updater, fast_step: float = 10.0, visible=True):
    """The scene's three parameter controls plus the two live water uniforms."""
    panel = ControlPanel(fast_step=fast_step, visible=visible)
    panel.add_number(
        "Sky", "elevation", params, "elevation", *ELEVATION_RANGE, 0.1,
        on_change=sun_updater.on_change,
    )
    panel.add_number(
        "Sky", "azimuth", params, "azimuth", *AZIMUTH_RANGE, 0.1,
        on_change=sun_updater.on_change,
    )
    panel.add_bool("Scene", "hasStick", params, "has_stick")
    panel.add_number(
        "Water", "distortionScale", water_uniforms["distortion_scale"], "value", 0.0, 8.0, 0.1
    )
    panel.add_number("Water", "size", water_uniforms["size"], "value", 0.1, 10.0, 0.1)
    return panel
