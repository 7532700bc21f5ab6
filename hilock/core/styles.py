"""
Preset faces and the rotation of default styles.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass(frozen=True)
class FacePreset:
    """A named preset appearance."""
    name: str
    foreground: Optional[str] = None    # "#rrggbb"
    background: Optional[str] = None
    bold: bool = False
    italic: bool = False
    underline: bool = False
    size_scale: float = 1.0


DEFAULT_FACES: dict[str, FacePreset] = {
    face.name: face for face in (
        FacePreset('hi-yellow', foreground='#000000', background='#ffff00'),
        FacePreset('hi-pink', foreground='#000000', background='#ffc0cb'),
        FacePreset('hi-green', foreground='#000000', background='#90ee90'),
        FacePreset('hi-blue', foreground='#000000', background='#add8e6'),
        FacePreset('hi-salmon', foreground='#000000', background='#ffa07a'),
        FacePreset('hi-aquamarine', foreground='#000000', background='#7fffd4'),
        FacePreset('hi-black-b', bold=True),
        FacePreset('hi-blue-b', foreground='#0000ff', bold=True),
        FacePreset('hi-red-b', foreground='#ff0000', bold=True),
        FacePreset('hi-green-b', foreground='#00ff00', bold=True),
        FacePreset('hi-black-hb', bold=True, size_scale=1.67),
    )
}

DEFAULT_FACE_ORDER: list[str] = list(DEFAULT_FACES)


class StyleAllocator:
    """
    Rotation and free list of preset style names.

    Presets start free in catalogue order. A preset freed by removing its
    rule goes to the front of the free list and is offered next.
    """

    def __init__(self, presets: Optional[Iterable[str]] = None):
        self._presets: list[str] = list(presets or DEFAULT_FACE_ORDER)
        if not self._presets:
            raise ValueError("StyleAllocator needs at least one preset")
        self._free: list[str] = list(self._presets)

    @property
    def presets(self) -> list[str]:
        return list(self._presets)

    @property
    def free(self) -> list[str]:
        return list(self._free)

    def candidates(self) -> list[str]:
        """Names to offer for a new rule, best first."""
        if self._free:
            return list(self._free)
        # Everything in use, rotate from the top of the catalogue
        return list(self._presets)

    def claim(self, name: str) -> None:
        """Mark a style as in use."""
        if name in self._free:
            self._free.remove(name)

    def release(self, name: str) -> None:
        """Return a style to the front of the free list."""
        if name not in self._presets:
            return
        if name in self._free:
            self._free.remove(name)
        self._free.insert(0, name)

    def reset(self) -> None:
        self._free = list(self._presets)
