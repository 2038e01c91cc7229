"""Placed objects for the material rasterizer.

A placed object is the editor's description of a scatterer: what it is
(ObjectKind), where its centre cell is, how many cells it spans along x
and y, and a conductivity knob in [0, 1] that scales the loss of the
absorbing kinds.

Note:
    ``angle`` is stored for the editor but not applied to the geometry:
    bounding boxes and interior tests are axis-aligned.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ObjectKind(Enum):
    """Closed set of object kinds understood by the rasterizer."""

    METAL_SPHERE = "metal_sphere"
    METAL_BOX = "metal_box"
    DIELECTRIC_SPHERE = "dielectric_sphere"
    ABSORBER = "absorber"
    CORNER_REFLECTOR = "corner_reflector"
    STEALTH_WEDGE = "stealth_wedge"
    RAM_LAYER = "ram_layer"
    CORNER_DEFLECTOR = "corner_deflector"

    @property
    def is_metal(self) -> bool:
        """Kinds rasterized as a near-perfect conductor."""
        return self in (
            ObjectKind.METAL_SPHERE,
            ObjectKind.METAL_BOX,
            ObjectKind.CORNER_REFLECTOR,
        )


@dataclass(frozen=True)
class BoundingBox:
    """Inclusive cell range [i_min, i_max] x [j_min, j_max]."""

    i_min: int
    i_max: int
    j_min: int
    j_max: int

    @property
    def slices(self) -> tuple[slice, slice]:
        """Array slices covering the box."""
        return slice(self.i_min, self.i_max + 1), slice(self.j_min, self.j_max + 1)

    @property
    def shape(self) -> tuple[int, int]:
        return (self.i_max - self.i_min + 1, self.j_max - self.j_min + 1)


@dataclass
class PlacedObject:
    """An object placed on the grid.

    Args:
        kind: Object kind (ObjectKind or its string value)
        center: Centre cell (x, y)
        size: Extent (size_x, size_y) in cells; values below 1 are clamped
            to 1 so degenerate input becomes a one-cell object
        angle: Rotation in radians, kept for the editor only
        conductivity: Loss knob, clamped to [0, 1]

    Example:
        >>> wedge = PlacedObject(ObjectKind.STEALTH_WEDGE, center=(200, 150),
        ...                      size=(60, 40), conductivity=0.8)
    """

    kind: ObjectKind | str
    center: tuple[int, int]
    size: tuple[int, int]
    angle: float = 0.0
    conductivity: float = 0.5

    def __post_init__(self):
        self.kind = ObjectKind(self.kind)
        x, y = self.center
        self.center = (int(round(x)), int(round(y)))
        size_x, size_y = self.size
        self.size = (max(1, int(round(size_x))), max(1, int(round(size_y))))
        self.angle = float(self.angle)
        self.conductivity = min(1.0, max(0.0, float(self.conductivity)))

    @property
    def x(self) -> int:
        return self.center[0]

    @property
    def y(self) -> int:
        return self.center[1]

    @property
    def size_x(self) -> int:
        return self.size[0]

    @property
    def size_y(self) -> int:
        return self.size[1]

    @property
    def half_extent(self) -> tuple[int, int]:
        """Half-size of the bounding box in cells, at least 1."""
        return max(1, self.size_x // 2), max(1, self.size_y // 2)

    def bounding_box(self, shape: tuple[int, int]) -> BoundingBox | None:
        """Axis-aligned bounding box clipped to the grid.

        Args:
            shape: Grid shape (width, height)

        Returns:
            The clipped box, or None if the object lies entirely off-grid
        """
        width, height = shape
        half_w, half_h = self.half_extent
        i_min = max(0, self.x - half_w)
        i_max = min(width - 1, self.x + half_w)
        j_min = max(0, self.y - half_h)
        j_max = min(height - 1, self.y + half_h)

        if i_min > i_max or j_min > j_max:
            return None
        return BoundingBox(i_min, i_max, j_min, j_max)
