"""Material rasterization of placed objects.

rasterize() turns a list of PlacedObject into dense MaterialMaps. It is a
pure function of the grid shape and the object list: every call starts
from free space, so an empty list yields uniform vacuum and repeated calls
with the same list give identical maps.

Each object is evaluated inside its clipped bounding box
(centre ± max(1, size // 2)). The kind decides which cells of the box are
inside the object and which εr/σ they receive:

    metal_sphere        disc of radius max(size)/2, σ = PEC
    dielectric_sphere   same disc, εr = 2 + 8·knob
    absorber            same disc, σ = 5·knob
    metal_box           whole bounding box, σ = PEC
    corner_reflector    L of two strips, thickness max(1, min(size)//5), σ = PEC
    stealth_wedge       triangle narrowing towards the bottom, σ = 10·knob·rel
    ram_layer           horizontal band, σ = 15·knob·rel
    corner_deflector    L of two ramps, thickness max(1, min(size)//4), σ = 5·knob

``rel`` is the fractional row offset from the top of the object. Objects
later in the list overwrite earlier ones where they overlap.

Example:
    >>> from strata_em.geometry import ObjectKind, PlacedObject, rasterize
    >>> maps = rasterize((400, 400), [
    ...     PlacedObject(ObjectKind.METAL_SPHERE, center=(250, 200), size=(40, 40)),
    ... ])
"""

from __future__ import annotations

from collections.abc import Iterable

import numpy as np
from numpy.typing import NDArray

from strata_em.geometry.objects import ObjectKind, PlacedObject
from strata_em.materials.base import PEC_CONDUCTIVITY, MaterialMaps

DIELECTRIC_BASE_EPSILON = 2.0
DIELECTRIC_EPSILON_RANGE = 8.0
ABSORBER_SIGMA_SCALE = 5.0
WEDGE_SIGMA_SCALE = 10.0
RAM_SIGMA_SCALE = 15.0
DEFLECTOR_SIGMA_SCALE = 5.0

REFLECTOR_THICKNESS_DIVISOR = 5
DEFLECTOR_THICKNESS_DIVISOR = 4


def rasterize(
    shape: tuple[int, int], objects: Iterable[PlacedObject] | None
) -> MaterialMaps:
    """Rasterize placed objects into per-cell material maps.

    Args:
        shape: Grid shape (width, height)
        objects: Objects in paint order; None is treated as empty

    Returns:
        New MaterialMaps of the given shape
    """
    maps = MaterialMaps.free_space(shape)
    if not objects:
        return maps

    for obj in objects:
        paint_object(maps, obj)

    return maps


def paint_object(maps: MaterialMaps, obj: PlacedObject) -> None:
    """Write one object into existing maps, overwriting covered cells."""
    box = obj.bounding_box(maps.shape)
    if box is None:
        return

    i_slice, j_slice = box.slices
    ii = np.arange(box.i_min, box.i_max + 1)[:, None]
    jj = np.arange(box.j_min, box.j_max + 1)[None, :]

    inside, epsilon_r, sigma = object_interior(obj, ii, jj)
    inside = np.broadcast_to(inside, box.shape)
    if not inside.any():
        return

    maps.epsilon_r[i_slice, j_slice][inside] = np.broadcast_to(epsilon_r, box.shape)[inside]
    maps.sigma[i_slice, j_slice][inside] = np.broadcast_to(sigma, box.shape)[inside]
    maps.is_object[i_slice, j_slice][inside] = True


def object_interior(
    obj: PlacedObject, ii: NDArray[np.integer], jj: NDArray[np.integer]
) -> tuple[NDArray[np.bool_], float | NDArray[np.float64], float | NDArray[np.float64]]:
    """Interior test and material values of an object.

    Args:
        obj: The placed object
        ii: Column vector of x indices, shape (n, 1)
        jj: Row vector of y indices, shape (1, m)

    Returns:
        (inside, epsilon_r, sigma) over the (n, m) index grid
    """
    kind = obj.kind
    knob = obj.conductivity

    if kind.is_metal:
        return _metal_interior(obj, ii, jj), 1.0, PEC_CONDUCTIVITY

    if kind is ObjectKind.DIELECTRIC_SPHERE:
        epsilon_r = DIELECTRIC_BASE_EPSILON + knob * DIELECTRIC_EPSILON_RANGE
        return _disc(obj, ii, jj), epsilon_r, 0.0

    if kind is ObjectKind.ABSORBER:
        return _disc(obj, ii, jj), 1.0, knob * ABSORBER_SIGMA_SCALE

    if kind is ObjectKind.STEALTH_WEDGE:
        start_y, end_y, rel = _rows(obj, jj)
        row_width = np.trunc((1.0 - rel) * obj.size_x).astype(np.int64)
        half_row = row_width // 2
        inside = (
            (jj >= start_y)
            & (jj <= end_y)
            & (ii >= obj.x - half_row)
            & (ii <= obj.x + half_row)
        )
        return inside, 1.0, knob * rel * WEDGE_SIGMA_SCALE

    if kind is ObjectKind.RAM_LAYER:
        start_y, end_y, rel = _rows(obj, jj)
        inside = np.broadcast_to((jj >= start_y) & (jj <= end_y), (ii.shape[0], jj.shape[1]))
        return inside, 1.0, knob * rel * RAM_SIGMA_SCALE

    if kind is ObjectKind.CORNER_DEFLECTOR:
        thickness = max(1, min(obj.size_x, obj.size_y) // DEFLECTOR_THICKNESS_DIVISOR)
        return _corner(obj, ii, jj, thickness, closed=False), 1.0, knob * DEFLECTOR_SIGMA_SCALE

    raise ValueError(f"Unknown object kind: {kind!r}")


def _metal_interior(obj: PlacedObject, ii: NDArray, jj: NDArray) -> NDArray[np.bool_]:
    """Shape of the near-perfect conductor kinds."""
    if obj.kind is ObjectKind.METAL_SPHERE:
        return _disc(obj, ii, jj)
    if obj.kind is ObjectKind.METAL_BOX:
        return np.ones((ii.shape[0], jj.shape[1]), dtype=bool)
    thickness = max(1, min(obj.size_x, obj.size_y) // REFLECTOR_THICKNESS_DIVISOR)
    return _corner(obj, ii, jj, thickness, closed=True)


def _disc(obj: PlacedObject, ii: NDArray, jj: NDArray) -> NDArray[np.bool_]:
    rx = ii - obj.x
    ry = jj - obj.y
    radius = max(obj.size_x, obj.size_y) / 2.0
    return (rx * rx + ry * ry) <= radius * radius


def _rows(obj: PlacedObject, jj: NDArray) -> tuple[int, int, NDArray[np.float64]]:
    """Row band of the object and each row's fractional offset from its top."""
    start_y = obj.y - obj.size_y // 2
    end_y = obj.y + obj.size_y // 2
    rel = (jj - start_y) / float(obj.size_y)
    return start_y, end_y, rel


def _corner(
    obj: PlacedObject, ii: NDArray, jj: NDArray, thickness: int, closed: bool
) -> NDArray[np.bool_]:
    """L-shape along the top and left sides of the bounding box.

    With ``closed`` the strips run up to and including ``size`` cells from
    the box corner, otherwise they stop one cell short.
    """
    half_w, half_h = obj.half_extent
    rel_x = ii - obj.x + half_w
    rel_y = jj - obj.y + half_h

    if closed:
        along_x = (rel_x >= 0) & (rel_x <= obj.size_x)
        along_y = (rel_y >= 0) & (rel_y <= obj.size_y)
    else:
        along_x = (rel_x >= 0) & (rel_x < obj.size_x)
        along_y = (rel_y >= 0) & (rel_y < obj.size_y)

    horizontal = (rel_y >= 0) & (rel_y < thickness) & along_x
    vertical = (rel_x >= 0) & (rel_x < thickness) & along_y
    return horizontal | vertical
