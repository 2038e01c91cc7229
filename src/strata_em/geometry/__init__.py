"""Placed objects and their rasterization into material maps."""

from strata_em.geometry.objects import BoundingBox, ObjectKind, PlacedObject
from strata_em.geometry.rasterize import object_interior, paint_object, rasterize

__all__ = [
    "ObjectKind",
    "PlacedObject",
    "BoundingBox",
    "rasterize",
    "paint_object",
    "object_interior",
]
