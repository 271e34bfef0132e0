"""Boundary parsing and geometry construction.

Turns per-point boundary strings such as
``POLYGON((-79.41 43.65, -79.40 43.65, -79.40 43.66, -79.41 43.65))`` or
``[[-79.41, 43.65], [-79.40, 43.65], ...]`` into closed coordinate rings and
shapely geometries.
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import Optional

from shapely.geometry import Point, Polygon

from parksmith.objects.observation import Ring
from parksmith.objects.pointset import PointSet
from parksmith.utils.errors import MalformedGeometry

logger = logging.getLogger(__name__)

_MARKERS = re.compile(r"^\s*(?:MULTI)?POLYGON\s*(?:Z|M|ZM)?\s*", re.IGNORECASE)
_BRACKET_PAIR = re.compile(r"\[([^\[\]]*)\]")
_WRAPPERS = "()[]\"' \t\r\n"


@dataclass(frozen=True)
class GeometrySet:
    """Point geometries and their associated boundary polygons.

    Attributes:
        points: One shapely Point per observation.
        polygons: One shapely Polygon per observation (None if no boundary).
    """

    points: tuple[Point, ...]
    polygons: tuple[Optional[Polygon], ...]

    def __len__(self) -> int:
        return len(self.points)


def _parse_number(token: str, text: str) -> float:
    try:
        number = float(token)
    except ValueError:
        raise MalformedGeometry(
            f"Cannot parse coordinate {token!r}",
            details={"boundary": text, "token": token},
        ) from None
    if not math.isfinite(number):
        raise MalformedGeometry(
            f"Non-finite coordinate {token!r}",
            details={"boundary": text, "token": token},
        )
    return number


def _split_pairs(text: str) -> list[list[str]]:
    if "[" in text:
        return [pair.replace(",", " ").split() for pair in _BRACKET_PAIR.findall(text)]
    body = _MARKERS.sub("", text).strip(_WRAPPERS)
    if "(" in body or ")" in body:
        raise MalformedGeometry(
            "Boundary has more than one ring; only simple polygons are supported",
            details={"boundary": text},
        )
    return [pair.split() for pair in body.split(",")]


def parse_boundary(text: str) -> Ring:
    """Parse a boundary string into a closed ring of (x, y) pairs.

    Coordinates are parsed with ``float`` directly from their text, so no
    precision is lost to intermediate rounding.

    Args:
        text: Boundary string in WKT ``POLYGON((x y, ...))`` form or as a
            bracketed list of ``[x, y]`` pairs.

    Returns:
        Tuple of (x, y) pairs with first == last.

    Raises:
        MalformedGeometry: If the string is empty, a pair does not have
            exactly two numbers, or fewer than three distinct vertices remain.
    """
    if not isinstance(text, str) or not text.strip():
        raise MalformedGeometry("Boundary string is empty", details={"boundary": text})

    ring: list[tuple[float, float]] = []
    for tokens in _split_pairs(text):
        if len(tokens) != 2:
            raise MalformedGeometry(
                f"Coordinate pair must have 2 values, got {len(tokens)}: {tokens}",
                details={"boundary": text},
            )
        ring.append((_parse_number(tokens[0], text), _parse_number(tokens[1], text)))

    if len(set(ring)) < 3:
        raise MalformedGeometry(
            f"Boundary needs at least 3 distinct vertices, got {len(set(ring))}",
            details={"boundary": text},
        )
    if ring[0] != ring[-1]:
        ring.append(ring[0])
    return tuple(ring)


def ring_to_polygon(ring: Ring) -> Polygon:
    """Build a shapely Polygon from a closed ring.

    Raises:
        MalformedGeometry: If the ring does not form a valid polygon.
    """
    polygon = Polygon(ring)
    if not polygon.is_valid or polygon.area <= 0:
        raise MalformedGeometry(
            "Boundary ring does not form a valid polygon",
            details={"ring": ring},
        )
    return polygon


def build_geometries(points: PointSet) -> GeometrySet:
    """Construct point geometries and their boundary polygons.

    Args:
        points: PointSet, optionally carrying boundary rings.

    Returns:
        GeometrySet aligned with the points.
    """
    point_geoms = tuple(Point(x, y) for x, y in points.coordinates)
    if points.boundaries is None:
        polygons: tuple[Optional[Polygon], ...] = (None,) * len(points)
    else:
        polygons = tuple(
            None if ring is None else ring_to_polygon(ring)
            for ring in points.boundaries
        )
    logger.debug(
        f"Built {len(point_geoms)} points and "
        f"{sum(p is not None for p in polygons)} polygons"
    )
    return GeometrySet(points=point_geoms, polygons=polygons)
