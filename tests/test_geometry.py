"""Tests for boundary parsing and geometry construction."""

import numpy as np
import pytest

from parksmith.objects import PointSet
from parksmith.primitives.geometry import (
    build_geometries,
    parse_boundary,
    ring_to_polygon,
)
from parksmith.utils.errors import MalformedGeometry

SQUARE_WKT = "POLYGON((-79.41 43.65, -79.40 43.65, -79.40 43.66, -79.41 43.66, -79.41 43.65))"


class TestParseBoundary:
    """Tests for parse_boundary."""

    def test_wkt_polygon(self):
        """WKT polygons parse into a closed ring."""
        ring = parse_boundary(SQUARE_WKT)
        assert len(ring) == 5
        assert ring[0] == ring[-1]
        assert ring[1] == (-79.40, 43.65)

    def test_bracket_pairs(self):
        """Bracketed coordinate lists parse and are closed automatically."""
        ring = parse_boundary("[[0, 0], [1, 0], [1, 1], [0, 1]]")
        assert ring == ((0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0), (0.0, 0.0))

    def test_full_precision_preserved(self):
        """Coordinates are parsed without rounding."""
        ring = parse_boundary("[[-79.412345678901, 43.6], [-79.4, 43.6], [-79.4, 43.7]]")
        assert ring[0][0] == -79.412345678901

    def test_open_wkt_ring_closed(self):
        """An unclosed WKT ring is closed."""
        ring = parse_boundary("POLYGON((0 0, 2 0, 2 2))")
        assert ring[-1] == (0.0, 0.0)
        assert len(ring) == 4

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "   ",
            "POLYGON((0 0, 1 abc, 1 1, 0 0))",
            "POLYGON((0 0 0, 1 0 0, 1 1 0, 0 0 0))",
            "POLYGON((0 0, 1 1, 0 0))",
            "POLYGON((0 0, 1 0, 1 1, 0 0), (0.2 0.2, 0.3 0.2, 0.3 0.3, 0.2 0.2))",
            "[[0, 0], [1, nan], [1, 1]]",
        ],
    )
    def test_malformed(self, text):
        """Malformed boundaries raise MalformedGeometry with the geometry stage."""
        with pytest.raises(MalformedGeometry) as excinfo:
            parse_boundary(text)
        assert excinfo.value.stage == "geometry"

    def test_non_string(self):
        """Non-string input is malformed."""
        with pytest.raises(MalformedGeometry):
            parse_boundary(None)


class TestRingToPolygon:
    """Tests for ring_to_polygon."""

    def test_valid_polygon(self):
        polygon = ring_to_polygon(parse_boundary("[[0, 0], [2, 0], [2, 2], [0, 2]]"))
        assert polygon.area == pytest.approx(4.0)

    def test_self_intersecting(self):
        """A bow-tie ring is not a valid polygon."""
        ring = ((0.0, 0.0), (1.0, 1.0), (1.0, 0.0), (0.0, 1.0), (0.0, 0.0))
        with pytest.raises(MalformedGeometry):
            ring_to_polygon(ring)


class TestBuildGeometries:
    """Tests for build_geometries."""

    def test_points_and_polygons_aligned(self):
        ring = parse_boundary("[[0, 0], [1, 0], [1, 1], [0, 1]]")
        points = PointSet(
            coordinates=np.array([[0.5, 0.5], [3.0, 3.0]]),
            boundaries=(ring, None),
        )
        geometries = build_geometries(points)
        assert len(geometries) == 2
        assert geometries.points[0].x == 0.5
        assert geometries.polygons[0].contains(geometries.points[0])
        assert geometries.polygons[1] is None

    def test_without_boundaries(self):
        points = PointSet(coordinates=np.array([[0.0, 0.0], [1.0, 1.0]]))
        geometries = build_geometries(points)
        assert geometries.polygons == (None, None)
