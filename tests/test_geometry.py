from __future__ import annotations

import pytest

from typhoon_ace.processing.geometry import PAR_POLYGON, is_inside_region, point_in_polygon


@pytest.mark.parametrize("lon,lat", PAR_POLYGON)
def test_vertices_are_inside(lon, lat) -> None:
    assert is_inside_region(lat, lon)


@pytest.mark.parametrize(
    "lat,lon",
    [
        (25.0, 125.0),   # top edge
        (5.0, 125.0),    # bottom edge
        (10.0, 135.0),   # east edge
        (10.0, 115.0),   # west edge
        (18.0, 117.5),   # diagonal edge midpoint
        (23.0, 120.0),   # vertical edge above the diagonal
    ],
)
def test_edges_are_inside(lat, lon) -> None:
    assert is_inside_region(lat, lon)


@pytest.mark.parametrize(
    "lat,lon",
    [
        (25.000001, 125.0),
        (4.999999, 125.0),
        (10.0, 135.000001),
        (10.0, 114.999999),
        (20.0, 116.0),   # northwest of the diagonal
    ],
)
def test_points_just_outside(lat, lon) -> None:
    assert not is_inside_region(lat, lon)


def test_interior_point() -> None:
    assert is_inside_region(15.0, 125.0)


def test_missing_coordinates() -> None:
    assert not is_inside_region(None, 125.0)
    assert not is_inside_region(15.0, None)


def test_concave_polygon_ray_through_vertex() -> None:
    # A "V" notch from the top; rays at y=2 pass exactly through the notch vertex (2, 2)
    polygon = [(0.0, 0.0), (4.0, 0.0), (4.0, 4.0), (2.0, 2.0), (0.0, 4.0)]
    assert point_in_polygon(1.0, 1.0, polygon)
    assert not point_in_polygon(2.0, 3.0, polygon)
    assert point_in_polygon(1.0, 2.0, polygon)
    assert point_in_polygon(3.0, 2.0, polygon)
