"""
Region Geometry Module

Boundary-inclusive point-in-polygon test against the Philippine Area of
Responsibility (PAR). Vertices are (lon, lat) pairs in decimal degrees.
"""

from typing import List, Optional, Tuple

PAR_POLYGON: List[Tuple[float, float]] = [
    (115.0, 5.0),
    (115.0, 15.0),
    (120.0, 21.0),
    (120.0, 25.0),
    (135.0, 25.0),
    (135.0, 5.0),
]

EDGE_TOLERANCE = 1e-9


def _on_segment(x: float, y: float, x1: float, y1: float, x2: float, y2: float,
                eps: float = EDGE_TOLERANCE) -> bool:
    """Check whether (x, y) lies on the segment (x1, y1)-(x2, y2)"""
    cross = (y - y1) * (x2 - x1) - (x - x1) * (y2 - y1)
    if abs(cross) > eps:
        return False
    dot = (x - x1) * (x2 - x1) + (y - y1) * (y2 - y1)
    if dot < -eps:
        return False
    length_sq = (x2 - x1) ** 2 + (y2 - y1) ** 2
    return dot - length_sq <= eps


def point_in_polygon(x: float, y: float, polygon: List[Tuple[float, float]]) -> bool:
    """
    Even-odd point-in-polygon test with inclusive edges.

    Args:
        x: Longitude of the point
        y: Latitude of the point
        polygon: Ordered (lon, lat) vertex list, implicitly closed

    Returns:
        True if the point is inside the polygon or on any of its edges
    """
    n = len(polygon)

    # Edges first, independent of the parity test
    j = n - 1
    for i in range(n):
        xi, yi = polygon[i]
        xj, yj = polygon[j]
        if _on_segment(x, y, xi, yi, xj, yj):
            return True
        j = i

    # Ray cast toward +lon; half-open edge inclusion avoids double counting vertices
    inside = False
    j = n - 1
    for i in range(n):
        xi, yi = polygon[i]
        xj, yj = polygon[j]
        if (yi > y) != (yj > y):
            x_cross = (xj - xi) * (y - yi) / (yj - yi) + xi
            if x < x_cross:
                inside = not inside
        j = i
    return inside


def is_inside_region(lat: Optional[float], lon: Optional[float]) -> bool:
    """Return True if the position lies inside (or on the boundary of) PAR"""
    if lat is None or lon is None:
        return False
    return point_in_polygon(lon, lat, PAR_POLYGON)
