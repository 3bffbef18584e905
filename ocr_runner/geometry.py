"""
geometry.py

Bounding polygon normalization.

Converts the vertex lists reported by the recognition backends into
an axis-aligned Rectangle and a coarse orientation class. Both
functions are pure.
"""

from typing import Any, List, Optional, Sequence

from .schemas import Rectangle, Vertex


def vertices_from_poly(bounding_poly: Any) -> Optional[List[Vertex]]:
    """
    Convert a backend BoundingPoly message into a list of Vertex.

    Works for both the Vision and Document AI messages, which expose
    `vertices` with integer `x` and `y` fields.
    """
    if bounding_poly is None:
        return None
    return [Vertex(x=int(v.x), y=int(v.y)) for v in bounding_poly.vertices]


def to_rectangle(polygon: Optional[Sequence[Vertex]]) -> Rectangle:
    """
    Reduce a polygon to its axis-aligned bounding rectangle.

    Returns the zero rectangle when the polygon is absent or empty.
    """
    if not polygon:
        return Rectangle()

    xs = [v.x for v in polygon]
    ys = [v.y for v in polygon]
    return Rectangle(min_x=min(xs), min_y=min(ys), max_x=max(xs), max_y=max(ys))


def to_orientation(polygon: Optional[Sequence[Vertex]]) -> int:
    """
    Classify the rotation of a polygon into 0, 90, 180 or 270 degrees.

    The class comes from the position of vertex 0 relative to vertex 2.
    For horizontal text the backends report::

        0----1
        |    |
        3----2

    and rotated 180 degrees around the top-left corner it becomes::

        2----3
        |    |
        1----0

    Only meaningful for polygons following that winding convention.
    Polygons with fewer than 3 vertices are treated as unrotated.
    """
    if not polygon or len(polygon) < 3:
        return 0

    first, third = polygon[0], polygon[2]
    if first.x > third.x:
        if first.y > third.y:
            return 180
        return 270
    if first.y > third.y:
        return 90
    return 0
