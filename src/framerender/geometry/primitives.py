"""
Geometry primitives for framerender.

Points and lines are plain immutable values. A curve is a tuple of points;
whether it is open or closed depends on how it is consumed.
"""

from typing import NamedTuple, Sequence, Tuple


class Point(NamedTuple):
    """A 2D point, millimetres unless scaled."""
    x: float
    y: float


class Line(NamedTuple):
    """An ordered pair of points."""
    start: Point
    end: Point

    def point_at(self, t):
        """
        Point at fraction t between start and end.

        t <= 0 returns start and t >= 1 returns end exactly.
        """
        if t <= 0:
            return self.start
        if t >= 1:
            return self.end
        return Point(
            self.start.x + t * (self.end.x - self.start.x),
            self.start.y + t * (self.end.y - self.start.y),
        )

    def midpoint(self):
        return self.point_at(0.5)


Curve = Tuple[Point, ...]


def as_point(value) -> Point:
    """Convert an [x, y] pair (list, tuple, numpy row) to a Point."""
    return Point(float(value[0]), float(value[1]))


def as_curve(points: Sequence) -> Curve:
    """Convert any sequence of pairs to a Curve."""
    return tuple(as_point(p) for p in points)
