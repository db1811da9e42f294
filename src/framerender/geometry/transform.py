"""
Curve transforms for framerender.

Every function here is pure: a new curve is returned and point order is
never changed. place_symmetric applies the transforms in the order that keeps
the mirrored half an exact reflection of the modelled half.
"""

from framerender.geometry.primitives import Point, as_curve


def to_millimeters(points, units_per_mm):
    """
    Convert stored fixed-point coordinates to a float curve in millimetres.

    units_per_mm is the fixed-point resolution (100 for hundredths of a mm).
    """
    return tuple(Point(p[0] / units_per_mm, p[1] / units_per_mm) for p in points)


def scale(curve, factor):
    """Multiply every coordinate by factor."""
    return tuple(Point(p.x * factor, p.y * factor) for p in as_curve(curve))


def extents_min(curve):
    """
    Minimum x and minimum y over all points.

    Returns (min_x, min_y).
    """
    curve = as_curve(curve)
    return min(p.x for p in curve), min(p.y for p in curve)


def mirror(curve, axis_x=0.0):
    """Reflect every point about the vertical line x = axis_x."""
    return tuple(Point(2 * axis_x - p.x, p.y) for p in as_curve(curve))


def center(curve, canvas_origin_x, vertical_offset):
    """Translate every point by (+canvas_origin_x, -vertical_offset)."""
    return tuple(
        Point(p.x + canvas_origin_x, p.y - vertical_offset) for p in as_curve(curve)
    )


def place_symmetric(curve, factor, canvas_origin_x, vertical_offset=None):
    """
    Scale a half-profile curve and derive both placed halves.

    The left curve is scaled, its extents give the vertical offset (unless one
    is passed in, as for lenses which share the frame's offset), the scaled
    curve is mirrored about x=0 before centring, then both halves are
    translated by the same amount.

    Returns (left, right, vertical_offset).
    """
    scaled = scale(curve, factor)

    if vertical_offset is None:
        _, vertical_offset = extents_min(scaled)

    mirrored = mirror(scaled, 0.0)

    left = center(scaled, canvas_origin_x, vertical_offset)
    right = center(mirrored, canvas_origin_x, vertical_offset)

    return left, right, vertical_offset
