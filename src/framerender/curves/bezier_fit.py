"""
Bezier curve fitting for framerender.

Turns a sparse point curve into a chain of cubic Bezier segments. Each
segment's control points sit at 1/3 and 2/3 along the line between two
adjacent curve points; the anchors between segments are the midpoints of the
neighbouring control points, which smooths the polyline's corners into a
continuous outline. Open curves keep their exact end points.
"""

import numpy as np

from framerender.errors import CurveValidationError
from framerender.geometry.primitives import Line, Point, as_curve
from framerender.models import CubicBezier
from framerender.tracer import get_tracer, trace

ONE_THIRD = 1.0 / 3.0
TWO_THIRDS = 2.0 / 3.0


def minimum_points(closed):
    """Smallest number of points a curve consumed this way may have."""
    return 3 if closed else 2


def validate_curve(curve, closed, name="curve"):
    """Raise CurveValidationError if the curve is too short."""
    minimum = minimum_points(closed)
    if len(curve) < minimum:
        raise CurveValidationError(name, len(curve), minimum, closed)


@trace(label="fit_curve")
def fit_curve(curve, closed=False, force_horizontal_ends=False, name="curve"):
    """
    Fit cubic Bezier segments through a point curve.

    Args:
        curve: sequence of [x, y] points
        closed: whether the last point connects back to the first
        force_horizontal_ends: make the outline leave its first point and enter
            its last point horizontally, so a mirrored copy joins seamlessly
        name: curve name used in validation errors

    Returns:
        list of CubicBezier; N-1 segments for an open curve of N points,
        N segments for a closed one
    """
    curve = as_curve(curve)
    validate_curve(curve, closed, name)

    n = len(curve)
    segment_count = n if closed else n - 1

    leading = []
    trailing = []
    for i in range(segment_count):
        line = Line(curve[i], curve[(i + 1) % n])
        leading.append(line.point_at(ONE_THIRD))
        trailing.append(line.point_at(TWO_THIRDS))

    if force_horizontal_ends:
        leading[0] = Point(leading[0].x, curve[0].y)
        trailing[-1] = Point(trailing[-1].x, curve[-1].y)

    starts = [None] * segment_count
    ends = [None] * segment_count

    if closed:
        join = Line(trailing[-1], leading[0]).midpoint()
        starts[0] = join
        ends[-1] = join
    else:
        starts[0] = curve[0]
        ends[-1] = curve[-1]

    for i in range(segment_count - 1):
        anchor = Line(trailing[i], leading[i + 1]).midpoint()
        ends[i] = anchor
        starts[i + 1] = anchor

    beziers = [
        CubicBezier(
            p0=list(starts[i]),
            p1=list(leading[i]),
            p2=list(trailing[i]),
            p3=list(ends[i]),
        )
        for i in range(segment_count)
    ]

    get_tracer().event(
        f"Fitted {len(beziers)} segments", name=name, closed=closed, points=n,
    )

    return beziers


def reverse_bezier(bezier):
    """The same segment traversed from its end anchor to its start anchor."""
    return CubicBezier(p0=bezier.p3, p1=bezier.p2, p2=bezier.p1, p3=bezier.p0)


def closed_outline(left_run, right_run):
    """
    Join two mirrored open runs into one closed boundary.

    The left run is taken forward, the right run backward with each segment
    reversed, so the boundary is traversed continuously.
    """
    return list(left_run) + [reverse_bezier(b) for b in reversed(right_run)]


BINOMIAL = (1, 3, 3, 1)


def _bernstein_weights(t):
    """Cubic Bernstein weights for each t, shape (len(t), 4)."""
    t = np.atleast_1d(np.asarray(t, dtype=np.float64))[:, None]
    i = np.arange(4)
    return np.array(BINOMIAL) * t ** i * (1 - t) ** (3 - i)


def _control_points(bezier):
    return np.array([bezier.p0, bezier.p1, bezier.p2, bezier.p3], dtype=np.float64)


def flatten_bezier(bezier, steps=24):
    """
    Sample a segment as a polyline of steps + 1 points.

    Returns a float numpy array of shape (steps + 1, 2); the first and last
    rows are the segment's anchors exactly.
    """
    ctrl = _control_points(bezier)
    points = _bernstein_weights(np.linspace(0.0, 1.0, steps + 1)) @ ctrl
    points[0] = ctrl[0]
    points[-1] = ctrl[3]
    return points


def flatten_beziers(beziers, steps=24):
    """
    Sample a chain of segments as one continuous polyline.

    Shared anchors between consecutive segments appear once.
    """
    if not beziers:
        return np.zeros((0, 2))

    parts = [flatten_bezier(beziers[0], steps)]
    for bez in beziers[1:]:
        parts.append(flatten_bezier(bez, steps)[1:])

    return np.vstack(parts)


def bezier_to_svg_path(beziers, closed=False):
    """
    Convert a list of CubicBezier objects to SVG path d attribute.

    Assumes beziers are connected (end of one = start of next).
    """
    if not beziers:
        return ""

    parts = []

    p0 = beziers[0].p0
    parts.append(f"M {p0[0]:.2f} {p0[1]:.2f}")

    for bez in beziers:
        parts.append(f"C {bez.p1[0]:.2f} {bez.p1[1]:.2f} {bez.p2[0]:.2f} {bez.p2[1]:.2f} {bez.p3[0]:.2f} {bez.p3[1]:.2f}")

    if closed:
        parts.append("Z")

    return " ".join(parts)


def compute_bezier_bbox(beziers):
    """Compute bounding box of a list of Bezier curves (control hull)."""
    if not beziers:
        return [0.0, 0.0, 0.0, 0.0]

    all_points = []
    for bez in beziers:
        all_points.extend([bez.p0, bez.p1, bez.p2, bez.p3])

    xs = [p[0] for p in all_points]
    ys = [p[1] for p in all_points]

    return [min(xs), min(ys), max(xs), max(ys)]
