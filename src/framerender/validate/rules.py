"""
Design checks for framerender.

validate_design rejects designs that cannot be rendered at all. The other
checks are advisory: they flag designs that render but will look wrong, and
are reported with the result instead of failing it.
"""

from shapely.geometry import Polygon, box

from framerender.curves.bezier_fit import validate_curve
from framerender.models import CheckResult, Severity, ValidationReport
from framerender.tracer import get_tracer, trace


@trace(label="validate_design")
def validate_design(design):
    """
    Reject designs whose curves are too short to fit.

    The outer curve is consumed open, the lens closed. Holes and the temple
    contour are not rendered, so they are not checked here.

    Raises CurveValidationError.
    """
    validate_curve(design.front.outer_curve, closed=False, name="outer_curve")
    validate_curve(design.front.lens, closed=True, name="lens")


@trace(label="run_design_checks")
def run_design_checks(outline_points, left_lens, right_lens, canvas_width, canvas_height,
                      outer_curve, axis_tolerance=0.5):
    """
    Run advisory checks on placed geometry.

    Args:
        outline_points: flattened closed outer boundary, canvas pixels
        left_lens, right_lens: flattened lens boundaries, canvas pixels
        canvas_width, canvas_height: canvas size in pixels
        outer_curve: the unplaced half-profile curve (millimetres)
        axis_tolerance: how far (mm) the half-profile ends may sit off x=0

    Returns ValidationReport.
    """
    tracer = get_tracer()

    frame = _polygon(outline_points)
    lenses = [_polygon(left_lens), _polygon(right_lens)]

    checks = [
        check_lens_within_frame(frame, lenses),
        check_fits_canvas(frame, canvas_width, canvas_height),
        check_ends_on_axis(outer_curve, axis_tolerance),
    ]

    report = ValidationReport(checks=checks)
    tracer.event(f"Design checks complete: {report.warning_count} warnings")

    return report


def _polygon(points):
    """Polygon from a flattened boundary, repaired if self-intersecting."""
    poly = Polygon([(float(p[0]), float(p[1])) for p in points])
    if not poly.is_valid:
        poly = poly.buffer(0)
    return poly


def check_lens_within_frame(frame, lenses):
    """Both lens holes should lie inside the frame boundary."""
    outside = [
        idx for idx, lens in enumerate(lenses)
        if not lens.is_empty and not frame.buffer(1.0).contains(lens)
    ]

    return CheckResult(
        rule_id="lens_within_frame",
        severity=Severity.WARN,
        passed=not outside,
        message=(
            "Lens holes lie inside the frame"
            if not outside else
            f"{len(outside)} lens hole(s) extend past the frame boundary"
        ),
        evidence={"outside": outside, "frame_area": round(frame.area, 1)},
    )


def check_fits_canvas(frame, width, height):
    """The placed frame should not be clipped by the canvas edges."""
    canvas = box(0, 0, width, height)
    fits = canvas.contains(frame)
    min_x, min_y, max_x, max_y = frame.bounds

    return CheckResult(
        rule_id="fits_canvas",
        severity=Severity.WARN,
        passed=fits,
        message="Frame fits the canvas" if fits else "Frame is clipped by the canvas edge",
        evidence={"bounds": [round(min_x, 1), round(min_y, 1), round(max_x, 1), round(max_y, 1)]},
    )


def check_ends_on_axis(outer_curve, tolerance):
    """
    The half-profile should start and end on the mirror axis.

    Otherwise the mirrored halves are joined by straight edges at the bridge.
    """
    first, last = outer_curve[0], outer_curve[-1]
    offsets = [abs(first[0]), abs(last[0])]
    passed = max(offsets) <= tolerance

    return CheckResult(
        rule_id="ends_on_axis",
        severity=Severity.WARN,
        passed=passed,
        message=(
            "Outer curve ends on the mirror axis"
            if passed else
            "Outer curve ends are off the mirror axis; halves join with a straight edge"
        ),
        evidence={"offsets_mm": [round(o, 3) for o in offsets]},
    )
