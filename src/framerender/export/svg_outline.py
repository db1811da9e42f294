"""
SVG export of the fitted frame outline.

Writes the same Bezier paths the rasterizer fills, as a vector file that can
be inspected next to the raster debug snapshots.
"""

import svgwrite

from framerender.curves.bezier_fit import bezier_to_svg_path
from framerender.tracer import get_tracer, trace


def rgba_to_svg(color):
    """Split an RGBA list into an SVG rgb() colour and an opacity."""
    r, g, b, a = (int(c) for c in color)
    return f"rgb({r},{g},{b})", round(a / 255.0, 3)


@trace(label="emit_frame_svg")
def emit_frame_svg(outline, lens_runs, width, height, fill_color):
    """
    Create an SVG document of the frame front.

    Args:
        outline: closed chain of CubicBezier segments for the outer boundary
        lens_runs: list of closed CubicBezier chains cut out of the frame
        width: canvas width in pixels
        height: canvas height in pixels
        fill_color: RGBA list

    Returns:
        svgwrite.Drawing object
    """
    tracer = get_tracer()

    dwg = svgwrite.Drawing(size=(f"{width}px", f"{height}px"))
    dwg.viewbox(0, 0, width, height)

    d_parts = [bezier_to_svg_path(outline, closed=True)]
    d_parts.extend(bezier_to_svg_path(run, closed=True) for run in lens_runs)

    fill, opacity = rgba_to_svg(fill_color)
    frame = dwg.path(
        d=" ".join(p for p in d_parts if p),
        id="frame",
        fill=fill,
        fill_opacity=opacity,
        stroke=fill,
        stroke_width=1,
        fill_rule="evenodd",
    )
    dwg.add(frame)

    tracer.event(f"SVG emitted with {len(lens_runs)} lens cutouts")

    return dwg
