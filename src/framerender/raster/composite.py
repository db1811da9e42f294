"""
Fill, carve, texture and transparency passes for framerender.

Each pass advances the canvas one stage. Pixel selection is by region mask
in "mask" keying mode and by exact colour equality in "color" mode; in both
modes only the selected pixels are written.
"""

import cv2
import numpy as np

from framerender.curves.bezier_fit import flatten_beziers
from framerender.errors import EncodeError
from framerender.raster.canvas import RasterStage, Region
from framerender.tracer import get_tracer, trace

TRANSPARENT = (0, 0, 0, 0)
KEYING_MODES = ("mask", "color")


def _check_keying(keying):
    if keying not in KEYING_MODES:
        raise ValueError(f"Unknown keying mode '{keying}', expected one of {KEYING_MODES}")


@trace(label="fill_outline")
def fill_outline(canvas, outline, color, stroke_width=1, steps=24):
    """
    Fill and stroke the closed outer boundary.

    outline is a closed chain of CubicBezier segments; the last anchor is
    joined back to the first by a straight edge if they differ.
    """
    polyline = flatten_beziers(outline, steps)

    canvas.fill_polygons([polyline], color, Region.FILL)
    canvas.stroke_polylines([polyline], color, Region.STROKE, thickness=stroke_width)

    canvas.advance(RasterStage.EMPTY, RasterStage.FILLED)
    get_tracer().event(
        "Outline filled",
        segments=len(outline),
        fill_pixels=int(canvas.region_pixels(Region.FILL).sum()),
    )


@trace(label="carve_lenses")
def carve_lenses(canvas, lens_runs, sentinel, steps=24):
    """Fill each closed lens run with the lens sentinel colour."""
    for run in lens_runs:
        canvas.fill_polygons([flatten_beziers(run, steps)], sentinel, Region.LENS)

    canvas.advance(RasterStage.FILLED, RasterStage.LENS_CARVED)
    get_tracer().event(
        "Lenses carved",
        lenses=len(lens_runs),
        lens_pixels=int(canvas.region_pixels(Region.LENS).sum()),
    )


def fill_selector(canvas, fill_color, keying="mask"):
    """Pixels belonging to the untextured fill region."""
    _check_keying(keying)
    if keying == "mask":
        return canvas.region_pixels(Region.FILL)
    return canvas.color_pixels(fill_color)


def lens_selector(canvas, sentinel, keying="mask"):
    """Pixels belonging to lens holes."""
    _check_keying(keying)
    if keying == "mask":
        return canvas.region_pixels(Region.LENS)
    return canvas.color_pixels(sentinel)


@trace(label="composite_texture")
def composite_texture(canvas, texture, fill_color, alpha_offset=20, keying="mask"):
    """
    Replace fill pixels with the texture pixel at the same coordinates.

    The replacement alpha is the texture's alpha less alpha_offset, floored at
    zero. Fill pixels outside the texture's extent keep the flat colour.
    A texture of None leaves the canvas untouched.

    Returns the number of pixels replaced.
    """
    replaced = 0

    if texture is not None:
        h = min(canvas.height, texture.shape[0])
        w = min(canvas.width, texture.shape[1])

        selector = np.zeros((canvas.height, canvas.width), dtype=bool)
        selector[:h, :w] = fill_selector(canvas, fill_color, keying)[:h, :w]

        patch = np.zeros((canvas.height, canvas.width, 4), dtype=np.uint8)
        patch[:h, :w] = texture[:h, :w]
        alpha = patch[..., 3].astype(np.int16) - int(alpha_offset)
        patch[..., 3] = np.clip(alpha, 0, 255).astype(np.uint8)

        canvas.pixels[selector] = patch[selector]
        replaced = int(selector.sum())

    canvas.advance(RasterStage.LENS_CARVED, RasterStage.TEXTURE_COMPOSITED)
    get_tracer().event("Texture composited", replaced=replaced, textured=texture is not None)

    return replaced


@trace(label="resolve_transparency")
def resolve_transparency(canvas, sentinel, keying="mask"):
    """
    Make lens pixels fully transparent.

    Returns the number of pixels cleared.
    """
    selector = lens_selector(canvas, sentinel, keying)
    canvas.pixels[selector] = TRANSPARENT

    canvas.advance(RasterStage.TEXTURE_COMPOSITED, RasterStage.TRANSPARENCY_RESOLVED)
    cleared = int(selector.sum())
    get_tracer().event("Transparency resolved", cleared=cleared)

    return cleared


@trace(label="encode_png")
def encode_png(canvas):
    """Serialize the canvas as PNG bytes."""
    bgra = cv2.cvtColor(canvas.pixels, cv2.COLOR_RGBA2BGRA)

    try:
        ok, buffer = cv2.imencode(".png", bgra)
    except cv2.error as e:
        raise EncodeError(f"PNG encoding failed: {e}") from e

    if not ok:
        raise EncodeError("PNG encoding failed")

    canvas.advance(RasterStage.TRANSPARENCY_RESOLVED, RasterStage.ENCODED)
    data = buffer.tobytes()
    get_tracer().event("Canvas encoded", size=len(data))

    return data


def decode_png(data):
    """Decode PNG bytes back into an RGBA array."""
    arr = np.frombuffer(data, dtype=np.uint8)
    bgra = cv2.imdecode(arr, cv2.IMREAD_UNCHANGED)
    if bgra is None:
        raise ValueError("Not a decodable image")
    return cv2.cvtColor(bgra, cv2.COLOR_BGRA2RGBA)
