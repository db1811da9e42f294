"""
Raster canvas for framerender.

A canvas is an RGBA colour buffer plus a region mask recording which drawing
step produced each pixel. Compositing passes select pixels through the mask
(or, in legacy colour-key mode, through exact colour equality), so the
texture only lands on the fill and transparency only punches the lenses.

Steps must run in order:
EMPTY -> FILLED -> LENS_CARVED -> TEXTURE_COMPOSITED -> TRANSPARENCY_RESOLVED -> ENCODED
"""

from enum import Enum, IntEnum

import cv2
import numpy as np

from framerender.errors import RenderStateError


class Region(IntEnum):
    """Per-pixel region labels."""
    BACKGROUND = 0
    FILL = 1
    STROKE = 2
    LENS = 3


class RasterStage(str, Enum):
    """Position of a canvas in the render sequence."""
    EMPTY = "empty"
    FILLED = "filled"
    LENS_CARVED = "lens_carved"
    TEXTURE_COMPOSITED = "texture_composited"
    TRANSPARENCY_RESOLVED = "transparency_resolved"
    ENCODED = "encoded"


_ORDER = list(RasterStage)


class Canvas:
    """Fixed-size RGBA buffer with a parallel region mask."""

    def __init__(self, width, height, background=(0, 0, 0, 0), subpixel_bits=4):
        self.width = int(width)
        self.height = int(height)
        self.subpixel_bits = int(subpixel_bits)
        self.background = tuple(int(c) for c in background)
        self.pixels = np.empty((self.height, self.width, 4), dtype=np.uint8)
        self.pixels[:] = self.background
        self.mask = np.full((self.height, self.width), Region.BACKGROUND, dtype=np.uint8)
        self.stage = RasterStage.EMPTY

    @classmethod
    def from_config(cls, config):
        """Create a canvas sized per CanvasConfig / CompositingConfig."""
        return cls(
            config.canvas.width,
            config.canvas.height,
            background=config.canvas.background,
            subpixel_bits=config.compositing.subpixel_bits,
        )

    def advance(self, expected, new):
        """Move from stage expected to stage new, or raise RenderStateError."""
        if self.stage != expected:
            raise RenderStateError(
                f"Cannot enter '{new.value}' from '{self.stage.value}', expected '{expected.value}'"
            )
        if _ORDER.index(new) != _ORDER.index(expected) + 1:
            raise RenderStateError(f"'{new.value}' does not follow '{expected.value}'")
        self.stage = new

    def _fixed_point(self, polyline):
        """Polyline in OpenCV's fixed-point vertex format."""
        factor = 1 << self.subpixel_bits
        pts = np.round(np.asarray(polyline, dtype=np.float64) * factor)
        return pts.astype(np.int32).reshape(-1, 1, 2)

    def fill_polygons(self, polylines, color, region):
        """
        Fill closed polylines with color and label them region.

        Polylines passed together are filled with OpenCV's parity rule, so a
        polyline nested in another leaves a hole. Lenses are carved by a
        separate call instead so they get their own region label.
        """
        pts = [self._fixed_point(p) for p in polylines if len(p) >= 3]
        if not pts:
            return
        color = tuple(int(c) for c in color)
        cv2.fillPoly(self.pixels, pts, color, lineType=cv2.LINE_8, shift=self.subpixel_bits)
        cv2.fillPoly(self.mask, pts, (int(region),), lineType=cv2.LINE_8, shift=self.subpixel_bits)

    def stroke_polylines(self, polylines, color, region, thickness=1, closed=True):
        """Stroke polylines with color and label the stroked pixels region."""
        pts = [self._fixed_point(p) for p in polylines if len(p) >= 2]
        if not pts or thickness <= 0:
            return
        color = tuple(int(c) for c in color)
        cv2.polylines(self.pixels, pts, closed, color, thickness=thickness,
                      lineType=cv2.LINE_8, shift=self.subpixel_bits)
        cv2.polylines(self.mask, pts, closed, (int(region),), thickness=thickness,
                      lineType=cv2.LINE_8, shift=self.subpixel_bits)

    def region_pixels(self, region):
        """Boolean selector of pixels labelled region."""
        return self.mask == int(region)

    def color_pixels(self, color):
        """Boolean selector of pixels exactly equal to color."""
        color = np.array([int(c) for c in color], dtype=np.uint8)
        return np.all(self.pixels == color, axis=-1)

    def copy_pixels(self):
        """Snapshot of the colour buffer."""
        return self.pixels.copy()
