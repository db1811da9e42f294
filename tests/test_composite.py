"""Tests for the raster canvas and compositing passes."""

import numpy as np
import pytest

from framerender.errors import RenderStateError
from framerender.raster.canvas import Canvas, RasterStage, Region
from framerender.raster.composite import (
    composite_texture, decode_png, encode_png, resolve_transparency,
)

FILL = [20, 20, 20, 255]
SENTINEL = [255, 0, 255, 255]
WHITE = [255, 255, 255, 255]


def solid_texture(h, w, rgba):
    tex = np.zeros((h, w, 4), dtype=np.uint8)
    tex[:] = rgba
    return tex


class TestCanvasFill:
    """Tests for filling and carving."""

    def test_regions_labelled(self, small_canvas):
        assert small_canvas.mask[20, 50] == Region.FILL
        assert small_canvas.mask[30, 50] == Region.LENS
        assert small_canvas.mask[2, 2] == Region.BACKGROUND
        assert (small_canvas.mask == Region.STROKE).any()

    def test_colors_written(self, small_canvas):
        assert list(small_canvas.pixels[20, 50]) == FILL
        assert list(small_canvas.pixels[30, 50]) == SENTINEL
        assert list(small_canvas.pixels[2, 2]) == WHITE

    def test_stroke_uses_fill_color(self, small_canvas):
        stroke = small_canvas.region_pixels(Region.STROKE)
        assert (small_canvas.pixels[stroke] == FILL).all()

    def test_stage_after_carving(self, small_canvas):
        assert small_canvas.stage == RasterStage.LENS_CARVED


class TestStageOrder:
    """Tests for the raster step sequence."""

    def test_transparency_before_texture_rejected(self, small_canvas):
        with pytest.raises(RenderStateError):
            resolve_transparency(small_canvas, SENTINEL)

    def test_encode_before_transparency_rejected(self, small_canvas):
        with pytest.raises(RenderStateError):
            encode_png(small_canvas)

    def test_texture_on_empty_canvas_rejected(self):
        canvas = Canvas(10, 10)
        with pytest.raises(RenderStateError):
            composite_texture(canvas, None, FILL)


class TestTextureComposite:
    """Tests for texture substitution."""

    def test_only_fill_pixels_change(self, small_canvas):
        before = small_canvas.copy_pixels()
        fill = small_canvas.region_pixels(Region.FILL)

        composite_texture(small_canvas, solid_texture(60, 100, [10, 200, 30, 255]), FILL)

        assert (small_canvas.pixels[~fill] == before[~fill]).all()
        assert (small_canvas.pixels[fill] == [10, 200, 30, 235]).all()

    def test_stroke_and_background_bit_identical(self, small_canvas):
        before = small_canvas.copy_pixels()
        untouched = small_canvas.mask != Region.FILL

        composite_texture(small_canvas, solid_texture(60, 100, [1, 2, 3, 255]), FILL)

        assert np.array_equal(small_canvas.pixels[untouched], before[untouched])

    def test_alpha_offset_floors_at_zero(self, small_canvas):
        composite_texture(small_canvas, solid_texture(60, 100, [9, 9, 9, 5]), FILL, alpha_offset=20)
        assert list(small_canvas.pixels[20, 50]) == [9, 9, 9, 0]

    def test_texture_smaller_than_canvas(self, small_canvas):
        composite_texture(small_canvas, solid_texture(40, 100, [10, 200, 30, 255]), FILL)

        assert list(small_canvas.pixels[20, 50]) == [10, 200, 30, 235]
        assert list(small_canvas.pixels[45, 50]) == FILL

    def test_no_texture_leaves_canvas(self, small_canvas):
        before = small_canvas.copy_pixels()

        replaced = composite_texture(small_canvas, None, FILL)

        assert replaced == 0
        assert np.array_equal(small_canvas.pixels, before)
        assert small_canvas.stage == RasterStage.TEXTURE_COMPOSITED

    def test_color_keying_selects_by_equality(self, small_canvas):
        before = small_canvas.copy_pixels()
        keyed = np.all(before == FILL, axis=-1)

        composite_texture(small_canvas, solid_texture(60, 100, [10, 200, 30, 255]), FILL, keying="color")

        assert (small_canvas.pixels[keyed] == [10, 200, 30, 235]).all()
        assert np.array_equal(small_canvas.pixels[~keyed], before[~keyed])

    def test_unknown_keying(self, small_canvas):
        with pytest.raises(ValueError):
            composite_texture(small_canvas, solid_texture(60, 100, [0, 0, 0, 255]), FILL, keying="alpha")


class TestTransparency:
    """Tests for the lens transparency pass."""

    def test_only_lens_pixels_cleared(self, small_canvas):
        composite_texture(small_canvas, None, FILL)
        before = small_canvas.copy_pixels()
        lens = small_canvas.region_pixels(Region.LENS)

        cleared = resolve_transparency(small_canvas, SENTINEL)

        assert cleared == int(lens.sum())
        assert (small_canvas.pixels[lens] == 0).all()
        assert np.array_equal(small_canvas.pixels[~lens], before[~lens])

    def test_lens_never_textured(self, small_canvas):
        composite_texture(small_canvas, solid_texture(60, 100, [10, 200, 30, 255]), FILL)
        resolve_transparency(small_canvas, SENTINEL)

        assert list(small_canvas.pixels[30, 50]) == [0, 0, 0, 0]

    def test_color_keying(self, small_canvas):
        composite_texture(small_canvas, None, FILL)
        before = small_canvas.copy_pixels()
        keyed = np.all(before == SENTINEL, axis=-1)

        resolve_transparency(small_canvas, SENTINEL, keying="color")

        assert (small_canvas.pixels[keyed] == 0).all()
        assert np.array_equal(small_canvas.pixels[~keyed], before[~keyed])


class TestEncode:
    """Tests for PNG encoding."""

    def test_round_trip_preserves_pixels(self, small_canvas):
        composite_texture(small_canvas, None, FILL)
        resolve_transparency(small_canvas, SENTINEL)
        expected = small_canvas.copy_pixels()

        data = encode_png(small_canvas)

        assert data[:8] == b"\x89PNG\r\n\x1a\n"
        assert np.array_equal(decode_png(data), expected)
        assert small_canvas.stage == RasterStage.ENCODED
