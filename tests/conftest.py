"""Pytest fixtures for framerender tests."""

import os
import tempfile

import cv2
import numpy as np
import pytest

# Half-profile of a frame front in millimetres. Starts and ends on the
# mirror axis; y grows downward like image rows.
OUTER_MM = [
    (0, -10), (20, -14), (45, -16), (60, -8),
    (62, 8), (50, 22), (25, 24), (8, 14), (0, 6),
]
LENS_MM = [(15, -8), (45, -10), (54, 2), (45, 16), (22, 16), (14, 4)]

FILL_COLOR = [20, 20, 20, 255]
TEXTURE_RGB = (10, 200, 30)


def to_fixed(points, units=100):
    return [[int(round(x * units)), int(round(y * units))] for x, y in points]


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def default_config():
    """Create default render configuration."""
    from framerender.config import RenderConfig
    return RenderConfig()


@pytest.fixture
def opaque_config():
    """Default configuration with an opaque white background."""
    from framerender.config import RenderConfig
    config = RenderConfig()
    config.canvas.background = [255, 255, 255, 255]
    return config


@pytest.fixture
def sample_design():
    """A symmetric frame design in fixed-point hundredths of a millimetre."""
    from framerender.models import FrameDesign, Front, Temple
    return FrameDesign(
        id="design1",
        name="Sample",
        front=Front(outer_curve=to_fixed(OUTER_MM), lens=to_fixed(LENS_MM)),
        temple=Temple(contour=to_fixed([(0, 0), (120, 2), (140, 20), (0, 5)])),
    )


@pytest.fixture
def flat_material():
    """A material with only a fill colour."""
    from framerender.models import Material
    return Material(id="black", name="Black", top_color=FILL_COLOR)


@pytest.fixture
def texture_path(temp_dir):
    """A solid-colour texture covering the whole default canvas."""
    img = np.zeros((900, 2000, 3), dtype=np.uint8)
    img[:] = TEXTURE_RGB[::-1]  # BGR on disk
    path = os.path.join(temp_dir, "havana.png")
    cv2.imwrite(path, img)
    return path


@pytest.fixture
def textured_material(texture_path):
    """A material with a texture image."""
    from framerender.models import Material
    return Material(id="havana", name="Havana", top_color=FILL_COLOR, top_texture=texture_path)


@pytest.fixture
def small_canvas():
    """A small canvas with a filled outline and a carved lens.

    Outline: smoothed rectangle (10,10)-(90,50). Lens: smoothed rectangle
    (40,25)-(60,35). At column 50 the fill spans rows ~12-48 and the lens
    rows ~26-34.
    """
    from framerender.curves.bezier_fit import fit_curve
    from framerender.raster.canvas import Canvas
    from framerender.raster.composite import carve_lenses, fill_outline

    canvas = Canvas(100, 60, background=(255, 255, 255, 255))
    outline = fit_curve([(10, 10), (90, 10), (90, 50), (10, 50)], closed=True)
    lens = fit_curve([(40, 25), (60, 25), (60, 35), (40, 35)], closed=True)

    fill_outline(canvas, outline, FILL_COLOR, stroke_width=1)
    carve_lenses(canvas, [lens], [255, 0, 255, 255])
    return canvas
