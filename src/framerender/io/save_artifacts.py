"""
Artifact saving utilities for framerender.

Handles publishing rendered previews atomically and writing debug images,
JSON and SVG files for each render stage.
"""

import json
import os
import tempfile

import cv2

from framerender.errors import PersistError
from framerender.tracer import get_tracer


def ensure_dir(path):
    """Create directory if it does not exist."""
    if path:
        os.makedirs(path, exist_ok=True)


def publish_atomic(data, path):
    """
    Write bytes so readers see either the old file or the complete new one.

    The data goes to a temporary file in the target directory which is then
    renamed over the destination.

    Raises PersistError on any filesystem failure.
    """
    tracer = get_tracer()
    directory = os.path.dirname(os.path.abspath(path))

    tmp_path = None
    try:
        ensure_dir(directory)
        fd, tmp_path = tempfile.mkstemp(
            prefix=".", suffix=".tmp", dir=directory,
        )
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
        tmp_path = None
    except OSError as e:
        raise PersistError(path, str(e)) from e
    finally:
        if tmp_path and os.path.exists(tmp_path):
            os.remove(tmp_path)

    tracer.event(f"Published: {path}", size=len(data))


def save_image(img, path, max_edge=None):
    """
    Save an RGBA or RGB image to disk.

    Optionally downscales to max_edge while preserving aspect ratio.
    """
    tracer = get_tracer()

    if max_edge and max(img.shape[:2]) > max_edge:
        scale = max_edge / max(img.shape[:2])
        new_size = (int(img.shape[1] * scale), int(img.shape[0] * scale))
        img = cv2.resize(img, new_size, interpolation=cv2.INTER_NEAREST)

    if img.ndim == 3 and img.shape[2] == 4:
        img_bgr = cv2.cvtColor(img, cv2.COLOR_RGBA2BGRA)
    elif img.ndim == 3 and img.shape[2] == 3:
        img_bgr = cv2.cvtColor(img, cv2.COLOR_RGB2BGR)
    else:
        img_bgr = img

    ensure_dir(os.path.dirname(path))
    cv2.imwrite(path, img_bgr)
    tracer.event(f"Saved image: {path}")


def save_json(data, path, indent=2):
    """
    Save a dictionary or Pydantic model to JSON.
    """
    tracer = get_tracer()

    ensure_dir(os.path.dirname(path))

    if hasattr(data, "model_dump"):
        data = data.model_dump(mode="json")

    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=indent, default=str)

    tracer.event(f"Saved JSON: {path}")


def save_svg(svg_content, path):
    """
    Save SVG content to file.
    """
    tracer = get_tracer()

    ensure_dir(os.path.dirname(path))

    if hasattr(svg_content, "tostring"):
        content = svg_content.tostring()
    else:
        content = str(svg_content)

    with open(path, "w", encoding="utf-8") as f:
        f.write(content)

    tracer.event(f"Saved SVG: {path}")


def mask_preview(mask):
    """Spread region labels over the gray range so a mask is visible as PNG."""
    return (mask.astype("uint16") * 80).clip(0, 255).astype("uint8")


class DebugArtifactWriter:
    """
    Helper class to manage debug artifact writing for a single render.

    Artifacts land under out_dir/debug/<render_id>/<stage>/.
    """

    def __init__(self, out_dir, render_id, enabled=True, max_edge=1600):
        self.out_dir = out_dir
        self.render_id = render_id
        self.enabled = enabled
        self.max_edge = max_edge

    def get_stage_dir(self, stage_name):
        """Get the debug directory for a stage, creating it if needed."""
        stage_dir = os.path.join(self.out_dir, "debug", self.render_id, stage_name)
        ensure_dir(stage_dir)
        return stage_dir

    def save_image(self, img, stage_name, filename):
        """Save an image artifact."""
        if not self.enabled:
            return
        path = os.path.join(self.get_stage_dir(stage_name), filename)
        save_image(img, path, max_edge=self.max_edge)

    def save_canvas(self, canvas, filename="canvas.png"):
        """Save the colour buffer and region mask under the canvas's stage."""
        if not self.enabled:
            return
        stage_name = canvas.stage.value
        self.save_image(canvas.pixels, stage_name, filename)
        self.save_image(mask_preview(canvas.mask), stage_name, "regions.png")

    def save_json(self, data, stage_name, filename):
        """Save a JSON artifact."""
        if not self.enabled:
            return
        path = os.path.join(self.get_stage_dir(stage_name), filename)
        save_json(data, path)

    def save_svg(self, svg_content, stage_name, filename):
        """Save an SVG artifact."""
        if not self.enabled:
            return
        path = os.path.join(self.get_stage_dir(stage_name), filename)
        save_svg(svg_content, path)
