"""
Texture loading for framerender.

Texture paths are resolved by the caller; this module only decodes them.
Every texture is returned as an RGBA uint8 array.
"""

import os

import cv2
import numpy as np

from framerender.errors import TextureUnavailableError
from framerender.tracer import get_tracer, trace


@trace(label="load_texture")
def load_texture(path):
    """
    Load a texture image from disk as RGBA.

    Gray, BGR and BGRA files are accepted; missing alpha becomes opaque.

    Raises TextureUnavailableError if the file is missing or cannot be decoded.
    """
    tracer = get_tracer()

    if not path or not os.path.isfile(path):
        raise TextureUnavailableError(path, "file not found")

    try:
        img = cv2.imread(path, cv2.IMREAD_UNCHANGED)
    except cv2.error as e:
        raise TextureUnavailableError(path, str(e)) from e

    if img is None:
        raise TextureUnavailableError(path, "unsupported or corrupt image")

    rgba = to_rgba(img)

    tracer.event(f"Loaded texture: {rgba.shape[1]}x{rgba.shape[0]}", path=path)

    return rgba


def to_rgba(img):
    """Normalise a decoded OpenCV image (gray, BGR or BGRA) to RGBA uint8."""
    if img.dtype != np.uint8:
        # 16-bit PNGs keep their high byte
        img = (img >> 8).astype(np.uint8) if img.dtype == np.uint16 else img.astype(np.uint8)

    if img.ndim == 2:
        return cv2.cvtColor(img, cv2.COLOR_GRAY2RGBA)
    if img.shape[2] == 3:
        return cv2.cvtColor(img, cv2.COLOR_BGR2RGBA)
    return cv2.cvtColor(img, cv2.COLOR_BGRA2RGBA)


def try_load_texture(path):
    """
    Load a texture, degrading to None if it is unavailable.

    Returns (texture_or_None, warning_or_None).
    """
    try:
        return load_texture(path), None
    except TextureUnavailableError as e:
        get_tracer().event(f"Texture skipped, using flat fill: {e.reason}", level="WARN", path=path)
        return None, str(e)
