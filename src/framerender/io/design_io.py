"""
Design and material record loading for framerender.

Reads JSON records into validated models and converts the legacy editor
export, whose curves are float millimetres, into fixed-point designs.
"""

import json
from datetime import datetime

from framerender.errors import InputValidationError
from framerender.models import FrameDesign, Front, Material, Temple
from framerender.tracer import get_tracer, trace


def _read_json(path):
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise InputValidationError(f"Cannot read {path}: {e}") from e


@trace(label="load_design")
def load_design(path):
    """Load a FrameDesign from a JSON file."""
    from pydantic import ValidationError

    data = _read_json(path)
    try:
        return FrameDesign.model_validate(data)
    except ValidationError as e:
        raise InputValidationError(f"Invalid design {path}: {e}") from e


@trace(label="load_material")
def load_material(path):
    """Load a Material from a JSON file."""
    from pydantic import ValidationError

    data = _read_json(path)
    try:
        return Material.model_validate(data)
    except ValidationError as e:
        raise InputValidationError(f"Invalid material {path}: {e}") from e


def _legacy_points(section, units_per_mm):
    """Convert [{"x": mm, "y": mm}, ...] into fixed-point pairs."""
    points = (section or {}).get("points") or []
    return [
        [int(round(p["x"] * units_per_mm)), int(round(p["y"] * units_per_mm))]
        for p in points
    ]


@trace(label="import_legacy_design")
def import_legacy_design(data, units_per_mm=100, design_id=None):
    """
    Convert a legacy editor export into a FrameDesign.

    The export carries "name", "collection", "owner", the curves "outercurve",
    "eyehole" and "templecurve" as {"points": [{"x", "y"}]} in millimetres,
    and "templelocation" {"x", "y"} in millimetres.
    """
    tracer = get_tracer()

    try:
        outer = _legacy_points(data.get("outercurve"), units_per_mm)
        lens = _legacy_points(data.get("eyehole"), units_per_mm)
        temple_contour = _legacy_points(data.get("templecurve"), units_per_mm)
        location = data.get("templelocation") or {}
        separation = int(round(location.get("x", 0) * units_per_mm))
        height = int(round(location.get("y", 0) * units_per_mm))
    except (KeyError, TypeError, AttributeError) as e:
        raise InputValidationError(f"Malformed legacy design: {e}") from e

    collection = data.get("collection")

    design = FrameDesign(
        id=design_id or data.get("id") or data.get("name", "design"),
        name=data.get("name", ""),
        designer=data.get("owner", ""),
        collections=[collection] if collection else [],
        updated=datetime.now(),
        front=Front(outer_curve=outer, lens=lens),
        temple=Temple(
            contour=temple_contour,
            temple_separation=separation,
            temple_height=height,
        ),
    )

    tracer.event(
        f"Imported legacy design '{design.name}'",
        outer=len(outer), lens=len(lens), temple=len(temple_contour),
    )

    return design
