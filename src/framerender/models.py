"""
Pydantic data models for framerender.

Design and material records arrive from the storage layer already resolved;
these models validate their shape. Curve points are stored as fixed-point
integer pairs (hundredths of a millimetre by default, see
GeometryConfig.units_per_mm) and only become floats inside the render.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Severity(str, Enum):
    """Severity levels for design checks."""
    ERROR = "error"
    WARN = "warn"
    INFO = "info"


class CubicBezier(BaseModel):
    """A single cubic Bezier curve segment."""
    p0: List[float] = Field(..., min_length=2, max_length=2)  # start anchor
    p1: List[float] = Field(..., min_length=2, max_length=2)  # control point 1
    p2: List[float] = Field(..., min_length=2, max_length=2)  # control point 2
    p3: List[float] = Field(..., min_length=2, max_length=2)  # end anchor

    model_config = ConfigDict(frozen=True)


class Engraving(BaseModel):
    """Engraved pattern paths, coordinates in fixed-point units."""
    depth: int = 0
    cutter_angle: int = 0
    paths: List[List[List[int]]] = Field(default_factory=list)


class Front(BaseModel):
    """The front of a frame: half outer contour, lens and extra cutouts."""
    outer_curve: List[List[int]] = Field(default_factory=list)
    lens: List[List[int]] = Field(default_factory=list)
    holes: List[List[List[int]]] = Field(default_factory=list)
    engraving: Engraving = Field(default_factory=Engraving)
    materials: List[str] = Field(default_factory=list)


class Temple(BaseModel):
    """The arms of the frame; both temples share one contour."""
    contour: List[List[int]] = Field(default_factory=list)
    materials: List[str] = Field(default_factory=list)
    engraving: Engraving = Field(default_factory=Engraving)
    left_text: str = ""
    right_text: str = ""
    temple_separation: int = 0
    temple_height: int = 0


class FrameDesign(BaseModel):
    """A complete frame design."""
    id: str
    name: str = ""
    designer: str = ""
    front: Front = Field(default_factory=Front)
    temple: Temple = Field(default_factory=Temple)
    collections: List[str] = Field(default_factory=list)
    updated: datetime = Field(default_factory=datetime.now)


def _check_channels(value):
    if value is not None and any(c < 0 or c > 255 for c in value):
        raise ValueError("colour channels must be within 0-255")
    return value


class MaterialAppearance(BaseModel):
    """What a renderer needs from a material: a colour and maybe a texture."""
    fill_color: List[int] = Field(..., min_length=4, max_length=4)
    texture_path: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @field_validator("fill_color")
    @classmethod
    def _channels_in_range(cls, value):
        return _check_channels(value)


class Material(BaseModel):
    """
    A plastic blank a front or temple can be cut from.

    Laminated materials also carry bottom_* values; the preview only uses the
    top layer.
    """
    id: str
    name: str = ""
    top_thickness: float = 0.0
    top_color: List[int] = Field(..., min_length=4, max_length=4)
    top_texture: Optional[str] = None
    top_manufacturer_code: str = ""
    bottom_thickness: Optional[float] = None
    bottom_color: Optional[List[int]] = Field(None, min_length=4, max_length=4)
    bottom_texture: Optional[str] = None
    bottom_manufacturer_code: Optional[str] = None
    stock: int = 0
    photo_urls: List[str] = Field(default_factory=list)

    @field_validator("top_color", "bottom_color")
    @classmethod
    def _channels_in_range(cls, value):
        return _check_channels(value)

    def appearance(self):
        """Resolve the top layer into a MaterialAppearance."""
        return MaterialAppearance(
            fill_color=list(self.top_color),
            texture_path=self.top_texture or None,
        )


class CheckResult(BaseModel):
    """Result of a single design check."""
    rule_id: str
    severity: Severity
    passed: bool
    message: str
    evidence: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")


class ValidationReport(BaseModel):
    """Collection of design check results."""
    checks: List[CheckResult] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @property
    def has_errors(self):
        """Check if any errors exist."""
        return any(c.severity == Severity.ERROR and not c.passed for c in self.checks)

    @property
    def warning_count(self):
        """Count of failed warning-level checks."""
        return sum(1 for c in self.checks if c.severity == Severity.WARN and not c.passed)


class RenderResult(BaseModel):
    """Encoded preview plus the placement data a client overlays it with."""
    image_bytes: bytes
    vertical_origin_offset: float
    pixels_per_unit: float
    width: int
    height: int
    warnings: List[str] = Field(default_factory=list)
    validation: ValidationReport = Field(default_factory=ValidationReport)


class RenderMetadata(BaseModel):
    """Response body describing a published preview."""
    url: str
    y_origin: float
    pixels_per_mm: float
    warnings: List[str] = Field(default_factory=list)


def render_filename(design_id, material_id, template="{design_id}-{material_id}.png"):
    """Filename a preview for this design/material pair is published under."""
    return template.format(design_id=design_id, material_id=material_id)
