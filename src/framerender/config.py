"""
Configuration management for framerender.

Loads YAML configuration with sensible defaults for every render stage.
Densities, sentinel colours and identifiers live here rather than in the
rendering code so callers can inject them.
"""

import os
from dataclasses import asdict, dataclass, field

import yaml


@dataclass
class CanvasConfig:
    """Configuration for the output raster."""
    width: int = 2000
    height: int = 900
    pixels_per_mm: float = 10.0
    origin_x: float = None  # None -> width / 2
    background: list = field(default_factory=lambda: [0, 0, 0, 0])

    @property
    def mirror_origin_x(self):
        """Canvas column the mirror axis is placed on."""
        if self.origin_x is None:
            return self.width / 2
        return self.origin_x


@dataclass
class GeometryConfig:
    """Configuration for curve handling."""
    units_per_mm: int = 100  # stored coordinates are hundredths of a millimetre
    flatten_steps: int = 24  # polyline samples per Bezier segment


@dataclass
class CompositingConfig:
    """Configuration for fill, texture and transparency passes."""
    keying: str = "mask"  # "mask" or "color"
    lens_sentinel: list = field(default_factory=lambda: [255, 0, 255, 255])
    texture_alpha_offset: int = 20
    stroke_width: int = 1
    subpixel_bits: int = 4


@dataclass
class OutputConfig:
    """Configuration for publishing rendered previews."""
    out_dir: str = "static-files"
    base_url: str = "http://localhost:3000/static"
    filename_template: str = "{design_id}-{material_id}.png"
    reuse_cached: bool = False
    max_workers: int = 4


@dataclass
class MaterialConfig:
    """Configuration for material selection."""
    default_material_id: str = None
    library_dir: str = "materials"  # holds <material_id>.json records


@dataclass
class TracingConfig:
    """Configuration for runtime tracing."""
    enabled: bool = False
    level: str = "INFO"
    file_path: str = None
    json_output: bool = False


@dataclass
class DebugConfig:
    """Configuration for debug artifact generation."""
    enabled: bool = False
    max_edge_scale: int = 1600
    emit_svg: bool = True


@dataclass
class RenderConfig:
    """Complete render configuration."""
    canvas: CanvasConfig = field(default_factory=CanvasConfig)
    geometry: GeometryConfig = field(default_factory=GeometryConfig)
    compositing: CompositingConfig = field(default_factory=CompositingConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    material: MaterialConfig = field(default_factory=MaterialConfig)
    tracing: TracingConfig = field(default_factory=TracingConfig)
    debug: DebugConfig = field(default_factory=DebugConfig)


SECTIONS = ("canvas", "geometry", "compositing", "output", "material", "tracing", "debug")


def load_config(config_path=None):
    """
    Load configuration from YAML file.

    Falls back to defaults for any missing values.
    """
    config = RenderConfig()

    if config_path and os.path.exists(config_path):
        with open(config_path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f) or {}

        config = _merge_config(config, yaml_data)

    return config


def _merge_config(config, yaml_data):
    """Merge YAML data into config dataclass, ignoring unknown keys."""
    for section_name in SECTIONS:
        values = yaml_data.get(section_name)
        if not values:
            continue

        section = getattr(config, section_name)
        for key, value in values.items():
            if hasattr(section, key):
                setattr(section, key, value)

    return config


def save_default_config(path):
    """Save default configuration to YAML file for reference."""
    config = RenderConfig()

    yaml_data = {name: asdict(getattr(config, name)) for name in SECTIONS}

    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(yaml_data, f, default_flow_style=False, sort_keys=False)
