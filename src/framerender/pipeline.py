"""
Render orchestrator for framerender.

Sequences placement, curve fitting, rasterization and compositing for one
design/material pair and produces the PNG plus its placement metadata.
Everything a render creates is local to the call, so renders can run on
separate threads; the only shared resource is the published file, which is
replaced atomically.
"""

import os
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import NamedTuple

from pydantic import ValidationError

from framerender.config import RenderConfig
from framerender.curves.bezier_fit import (
    closed_outline, compute_bezier_bbox, fit_curve, flatten_beziers,
)
from framerender.errors import FrameRenderError, InputValidationError, RenderCancelledError
from framerender.export.svg_outline import emit_frame_svg
from framerender.geometry.transform import place_symmetric, to_millimeters
from framerender.io.load_image import try_load_texture
from framerender.io.save_artifacts import DebugArtifactWriter, publish_atomic
from framerender.models import (
    Material, MaterialAppearance, RenderMetadata, RenderResult, render_filename,
)
from framerender.raster.canvas import Canvas
from framerender.raster.composite import (
    carve_lenses, composite_texture, encode_png, fill_outline, resolve_transparency,
)
from framerender.tracer import get_tracer, trace
from framerender.validate.rules import run_design_checks, validate_design


class Placement(NamedTuple):
    """Frame geometry placed on the canvas, in pixels."""
    outer_mm: tuple
    left: tuple
    right: tuple
    lens_left: tuple
    lens_right: tuple
    vertical_offset: float


def _check_cancelled(stage, deadline=None, cancel_event=None):
    """Raise RenderCancelledError if the caller gave up before stage."""
    if cancel_event is not None and cancel_event.is_set():
        raise RenderCancelledError(stage)
    if deadline is not None and time.monotonic() >= deadline:
        raise RenderCancelledError(stage)


def _resolve_scale(canvas_scale, config):
    scale = config.canvas.pixels_per_mm if canvas_scale is None else canvas_scale
    if scale <= 0:
        raise InputValidationError(f"Canvas scale must be positive, got {scale}")
    return float(scale)


def resolve_appearance(material):
    """Accept a Material record or an already resolved MaterialAppearance."""
    if isinstance(material, MaterialAppearance):
        return material
    if isinstance(material, Material):
        try:
            return material.appearance()
        except ValidationError as e:
            raise InputValidationError(f"Invalid material '{material.id}': {e}") from e
    raise InputValidationError(f"Unsupported material type: {type(material).__name__}")


def vertical_origin_offset(vertical_offset, canvas_height):
    """
    Distance in pixels from the canvas bottom up to the design's y=0 line.

    Centring moves y=0 to row -vertical_offset.
    """
    return canvas_height + vertical_offset


def place_frame(design, canvas_scale, config):
    """Scale, mirror and centre the outer curve and lens of a design."""
    units = config.geometry.units_per_mm
    origin_x = config.canvas.mirror_origin_x

    outer_mm = to_millimeters(design.front.outer_curve, units)
    lens_mm = to_millimeters(design.front.lens, units)

    left, right, offset = place_symmetric(outer_mm, canvas_scale, origin_x)
    lens_left, lens_right, _ = place_symmetric(lens_mm, canvas_scale, origin_x, vertical_offset=offset)

    return Placement(outer_mm, left, right, lens_left, lens_right, offset)


@trace(label="compute_placement")
def compute_placement(design, canvas_scale=None, config=None):
    """
    Placement metadata for a design without rasterizing it.

    Returns (vertical_origin_offset, pixels_per_unit).
    """
    config = config or RenderConfig()
    scale = _resolve_scale(canvas_scale, config)
    validate_design(design)

    placement = place_frame(design, scale, config)
    return vertical_origin_offset(placement.vertical_offset, config.canvas.height), scale


@trace(label="render")
def render(design, material, canvas_scale=None, config=None, deadline=None,
           cancel_event=None, debug_writer=None):
    """
    Render a design in a material.

    Args:
        design: FrameDesign, already loaded and authorised by the caller
        material: Material record or MaterialAppearance
        canvas_scale: pixels per millimetre (defaults to canvas.pixels_per_mm)
        config: RenderConfig
        deadline: absolute time.monotonic() value after which to give up
        cancel_event: threading.Event the caller may set to cancel
        debug_writer: optional DebugArtifactWriter for stage snapshots

    Returns:
        RenderResult

    Raises InputValidationError before any canvas work for unusable input,
    EncodeError if the PNG cannot be produced, RenderCancelledError when the
    deadline passes or the render is cancelled.
    """
    tracer = get_tracer()
    config = config or RenderConfig()
    scale = _resolve_scale(canvas_scale, config)
    appearance = resolve_appearance(material)
    compositing = config.compositing
    steps = config.geometry.flatten_steps

    validate_design(design)
    if list(appearance.fill_color) == list(compositing.lens_sentinel):
        raise InputValidationError("Fill colour collides with the lens sentinel colour")
    if compositing.keying == "color" and list(appearance.fill_color) == list(config.canvas.background):
        # colour keying cannot tell the fill from an identical background
        raise InputValidationError("Fill colour collides with the canvas background in colour keying mode")

    warnings = []

    with tracer.span("fit_geometry", module="pipeline"):
        placement = place_frame(design, scale, config)

        left_run = fit_curve(placement.left, closed=False, force_horizontal_ends=True, name="outer_left")
        right_run = fit_curve(placement.right, closed=False, force_horizontal_ends=True, name="outer_right")
        outline = closed_outline(left_run, right_run)
        tracer.event("Outline fitted", segments=len(outline), bbox=compute_bezier_bbox(outline))

        lens_runs = [
            fit_curve(placement.lens_left, closed=True, name="lens_left"),
            fit_curve(placement.lens_right, closed=True, name="lens_right"),
        ]

        if design.front.holes:
            tracer.event("Front holes present but not carved", level="WARN", holes=len(design.front.holes))

        if debug_writer and config.debug.emit_svg:
            dwg = emit_frame_svg(outline, lens_runs, config.canvas.width, config.canvas.height,
                                 appearance.fill_color)
            debug_writer.save_svg(dwg, "fitted", "outline.svg")

    _check_cancelled("rasterize", deadline, cancel_event)

    with tracer.span("rasterize", module="pipeline"):
        canvas = Canvas.from_config(config)

        fill_outline(canvas, outline, appearance.fill_color, compositing.stroke_width, steps)
        if debug_writer:
            debug_writer.save_canvas(canvas)

        carve_lenses(canvas, lens_runs, compositing.lens_sentinel, steps)
        if debug_writer:
            debug_writer.save_canvas(canvas)

    texture = None
    if appearance.texture_path:
        _check_cancelled("load_texture", deadline, cancel_event)
        texture, warning = try_load_texture(appearance.texture_path)
        if warning:
            warnings.append(warning)

    _check_cancelled("composite", deadline, cancel_event)

    with tracer.span("composite", module="pipeline"):
        composite_texture(canvas, texture, appearance.fill_color,
                          compositing.texture_alpha_offset, compositing.keying)
        if debug_writer:
            debug_writer.save_canvas(canvas)

        resolve_transparency(canvas, compositing.lens_sentinel, compositing.keying)
        if debug_writer:
            debug_writer.save_canvas(canvas)

    report = run_design_checks(
        flatten_beziers(outline, steps),
        flatten_beziers(lens_runs[0], steps),
        flatten_beziers(lens_runs[1], steps),
        canvas.width, canvas.height,
        placement.outer_mm,
    )
    for check in report.checks:
        if not check.passed:
            warnings.append(check.message)

    if debug_writer:
        debug_writer.save_json(report, "checks", "validation_report.json")

    image_bytes = encode_png(canvas)

    result = RenderResult(
        image_bytes=image_bytes,
        vertical_origin_offset=vertical_origin_offset(placement.vertical_offset, canvas.height),
        pixels_per_unit=scale,
        width=canvas.width,
        height=canvas.height,
        warnings=warnings,
        validation=report,
    )

    tracer.event(
        f"Render complete: {len(image_bytes)} bytes",
        design=design.id, warnings=len(warnings),
    )

    return result


def _is_fresh(path, updated):
    """True if path exists and was written after the design last changed."""
    try:
        return os.path.getmtime(path) > updated.timestamp()
    except OSError:
        return False


@trace(label="render_and_publish")
def render_and_publish(design, material, out_dir=None, base_url=None, canvas_scale=None,
                       config=None, deadline=None, cancel_event=None):
    """
    Render a design/material pair and publish the PNG.

    The file is named from the design and material ids and replaced
    atomically, so concurrent renders of the same pair never expose a
    partial file.

    Returns RenderMetadata. Raises PersistError if the file cannot be written.
    """
    tracer = get_tracer()
    config = config or RenderConfig()
    out_dir = out_dir or config.output.out_dir
    base_url = base_url if base_url is not None else config.output.base_url

    filename = render_filename(design.id, material.id, config.output.filename_template)
    path = os.path.join(out_dir, filename)
    url = f"{base_url.rstrip('/')}/{filename}"

    if config.output.reuse_cached and _is_fresh(path, design.updated):
        y_origin, density = compute_placement(design, canvas_scale, config)
        tracer.event("Returning cached render", path=path)
        return RenderMetadata(url=url, y_origin=y_origin, pixels_per_mm=density)

    debug_writer = DebugArtifactWriter(
        out_dir, f"{design.id}-{material.id}",
        enabled=True,
        max_edge=config.debug.max_edge_scale,
    ) if config.debug.enabled else None

    result = render(
        design, material,
        canvas_scale=canvas_scale,
        config=config,
        deadline=deadline,
        cancel_event=cancel_event,
        debug_writer=debug_writer,
    )

    publish_atomic(result.image_bytes, path)

    return RenderMetadata(
        url=url,
        y_origin=result.vertical_origin_offset,
        pixels_per_mm=result.pixels_per_unit,
        warnings=result.warnings,
    )


@trace(label="render_batch")
def render_batch(design, materials, out_dir=None, base_url=None, canvas_scale=None,
                 config=None, max_workers=None):
    """
    Render one design in several materials on a thread pool.

    Returns (published, failed): dicts keyed by material id holding
    RenderMetadata and error messages respectively.
    """
    tracer = get_tracer()
    config = config or RenderConfig()
    max_workers = max_workers or config.output.max_workers

    published = {}
    failed = {}

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {
            executor.submit(
                render_and_publish, design, material,
                out_dir=out_dir, base_url=base_url,
                canvas_scale=canvas_scale, config=config,
            ): material.id
            for material in materials
        }

        for future in as_completed(futures):
            material_id = futures[future]
            try:
                published[material_id] = future.result()
            except FrameRenderError as e:
                tracer.event(f"Render failed: {e}", level="ERROR", material=material_id)
                failed[material_id] = str(e)

    tracer.event(f"Batch complete: {len(published)} published, {len(failed)} failed")

    return published, failed
