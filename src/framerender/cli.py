"""
Command-line interface for framerender.

Provides commands for rendering previews, importing legacy designs and
writing a default configuration file.
"""

import argparse
import json
import os
import sys

from framerender.config import load_config, save_default_config
from framerender.errors import FrameRenderError
from framerender.tracer import configure_tracer, get_tracer


def main(argv=None):
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="framerender: render eyewear frame designs to PNG previews",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Render command
    render_parser = subparsers.add_parser("render", help="Render a design in one or more materials")
    render_parser.add_argument(
        "--design", "-d",
        required=True,
        help="Design JSON file",
    )
    render_parser.add_argument(
        "--material", "-m",
        action="append",
        default=None,
        help="Material JSON file (repeat for several materials)",
    )
    render_parser.add_argument(
        "--out", "-o",
        default=None,
        help="Output directory (defaults to output.out_dir)",
    )
    render_parser.add_argument(
        "--base-url",
        default=None,
        help="URL prefix the output directory is served under",
    )
    render_parser.add_argument(
        "--scale",
        type=float,
        default=None,
        help="Pixels per millimetre (defaults to canvas.pixels_per_mm)",
    )
    render_parser.add_argument(
        "--config", "-c",
        default=None,
        help="Path to YAML configuration file",
    )
    render_parser.add_argument(
        "--debug",
        action="store_true",
        help="Write per-stage debug artifacts",
    )
    render_parser.add_argument(
        "--trace",
        action="store_true",
        help="Enable runtime tracing",
    )
    render_parser.add_argument(
        "--trace-level",
        default="INFO",
        choices=["ERROR", "WARN", "INFO", "DEBUG"],
        help="Trace log level",
    )
    render_parser.add_argument(
        "--trace-file",
        default=None,
        help="Path to write trace logs",
    )
    render_parser.add_argument(
        "--trace-json",
        action="store_true",
        help="Enable JSON trace output",
    )

    # Import command
    import_parser = subparsers.add_parser("import-design", help="Convert a legacy editor export")
    import_parser.add_argument(
        "--legacy",
        required=True,
        help="Legacy design JSON file (curves in millimetres)",
    )
    import_parser.add_argument(
        "--out", "-o",
        required=True,
        help="Output path for the converted design JSON",
    )
    import_parser.add_argument(
        "--id",
        default=None,
        help="Design id to assign",
    )
    import_parser.add_argument(
        "--config", "-c",
        default=None,
        help="Path to YAML configuration file",
    )

    # Init config command
    init_parser = subparsers.add_parser("init-config", help="Create default config file")
    init_parser.add_argument(
        "--out", "-o",
        default="framerender_config.yaml",
        help="Output path for config file",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "render":
        return handle_render(args)
    elif args.command == "import-design":
        return handle_import(args)
    elif args.command == "init-config":
        return handle_init_config(args)

    return 0


def handle_render(args):
    """Handle the render command."""
    config = load_config(args.config)
    config.debug.enabled = config.debug.enabled or args.debug

    configure_tracer(
        enabled=args.trace or config.tracing.enabled,
        level=args.trace_level if args.trace else config.tracing.level,
        file_path=args.trace_file or config.tracing.file_path,
        json_output=args.trace_json or config.tracing.json_output,
    )

    tracer = get_tracer()

    try:
        from framerender.io.design_io import load_design, load_material
        from framerender.pipeline import render_batch

        material_paths = args.material or default_material_paths(config)

        with tracer.span("cli_render", module="cli"):
            design = load_design(args.design)
            materials = [load_material(path) for path in material_paths]

            published, failed = render_batch(
                design, materials,
                out_dir=args.out,
                base_url=args.base_url,
                canvas_scale=args.scale,
                config=config,
            )

        for material_id, metadata in sorted(published.items()):
            print(json.dumps({"material_id": material_id, **metadata.model_dump()}))

        for material_id, error in sorted(failed.items()):
            print(f"Error rendering material {material_id}: {error}", file=sys.stderr)

        return 1 if failed else 0

    except FrameRenderError as e:
        tracer.event(f"Render failed: {str(e)}", level="ERROR")
        print(f"\nError: {str(e)}", file=sys.stderr)
        return 1
    finally:
        tracer.config.close()


def default_material_paths(config):
    """Material file for material.default_material_id, used when no --material is given."""
    material_id = config.material.default_material_id
    if not material_id:
        raise FrameRenderError("No material given; pass --material or set material.default_material_id")
    return [os.path.join(config.material.library_dir, f"{material_id}.json")]


def handle_import(args):
    """Handle the import-design command."""
    config = load_config(args.config)

    try:
        from framerender.io.design_io import import_legacy_design
        from framerender.io.save_artifacts import save_json

        with open(args.legacy, "r", encoding="utf-8") as f:
            data = json.load(f)

        design = import_legacy_design(data, config.geometry.units_per_mm, design_id=args.id)
        save_json(design, args.out)

        print(f"Imported design '{design.name}' to: {args.out}")
        return 0

    except (OSError, json.JSONDecodeError, FrameRenderError) as e:
        print(f"\nError: {str(e)}", file=sys.stderr)
        return 1


def handle_init_config(args):
    """Handle the init-config command."""
    save_default_config(args.out)
    print(f"Default configuration saved to: {args.out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
