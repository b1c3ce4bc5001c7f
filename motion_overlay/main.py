#!/usr/bin/env python
"""
Motion Overlay CLI - Particle overlays for looping animations

Usage:
    motion-overlay <background> [options]

Examples:
    motion-overlay loop.gif                          # Default drifting particles
    motion-overlay loop.gif --preset snow            # Use a preset
    motion-overlay loop.gif --stroke "40,40 200,60 180,200 50,180"
    motion-overlay loop.gif --format png-zip         # ZIP of PNG frames
    motion-overlay loop.gif --preview                # Draw the region interactively
"""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path


def parse_stroke(text: str):
    """Parse 'x,y x,y ...' into a list of points"""
    points = []
    for pair in text.replace(';', ' ').split():
        x, y = pair.split(',')
        points.append((float(x), float(y)))
    return points


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Overlay animated particles onto a looping animation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Blend Modes:
  normal    - Particles painted over the background
  additive  - Particles brighten what is under them
  multiply  - Particles darken what is under them
  screen    - Soft lightening

Examples:
  %(prog)s loop.gif
  %(prog)s loop.gif --preset fireflies --seed 7
  %(prog)s loop.gif --stroke "40,40 200,60 180,200" --polygon
  %(prog)s --list-presets
        """
    )

    parser.add_argument(
        'input',
        type=str,
        nargs='?',
        default=None,
        help='Background animation (GIF) or still image'
    )
    parser.add_argument(
        '-o', '--output',
        type=str,
        default=None,
        help='Output path (auto-generated if not specified)'
    )
    parser.add_argument(
        '-p', '--preset',
        type=str,
        default='drift',
        help='Overlay preset (default: drift)'
    )
    parser.add_argument(
        '--stroke',
        type=str,
        default=None,
        metavar='POINTS',
        help='Containment stroke as "x,y x,y ..." in background pixels'
    )
    parser.add_argument(
        '--polygon',
        action='store_true',
        help='Confine particles to the stroke outline instead of its bounding circle'
    )
    parser.add_argument(
        '--particles',
        type=int,
        default=None,
        help='Particle count (overrides preset)'
    )
    parser.add_argument(
        '--speed',
        type=float,
        default=None,
        help='Base speed in pixels per frame (overrides preset)'
    )
    parser.add_argument(
        '--direction',
        type=float,
        default=None,
        metavar='DEGREES',
        help='Drift direction, 0=right 90=down (overrides preset)'
    )
    parser.add_argument(
        '--color',
        type=str,
        default=None,
        help='Particle color as #rrggbb or R,G,B (overrides preset)'
    )
    parser.add_argument(
        '--opacity',
        type=float,
        default=None,
        help='Overlay opacity 0.0-1.0 (overrides preset)'
    )
    parser.add_argument(
        '--blend',
        type=str,
        default=None,
        choices=['normal', 'additive', 'add', 'multiply', 'screen'],
        help='Blend mode (overrides preset)'
    )
    parser.add_argument(
        '--format',
        type=str,
        default='gif',
        choices=['gif', 'png-zip'],
        help='Output format (default: gif)'
    )
    parser.add_argument(
        '--seed',
        type=int,
        default=None,
        help='Random seed for reproducible output'
    )
    parser.add_argument(
        '--preview',
        action='store_true',
        help='Open interactive preview window (requires pygame)'
    )
    parser.add_argument(
        '--list-presets',
        action='store_true',
        help='List all available presets and exit'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Debug logging and tracebacks'
    )
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    from motion_overlay.logging_config import setup_logging
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    from motion_overlay.core.presets import get_preset_manager, apply_preset_to_args

    if args.list_presets:
        manager = get_preset_manager()
        print("Available Overlay Presets:\n")
        for name in manager.list_all():
            preset = manager.get(name)
            origin = "" if manager.is_builtin(name) else " (user)"
            print(f"  {name:<12} - {preset.description}{origin}")
        print(f"\nTotal: {len(manager.list_all())} presets")
        print("\nUsage: --preset <name>")
        sys.exit(0)

    if not args.input:
        print("Error: Input file is required")
        print("Usage: motion-overlay <background> [options]")
        print("       motion-overlay --list-presets")
        sys.exit(1)

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: Input file not found: {args.input}")
        sys.exit(1)

    preset = get_preset_manager().get(args.preset)
    if preset is None:
        print(f"Error: Preset '{args.preset}' not found")
        print("Use --list-presets to see available presets")
        sys.exit(1)

    args = apply_preset_to_args(preset, args)

    from motion_overlay.core import (
        BackgroundParser, ParticleSimulation, RegionKind, ExportPipeline,
        derive, get_encoder, write_blob, Playback, PreviewWindow,
        check_pygame_available,
    )
    from motion_overlay.errors import InsufficientPoints

    try:
        preset = replace(
            preset,
            particle_count=args.particles,
            speed=args.speed,
            direction_angle=args.direction,
            color=args.color,
            opacity=args.opacity,
            blend_mode=args.blend
        )
        settings = preset.to_settings(seed=args.seed)
        overlay_settings = preset.to_overlay()
        region_kind = RegionKind.POLYGON if args.polygon else RegionKind.CIRCLE

        store = BackgroundParser.parse(input_path)
        print(f"Background: {input_path.name} ({store.width}x{store.height}, "
              f"{store.frame_count} frames, {store.total_duration} ms)")
        print(f"Preset: {preset.name} ({settings.particle_count} particles, "
              f"{overlay_settings.blend_mode.value} blend)")

        region = None
        if args.stroke:
            try:
                region = derive(parse_stroke(args.stroke), region_kind)
                print(f"Region: {region.kind.value} at ({region.center[0]:.1f}, "
                      f"{region.center[1]:.1f}) radius {region.radius:.1f}")
            except InsufficientPoints as e:
                print(f"Warning: ignoring stroke ({e})")

        if args.output:
            output_path = Path(args.output)
        else:
            extension = get_encoder(args.format).extension
            output_path = input_path.parent / f"{input_path.stem}_overlay{extension}"

        def progress(percent: int, message: str):
            print(f"\r[{percent:3d}%] {message:<40}", end='', flush=True)

        def export(export_region):
            # Fresh simulation so the export starts from the same seed as the preview
            simulation = ParticleSimulation()
            simulation.initialize(store.dimensions, settings)
            simulation.install_region(export_region)
            blob = ExportPipeline().export_sync(
                store, simulation, overlay_settings, get_encoder(args.format), progress
            )
            print()
            return write_blob(blob, output_path)

        if args.preview:
            if not check_pygame_available():
                print("Error: Preview requires pygame. Install with: pip install pygame")
                sys.exit(1)

            simulation = ParticleSimulation()
            simulation.initialize(store.dimensions, settings)
            simulation.install_region(region)

            def on_export(export_region):
                print(f"Exported: {export(export_region)}")

            print("Controls: SPACE=play/pause, drag=draw region, C=clear, E=export, ESC=quit")
            PreviewWindow(
                Playback(store, simulation, overlay_settings),
                region_kind=region_kind,
                on_export=on_export
            ).run()
            print("Preview closed.")
            return

        output = export(region)
        print(f"Output: {output}")
        print("Done!")

    except Exception as e:
        print(f"\nError: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == '__main__':
    main()
