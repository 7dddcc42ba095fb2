#!/usr/bin/env python3
"""
Command-line entry point: render a FIT activity onto a background map.

    route-overlay image activity.fit map.jpg outputs/route.png
    route-overlay video activity.fit map.jpg outputs/route.mp4 --preset neon
"""

import argparse
import logging
import sys
from typing import Any, Dict, List, Optional

from activity import read_activity
from background import load_background
from config import RenderConfig, PRESETS, build_config, get_preset, load_config
from errors import (
    ActivityParseError,
    BackgroundLoadError,
    EmptyRouteError,
    InvalidConfigError,
    RouteRenderError,
)
from renderer import RenderResult, RouteRenderer
from rich_console import (
    console,
    create_render_progress,
    print_banner,
    print_completion_summary,
    print_config_summary,
    print_error,
    setup_rich_logging,
)
from sinks import ImageFileSink, VideoFileSink

__version__ = "1.0.0"

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="route-overlay",
        description="Draw a GPS activity route onto a background image or animate it as a video.",
    )
    subparsers = parser.add_subparsers(dest="mode", required=True)

    for mode, help_text in (("image", "Render the full route as a single image"),
                            ("video", "Render an animation that draws the route progressively")):
        sub = subparsers.add_parser(mode, help=help_text)
        sub.add_argument("fit_file", help="Path to the .fit activity file")
        sub.add_argument("background", help="Background map image (JPEG/PNG)")
        sub.add_argument("output", help=f"Output {'image' if mode == 'image' else '.mp4'} path")
        sub.add_argument("--config", metavar="JSON", help="JSON file with RenderConfig overrides")
        sub.add_argument("--preset", choices=sorted(PRESETS), help="Start from a named preset")
        sub.add_argument("--scale", type=float, help="Route size as a fraction of the image")
        sub.add_argument("--offset-x", type=float, help="Left offset as a fraction of the width")
        sub.add_argument("--offset-y", type=float, help="Top offset as a fraction of the height")
        sub.add_argument("--no-bottom-bar", action="store_true", help="Hide the pace/distance bar")
        sub.add_argument("--no-lap-data", action="store_true", help="Hide the lap panel")
        sub.add_argument("--no-route", action="store_true", help="Do not draw the route line")
        sub.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser


def config_from_args(args: argparse.Namespace) -> RenderConfig:
    """
    Resolve the effective RenderConfig: preset, then JSON file, then flags.

    Raises:
        InvalidConfigError: If any layer fails validation
    """
    config = get_preset(args.preset) if args.preset else RenderConfig.default()
    if args.config:
        config = load_config(args.config, base=config)

    overrides: Dict[str, Any] = {}
    route_scale = {}
    if args.scale is not None:
        route_scale["scale"] = args.scale
    if args.offset_x is not None:
        route_scale["offset_x_percent"] = args.offset_x
    if args.offset_y is not None:
        route_scale["offset_y_percent"] = args.offset_y
    if route_scale:
        overrides["route_scale"] = route_scale
    if args.no_bottom_bar:
        overrides["show_bottom_bar"] = False
    if args.no_lap_data:
        overrides["show_lap_data"] = False
    if args.no_route:
        overrides["show_route"] = False
    overrides["files"] = {
        "fit_file": args.fit_file,
        "background_image": args.background,
        "output_file": args.output,
    }
    return build_config(config, **overrides)


def run(args: argparse.Namespace) -> RenderResult:
    """Execute one render job described by parsed CLI arguments."""
    config = config_from_args(args)
    print_config_summary(args.mode, args.fit_file, args.background, args.output,
                         config, preset=args.preset)

    with console.status("[info]Reading activity...[/]"):
        activity = read_activity(config.files.fit_file)
        background = load_background(config.files.background_image, config.max_background_dim)
    logger.debug(f"Activity: {len(activity.samples)} samples, {len(activity.laps)} laps, "
                 f"{activity.distance_meters / 1000:.2f} km in {activity.duration_seconds:.0f}s")

    renderer = RouteRenderer(activity, background, config)

    if args.mode == "image":
        result = renderer.render_image(ImageFileSink(config.files.output_file))
    else:
        sink = VideoFileSink(config.files.output_file, renderer.fps, renderer.image_size)
        with create_render_progress() as progress:
            task = progress.add_task("Rendering", total=renderer.point_count, status="")

            def on_frame(done: int, total: int) -> None:
                progress.update(task, completed=done, status=f"{renderer.fps:.1f} fps")

            result = renderer.render_video(sink, progress=on_frame)
            progress.update(task, status=f"[green]{sink.encoder or 'done'}[/]")

    print_completion_summary(
        output_file=str(result.output),
        point_count=result.point_count,
        frame_count=result.frame_count if args.mode == "video" else None,
        lap_count=len(activity.laps),
        elapsed_s=result.elapsed_s,
    )
    return result


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_rich_logging(args.verbose)
    print_banner(__version__)

    try:
        run(args)
    except RouteRenderError as e:
        print_error(str(e), hint=_hint_for(e))
        return 1
    except RuntimeError as e:
        # ffmpeg failures surface from FFmpegWriter as RuntimeError
        print_error(str(e), hint="Check that ffmpeg is installed and on PATH")
        return 1
    return 0


def _hint_for(error: RouteRenderError) -> Optional[str]:
    if isinstance(error, ActivityParseError):
        return "Is the file a valid Garmin .fit activity?"
    if isinstance(error, EmptyRouteError):
        return "The activity has no GPS positions (indoor activity?)"
    if isinstance(error, BackgroundLoadError):
        return "Use a JPEG or PNG background image"
    if isinstance(error, InvalidConfigError):
        return "Scale and font sizes must be positive; see the presets for examples"
    return None


if __name__ == "__main__":
    sys.exit(main())
