"""CLI entrypoints for rendering, diagnostics and settings."""

from __future__ import annotations

import argparse
import json
import sys
from importlib import metadata
from pathlib import Path
from typing import Any

from fontimage_core import build_doctor_payload, create_render_service, load_config, save_config
from fontimage_core.config import config_path, config_to_dict
from fontimage_core.logging_setup import configure_logging
from fontimage_renderer import EmitBytes, FontImageError, WebColour, WriteToPath, list_colours


def _print_json(data: object, stream: Any = None) -> None:
    print(json.dumps(data, indent=2, sort_keys=True, default=str), file=stream or sys.stdout)


def _installed_version() -> str:
    try:
        return metadata.version("fontimage")
    except Exception:
        return "0.1.0"


def _colour_arg(value: str) -> str | int:
    if value.lower().startswith("0x"):
        try:
            return int(value, 16)
        except ValueError as exc:
            raise argparse.ArgumentTypeError(f"invalid packed colour: {value}") from exc
    return value


def _config_file(args: argparse.Namespace) -> Path:
    return Path(args.config).expanduser() if args.config else config_path()


def _error_payload(exc: FontImageError) -> dict[str, Any]:
    return {"success": False, "error": exc.code, "message": str(exc)}


def cmd_render(args: argparse.Namespace) -> int:
    cfg = load_config(_config_file(args))
    if args.cache_dir:
        cfg.cache_directory = args.cache_dir
    if args.no_cache:
        cfg.cache_enabled = False

    created = create_render_service(cfg)
    if not created.ok:
        _print_json(_error_payload(created.error), stream=sys.stderr)
        return 1
    service = created.service

    try:
        if args.font_dir:
            service.set_font_directory(args.font_dir)
        if args.font:
            service.set_font(args.font)
        if args.size is not None:
            service.set_font_size(args.size, strict=True)
        if args.angle is not None:
            service.set_font_angle(args.angle, strict=True)
        service.set_size(args.width, args.height, strict=True)
        service.set_colour(args.colour, args.background)
        if args.wrap:
            service.use_wrapping(True)
    except FontImageError as exc:
        _print_json(_error_payload(exc), stream=sys.stderr)
        return 1

    target = WriteToPath(Path(args.out)) if args.out else EmitBytes(stream=sys.stdout.buffer)
    result = service.generate(args.text, target, bypass_cache=args.no_cache)
    if not result.success:
        _print_json(_error_payload(result.error), stream=sys.stderr)
        return 1

    _print_json(
        {
            "success": True,
            "bytes": len(result.data or b""),
            "cache_hit": result.cache_hit,
            "content_type": result.content_type,
            "fingerprint": result.fingerprint,
            "path": str(result.path) if result.path else None,
        },
        stream=sys.stderr,
    )
    return 0


def cmd_doctor(args: argparse.Namespace) -> int:
    payload = build_doctor_payload(load_config(_config_file(args)))
    payload["version"] = _installed_version()
    _print_json(payload)
    return 0


def cmd_colours(_args: argparse.Namespace) -> int:
    _print_json({name: f"#{WebColour[name.upper()].value:06X}" for name in list_colours()})
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    path = _config_file(args)
    cfg = load_config(path)
    if args.config_cmd == "save":
        saved = save_config(cfg, path)
        _print_json({"saved": str(saved)})
        return 0
    _print_json({"path": str(path), "config": config_to_dict(cfg)})
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fontimage", description="Render text to PNG images with a disk cache")
    parser.add_argument("--config", default=None, help="Settings file (defaults to the per-user config)")
    sub = parser.add_subparsers(dest="command", required=True)

    render_cmd = sub.add_parser("render", help="Render text to a PNG")
    render_cmd.add_argument("text")
    render_cmd.add_argument("--font", default=None, help="Font file name, .ttf is assumed without extension")
    render_cmd.add_argument("--font-dir", default=None)
    render_cmd.add_argument("--size", type=int, default=None, help="Font size in points")
    render_cmd.add_argument("--angle", type=int, default=None, help="Rotation in degrees, counter-clockwise")
    render_cmd.add_argument("--width", type=int, default=None)
    render_cmd.add_argument("--height", type=int, default=None)
    render_cmd.add_argument("--wrap", action="store_true", help="Wrap words to --width")
    render_cmd.add_argument("--colour", type=_colour_arg, default=None, help="Text colour: #RGB, #RRGGBB, 0xRRGGBB or a name")
    render_cmd.add_argument("--background", type=_colour_arg, default=None, help="Background colour or 'transparent'")
    render_cmd.add_argument("--cache-dir", default=None)
    render_cmd.add_argument("--no-cache", action="store_true", help="Skip cache lookup and store")
    render_cmd.add_argument("--out", default=None, help="Write the PNG here instead of stdout")
    render_cmd.set_defaults(func=cmd_render)

    doctor_cmd = sub.add_parser("doctor", help="Print environment, font and cache diagnostics")
    doctor_cmd.set_defaults(func=cmd_doctor)

    colours_cmd = sub.add_parser("colours", help="List named colours")
    colours_cmd.set_defaults(func=cmd_colours)

    config_cmd = sub.add_parser("config", help="Show or rewrite the settings file")
    config_cmd.add_argument("config_cmd", choices=["show", "save"], nargs="?", default="show")
    config_cmd.set_defaults(func=cmd_config)

    return parser


def main(argv: list[str] | None = None) -> int:
    configure_logging(console=False)
    parser = build_parser()
    args = parser.parse_args(argv)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
