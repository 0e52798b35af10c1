"""CLI entrypoint: one-shot exports, image generation and the web server."""

from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
import sys
from typing import List, Optional

import uvicorn

from core import ExportFormat, apply_preset, list_presets, parse_project
from orchestrator import get_default_orchestrator
from render.adapters import KieImageJobClient
from utils import setup_logger
from utils.exceptions import CardNewsError


def _load_project(path: str):
    raw = Path(path).read_text(encoding="utf-8")
    return json.loads(raw)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Card news export service CLI")
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    sub = parser.add_subparsers(dest="command", required=True)

    exp = sub.add_parser("export", help="Export a project JSON file to PNGs or MP4")
    exp.add_argument("--project", required=True, help="Path to the project JSON")
    exp.add_argument("--format", choices=[item.value for item in ExportFormat], default=None)
    exp.add_argument("--preset", choices=list_presets(), default=None, help="Apply a built-in style preset first")

    img = sub.add_parser("generate-image", help="Generate a background image from a prompt")
    img.add_argument("--prompt", required=True)
    img.add_argument("--aspect-ratio", default=None)

    serve = sub.add_parser("serve", help="Run the web app")
    serve.add_argument("--host", type=str, default="127.0.0.1", help="Bind host")
    serve.add_argument("--port", type=int, default=3000, help="Bind port")
    serve.add_argument("--reload", action="store_true", help="Enable auto-reload")
    return parser


async def _run_export(args: argparse.Namespace) -> dict:
    data = _load_project(args.project)
    if args.preset:
        data = apply_preset(parse_project(data), args.preset)
    export_format = ExportFormat(args.format) if args.format else None
    result = await get_default_orchestrator().export(data, export_format=export_format)
    return result.to_response()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logger("", level=args.log_level)

    if args.command == "serve":
        uvicorn.run("webapp.app:app", host=args.host, port=args.port, reload=args.reload)
        return 0

    try:
        if args.command == "export":
            print(json.dumps(asyncio.run(_run_export(args)), ensure_ascii=False, indent=2))
        elif args.command == "generate-image":
            url = asyncio.run(KieImageJobClient().generate_image(args.prompt, aspect_ratio=args.aspect_ratio))
            print(url)
    except CardNewsError as exc:
        body = {"success": False, "error": exc.message}
        if getattr(exc, "stage", None):
            body["stage"] = exc.stage
        print(json.dumps(body, ensure_ascii=False), file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
