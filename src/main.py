# src/main.py - v2
"""CLI entry point: identify and serve commands.

Usage:
    reelfinder identify "The Matrix"
    reelfinder identify https://www.youtube.com/watch?v=dQw4w9WgXcQ
    reelfinder identify --image screenshot.png
    reelfinder serve [--host HOST] [--port PORT]
"""

from __future__ import annotations

import argparse
import asyncio
import base64
import json
import logging
import mimetypes
from pathlib import Path

from reelfinder.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    from reelfinder.config.settings import load_settings
    from reelfinder.logging.logger import setup_logging_from_settings

    settings = load_settings()
    setup_logging_from_settings(settings, verbose=args.verbose)

    try:
        return args.func(args, settings)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="reelfinder",
        description=f"reelfinder v{__version__} - identify movies, shows and videos",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- identify ---
    p_identify = subparsers.add_parser(
        "identify", help="Identify a phrase, link or image",
    )
    p_identify.add_argument("query", nargs="?", default=None, help="Text or URL")
    p_identify.add_argument(
        "--image", type=Path, default=None,
        help="Path to an image (takes precedence over the query)",
    )
    p_identify.add_argument(
        "--no-cache", action="store_true",
        help="Bypass the cache for this run",
    )
    p_identify.set_defaults(func=_cmd_identify)

    # --- serve ---
    p_serve = subparsers.add_parser("serve", help="Run the HTTP API")
    p_serve.add_argument("--host", default=None, help="Bind address (default: SERVER_HOST)")
    p_serve.add_argument("--port", type=int, default=None, help="Port (default: SERVER_PORT)")
    p_serve.set_defaults(func=_cmd_serve)

    return parser


def _cmd_identify(args: argparse.Namespace, settings) -> int:
    """Run one identification and print the results as JSON."""
    from reelfinder.api.facade import identify
    from reelfinder.api.models import SearchRequest
    from reelfinder.core.errors import InputError

    if args.no_cache:
        settings = settings.model_copy(update={"cache_enabled": False})

    if args.image is not None:
        if not args.image.is_file():
            logger.error("Image not found: %s", args.image)
            return 1
        mime_type = mimetypes.guess_type(args.image.name)[0] or "image/jpeg"
        request = SearchRequest(
            image_base64=base64.b64encode(args.image.read_bytes()).decode("ascii"),
            mime_type=mime_type,
        )
    else:
        request = SearchRequest(query=args.query)

    try:
        response = asyncio.run(identify(request, settings=settings))
    except InputError as e:
        logger.error("%s", e)
        return 2

    print(json.dumps(response.model_dump(by_alias=True, mode="json"), indent=2))
    return 0 if response.results else 3


def _cmd_serve(args: argparse.Namespace, settings) -> int:
    """Serve the HTTP API with uvicorn."""
    import uvicorn

    from reelfinder.api.server import create_app

    app = create_app(settings)
    uvicorn.run(
        app,
        host=args.host or settings.server_host,
        port=args.port or settings.server_port,
        log_config=None,
    )
    return 0
