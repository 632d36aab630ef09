"""Command-line entry point for the help-center static site generator."""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
import time
from pathlib import Path
from typing import Any, Dict, Sequence

from dotenv import load_dotenv
from pydantic import ValidationError

from .build.driver import BuildDriver
from .config import BuildConfiguration, Settings, get_settings
from .content.source import ContentSource, InMemoryContentSource
from .content.supabase_client import SupabaseContentSource
from .core.errors import SourceUnavailable

logger = logging.getLogger("ssg.cli")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def _add_build_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--dist",
        type=Path,
        default=None,
        help="Output directory (default: SSG_DIST_DIR or ./dist)",
    )
    parser.add_argument(
        "--skip-client-build",
        action="store_true",
        help="Reuse the existing client bundle instead of running the client build command",
    )
    parser.add_argument(
        "--fixtures",
        type=Path,
        default=None,
        help="Read content from a JSON file instead of Supabase",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Routes rendered per batch",
    )
    parser.add_argument(
        "--max-articles",
        type=int,
        default=None,
        help="Maximum number of article pages to prerender",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def _add_preview_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--dist",
        type=Path,
        default=None,
        help="Build output to serve (default: SSG_DIST_DIR or ./dist)",
    )
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind")
    parser.add_argument("--port", type=int, default=4173, help="Port to listen on")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Prerender the help center into static, hydratable HTML pages.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser("build", help="Run a full static build")
    _add_build_arguments(build_parser)

    preview_parser = subparsers.add_parser("preview", help="Serve a finished build locally")
    _add_preview_arguments(preview_parser)

    return parser.parse_args(list(sys.argv[1:] if argv is None else argv))


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Settings with command-line values layered over the environment."""
    update: Dict[str, Any] = {}
    if getattr(args, "dist", None) is not None:
        update["dist_dir"] = str(args.dist)
    if getattr(args, "batch_size", None) is not None:
        update["render_batch_size"] = args.batch_size
    if getattr(args, "max_articles", None) is not None:
        update["max_articles"] = args.max_articles
    return settings.model_copy(update=update) if update else settings


def open_source(settings: Settings, fixtures: Path | None) -> ContentSource:
    if fixtures is not None:
        return InMemoryContentSource.from_json_file(fixtures)
    return SupabaseContentSource.from_settings(settings)


def _install_stop_handlers(driver: BuildDriver) -> None:
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, driver.request_stop)
        except (NotImplementedError, RuntimeError):
            # Not supported on this platform's event loop
            logger.debug("Cannot install handler for %s", signum)


async def run_build(settings: Settings, args: argparse.Namespace) -> int:
    try:
        config = BuildConfiguration.from_settings(settings)
    except ValidationError as exc:
        logger.error("Invalid build configuration: %s", exc)
        return 2

    try:
        source = open_source(settings, args.fixtures)
    except SourceUnavailable as exc:
        logger.error("Content source unavailable: %s", exc)
        return 1

    driver = BuildDriver.from_settings(
        settings,
        source,
        config=config,
        skip_client_build=args.skip_client_build,
    )
    _install_stop_handlers(driver)
    try:
        return await driver.build()
    finally:
        if isinstance(source, SupabaseContentSource):
            await source.aclose()


def _run_build(args: argparse.Namespace) -> int:
    settings = apply_overrides(get_settings(), args)
    start = time.perf_counter()
    code = asyncio.run(run_build(settings, args))
    logger.info("Build finished in %.2fs with exit code %d", time.perf_counter() - start, code)
    return code


def _run_preview(args: argparse.Namespace) -> int:
    import uvicorn

    from .main import create_app

    settings = apply_overrides(get_settings(), args)
    app = create_app(
        config=BuildConfiguration.from_settings(settings),
        dist_dir=settings.dist_dir,
    )
    logger.info("Preview on http://%s:%d", args.host, args.port)
    uvicorn.run(app, host=args.host, port=args.port, log_level="debug" if args.verbose else "info")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    _configure_logging(args.verbose)

    if args.command == "build":
        return _run_build(args)
    if args.command == "preview":
        return _run_preview(args)
    raise AssertionError(f"Unhandled command: {args.command}")


if __name__ == "__main__":  # pragma: no cover - CLI entry
    raise SystemExit(main())
