"""Command-line entry point: ``sitebuild build`` and ``sitebuild serve``."""
import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from sitebuild.config import BuildSettings
from sitebuild.errors import ConfigurationError, SiteBuildError
from sitebuild.logging_config import configure_logging
from sitebuild.services.pipeline import build_site

logger = logging.getLogger("sitebuild.cli")


def cmd_build(args) -> int:
    """Fetch (or reuse) CMS content, write the style file and the page cache."""
    try:
        settings = BuildSettings()
    except ValidationError as exc:
        print(f"Invalid configuration:\n{exc}", file=sys.stderr)
        return 2

    overrides = {}
    if args.offline:
        overrides["offline"] = True
    if args.cache_path:
        overrides["cache_path"] = Path(args.cache_path)
    if args.data_dir:
        overrides["data_dir"] = Path(args.data_dir)
    settings = settings.model_copy(update=overrides)

    configure_logging(settings.log_level)
    try:
        result = build_site(settings)
    except ConfigurationError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2
    except SiteBuildError as exc:
        logger.error("Build failed: %s", exc)
        return 1

    logger.info(
        "Build finished: %d pages from %d objects (cache %s)",
        result.pages,
        result.objects,
        "written" if result.cache_written else "unchanged",
    )
    return 1 if result.style_error else 0


def cmd_serve(args) -> int:
    """Serve the cached site data over HTTP."""
    import uvicorn

    uvicorn.run("sitebuild.main:app", host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="sitebuild")
    sub = p.add_subparsers(dest="cmd")

    b = sub.add_parser("build", help="Build the site data cache from the CMS")
    b.add_argument("--offline", action="store_true", help="Re-project cached objects, no fetch")
    b.add_argument("--cache-path", help="Cache file (default: .sourcebit-nextjs-cache.json)")
    b.add_argument("--data-dir", help="Directory for style.json (default: content/data)")
    b.set_defaults(func=cmd_build)

    s = sub.add_parser("serve", help="Serve cached pages and props over HTTP")
    s.add_argument("--host", default="127.0.0.1")
    s.add_argument("--port", type=int, default=8000)
    s.set_defaults(func=cmd_serve)

    return p


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 0
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
