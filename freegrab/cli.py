"""Command line entrypoints for the freegrab page builder."""
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

import requests

from .config import FAVICON_PATH, load_settings
from .epic import CatalogError
from .generator import SiteGenerator
from .pipeline import FreeGamesPipeline

LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Epic free games page commands")
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ...)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_cmd = subparsers.add_parser(
        "build", help="Fetch the promotions catalog and render the static page"
    )
    build_cmd.add_argument(
        "--output",
        type=Path,
        default=Path("public"),
        help="Output directory for the static page",
    )
    build_cmd.add_argument(
        "--favicon",
        type=Path,
        default=FAVICON_PATH,
        help="Favicon copied next to index.html when it exists",
    )
    build_cmd.set_defaults(func=handle_build)

    fetch_cmd = subparsers.add_parser(
        "fetch", help="Fetch and normalize the catalog without rendering"
    )
    fetch_cmd.add_argument(
        "--json",
        action="store_true",
        help="Output the normalized payload as JSON",
    )
    fetch_cmd.set_defaults(func=handle_fetch)

    return parser


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
    )


def handle_build(args: argparse.Namespace) -> None:
    settings = load_settings()
    with requests.Session() as session:
        pipeline = FreeGamesPipeline(settings=settings, session=session)
        try:
            promotions = pipeline.run()
        except CatalogError as exc:
            LOGGER.error("Fetch failed, nothing written: %s", exc)
            raise SystemExit(1) from exc
    generator = SiteGenerator(output_dir=args.output, settings=settings, favicon=args.favicon)
    target = generator.build(promotions)
    LOGGER.info("Build complete: %s", target)


def _truncate(value: object, width: int) -> str:
    text = str(value or "")
    if len(text) <= width:
        return text.ljust(width)
    if width <= 1:
        return text[:width]
    return (text[: width - 1].rstrip() + "…").ljust(width)


def handle_fetch(args: argparse.Namespace) -> None:
    with requests.Session() as session:
        pipeline = FreeGamesPipeline(settings=load_settings(), session=session)
        try:
            promotions = pipeline.run()
        except CatalogError as exc:
            LOGGER.error("Fetch failed: %s", exc)
            raise SystemExit(1) from exc
    if args.json:
        print(json.dumps(promotions.to_dict(), indent=2, ensure_ascii=False))
        return
    buckets = (("current", promotions.current), ("upcoming", promotions.upcoming))
    if not promotions.current and not promotions.upcoming:
        print("No free items in the catalog.")
        return
    header = f"{_truncate('Bucket', 9)} {_truncate('Title', 40)} {_truncate('Ends', 26)} Link"
    print(header)
    print("-" * len(header))
    for bucket, items in buckets:
        for item in items:
            print(
                f"{_truncate(bucket, 9)} {_truncate(item.title, 40)} "
                f"{_truncate(item.end_time, 26)} {item.link}"
            )


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    args.func(args)


if __name__ == "__main__":
    main()
