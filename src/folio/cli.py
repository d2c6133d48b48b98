#!/usr/bin/env python3
"""Command-line entry point.

Usage:
    # Render citations and ToC, write a PDF
    folio render report.html -o report.pdf

    # Same, but write the post-processed HTML to stdout
    folio render report.html

    # Write a starter folio.yaml into the current directory
    folio init
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import anyio

from folio.bib import load_sources
from folio.browser import PlaywrightDocument, export, open_page
from folio.cite import CitationLibrary
from folio.config import CONFIG_NAME, FolioConfig, create_default, load_config
from folio.errors import ConfigError, FolioError
from folio.passes import bibliography, table_of_contents
from folio.units import page_size

logger = logging.getLogger("folio")


def build_library(cfg: FolioConfig) -> CitationLibrary:
    """Citation library loaded from the configured sources."""
    bib = cfg.bibliography
    missing = [str(p) for p in bib.sources if not p.exists()]
    if missing:
        raise ConfigError(
            f"Bibliography source not found: {', '.join(missing)}",
            hint=f"Fix bibliography.sources in {CONFIG_NAME} or create the file.",
        )
    return CitationLibrary(
        load_sources(bib.sources),
        resolve_dois=bib.resolve_dois,
        mailto=bib.mailto,
        styles_dir=bib.styles_dir,
    )


async def render(args: argparse.Namespace, cfg: FolioConfig) -> None:
    """Open the document, run the requested passes and export it."""
    width = args.width or cfg.page.width
    height = args.height or cfg.page.height

    async with open_page(Path(args.input)) as page:
        document = PlaywrightDocument(page)

        if not args.no_bibliography:
            applied = await bibliography(
                document, build_library(cfg), locale=cfg.bibliography.locale
            )
            logger.info("bibliography: %s", "rendered" if applied else "not requested")

        if not args.no_toc:
            applied = await table_of_contents(
                document, width, height, page_break_class=cfg.page.break_class
            )
            logger.info("table of contents: %s", "rendered" if applied else "not requested")

        if args.output:
            await export(page, Path(args.output), *page_size(width, height))
        else:
            sys.stdout.write(await page.content())


def cmd_render(args: argparse.Namespace) -> None:
    config_file = Path(args.config) if args.config else Path(args.input).parent / CONFIG_NAME
    cfg = load_config(config_file)
    anyio.run(render, args, cfg)


def cmd_init(args: argparse.Namespace) -> None:
    path = create_default(Path(args.directory))
    print(f"Config: {path}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Render citations, bibliography and table of contents in HTML documents",
        prog="folio",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p1 = sub.add_parser("render", help="Post-process an HTML document")
    p1.add_argument("input", help="HTML file to process")
    p1.add_argument("-o", "--output", default="", help="Output file (.pdf or .html); stdout if omitted")
    p1.add_argument("--config", default="", help=f"Config file (default: {CONFIG_NAME} next to input)")
    p1.add_argument("--width", default="", help="Page width, e.g. 210mm (overrides config)")
    p1.add_argument("--height", default="", help="Page height, e.g. 297mm (overrides config)")
    p1.add_argument("--no-bibliography", action="store_true", help="Skip citations and bibliography")
    p1.add_argument("--no-toc", action="store_true", help="Skip the table of contents")
    p1.set_defaults(func=cmd_render)

    p2 = sub.add_parser("init", help=f"Write a starter {CONFIG_NAME}")
    p2.add_argument("directory", nargs="?", default=".", help="Target directory")
    p2.set_defaults(func=cmd_init)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    try:
        args.func(args)
    except FolioError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
