"""The two post-processing passes run on a rendered document.

Each pass returns True when it did its work and False when the document
did not ask for it (no citations, no bibliography container, no ToC
placeholder). Steps run strictly in order: every DOM read depends on the
mutation before it.
"""

from __future__ import annotations

import logging

import anyio

from folio.cite import DEFAULT_LOCALE, CitationLibrary, find_record, inline_citation
from folio.dom import (
    BIBLIOGRAPHY_SELECTOR,
    CITATION_SELECTOR,
    TOC_LINK_SELECTOR,
    TOC_SELECTOR,
    Document,
)
from folio.errors import InvalidTocDepth
from folio.toc import (
    DEFAULT_PAGE_BREAK_CLASS,
    MAX_HEADING_LEVEL,
    PAGE_TOKEN,
    heading_selector,
    make_list,
    paginate,
)
from folio.units import content_box, extract_page_block, page_size, parse_margins

logger = logging.getLogger(__name__)


def _register(library: CitationLibrary, keys: list[str]) -> None:
    for key in keys:
        library.add(key)


async def bibliography(
    document: Document,
    library: CitationLibrary | None = None,
    *,
    locale: str = DEFAULT_LOCALE,
) -> bool:
    """Format ``.citation`` markers and render ``#bibliography``.

    Each marker's ``data-key`` is looked up in *library*; its content
    becomes ``(Family, Year)`` or ``(Family, Year, p. N)`` when
    ``data-page`` is set. The container's ``data-style`` names the CSL
    style for the full reference list.

    Returns:
        False if the document has no citation markers or no styled
        bibliography container; markers are left untouched in both cases.
    """
    markers = await document.get_attributes(CITATION_SELECTOR, ["data-key", "data-page"])
    if not markers:
        logger.debug("No citation markers")
        return False

    style = await document.get_attribute(BIBLIOGRAPHY_SELECTOR, "data-style")
    if not style:
        logger.debug("No bibliography style declared; leaving %d citations as-is", len(markers))
        return False

    if library is None:
        library = CitationLibrary()

    keys = [m["data-key"] for m in markers if m.get("data-key")]
    # DOI lookups block on HTTP; they run in a worker thread.
    await anyio.to_thread.run_sync(_register, library, keys)
    records = library.records

    formatted: list[str | None] = []
    for marker in markers:
        record = find_record(records, marker.get("data-key") or "")
        if record is None:
            formatted.append(None)
        else:
            formatted.append(inline_citation(record, marker.get("data-page")))
    await document.set_inner_html_all(CITATION_SELECTOR, formatted)

    output = library.render(style, locale=locale)
    await document.set_inner_html(BIBLIOGRAPHY_SELECTOR, output)
    logger.info(
        "Bibliography: %d citations, %d references, style %s",
        sum(1 for f in formatted if f is not None),
        len(records),
        style,
    )
    return True


def _parse_depth(raw: str) -> int:
    try:
        depth = int(raw.strip())
    except ValueError:
        raise InvalidTocDepth(raw) from None
    if not 1 <= depth <= MAX_HEADING_LEVEL:
        raise InvalidTocDepth(raw)
    return depth


async def table_of_contents(
    document: Document,
    width: str | float | None = None,
    height: str | float | None = None,
    *,
    page_break_class: str = DEFAULT_PAGE_BREAK_CLASS,
) -> bool:
    """Build the ToC in ``#table-of-contents`` and number its pages.

    Args:
        document: The rendered document.
        width: Page width; pixels or a length string. Defaults to 8.5in.
        height: Page height; pixels or a length string. Defaults to 11in.
        page_break_class: Class marking manual page breaks.

    Returns:
        False if the document has no ToC placeholder or it declares no depth.

    Raises:
        InvalidTocDepth: If ``data-depth`` is not an integer from 1 to 6.
    """
    page_width, page_height = page_size(width, height)

    raw_depth = await document.get_attribute(TOC_SELECTOR, "data-depth")
    if not raw_depth:
        logger.debug("No table of contents requested")
        return False
    depth = _parse_depth(raw_depth)
    selector = heading_selector(depth, page_break_class)

    margins = parse_margins(extract_page_block(await document.style_texts()))
    usable_width, usable_height = content_box(page_width, page_height, margins)
    logger.debug("Content box %.1fx%.1fpx, margins %s", usable_width, usable_height, margins)

    await document.set_body_width(usable_width)

    headings = await document.collect_headings(selector, page_break_class)
    await document.set_inner_html(TOC_SELECTOR, make_list(headings))

    boxes = await document.measure(selector, page_break_class)
    pages = paginate(boxes, usable_height)
    await document.fill_links(TOC_LINK_SELECTOR, pages, PAGE_TOKEN)

    logger.info(
        "Table of contents: %d headings over %d pages",
        len(headings),
        max((p.page for p in pages), default=1),
    )
    return True
