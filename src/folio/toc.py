"""Table of contents markup and pagination.

The browser supplies the headings and their measured boxes; everything
in this module works on plain values so it can be tested without one.

Pagination walks headings and manual page-break markers in document
order. A heading overflows onto the next page as soon as its bottom edge
reaches the page boundary (``>=``). A page-break marker bumps the page
once and records a correction so that offsets measured after it are
compared against the artificial boundary rather than the natural one.
"""

from __future__ import annotations

import html
from dataclasses import dataclass, field

from folio.errors import FolioError

PAGE_TOKEN = "{{PAGEHOLDER}}"
MAX_HEADING_LEVEL = 6
DEFAULT_PAGE_BREAK_CLASS = "new-page"
AUTO_ID_PREFIX = "heading-id-"
GROUP_CLASS = "ToC-group"


# ── Data classes ────────────────────────────────────────────────────────


@dataclass
class Heading:
    """A heading element as seen by the ToC."""

    text: str
    id: str
    depth: int
    children: list[Heading] = field(default_factory=list)


@dataclass(frozen=True)
class ElementBox:
    """Rendered geometry of a heading or page-break marker, in pixels."""

    id: str
    top: float
    height: float
    page_break: bool = False

    @property
    def bottom(self) -> float:
        return self.top + self.height


@dataclass(frozen=True)
class PageNumber:
    """The page a heading renders on."""

    id: str
    page: int


# ── Selectors and ids ───────────────────────────────────────────────────


def heading_selector(depth: int, page_break_class: str = DEFAULT_PAGE_BREAK_CLASS) -> str:
    """CSS selector for headings ``h1..h<depth>`` plus page-break markers."""
    levels = [f"h{i}" for i in range(1, depth + 1)]
    return ", ".join(levels + [f".{page_break_class}"])


def link_id(heading_id: str) -> str:
    """Id of the ToC item that points at *heading_id*."""
    return heading_id.replace("heading", "link", 1)


# ── List construction ───────────────────────────────────────────────────


def build_hierarchy(flat: list[Heading]) -> list[Heading]:
    """Nest a flat, ordered heading list by depth."""
    roots: list[Heading] = []
    stack: list[Heading] = []
    for heading in flat:
        heading.children = []
        while stack and stack[-1].depth >= heading.depth:
            stack.pop()
        if stack:
            stack[-1].children.append(heading)
        else:
            roots.append(heading)
        stack.append(heading)
    return roots


def _render_item(heading: Heading) -> str:
    hid = html.escape(heading.id, quote=True)
    lid = html.escape(link_id(heading.id), quote=True)
    item = (
        f'<li class="ToC-link" data-linked="{hid}" id="{lid}">'
        f'<span class="ToC-link-heading">{heading.text}</span>'
        f'<span class="ToC-link-page-number">{PAGE_TOKEN}</span>'
    )
    if heading.children:
        item += _render_list(heading.children, heading.depth + 1)
    return item + "</li>"


def _render_list(headings: list[Heading], level: int, css_class: str = "") -> str:
    # Headings deeper than *level* have no parent at this level; each run of
    # them goes into an unlinked group item one level down.
    cls = f' class="{css_class}"' if css_class else ""
    parts: list[str] = []
    i = 0
    while i < len(headings):
        if headings[i].depth <= level:
            parts.append(_render_item(headings[i]))
            i += 1
            continue
        j = i
        while j < len(headings) and headings[j].depth > level:
            j += 1
        parts.append(f'<li class="{GROUP_CLASS}">{_render_list(headings[i:j], level + 1)}</li>')
        i = j
    return f"<ul{cls}>" + "".join(parts) + "</ul>"


def make_list(headings: list[Heading]) -> str:
    """Render headings as a nested ``<ul>`` with page-number placeholders.

    Heading text is inserted as-is: it is the heading's own inner HTML.
    Nesting starts from depth 1 and follows the heading levels: an item's
    sub-list sits inside its ``<li>``, and a heading with no parent one
    level up (a leading ``h2``, or an ``h3`` straight after an ``h1``) is
    wrapped in a ``ToC-group`` item for each missing level.
    """
    return _render_list(build_hierarchy(list(headings)), 1, "table-of-contents-list")


# ── Pagination ──────────────────────────────────────────────────────────


def paginate(boxes: list[ElementBox], usable_height: float) -> list[PageNumber]:
    """Assign a page to every heading box.

    Args:
        boxes: Headings and page-break markers in document order.
        usable_height: Page height minus top and bottom margins, in pixels.

    Returns:
        One PageNumber per heading box; page-break markers are skipped.
    """
    if usable_height <= 0:
        raise FolioError(
            f"Usable page height is {usable_height}px. "
            f"Page margins must leave room for content; check the @page rule."
        )
    page = 1
    correction = 0.0
    result: list[PageNumber] = []
    for box in boxes:
        if box.page_break:
            correction = page * usable_height - box.bottom
            page += 1
            continue
        while box.bottom + correction >= page * usable_height:
            page += 1
        result.append(PageNumber(id=box.id, page=page))
    return result


def fill_page_number(markup: str, page: int) -> str:
    """Put *page* where the placeholder token sits in a ToC item."""
    return markup.replace(PAGE_TOKEN, str(page))
