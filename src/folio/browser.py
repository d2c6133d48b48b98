"""Playwright-backed :class:`folio.dom.Document`.

Each method is one round-trip to Chromium. Single-element lookups go
through ``query_selector`` and report a missing element as None; errors
raised by the page are not caught here.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from playwright.async_api import Page, async_playwright

from folio.toc import AUTO_ID_PREFIX, ElementBox, Heading, PageNumber

logger = logging.getLogger(__name__)

_GET_ATTRIBUTES_JS = """
(elements, names) => elements.map(el => {
    const out = {};
    for (const name of names) out[name] = el.getAttribute(name);
    return out;
})
"""

_SET_INNER_HTML_ALL_JS = """
(elements, values) => {
    elements.forEach((el, i) => {
        if (i < values.length && values[i] !== null) el.innerHTML = values[i];
    });
}
"""

_STYLE_TEXTS_JS = "elements => elements.map(el => el.textContent || '')"

_SET_BODY_WIDTH_JS = "(body, width) => { body.style.width = `${width}px`; }"

_COLLECT_HEADINGS_JS = """
(elements, [breakClass, prefix]) => {
    const out = [];
    let i = 0;
    for (const el of elements) {
        if (el.classList.contains(breakClass)) continue;
        if (el.id === '') {
            el.id = `${prefix}${i}`;
            i++;
        }
        out.push({
            text: el.innerHTML,
            id: el.id,
            depth: Number(el.tagName.replace(/^H/i, '')),
        });
    }
    return out;
}
"""

_MEASURE_JS = """
(elements, breakClass) => elements.map(el => ({
    id: el.id,
    top: el.offsetTop,
    height: el.offsetHeight,
    page_break: el.classList.contains(breakClass),
}))
"""

# Sub-lists sit inside their parent <li>; only the item's own number span
# may be written, or the parent's nested items are replaced by copies.
_FILL_LINKS_JS = """
(elements, [pages, token]) => {
    const byId = new Map(pages.map(p => [p.id, p.page]));
    for (const el of elements) {
        const page = byId.get(el.getAttribute('data-linked'));
        const span = el.querySelector(':scope > .ToC-link-page-number');
        if (page === undefined || span === null) continue;
        span.textContent = span.textContent.replace(token, String(page));
    }
}
"""


class PlaywrightDocument:
    """Document adapter over a live Playwright page."""

    def __init__(self, page: Page):
        self.page = page

    async def get_attribute(self, selector: str, name: str) -> str | None:
        handle = await self.page.query_selector(selector)
        if handle is None:
            logger.debug("No element matches %s", selector)
            return None
        return await handle.get_attribute(name)

    async def get_attributes(
        self, selector: str, names: list[str]
    ) -> list[dict[str, str | None]]:
        return await self.page.eval_on_selector_all(selector, _GET_ATTRIBUTES_JS, names)

    async def set_inner_html(self, selector: str, markup: str) -> bool:
        handle = await self.page.query_selector(selector)
        if handle is None:
            return False
        await handle.evaluate("(el, markup) => { el.innerHTML = markup; }", markup)
        return True

    async def set_inner_html_all(self, selector: str, values: list[str | None]) -> None:
        await self.page.eval_on_selector_all(selector, _SET_INNER_HTML_ALL_JS, values)

    async def style_texts(self) -> list[str]:
        return await self.page.eval_on_selector_all("style", _STYLE_TEXTS_JS)

    async def set_body_width(self, width: float) -> None:
        await self.page.eval_on_selector("body", _SET_BODY_WIDTH_JS, width)

    async def collect_headings(self, selector: str, page_break_class: str) -> list[Heading]:
        raw = await self.page.eval_on_selector_all(
            selector, _COLLECT_HEADINGS_JS, [page_break_class, AUTO_ID_PREFIX]
        )
        return [Heading(text=h["text"], id=h["id"], depth=int(h["depth"])) for h in raw]

    async def measure(self, selector: str, page_break_class: str) -> list[ElementBox]:
        raw = await self.page.eval_on_selector_all(selector, _MEASURE_JS, page_break_class)
        return [
            ElementBox(
                id=b["id"],
                top=float(b["top"]),
                height=float(b["height"]),
                page_break=bool(b["page_break"]),
            )
            for b in raw
        ]

    async def fill_links(self, selector: str, pages: list[PageNumber], token: str) -> None:
        payload = [{"id": p.id, "page": p.page} for p in pages]
        await self.page.eval_on_selector_all(selector, _FILL_LINKS_JS, [payload, token])


@asynccontextmanager
async def open_page(path: Path) -> AsyncIterator[Page]:
    """Launch headless Chromium and load a local HTML file."""
    async with async_playwright() as pw:
        browser = await pw.chromium.launch()
        try:
            page = await browser.new_page()
            logger.debug("Loading %s", path)
            await page.goto(path.resolve().as_uri(), wait_until="load")
            yield page
        finally:
            await browser.close()


async def export(page: Page, output: Path, width: float, height: float) -> None:
    """Write the page to *output*: PDF for ``.pdf``, serialized HTML otherwise."""
    if output.suffix.lower() == ".pdf":
        await page.pdf(
            path=str(output),
            width=f"{width}px",
            height=f"{height}px",
            print_background=True,
            prefer_css_page_size=True,
        )
    else:
        output.write_text(await page.content(), encoding="utf-8")
    logger.info("Wrote %s", output)
