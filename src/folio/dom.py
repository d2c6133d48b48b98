"""The document contract the post-processing passes rely on.

Both passes talk to the page only through :class:`Document`. Absence is
reported as ``None``/``False`` (the document did not ask for that section);
anything else the browser raises propagates unchanged.
"""

from __future__ import annotations

from typing import Protocol

from folio.toc import ElementBox, Heading, PageNumber

CITATION_SELECTOR = ".citation"
BIBLIOGRAPHY_SELECTOR = "#bibliography"
TOC_SELECTOR = "#table-of-contents"
TOC_LINK_SELECTOR = ".ToC-link"


class Document(Protocol):
    """Narrow view of a rendered HTML document."""

    async def get_attribute(self, selector: str, name: str) -> str | None:
        """Attribute of the first match, or None if nothing matches."""
        ...

    async def get_attributes(
        self, selector: str, names: list[str]
    ) -> list[dict[str, str | None]]:
        """Requested attributes of every match, in document order."""
        ...

    async def set_inner_html(self, selector: str, markup: str) -> bool:
        """Replace the content of the first match. False if nothing matches."""
        ...

    async def set_inner_html_all(self, selector: str, values: list[str | None]) -> None:
        """Replace the content of the i-th match with ``values[i]``; None skips it."""
        ...

    async def style_texts(self) -> list[str]:
        """Text of every ``<style>`` element."""
        ...

    async def set_body_width(self, width: float) -> None:
        """Constrain the body to *width* pixels so layout reflows."""
        ...

    async def collect_headings(self, selector: str, page_break_class: str) -> list[Heading]:
        """Headings matching *selector*, page-break markers excluded.

        Headings without an id get ``heading-id-<i>``, counting only those.
        """
        ...

    async def measure(self, selector: str, page_break_class: str) -> list[ElementBox]:
        """Offset and height of every match, in document order."""
        ...

    async def fill_links(self, selector: str, pages: list[PageNumber], token: str) -> None:
        """Swap *token* for the page of the heading each link points at."""
        ...
