"""Shared test fixtures for Folio.

FakeDocument stands in for the browser: elements carry a fixed layout
(top, height), selectors support tag, ``.class`` and ``#id`` lists.
"""

from __future__ import annotations

import html
import re
import textwrap
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from folio.toc import AUTO_ID_PREFIX, ElementBox, Heading, PageNumber, fill_page_number

_TOC_ITEM_RE = re.compile(
    r'(?P<head><li class="ToC-link" data-linked="(?P<id>[^"]*)"[^>]*>'
    r'<span class="ToC-link-heading">.*?</span>)'
    r'(?P<num><span class="ToC-link-page-number">[^<]*</span>)',
    re.DOTALL,
)


@dataclass
class FakeElement:
    tag: str
    inner_html: str = ""
    id: str = ""
    classes: list[str] = field(default_factory=list)
    attrs: dict[str, str] = field(default_factory=dict)
    top: float = 0.0
    height: float = 0.0

    def matches(self, simple: str) -> bool:
        if simple.startswith("."):
            return simple[1:] in self.classes
        if simple.startswith("#"):
            return self.id == simple[1:]
        return self.tag == simple.lower()

    def get_attribute(self, name: str) -> str | None:
        if name == "id":
            return self.id or None
        return self.attrs.get(name)


class FakeDocument:
    """In-memory Document with a frozen layout."""

    def __init__(self, elements: list[FakeElement], styles: list[str] | None = None):
        self.elements = elements
        self.styles = styles or []
        self.body_width: float | None = None
        self.calls: list[str] = []

    def select(self, selector: str) -> list[FakeElement]:
        parts = [p.strip() for p in selector.split(",")]
        return [e for e in self.elements if any(e.matches(p) for p in parts)]

    def first(self, selector: str) -> FakeElement | None:
        found = self.select(selector)
        return found[0] if found else None

    async def get_attribute(self, selector, name):
        self.calls.append("get_attribute")
        el = self.first(selector)
        return None if el is None else el.get_attribute(name)

    async def get_attributes(self, selector, names):
        self.calls.append("get_attributes")
        return [{n: e.get_attribute(n) for n in names} for e in self.select(selector)]

    async def set_inner_html(self, selector, markup):
        self.calls.append("set_inner_html")
        el = self.first(selector)
        if el is None:
            return False
        el.inner_html = markup
        return True

    async def set_inner_html_all(self, selector, values):
        self.calls.append("set_inner_html_all")
        for el, value in zip(self.select(selector), values):
            if value is not None:
                el.inner_html = value

    async def style_texts(self):
        self.calls.append("style_texts")
        return list(self.styles)

    async def set_body_width(self, width):
        self.calls.append("set_body_width")
        self.body_width = width

    async def collect_headings(self, selector, page_break_class):
        self.calls.append("collect_headings")
        out, i = [], 0
        for el in self.select(selector):
            if page_break_class in el.classes:
                continue
            if el.id == "":
                el.id = f"{AUTO_ID_PREFIX}{i}"
                i += 1
            out.append(Heading(text=el.inner_html, id=el.id, depth=int(el.tag[1:])))
        return out

    async def measure(self, selector, page_break_class):
        self.calls.append("measure")
        return [
            ElementBox(
                id=e.id, top=e.top, height=e.height, page_break=page_break_class in e.classes
            )
            for e in self.select(selector)
        ]

    async def fill_links(self, selector, pages: list[PageNumber], token):
        # Each item owns the number span right after its heading span; a
        # nested item's span is never reached through its parent.
        self.calls.append("fill_links")
        by_id = {p.id: p.page for p in pages}

        def fill(m: re.Match) -> str:
            page = by_id.get(html.unescape(m.group("id")))
            if page is None:
                return m.group(0)
            return m.group("head") + fill_page_number(m.group("num"), page)

        for el in self.elements:
            el.inner_html = _TOC_ITEM_RE.sub(fill, el.inner_html)


def heading(level: int, text: str, top: float, height: float = 50, id: str = "") -> FakeElement:
    return FakeElement(tag=f"h{level}", inner_html=text, id=id, top=top, height=height)


def page_break(top: float, height: float = 0) -> FakeElement:
    return FakeElement(tag="div", classes=["new-page"], top=top, height=height)


def citation(key: str, page: str = "", text: str = "[cite]") -> FakeElement:
    return FakeElement(
        tag="span",
        inner_html=text,
        classes=["citation"],
        attrs={"data-key": key, "data-page": page},
    )


@pytest.fixture
def sample_records() -> list[dict]:
    return [
        {
            "id": "smith2020",
            "type": "article-journal",
            "title": "Layout engines considered harmful",
            "author": [{"family": "Smith", "given": "Jane"}],
            "issued": {"date-parts": [[2020]]},
            "container-title": "Journal of Typesetting",
        },
        {
            "id": "xu2022",
            "type": "article-journal",
            "title": "Scaling quantum interference from molecules to cages",
            "author": [{"family": "Xu", "given": "Yang"}, {"family": "Guo", "given": "Xuefeng"}],
            "issued": {"date-parts": [[2022, 3]]},
            "container-title": "Nature",
        },
    ]


@pytest.fixture
def sample_bib_path(tmp_path: Path) -> Path:
    """A small references.bib with 3 entries."""
    content = textwrap.dedent("""\
        @article{xu2022,
          author = {Xu, Yang and Guo, Xuefeng},
          title = {Scaling quantum interference from molecules to cages},
          journal = {Nature},
          year = 2022,
          volume = {603},
          pages = {585--590},
          doi = {10.1038/s41586-022-04435-4},
        }

        @inproceedings{chen2023,
          author = {Zihao Chen and Colin J. Lambert},
          title = {A single-molecule transistor},
          booktitle = {Proceedings of Small Things},
          date = {2023-06-14},
        }

        @techreport{who2019,
          author = {{World Health Organization}},
          title = {Annual report},
          year = {2019},
        }
    """)
    p = tmp_path / "references.bib"
    p.write_text(content, encoding="utf-8")
    return p
