"""Physical lengths, CSS ``@page`` margins and page geometry.

Everything here is pure: lengths come in as numbers or CSS-ish strings
and go out as CSS pixels at 96 per inch.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from folio.errors import InvalidLength

PX_PER_INCH = 96.0

# Pixels per unit.
UNIT_PX: dict[str, float] = {
    "px": 1.0,
    "in": PX_PER_INCH,
    "cm": PX_PER_INCH / 2.54,
    "mm": PX_PER_INCH / 25.4,
    "pt": PX_PER_INCH / 72,
    "pc": PX_PER_INCH / 6,
}

# US Letter.
DEFAULT_WIDTH = 8.5 * PX_PER_INCH
DEFAULT_HEIGHT = 11 * PX_PER_INCH

LENGTH_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)([a-zA-Z]*)")
PAGE_BLOCK_RE = re.compile(r"@page\s*\{")
MARGIN_DECL_RE = re.compile(
    r"(?<![\w-])(margin(?:-top|-left|-right|-bottom)?)\s*:\s*([^;}]+);"
)
LENGTH_VALUE_RE = re.compile(r"^\d+(?:\.\d*)?[a-zA-Z]*$|^\.\d+[a-zA-Z]*$")


@dataclass(frozen=True)
class Margins:
    """Page margins in pixels."""

    top: float = 0.0
    left: float = 0.0
    right: float = 0.0
    bottom: float = 0.0


def convert_size(size: str | float | int) -> float:
    """Convert a length to CSS pixels.

    Numbers are taken to be pixels already. Strings are read as the first
    number they contain plus the letters directly after it, so both
    ``"20mm"`` and ``"margin-top: 20mm;"`` give 20 millimetres. A unit
    this module does not know passes the magnitude through unchanged.

    Raises:
        InvalidLength: If a string contains no number.
    """
    if isinstance(size, (int, float)):
        return float(size)
    m = LENGTH_RE.search(size)
    if m is None:
        raise InvalidLength(size)
    magnitude = float(m.group(1))
    unit = m.group(2).lower()
    return magnitude * UNIT_PX.get(unit, 1.0)


def page_size(
    width: str | float | None = None,
    height: str | float | None = None,
) -> tuple[float, float]:
    """Resolve page width and height in pixels, defaulting to US Letter."""
    w = convert_size(width) if width else DEFAULT_WIDTH
    h = convert_size(height) if height else DEFAULT_HEIGHT
    return w, h


def _top_level_body(css: str, start: int) -> str:
    # Declarations at depth 1 only; a nested rule's prelude is dropped back
    # to the last ';' before its '{'.
    body: list[str] = []
    depth = 1
    for ch in css[start:]:
        if ch == "{":
            if depth == 1:
                text = "".join(body)
                cut = text.rfind(";") + 1
                body = [text[:cut]]
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                break
        elif depth == 1:
            body.append(ch)
    return "".join(body)


def extract_page_block(css_texts: list[str]) -> str | None:
    """Return the declarations of the first ``@page { ... }`` rule, or None.

    Nested margin-box rules such as ``@top-center { ... }`` are skipped.
    """
    for text in css_texts:
        m = PAGE_BLOCK_RE.search(text or "")
        if m:
            return _top_level_body(text, m.end())
    return None


def _shorthand(values: list[float]) -> Margins:
    # CSS order: top, right, bottom, left with the usual 1-4 value expansion.
    if len(values) == 1:
        t = r = b = l = values[0]
    elif len(values) == 2:
        t, r = values
        b, l = t, r
    elif len(values) == 3:
        t, r, b = values
        l = r
    else:
        t, r, b, l = values[:4]
    return Margins(top=t, left=l, right=r, bottom=b)


def parse_margins(page_block: str | None) -> Margins:
    """Parse margin declarations out of an ``@page`` body.

    Declarations are matched by property name, so their order in the
    stylesheet does not matter. A ``margin`` shorthand wins over the
    longhands; without it, every side whose longhand is missing is zero.
    Declarations whose value is not a plain length (``auto``, ``var()``)
    are ignored.
    """
    if not page_block:
        return Margins()

    found: dict[str, list[float]] = {}
    for prop, raw in MARGIN_DECL_RE.findall(page_block):
        tokens = raw.split()
        if not tokens or not all(LENGTH_VALUE_RE.match(t) for t in tokens):
            continue
        found[prop] = [convert_size(t) for t in tokens]

    if "margin" in found:
        return _shorthand(found["margin"])

    def side(name: str) -> float:
        values = found.get(f"margin-{name}")
        return values[0] if values else 0.0

    return Margins(
        top=side("top"),
        left=side("left"),
        right=side("right"),
        bottom=side("bottom"),
    )


def content_box(width: float, height: float, margins: Margins) -> tuple[float, float]:
    """Usable page width and height once margins are taken off."""
    return (
        width - margins.left - margins.right,
        height - margins.top - margins.bottom,
    )
