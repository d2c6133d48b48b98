"""Citation library backed by citeproc-py.

Keys found in a document are registered here, resolved against local
sources (BibTeX/CSL-JSON) or, for DOI-shaped keys, against doi.org. The
registered CSL-JSON records drive both the inline ``(Family, Year)``
citations and the full bibliography rendered in a CSL style.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable

import citeproc
from citeproc import (
    Citation,
    CitationItem,
    CitationStylesBibliography,
    CitationStylesStyle,
    formatter,
)
from citeproc.source.json import CiteProcJSON

from folio import doi as doi_mod
from folio.errors import UnknownStyle

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "en-US"
BUNDLED_STYLES = Path(citeproc.__file__).parent / "data" / "styles"

# Variables passed on to citeproc. Resolver responses carry many more
# (license, link, reference, ...) that the CSL processor does not accept.
CSL_VARIABLES = {
    "id",
    "type",
    "title",
    "container-title",
    "collection-title",
    "author",
    "editor",
    "issued",
    "accessed",
    "volume",
    "issue",
    "page",
    "edition",
    "publisher",
    "publisher-place",
    "DOI",
    "URL",
    "ISBN",
    "ISSN",
    "note",
}


# ── Inline citations ────────────────────────────────────────────────────


def _family(record: dict[str, Any]) -> str | None:
    authors = record.get("author") or []
    if not authors:
        return None
    first = authors[0]
    return first.get("family") or first.get("literal")


def _year(record: dict[str, Any]) -> str:
    try:
        year = record["issued"]["date-parts"][0][0]
    except (KeyError, IndexError, TypeError):
        return "n.d."
    return str(year) if year else "n.d."


def inline_citation(record: dict[str, Any], page: str | None = None) -> str | None:
    """``(Family, Year)``, or ``(Family, Year, p. N)`` with a page locator.

    Returns None when the record names no author.
    """
    family = _family(record)
    if not family:
        return None
    if page:
        return f"({family}, {_year(record)}, p. {page})"
    return f"({family}, {_year(record)})"


def find_record(records: list[dict[str, Any]], key: str) -> dict[str, Any] | None:
    """First record whose id is *key*."""
    for record in records:
        if record.get("id") == key:
            return record
    return None


# ── Library ─────────────────────────────────────────────────────────────


class CitationLibrary:
    """Registered citation records plus CSL rendering."""

    def __init__(
        self,
        records: Iterable[dict[str, Any]] = (),
        *,
        resolve_dois: bool = True,
        mailto: str = "",
        styles_dir: Path | None = None,
    ):
        self.local: dict[str, dict[str, Any]] = {}
        for record in records:
            self.local.setdefault(str(record["id"]), record)
        self.resolve_dois = resolve_dois
        self.mailto = mailto
        self.styles_dir = styles_dir
        self._registered: dict[str, dict[str, Any]] = {}

    @property
    def records(self) -> list[dict[str, Any]]:
        """Registered records, in registration order."""
        return list(self._registered.values())

    def add(self, key: str) -> dict[str, Any] | None:
        """Register *key* and return its record, or None if it cannot be resolved.

        Raises:
            DOIResolutionFailed: If a DOI-shaped key fails to resolve.
        """
        if key in self._registered:
            return self._registered[key]

        record = self.local.get(key)
        if record is None and self.resolve_dois:
            doi = doi_mod.normalize_doi(key)
            if doi:
                record = doi_mod.fetch_csl(doi, mailto=self.mailto)

        if record is None:
            logger.warning("No bibliography record for citation key '%s'", key)
            return None

        record = dict(record, id=key)
        record.setdefault("type", "article")
        self._registered[key] = record
        return record

    def resolve_style(self, style: str) -> Path:
        """Locate the .csl file for a style name or path.

        Raises:
            UnknownStyle: If no matching file exists.
        """
        candidates: list[Path] = []
        if self.styles_dir is not None:
            candidates.append(self.styles_dir / f"{style}.csl")
        candidates.append(Path(style))
        candidates.append(BUNDLED_STYLES / f"{style}.csl")
        for path in candidates:
            if path.suffix == ".csl" and path.is_file():
                return path
        raise UnknownStyle(style, [str(p) for p in candidates])

    def render(self, style: str, locale: str = DEFAULT_LOCALE) -> str:
        """Render every registered record as an HTML bibliography."""
        style_path = self.resolve_style(style)
        entries: list[str] = []
        if self._registered:
            # citeproc folds ids to lower case; numbered ids keep keys that
            # differ only by case apart.
            ids = [f"ref-{i}" for i in range(len(self._registered))]
            source = CiteProcJSON(
                [
                    {k: v for k, v in r.items() if k in CSL_VARIABLES} | {"id": ref_id}
                    for ref_id, r in zip(ids, self._registered.values())
                ]
            )
            csl_style = CitationStylesStyle(str(style_path), locale=locale, validate=False)
            bibliography = CitationStylesBibliography(csl_style, source, formatter.html)
            for ref_id in ids:
                bibliography.register(Citation([CitationItem(ref_id)]))
            bibliography.sort()
            entries = [str(item) for item in bibliography.bibliography()]
        logger.debug("Rendered %d bibliography entries in style %s", len(entries), style)
        body = "".join(f'<div class="csl-entry">{e}</div>' for e in entries)
        return f'<div class="csl-bib-body">{body}</div>'
