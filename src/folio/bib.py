"""Local bibliography sources: BibTeX via bibtexparser v2, and CSL-JSON.

Everything is converted to CSL-JSON records, the shape the CSL engine
consumes and the inline citation formatter reads.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any

import bibtexparser
from bibtexparser.model import Entry

from folio.errors import BibParseError, ConfigError

logger = logging.getLogger(__name__)

# BibTeX entry type → CSL type
CSL_TYPES: dict[str, str] = {
    "article": "article-journal",
    "book": "book",
    "booklet": "pamphlet",
    "inbook": "chapter",
    "incollection": "chapter",
    "inproceedings": "paper-conference",
    "conference": "paper-conference",
    "manual": "book",
    "mastersthesis": "thesis",
    "phdthesis": "thesis",
    "proceedings": "book",
    "techreport": "report",
    "unpublished": "manuscript",
    "online": "webpage",
    "misc": "document",
}

# BibTeX field → CSL variable, for fields copied as plain text
CSL_FIELDS: dict[str, str] = {
    "title": "title",
    "journal": "container-title",
    "journaltitle": "container-title",
    "booktitle": "container-title",
    "volume": "volume",
    "number": "issue",
    "edition": "edition",
    "publisher": "publisher",
    "address": "publisher-place",
    "location": "publisher-place",
    "doi": "DOI",
    "url": "URL",
    "isbn": "ISBN",
    "issn": "ISSN",
    "abstract": "abstract",
    "note": "note",
}

_AND_RE = re.compile(r"\s+and\s+", re.IGNORECASE)
_YEAR_RE = re.compile(r"(\d{4})(?:-(\d{1,2}))?(?:-(\d{1,2}))?")


def _strip_braces(value: str) -> str:
    return re.sub(r"\s+", " ", value.replace("{", "").replace("}", "")).strip()


def parse_names(value: str) -> list[dict[str, str]]:
    """Split a BibTeX name list into CSL name objects.

    ``Family, Given`` and ``Given Family`` are both understood. A name
    wrapped entirely in braces (``{World Health Organization}``) is kept
    whole as a ``literal``.
    """
    names: list[dict[str, str]] = []
    for raw in _AND_RE.split(value.strip()):
        raw = raw.strip()
        if not raw:
            continue
        if raw.startswith("{") and raw.endswith("}") and raw.count("{") == 1:
            names.append({"literal": _strip_braces(raw)})
            continue
        raw = _strip_braces(raw)
        if "," in raw:
            family, given = (p.strip() for p in raw.split(",", 1))
        else:
            parts = raw.rsplit(" ", 1)
            family = parts[-1]
            given = parts[0] if len(parts) > 1 else ""
        name = {"family": family}
        if given:
            name["given"] = given
        names.append(name)
    return names


def _issued(fields: dict[str, str]) -> dict[str, Any] | None:
    m = _YEAR_RE.search(fields.get("date", "")) or _YEAR_RE.search(fields.get("year", ""))
    if not m:
        return None
    parts = [int(g) for g in m.groups() if g]
    return {"date-parts": [parts]}


def entry_to_csl(entry: Entry) -> dict[str, Any]:
    """Convert a BibTeX entry to a CSL-JSON record keyed by its bib key."""
    fields = {f.key.lower(): str(f.value) for f in entry.fields}
    record: dict[str, Any] = {
        "id": entry.key,
        "type": CSL_TYPES.get(entry.entry_type.lower(), "document"),
    }
    for role in ("author", "editor"):
        if fields.get(role):
            record[role] = parse_names(fields[role])
    issued = _issued(fields)
    if issued:
        record["issued"] = issued
    if fields.get("pages"):
        record["page"] = _strip_braces(fields["pages"]).replace("--", "-")
    for bib_field, csl_var in CSL_FIELDS.items():
        if fields.get(bib_field) and csl_var not in record:
            record[csl_var] = _strip_braces(fields[bib_field])
    return record


def load_bib(path: Path) -> list[dict[str, Any]]:
    """Parse a .bib file into CSL-JSON records.

    Raises:
        BibParseError: If the file cannot be decoded or parsed.
        FileNotFoundError: If the file does not exist.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise BibParseError(str(path), f"UTF-8 decode error: {e}") from e

    try:
        library = bibtexparser.parse_string(text)
    except Exception as e:
        raise BibParseError(str(path), str(e)) from e

    if library.failed_blocks:
        logger.warning("%s: skipped %d unparseable blocks", path, len(library.failed_blocks))

    return [entry_to_csl(e) for e in library.entries]


def load_csl_json(path: Path) -> list[dict[str, Any]]:
    """Load a CSL-JSON array of records.

    Raises:
        BibParseError: If the file is not a JSON array of objects with ids.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise BibParseError(str(path), str(e)) from e

    if not isinstance(data, list):
        raise BibParseError(str(path), f"expected a JSON array, got {type(data).__name__}")
    for item in data:
        if not isinstance(item, dict) or "id" not in item:
            raise BibParseError(str(path), "every record must be an object with an 'id'")
    return data


def load_sources(paths: list[Path]) -> list[dict[str, Any]]:
    """Load every configured source, in order."""
    records: list[dict[str, Any]] = []
    for path in paths:
        suffix = path.suffix.lower()
        if suffix == ".bib":
            records.extend(load_bib(path))
        elif suffix == ".json":
            records.extend(load_csl_json(path))
        else:
            raise ConfigError(
                f"Unsupported bibliography source '{path}'",
                hint="Use a BibTeX (.bib) or CSL-JSON (.json) file.",
            )
        logger.debug("Loaded %s", path)
    return records
