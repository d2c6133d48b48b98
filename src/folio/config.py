"""Folio configuration: loads and validates folio.yaml.

The file sits next to the documents it post-processes. It sets the
print page size, where citation records come from and which locale the
bibliography is rendered in. Every key is optional.

If no config exists, create_default() writes a commented starter file.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from folio.errors import ConfigError
from folio.toc import DEFAULT_PAGE_BREAK_CLASS

CONFIG_NAME = "folio.yaml"
MAILTO_ENV = "FOLIO_MAILTO"


@dataclass
class PageConfig:
    """Print page geometry. Sizes stay as written; units.convert_size reads them."""

    width: str | float | None = None
    height: str | float | None = None
    break_class: str = DEFAULT_PAGE_BREAK_CLASS


@dataclass
class BibliographyConfig:
    """Citation sources and rendering options."""

    locale: str = "en-US"
    sources: list[Path] = field(default_factory=list)
    styles_dir: Path | None = None
    resolve_dois: bool = True
    mailto: str = ""


@dataclass
class FolioConfig:
    """Parsed folio.yaml."""

    page: PageConfig = field(default_factory=PageConfig)
    bibliography: BibliographyConfig = field(default_factory=BibliographyConfig)


_DEFAULT_CONFIG = """\
# Folio configuration
# Every key is optional; delete what you don't need.

# Print page size. Numbers are pixels; strings take px, in, cm, mm, pt, pc.
# Margins come from the document's own @page rule.
page:
  width: 8.5in
  height: 11in
  # Elements with this class force a page break in the table of contents.
  break_class: new-page

bibliography:
  locale: en-US
  # BibTeX (.bib) or CSL-JSON (.json) files, relative to this file.
  sources:
    - references.bib
  # Directory of .csl files; data-style="apa" loads styles/apa.csl.
  # styles_dir: styles
  # Citation keys that are DOIs are looked up on doi.org.
  resolve_dois: true
  # Contact address sent with doi.org requests (or set FOLIO_MAILTO).
  # mailto: you@example.com
"""


def config_path(directory: Path) -> Path:
    """Path to folio.yaml inside *directory*."""
    return directory / CONFIG_NAME


def create_default(directory: Path) -> Path:
    """Write a starter folio.yaml if it doesn't exist. Returns the path."""
    p = config_path(directory)
    if not p.exists():
        directory.mkdir(parents=True, exist_ok=True)
        p.write_text(_DEFAULT_CONFIG, encoding="utf-8")
    return p


def _section(data: dict, name: str, path: Path) -> dict:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(
            f"'{name}' in {path} must be a mapping, got {type(value).__name__}",
            hint="See the starter file written by 'folio init' for the expected layout.",
        )
    return value


def _size(value: object, name: str, path: Path) -> str | float | None:
    if value is None or isinstance(value, (str, int, float)) and not isinstance(value, bool):
        return value
    raise ConfigError(f"page.{name} in {path} must be a number or a string like '210mm'")


def load_config(path: Path) -> FolioConfig:
    """Load and validate a folio.yaml. Returns defaults if the file is missing."""
    if not path.exists():
        cfg = FolioConfig()
        cfg.bibliography.mailto = os.environ.get(MAILTO_ENV, "")
        return cfg

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    base = path.parent
    page = _section(data, "page", path)
    bib = _section(data, "bibliography", path)

    sources = bib.get("sources", []) or []
    if isinstance(sources, str):
        sources = [sources]
    if not isinstance(sources, list):
        raise ConfigError(f"bibliography.sources in {path} must be a list of file paths")

    styles_dir = bib.get("styles_dir")

    return FolioConfig(
        page=PageConfig(
            width=_size(page.get("width"), "width", path),
            height=_size(page.get("height"), "height", path),
            break_class=str(page.get("break_class", DEFAULT_PAGE_BREAK_CLASS)),
        ),
        bibliography=BibliographyConfig(
            locale=str(bib.get("locale", "en-US")),
            sources=[base / str(s) for s in sources],
            styles_dir=base / str(styles_dir) if styles_dir else None,
            resolve_dois=bool(bib.get("resolve_dois", True)),
            mailto=os.environ.get(MAILTO_ENV) or str(bib.get("mailto", "") or ""),
        ),
    )
