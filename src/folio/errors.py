"""Exception hierarchy for Folio.

Every error message includes: what happened, why, and what to do next.
A section that was simply not requested by the document (no citations,
no ToC placeholder) is never an error; the passes return False instead.
"""


class FolioError(Exception):
    """Base class for all Folio errors."""


class InvalidLength(FolioError):
    """A page size or margin value has no numeric magnitude."""

    def __init__(self, value: str):
        super().__init__(
            f"Cannot read a length from '{value}'. "
            f"Use a number followed by a unit, e.g. '8.5in', '210mm', '96px'. "
            f"Supported units: px, in, cm, mm, pt, pc."
        )
        self.value = value


class InvalidTocDepth(FolioError):
    """The ToC placeholder declares a depth that is not a heading level."""

    def __init__(self, depth: str):
        super().__init__(
            f"Table of contents depth '{depth}' is not a heading level. "
            f"Set data-depth on #table-of-contents to an integer from 1 to 6."
        )
        self.depth = depth


class UnknownStyle(FolioError):
    """The requested CSL style could not be found."""

    def __init__(self, style: str, searched: list[str]):
        where = ", ".join(searched) if searched else "(no style directories)"
        super().__init__(
            f"CSL style '{style}' not found. Searched: {where}. "
            f"Download the .csl file from the Zotero style repository into "
            f"bibliography.styles_dir, or set data-style to a path to a .csl file."
        )
        self.style = style
        self.searched = searched


class DOIResolutionFailed(FolioError):
    """doi.org returned an error for a DOI lookup."""

    def __init__(self, doi: str, status_code: int):
        if status_code == 404:
            msg = (
                f"DOI '{doi}' does not exist (doi.org 404). "
                f"Check the data-key of the citation, or add the entry to a local .bib source."
            )
        elif status_code == 429:
            msg = (
                f"doi.org rate-limited (429) while resolving DOI '{doi}'. "
                f"Try again in a few seconds."
            )
        elif status_code == 0:
            msg = (
                f"doi.org unreachable while resolving DOI '{doi}'. "
                f"Check your network connection, or set bibliography.resolve_dois: false."
            )
        else:
            msg = (
                f"doi.org returned HTTP {status_code} for DOI '{doi}'. "
                f"This may be a transient error. Try again later."
            )
        super().__init__(msg)
        self.doi = doi
        self.status_code = status_code


class BibParseError(FolioError):
    """A bibliography source could not be parsed."""

    def __init__(self, path: str, detail: str):
        super().__init__(
            f"Failed to parse '{path}': {detail}. "
            f"Check the file for syntax errors (unmatched braces, missing commas, invalid JSON)."
        )
        self.path = path
        self.detail = detail


class ConfigError(FolioError):
    """Project configuration is invalid."""

    def __init__(self, detail: str, hint: str = ""):
        msg = f"Configuration error: {detail}."
        if hint:
            msg += f" {hint}"
        super().__init__(msg)
        self.detail = detail
        self.hint = hint
