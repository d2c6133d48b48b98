"""Tests for folio.errors: exception hierarchy and actionable messages.

Every error must:
1. Be a subclass of FolioError
2. Store structured attributes for programmatic access
3. Say what happened and what to do about it
"""

import pytest

from folio.errors import (
    BibParseError,
    ConfigError,
    DOIResolutionFailed,
    FolioError,
    InvalidLength,
    InvalidTocDepth,
    UnknownStyle,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        "cls",
        [BibParseError, ConfigError, DOIResolutionFailed, InvalidLength, InvalidTocDepth, UnknownStyle],
    )
    def test_inherits_folio_error(self, cls):
        assert issubclass(cls, FolioError)


class TestMessages:
    def test_invalid_length(self):
        e = InvalidLength("wide")
        assert e.value == "wide"
        assert "'wide'" in str(e)
        assert "8.5in" in str(e)

    def test_invalid_depth(self):
        e = InvalidTocDepth("seven")
        assert e.depth == "seven"
        assert "1 to 6" in str(e)

    def test_unknown_style(self):
        e = UnknownStyle("apa", ["/styles/apa.csl"])
        assert e.style == "apa"
        assert e.searched == ["/styles/apa.csl"]
        assert "/styles/apa.csl" in str(e)
        assert "styles_dir" in str(e)

    def test_unknown_style_no_dirs(self):
        assert "(no style directories)" in str(UnknownStyle("apa", []))

    @pytest.mark.parametrize(
        "status,fragment",
        [(404, "does not exist"), (429, "rate-limited"), (0, "unreachable"), (503, "HTTP 503")],
    )
    def test_doi_resolution(self, status, fragment):
        e = DOIResolutionFailed("10.1/x", status)
        assert e.doi == "10.1/x"
        assert e.status_code == status
        assert fragment in str(e)

    def test_bib_parse(self):
        e = BibParseError("refs.bib", "unbalanced braces")
        assert e.path == "refs.bib"
        assert e.detail == "unbalanced braces"
        assert "unbalanced braces" in str(e)

    def test_config_hint(self):
        e = ConfigError("bad thing", hint="Do this.")
        assert str(e) == "Configuration error: bad thing. Do this."
        assert e.hint == "Do this."

    def test_config_no_hint(self):
        assert str(ConfigError("bad thing")) == "Configuration error: bad thing."
