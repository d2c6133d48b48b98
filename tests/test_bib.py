"""Tests for folio.bib."""

import json
from pathlib import Path

import pytest

from folio.bib import load_bib, load_csl_json, load_sources, parse_names
from folio.errors import BibParseError, ConfigError


class TestParseNames:
    def test_family_given(self):
        assert parse_names("Xu, Yang and Guo, Xuefeng") == [
            {"family": "Xu", "given": "Yang"},
            {"family": "Guo", "given": "Xuefeng"},
        ]

    def test_given_family(self):
        assert parse_names("Colin J. Lambert") == [{"family": "Lambert", "given": "Colin J."}]

    def test_single_name(self):
        assert parse_names("Plato") == [{"family": "Plato"}]

    def test_braced_corporate(self):
        assert parse_names("{World Health Organization}") == [
            {"literal": "World Health Organization"}
        ]

    def test_and_case_insensitive(self):
        assert len(parse_names("A, B AND C, D")) == 2


class TestLoadBib:
    def test_entries(self, sample_bib_path: Path):
        records = load_bib(sample_bib_path)
        assert [r["id"] for r in records] == ["xu2022", "chen2023", "who2019"]

    def test_article(self, sample_bib_path: Path):
        xu = load_bib(sample_bib_path)[0]
        assert xu["type"] == "article-journal"
        assert xu["author"][0] == {"family": "Xu", "given": "Yang"}
        assert xu["issued"] == {"date-parts": [[2022]]}
        assert xu["container-title"] == "Nature"
        assert xu["page"] == "585-590"
        assert xu["DOI"] == "10.1038/s41586-022-04435-4"

    def test_iso_date_and_booktitle(self, sample_bib_path: Path):
        chen = load_bib(sample_bib_path)[1]
        assert chen["type"] == "paper-conference"
        assert chen["issued"] == {"date-parts": [[2023, 6, 14]]}
        assert chen["container-title"] == "Proceedings of Small Things"
        assert chen["author"][1]["family"] == "Lambert"

    def test_corporate_author(self, sample_bib_path: Path):
        who = load_bib(sample_bib_path)[2]
        assert who["type"] == "report"
        assert who["author"] == [{"literal": "World Health Organization"}]

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_bib(tmp_path / "missing.bib")

    def test_bad_encoding(self, tmp_path: Path):
        p = tmp_path / "latin1.bib"
        p.write_bytes(b"@misc{a, title = {caf\xe9}}")
        with pytest.raises(BibParseError, match="UTF-8"):
            load_bib(p)


class TestLoadCslJson:
    def test_valid(self, tmp_path: Path, sample_records):
        p = tmp_path / "refs.json"
        p.write_text(json.dumps(sample_records), encoding="utf-8")
        assert load_csl_json(p) == sample_records

    def test_not_array(self, tmp_path: Path):
        p = tmp_path / "refs.json"
        p.write_text('{"id": "x"}', encoding="utf-8")
        with pytest.raises(BibParseError, match="JSON array"):
            load_csl_json(p)

    def test_missing_id(self, tmp_path: Path):
        p = tmp_path / "refs.json"
        p.write_text('[{"title": "x"}]', encoding="utf-8")
        with pytest.raises(BibParseError, match="'id'"):
            load_csl_json(p)

    def test_invalid_json(self, tmp_path: Path):
        p = tmp_path / "refs.json"
        p.write_text("[", encoding="utf-8")
        with pytest.raises(BibParseError):
            load_csl_json(p)


class TestLoadSources:
    def test_mixed(self, tmp_path: Path, sample_bib_path: Path, sample_records):
        p = tmp_path / "refs.json"
        p.write_text(json.dumps(sample_records), encoding="utf-8")
        records = load_sources([sample_bib_path, p])
        assert len(records) == 5
        assert records[-1]["id"] == "xu2022"

    def test_unsupported_suffix(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="Unsupported"):
            load_sources([tmp_path / "refs.ris"])
