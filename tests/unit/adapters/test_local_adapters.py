"""
Tests for the in-process adapters: the prevention advice table and the
JSON file journal source.
"""

import json
from pathlib import Path

import pytest

from adapters.journal.json_file import JournalLoadError, JsonFileJournalSource
from adapters.recommendations.prevention_table import (
    GENERIC_RECOMMENDATIONS,
    PREVENTION_RECOMMENDATIONS,
    PreventionTableLookup,
)


class TestPreventionTableLookup:
    @pytest.fixture
    def lookup(self) -> PreventionTableLookup:
        return PreventionTableLookup()

    def test_exact_match_is_case_insensitive(self, lookup: PreventionTableLookup) -> None:
        assert lookup.recommendations_for("MIGRAINE") == PREVENTION_RECOMMENDATIONS["migraine"]

    def test_label_containing_a_key_matches(self, lookup: PreventionTableLookup) -> None:
        advice = lookup.recommendations_for("Tension headache")
        assert advice == PREVENTION_RECOMMENDATIONS["headache"]

    def test_key_containing_the_label_matches(self, lookup: PreventionTableLookup) -> None:
        assert lookup.recommendations_for("Stomach") == PREVENTION_RECOMMENDATIONS["stomach pain"]

    @pytest.mark.parametrize("symptom", ["Nausea", "", "   "])
    def test_unknown_symptom_gets_generic_advice(
        self, lookup: PreventionTableLookup, symptom: str
    ) -> None:
        assert lookup.recommendations_for(symptom) == GENERIC_RECOMMENDATIONS

    def test_returned_lists_are_copies(self, lookup: PreventionTableLookup) -> None:
        lookup.recommendations_for("Fatigue").clear()
        assert lookup.recommendations_for("Fatigue")

    def test_custom_table_and_fallback(self) -> None:
        lookup = PreventionTableLookup(
            table={"Hay Fever": ["Keep windows closed"]}, fallback=["Rest"]
        )

        assert lookup.recommendations_for("hay fever") == ["Keep windows closed"]
        assert lookup.recommendations_for("Cough") == ["Rest"]

    def test_empty_fallback_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            PreventionTableLookup(fallback=[])

    def test_every_entry_is_non_empty(self) -> None:
        assert GENERIC_RECOMMENDATIONS
        assert all(PREVENTION_RECOMMENDATIONS.values())


class TestJsonFileJournalSource:
    def test_reads_raw_entries(self, tmp_path: Path) -> None:
        entries = [
            {"date": "2024-05-06", "symptoms": ["Headache"], "mood": 2},
            {"date": "2024-05-07", "symptoms": []},
            {"symptoms": ["broken entry"]},
        ]
        path = tmp_path / "journal.json"
        path.write_text(json.dumps(entries), encoding="utf-8")

        assert JsonFileJournalSource(path).fetch_records() == entries

    def test_missing_file_is_an_empty_journal(self, tmp_path: Path) -> None:
        assert JsonFileJournalSource(tmp_path / "nope.json").fetch_records() == []

    def test_invalid_json_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "journal.json"
        path.write_text("[{", encoding="utf-8")

        with pytest.raises(JournalLoadError):
            JsonFileJournalSource(path).fetch_records()

    def test_undecodable_file_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "journal.json"
        path.write_bytes(b"\xff\xfe\x00garbage")

        with pytest.raises(JournalLoadError):
            JsonFileJournalSource(path).fetch_records()

    def test_non_array_document_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "journal.json"
        path.write_text('{"entries": []}', encoding="utf-8")

        with pytest.raises(JournalLoadError, match="JSON array"):
            JsonFileJournalSource(path).fetch_records()
