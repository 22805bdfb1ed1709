import json

from afya.core.config import DEFAULT_SYMPTOMS_PATH
from afya.layers.offline import SymptomTable, normalize_symptom


def test_bundled_table_loads():
    table = SymptomTable.load(DEFAULT_SYMPTOMS_PATH)
    assert len(table) > 10
    record = table.lookup("headache")
    assert record.description
    assert record.causes and record.remedies


def test_keys_normalized_on_load(tmp_path):
    path = tmp_path / "symptoms.json"
    path.write_text(json.dumps({"  Fever ": {"description": "hot", "causes": [], "remedies": []}}))
    table = SymptomTable.load(str(path))
    assert table.lookup("fever").description == "hot"
    assert " FEVER" in table


def test_missing_file_gives_empty_table(tmp_path):
    table = SymptomTable.load(str(tmp_path / "nope.json"))
    assert len(table) == 0
    assert table.lookup("fever") is None


def test_malformed_file_gives_empty_table(tmp_path):
    path = tmp_path / "symptoms.json"
    path.write_text("{ not json")
    assert len(SymptomTable.load(str(path))) == 0


def test_non_object_file_gives_empty_table(tmp_path):
    path = tmp_path / "symptoms.json"
    path.write_text("[1, 2, 3]")
    assert len(SymptomTable.load(str(path))) == 0


def test_invalid_entry_skipped():
    table = SymptomTable.from_mapping({
        "fever": {"description": "hot", "causes": ["flu"], "remedies": ["rest"]},
        "rash": {"causes": "not a list"},
    })
    assert "fever" in table
    assert "rash" not in table


def test_normalize_symptom():
    assert normalize_symptom("  Sore Throat\t") == "sore throat"
    assert normalize_symptom(None) == ""
