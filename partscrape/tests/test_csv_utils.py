"""Tests for per-category CSV/JSON output."""

import csv
import json

import pytest

from partscrape.csv_utils import count_records, record_to_row, save_category
from partscrape.models import BASE_FIELDS, CategoryResult, ProductRecord


@pytest.fixture
def result(cpus):
    return CategoryResult(category=cpus, records=[
        ProductRecord(name="A", price="10.00", fields={"socket": "AM5", "cores": 6}),
        ProductRecord(name="B", user_rating_count=3, user_rating_avg=4.0,
                      fields={"socket": "AM4", "sockets": ["AM4", "AM5"], "ecc": True}),
    ])


def test_fieldnames_are_base_columns_then_first_seen_union(result):
    assert result.fieldnames() == list(BASE_FIELDS) + ["socket", "cores", "sockets", "ecc"]


def test_record_to_row_fills_missing_fields(result):
    fieldnames = result.fieldnames()
    row = record_to_row(result.records[0], fieldnames)
    assert row["sockets"] == ""
    assert row["ecc"] == ""
    assert row["cores"] == 6

    raw = record_to_row(result.records[0], fieldnames, for_csv=False)
    assert raw["sockets"] is None


def test_spec_field_never_shadows_base_column():
    record = ProductRecord(name="A", price="5.00", fields={"price": "999", "name": "other"})
    assert record.to_dict()["price"] == "5.00"
    assert record.to_dict()["name"] == "A"


def test_records_are_immutable():
    record = ProductRecord(name="A", fields={"socket": "AM5"})
    with pytest.raises(TypeError):
        record.fields["socket"] = "AM4"


def test_save_csv(tmp_path, result):
    path = save_category(result, tmp_path, "csv")

    assert path == tmp_path / "cpus.csv"
    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        rows = list(reader)
    assert reader.fieldnames == result.fieldnames()
    assert rows[1]["sockets"] == '["AM4", "AM5"]'
    assert rows[1]["ecc"] == "true"
    assert rows[1]["user_rating_avg"] == "4.0"
    assert rows[0]["ecc"] == ""


def test_save_json(tmp_path, result):
    path = save_category(result, tmp_path, "json")

    data = json.loads(path.read_text(encoding="utf-8"))
    assert len(data) == 2
    assert set(data[0]) == set(result.fieldnames())
    assert data[0]["sockets"] is None
    assert data[1]["sockets"] == ["AM4", "AM5"]
    assert data[1]["ecc"] is True


def test_empty_category_still_written(tmp_path, cpus):
    path = save_category(CategoryResult(category=cpus), tmp_path, "csv")
    with open(path, newline="", encoding="utf-8") as f:
        assert next(csv.reader(f)) == list(BASE_FIELDS)


def test_unknown_format(tmp_path, result):
    with pytest.raises(ValueError):
        save_category(result, tmp_path, "xlsx")


def test_count_records(tmp_path, result):
    save_category(result, tmp_path, "csv")
    (tmp_path / "memory.json").write_text(json.dumps([{"name": "x"}] * 3), encoding="utf-8")
    (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
    (tmp_path / "object.json").write_text("{}", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")

    assert count_records(tmp_path) == {"cpus.csv": 2, "memory.json": 3}
