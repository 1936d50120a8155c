"""Tests for CSV export and CSV/JSON import."""
import csv
import io
import json

import pytest

from conftest import make_tx
from rupeeflow.errors import ValidationError
from rupeeflow.models.category import Category
from rupeeflow.models.transaction import TransactionType
from rupeeflow.services.transfer import EXPORT_COLUMNS, export_csv, parse_upload, signed_impact


def test_export_columns_and_signed_impact():
    transactions = [
        make_tx(1200, Category.FREELANCE, TransactionType.INCOME, title="Logo, client A", date="2024-03-02T10:00:00Z"),
        make_tx(850, Category.FOOD, title="Zomato Dinner", date="2024-03-01T19:30:00Z"),
    ]

    rows = list(csv.reader(io.StringIO(export_csv(transactions))))

    assert rows[0] == EXPORT_COLUMNS
    assert rows[1] == ["2024-03-02", "Logo, client A", "income", "Freelance", "1200.00", "+1200.00", ""]
    assert rows[2][5] == "-850.00"
    assert len(rows) == 3


def test_signed_impact():
    assert signed_impact(make_tx(99.5, type=TransactionType.EXPENSE)) == "-99.50"
    assert signed_impact(make_tx(10, Category.SALARY, TransactionType.INCOME)) == "+10.00"


def test_export_reimports():
    """The export format is accepted by the importer."""
    original = [make_tx(850, Category.FOOD, title="Zomato Dinner", date="2024-03-01T19:30:00Z")]

    parsed, skipped = parse_upload("export.csv", export_csv(original).encode("utf-8"))

    assert skipped == 0
    assert parsed[0].title == "Zomato Dinner"
    assert parsed[0].amount == 850
    assert parsed[0].category == Category.FOOD
    assert parsed[0].date.date().isoformat() == "2024-03-01"


def test_parse_csv_skips_invalid_rows():
    content = (
        "title,amount,category,type,date,notes\n"
        "Chai,20,Food & Drinks,expense,2024-03-01,\n"
        "Refund,-5,Others,income,2024-03-02,negative amount\n"
        "Mystery,10,Crypto,expense,2024-03-03,\n"
        "Salary,85000,Salary,income,2024-03-01T09:00:00Z,March\n"
    )

    parsed, skipped = parse_upload("upload.csv", content.encode("utf-8"))

    assert [tx.title for tx in parsed] == ["Chai", "Salary"]
    assert parsed[1].notes == "March"
    assert skipped == 2


def test_parse_json():
    payload = [
        {"title": "Uber", "amount": 240, "category": "Transport", "type": "expense", "date": "2024-03-04T08:00:00Z"},
        {"title": "", "amount": 1, "category": "Others", "type": "expense", "date": "2024-03-04"},
        "not an object",
    ]

    parsed, skipped = parse_upload("upload.json", json.dumps(payload).encode("utf-8"))

    assert [tx.title for tx in parsed] == ["Uber"]
    assert skipped == 2


@pytest.mark.parametrize(
    "filename,content",
    [
        ("notes.txt", b"hello"),
        ("bad.json", b"{not json"),
        ("object.json", b'{"title": "x"}'),
        ("latin.csv", b"title\n\xff\xfe\xfa"),
    ],
)
def test_parse_upload_rejects(filename, content):
    with pytest.raises(ValidationError):
        parse_upload(filename, content)
