"""CSV export and CSV/JSON import of transactions."""
import csv
import io
import json
import logging
from typing import Iterable, List, Tuple
from pydantic import ValidationError as PydanticValidationError
from rupeeflow.errors import ValidationError
from rupeeflow.models.transaction import Transaction, TransactionCreate, TransactionType

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = ["Date", "Description", "Type", "Category", "Amount", "Impact", "Notes"]


def signed_impact(tx: Transaction) -> str:
    """Amount with its direction: +1200.00 for income, -850.00 for expense."""
    sign = "+" if tx.type == TransactionType.INCOME else "-"
    return f"{sign}{tx.amount:.2f}"


def export_csv(transactions: Iterable[Transaction]) -> str:
    """
    Render transactions as CSV text.

    Columns: Date, Description, Type, Category, Amount, Impact, Notes.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(EXPORT_COLUMNS)
    for tx in transactions:
        writer.writerow([
            tx.date.date().isoformat(),
            tx.title,
            tx.type.value,
            tx.category.value,
            f"{tx.amount:.2f}",
            signed_impact(tx),
            tx.notes or "",
        ])
    return buffer.getvalue()


def _row_to_create(item: dict) -> TransactionCreate:
    # Accept both our own export headers and lowercase field names
    def pick(*keys):
        for key in keys:
            value = item.get(key)
            if value not in (None, ""):
                return value
        return None

    return TransactionCreate(
        title=pick("title", "Description", "description"),
        amount=float(pick("amount", "Amount")),
        category=pick("category", "Category"),
        type=pick("type", "Type"),
        date=pick("date", "Date"),
        notes=pick("notes", "Notes"),
    )


def parse_upload(filename: str, content: bytes) -> Tuple[List[TransactionCreate], int]:
    """
    Parse an uploaded CSV or JSON file.

    Returns:
        (valid transactions, number of skipped rows)

    Raises:
        ValidationError: unsupported file type or undecodable content
    """
    try:
        text_content = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ValidationError("File must be UTF-8 encoded")

    if filename.endswith(".csv"):
        rows = list(csv.DictReader(text_content.splitlines()))
    elif filename.endswith(".json"):
        try:
            rows = json.loads(text_content)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid JSON: {e.msg}")
        if not isinstance(rows, list):
            raise ValidationError("JSON upload must be a list of transactions")
    else:
        raise ValidationError("File must be CSV or JSON")

    transactions = []
    skipped = 0
    for index, row in enumerate(rows):
        try:
            transactions.append(_row_to_create(row))
        except (PydanticValidationError, TypeError, ValueError, AttributeError) as e:
            skipped += 1
            logger.warning("Skipping invalid row", extra={"row": index, "error": str(e)})
    return transactions, skipped
