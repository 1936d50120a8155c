"""Timestamp and month-window parsing utilities."""
import re
from datetime import date, datetime, timezone
from typing import Optional, Tuple

from dateutil import parser

MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


def parse_timestamp(s: str) -> datetime:
    """
    Parse a timestamp string into a timezone-aware datetime.

    Supports multiple formats:
    - ISO format with "Z" suffix: "2024-01-02T09:10:00Z"
    - ISO format with timezone: "2024-01-02T09:10:00+05:30"
    - ISO format without timezone: "2024-01-02T09:10:00"
    - Date only: "2024-01-02"
    - Space-separated: "2024-01-02 09:10:00"

    Naive values are assumed to be UTC.

    Raises:
        ValueError: If timestamp cannot be parsed
    """
    if not s:
        raise ValueError("Empty timestamp string")

    s = s.strip()

    # Convert trailing "Z" to "+00:00" for ISO format compatibility
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        try:
            dt = parser.isoparse(s)
        except (ValueError, OverflowError):
            raise ValueError(
                f"Unable to parse timestamp: {s}. Expected ISO format "
                "(e.g., '2024-01-02T09:10:00Z' or '2024-01-02')"
            )

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def parse_month(value: Optional[str], today: Optional[date] = None) -> Tuple[int, int]:
    """
    Parse a "YYYY-MM" window into (year, month).

    None falls back to the month of ``today`` (default: current UTC date).
    """
    if not value:
        today = today or datetime.now(timezone.utc).date()
        return today.year, today.month
    match = _MONTH_RE.match(value.strip())
    if not match:
        raise ValueError(f"Invalid month: {value}. Expected YYYY-MM")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {value}. Expected YYYY-MM")
    return year, month


def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    """Move a (year, month) pair by ``delta`` calendar months."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1
