"""Parsing helpers for loose source rows."""

import logging
import re
from datetime import datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

logger = logging.getLogger(__name__)

DATE_FORMATS = ("%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S", "%Y-%m-%d", "%Y/%m/%d", "%d/%m/%Y")
TIME_FORMATS = ("%H:%M:%S", "%H:%M")
# Currency symbols, spaces and other non-numeric decoration around amounts
_MONEY_NOISE = re.compile(r"[^\d,.\-]")


def first_value(data: dict[str, Any], *keys: str) -> Any:
    """First non-empty value among alias keys, or None."""
    for key in keys:
        value = data.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def first_text(data: dict[str, Any], *keys: str) -> Optional[str]:
    value = first_value(data, *keys)
    return str(value).strip() if value is not None else None


def parse_date(value: Any) -> Optional[datetime]:
    """Parse ISO timestamps (with offset or 'Z') and the date formats seen in exports."""
    if isinstance(value, datetime):
        return value
    if not value or not str(value).strip():
        return None
    text = str(value).strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        pass
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text[:19], fmt)
        except ValueError:
            continue
    return None


def parse_time(value: Any) -> Optional[time]:
    if not value or not str(value).strip():
        return None
    for fmt in TIME_FORMATS:
        try:
            return datetime.strptime(str(value).strip()[:8], fmt).time()
        except ValueError:
            continue
    return None


def parse_money(value: Any, record_id: str = "?") -> Decimal:
    """
    Parse an amount into Decimal. Accepts numbers, "1234.5", "R$ 1.234,56" and
    "1,234.56". Unparseable or negative amounts become 0 with a warning.
    """
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, bool):
        logger.warning("Ignoring boolean amount %r on record %s", value, record_id)
        return Decimal("0")
    if isinstance(value, (int, float, Decimal)):
        text = str(value)
    else:
        text = _MONEY_NOISE.sub("", str(value))
        if "," in text and "." in text:
            # The separator appearing last is the decimal one
            if text.rfind(",") > text.rfind("."):
                text = text.replace(".", "").replace(",", ".")
            else:
                text = text.replace(",", "")
        elif "," in text:
            text = text.replace(",", ".")
    try:
        amount = Decimal(text)
    except InvalidOperation:
        logger.warning("Unparseable amount %r on record %s; using 0", value, record_id)
        return Decimal("0")
    if not amount.is_finite() or amount < 0:
        logger.warning("Invalid amount %r on record %s; using 0", value, record_id)
        return Decimal("0")
    return amount
