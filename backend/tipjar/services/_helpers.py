"""Shared utilities for the service layer."""

import re
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from uuid import uuid4

_WHITESPACE = re.compile(r"\s+")
_NON_SLUG = re.compile(r"[^a-z0-9-]")

# Token amounts are stored as floats; sums are rounded back to USDC precision
AMOUNT_QUANTUM = Decimal("0.000001")


def new_id() -> str:
    return str(uuid4())


def utc_now() -> datetime:
    return datetime.now(UTC)


def now_iso() -> str:
    return utc_now().isoformat(timespec="microseconds")


def parse_iso(raw: str | None) -> datetime | None:
    """Parse a stored ISO timestamp. Naive values are taken as UTC."""
    if not raw:
        return None
    parsed: datetime = datetime.fromisoformat(raw)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def to_decimal(value: object) -> Decimal:
    """Coerce a numeric column or payload value to Decimal via str (no float noise)."""
    if value is None:
        return Decimal(0)
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Not a decimal: {value!r}") from e


def vanity_slug(display_name: str) -> str:
    """'Jane  Doe!' -> 'jane-doe'."""
    return _NON_SLUG.sub("", _WHITESPACE.sub("-", display_name.strip().lower()))


def normalize_tx_hash(tx_hash: str) -> str:
    """EVM hashes are hex; '0xAB..' and '0xab..' name the same transaction."""
    cleaned: str = tx_hash.strip()
    return cleaned.lower() if cleaned[:2].lower() == "0x" else cleaned
