"""Aged-balance bucketing: raw aged-analysis records to statement aging columns.

Raw aged-analysis uploads carry one column per age band, named either in the
portal's canonical form (``current``, ``days30`` ... ``days390Plus``) or in the
billing system's export form (``UP TO 30 DAY FACTOR``, ``120 DAY FACTOR``,
``390+ DAYS``). The current-month balance may also arrive in a column named
after the period itself (``202410``).

Bands of 120 days and older are consolidated into a single ``days120_plus``
value; younger bands pass through unchanged.
"""

import logging
import re
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .models import AgingBuckets, Period, ZERO, quantize_money, to_decimal

log = logging.getLogger(__name__)

CURRENT = 0
ROLLUP_THRESHOLD = 120

# Word-form names used by the portal's aging service
NAMED_BUCKETS: Dict[str, int] = {
    "current": CURRENT,
    "agingcurrent": CURRENT,
    "thirtydays": 30,
    "sixtydays": 60,
    "ninetydays": 90,
    "hundredtwentyplusdays": 120,
}

_EXPORT_RE = re.compile(r"^(?:up\s*to\s*)?(\d{2,3})\s*\+?\s*days?(?:\s*factor)?$")
_CANONICAL_RE = re.compile(r"^(?:aging_?)?days?_?(\d{2,3})(?:_?plus|\+)?(?:_?days)?$")

_TOTAL_KEYS = ("TOTAL", "total", "closingBalance", "closing_balance", "CLOSING_BALANCE")


def bucket_threshold(key: str, period: Period) -> Optional[int]:
    """Return the day threshold a raw column belongs to, or None if it is not a bucket."""
    if key == period.field_key:
        return CURRENT

    normalized = key.strip().lower()
    if normalized in NAMED_BUCKETS:
        return NAMED_BUCKETS[normalized]

    compact = normalized.replace(" ", "")
    if compact in NAMED_BUCKETS:
        return NAMED_BUCKETS[compact]

    match = _EXPORT_RE.match(normalized) or _CANONICAL_RE.match(compact)
    if not match:
        return None

    days = int(match.group(1))
    if days in (30, 60, 90) or days >= ROLLUP_THRESHOLD:
        return days
    log.warning("Ignoring aged-analysis column %r with unsupported threshold", key)
    return None


def iter_aged_records(raw: Optional[Mapping[str, Any]]) -> Iterable[Mapping[str, Any]]:
    """Yield the individual aged records held in a stored document.

    A document is either a single record or ``{"records": [...]}`` when an
    account had several rows in the upload.
    """
    if not raw:
        return []
    records = raw.get("records")
    if isinstance(records, list):
        return [r for r in records if isinstance(r, Mapping)]
    return [raw]


def _record_buckets(record: Mapping[str, Any], period: Period) -> Dict[int, Decimal]:
    buckets: Dict[int, Decimal] = {}
    period_current: Optional[Decimal] = None

    for key, value in record.items():
        if not isinstance(key, str):
            continue
        if key == period.field_key:
            period_current = to_decimal(value)
            continue
        threshold = bucket_threshold(key, period)
        if threshold is None:
            continue
        buckets[threshold] = buckets.get(threshold, ZERO) + to_decimal(value)

    # An explicit current column wins over the period-named one
    if CURRENT not in buckets and period_current is not None:
        buckets[CURRENT] = period_current

    return buckets


def calculate_aging(raw: Optional[Mapping[str, Any]], period: Period) -> AgingBuckets:
    """Derive statement aging buckets from a raw aged-analysis document."""
    totals: Dict[int, Decimal] = {}
    for record in iter_aged_records(raw):
        for threshold, amount in _record_buckets(record, period).items():
            totals[threshold] = totals.get(threshold, ZERO) + amount

    rollup = sum(
        (amount for threshold, amount in totals.items() if threshold >= ROLLUP_THRESHOLD),
        ZERO,
    )

    buckets = AgingBuckets(
        current=quantize_money(totals.get(CURRENT, ZERO)),
        days30=quantize_money(totals.get(30, ZERO)),
        days60=quantize_money(totals.get(60, ZERO)),
        days90=quantize_money(totals.get(90, ZERO)),
        days120_plus=quantize_money(rollup),
    )

    negatives: List[str] = [
        name for name, value in (
            ("current", buckets.current),
            ("30 days", buckets.days30),
            ("60 days", buckets.days60),
            ("90 days", buckets.days90),
            ("120+ days", buckets.days120_plus),
        )
        if value < 0
    ]
    if negatives:
        log.warning("Negative aging buckets for period %s: %s", period, ", ".join(negatives))

    return buckets


def reported_total(raw: Optional[Mapping[str, Any]]) -> Optional[Decimal]:
    """Closing balance as stated by the upload itself, if any record carries one."""
    found = False
    total = ZERO
    for record in iter_aged_records(raw):
        for key in _TOTAL_KEYS:
            if key in record:
                total += to_decimal(record[key])
                found = True
                break
    return quantize_money(total) if found else None
