"""Document store access and the four statement source readers."""

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple
import yaml

from .errors import (
    CustomerNotFoundError, SourceError, SourceNotFoundError, SourcePermissionError
)
from .models import Period

log = logging.getLogger(__name__)

# Collection names as laid out by the portal's upload services
CUSTOMERS = "customers"
AGED_ANALYSIS = "detailed_aged_analysis"
METER_READINGS = "meterReadings"
LEVIED = "detailed_levied"

Record = Mapping[str, Any]


class DocumentStore:
    """Keyed document reader.

    ``get`` returns the stored record or raises ``SourceNotFoundError`` /
    ``SourcePermissionError``.
    """

    async def get(self, collection: str, key: str) -> Any:
        raise NotImplementedError


class InMemoryDocumentStore(DocumentStore):
    """Dict-backed document store, loadable from a YAML data file."""

    def __init__(
        self,
        collections: Optional[Dict[str, Dict[str, Any]]] = None,
        denied: Iterable[str] = (),
    ):
        self.collections: Dict[str, Dict[str, Any]] = {
            name: {str(k): v for k, v in (records or {}).items()}
            for name, records in (collections or {}).items()
        }
        self.denied = set(denied)
        self.reads: List[Tuple[str, str]] = []

    async def get(self, collection: str, key: str) -> Any:
        self.reads.append((collection, key))
        if collection in self.denied:
            raise SourcePermissionError(collection, key, "Missing or insufficient permissions")
        records = self.collections.get(collection, {})
        if key not in records:
            raise SourceNotFoundError(collection, key)
        return records[key]

    def put(self, collection: str, key: str, record: Any) -> None:
        self.collections.setdefault(collection, {})[str(key)] = record

    @classmethod
    def from_yaml(cls, path: Path) -> "InMemoryDocumentStore":
        """Load a store from a YAML file with a top-level ``collections`` mapping."""
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        return cls(collections=data.get("collections", {}))

    def to_yaml(self, path: Path) -> None:
        with open(path, "w") as f:
            yaml.safe_dump({"collections": self.collections}, f,
                           default_flow_style=False, sort_keys=True)


@dataclass
class SourceRecords:
    """Raw reads for one account and period, after per-source fallback."""
    account: Record
    aged_analysis: Optional[Record] = None
    meter_readings: List[Record] = field(default_factory=list)
    levied_lines: List[Record] = field(default_factory=list)
    degraded: List[str] = field(default_factory=list)


def _as_record_list(document: Any, list_key: str) -> List[Record]:
    """Normalize a stored document into a list of records."""
    if document is None:
        return []
    if isinstance(document, list):
        return [r for r in document if isinstance(r, Mapping)]
    if isinstance(document, Mapping):
        nested = document.get(list_key)
        if isinstance(nested, list):
            return [r for r in nested if isinstance(r, Mapping)]
        return [document]
    return []


async def _read_optional(store: DocumentStore, source: str, collection: str, key: str) -> Any:
    """Read a degradable source, returning None on a missing or forbidden record."""
    try:
        return await store.get(collection, key)
    except SourceNotFoundError:
        log.warning("No %s record for account %s in %s", source, key, collection)
    except SourcePermissionError:
        log.warning("Permission denied reading %s for account %s in %s", source, key, collection)
    return None


async def read_account_master(store: DocumentStore, account_number: str, period: Period) -> Record:
    """Read the customer record; this is the only mandatory source."""
    try:
        record = await store.get(CUSTOMERS, account_number)
    except SourceError as exc:
        log.error("Account master read failed for %s: %s", account_number, exc)
        raise CustomerNotFoundError(account_number) from exc
    if not isinstance(record, Mapping):
        raise CustomerNotFoundError(account_number)
    return record


async def read_aged_analysis(
    store: DocumentStore, account_number: str, period: Period
) -> Optional[Record]:
    document = await _read_optional(
        store, "aged analysis", period.collection(AGED_ANALYSIS), account_number
    )
    return document if isinstance(document, Mapping) else None


async def read_meter_readings(
    store: DocumentStore, account_number: str, period: Period
) -> List[Record]:
    document = await _read_optional(
        store, "meter reading", period.collection(METER_READINGS), account_number
    )
    return _as_record_list(document, "readings")


async def read_levied_lines(
    store: DocumentStore, account_number: str, period: Period
) -> List[Record]:
    document = await _read_optional(
        store, "levied lines", period.collection(LEVIED), account_number
    )
    return _as_record_list(document, "records")


async def fetch_sources(store: DocumentStore, account_number: str, period: Period) -> SourceRecords:
    """Read all four sources for an account and period.

    The account master is awaited first so a missing customer aborts before
    any other read is issued. The remaining three reads run concurrently and
    each falls back to an empty value independently.
    """
    account = await read_account_master(store, account_number, period)

    aged, meters, levies = await asyncio.gather(
        read_aged_analysis(store, account_number, period),
        read_meter_readings(store, account_number, period),
        read_levied_lines(store, account_number, period),
    )

    degraded = [
        name for name, missing in (
            ("aged_analysis", aged is None),
            ("meter_readings", not meters),
            ("levied_lines", not levies),
        )
        if missing
    ]
    if degraded:
        log.info("Account %s period %s using defaults for: %s",
                 account_number, period, ", ".join(degraded))

    return SourceRecords(
        account=account,
        aged_analysis=aged,
        meter_readings=meters,
        levied_lines=levies,
        degraded=degraded,
    )
