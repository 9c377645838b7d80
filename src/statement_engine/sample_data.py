"""Synthetic municipal billing data for demos and local testing."""

from typing import Any, Dict, List, Optional
import numpy as np
from faker import Faker

from .models import Period
from .sources import AGED_ANALYSIS, CUSTOMERS, LEVIED, METER_READINGS, InMemoryDocumentStore

# (code, description, tariff, base amount) per service
LEVY_CATALOGUE = [
    ("RAT", "PROPERTY RATES", "RESIDENTIAL RATE", 420.00),
    ("REF", "REFUSE REMOVAL", "REFUSE DOMESTIC", 185.50),
    ("SEW", "SEWERAGE", "SEWER BASIC", 210.00),
    ("WAT", "WATER CONSUMPTION", "WATER STEPPED", 0.0),
    ("ELE", "ELECTRICITY BASIC", "ELEC BASIC CHARGE", 145.75),
    ("INT", "INTEREST ON ARREARS", "INTEREST", 0.0),
]

METER_TYPES = ["WATER", "ELECTRICITY"]
TOWNS = ["Zastron", "Rouxville", "Smithfield"]

# Export column names for the aged-analysis upload, youngest first after current
AGED_COLUMNS = [
    "UP TO 30 DAY FACTOR",
    "60 DAY FACTOR",
    "90 DAY FACTOR",
    "120 DAY FACTOR",
    "150 DAY FACTOR",
    "180 DAY FACTOR",
]


def _money(value: float) -> float:
    return round(float(value), 2)


def generate_customer(account_number: str, fake: Faker, rng: np.random.Generator) -> Dict[str, Any]:
    """Generate one account-master record."""
    town = str(rng.choice(TOWNS))
    return {
        "accountNumber": account_number,
        "accountHolderName": fake.name().upper(),
        "erfNumber": f"{int(rng.integers(100, 9999))}",
        "vatRegNumber": "" if rng.random() < 0.8 else f"4{int(rng.integers(100000000, 999999999))}",
        "streetAddress": f"{int(rng.integers(1, 400))} {fake.street_name()}".upper(),
        "postalAddress1": f"PO BOX {int(rng.integers(1, 999))}",
        "postalAddress2": town.upper(),
        "postalAddress3": "",
        "postalCode": f"{int(rng.integers(9700, 9999))}",
        "propertyCategory": str(rng.choice(["RESIDENTIAL", "BUSINESS", "GOVERNMENT"])),
        "town": town.upper(),
        "valuation": _money(rng.uniform(60000, 1500000)),
        "outstandingBalance": 0.0,
        "outstandingTotalBalance": 0.0,
    }


def generate_aged_record(period: Period, rng: np.random.Generator) -> Dict[str, Any]:
    """Generate an aged-analysis row in the billing export's column naming."""
    current = _money(rng.uniform(300, 2500))
    record: Dict[str, Any] = {period.field_key: current}

    # Older bands are progressively less likely to carry arrears
    total = current
    for idx, column in enumerate(AGED_COLUMNS):
        if rng.random() < 0.6 / (idx + 1):
            amount = _money(rng.uniform(50, 1500))
        else:
            amount = 0.0
        record[column] = amount
        total += amount

    record["TOTAL"] = _money(total)
    return record


def generate_meter_readings(rng: np.random.Generator) -> List[Dict[str, Any]]:
    readings = []
    for meter_type in METER_TYPES:
        if rng.random() < 0.25:
            continue
        prev_read = _money(rng.uniform(1000, 90000))
        consumption = _money(rng.uniform(5, 60) if meter_type == "WATER" else rng.uniform(150, 900))
        readings.append({
            "MeterNumber": f"{meter_type[0]}{int(rng.integers(100000, 999999))}",
            "MeterType": meter_type,
            "PrevRead": prev_read,
            "CurrRead": _money(prev_read + consumption),
            "Consumption": consumption,
            "TotLevied": _money(consumption * (18.45 if meter_type == "WATER" else 2.87)),
        })
    return readings


def generate_levied_lines(period: Period, rng: np.random.Generator) -> List[Dict[str, Any]]:
    """Generate levy records keyed by the period's M{YYYYMM} value column."""
    value_column = f"M{period.field_key}"
    records = []
    for code, description, tariff, base in LEVY_CATALOGUE:
        if code in ("INT", "ELE") and rng.random() < 0.5:
            continue
        amount = base if base else float(rng.uniform(40, 600))
        records.append({
            "TARIFF_CODE": code,
            "TOS_DESC": description,
            "TARIFF_DESC": tariff,
            "UNITS": "1",
            value_column: _money(amount * float(rng.uniform(0.95, 1.05))),
        })
    return records


def generate_store(
    period: Period,
    num_accounts: int = 5,
    seed: Optional[int] = 42,
    first_account: int = 1002345,
) -> InMemoryDocumentStore:
    """
    Build a document store holding all four sources for a run of accounts.

    Every generated account has a master record; the period-scoped sources
    are occasionally left out so the degraded rendering paths get exercised.
    """
    rng = np.random.default_rng(seed)
    fake = Faker()
    fake.seed_instance(int(rng.integers(0, 2**31)))

    store = InMemoryDocumentStore()
    for idx in range(num_accounts):
        account_number = str(first_account + idx)
        customer = generate_customer(account_number, fake, rng)

        aged = generate_aged_record(period, rng)
        customer["outstandingTotalBalance"] = aged["TOTAL"]
        customer["outstandingBalance"] = _money(aged["TOTAL"] - aged[period.field_key])
        store.put(CUSTOMERS, account_number, customer)
        store.put(period.collection(AGED_ANALYSIS), account_number, aged)

        readings = generate_meter_readings(rng)
        if readings:
            store.put(period.collection(METER_READINGS), account_number, {"readings": readings})

        if rng.random() < 0.9:
            store.put(period.collection(LEVIED), account_number,
                      {"records": generate_levied_lines(period, rng)})

    return store
