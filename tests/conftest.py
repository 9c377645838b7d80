import base64

import pytest

from statement_engine.assets import InMemoryAssetProvider
from statement_engine.config import EngineConfig
from statement_engine.models import Period
from statement_engine.sources import (
    AGED_ANALYSIS, CUSTOMERS, LEVIED, METER_READINGS, InMemoryDocumentStore
)

ACCOUNT = "1002345"

# 1x1 RGBA PNG
PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


def customer_record(**overrides):
    record = {
        "accountNumber": ACCOUNT,
        "accountHolderName": "T MOKOENA",
        "erfNumber": "1187",
        "vatRegNumber": "",
        "streetAddress": "14 VOORTREKKER STREET",
        "postalAddress1": "PO BOX 112",
        "postalAddress2": "ZASTRON",
        "postalAddress3": "",
        "postalCode": "9950",
        "propertyCategory": "RESIDENTIAL",
        "town": "ZASTRON",
        "valuation": "R 350,000.00",
        "outstandingBalance": 75,
        "outstandingTotalBalance": 175,
    }
    record.update(overrides)
    return record


@pytest.fixture
def period():
    return Period(year="2024", month="10")


@pytest.fixture
def store(period):
    """Store holding all four sources for the reference account."""
    return InMemoryDocumentStore({
        CUSTOMERS: {ACCOUNT: customer_record()},
        period.collection(AGED_ANALYSIS): {
            ACCOUNT: {
                "current": 100, "days30": 0, "days60": 0, "days90": 0,
                "days120": 50, "days150": 25,
            },
        },
        period.collection(METER_READINGS): {
            ACCOUNT: {"readings": [{
                "MeterNumber": "W123456",
                "MeterType": "WATER",
                "PrevRead": 1200,
                "CurrRead": 1234.5,
                "Consumption": 34.5,
                "TotLevied": 636.53,
            }]},
        },
        period.collection(LEVIED): {
            ACCOUNT: {"records": [
                {"TARIFF_CODE": "RAT", "TOS_DESC": "PROPERTY RATES",
                 "TARIFF_DESC": "RESIDENTIAL RATE", "M202410": 420},
                {"TARIFF_CODE": "REF", "TOS_DESC": "REFUSE REMOVAL",
                 "TARIFF_DESC": "REFUSE DOMESTIC", "UNITS": "1", "M202410": "185.5"},
            ]},
        },
    })


@pytest.fixture
def master_only_store():
    return InMemoryDocumentStore({CUSTOMERS: {ACCOUNT: customer_record()}})


@pytest.fixture
def config():
    return EngineConfig()


@pytest.fixture
def logo_assets(config):
    """Every configured logo backed by a valid image."""
    names = [config.municipal_logo_asset, config.payment_logo_asset]
    names += [logo.asset for logo in config.bank_logos]
    return InMemoryAssetProvider({name: PNG_BYTES for name in names})


@pytest.fixture
def no_assets():
    return InMemoryAssetProvider()
