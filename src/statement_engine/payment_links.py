"""Payment URLs bound to the logo regions of a statement."""

from dataclasses import dataclass
from decimal import Decimal
from typing import List
from urllib.parse import quote

from .config import EngineConfig
from .models import StatementModel, quantize_money

PAYMENT_PATH = "yebopay-payment"


@dataclass(frozen=True)
class PaymentLink:
    """Resolved payment-provider link for one statement."""
    account_number: str
    account_holder_name: str
    amount: Decimal
    url: str


@dataclass(frozen=True)
class BankLink:
    """Static link from a bank logo to the bank's site."""
    name: str
    asset: str
    url: str
    label: str


def _segment(value: str) -> str:
    return quote(value, safe="")


def build_payment_url(origin: str, account_number: str, holder_name: str, amount: Decimal) -> str:
    """Build ``{origin}/yebopay-payment/{account}/{holder}/{amount}`` with encoded segments."""
    return "/".join([
        origin.rstrip("/"),
        PAYMENT_PATH,
        _segment(account_number),
        _segment(holder_name),
        _segment(f"{quantize_money(amount):.2f}"),
    ])


def resolve_payment_link(model: StatementModel, origin: str) -> PaymentLink:
    amount = model.outstanding_total_balance
    return PaymentLink(
        account_number=model.account_number,
        account_holder_name=model.account_holder_name,
        amount=amount,
        url=build_payment_url(origin, model.account_number, model.account_holder_name, amount),
    )


def bank_links(config: EngineConfig) -> List[BankLink]:
    """Bank logo links; identical for every customer."""
    return [BankLink(logo.name, logo.asset, logo.url, logo.label) for logo in config.bank_logos]
