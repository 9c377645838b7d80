"""Configuration dataclasses and YAML loading for the statement engine."""

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import List, Optional
import yaml

from .models import BankingDetails


@dataclass
class BankLogo:
    """A bank logo on the payment strip, linked to the bank's own site."""
    name: str
    asset: str
    url: str
    label: str


@dataclass
class BankingConfig:
    """Municipal bank account printed in the banking details block."""
    bank_name: str = "ABSA"
    account_name: str = "Mohokare Local Municipality"
    account_number: str = "4052654487"
    branch_code: str = "250655"

    def for_account(self, account_number: str) -> BankingDetails:
        """Banking details with the customer's account number as payment reference."""
        return BankingDetails(
            bank_name=self.bank_name,
            account_name=self.account_name,
            account_number=self.account_number,
            branch_code=self.branch_code,
            reference=account_number,
        )


def _default_bank_logos() -> List[BankLogo]:
    return [
        BankLogo("absa", "absa-logo.png", "https://www.absa.co.za/personal/", "ABSA"),
        BankLogo("fnb", "fnb-logo.png", "https://www.fnb.co.za/", "FNB"),
        BankLogo("nedbank", "nedbank-logo.png", "https://personal.nedbank.co.za/home.html", "NEDBANK"),
        BankLogo("standardbank", "standardbank-logo.png",
                 "https://www.standardbank.co.za/southafrica/personal", "STANDARD"),
        BankLogo("capitec", "capitec-logo.png", "https://www.capitecbank.co.za/", "CAPITEC"),
        BankLogo("africanbank", "africanbank-logo.png", "https://ib.africanbank.co.za/", "AFRICAN"),
        BankLogo("postoffice", "postoffice-logo.png", "https://www.postoffice.co.za/", "POST"),
    ]


@dataclass
class EngineConfig:
    """Main configuration for statement generation."""

    municipality_name: str = "MOHOKARE LOCAL MUNICIPALITY"
    municipality_short_name: str = "MOHOKARE"
    contact_lines: List[str] = field(default_factory=lambda: [
        "1 Hoofd Street, Zastron 9950",
        "Tel: (051) 673 9600",
        "Fax: (051) 673 1550",
        "Vat No.: 4000846412",
    ])
    document_title: str = "TAX INVOICE/ STATEMENT OF ACCOUNT"

    # Page geometry in millimetres (A4 portrait)
    margin_top_mm: float = 12.0
    margin_bottom_mm: float = 16.0
    margin_left_mm: float = 12.0
    margin_right_mm: float = 12.0
    frame_inset_mm: float = 6.0
    section_gap_mm: float = 2.0

    # Base URL of the consumer portal hosting the payment page
    payment_origin: str = "https://consumerportal.co.za"
    payment_provider_name: str = "YeboPay"
    payment_logo_asset: str = "yebopay-logo.png"
    municipal_logo_asset: str = "mohokare-logo.png"
    asset_dir: Optional[Path] = None

    banking: BankingConfig = field(default_factory=BankingConfig)
    bank_logos: List[BankLogo] = field(default_factory=_default_bank_logos)

    bank_logo_caption: str = (
        "Click on the LOGO below to go to the banking page and settle your account"
    )
    payment_logo_caption: str = (
        "Alternatively, you can click on the YeboPay LOGO to manage your account "
        "and make payment arrangement"
    )
    disclaimer_lines: List[str] = field(default_factory=lambda: [
        "Mohokare Municipality has gone digital, and you can now access your municipal "
        "statement, submit your meter reading online, and lodge",
        "complaints anytime, any day, 24/7. To find out more, click on the link ",
    ])
    disclaimer_link_text: str = " www.consumerportal.co.za "
    disclaimer_link_url: str = "https://consumerportal.co.za"
    disclaimer_suffix: str = " to register and access your statement."

    @classmethod
    def from_yaml(cls, path: Path) -> "EngineConfig":
        """Load configuration from a YAML file."""
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        if "asset_dir" in data and data["asset_dir"] is not None:
            data["asset_dir"] = Path(data["asset_dir"])

        if "banking" in data:
            data["banking"] = BankingConfig(**data["banking"])

        if "bank_logos" in data:
            data["bank_logos"] = [BankLogo(**logo) for logo in data["bank_logos"]]

        return cls(**data)

    def to_yaml(self, path: Path) -> None:
        """Save configuration to a YAML file."""
        data = asdict(self)
        data["asset_dir"] = str(self.asset_dir) if self.asset_dir is not None else None
        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)


def load_config(path: Optional[Path] = None) -> EngineConfig:
    """Load config from path or return default config."""
    if path is None:
        return EngineConfig()
    return EngineConfig.from_yaml(path)
