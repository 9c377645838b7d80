from pathlib import Path

from statement_engine.config import BankLogo, EngineConfig, load_config


def test_defaults():
    config = load_config()
    assert config.municipality_name == "MOHOKARE LOCAL MUNICIPALITY"
    assert config.banking.branch_code == "250655"
    assert len(config.bank_logos) == 7


def test_yaml_round_trip(tmp_path):
    config = EngineConfig(
        payment_origin="https://portal.example",
        asset_dir=Path("assets"),
        bank_logos=[BankLogo("absa", "absa.png", "https://www.absa.co.za/", "ABSA")],
    )
    config.banking.account_number = "123"

    path = tmp_path / "config.yaml"
    config.to_yaml(path)
    loaded = load_config(path)

    assert loaded == config
    assert isinstance(loaded.asset_dir, Path)


def test_partial_yaml_keeps_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("municipality_name: TEST MUNICIPALITY\nbanking:\n  bank_name: FNB\n")

    config = load_config(path)
    assert config.municipality_name == "TEST MUNICIPALITY"
    assert config.banking.bank_name == "FNB"
    assert config.banking.branch_code == "250655"
    assert config.payment_origin == "https://consumerportal.co.za"
