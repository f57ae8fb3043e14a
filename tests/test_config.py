import pytest

from smart_contracts import config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "ALGOD_NETWORK",
        "ALGOD_SERVER",
        "ALGOD_TOKEN",
        "BIORBIT_RELAY",
        "BIORBIT_DONATION",
        "BIORBIT_PRICE",
        "BIORBIT_WRITE_ONCE_MONITORING",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    params = config.deploy_parameters()

    assert params == config.DeployParameters(
        relay=config.ZERO_ADDRESS,
        donation=config.DEFAULT_DONATION,
        price=config.DEFAULT_PRICE,
        write_once_monitoring=True,
    )
    assert config.current_network() == "localnet"


def test_deploy_parameters_from_env(monkeypatch):
    monkeypatch.setenv("BIORBIT_RELAY", "RELAYADDRESS")
    monkeypatch.setenv("BIORBIT_DONATION", "2000000")
    monkeypatch.setenv("BIORBIT_PRICE", "750000")
    monkeypatch.setenv("BIORBIT_WRITE_ONCE_MONITORING", "false")

    params = config.deploy_parameters()

    assert params.relay == "RELAYADDRESS"
    assert params.donation == 2_000_000
    assert params.price == 750_000
    assert params.write_once_monitoring is False


@pytest.mark.parametrize("raw", ["0", "-5", "one"])
def test_invalid_amounts(monkeypatch, raw):
    monkeypatch.setenv("BIORBIT_PRICE", raw)

    with pytest.raises(ValueError, match="BIORBIT_PRICE"):
        config.deploy_parameters()


def test_algod_endpoint_override(monkeypatch):
    assert config.algod_endpoint("testnet") == ("https://testnet-api.algonode.cloud", "")

    monkeypatch.setenv("ALGOD_SERVER", "http://node:8080")
    monkeypatch.setenv("ALGOD_TOKEN", "secret")
    assert config.algod_endpoint("testnet") == ("http://node:8080", "secret")


def test_unknown_network(monkeypatch):
    monkeypatch.setenv("ALGOD_NETWORK", "betanet")

    with pytest.raises(ValueError, match="Unknown network"):
        config.current_network()
