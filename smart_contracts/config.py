"""
Network table and deploy parameters, read from the environment.

Values come from process environment variables, optionally loaded from a
``.env`` file at the project root.
"""
import os
from pathlib import Path
from typing import NamedTuple

from dotenv import load_dotenv

load_dotenv(Path(__file__).parent.parent / ".env")

# network name → (algod server, algod token)
NETWORKS = {
    "localnet": ("http://localhost:4001", "a" * 64),
    "testnet":  ("https://testnet-api.algonode.cloud", ""),
    "mainnet":  ("https://mainnet-api.algonode.cloud", ""),
}

DEFAULT_NETWORK = "localnet"
ZERO_ADDRESS = "AAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAY5HFKQ"

# 1 ALGO minimum registration donation, 0.5 ALGO per satellite image
DEFAULT_DONATION = 1_000_000
DEFAULT_PRICE    = 500_000


class DeployParameters(NamedTuple):
    relay: str
    donation: int
    price: int
    write_once_monitoring: bool


def current_network() -> str:
    network = os.getenv("ALGOD_NETWORK", DEFAULT_NETWORK).strip().lower()
    if network not in NETWORKS:
        raise ValueError(f"Unknown network {network!r}; expected one of {sorted(NETWORKS)}")
    return network


def algod_endpoint(network: str) -> tuple[str, str]:
    """Return ``(server, token)`` for ``network``; ALGOD_SERVER / ALGOD_TOKEN win."""
    if network not in NETWORKS:
        raise ValueError(f"Unknown network {network!r}; expected one of {sorted(NETWORKS)}")
    server, token = NETWORKS[network]
    return os.getenv("ALGOD_SERVER", server), os.getenv("ALGOD_TOKEN", token)


def _positive_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer number of microAlgos, got {raw!r}") from e
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def deploy_parameters() -> DeployParameters:
    flag = os.getenv("BIORBIT_WRITE_ONCE_MONITORING", "true").strip().lower()
    return DeployParameters(
        relay=os.getenv("BIORBIT_RELAY", "").strip() or ZERO_ADDRESS,
        donation=_positive_int("BIORBIT_DONATION", DEFAULT_DONATION),
        price=_positive_int("BIORBIT_PRICE", DEFAULT_PRICE),
        write_once_monitoring=flag in ("1", "true", "yes"),
    )
