"""
Build and deploy Biorbit.

Usage:
    python -m smart_contracts build
    ALGOD_NETWORK=testnet DEPLOYER_MNEMONIC="word1 word2 ..." python -m smart_contracts deploy
"""
import argparse
import logging
import os
import subprocess
import sys
from pathlib import Path

from algokit_utils import AlgorandClient
from algosdk.v2client.algod import AlgodClient

from smart_contracts import config

logger = logging.getLogger(__name__)

ROOT = Path(__file__).parent
CONTRACT_PATH = ROOT / "biorbit/contract.py"
ARTIFACTS_PATH = ROOT / "artifacts/biorbit"


def build() -> None:
    """Compile the contract to TEAL and an ARC-56 app spec with PuyaPy."""
    ARTIFACTS_PATH.mkdir(parents=True, exist_ok=True)
    subprocess.run(
        [
            "algokit", "compile", "py", str(CONTRACT_PATH),
            "--out-dir", str(ARTIFACTS_PATH),
            "--output-arc56",
            "--no-output-arc32",
        ],
        check=True,
    )
    logger.info("Artifacts written to %s", ARTIFACTS_PATH)


def algorand_client(network: str) -> AlgorandClient:
    if network == "localnet" and "ALGOD_SERVER" not in os.environ:
        return AlgorandClient.default_localnet()
    server, token = config.algod_endpoint(network)
    return AlgorandClient.from_clients(algod=AlgodClient(token, server))


def deploy(network: str) -> int:
    from smart_contracts.biorbit import deploy_config

    algorand = algorand_client(network)
    if network == "localnet":
        deployer = algorand.account.localnet_dispenser()
    else:
        raw_mnemonic = os.environ.get("DEPLOYER_MNEMONIC", "").strip()
        if not raw_mnemonic:
            raise ValueError("Set DEPLOYER_MNEMONIC to the deployer's 25-word mnemonic")
        deployer = algorand.account.from_mnemonic(mnemonic=raw_mnemonic)

    logger.info("Deployer: %s on %s", deployer.address, network)
    return deploy_config.deploy(algorand, deployer, config.deploy_parameters())


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="smart_contracts", description=__doc__.splitlines()[1])
    parser.add_argument("command", choices=["build", "deploy"])
    parser.add_argument("--network", default=None, help="localnet, testnet or mainnet (default: $ALGOD_NETWORK)")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.command == "build":
        build()
        return 0

    network = args.network.lower() if args.network else config.current_network()
    app_id = deploy(network)
    print(f"Next: set BIORBIT_APP_ID={app_id} for the read API")
    return 0


if __name__ == "__main__":
    sys.exit(main())
