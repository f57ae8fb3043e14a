import logging
from pathlib import Path

import algokit_utils
from algokit_utils import AlgorandClient, SigningAccount

from smart_contracts.config import DeployParameters

logger = logging.getLogger(__name__)

ARC56_PATH = Path(__file__).parent.parent / "artifacts/biorbit/Biorbit.arc56.json"

# Seed balance for box storage: areas, images, roles and token ledger entries.
INITIAL_FUNDING = algokit_utils.AlgoAmount.from_algo(5)


def deploy(
    algorand: AlgorandClient,
    deployer: SigningAccount,
    parameters: DeployParameters,
) -> int:
    """Deploy Biorbit, fund it and hand the admin roles to ``deployer``."""
    app_factory = algorand.client.get_app_factory(
        app_spec=ARC56_PATH.read_text(),
        default_sender=deployer.address,
        default_signer=deployer.signer,
    )

    app_client, result = app_factory.deploy(
        on_schema_break=algokit_utils.OnSchemaBreak.AppendApp,
        on_update=algokit_utils.OnUpdate.AppendApp,
        create_params=algokit_utils.AppClientMethodCallCreateParams(
            method="create",
            args=[
                parameters.relay,
                parameters.donation,
                parameters.price,
                parameters.write_once_monitoring,
            ],
        ),
    )

    if result.operation_performed in (
        algokit_utils.OperationPerformed.Create,
        algokit_utils.OperationPerformed.Replace,
    ):
        algorand.send.payment(
            algokit_utils.PaymentParams(
                sender=deployer.address,
                receiver=app_client.app_address,
                amount=INITIAL_FUNDING,
            )
        )
        app_client.send.call(algokit_utils.AppClientMethodCallParams(method="initialize"))
        logger.info("Funded %s and granted admin roles to %s", app_client.app_address, deployer.address)

    logger.info("Biorbit deployed, App ID: %s", app_client.app_id)
    return app_client.app_id
