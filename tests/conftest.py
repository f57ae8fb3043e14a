from collections.abc import Callable, Iterator

import pytest
from algopy import Account, UInt64, arc4
from algopy_testing import AlgopyTestContext, algopy_testing_context

from smart_contracts.biorbit.contract import Biorbit

DONATION = 1_000_000
PRICE = 500_000
ZERO_ADDRESS = "AAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAY5HFKQ"


def logged_bytes(context: AlgopyTestContext) -> int:
    """Total size of the logs written by the last application call."""
    txn = context.txn.last_active
    return sum(len(txn.logs(index)) for index in range(txn.num_logs))


@pytest.fixture()
def context() -> Iterator[AlgopyTestContext]:
    with algopy_testing_context() as ctx:
        yield ctx


@pytest.fixture()
def make_contract(context: AlgopyTestContext) -> Callable[..., Biorbit]:
    def make(
        *,
        relay: Account | str = ZERO_ADDRESS,
        write_once_monitoring: bool = True,
        initialize: bool = True,
    ) -> Biorbit:
        contract = Biorbit()
        contract.create(
            arc4.Address(relay),
            arc4.UInt64(DONATION),
            arc4.UInt64(PRICE),
            arc4.Bool(write_once_monitoring),
        )
        if initialize:
            contract.initialize()
        return contract

    return make


@pytest.fixture()
def contract(make_contract: Callable[..., Biorbit]) -> Biorbit:
    return make_contract()


@pytest.fixture()
def app_address(context: AlgopyTestContext, contract: Biorbit) -> Account:
    return context.ledger.get_app(contract).address


@pytest.fixture()
def register_area(
    context: AlgopyTestContext, contract: Biorbit, app_address: Account
) -> Callable[..., UInt64]:
    """Register an area on ``contract`` with a donation paid by ``sender``."""

    def register(
        name: str,
        footprint: str = '{"type": "Polygon"}',
        sender: Account | None = None,
        amount: int = DONATION,
    ) -> UInt64:
        sender = sender or context.default_sender
        payment = context.any.txn.payment(
            sender=sender, receiver=app_address, amount=UInt64(amount)
        )
        with context.txn.create_group(active_txn_overrides={"sender": sender}):
            area_id = contract.register_area(arc4.String(name), arc4.String(footprint), payment)
        return area_id.as_uint64()

    return register


@pytest.fixture()
def mint_image(contract: Biorbit) -> Callable[..., UInt64]:
    def mint(area_name: str, area_id: int, uri: str = "ipfs://image") -> UInt64:
        image_id = contract.mint(arc4.String(area_name), arc4.UInt64(area_id), arc4.String(uri))
        return image_id.as_uint64()

    return mint


@pytest.fixture()
def buy_image(
    context: AlgopyTestContext, contract: Biorbit, app_address: Account
) -> Callable[..., None]:
    def buy(image_id: int, area_name: str, buyer: Account, amount: int = PRICE) -> None:
        payment = context.any.txn.payment(
            sender=buyer, receiver=app_address, amount=UInt64(amount)
        )
        with context.txn.create_group(active_txn_overrides={"sender": buyer}):
            contract.buy_satellite_image(arc4.UInt64(image_id), arc4.String(area_name), payment)

    return buy
