import hashlib

import pytest
from algopy import Bytes, UInt64, arc4

from smart_contracts.biorbit.structs import ProtectedAreaRegistered
from tests.conftest import DONATION, logged_bytes

BOX_FLAT = 2_500
BOX_BYTE = 400


def test_register_area_assigns_sequential_ids(contract, register_area):
    assert [register_area(name) for name in ("Amazonia", "Cerrado", "Pantanal")] == [0, 1, 2]
    assert contract.total_areas().as_uint64() == 3


def test_register_area_stores_record(context, contract, register_area):
    area_id = register_area("Amazonia", footprint='{"type": "Point"}')

    area = contract.get_area(arc4.UInt64(area_id))
    assert area.id.as_uint64() == 0
    assert area.name.native == "Amazonia"
    assert area.footprint.native == '{"type": "Point"}'
    assert area.last_detection_date.native == ""
    assert area.detection_dates.length == 0
    assert area.satellite_images.length == 0
    assert [donor.native for donor in area.donors] == [context.default_sender]


def test_register_area_rejects_insufficient_donation(contract, register_area):
    with pytest.raises(AssertionError, match="insufficient donation"):
        register_area("Amazonia", amount=DONATION - 1)

    assert contract.total_areas().as_uint64() == 0


def test_register_area_accepts_more_than_minimum(contract, register_area):
    register_area("Amazonia", amount=DONATION * 3)

    assert contract.total_areas().as_uint64() == 1


def test_register_area_requires_payment_to_registry(context, contract):
    payment = context.any.txn.payment(
        receiver=context.any.account(), amount=UInt64(DONATION)
    )
    with pytest.raises(AssertionError, match="donation must be paid to the registry"):
        contract.register_area(arc4.String("Amazonia"), arc4.String("{}"), payment)


def test_register_duplicate_name_fails_and_keeps_first_record(context, contract, register_area):
    register_area("Amazonia", footprint="first")

    with pytest.raises(AssertionError, match="area name already used"):
        register_area("Amazonia", footprint="second", sender=context.any.account())

    assert contract.total_areas().as_uint64() == 1
    area = contract.get_area(arc4.UInt64(0))
    assert area.footprint.native == "first"
    assert area.donors.length == 1


def test_failed_registration_does_not_consume_an_id(context, contract, register_area):
    register_area("Amazonia")
    with pytest.raises(AssertionError):
        register_area("Amazonia")

    assert register_area("Cerrado") == 1


def test_donate_appends_donor(context, contract, register_area, app_address):
    area_id = register_area("Amazonia")
    donor = context.any.account()
    payment = context.any.txn.payment(sender=donor, receiver=app_address, amount=UInt64(DONATION))

    with context.txn.create_group(active_txn_overrides={"sender": donor}):
        contract.donate(arc4.UInt64(area_id), arc4.String("Amazonia"), payment)

    donors = [d.native for d in contract.get_area(arc4.UInt64(area_id)).donors]
    assert donors == [context.default_sender, donor]


def test_donate_to_mismatched_area_fails(context, contract, register_area, app_address):
    register_area("Amazonia")
    register_area("Cerrado")
    payment = context.any.txn.payment(receiver=app_address, amount=UInt64(DONATION))

    with pytest.raises(AssertionError, match="area id and name mismatch"):
        contract.donate(arc4.UInt64(0), arc4.String("Cerrado"), payment)


def test_get_area_out_of_range(contract):
    with pytest.raises(AssertionError, match="area id out of range"):
        contract.get_area(arc4.UInt64(0))


def test_register_area_emits_event_with_footprint_hash(context, contract, register_area):
    footprint = '{"type": "Polygon", "coordinates": []}'
    register_area("Amazonia", footprint=footprint)

    log = context.txn.last_active.logs(0)
    event = ProtectedAreaRegistered.from_bytes(log[4:])
    assert event.id.as_uint64() == 0
    assert event.name.native == "Amazonia"
    assert event.footprint_hash.native == Bytes(hashlib.sha256(footprint.encode()).digest())
    assert event.donor.native == context.default_sender
    assert event.amount.as_uint64() == DONATION
    assert not event.relayed.native


def test_register_area_rejects_long_name(contract, register_area):
    with pytest.raises(AssertionError, match="area name too long"):
        register_area("A" * 65)


def test_register_area_rejects_long_footprint(contract, register_area):
    with pytest.raises(AssertionError, match="footprint too long"):
        register_area("Amazonia", footprint="x" * 513)

    assert contract.total_areas().as_uint64() == 0


def test_largest_area_fits_in_call_logs(context, contract, register_area):
    name = "A" * 64
    register_area(name, footprint="x" * 512)
    assert logged_bytes(context) <= 1024

    contract.get_area(arc4.UInt64(0))
    assert logged_bytes(context) <= 1024

    contract.by_name(arc4.String(name))
    assert logged_bytes(context) <= 1024


def test_donations_stop_when_area_record_is_full(context, contract, register_area, app_address):
    register_area("A" * 64, footprint="x" * 512)

    with pytest.raises(AssertionError, match="area record too large"):
        for _ in range(20):
            payment = context.any.txn.payment(receiver=app_address, amount=UInt64(DONATION))
            contract.donate(arc4.UInt64(0), arc4.String("A" * 64), payment)

    contract.get_area(arc4.UInt64(0))
    assert logged_bytes(context) <= 1024


class TestRelay:
    @pytest.fixture()
    def relay(self, context):
        return context.any.account()

    @pytest.fixture()
    def contract(self, make_contract, relay):
        return make_contract(relay=relay)

    def test_register_forwards_donation_less_storage(self, context, contract, relay, register_area):
        register_area("Amazonia")
        forwarded = context.txn.last_group.last_itxn.payment
        event = ProtectedAreaRegistered.from_bytes(context.txn.last_active.logs(0)[4:])

        area_size = len(contract.get_area(arc4.UInt64(0)).bytes)
        name_key_size = len("name_") + 2 + len("Amazonia")
        storage = (
            BOX_FLAT + BOX_BYTE * (len("area_") + 8 + area_size)
            + BOX_FLAT + BOX_BYTE * (name_key_size + 1)
        )
        assert forwarded.receiver == relay
        assert forwarded.amount == DONATION - storage
        assert event.relayed.native

    def test_donate_forwards_donation_less_record_growth(
        self, context, contract, relay, register_area, app_address
    ):
        register_area("Amazonia")
        payment = context.any.txn.payment(receiver=app_address, amount=UInt64(DONATION))

        contract.donate(arc4.UInt64(0), arc4.String("Amazonia"), payment)

        forwarded = context.txn.last_group.last_itxn.payment
        assert forwarded.receiver == relay
        assert forwarded.amount == DONATION - BOX_BYTE * 32

    def test_donation_must_cover_storage(self, contract, register_area):
        contract.set_donation(arc4.UInt64(1))

        with pytest.raises(AssertionError, match="donation does not cover storage"):
            register_area("Amazonia", amount=1)
