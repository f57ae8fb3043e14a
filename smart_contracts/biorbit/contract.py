# =============================================================================
#  Biorbit — Algorand Smart Contract
#  -----------------------------------------------------------------------------
#  Standard  : ARC-4  (typed ABI), ARC-28 events
#  Language  : Algorand Python  →  compiled to AVM bytecode via PuyaPy
# =============================================================================
#
#  PURPOSE
#  -------
#  Registry of environmentally protected areas. Areas are created by a donation,
#  receive monitoring data (detection dates, forest-cover extensions) from
#  administrators, and own satellite images that are minted as non-fungible
#  tokens and can be escrowed for sale and bought.
#
#  STORAGE MODEL
#  -------------
#  Global state holds the parameters, the two id sequences and the reentrancy
#  lock. Records live in Box storage:
#
#    area_<id>          → ProtectedArea
#    name_<name>        → Bool          (name-used set)
#    image_<id>         → SatelliteImage
#    area_of_image_<id> → String        (owning area name)
#
#  Role and token boxes are owned by the capability modules in this package
#  and use their own key prefixes.
#
#  SIZE LIMITS
#  -----------
#  A transaction may log at most 1024 bytes, and an ARC-4 return value is one
#  of those logs behind a 4-byte prefix. Every area record is kept small enough
#  to be returned on its own or as the single element of an array. List
#  queries fail with "result too large" instead of overflowing the log; use
#  by_name_pagination with a smaller page size.
#
#  LOOKUPS
#  -------
#  Name queries are linear scans over the area id space. There is no secondary
#  index; results and failure cases of the paginated query depend on scan order.
#
# =============================================================================

from algopy import (
    Account,
    ARC4Contract,
    BoxMap,
    Bytes,
    Global,
    Txn,
    UInt64,
    arc4,
    gtxn,
    itxn,
    op,
    subroutine,
    urange,
)

from smart_contracts.biorbit import access_control, nft
from smart_contracts.biorbit.access_control import ADMIN_ROLE, DEFAULT_ADMIN_ROLE
from smart_contracts.biorbit.structs import (
    DonationReceived,
    MonitoringDataRecorded,
    ParameterChanged,
    ProtectedArea,
    ProtectedAreaRegistered,
    SatelliteImage,
    SatelliteImageListed,
    SatelliteImageMinted,
    SatelliteImageSold,
    Withdrawal,
)

# Log budget left for an ARC-4 return value.
MAX_RETURN_SIZE = 1020
# An array result spends 4 bytes on its length and the element offset.
MAX_AREA_SIZE = 1016
MAX_NAME_LENGTH = 64
MAX_FOOTPRINT_LENGTH = 512
MAX_URI_LENGTH = 256

# Box minimum balance in microAlgos: flat part plus a charge per key and value byte.
BOX_FLAT_MIN_BALANCE = 2_500
BOX_BYTE_MIN_BALANCE = 400
AREA_KEY_LENGTH = 13  # b"area_" + 8-byte id
NAME_KEY_PREFIX_LENGTH = 5  # b"name_"


@subroutine
def _check_parameter(current: UInt64, new: UInt64) -> None:
    assert new != current, "value unchanged"
    assert new > 0, "value must be positive"


@subroutine
def _check_result_size(size: UInt64) -> None:
    assert size <= MAX_RETURN_SIZE, "result too large"


@subroutine
def _box_min_balance(key_length: UInt64, value_length: UInt64) -> UInt64:
    return BOX_FLAT_MIN_BALANCE + BOX_BYTE_MIN_BALANCE * (key_length + value_length)


class Biorbit(ARC4Contract):
    """
    Protected-area registry with tokenized satellite imagery.

    Lifecycle: ``create`` stores the parameters, the application account is
    funded for box storage, then the deployer calls ``initialize`` to take the
    default-admin and admin roles.
    """

    def __init__(self) -> None:
        self.areas = BoxMap(UInt64, ProtectedArea, key_prefix=b"area_")
        self.used_names = BoxMap(arc4.String, arc4.Bool, key_prefix=b"name_")
        self.images = BoxMap(UInt64, SatelliteImage, key_prefix=b"image_")
        self.image_areas = BoxMap(UInt64, arc4.String, key_prefix=b"area_of_image_")

        self.area_count = UInt64(0)
        self.image_count = UInt64(0)
        self.donation = UInt64(0)
        self.price = UInt64(0)
        # Zero address keeps donations in the application account.
        self.relay = Account()
        self.write_once_monitoring = False
        self.deployer = Account()
        self.initialized = False
        self.reentrancy_locked = False

    # ─────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────────

    @arc4.abimethod(create="require")
    def create(
        self,
        relay: arc4.Address,
        donation: arc4.UInt64,
        price: arc4.UInt64,
        write_once_monitoring: arc4.Bool,
    ) -> None:
        """
        Deploy the registry.

        Parameters
        ----------
        relay : Address
            Address donations are forwarded to, or the zero address to keep
            donations in the contract.
        donation : UInt64
            Minimum registration payment in microAlgos.
        price : UInt64
            Sale price given to newly minted images.
        write_once_monitoring : Bool
            When true, monitoring data can be recorded once per area;
            otherwise later calls append to it.
        """
        assert donation.as_uint64() > 0, "value must be positive"
        assert price.as_uint64() > 0, "value must be positive"

        self.relay = relay.native
        self.donation = donation.as_uint64()
        self.price = price.as_uint64()
        self.write_once_monitoring = write_once_monitoring.native
        self.deployer = Txn.sender

    @arc4.abimethod
    def initialize(self) -> None:
        """Grant the default-admin and admin roles to the deployer. Callable once."""
        assert Txn.sender == self.deployer, "only the deployer can initialize"
        assert not self.initialized, "already initialized"

        access_control.grant_role(Bytes(DEFAULT_ADMIN_ROLE), Txn.sender)
        access_control.grant_role(Bytes(ADMIN_ROLE), Txn.sender)
        self.initialized = True

    # ─────────────────────────────────────────────────────────────────────
    # Area registration & monitoring
    # ─────────────────────────────────────────────────────────────────────

    @arc4.abimethod
    def register_area(
        self,
        name: arc4.String,
        footprint: arc4.String,
        payment: gtxn.PaymentTransaction,
    ) -> arc4.UInt64:
        """
        Register a new protected area paid for by a donation.

        Parameters
        ----------
        name : String
            Unique area name, at most 64 bytes.
        footprint : String
            Off-chain description of the area (GeoJSON or a URI pointing to
            it), at most 512 bytes.
        payment : PaymentTransaction
            Donation to the application account of at least ``donation``.

        Behaviour
        ---------
        - The caller becomes the first donor.
        - With a relay address configured, the payment minus the minimum
          balance of the two new boxes is forwarded to it.
        - The event carries the SHA-256 of the footprint; read the footprint
          itself with ``get_area``.

        Returns
        -------
        UInt64
            The id assigned to the area.
        """
        self._check_donation(payment)
        assert name.native.bytes.length <= MAX_NAME_LENGTH, "area name too long"
        assert footprint.native.bytes.length <= MAX_FOOTPRINT_LENGTH, "footprint too long"
        assert name not in self.used_names, "area name already used"

        area_id = self._next_area_id()
        area = ProtectedArea(
            id=arc4.UInt64(area_id),
            name=name,
            footprint=footprint,
            last_detection_date=arc4.String(""),
            total_extension=arc4.String(""),
            detection_dates=arc4.DynamicArray[arc4.String](),
            forest_cover_extensions=arc4.DynamicArray[arc4.String](),
            donors=arc4.DynamicArray(arc4.Address(Txn.sender)),
            satellite_images=arc4.DynamicArray[arc4.UInt64](),
        )
        self.areas[area_id] = area.copy()
        self.used_names[name] = arc4.Bool(True)

        area_storage = _box_min_balance(UInt64(AREA_KEY_LENGTH), area.bytes.length)
        name_storage = _box_min_balance(NAME_KEY_PREFIX_LENGTH + name.bytes.length, UInt64(1))
        storage = area_storage + name_storage
        relayed = self._forward_donation(payment.amount, storage)
        arc4.emit(
            ProtectedAreaRegistered(
                id=arc4.UInt64(area_id),
                name=name,
                footprint_hash=arc4.DynamicBytes(op.sha256(footprint.native.bytes)),
                donor=arc4.Address(Txn.sender),
                amount=arc4.UInt64(payment.amount),
                relayed=arc4.Bool(relayed),
            )
        )
        return arc4.UInt64(area_id)

    @arc4.abimethod
    def donate(
        self,
        area_id: arc4.UInt64,
        name: arc4.String,
        payment: gtxn.PaymentTransaction,
    ) -> None:
        """Add the caller to the donors of an existing area."""
        self._check_donation(payment)
        area = self._check_area(area_id.as_uint64(), name)

        area.donors.append(arc4.Address(Txn.sender))
        storage = self._store_area(area)

        self._forward_donation(payment.amount, storage)
        arc4.emit(
            DonationReceived(
                area_id=area_id,
                donor=arc4.Address(Txn.sender),
                amount=arc4.UInt64(payment.amount),
            )
        )

    @arc4.abimethod
    def record_monitoring_data(
        self,
        area_id: arc4.UInt64,
        name: arc4.String,
        last_detection_date: arc4.String,
        total_extension: arc4.String,
        detection_dates: arc4.DynamicArray[arc4.String],
        forest_cover_extensions: arc4.DynamicArray[arc4.String],
    ) -> None:
        """
        Record deforestation monitoring results for an area. Admin only.

        ``detection_dates`` and ``forest_cover_extensions`` are parallel arrays and
        are appended to the stored history. The scalar fields are replaced.
        With write-once monitoring enabled the call fails once any monitoring
        field of the area holds data. The call also fails when the updated
        record would no longer fit in a return value.
        """
        access_control.check_role(Bytes(ADMIN_ROLE), Txn.sender)
        area = self._check_area(area_id.as_uint64(), name)
        assert detection_dates.length == forest_cover_extensions.length, (
            "monitoring arrays length mismatch"
        )

        if self.write_once_monitoring:
            assert (
                area.last_detection_date.native == ""
                and area.total_extension.native == ""
                and area.detection_dates.length == 0
                and area.forest_cover_extensions.length == 0
            ), "monitoring data already recorded"

        area.last_detection_date = last_detection_date
        area.total_extension = total_extension
        area.detection_dates.extend(detection_dates)
        area.forest_cover_extensions.extend(forest_cover_extensions)
        self._store_area(area)

        arc4.emit(
            MonitoringDataRecorded(
                area_id=area_id,
                last_detection_date=last_detection_date,
                total_extension=total_extension,
            )
        )

    # ─────────────────────────────────────────────────────────────────────
    # Area queries
    # ─────────────────────────────────────────────────────────────────────

    @arc4.abimethod(readonly=True)
    def total_areas(self) -> arc4.UInt64:
        return arc4.UInt64(self.area_count)

    @arc4.abimethod(readonly=True)
    def get_area(self, area_id: arc4.UInt64) -> ProtectedArea:
        assert area_id.as_uint64() < self.area_count, "area id out of range"
        return self.areas[area_id.as_uint64()].copy()

    @arc4.abimethod(readonly=True)
    def get_area_images(self, area_id: arc4.UInt64) -> arc4.DynamicArray[SatelliteImage]:
        assert area_id.as_uint64() < self.area_count, "area id out of range"
        result = arc4.DynamicArray[SatelliteImage]()
        for image_id in self.areas[area_id.as_uint64()].satellite_images.copy():
            result.append(self.images[image_id.as_uint64()].copy())
        _check_result_size(result.bytes.length)
        return result

    @arc4.abimethod(readonly=True)
    def by_used_names(self) -> arc4.DynamicArray[ProtectedArea]:
        """Every area whose name is in the name-used set, in id order."""
        result = arc4.DynamicArray[ProtectedArea]()
        for area_id in urange(self.area_count):
            area = self.areas[area_id].copy()
            if area.name in self.used_names:
                result.append(area.copy())
        _check_result_size(result.bytes.length)
        return result

    @arc4.abimethod(readonly=True)
    def by_name(self, name: arc4.String) -> arc4.DynamicArray[ProtectedArea]:
        result = arc4.DynamicArray[ProtectedArea]()
        for area_id in urange(self.area_count):
            area = self.areas[area_id].copy()
            if area.name in self.used_names and area.name == name:
                result.append(area.copy())
        return result

    @arc4.abimethod(readonly=True)
    def by_name_pagination(
        self, page: arc4.UInt64, page_size: arc4.UInt64
    ) -> arc4.DynamicArray[ProtectedArea]:
        """
        One page of the areas returned by ``by_used_names``.

        The window is ``[page * page_size, page * page_size + page_size)`` with the
        upper bound clamped to the number of matches. A window starting at or past
        the number of matches fails. A page size of one always fits in a return
        value.
        """
        assert page_size.as_uint64() > 0, "page size must be positive"

        count = UInt64(0)
        for area_id in urange(self.area_count):
            if self.areas[area_id].name in self.used_names:
                count += 1

        start = page.as_uint64() * page_size.as_uint64()
        assert start < count, "page out of range"
        end = start + page_size.as_uint64()
        if end > count:
            end = count

        result = arc4.DynamicArray[ProtectedArea]()
        index = UInt64(0)
        for area_id in urange(self.area_count):
            area = self.areas[area_id].copy()
            if area.name in self.used_names:
                if index >= start and index < end:
                    result.append(area.copy())
                index += 1
        _check_result_size(result.bytes.length)
        return result

    # ─────────────────────────────────────────────────────────────────────
    # Satellite images
    # ─────────────────────────────────────────────────────────────────────

    @arc4.abimethod
    def mint(
        self, area_name: arc4.String, area_id: arc4.UInt64, uri: arc4.String
    ) -> arc4.UInt64:
        """
        Mint a satellite image for an area. Admin only.

        Parameters
        ----------
        area_name : String
            Name of the owning area; must match the area stored at ``area_id``.
        area_id : UInt64
            Id of the owning area.
        uri : String
            Token metadata URI, at most 256 bytes.

        Behaviour
        ---------
        The image is priced at the current global price and its token is issued
        to the caller with ``uri`` as metadata.

        Returns
        -------
        UInt64
            The image id, which is also the token id.
        """
        access_control.check_role(Bytes(ADMIN_ROLE), Txn.sender)
        assert uri.native.bytes.length <= MAX_URI_LENGTH, "uri too long"
        area = self._check_area(area_id.as_uint64(), area_name)

        image_id = self._next_image_id()
        self.images[image_id] = SatelliteImage(
            id=arc4.UInt64(image_id),
            uri=uri,
            price=arc4.UInt64(self.price),
            sold=arc4.Bool(False),
            seller=arc4.Address(Txn.sender),
        )
        area.satellite_images.append(arc4.UInt64(image_id))
        self._store_area(area)
        self.image_areas[image_id] = area_name

        nft.mint(Txn.sender, image_id, uri)

        arc4.emit(
            SatelliteImageMinted(
                image_id=arc4.UInt64(image_id),
                area_id=area_id,
                uri=uri,
                price=arc4.UInt64(self.price),
                seller=arc4.Address(Txn.sender),
            )
        )
        return arc4.UInt64(image_id)

    @arc4.abimethod
    def sell_satellite_image(self, image_id: arc4.UInt64) -> None:
        """
        Escrow an image token in the application account. Admin only.

        The image must not be sold yet. The caller must own the token and must
        have approved the application account, either for this token or as an
        operator.
        """
        access_control.check_role(Bytes(ADMIN_ROLE), Txn.sender)

        token_id = image_id.as_uint64()
        assert token_id in self.image_areas, "image has no owning area"
        assert not self.images[token_id].sold.native, "image already sold"
        assert nft.owner_of(token_id) == Txn.sender, "caller is not the token owner"
        registry = Global.current_application_address
        assert nft.get_approved(token_id) == registry or nft.is_approved_for_all(
            Txn.sender, registry
        ), "registry is not approved for the token"

        self._enter()
        nft.transfer(Txn.sender, registry, token_id)
        arc4.emit(SatelliteImageListed(image_id=image_id, seller=arc4.Address(Txn.sender)))
        self._leave()

    @arc4.abimethod
    def buy_satellite_image(
        self,
        image_id: arc4.UInt64,
        area_name: arc4.String,
        payment: gtxn.PaymentTransaction,
    ) -> None:
        """
        Buy a satellite image for exactly its price.

        The image is looked up in the area called ``area_name``, or across every
        area when ``area_name`` is empty. An escrowed token is handed to the buyer.
        The image price is then paid out to the caller.
        """
        token_id = image_id.as_uint64()
        assert token_id < self.image_count, "image id out of range"
        if area_name.native == "":
            found = self._any_area_holds_image(token_id)
        else:
            found = self._named_area_holds_image(area_name, token_id)
        assert found, "image not found in area"

        image = self.images[token_id].copy()
        assert payment.receiver == Global.current_application_address, (
            "payment must be made to the registry"
        )
        assert payment.amount == image.price.as_uint64(), "incorrect payment"
        assert not image.sold.native, "image already sold"

        self._enter()
        image.sold = arc4.Bool(True)
        self.images[token_id] = image.copy()

        registry = Global.current_application_address
        if nft.owner_of(token_id) == registry:
            nft.transfer(registry, Txn.sender, token_id)

        # Payout target and amount match the deployed revisions: the image's own
        # price goes back to the caller, not to the seller.
        itxn.Payment(receiver=Txn.sender, amount=image.price.as_uint64(), fee=0).submit()

        arc4.emit(
            SatelliteImageSold(
                image_id=image_id,
                buyer=arc4.Address(Txn.sender),
                price=image.price,
            )
        )
        self._leave()

    @arc4.abimethod(readonly=True)
    def total_images(self) -> arc4.UInt64:
        return arc4.UInt64(self.image_count)

    @arc4.abimethod(readonly=True)
    def get_satellite_image(self, image_id: arc4.UInt64) -> SatelliteImage:
        assert image_id.as_uint64() < self.image_count, "image id out of range"
        return self.images[image_id.as_uint64()].copy()

    # ─────────────────────────────────────────────────────────────────────
    # Access control & parameters
    # ─────────────────────────────────────────────────────────────────────

    @arc4.abimethod(readonly=True)
    def has_role(self, role: Bytes, account: arc4.Address) -> bool:
        return access_control.has_role(role, account.native)

    @arc4.abimethod
    def grant_role(self, role: Bytes, account: arc4.Address) -> None:
        access_control.check_role(Bytes(DEFAULT_ADMIN_ROLE), Txn.sender)
        access_control.grant_role(role, account.native)

    @arc4.abimethod
    def revoke_role(self, role: Bytes, account: arc4.Address) -> None:
        access_control.check_role(Bytes(DEFAULT_ADMIN_ROLE), Txn.sender)
        access_control.revoke_role(role, account.native)

    @arc4.abimethod
    def renounce_role(self, role: Bytes) -> None:
        access_control.revoke_role(role, Txn.sender)

    @arc4.abimethod
    def set_donation(self, donation: arc4.UInt64) -> None:
        access_control.check_role(Bytes(ADMIN_ROLE), Txn.sender)
        _check_parameter(self.donation, donation.as_uint64())

        arc4.emit(
            ParameterChanged(
                parameter=arc4.String("donation"),
                old_value=arc4.UInt64(self.donation),
                new_value=donation,
            )
        )
        self.donation = donation.as_uint64()

    @arc4.abimethod
    def set_price(self, price: arc4.UInt64) -> None:
        """Change the price given to images minted from now on. Admin only."""
        access_control.check_role(Bytes(ADMIN_ROLE), Txn.sender)
        _check_parameter(self.price, price.as_uint64())

        arc4.emit(
            ParameterChanged(
                parameter=arc4.String("price"),
                old_value=arc4.UInt64(self.price),
                new_value=price,
            )
        )
        self.price = price.as_uint64()

    @arc4.abimethod
    def withdraw(self) -> arc4.UInt64:
        """Send the spendable application balance to the caller. Admin only."""
        access_control.check_role(Bytes(ADMIN_ROLE), Txn.sender)

        registry = Global.current_application_address
        assert registry.balance > registry.min_balance, "nothing to withdraw"
        amount = registry.balance - registry.min_balance

        itxn.Payment(receiver=Txn.sender, amount=amount, fee=0).submit()
        arc4.emit(Withdrawal(to=arc4.Address(Txn.sender), amount=arc4.UInt64(amount)))
        return arc4.UInt64(amount)

    # ─────────────────────────────────────────────────────────────────────
    # Token interface
    # ─────────────────────────────────────────────────────────────────────

    @arc4.abimethod(readonly=True)
    def owner_of(self, token_id: arc4.UInt64) -> arc4.Address:
        return arc4.Address(nft.owner_of(token_id.as_uint64()))

    @arc4.abimethod(readonly=True)
    def balance_of(self, owner: arc4.Address) -> arc4.UInt64:
        return arc4.UInt64(nft.balance_of(owner.native))

    @arc4.abimethod(readonly=True)
    def token_uri(self, token_id: arc4.UInt64) -> arc4.String:
        return nft.token_uri(token_id.as_uint64())

    @arc4.abimethod(readonly=True)
    def get_approved(self, token_id: arc4.UInt64) -> arc4.Address:
        return arc4.Address(nft.get_approved(token_id.as_uint64()))

    @arc4.abimethod(readonly=True)
    def is_approved_for_all(self, owner: arc4.Address, operator: arc4.Address) -> bool:
        return nft.is_approved_for_all(owner.native, operator.native)

    @arc4.abimethod
    def approve(self, approved: arc4.Address, token_id: arc4.UInt64) -> None:
        nft.approve(approved.native, token_id.as_uint64())

    @arc4.abimethod
    def set_approval_for_all(self, operator: arc4.Address, approved: arc4.Bool) -> None:
        nft.set_approval_for_all(operator.native, approved.native)

    @arc4.abimethod
    def transfer_from(
        self, sender: arc4.Address, receiver: arc4.Address, token_id: arc4.UInt64
    ) -> None:
        nft.transfer_from(sender.native, receiver.native, token_id.as_uint64())

    # ─────────────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────────────

    @subroutine
    def _next_area_id(self) -> UInt64:
        area_id = self.area_count
        self.area_count += 1
        return area_id

    @subroutine
    def _next_image_id(self) -> UInt64:
        image_id = self.image_count
        self.image_count += 1
        return image_id

    @subroutine
    def _enter(self) -> None:
        assert not self.reentrancy_locked, "reentrant call"
        self.reentrancy_locked = True

    @subroutine
    def _leave(self) -> None:
        self.reentrancy_locked = False

    @subroutine
    def _check_donation(self, payment: gtxn.PaymentTransaction) -> None:
        assert payment.receiver == Global.current_application_address, (
            "donation must be paid to the registry"
        )
        assert payment.amount >= self.donation, "insufficient donation"

    @subroutine
    def _forward_donation(self, amount: UInt64, storage: UInt64) -> bool:
        """Relay ``amount`` less the ``storage`` minimum balance the call added."""
        assert amount >= storage, "donation does not cover storage"
        if self.relay == Global.zero_address:
            return False
        itxn.Payment(receiver=self.relay, amount=amount - storage, fee=0).submit()
        return True

    @subroutine
    def _check_area(self, area_id: UInt64, name: arc4.String) -> ProtectedArea:
        """Load the area stored at ``area_id`` after checking it is called ``name``."""
        assert name in self.used_names, "unknown area name"
        assert area_id < self.area_count, "area id out of range"
        area = self.areas[area_id].copy()
        assert area.name == name, "area id and name mismatch"
        return area

    @subroutine
    def _store_area(self, area: ProtectedArea) -> UInt64:
        """Rewrite an area record and return the minimum balance it grew by."""
        area_id = area.id.as_uint64()
        new_size = area.bytes.length
        assert new_size <= MAX_AREA_SIZE, "area record too large"
        old_size = self.areas.length(area_id)

        # The encoded record changes size, so the box is recreated.
        del self.areas[area_id]
        self.areas[area_id] = area.copy()

        if new_size > old_size:
            return (new_size - old_size) * BOX_BYTE_MIN_BALANCE
        return UInt64(0)

    @subroutine
    def _area_holds_image(self, area_id: UInt64, image_id: UInt64) -> bool:
        for held in self.areas[area_id].satellite_images.copy():
            if held.as_uint64() == image_id:
                return True
        return False

    @subroutine
    def _any_area_holds_image(self, image_id: UInt64) -> bool:
        for area_id in urange(self.area_count):
            if self._area_holds_image(area_id, image_id):
                return True
        return False

    @subroutine
    def _named_area_holds_image(self, area_name: arc4.String, image_id: UInt64) -> bool:
        for area_id in urange(self.area_count):
            if self.areas[area_id].name == area_name:
                return self._area_holds_image(area_id, image_id)
        return False
