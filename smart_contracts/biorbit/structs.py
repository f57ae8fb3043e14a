from algopy import arc4


class ProtectedArea(arc4.Struct):
    """
    Registry record for one protected area.

    Stored in Box storage under ``area_<id>``. Monitoring history is kept as two
    parallel, append-only arrays; ``satellite_images`` lists the ids of the
    images minted for the area in mint order.
    """

    id: arc4.UInt64
    name: arc4.String
    footprint: arc4.String
    last_detection_date: arc4.String
    total_extension: arc4.String
    detection_dates: arc4.DynamicArray[arc4.String]
    forest_cover_extensions: arc4.DynamicArray[arc4.String]
    donors: arc4.DynamicArray[arc4.Address]
    satellite_images: arc4.DynamicArray[arc4.UInt64]


class SatelliteImage(arc4.Struct):
    """Tokenized satellite image. The id doubles as the token id."""

    id: arc4.UInt64
    uri: arc4.String
    price: arc4.UInt64
    sold: arc4.Bool
    seller: arc4.Address


# ─────────────────────────────────────────────────────────────────────────────
# ARC-28 events
# ─────────────────────────────────────────────────────────────────────────────


class ProtectedAreaRegistered(arc4.Struct):
    """Emitted on registration. Carries the SHA-256 of the footprint, not the footprint."""

    id: arc4.UInt64
    name: arc4.String
    footprint_hash: arc4.DynamicBytes
    donor: arc4.Address
    amount: arc4.UInt64
    relayed: arc4.Bool


class DonationReceived(arc4.Struct):
    area_id: arc4.UInt64
    donor: arc4.Address
    amount: arc4.UInt64


class MonitoringDataRecorded(arc4.Struct):
    area_id: arc4.UInt64
    last_detection_date: arc4.String
    total_extension: arc4.String


class SatelliteImageMinted(arc4.Struct):
    image_id: arc4.UInt64
    area_id: arc4.UInt64
    uri: arc4.String
    price: arc4.UInt64
    seller: arc4.Address


class SatelliteImageListed(arc4.Struct):
    image_id: arc4.UInt64
    seller: arc4.Address


class SatelliteImageSold(arc4.Struct):
    image_id: arc4.UInt64
    buyer: arc4.Address
    price: arc4.UInt64


class ParameterChanged(arc4.Struct):
    parameter: arc4.String
    old_value: arc4.UInt64
    new_value: arc4.UInt64


class Withdrawal(arc4.Struct):
    to: arc4.Address
    amount: arc4.UInt64


class RoleGranted(arc4.Struct):
    role: arc4.DynamicBytes
    account: arc4.Address
    sender: arc4.Address


class RoleRevoked(arc4.Struct):
    role: arc4.DynamicBytes
    account: arc4.Address
    sender: arc4.Address


class Transfer(arc4.Struct):
    sender: arc4.Address
    receiver: arc4.Address
    token_id: arc4.UInt64


class Approval(arc4.Struct):
    owner: arc4.Address
    approved: arc4.Address
    token_id: arc4.UInt64


class ApprovalForAll(arc4.Struct):
    owner: arc4.Address
    operator: arc4.Address
    approved: arc4.Bool
