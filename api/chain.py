"""
Read Biorbit state straight from algod's REST API.

Box names follow the contract's BoxMap layout: ``key_prefix`` followed by the
8-byte big-endian id. Box values are ARC-4 encoded tuples, decoded here with
``algosdk.abi``.
"""
import base64
import logging

import requests
from algosdk import abi

logger = logging.getLogger(__name__)

AREA_PREFIX = b"area_"
IMAGE_PREFIX = b"image_"

AREA_TYPE = abi.ABIType.from_string(
    "(uint64,string,string,string,string,string[],string[],address[],uint64[])"
)
AREA_FIELDS = (
    "id",
    "name",
    "footprint",
    "last_detection_date",
    "total_extension",
    "detection_dates",
    "forest_cover_extensions",
    "donors",
    "satellite_images",
)

IMAGE_TYPE = abi.ABIType.from_string("(uint64,string,uint64,bool,address)")
IMAGE_FIELDS = ("id", "uri", "price", "sold", "seller")

REQUEST_TIMEOUT = 10


class BoxNotFound(LookupError):
    """The requested box does not exist on the application."""


def box_name(prefix: bytes, key: int) -> bytes:
    return prefix + key.to_bytes(8, "big")


def decode_area(raw: bytes) -> dict:
    return dict(zip(AREA_FIELDS, AREA_TYPE.decode(raw)))


def decode_image(raw: bytes) -> dict:
    return dict(zip(IMAGE_FIELDS, IMAGE_TYPE.decode(raw)))


def fetch_global_state(algod_url: str, app_id: int) -> dict:
    """Return the application's global state as ``{key: int | bytes}``."""
    resp = requests.get(f"{algod_url}/v2/applications/{app_id}", timeout=REQUEST_TIMEOUT)
    resp.raise_for_status()

    state: dict = {}
    for entry in resp.json().get("params", {}).get("global-state", []):
        key = base64.b64decode(entry["key"]).decode("utf-8", errors="replace")
        value = entry["value"]
        # type 1 is bytes, type 2 is uint
        if value["type"] == 1:
            state[key] = base64.b64decode(value.get("bytes", ""))
        else:
            state[key] = value.get("uint", 0)
    return state


def fetch_box(algod_url: str, app_id: int, name: bytes) -> bytes:
    encoded = base64.b64encode(name).decode()
    resp = requests.get(
        f"{algod_url}/v2/applications/{app_id}/box",
        params={"name": f"b64:{encoded}"},
        timeout=REQUEST_TIMEOUT,
    )
    if resp.status_code == 404:
        raise BoxNotFound(name)
    resp.raise_for_status()
    return base64.b64decode(resp.json().get("value", ""))


def fetch_area(algod_url: str, app_id: int, area_id: int) -> dict:
    return decode_area(fetch_box(algod_url, app_id, box_name(AREA_PREFIX, area_id)))


def fetch_image(algod_url: str, app_id: int, image_id: int) -> dict:
    return decode_image(fetch_box(algod_url, app_id, box_name(IMAGE_PREFIX, image_id)))


def fetch_areas(algod_url: str, app_id: int) -> list[dict]:
    """Every registered area, in id order."""
    count = fetch_global_state(algod_url, app_id).get("area_count", 0)
    logger.info("App %s holds %d area(s)", app_id, count)
    return [fetch_area(algod_url, app_id, area_id) for area_id in range(count)]
