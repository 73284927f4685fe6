"""ensdata.net aggregate lookup: address, primary name and avatar in one call."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import quote

import config
from utils.addressing import is_address
from utils.http_client import SharedHttpClient

logger = logging.getLogger(__name__)


@dataclass
class EnsDataRecord:
    address: str | None
    name: str | None
    avatar_url: str | None


def _first_text(payload: dict, *keys: str) -> str | None:
    for key in keys:
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def parse_record(payload: object) -> EnsDataRecord | None:
    if not isinstance(payload, dict):
        return None
    address = _first_text(payload, "address")
    if address and not is_address(address):
        address = None
    return EnsDataRecord(
        address=address,
        name=_first_text(payload, "ens_primary", "ens"),
        avatar_url=_first_text(payload, "avatar_small", "avatar", "avatar_url"),
    )


class EnsDataClient:
    def __init__(self, http: SharedHttpClient, base_url: str | None = None) -> None:
        self.http = http
        self.base_url = str(base_url or config.ENSDATA_API_URL).rstrip("/")

    async def lookup(self, token: str) -> EnsDataRecord | None:
        """Return the record for an address or name, or None when ensdata has nothing usable."""
        url = f"{self.base_url}/{quote(token, safe='')}"
        result = await self.http.get_json(url, source="ensdata")
        if not result.ok:
            logger.warning("ENSDATA_LOOKUP_FAIL token=%s status=%s err=%s", token, result.status, result.error)
            return None
        record = parse_record(result.data)
        if record is None:
            logger.warning("ENSDATA_LOOKUP_BAD_PAYLOAD token=%s", token)
        return record
