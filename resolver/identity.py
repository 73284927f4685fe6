"""Identity resolution for the OG image endpoint.

Turns the raw ``addyOrEns`` value into a ResolvedIdentity: classify the
token, resolve it to the other form (address <-> ENS name), fetch the ether
balance and pick an avatar. Only a name that cannot be resolved is fatal;
the reverse lookup, the balance and the avatar probe degrade to defaults.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Protocol
from urllib.parse import quote

import config
from render.identicon import identicon_data_url
from resolver.chain import format_ether
from resolver.errors import ErrorKind, OgImageError
from resolver.ensdata import EnsDataClient
from utils.addressing import KIND_NAME, classify_token, crop_address
from utils.http_client import SharedHttpClient

logger = logging.getLogger(__name__)

DEFAULT_BALANCE = "0"
BLANK_TOKEN = "blank"

MSG_MISSING_PARAM = f"Missing '{config.OG_QUERY_PARAM}' query parameter"
MSG_INVALID_TOKEN = "Invalid address or ENS"
MSG_NAME_NOT_FOUND = "ENS name not found"
MSG_ENSDATA_NOT_FOUND = "ENS data not found"


class ChainBackend(Protocol):
    async def get_balance(self, address: str) -> int: ...

    async def resolve_name(self, name: str) -> str | None: ...

    async def reverse_lookup(self, address: str) -> str | None: ...


@dataclass
class ResolvedIdentity:
    token: str
    kind: str
    address: str | None
    ens_name: str | None
    display_name: str
    balance: str
    avatar_url: str

    @property
    def qr_payload(self) -> str:
        return self.address or self.token


def read_token(raw: str | None, max_length: int | None = None) -> str:
    if raw is None:
        raise OgImageError(ErrorKind.INPUT, MSG_MISSING_PARAM)
    limit = int(max_length or config.INPUT_MAX_LENGTH)
    return str(raw)[:limit] or BLANK_TOKEN


def choose_display_name(ens_name: str | None, token_name: str | None, address: str | None) -> str:
    """Resolved reverse name, then the ENS-like input token, then the cropped address."""
    return ens_name or token_name or crop_address(address)


def avatar_service_url(name: str) -> str:
    return config.ENS_AVATAR_URL_TEMPLATE.format(name=quote(name, safe=""))


class IdentityResolver:
    def __init__(
        self,
        chain: ChainBackend,
        http: SharedHttpClient,
        *,
        strategy: str | None = None,
        ensdata: EnsDataClient | None = None,
        suffixes: Iterable[str] | None = None,
    ) -> None:
        self.chain = chain
        self.http = http
        self.strategy = str(strategy or config.RESOLVER_STRATEGY).strip().lower()
        self.ensdata = ensdata or EnsDataClient(http)
        self.suffixes = tuple(suffixes) if suffixes is not None else tuple(config.ENS_SUFFIXES)

    async def resolve(self, raw: str | None) -> ResolvedIdentity:
        token = read_token(raw)
        kind = classify_token(token, self.suffixes)
        if kind is None:
            raise OgImageError(ErrorKind.INPUT, MSG_INVALID_TOKEN)

        avatar_hint: str | None = None
        if self.strategy == "ensdata":
            address, ens_name, avatar_hint = await self._resolve_via_ensdata(token, kind)
        else:
            address, ens_name = await self._resolve_via_rpc(token, kind)

        token_name = token if kind == KIND_NAME else None
        balance = await self.fetch_balance(address)
        avatar_url = await self.choose_avatar(ens_name or token_name, address, hint=avatar_hint)
        identity = ResolvedIdentity(
            token=token,
            kind=kind,
            address=address,
            ens_name=ens_name,
            display_name=choose_display_name(ens_name, token_name, address),
            balance=balance,
            avatar_url=avatar_url,
        )
        logger.info(
            "IDENTITY_RESOLVED token=%s kind=%s address=%s name=%s strategy=%s",
            token,
            kind,
            address,
            ens_name,
            self.strategy,
        )
        return identity

    async def _resolve_via_rpc(self, token: str, kind: str) -> tuple[str, str | None]:
        if kind == KIND_NAME:
            address = await self.resolve_name(token)
            if not address:
                raise OgImageError(ErrorKind.NOT_FOUND, MSG_NAME_NOT_FOUND)
            return address, None
        return token, await self.reverse_lookup(token)

    async def _resolve_via_ensdata(self, token: str, kind: str) -> tuple[str, str | None, str | None]:
        record = await self.ensdata.lookup(token)
        if kind == KIND_NAME:
            if record is None or not record.address:
                raise OgImageError(ErrorKind.NOT_FOUND, MSG_ENSDATA_NOT_FOUND)
            return record.address, None, record.avatar_url
        if record is None:
            return token, None, None
        return token, record.name, record.avatar_url

    async def resolve_name(self, name: str) -> str | None:
        try:
            return await self.chain.resolve_name(name)
        except Exception as exc:
            logger.warning("ENS_RESOLVE_FAIL name=%s err=%s", name, exc)
            return None

    async def reverse_lookup(self, address: str) -> str | None:
        try:
            return await self.chain.reverse_lookup(address)
        except Exception as exc:
            logger.warning("ENS_REVERSE_FAIL address=%s err=%s", address, exc)
            return None

    async def fetch_balance(self, address: str) -> str:
        try:
            return format_ether(await self.chain.get_balance(address))
        except Exception as exc:
            logger.warning("BALANCE_FETCH_FAIL address=%s err=%s", address, exc)
            return DEFAULT_BALANCE

    async def choose_avatar(self, name: str | None, address: str, hint: str | None = None) -> str:
        if hint:
            return hint
        if name:
            url = avatar_service_url(name)
            result = await self.http.probe(url, source="ens_avatar")
            if result.ok:
                return url
            logger.info("AVATAR_FALLBACK name=%s status=%s err=%s", name, result.status, result.error)
        return identicon_data_url(address)
