"""Ethereum mainnet RPC access: balances and ENS lookups."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from web3 import HTTPProvider, Web3

import config
from resolver.errors import ChainRPCError
from utils.addressing import to_checksum

logger = logging.getLogger(__name__)

WEI_PER_ETHER = 10**18


def format_ether(wei: int) -> str:
    """Whole-ether decimal string without trailing zeros, e.g. 1500000000000000000 -> "1.5"."""
    value = int(wei)
    sign = "-" if value < 0 else ""
    whole, frac = divmod(abs(value), WEI_PER_ETHER)
    frac_text = str(frac).rjust(18, "0").rstrip("0")
    if frac_text:
        return f"{sign}{whole}.{frac_text}"
    return f"{sign}{whole}"


class ChainClient:
    def __init__(self, rpc_url: str | None = None, timeout_seconds: float | None = None) -> None:
        self.rpc_url = str(rpc_url or config.RPC_URL)
        self.timeout_seconds = float(timeout_seconds or config.RPC_TIMEOUT_SECONDS)
        if not self.rpc_url:
            raise ChainRPCError("RPC_URL is not configured.")
        self.web3 = Web3(HTTPProvider(self.rpc_url, request_kwargs={"timeout": self.timeout_seconds}))

    async def _call(self, call: Callable[[], Any], op_name: str) -> Any:
        try:
            return await asyncio.to_thread(call)
        except Exception as exc:  # pragma: no cover - network/runtime dependent
            raise ChainRPCError(f"{op_name} failed: {exc}") from exc

    async def get_balance(self, address: str) -> int:
        checksum = to_checksum(address)
        return int(await self._call(lambda: self.web3.eth.get_balance(checksum), "eth_getBalance"))

    async def resolve_name(self, name: str) -> str | None:
        address = await self._call(lambda: self.web3.ens.address(name), "ens_address")
        return str(address) if address else None

    async def reverse_lookup(self, address: str) -> str | None:
        checksum = to_checksum(address)
        name = await self._call(lambda: self.web3.ens.name(checksum), "ens_name")
        return str(name) if name else None


_chain_client: ChainClient | None = None


def get_chain_client() -> ChainClient:
    """Process-wide client; built on first use and reused across requests."""
    global _chain_client
    if _chain_client is None:
        _chain_client = ChainClient()
        logger.info("Chain client ready rpc=%s timeout=%ss", _chain_client.rpc_url, _chain_client.timeout_seconds)
    return _chain_client
