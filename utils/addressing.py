"""Address and ENS name helpers."""

from __future__ import annotations

import re
from typing import Iterable

from web3 import Web3

import config

KIND_ADDRESS = "address"
KIND_NAME = "name"

HEX_ADDRESS_PATTERN = re.compile(r"0x[0-9a-fA-F]{40}")


def is_address(value: str | None) -> bool:
    """Strict `0x` + 40 hex check; anything not all-lowercase must match its EIP-55 checksum."""
    raw = str(value or "")
    if not HEX_ADDRESS_PATTERN.fullmatch(raw):
        return False
    if raw == raw.lower():
        return True
    try:
        return Web3.to_checksum_address(raw) == raw
    except (TypeError, ValueError):
        return False


def ens_suffix_pattern(suffixes: Iterable[str] | None = None) -> re.Pattern[str]:
    items = [re.escape(s) for s in (suffixes if suffixes is not None else config.ENS_SUFFIXES) if s]
    return re.compile(r"\.(" + "|".join(items) + r")$")


def is_ens_name(value: str | None, suffixes: Iterable[str] | None = None) -> bool:
    if not value:
        return False
    return bool(ens_suffix_pattern(suffixes).search(str(value)))


def classify_token(value: str | None, suffixes: Iterable[str] | None = None) -> str | None:
    """Return KIND_NAME, KIND_ADDRESS or None when the token is neither."""
    if is_ens_name(value, suffixes):
        return KIND_NAME
    if is_address(value):
        return KIND_ADDRESS
    return None


def crop_address(address: str | None) -> str:
    raw = str(address or "")
    return f"{raw[:6]}...{raw[-4:]}"


def to_checksum(address: str) -> str:
    return Web3.to_checksum_address(address)
