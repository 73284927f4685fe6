"""Application configuration."""

import os
from pathlib import Path
from typing import Tuple

from dotenv import load_dotenv


def _load_dotenv_safe(dotenv_path: str | None = None, *, override: bool = False) -> None:
    """Load dotenv using UTF-8-SIG so BOM-prefixed files don't break first key parsing."""
    try:
        load_dotenv(dotenv_path=dotenv_path, override=override, encoding="utf-8-sig")
    except TypeError:
        # Older python-dotenv versions may not expose the `encoding` argument.
        load_dotenv(dotenv_path=dotenv_path, override=override)


# Load base environment first, then optional per-deployment override env file.
_load_dotenv_safe()
_OG_ENV_FILE = os.getenv("OG_ENV_FILE", "").strip()
if _OG_ENV_FILE:
    _og_env_path = Path(_OG_ENV_FILE).expanduser()
    if not _og_env_path.is_absolute():
        _og_env_path = (Path.cwd() / _og_env_path).resolve()
    if not _og_env_path.exists():
        raise FileNotFoundError(f"OG_ENV_FILE does not exist: {_og_env_path}")
    if not _og_env_path.is_file():
        raise IsADirectoryError(f"OG_ENV_FILE is not a file: {_og_env_path}")
    try:
        _load_dotenv_safe(str(_og_env_path), override=True)
    except (OSError, UnicodeError, ValueError) as exc:
        raise RuntimeError(f"Failed to load OG_ENV_FILE '{_og_env_path}': {exc}") from exc


def _parse_suffixes(raw: str) -> Tuple[str, ...]:
    out: list[str] = []
    for chunk in str(raw or "").split(","):
        item = chunk.strip().lower().lstrip(".")
        if item and item not in out:
            out.append(item)
    return tuple(out)


# Chain access
RPC_URL = os.getenv("RPC_URL", "https://ethereum.publicnode.com").strip()
RPC_TIMEOUT_SECONDS = max(3, int(os.getenv("RPC_TIMEOUT_SECONDS", "10")))

# Identity resolution
RESOLVER_STRATEGY = os.getenv("RESOLVER_STRATEGY", "rpc").strip().lower()
if RESOLVER_STRATEGY not in {"rpc", "ensdata"}:
    RESOLVER_STRATEGY = "rpc"
ENS_SUFFIXES = _parse_suffixes(os.getenv("ENS_SUFFIXES", "eth,xyz")) or ("eth", "xyz")
INPUT_MAX_LENGTH = max(1, int(os.getenv("INPUT_MAX_LENGTH", "100")))
ENSDATA_API_URL = os.getenv("ENSDATA_API_URL", "https://api.ensdata.net").rstrip("/")
ENS_AVATAR_URL_TEMPLATE = os.getenv("ENS_AVATAR_URL_TEMPLATE", "https://ensdata.net/media/avatar/{name}")
QR_URL_TEMPLATE = os.getenv(
    "QR_URL_TEMPLATE",
    "https://api.qrserver.com/v1/create-qr-code/?size={size}x{size}&data={data}",
)

# Outbound HTTP
HTTP_TIMEOUT_SECONDS = max(1.0, float(os.getenv("HTTP_TIMEOUT_SECONDS", "8")))
HTTP_CONNECTOR_LIMIT = max(1, int(os.getenv("HTTP_CONNECTOR_LIMIT", "20")))
HTTP_DEFAULT_CONCURRENCY = max(1, int(os.getenv("HTTP_DEFAULT_CONCURRENCY", "8")))
HTTP_USER_AGENT = os.getenv("HTTP_USER_AGENT", "address-vision-og/1.0")
HTTP_MAX_BODY_BYTES = max(1024, int(os.getenv("HTTP_MAX_BODY_BYTES", str(5 * 1024 * 1024))))

# Image output
OG_WIDTH = 1200
OG_HEIGHT = 630
OG_BRAND_TEXT = os.getenv("OG_BRAND_TEXT", "address.vision")
OG_CACHE_MAX_AGE = max(0, int(os.getenv("OG_CACHE_MAX_AGE", "86400")))
AVATAR_SIZE = 200
QR_SIZE = 330
FONT_PATH = os.getenv("FONT_PATH", "").strip()
FONT_BOLD_PATH = os.getenv("FONT_BOLD_PATH", "").strip()

# HTTP server
SERVER_HOST = os.getenv("SERVER_HOST", "0.0.0.0")
SERVER_PORT = int(os.getenv("SERVER_PORT", "8080"))
OG_ROUTE_PATH = os.getenv("OG_ROUTE_PATH", "/api/og")
OG_QUERY_PARAM = "addyOrEns"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_DIR = os.getenv("LOG_DIR", "logs")
APP_LOG_FILE = os.path.join(LOG_DIR, "app.log")
