"""Entry point for the address.vision OG image service."""

import argparse
import asyncio
import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

import config
from render.og_image import build_og_image
from resolver.chain import get_chain_client
from resolver.identity import IdentityResolver
from server.og_server import OgImageServer
from utils.http_client import close_http_client, get_http_client


def configure_logging() -> None:
    os.makedirs(config.LOG_DIR, exist_ok=True)
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    file_handler = RotatingFileHandler(config.APP_LOG_FILE, maxBytes=1_000_000, backupCount=5, encoding="utf-8")
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(getattr(logging, config.LOG_LEVEL.upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(file_handler)
    root.addHandler(console_handler)

    # RPC request bodies are noisy at DEBUG.
    logging.getLogger("web3").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


logger = logging.getLogger(__name__)


async def serve() -> None:
    server = OgImageServer()
    await server.start()
    try:
        await asyncio.Event().wait()
    finally:
        await server.stop()


async def render_once(token: str, out_path: Path) -> Path:
    http = get_http_client()
    try:
        resolver = IdentityResolver(get_chain_client(), http)
        identity = await resolver.resolve(token)
        png = await build_og_image(identity, http)
    finally:
        await close_http_client()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(png)
    logger.info("Wrote %s for %s (%s)", out_path, token, identity.display_name)
    return out_path


def main() -> None:
    parser = argparse.ArgumentParser(description="address.vision OG image service")
    parser.add_argument("--render", metavar="ADDY_OR_ENS", help="render one image to --out instead of serving")
    parser.add_argument("--out", default="og.png")
    args = parser.parse_args()

    configure_logging()
    if args.render:
        asyncio.run(render_once(args.render, Path(args.out)))
        return
    try:
        asyncio.run(serve())
    except KeyboardInterrupt:
        logger.info("OG image server stopped")


if __name__ == "__main__":
    main()
