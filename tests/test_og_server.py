from __future__ import annotations

import io
import unittest
from unittest.mock import patch

from aiohttp import web
from aiohttp.test_utils import AioHTTPTestCase
from PIL import Image

import config
from resolver.errors import ErrorKind, OgImageError
from resolver.identity import IdentityResolver
from server.og_server import OgImageServer
from utils.http_client import HttpResult

VITALIK = "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"
PLAIN = "0x1234567890abcdef1234567890abcdef12345678"


class FakeChain:
    def __init__(self) -> None:
        self.resolved: list[str] = []

    async def get_balance(self, address: str) -> int:  # noqa: ARG002
        raise RuntimeError("rpc unavailable")

    async def resolve_name(self, name: str) -> str | None:
        self.resolved.append(name)
        return {"vitalik.eth": VITALIK}.get(name)

    async def reverse_lookup(self, address: str) -> str | None:  # noqa: ARG002
        return None


class OfflineHttp:
    def snapshot_stats(self, reset: bool = False) -> dict:  # noqa: ARG002
        return {}

    async def probe(self, url: str, *, source: str = "default") -> HttpResult:  # noqa: ARG002
        return HttpResult(ok=False, status=404, data=None, error="http_status_404")

    async def get_bytes(self, url: str, *, source: str = "default", **kwargs) -> HttpResult:  # noqa: ARG002
        return HttpResult(ok=False, status=0, data=None, error="http_error:offline")

    async def close(self) -> None:
        return None


class OgServerTests(AioHTTPTestCase):
    async def get_application(self) -> web.Application:
        self.chain = FakeChain()
        http = OfflineHttp()
        resolver = IdentityResolver(self.chain, http, strategy="rpc")  # type: ignore[arg-type]
        self.og_server = OgImageServer(resolver=resolver, http=http)  # type: ignore[arg-type]
        return self.og_server.build_app()

    async def test_missing_parameter_is_400(self) -> None:
        resp = await self.client.get(config.OG_ROUTE_PATH)
        self.assertEqual(resp.status, 400)
        self.assertEqual(await resp.text(), "Missing 'addyOrEns' query parameter")

    async def test_invalid_parameter_is_400(self) -> None:
        resp = await self.client.get(config.OG_ROUTE_PATH, params={"addyOrEns": "notanaddress"})
        self.assertEqual(resp.status, 400)
        self.assertEqual(await resp.text(), "Invalid address or ENS")

    async def test_uppercase_hex_prefix_is_400(self) -> None:
        resp = await self.client.get(
            config.OG_ROUTE_PATH, params={"addyOrEns": "0Xd8da6bf26964aef9d7eed9e03e53415d37aa96045"}
        )
        self.assertEqual(resp.status, 400)
        self.assertEqual(await resp.text(), "Invalid address or ENS")

    async def test_unknown_name_is_404(self) -> None:
        resp = await self.client.get(config.OG_ROUTE_PATH, params={"addyOrEns": "ghost.eth"})
        self.assertEqual(resp.status, 404)
        self.assertEqual(await resp.text(), "ENS name not found")
        self.assertEqual(self.chain.resolved, ["ghost.eth"])

    async def test_name_renders_png_with_cache_header(self) -> None:
        resp = await self.client.get(config.OG_ROUTE_PATH, params={"addyOrEns": "vitalik.eth"})
        self.assertEqual(resp.status, 200)
        self.assertEqual(resp.content_type, "image/png")
        self.assertEqual(resp.headers.get("Cache-Control"), f"public, max-age={config.OG_CACHE_MAX_AGE}")
        body = await resp.read()
        with Image.open(io.BytesIO(body)) as img:
            self.assertEqual(img.size, (1200, 630))

    async def test_address_renders_without_name_resolution(self) -> None:
        resp = await self.client.get(config.OG_ROUTE_PATH, params={"addyOrEns": PLAIN})
        self.assertEqual(resp.status, 200)
        self.assertEqual(self.chain.resolved, [])

    async def test_cache_header_can_be_disabled(self) -> None:
        with patch.object(config, "OG_CACHE_MAX_AGE", 0):
            resp = await self.client.get(config.OG_ROUTE_PATH, params={"addyOrEns": PLAIN})
        self.assertEqual(resp.status, 200)
        self.assertNotIn("Cache-Control", resp.headers)

    async def test_render_error_is_500(self) -> None:
        async def failing_build(identity, http):  # noqa: ARG001
            raise OgImageError(ErrorKind.RENDER, "Failed to generate the image", cause=OSError("font"))

        with patch("server.og_server.build_og_image", failing_build):
            resp = await self.client.get(config.OG_ROUTE_PATH, params={"addyOrEns": PLAIN})
        self.assertEqual(resp.status, 500)
        self.assertEqual(await resp.text(), "Failed to generate the image")

    async def test_unexpected_error_is_500(self) -> None:
        async def exploding_resolve(raw):  # noqa: ARG001
            raise KeyError("boom")

        with patch.object(self.og_server.resolver, "resolve", exploding_resolve):
            resp = await self.client.get(config.OG_ROUTE_PATH, params={"addyOrEns": PLAIN})
        self.assertEqual(resp.status, 500)
        self.assertEqual(await resp.text(), "Failed to generate the image")


if __name__ == "__main__":
    unittest.main()
