"""OG image HTTP server."""

from __future__ import annotations

import json
import logging
import time

from aiohttp import web

import config
from render.og_image import build_og_image
from resolver.chain import get_chain_client
from resolver.errors import ErrorKind, OgImageError
from resolver.identity import IdentityResolver, ResolvedIdentity
from utils.http_client import SharedHttpClient, get_http_client
from utils.log_contracts import og_request_event

logger = logging.getLogger(__name__)

MSG_RENDER_FAILED = "Failed to generate the image"


class OgImageServer:
    def __init__(
        self,
        resolver: IdentityResolver | None = None,
        http: SharedHttpClient | None = None,
        host: str | None = None,
        port: int | None = None,
    ) -> None:
        self.http = http or get_http_client()
        self.resolver = resolver or IdentityResolver(get_chain_client(), self.http)
        self.host = host or config.SERVER_HOST
        self.port = int(port or config.SERVER_PORT)
        self.runner: web.AppRunner | None = None
        self.site: web.TCPSite | None = None

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get(config.OG_ROUTE_PATH, self._handle_og)
        app.on_cleanup.append(self._on_cleanup)
        return app

    async def start(self) -> None:
        self.runner = web.AppRunner(self.build_app())
        await self.runner.setup()
        self.site = web.TCPSite(self.runner, self.host, self.port)
        await self.site.start()
        logger.info(
            "OG image server listening on %s:%s%s strategy=%s",
            self.host,
            self.port,
            config.OG_ROUTE_PATH,
            self.resolver.strategy,
        )

    async def stop(self) -> None:
        if self.runner:
            await self.runner.cleanup()
            self.runner = None

    async def _on_cleanup(self, app: web.Application) -> None:  # noqa: ARG002
        logger.info("HTTP_STATS %s", json.dumps(self.http.snapshot_stats(), ensure_ascii=False))
        await self.http.close()

    def _image_headers(self) -> dict[str, str]:
        if config.OG_CACHE_MAX_AGE > 0:
            return {"Cache-Control": f"public, max-age={config.OG_CACHE_MAX_AGE}"}
        return {}

    async def _handle_og(self, request: web.Request) -> web.Response:
        started = time.perf_counter()
        raw = request.query.get(config.OG_QUERY_PARAM)
        identity: ResolvedIdentity | None = None
        error_kind = ""
        try:
            identity = await self.resolver.resolve(raw)
            png = await build_og_image(identity, self.http)
            response = web.Response(body=png, content_type="image/png", headers=self._image_headers())
        except OgImageError as exc:
            error_kind = exc.kind.value
            if exc.status >= 500:
                logger.error("OG_RENDER_FAIL token=%s err=%s", raw, exc)
                response = web.Response(text=MSG_RENDER_FAILED, status=500)
            else:
                response = web.Response(text=exc.message, status=exc.status)
        except Exception:
            logger.exception("OG_UNHANDLED_FAIL token=%s", raw)
            error_kind = ErrorKind.RENDER.value
            response = web.Response(text=MSG_RENDER_FAILED, status=500)

        event = og_request_event(
            token=raw,
            status=response.status,
            kind=identity.kind if identity else None,
            address=identity.address if identity else None,
            strategy=self.resolver.strategy,
            error_kind=error_kind,
            elapsed_ms=(time.perf_counter() - started) * 1000.0,
        )
        logger.info("OG_REQUEST %s", json.dumps(event, ensure_ascii=False))
        return response
