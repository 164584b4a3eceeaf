import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from alert_relay.auth import build_authenticator
from alert_relay.config import Settings, settings
from alert_relay.exceptions import AppError
from alert_relay.exchange_api.relay import RelayExecutor
from alert_relay.middleware import IPAllowlistMiddleware
from alert_relay.routers import alert_router, proxy_router
from alert_relay.services.metrics_service import MetricsEmitter
from alert_relay.services.secret_store import SecretStore

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    """Root logging setup, called once at process start"""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    # httpx logs every request URL at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _wire_clients(app: FastAPI, config: Settings, client: httpx.AsyncClient) -> None:
    """Build the executor and metrics emitter around one shared HTTP client"""
    app.state.http_client = client
    app.state.executor = RelayExecutor(
        client,
        base_url=config.exchange_base_url,
        max_retries=config.max_retries,
        cooldown_seconds=config.cooldown_seconds,
    )
    app.state.metrics_emitter = (
        MetricsEmitter(client, config.metrics_url, broker=config.metrics_broker) if config.metrics_url else None
    )


def create_app(
    config: Settings,
    http_client: Optional[httpx.AsyncClient] = None,
    secret_store: Optional[SecretStore] = None,
) -> FastAPI:
    """
    Build the relay application.

    Args:
        config: Settings record, built once at process start
        http_client: Shared outbound client (created in lifespan when omitted)
        secret_store: Token store for auth_mode=token (file store from settings when omitted)
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_client = http_client is None
        if owns_client:
            _wire_clients(app, config, httpx.AsyncClient(timeout=config.request_timeout_seconds))
        logger.info(
            f"Relay started (auth_mode={config.auth_mode}, max_retries={config.max_retries}, "
            f"cooldown={max(config.cooldown_seconds, 1):g}s, metrics={'on' if config.metrics_url else 'off'})"
        )
        yield
        if owns_client:
            await app.state.http_client.aclose()
        logger.info("Relay stopped")

    app = FastAPI(title="Alert Relay", lifespan=lifespan)
    app.state.settings = config
    app.state.authenticator = build_authenticator(config, secret_store)
    if http_client is not None:
        _wire_clients(app, config, http_client)

    app.add_middleware(
        IPAllowlistMiddleware,
        allowed_ips=config.allowed_ips,
        header_name=config.client_ip_header,
    )

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
        else:
            logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
        return JSONResponse({"detail": exc.message}, status_code=exc.status_code)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    app.include_router(alert_router.router)
    if config.proxy_enabled:
        app.include_router(proxy_router.router)

    return app


app = create_app(settings)


def run() -> None:
    import uvicorn

    configure_logging(settings.log_level)
    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    run()
