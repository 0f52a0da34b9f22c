"""Entrypoint da camada anti-corrupção de webhooks de e-commerce.

Inicializa o bootstrap e expõe a aplicação ASGI (FastAPI).

Uso (produção):
    uvicorn app.app:app --host 0.0.0.0 --port 8080

Uso (desenvolvimento):
    uvicorn app.app:app --reload --host 0.0.0.0 --port 8080

Cloud Run:
    O container deve expor a porta 8080 (padrão do Cloud Run).
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from api.routes import create_api_router
from app.bootstrap import initialize_app, validate_runtime_settings
from app.bootstrap.clients import create_async_redis_client, create_firestore_client
from app.bootstrap.dependencies import build_container
from config.logging import get_logger
from config.settings import get_base_settings, get_store_settings

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

# Inicializar logging ANTES de qualquer import que use logger
initialize_app()

logger = get_logger(__name__)

SHUTDOWN_DRAIN_SECONDS = 30.0


def _attach_clients(app: FastAPI) -> None:
    """Expõe os clientes dos backends selecionados para o readiness probe."""
    stores = get_store_settings()
    app.state.redis_client = None
    app.state.firestore_client = None

    if stores.counter_backend == "redis":
        app.state.redis_client = create_async_redis_client()
    if "firestore" in (stores.entity_backend, stores.failure_backend):
        app.state.firestore_client = create_firestore_client()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Gerencia ciclo de vida da aplicação.

    Startup:
    - Valida configurações (estrito em staging/production)
    - Cria stores e serviços, inicia workers de reconciliação

    Shutdown:
    - Drena fila e retries pendentes (sobras vão para dead-letter)
    - Fecha conexão Redis
    """
    service = get_base_settings().service_name
    logger.info("app_starting", extra={"service": service})
    validate_runtime_settings()

    _attach_clients(app)
    container = build_container()
    container.start()
    app.state.container = container

    yield

    logger.info("app_shutting_down", extra={"service": service})
    await container.shutdown(timeout_seconds=SHUTDOWN_DRAIN_SECONDS)
    redis_client = getattr(app.state, "redis_client", None)
    if redis_client is not None:
        await redis_client.aclose()


def create_app() -> FastAPI:
    """Cria e configura a aplicação FastAPI.

    Returns:
        Aplicação FastAPI configurada.
    """
    base = get_base_settings()
    fastapi_app = FastAPI(
        title="Commerce ACL",
        description="Camada anti-corrupção para webhooks de Hotmart, Nuvemshop e WooCommerce",
        version="1.0.0",
        lifespan=lifespan,
        docs_url=None if base.is_production else "/docs",
        redoc_url=None,
        openapi_url=None if base.is_production else "/openapi.json",
    )

    fastapi_app.include_router(create_api_router())

    logger.info("app_configured", extra={"service": base.service_name})

    return fastapi_app


# Aplicação ASGI exposta para uvicorn
app = create_app()


def main() -> None:
    """Entrypoint para execução direta (desenvolvimento)."""
    import uvicorn

    logger.info("app_starting_dev_server")
    uvicorn.run(
        "app.app:app",
        host="0.0.0.0",  # noqa: S104
        port=8080,
        reload=True,
    )


if __name__ == "__main__":
    main()
