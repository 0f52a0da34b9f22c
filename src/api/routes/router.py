"""Agregador de rotas — registra todos os routers da API.

Uso:
    from api.routes import create_api_router

    app = FastAPI()
    app.include_router(create_api_router())
"""

from __future__ import annotations

from fastapi import APIRouter

from api.routes.admin.router import router as admin_router
from api.routes.categories.router import router as categories_router
from api.routes.health.router import router as health_router
from api.routes.sync.router import router as sync_router
from api.routes.webhooks.router import router as webhooks_router


def create_api_router() -> APIRouter:
    """Cria router principal com todos os sub-routers registrados.

    Returns:
        APIRouter configurado com todos os endpoints.
    """
    api_router = APIRouter()

    # Health checks (sem prefixo para /health e /ready na raiz)
    api_router.include_router(health_router, tags=["health"])

    api_router.include_router(webhooks_router, prefix="/webhooks", tags=["webhooks"])
    api_router.include_router(sync_router, prefix="/sync", tags=["sync"])
    api_router.include_router(categories_router, prefix="/categories", tags=["categories"])
    api_router.include_router(admin_router, prefix="/admin", tags=["admin"])

    return api_router
