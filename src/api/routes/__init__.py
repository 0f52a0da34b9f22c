"""Rotas HTTP da API — adapters de entrada.

Responsabilidades:
- Definir endpoints HTTP (webhooks, sync, categorias, admin, health)
- Montar o envelope da requisição e delegar ao pipeline
- Traduzir resultados em respostas HTTP

Estrutura:
- routes/webhooks/: POST /webhooks/{platform}
- routes/sync/: POST /sync/{platform}
- routes/categories/: árvore, caminho e estatísticas de categorias
- routes/admin/: rate limits, conflitos e dead-letters
- routes/health/: health checks e readiness

Agregação:
- router.py: registra todos os routers no app principal
"""

from __future__ import annotations

from api.routes.router import create_api_router

__all__ = ["create_api_router"]
