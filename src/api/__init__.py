"""API — camada de borda e adapters de plataformas.

Responsabilidades:
- Receber webhooks e lotes de sincronização
- Converter payloads nativos (Hotmart, Nuvemshop, WooCommerce) para o
  modelo unificado
- Expor consultas de categorias e endpoints operacionais

Subpastas:
- normalizers/: adapters por plataforma + registro
- routes/: endpoints HTTP (webhooks, sync, categorias, admin, health)

NÃO PODE conter: regras de reconciliação, acesso direto a stores.
"""
