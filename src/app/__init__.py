"""App — coração do sistema: orquestração e infraestrutura.

Subpastas:
- bootstrap/: composition root (factories, inicialização, wiring)
- domain/: modelo unificado, eventos, envelopes e registros de falha
- services/: pipeline de ingestão, reconciliação, rate limit, hierarquia
- infra/: implementações concretas de IO (Redis, Firestore, HTTP)
- protocols/: contratos/interfaces
- observability/: logs estruturados, correlation_id, métricas

Padrão: app executa; api adapta; config parametriza; utils apoia.
"""
