"""Settings do Firestore.

Configurações para Google Cloud Firestore (entidades e canal de falhas).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class FirestoreSettings:
    """Configurações do Firestore.

    Attributes:
        project_id: ID do projeto GCP (usa GCP_PROJECT se não definido)
        collection_entities: Collection das entidades unificadas
        collection_dead_letters: Collection de itens dead-letter
        collection_conflicts: Collection de conflitos pendentes de revisão
    """

    project_id: str = ""
    collection_entities: str = "unified_entities"
    collection_dead_letters: str = "dead_letters"
    collection_conflicts: str = "conflict_reviews"

    def validate(self, gcp_project: str) -> list[str]:
        """Valida configurações do Firestore.

        Args:
            gcp_project: Projeto GCP padrão para fallback.

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []
        if not (self.project_id or gcp_project):
            errors.append("FIRESTORE_PROJECT_ID ou GCP_PROJECT deve estar configurado")

        names = (self.collection_entities, self.collection_dead_letters, self.collection_conflicts)
        if len(set(names)) != len(names):
            errors.append("Collections do Firestore devem ter nomes distintos")

        return errors


def _load_firestore_from_env() -> FirestoreSettings:
    """Carrega FirestoreSettings de variáveis de ambiente."""
    return FirestoreSettings(
        project_id=os.getenv("FIRESTORE_PROJECT_ID", ""),
        collection_entities=os.getenv("FIRESTORE_COLLECTION_ENTITIES", "unified_entities"),
        collection_dead_letters=os.getenv("FIRESTORE_COLLECTION_DEAD_LETTERS", "dead_letters"),
        collection_conflicts=os.getenv("FIRESTORE_COLLECTION_CONFLICTS", "conflict_reviews"),
    )


@lru_cache(maxsize=1)
def get_firestore_settings() -> FirestoreSettings:
    """Retorna instância cacheada de FirestoreSettings."""
    return _load_firestore_from_env()
