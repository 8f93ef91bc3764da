"""
Dataset Metadata
================

Static source descriptions attached to answers, chosen by the physical tables
a statement references, and the provenance sample extracted from results.
"""

from typing import Any, Iterable, Optional

from nl_gateway.catalog import PROVENANCE_COLUMNS
from nl_gateway.models import DatasetMeta

_CNPJ = DatasetMeta(
    source="Receita Federal do Brasil - Cadastro Nacional da Pessoa Juridica",
    description="Open CNPJ registry data published under Lei 12.527/2011",
    period="2024-10",
    url="https://dados.gov.br/dados/conjuntos-dados/cadastro-nacional-da-pessoa-juridica---cnpj",
)

DATASETS: dict[str, DatasetMeta] = {
    "chat_rfb.main.empresas_2024_10": _CNPJ,
    "chat_rfb.main.estabelecimentos_2024_10": _CNPJ,
    "chat_rfb.main.socios_2024_10": _CNPJ,
    "chat_rfb.dou.atos_2024": DatasetMeta(
        source="Imprensa Nacional - Diario Oficial da Uniao",
        description="Acts published in the official gazette, section 3",
        period="2024",
        url="https://www.in.gov.br/leiturajornal",
    ),
}


def select_dataset_meta(
    tables: Iterable[str],
    registry: dict[str, DatasetMeta] | None = None,
) -> Optional[DatasetMeta]:
    """Metadata for the first referenced table that has an entry."""
    registry = DATASETS if registry is None else registry
    lookup = {name.lower(): meta for name, meta in registry.items()}
    for table in tables:
        meta = lookup.get(table.lower())
        if meta is not None:
            return meta
    return None


def extract_audit_sample(
    rows: list[dict[str, Any]],
    columns: Iterable[str] = PROVENANCE_COLUMNS,
) -> Optional[dict[str, Any]]:
    """
    First row carrying every provenance column with a value, projected to
    those columns. None when no row qualifies.
    """
    columns = list(columns)
    for row in rows:
        lowered = {str(k).lower(): v for k, v in row.items()}
        sample = {col: lowered.get(col.lower()) for col in columns}
        if all(value is not None for value in sample.values()):
            return sample
    return None
