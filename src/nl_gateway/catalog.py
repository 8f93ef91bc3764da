"""
Catalog Defaults
================

Static description of the business data sources the gateway is scoped to:
which warehouse schemas are visible, the canonical-to-physical table aliases,
the audited sources and their provenance columns, and the policy rules shown
to the LLM alongside the introspected schema.
"""

ALLOWED_SCHEMAS = [
    ("chat_rfb", "main"),
    ("chat_rfb", "dou"),
]

# Canonical names are what the prompts use; the physical tables are
# re-published monthly under versioned names.
TABLE_ALIASES = {
    "chat_rfb.main.empresas": "chat_rfb.main.empresas_2024_10",
    "chat_rfb.main.estabelecimentos": "chat_rfb.main.estabelecimentos_2024_10",
    "chat_rfb.main.socios": "chat_rfb.main.socios_2024_10",
    "chat_rfb.dou.atos": "chat_rfb.dou.atos_2024",
}

AUDITED_SOURCES = ["chat_rfb.dou."]

PROVENANCE_COLUMNS = ["source_url", "published_at", "source_line", "content_hash"]

POLICY_TEXT = """Rules:
- Use only the tables listed above, with their fully qualified names.
- cnpj_basico is the 8-digit company root, stored as text with leading zeros.
- Search company names with upper(razao_social) LIKE '%TERM%'.
- uf is the two-letter state code; situacao_cadastral '02' means active.
- To count companies use COUNT(DISTINCT cnpj_basico), never COUNT(*) over
  estabelecimentos.
- capital_social is in BRL.
- Every query on chat_rfb.dou.* MUST select source_url, published_at,
  source_line and content_hash, so each record can be traced to the
  official gazette page it came from.
- Select only the columns needed to answer; avoid SELECT *.
- Non-aggregate queries must end with LIMIT."""
