"""
Table Aliases
=============

Rewrites canonical table names (the stable names shown to the LLM) to the
physical, versioned names that exist in the warehouse.
"""

import re

from nl_gateway.sqltext import identifier_text, map_unquoted


def _name_pattern(names) -> re.Pattern | None:
    if not names:
        return None
    # Longest first so a.b.cd wins over a.b.c
    ordered = sorted(names, key=len, reverse=True)
    body = "|".join(re.escape(name) for name in ordered)
    return re.compile(rf"(?<![\w.])({body})(?!\w)", re.IGNORECASE)


class TableAliasRewriter:
    """Whole-word, case-insensitive canonical-to-physical table rewriting."""

    def __init__(self, mapping: dict[str, str] | None = None) -> None:
        """
        Args:
            mapping: canonical qualified name -> physical qualified name

        Raises:
            ValueError: if a physical name would itself be rewritten, which
                would make the rewrite non-idempotent
        """
        self.mapping = {k.lower(): v for k, v in (mapping or {}).items()}
        self._pattern = _name_pattern(self.mapping)
        self._reverse = {v.lower(): k for k, v in self.mapping.items()}

        for canonical, physical in self.mapping.items():
            if physical.lower() == canonical:
                continue
            if self._pattern.search(physical):
                raise ValueError(
                    f"Physical table {physical!r} contains a canonical name; "
                    "the alias map would not be idempotent"
                )

    @property
    def physical_names(self) -> list[str]:
        return list(self.mapping.values())

    def rewrite(self, sql: str) -> str:
        """Replace canonical names outside quoted regions, in a single pass."""
        if self._pattern is None:
            return sql

        def replace(match: re.Match) -> str:
            return self.mapping[match.group(1).lower()]

        return map_unquoted(sql, lambda part: self._pattern.sub(replace, part))

    def canonical_name(self, physical: str) -> str:
        """Canonical name for a physical table, or the name itself."""
        return self._reverse.get(physical.lower(), physical)


def referenced_tables(sql: str, known: list[str]) -> tuple[str, ...]:
    """Known qualified table names mentioned in the statement, in sorted order."""
    pattern = _name_pattern(known)
    if pattern is None:
        return ()
    by_lower = {name.lower(): name for name in known}
    found = {by_lower[m.lower()] for m in pattern.findall(identifier_text(sql))}
    return tuple(sorted(found))
