from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Mapping, Optional

from .tables import TextTable

# Managed file name -> table, for one language.
LanguageTables = Mapping[str, TextTable]


class Corpus:
    """Parsed tables of every language read so far.

    A language is published once, as a whole, by the coordinating thread.
    Published mappings are read-only, so pair workers read them without
    locking. Publishing a language again replaces its tables.
    """

    def __init__(self) -> None:
        self._languages: Dict[str, LanguageTables] = {}

    def publish(self, language: str, tables: Mapping[str, TextTable]) -> None:
        frozen = {
            file_name: table if isinstance(table, MappingProxyType) else MappingProxyType(dict(table))
            for file_name, table in tables.items()
        }
        self._languages[language] = MappingProxyType(frozen)

    def has_language(self, language: str) -> bool:
        return language in self._languages

    def table(self, file_name: str, language: str) -> Optional[TextTable]:
        tables = self._languages.get(language)
        if tables is None:
            return None
        return tables.get(file_name)

    def __contains__(self, language: object) -> bool:
        return language in self._languages
