"""Exceptions raised while building bilingual paks."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence


class BilingualGeneratorError(Exception):
    """Base class for every failure reported by the generator."""


class InvalidBilingualSetError(BilingualGeneratorError):
    pass


class GamePathNotFoundError(BilingualGeneratorError):
    pass


class PakExtractionError(BilingualGeneratorError):
    def __init__(self, language: str, path: Path, reason: str) -> None:
        self.language = language
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to extract {path} for {language}: {reason}")


class TableParseError(BilingualGeneratorError):
    def __init__(self, member: str, language: str, reason: str) -> None:
        self.member = member
        self.language = language
        self.reason = reason
        super().__init__(f"XML error in {member} for language {language}: {reason}")


class XmlWriteError(BilingualGeneratorError):
    pass


class PakCreationError(BilingualGeneratorError):
    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to create pak {path}: {reason}")


class TaskJoinError(BilingualGeneratorError):
    pass


class MissingLanguageDataError(BilingualGeneratorError):
    def __init__(self, label: str, missing: Sequence[str]) -> None:
        self.label = label
        self.missing = list(missing)
        super().__init__(
            f"Pair {label} was not processed, missing language data: {', '.join(self.missing)}"
        )


class GenerationFailed(BilingualGeneratorError):
    """Raised at the end of a run that hit at least one error.

    ``errors`` keeps every failure in the order it was met; the message is
    the first of them. Pairs that did finish are listed in ``completed``.
    """

    def __init__(
        self,
        errors: Sequence[BilingualGeneratorError],
        completed: Optional[List[str]] = None,
        pending: Optional[List[str]] = None,
    ) -> None:
        self.errors = list(errors)
        self.completed = list(completed or [])
        self.pending = list(pending or [])
        first = self.errors[0] if self.errors else None
        super().__init__(str(first) if first else "Generation failed.")
