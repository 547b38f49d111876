"""Base classes for structural analyzers."""

from abc import ABC, abstractmethod
from typing import ClassVar, Tuple

from ..models import CodeMetadata


class Analyzer(ABC):
    """Contract for analyzers that turn source text into structural metadata."""

    languages: ClassVar[Tuple[str, ...]] = ()

    def supports(self, language: str) -> bool:
        """Return True when this analyzer handles the given language tag."""
        return language in self.languages

    @abstractmethod
    def analyze(self, code: str, file_name: str, language: str) -> CodeMetadata:
        """Produce metadata for one source file without raising on malformed input."""
