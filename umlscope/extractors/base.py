"""Base class for language extractors."""

from abc import ABC, abstractmethod
from pathlib import PurePosixPath
from typing import Tuple

from ..models import ExtractionResult


class Extractor(ABC):
    """Contract for turning one file's source text into type entities.

    Implementations must not raise on malformed input: syntax problems are
    reported through ``ExtractionResult.errors``.
    """

    language: str = ""
    extensions: Tuple[str, ...] = ()
    display_name: str = ""

    @abstractmethod
    def extract(self, source: str, file_id: str) -> ExtractionResult:
        """Extract classes and interfaces declared in ``source``."""

    def can_extract(self, path: str) -> bool:
        return file_extension(path) in self.extensions


def file_extension(path: str) -> str:
    """Lower-case extension without the dot; empty when there is none."""
    suffix = PurePosixPath(path.replace("\\", "/")).suffix
    return suffix[1:].lower() if suffix else ""
