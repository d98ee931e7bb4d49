"""Abstract base class for source-file enumeration."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence


# Concrete implementation: LocalFileProvider (total_recall/providers/files/)
class IFileProvider(ABC):
    """Contract for finding the source files that should be indexed."""

    @abstractmethod
    def list_files(self, root: str, excluded: Sequence[str] | None = None) -> list[str]:
        """Return absolute paths of indexable files under *root*.

        Parameters
        ----------
        root:
            Directory to walk recursively.
        excluded:
            Path substrings to skip, compared case-insensitively.  ``None``
            uses the provider's configured defaults.

        Raises
        ------
        total_recall.utils.errors.IngestionError
            If *root* does not exist or is not a directory.
        """
