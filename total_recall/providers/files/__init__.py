"""Source-file enumeration."""

from total_recall.providers.files.local_file_provider import LocalFileProvider

__all__ = ["LocalFileProvider"]
