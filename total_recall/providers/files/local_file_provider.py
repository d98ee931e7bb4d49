"""Local filesystem implementation of :class:`IFileProvider`."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import structlog

from total_recall.interfaces.file_provider import IFileProvider
from total_recall.utils.errors import IngestionError

logger = structlog.get_logger(logger_name=__name__)


class LocalFileProvider(IFileProvider):
    """Walks a directory tree and keeps files with an allowed extension.

    Exclusions are plain substrings matched case-insensitively against the
    path relative to *root*.  ``"node_modules"`` drops every file below any
    ``node_modules`` directory, and ``"dist"`` also drops ``distance.ts``.
    """

    def __init__(
        self,
        extensions: Sequence[str],
        excluded: Sequence[str] = (),
    ) -> None:
        self._extensions = {_normalize_extension(ext) for ext in extensions if ext}
        self._excluded = [e.lower() for e in excluded if e]

    def list_files(self, root: str, excluded: Sequence[str] | None = None) -> list[str]:
        root_path = Path(root).expanduser()
        if not root_path.is_dir():
            raise IngestionError(message=f"Directory not found: {root}")

        needles = self._excluded if excluded is None else [e.lower() for e in excluded if e]

        files: list[str] = []
        skipped = 0
        resolved = root_path.resolve()
        for path in sorted(resolved.rglob("*")):
            if not path.is_file():
                continue
            if path.suffix.lower() not in self._extensions:
                continue
            relative = path.relative_to(resolved).as_posix().lower()
            if any(needle in relative for needle in needles):
                skipped += 1
                continue
            files.append(str(path))

        logger.info(
            "files_enumerated",
            root=str(root_path),
            files=len(files),
            excluded=skipped,
        )
        return files


def _normalize_extension(ext: str) -> str:
    ext = ext.strip().lower()
    return ext if ext.startswith(".") else f".{ext}"
