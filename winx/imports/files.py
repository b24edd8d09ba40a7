"""Upload store: persists CSV uploads until their import job has run."""

from __future__ import annotations

import os
import uuid
from pathlib import Path
from typing import TextIO

from winx.imports.errors import FileReadError

IMPORT_SUBDIR = "imports"


class UploadStore:
    """Files live under ``<base_dir>/imports``; references are relative paths."""

    def __init__(self, base_dir: str | os.PathLike[str]) -> None:
        self.base_dir = Path(base_dir)

    def path_for(self, reference: str) -> Path:
        root = self.base_dir.resolve()
        path = (root / reference).resolve()
        if root not in path.parents:
            raise ValueError(f"Reference {reference!r} escapes the upload directory.")
        return path

    def save(self, contents: bytes, suffix: str = ".csv") -> str:
        """Write *contents* under a random name and return its reference."""
        directory = self.base_dir / IMPORT_SUBDIR
        directory.mkdir(parents=True, exist_ok=True)

        # UUID-only filename (never the client's) to prevent path traversal
        reference = f"{IMPORT_SUBDIR}/{uuid.uuid4().hex}{suffix}"
        with open(self.path_for(reference), "wb") as f:
            f.write(contents)
        return reference

    def open_for_read(self, reference: str) -> TextIO:
        """Open a stored upload as text for lazy, line-by-line reading."""
        try:
            return open(self.path_for(reference), encoding="utf-8-sig", newline="")
        except (OSError, ValueError) as exc:
            raise FileReadError(f"Upload {reference!r} cannot be opened: {exc}") from exc

    def exists(self, reference: str) -> bool:
        return self.path_for(reference).exists()

    def delete(self, reference: str) -> None:
        self.path_for(reference).unlink(missing_ok=True)
