from __future__ import annotations

from pathlib import Path

from .exceptions import WriteError


def write_text(path: Path, text: str) -> None:
    """Write UTF-8 text, creating parent directories; existing files are overwritten."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        raise WriteError(f"failed to write {path}: {e}") from e
