"""Writing rendered artifacts to the output directory."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from ..core.errors import OutputWriteError


def ensure_parent(path: Path) -> None:
    """Ensure parent directories exist for the given path.

    Args:
        path: Path whose parent directories should be created
    """
    path.parent.mkdir(parents=True, exist_ok=True)


def atomic_write_text(path: Path, text: str, mode: int = 0o644) -> None:
    """Write UTF-8 text to a file atomically using a temporary file.

    Args:
        path: Destination file path
        text: Text content to write
        mode: File permissions (octal)
    """
    ensure_parent(path)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as tmp:
            tmp.write(text)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_name, path)
        os.chmod(path, mode)
    finally:
        if os.path.exists(tmp_name):
            try:
                os.remove(tmp_name)
            except OSError:
                pass


def artifact_path(output_dir: Path, filename: str) -> Path:
    """Resolve an artifact filename inside the output directory.

    Raises:
        OutputWriteError: The filename is empty or escapes the directory.
    """
    root = Path(output_dir).resolve()
    target = (root / filename.lstrip("/\\")).resolve()
    if not filename.strip() or target == root or root not in target.parents:
        raise OutputWriteError(f"Refusing to write artifact {filename!r} outside {root}")
    return target


def write_artifact(output_dir: Path, filename: str, html: str) -> Path:
    """Write one rendered artifact and return its path.

    Raises:
        OutputWriteError: The file cannot be written.
    """
    path = artifact_path(output_dir, filename)
    try:
        atomic_write_text(path, html)
    except OSError as e:
        raise OutputWriteError(f"Failed to write {path}: {e}") from e
    return path
