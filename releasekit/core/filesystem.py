"""
File system helpers for releasekit.

Artifacts are placed with a temp-file-plus-rename discipline so that a
destination path is either left untouched or holds the complete, verified
content. It is never observed half written.
"""

import logging
import os
import stat
import tempfile
from pathlib import Path
from typing import Optional, Union

from .exceptions import FilesystemError

logger = logging.getLogger(__name__)


def _default_mode(file_path: Path) -> int:
    """Mode of the file being replaced, else 0o666 filtered by the umask."""
    if file_path.exists():
        return stat.S_IMODE(file_path.stat().st_mode)
    # os.umask can only be read by setting it
    umask = os.umask(0o022)
    os.umask(umask)
    return 0o666 & ~umask


def atomic_write(
    file_path: Union[str, Path],
    content: Union[str, bytes],
    encoding: str = "utf-8",
    mode: Optional[int] = None,
) -> Path:
    """
    Write file atomically using temp file + rename.

    If the write fails, the original file (if any) remains unchanged and the
    temporary file is removed.

    Args:
        file_path: Path to write to
        content: Content to write (string or bytes)
        encoding: Text encoding (used only for string content)
        mode: Optional permission bits applied before the rename; by default
            an existing file keeps its mode and a new one follows the umask

    Returns:
        Path that was written

    Raises:
        FilesystemError: If the directory cannot be created or the file
            cannot be written or moved into place

    Example:
        >>> atomic_write('bin/tool', b'\\x7fELF...', mode=0o755)
    """
    file_path = Path(file_path)

    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        # Temp file in the same directory keeps the rename on one filesystem
        temp_fd, temp_path_str = tempfile.mkstemp(
            dir=file_path.parent, prefix=f".{file_path.name}.", suffix=".tmp"
        )
    except OSError as e:
        raise FilesystemError(file_path, str(e)) from e

    temp_path = Path(temp_path_str)

    try:
        if isinstance(content, str):
            with open(temp_fd, "w", encoding=encoding) as f:
                f.write(content)
        else:
            with open(temp_fd, "wb") as f:
                f.write(content)

        os.chmod(temp_path, mode if mode is not None else _default_mode(file_path))

        os.replace(temp_path, file_path)

    except OSError as e:
        try:
            temp_path.unlink(missing_ok=True)
        except OSError:
            logger.debug(f"Could not remove temporary file {temp_path}")
        raise FilesystemError(file_path, str(e)) from e

    logger.debug(f"Wrote {file_path}")
    return file_path


__all__ = ["atomic_write"]
