"""On-disk storage for uploaded source files.

Files live under ``UPLOAD_DIR/<notebook_id>/``; the database stores paths
relative to ``UPLOAD_DIR``.
"""
import logging
import os
import random
import shutil
import time
from pathlib import Path
from typing import BinaryIO, Tuple

from .. import config

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


class FileTooLargeError(Exception):
    pass


def resolve_path(relative_path: str) -> Path:
    """Absolute path for a stored relative path, confined to the upload root."""
    root = config.UPLOAD_DIR.resolve()
    absolute = (root / relative_path).resolve()
    if root not in absolute.parents:
        raise ValueError(f"Path escapes upload directory: {relative_path}")
    return absolute


def _unique_name(original_name: str) -> str:
    _, ext = os.path.splitext(original_name or "")
    suffix = random.randint(0, 10**9)
    return f"{int(time.time() * 1000)}-{suffix}{ext.lower()}"


def save_upload(notebook_id: str, original_name: str, stream: BinaryIO, max_size: int) -> Tuple[str, int]:
    """Copy an upload stream to disk.

    Returns ``(relative_path, size)``. Raises ``FileTooLargeError`` once more
    than ``max_size`` bytes have been read. A partial file never outlives a
    failed copy.
    """
    target_dir = config.UPLOAD_DIR / notebook_id
    os.makedirs(target_dir, exist_ok=True)

    filename = _unique_name(original_name)
    absolute = target_dir / filename
    size = 0
    try:
        with open(absolute, "wb") as buffer:
            while True:
                chunk = stream.read(CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > max_size:
                    raise FileTooLargeError(original_name)
                buffer.write(chunk)
    except BaseException:
        absolute.unlink(missing_ok=True)
        raise

    return f"{notebook_id}/{filename}", size


def delete_file(relative_path: str) -> None:
    absolute = resolve_path(relative_path)
    if absolute.exists():
        absolute.unlink()


def remove_notebook_dir(notebook_id: str) -> None:
    target_dir = config.UPLOAD_DIR / notebook_id
    if target_dir.is_dir():
        shutil.rmtree(target_dir, ignore_errors=True)
        logger.debug("Removed upload directory %s", target_dir)
