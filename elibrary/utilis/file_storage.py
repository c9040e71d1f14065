"""
file_storage.py – Local upload directory for resource files.

Uploaded files are streamed to ``config.UPLOAD_DIR`` under a generated
name and referenced by the server-relative path ``uploads/<name>``, which
is also the URL path the static mount serves them from.
"""

from __future__ import annotations

import logging
import os
import pathlib
import secrets
import time
from typing import BinaryIO

from elibrary import config

logger = logging.getLogger("elibrary.storage")

CHUNK_SIZE = 1024 * 1024
_MAX_EXT_LEN = 16


class UploadTooLarge(ValueError):
    """Raised when an upload exceeds ``config.MAX_UPLOAD_BYTES``."""


def upload_root() -> pathlib.Path:
    root = pathlib.Path(config.UPLOAD_DIR)
    root.mkdir(parents=True, exist_ok=True)
    return root


def _stored_name(original_name: str | None) -> str:
    ext = pathlib.Path(original_name or "").suffix.lower()
    if len(ext) > _MAX_EXT_LEN or not ext[1:].isalnum():
        ext = ""
    return f"{int(time.time() * 1000)}-{secrets.token_hex(6)}{ext}"


def save_upload(stream: BinaryIO, original_name: str | None) -> str:
    """Copy ``stream`` into the upload directory and return its relative path.

    A partially written file is removed if the size limit is hit or the
    copy fails.
    """
    name = _stored_name(original_name)
    target = upload_root() / name
    written = 0
    try:
        with open(target, "wb") as out:
            while True:
                chunk = stream.read(CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > config.MAX_UPLOAD_BYTES:
                    raise UploadTooLarge(
                        f"File exceeds the {config.MAX_UPLOAD_BYTES} byte upload limit."
                    )
                out.write(chunk)
    except BaseException:
        target.unlink(missing_ok=True)
        raise

    logger.info("Stored upload '%s' as %s (%d bytes)", original_name, name, written)
    return f"{config.UPLOAD_URL_PREFIX}/{name}"


def resolve(relative_path: str) -> pathlib.Path:
    """Map a stored ``uploads/<name>`` path back to the file on disk."""
    return pathlib.Path(config.UPLOAD_DIR) / os.path.basename(relative_path)


def delete_upload(relative_path: str) -> bool:
    path = resolve(relative_path)
    try:
        path.unlink()
    except FileNotFoundError:
        logger.warning("Stored file already missing: %s", path)
        return False
    return True
