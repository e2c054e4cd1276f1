import os
import re
import random
import shutil
import time
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from fastapi import UploadFile

from ..config.settings import UPLOAD_DIR
from ..core.errors import NoFileProvided, NotFoundError

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"
COPY_CHUNK_SIZE = 1024 * 1024


def sanitize_filename(name: str) -> str:
    """Remove or replace characters that are invalid in file names"""
    return re.sub(r'[<>:"/\\|?*]', '_', name)


def ensure_dir(dir_path: str) -> str:
    """Make sure directory exists, create if not"""
    if not dir_path:
        raise ValueError("Directory path cannot be empty")
    dir_path = os.path.abspath(dir_path)
    os.makedirs(dir_path, exist_ok=True)
    return dir_path


def get_extension(filename: str) -> str:
    """Lower-cased extension including the dot, '' when there is none"""
    return os.path.splitext(sanitize_filename(os.path.basename(filename or "")))[1].lower()


@dataclass
class StoredFile:
    file_ref: str
    file_type: str
    size: int


class FileStorage:
    """Uploaded note files kept in one directory under generated names"""

    def __init__(self, base_dir: str):
        self.base_dir = Path(ensure_dir(base_dir))

    def generate_name(self, original_filename: str) -> str:
        """``<epoch ms>-<random>`` plus the original extension"""
        unique_suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
        return unique_suffix + get_extension(original_filename)

    def save(self, upload: Optional[UploadFile]) -> StoredFile:
        if upload is None or not upload.filename:
            raise NoFileProvided()

        file_ref = self.generate_name(upload.filename)
        while (self.base_dir / file_ref).exists():
            file_ref = self.generate_name(upload.filename)

        target = self.base_dir / file_ref
        with open(target, "wb") as out:
            shutil.copyfileobj(upload.file, out, COPY_CHUNK_SIZE)

        size = target.stat().st_size
        logger.info(f"Stored upload '{upload.filename}' as {file_ref} ({size / 1024:.1f} KB)")
        return StoredFile(
            file_ref=file_ref,
            file_type=upload.content_type or DEFAULT_CONTENT_TYPE,
            size=size,
        )

    def delete(self, file_ref: str) -> None:
        """Remove a stored file; a file that is already gone is fine"""
        try:
            (self.base_dir / file_ref).unlink()
            logger.info(f"Removed stored file {file_ref}")
        except FileNotFoundError:
            pass

    def path_for(self, file_ref: str) -> Path:
        """Resolve a stored file, refusing names that escape the storage dir"""
        path = (self.base_dir / file_ref).resolve()
        if path.parent != self.base_dir.resolve() or not path.is_file():
            logger.warning(f"Stored file missing or outside storage: {file_ref}")
            raise NotFoundError("File not found")
        return path


_storage: Optional[FileStorage] = None


def get_file_storage() -> FileStorage:
    """Process-wide storage for UPLOAD_DIR"""
    global _storage
    if _storage is None:
        _storage = FileStorage(UPLOAD_DIR)
    return _storage
