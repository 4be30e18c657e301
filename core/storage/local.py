"""Local file storage for uploaded CVs."""

import secrets
import time
from pathlib import Path
from typing import Optional, BinaryIO
import logging
import shutil

from core.utils.validators import sanitize_extension

logger = logging.getLogger(__name__)

CV_SUBFOLDER = "cvs"


class LocalStorage:
    """Local file storage handler."""

    def __init__(self, base_path: str = "./uploads"):
        """
        Args:
            base_path: Base directory for file storage
        """
        self.base_path = Path(base_path)

    def save(
        self,
        file_data: bytes | BinaryIO,
        filename: str,
        subfolder: Optional[str] = None
    ) -> Path:
        """
        Save file to local storage.

        Args:
            file_data: File data (bytes or file-like object)
            filename: Name of the file
            subfolder: Optional subfolder path

        Returns:
            Path to saved file
        """
        save_path = self.base_path / subfolder if subfolder else self.base_path
        save_path.mkdir(parents=True, exist_ok=True)

        file_path = save_path / filename
        if isinstance(file_data, bytes):
            file_path.write_bytes(file_data)
        else:
            with open(file_path, 'wb') as f:
                shutil.copyfileobj(file_data, f)

        logger.info(f"Saved file to {file_path}")
        return file_path

    def delete(self, path: str | Path) -> bool:
        """Delete a previously saved file; returns False if it is gone already."""
        file_path = Path(path)
        if not file_path.exists():
            return False
        file_path.unlink()
        logger.info(f"Deleted file: {file_path}")
        return True

    def save_cv(self, file_data: bytes | BinaryIO, original_filename: Optional[str]) -> str:
        """
        Store a CV under ``cvs/`` with a generated unique filename.

        Returns:
            Stored path, relative to the working directory, as persisted on
            the application record
        """
        return self.save(file_data, generate_cv_filename(original_filename), CV_SUBFOLDER).as_posix()


def generate_cv_filename(original_filename: Optional[str]) -> str:
    """``<epoch-ms>-<random>`` plus the original extension."""
    unique = f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}"
    return f"{unique}{sanitize_extension(original_filename)}"
