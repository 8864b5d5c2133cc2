"""
File storage service for managing uploaded files.
"""

import logging
import shutil
import tempfile
from pathlib import Path
from typing import List, Optional

from kmzview.core.config import settings
from kmzview.core.errors import StorageError

logger = logging.getLogger(__name__)


class UploadStorage:
    """
    Stores uploaded files in one flat directory under their original names.

    Files are written to a temporary location first and then moved into
    place, replacing any earlier upload of the same name.
    """

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        """
        Initialize the storage service.

        Args:
            base_dir: Upload directory (defaults to settings.uploads_dir)
        """
        self.base_dir = Path(base_dir or settings.uploads_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"UploadStorage initialized with base_dir: {self.base_dir}")

    def path_for(self, filename: str) -> Path:
        """Final storage path of an upload."""
        return self.base_dir / filename

    async def save_file(self, file_content: bytes, filename: str) -> Path:
        """
        Save an uploaded file.

        Args:
            file_content: The file content as bytes
            filename: Original filename, already validated

        Returns:
            Path the file was stored at

        Raises:
            StorageError: If the file cannot be written or moved into place
        """
        final_path = self.path_for(filename)
        temp_path: Optional[Path] = None

        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                dir=self.base_dir, prefix=".upload-", suffix=".tmp", delete=False
            ) as handle:
                handle.write(file_content)
                temp_path = Path(handle.name)
            logger.debug(f"Wrote file to temporary location: {temp_path}")

            shutil.move(str(temp_path), str(final_path))
            logger.debug(f"Moved file to final location: {final_path}")

        except OSError as e:
            logger.error(f"Failed to save file {filename}: {e}")
            if temp_path is not None and temp_path.exists():
                temp_path.unlink()
            raise StorageError(
                f"Failed to save file: {e}",
                operation="save",
                file_path=str(final_path),
            ) from e

        logger.info(f"Saved upload {filename} ({len(file_content)} bytes) to {final_path}")
        return final_path

    def list_uploads(self) -> List[str]:
        """Names of the stored uploads, sorted."""
        if not self.base_dir.exists():
            return []
        return sorted(
            item.name
            for item in self.base_dir.iterdir()
            if item.is_file() and not item.name.startswith(".upload-")
        )

    def delete_upload(self, filename: str) -> bool:
        """
        Delete a stored upload.

        Returns:
            True if a file was removed, False if none existed
        """
        path = self.path_for(filename)
        if not path.is_file():
            logger.warning(f"Upload not found: {path}")
            return False
        path.unlink()
        logger.info(f"Deleted upload: {filename}")
        return True


# Global storage service instance
storage_service = UploadStorage()
