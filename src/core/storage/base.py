from abc import ABC, abstractmethod
from typing import BinaryIO


class StorageService(ABC):
    """Abstract base class for storage services."""

    @abstractmethod
    async def save_file(self, file: BinaryIO, path: str, content_type: str = None) -> str:
        """
        Save a file to the storage.

        Args:
            file: A file-like object with an async ``read()``.
            path: The destination path/key in the storage (relative to root).
            content_type: The MIME type of the file.

        Returns:
            The path/key where the file was saved.
        """
        pass

    @abstractmethod
    def get_url(self, path: str) -> str:
        """
        Get the accessible URL for a file.

        Args:
            path: The storage path/key.

        Returns:
            The public or internal URL.
        """
        pass
