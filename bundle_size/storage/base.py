from abc import ABC, abstractmethod
from typing import BinaryIO, overload

CHUNK_SIZE = 1024 * 32


# Interface class for the stores that keep persisted bundle snapshots
class BaseStorageService(ABC):
    @abstractmethod
    def write_file(self, bucket_name, path, data):
        """
            Writes a file with the contents of `data`, replacing whatever was stored
            at `path` before.

        Args:
            bucket_name (str): The name of the bucket for the file to be created on
            path (str): The desired path of the file
            data (str | bytes | file like): The data to be written to the file
        """
        raise NotImplementedError()

    @abstractmethod
    @overload
    def read_file(self, bucket_name: str, path: str) -> bytes: ...

    @abstractmethod
    @overload
    def read_file(self, bucket_name: str, path: str, file_obj: BinaryIO) -> None: ...

    @abstractmethod
    def read_file(
        self, bucket_name: str, path: str, file_obj: BinaryIO | None = None
    ) -> bytes | None:
        """Reads the content of a file

        Args:
            bucket_name (str): The name of the bucket for the file lives
            path (str): The path of the file
            file_obj (file like): A file-like object in which to write the contents

        Raises:
            FileNotInStorageError: If the file does not exist

        Returns:
            bytes : The contents of that file (only when file_obj is None)
        """
        raise NotImplementedError()
