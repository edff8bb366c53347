from collections import defaultdict

from bundle_size.storage.base import CHUNK_SIZE, BaseStorageService
from bundle_size.storage.exceptions import FileNotInStorageError


class MemoryStorageService(BaseStorageService):
    """
        Keeps every file in a dict. Nothing survives the process, so this is only
        useful for tests and dry runs.

    Attributes:
        config (dict): The config for this
    """

    def __init__(self, config):
        self.config = config
        self.storage = defaultdict(dict)

    def write_file(self, bucket_name, path, data):
        if isinstance(data, str):
            data = data.encode()
        if isinstance(data, bytes):
            self.storage[bucket_name][path] = data
        else:
            # data is a file-like object
            data.seek(0)
            self.storage[bucket_name][path] = data.read()
        return True

    def read_file(self, bucket_name, path, file_obj=None):
        try:
            data = self.storage[bucket_name][path]
        except KeyError:
            raise FileNotInStorageError()
        if file_obj is None:
            return data
        for i in range(0, len(data), CHUNK_SIZE):
            file_obj.write(data[i : i + CHUNK_SIZE])

