from bundle_size.config import get_config
from bundle_size.storage.base import BaseStorageService
from bundle_size.storage.filesystem import FileSystemStorageService
from bundle_size.storage.memory import MemoryStorageService


def get_appropriate_storage_service(*_args, **_kwargs) -> BaseStorageService:
    root = get_config("bundle_size", "storage_root")
    if root is None:
        return MemoryStorageService({})
    return FileSystemStorageService({"root": root})
