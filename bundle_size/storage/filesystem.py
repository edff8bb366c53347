import logging
import os
import shutil
import tempfile
from pathlib import Path

from bundle_size.storage.base import CHUNK_SIZE, BaseStorageService
from bundle_size.storage.exceptions import FileNotInStorageError

log = logging.getLogger(__name__)


class FileSystemStorageService(BaseStorageService):
    """
    Stores files below a local directory, one sub-directory per bucket.

    Meant for CI setups where a cache directory (for example one restored by
    the CI cache step) survives between runs.
    """

    def __init__(self, config):
        self.config = config
        self.root = Path(config.get("root", ".bundle-size"))

    def _full_path(self, bucket_name: str, path: str) -> Path:
        bucket_root = (self.root / bucket_name).resolve()
        full_path = (bucket_root / path).resolve()
        if bucket_root not in full_path.parents:
            raise FileNotInStorageError(f"Path escapes bucket: {path}")
        return full_path

    def write_file(self, bucket_name, path, data):
        full_path = self._full_path(bucket_name, path)
        full_path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(data, str):
            data = data.encode()
        # write next to the target and swap, so readers never see half a file
        fd, tmp_path = tempfile.mkstemp(dir=full_path.parent)
        try:
            with os.fdopen(fd, "wb") as f:
                if isinstance(data, bytes):
                    f.write(data)
                else:
                    data.seek(0)
                    shutil.copyfileobj(data, f, CHUNK_SIZE)
            os.replace(tmp_path, full_path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
        log.debug(
            "Wrote file to local storage",
            extra=dict(bucket=bucket_name, path=path),
        )
        return True

    def read_file(self, bucket_name, path, file_obj=None):
        full_path = self._full_path(bucket_name, path)
        try:
            with open(full_path, "rb") as f:
                if file_obj is None:
                    return f.read()
                shutil.copyfileobj(f, file_obj, CHUNK_SIZE)
        except (FileNotFoundError, IsADirectoryError):
            raise FileNotInStorageError()

