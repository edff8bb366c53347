class BaseStorageException(Exception):
    pass


class FileNotInStorageError(BaseStorageException):
    pass
