from io import BytesIO

import pytest

from bundle_size.storage import get_appropriate_storage_service
from bundle_size.storage.exceptions import FileNotInStorageError
from bundle_size.storage.filesystem import FileSystemStorageService
from bundle_size.storage.memory import MemoryStorageService

BUCKET_NAME = "bundlesizetest"


@pytest.fixture
def storage(tmp_path):
    return FileSystemStorageService({"root": str(tmp_path / "store")})


def test_write_then_read_file(storage, tmp_path):
    path = "v1/repos/default/main/bundle_snapshot.json"

    assert storage.write_file(BUCKET_NAME, path, "lorem ipsum á")

    assert storage.read_file(BUCKET_NAME, path).decode() == "lorem ipsum á"
    assert (tmp_path / "store" / BUCKET_NAME / path).is_file()


def test_write_overwrites_without_leftovers(storage, tmp_path):
    storage.write_file(BUCKET_NAME, "a/snapshot.json", b"first")
    storage.write_file(BUCKET_NAME, "a/snapshot.json", BytesIO(b"second"))

    assert storage.read_file(BUCKET_NAME, "a/snapshot.json") == b"second"
    assert [p.name for p in (tmp_path / "store" / BUCKET_NAME / "a").iterdir()] == [
        "snapshot.json"
    ]


def test_read_into_file_obj(storage):
    storage.write_file(BUCKET_NAME, "file", b"y" * 100000)
    target = BytesIO()

    storage.read_file(BUCKET_NAME, "file", target)

    assert target.getvalue() == b"y" * 100000


def test_read_file_does_not_exist(storage):
    with pytest.raises(FileNotInStorageError):
        storage.read_file(BUCKET_NAME, "nothing/here.json")


def test_read_directory(storage):
    storage.write_file(BUCKET_NAME, "dir/file", b"1")
    with pytest.raises(FileNotInStorageError):
        storage.read_file(BUCKET_NAME, "dir")


def test_path_cannot_escape_bucket(storage):
    with pytest.raises(FileNotInStorageError):
        storage.write_file(BUCKET_NAME, "../other/file", b"1")
    with pytest.raises(FileNotInStorageError):
        storage.read_file(BUCKET_NAME, "../../etc/passwd")


def test_get_appropriate_storage_service(mock_configuration, tmp_path):
    mock_configuration._params["bundle_size"]["storage_root"] = str(tmp_path)

    service = get_appropriate_storage_service()

    assert isinstance(service, FileSystemStorageService)
    assert service.root == tmp_path


def test_get_appropriate_storage_service_without_root(mock_configuration):
    assert isinstance(get_appropriate_storage_service(), MemoryStorageService)
