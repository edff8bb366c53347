import os

import pytest

from bundle_size.bundle_analysis.utils import aggregate_size, file_size


def write_file(path, size):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"a" * size)


def test_aggregate_size_sums_nested_files(tmp_path):
    write_file(tmp_path / "chunks" / "main.js", 1000)
    write_file(tmp_path / "chunks" / "app" / "page.js", 250)
    write_file(tmp_path / "css" / "app.css", 30)
    write_file(tmp_path / "empty.txt", 0)
    (tmp_path / "empty-dir").mkdir()

    assert aggregate_size(tmp_path) == 1280


def test_aggregate_size_non_existent_root(tmp_path):
    assert aggregate_size(tmp_path / "not-built") == 0


def test_aggregate_size_of_a_single_file(tmp_path):
    write_file(tmp_path / "main.js", 42)
    assert aggregate_size(tmp_path / "main.js") == 42


def test_aggregate_size_accepts_str_paths(tmp_path):
    write_file(tmp_path / "main.js", 7)
    assert aggregate_size(str(tmp_path)) == 7


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="needs symlinks")
def test_aggregate_size_does_not_follow_symlinks(tmp_path):
    write_file(tmp_path / "static" / "chunks" / "main.js", 100)
    # a link pointing back up the tree would loop forever if followed
    os.symlink(tmp_path / "static", tmp_path / "static" / "chunks" / "loop")
    os.symlink(
        tmp_path / "static" / "chunks" / "main.js", tmp_path / "static" / "alias.js"
    )

    assert aggregate_size(tmp_path / "static") == 100


def test_file_size_found(tmp_path):
    write_file(tmp_path / "a.js", 1000)
    assert file_size(tmp_path / "a.js") == (1000, True)


def test_file_size_missing(tmp_path):
    assert file_size(tmp_path / "polyfills.js") == (0, False)
    assert file_size(tmp_path / "missing-dir" / "polyfills.js") == (0, False)


def test_file_size_directory_is_not_an_asset(tmp_path):
    (tmp_path / "chunks").mkdir()
    assert file_size(tmp_path / "chunks") == (0, False)


def test_file_size_name_too_long(tmp_path):
    assert file_size(tmp_path / ("x" * 300 + ".js")) == (0, False)


def test_file_size_os_error(tmp_path, mocker):
    mocker.patch(
        "bundle_size.bundle_analysis.utils.os.stat",
        side_effect=PermissionError(13, "Permission denied"),
    )
    assert file_size(tmp_path / "a.js") == (0, False)


def test_aggregate_size_skips_unreadable_directories(tmp_path, mocker):
    write_file(tmp_path / "main.js", 5)
    real_scandir = os.scandir

    def _scandir(path):
        if os.fspath(path).endswith("locked"):
            raise PermissionError(13, "Permission denied")
        return real_scandir(path)

    write_file(tmp_path / "locked" / "secret.js", 100)
    mocker.patch("bundle_size.bundle_analysis.utils.os.scandir", side_effect=_scandir)

    assert aggregate_size(tmp_path) == 5
