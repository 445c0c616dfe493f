# Test configuration

import io
import os
import sys
import tarfile
import zipfile

import pytest

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))


@pytest.fixture
def test_settings(tmp_path):
    """Settings pointing the local backend at a temporary directory"""
    from storage_navigator.config.settings import Settings
    return Settings(
        _env_file=None,
        storage_backend="local",
        local_base_path=str(tmp_path),
        root_path="",
    )


@pytest.fixture
def storage_tree(tmp_path):
    """
    Directory with one 4-byte file and one subdirectory:

        file1.txt
        dir1/
            nested.md
    """
    (tmp_path / "file1.txt").write_bytes(b"test")
    (tmp_path / "dir1").mkdir()
    (tmp_path / "dir1" / "nested.md").write_text("# nested\n")
    return tmp_path


def _archive_members():
    return {
        "test-file.txt": b"hello archive",
        "test-dir/empty.txt": b"",
    }


@pytest.fixture
def zip_archive(tmp_path):
    """ZIP with test-file.txt and test-dir/empty.txt"""
    path = tmp_path / "sample.zip"
    with zipfile.ZipFile(path, "w") as archive:
        for name, data in _archive_members().items():
            archive.writestr(name, data)
    return path


@pytest.fixture
def tar_archive(tmp_path):
    """Gzipped TAR with test-file.txt and test-dir/empty.txt"""
    path = tmp_path / "sample.tar.gz"
    with tarfile.open(path, "w:gz") as archive:
        directory = tarfile.TarInfo("test-dir")
        directory.type = tarfile.DIRTYPE
        directory.mtime = 1_700_000_000
        archive.addfile(directory)
        for name, data in _archive_members().items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mtime = 1_700_000_000
            archive.addfile(info, io.BytesIO(data))
    return path
