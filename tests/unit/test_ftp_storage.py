"""
Unit tests for FTP storage backend (ftplib client mocked).
"""

import ftplib
from unittest.mock import MagicMock, Mock

import pytest

from storage_navigator.storage.adapter import BackendUnavailable, ListingUnavailable, NotFound
from storage_navigator.storage.ftp import FtpStorage, parse_mdtm

DIRECTORIES = {"/", "/pub", "/pub/releases"}
SIZES = {"/pub/readme.txt": 4, "/pub/data.bin": 2048}


def fake_ftp():
    """FTP double with a tiny directory tree under /pub."""
    ftp = MagicMock(spec=ftplib.FTP)
    cwd_state = {"path": "/"}

    def cwd(path):
        if path not in DIRECTORIES:
            raise ftplib.error_perm("550 Not a directory")
        cwd_state["path"] = path

    def size(path):
        if path not in SIZES:
            raise ftplib.error_perm("550 No such file")
        return SIZES[path]

    def voidcmd(command):
        if command.startswith("MDTM /pub/readme.txt"):
            return "213 20240102030405"
        if command.startswith("MDTM"):
            raise ftplib.error_perm("550 MDTM not available")
        return "200 OK"

    ftp.pwd.side_effect = lambda: cwd_state["path"]
    ftp.cwd.side_effect = cwd
    ftp.size.side_effect = size
    ftp.voidcmd.side_effect = voidcmd
    ftp.nlst.return_value = ["/pub/releases", "/pub/readme.txt", "/pub/data.bin", "/pub/."]
    return ftp


@pytest.fixture
def ftp():
    return fake_ftp()


@pytest.fixture
def storage(ftp):
    return FtpStorage(host="ftp.example.com", ftp_factory=Mock(return_value=ftp))


class TestParseMdtm:
    """Tests for MDTM reply parsing."""

    def test_parse(self):
        assert parse_mdtm("213 19700101000010") == 10

    def test_fractional_seconds(self):
        assert parse_mdtm("213 19700101000010.123") == 10

    @pytest.mark.parametrize("reply", ["550 nope", "213 garbage", ""])
    def test_unparseable(self, reply):
        assert parse_mdtm(reply) is None


class TestFtpStorageInit:
    """Test connection setup."""

    def test_connects_and_logs_in(self, ftp):
        factory = Mock(return_value=ftp)
        FtpStorage(host="ftp.example.com", username="bob", password="secret",
                   port=2121, passive=False, timeout=5, ftp_factory=factory)

        factory.assert_called_once_with(timeout=5)
        ftp.connect.assert_called_once_with("ftp.example.com", 2121)
        ftp.login.assert_called_once_with("bob", "secret")
        ftp.set_pasv.assert_called_once_with(False)

    def test_login_failure(self, ftp):
        ftp.login.side_effect = ftplib.error_perm("530 Login incorrect")
        with pytest.raises(BackendUnavailable):
            FtpStorage(host="ftp.example.com", ftp_factory=Mock(return_value=ftp))

    def test_connection_refused(self, ftp):
        ftp.connect.side_effect = ConnectionRefusedError()
        with pytest.raises(BackendUnavailable):
            FtpStorage(host="ftp.example.com", ftp_factory=Mock(return_value=ftp))


class TestFtpListing:
    """Test NLST listings with CWD probes."""

    def test_listing(self, storage, ftp):
        listing = storage.listing("pub")

        ftp.nlst.assert_called_once_with("/pub")
        assert [d.name for d in listing.directories()] == ["releases"]
        assert [f.name for f in listing.files()] == ["data.bin", "readme.txt"]

        readme = listing.files()[1]
        assert readme.byte_size == 4
        assert readme.last_modified == 1704164645
        assert readme.directory_path == "pub/"

    def test_missing_metadata_degrades_to_none(self, storage):
        data = storage.listing("pub").files()[0]
        assert data.name == "data.bin"
        assert data.last_modified is None

    def test_probe_returns_to_previous_directory(self, storage, ftp):
        storage.listing("pub")
        assert ftp.pwd() == "/"

    def test_empty_directory_550(self, storage, ftp):
        ftp.nlst.side_effect = ftplib.error_perm("550 No files found")
        assert len(storage.listing("pub/releases")) == 0

    def test_listing_failure(self, storage, ftp):
        ftp.nlst.side_effect = ftplib.error_temp("421 Service not available")
        with pytest.raises(ListingUnavailable):
            storage.listing("pub")

    def test_missing_directory(self, storage, ftp):
        ftp.nlst.side_effect = ftplib.error_perm("550 No such directory")
        with pytest.raises(ListingUnavailable):
            storage.listing("nope")


class TestFtpExists:
    """Test existence probes."""

    def test_directory_and_file(self, storage):
        assert storage.exists("")
        assert storage.exists("pub")
        assert storage.exists("pub/readme.txt")

    def test_missing(self, storage):
        assert not storage.exists("pub/missing.txt")


class TestFtpDownload:
    """Test streamed RETR downloads."""

    def test_download(self, storage, ftp):
        connection = Mock()
        connection.recv.side_effect = [b"te", b"st", b""]
        ftp.transfercmd.return_value = connection

        stream = storage.download("pub/readme.txt")

        ftp.transfercmd.assert_called_once_with("RETR /pub/readme.txt")
        assert stream.size == 4
        assert stream.mime_type == "text/plain"
        assert stream.read() == b"test"
        connection.close.assert_called_once()
        ftp.voidresp.assert_called_once()

    def test_download_missing(self, storage, ftp):
        ftp.transfercmd.side_effect = ftplib.error_perm("550 No such file")
        with pytest.raises(NotFound):
            storage.download("pub/missing.txt")


class TestFtpClose:
    """Test connection release."""

    def test_close_quits(self, storage, ftp):
        storage.close()
        ftp.quit.assert_called_once()

    def test_close_falls_back_when_quit_fails(self, storage, ftp):
        ftp.quit.side_effect = EOFError()
        storage.close()
        ftp.close.assert_called_once()

    def test_context_manager(self, ftp):
        with FtpStorage(host="ftp.example.com", ftp_factory=Mock(return_value=ftp)):
            pass
        ftp.quit.assert_called_once()
