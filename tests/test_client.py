"""Tests for SftpClient upload/download orchestration."""

import logging
from collections.abc import Generator
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import asyncssh
import pytest

from simple_sftp import (
    AuthenticationError,
    ConfigurationError,
    HostTrust,
    KeyPair,
    RemoteEntry,
    Settings,
    SftpClient,
    SftpConnectionError,
    TransferError,
)

FINGERPRINT = "43:51:43:a1:b5:fc:8b:b7:0a:3a:a9:b1:0f:66:73:a8"


def regular(name: str) -> asyncssh.SFTPName:
    return asyncssh.SFTPName(
        filename=name, attrs=asyncssh.SFTPAttrs(type=asyncssh.FILEXFER_TYPE_REGULAR)
    )


def directory(name: str) -> asyncssh.SFTPName:
    return asyncssh.SFTPName(
        filename=name, attrs=asyncssh.SFTPAttrs(type=asyncssh.FILEXFER_TYPE_DIRECTORY)
    )


@pytest.fixture
def remote_files() -> dict[str, bytes]:
    """Contents served by the mock SFTP server, keyed by remote path."""
    return {"/BALANCE.DAT": b"this is a file"}


@pytest.fixture
def mock_sftp(remote_files: dict[str, bytes]) -> MagicMock:
    """Mock SFTP client serving remote_files from "/"."""
    sftp = MagicMock()
    sftp.exit = MagicMock()
    sftp.wait_closed = AsyncMock()
    sftp.put = AsyncMock()

    async def fake_readdir(folder: str) -> list[asyncssh.SFTPName]:
        names = [directory("."), directory("..")]
        return names + [regular(path.lstrip("/")) for path in remote_files]

    async def fake_get(remote: str, local: str) -> None:
        Path(local).write_bytes(remote_files[remote])

    sftp.readdir = AsyncMock(side_effect=fake_readdir)
    sftp.get = AsyncMock(side_effect=fake_get)
    return sftp


@pytest.fixture
def mock_conn(mock_sftp: MagicMock) -> MagicMock:
    """Mock SSH connection."""
    conn = MagicMock()
    conn.close = MagicMock()
    conn.wait_closed = AsyncMock()
    conn.start_sftp_client = AsyncMock(return_value=mock_sftp)
    return conn


@pytest.fixture
def connector(mock_conn: MagicMock) -> AsyncMock:
    """Connector returning mock_conn."""
    return AsyncMock(return_value=mock_conn)


@pytest.fixture
def client(connector: AsyncMock) -> SftpClient:
    """Client with injected session construction."""
    return SftpClient(
        "localhost",
        2222,
        "ignored",
        FINGERPRINT,
        KeyPair(private_key=MagicMock(), public_key=MagicMock()),
        connector=connector,
    )


@pytest.fixture
def package_logger() -> Generator[logging.Logger, None, None]:
    """simple_sftp logger, restored after from_settings reconfigures it."""
    lg = logging.getLogger("simple_sftp")
    saved = (lg.level, list(lg.handlers), lg.propagate)
    yield lg
    lg.setLevel(saved[0])
    lg.handlers = saved[1]
    lg.propagate = saved[2]


@pytest.fixture
def key_path(tmp_path: Path) -> Path:
    """Private key on disk with its .pub beside it."""
    key = asyncssh.generate_private_key("ssh-ed25519")
    key.write_private_key(tmp_path / "id_ed25519")
    key.write_public_key(tmp_path / "id_ed25519.pub")
    return tmp_path / "id_ed25519"


class TestConstruction:
    """Client construction and configuration."""

    def test_string_fingerprint_resolved(self, client: SftpClient) -> None:
        assert client.host_trust == HostTrust(fingerprint=FINGERPRINT)
        assert str(client.target) == "ignored@localhost:2222"

    def test_off_string(self) -> None:
        client = SftpClient("h", 22, "u", "OFF", MagicMock())
        assert not client.host_trust.verification_enabled

    def test_bad_fingerprint_fails_before_connecting(self) -> None:
        connector = AsyncMock()
        with pytest.raises(ConfigurationError):
            SftpClient("h", 22, "u", "nonsense", MagicMock(), connector=connector)
        connector.assert_not_called()

    def test_from_settings_requires_host(self) -> None:
        with pytest.raises(ConfigurationError, match="SFTP_HOST"):
            SftpClient.from_settings(Settings(username="u", host_fingerprint="OFF"))

    def test_from_settings(self, key_path: Path, package_logger: logging.Logger) -> None:
        settings = Settings(
            host="sftp.example.com",
            port=2022,
            username="nightly",
            host_fingerprint=FINGERPRINT,
            private_key_path=str(key_path),
            keepalive_interval=30,
        )

        client = SftpClient.from_settings(settings)

        assert str(client.target) == "nightly@sftp.example.com:2022"
        assert client.host_trust.fingerprint == FINGERPRINT

    def test_from_settings_applies_log_level(
        self,
        key_path: Path,
        package_logger: logging.Logger,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """SFTP_LOG_LEVEL from the environment sets the package logger level."""
        monkeypatch.setenv("SFTP_HOST", "sftp.example.com")
        monkeypatch.setenv("SFTP_USERNAME", "nightly")
        monkeypatch.setenv("SFTP_HOST_FINGERPRINT", FINGERPRINT)
        monkeypatch.setenv("SFTP_PRIVATE_KEY", str(key_path))
        monkeypatch.setenv("SFTP_LOG_LEVEL", "debug")
        monkeypatch.setenv("SFTP_LOG_COLORS", "false")

        SftpClient.from_settings()

        assert package_logger.level == logging.DEBUG
        assert package_logger.handlers


class TestUpload:
    """Uploading a single file."""

    @pytest.mark.asyncio
    async def test_upload(
        self,
        client: SftpClient,
        mock_sftp: MagicMock,
        mock_conn: MagicMock,
        tmp_path: Path,
    ) -> None:
        local = tmp_path / "transactions.csv"
        local.write_text("this is a file", encoding="utf-8")

        result = await client.upload(local, "/test.txt")

        assert result is None
        mock_sftp.put.assert_awaited_once_with(str(local), "/test.txt", preserve=False)
        mock_conn.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_missing_local_file_fails_fast(
        self, client: SftpClient, connector: AsyncMock, tmp_path: Path
    ) -> None:
        with pytest.raises(FileNotFoundError):
            await client.upload(tmp_path / "missing.csv", "/test.txt")

        connector.assert_not_called()

    @pytest.mark.asyncio
    async def test_remote_rejection(
        self,
        client: SftpClient,
        mock_sftp: MagicMock,
        mock_conn: MagicMock,
        tmp_path: Path,
    ) -> None:
        local = tmp_path / "transactions.csv"
        local.write_text("x")
        mock_sftp.put.side_effect = asyncssh.SFTPPermissionDenied("read-only")

        with pytest.raises(TransferError, match="upload"):
            await client.upload(local, "/ro/test.txt")

        mock_conn.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_write_is_deprecated_alias(
        self, client: SftpClient, mock_sftp: MagicMock, tmp_path: Path
    ) -> None:
        local = tmp_path / "transactions.csv"
        local.write_text("x")

        with pytest.warns(DeprecationWarning, match="use upload"):
            await client.write(local, "/test.txt")

        mock_sftp.put.assert_awaited_once()


class TestDownload:
    """Listing, filtering and fetching."""

    @pytest.mark.asyncio
    async def test_download_all(
        self, client: SftpClient, mock_conn: MagicMock, tmp_path: Path
    ) -> None:
        """BALANCE.DAT is fetched into local storage."""
        files = await client.download_all("/", tmp_path)

        assert files == [tmp_path / "BALANCE.DAT"]
        assert files[0].read_text(encoding="utf-8") == "this is a file"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["BALANCE.DAT"]
        mock_conn.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_identity_filter(
        self,
        client: SftpClient,
        remote_files: dict[str, bytes],
        tmp_path: Path,
    ) -> None:
        remote_files["/a.csv"] = b"alpha"
        remote_files["/b.csv"] = b"beta"

        files = await client.download("/", tmp_path, lambda entries: entries)

        assert [p.name for p in files] == ["BALANCE.DAT", "a.csv", "b.csv"]
        for path in files:
            assert path.read_bytes() == remote_files[f"/{path.name}"]

    @pytest.mark.asyncio
    async def test_empty_filter(
        self, client: SftpClient, mock_sftp: MagicMock, tmp_path: Path
    ) -> None:
        files = await client.download("/", tmp_path, lambda entries: [])

        assert files == []
        assert list(tmp_path.iterdir()) == []
        mock_sftp.get.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_filter_sees_only_regular_files(
        self, client: SftpClient, tmp_path: Path
    ) -> None:
        """Directories never reach the filter or the result."""
        seen: list[RemoteEntry] = []

        def keep_all(entries: list[RemoteEntry]) -> list[RemoteEntry]:
            seen.extend(entries)
            return entries

        files = await client.download("/", tmp_path, keep_all)

        assert [e.name for e in seen] == ["BALANCE.DAT"]
        assert all(e.is_regular_file for e in seen)
        assert [p.name for p in files] == ["BALANCE.DAT"]

    @pytest.mark.asyncio
    async def test_filter_called_once_and_order_kept(
        self,
        client: SftpClient,
        remote_files: dict[str, bytes],
        tmp_path: Path,
    ) -> None:
        remote_files["/a.csv"] = b"alpha"
        remote_files["/b.csv"] = b"beta"
        file_filter = MagicMock(
            side_effect=lambda entries: reversed([e for e in entries if e.name.endswith(".csv")])
        )

        files = await client.download("/", tmp_path, file_filter)

        file_filter.assert_called_once()
        assert [p.name for p in files] == ["b.csv", "a.csv"]
        assert not (tmp_path / "BALANCE.DAT").exists()

    @pytest.mark.asyncio
    async def test_failure_deletes_local_files(
        self,
        client: SftpClient,
        mock_sftp: MagicMock,
        mock_conn: MagicMock,
        tmp_path: Path,
    ) -> None:
        """When the second fetch fails the first local file is removed."""
        expected = asyncssh.SFTPFailure("FAKE EXCEPTION")
        local_file = tmp_path / "test.data"
        local_file.write_bytes(b"\x00")

        mock_sftp.readdir.side_effect = None
        mock_sftp.readdir.return_value = [regular("test.data"), regular("fail.data")]

        async def fake_get(remote: str, local: str) -> None:
            if remote == "/fail.data":
                raise expected

        mock_sftp.get.side_effect = fake_get

        with pytest.raises(TransferError) as exc_info:
            await client.download_all("/", tmp_path)

        assert exc_info.value.original_error is expected
        assert not local_file.exists()
        assert list(tmp_path.iterdir()) == []
        mock_conn.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_rollback_failure_keeps_original_error(
        self,
        client: SftpClient,
        mock_sftp: MagicMock,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        expected = asyncssh.SFTPFailure("FAKE EXCEPTION")
        mock_sftp.readdir.side_effect = None
        mock_sftp.readdir.return_value = [regular("a"), regular("b")]

        async def fake_get(remote: str, local: str) -> None:
            if remote == "/b":
                raise expected
            Path(local).write_bytes(b"a")

        mock_sftp.get.side_effect = fake_get

        def refuse_unlink(self: Path, missing_ok: bool = False) -> None:
            raise PermissionError(13, "Permission denied", str(self))

        monkeypatch.setattr(Path, "unlink", refuse_unlink)

        with pytest.raises(TransferError) as exc_info:
            await client.download_all("/", tmp_path)

        assert exc_info.value.original_error is expected
        assert "Could not remove" in caplog.text

    @pytest.mark.asyncio
    async def test_listing_failure(
        self,
        client: SftpClient,
        mock_sftp: MagicMock,
        mock_conn: MagicMock,
        tmp_path: Path,
    ) -> None:
        mock_sftp.readdir.side_effect = asyncssh.SFTPNoSuchFile("no such folder")

        with pytest.raises(TransferError, match="list"):
            await client.download_all("/missing", tmp_path)

        assert list(tmp_path.iterdir()) == []
        mock_conn.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_filter_error_propagates(
        self, client: SftpClient, mock_conn: MagicMock, tmp_path: Path
    ) -> None:
        def broken(entries: list[RemoteEntry]) -> list[RemoteEntry]:
            raise KeyError("bad filter")

        with pytest.raises(KeyError):
            await client.download("/", tmp_path, broken)

        mock_conn.close.assert_called_once()


class TestSessionCleanup:
    """The connection is closed exactly once whatever fails."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("stage", "expected"),
        [
            ("connect", SftpConnectionError),
            ("auth", AuthenticationError),
            ("list", TransferError),
            ("get", TransferError),
            ("none", None),
        ],
    )
    async def test_download_failure_points(
        self,
        stage: str,
        expected: type[Exception] | None,
        client: SftpClient,
        connector: AsyncMock,
        mock_conn: MagicMock,
        mock_sftp: MagicMock,
        tmp_path: Path,
    ) -> None:
        if stage == "connect":
            connector.side_effect = ConnectionRefusedError(111, "refused")
        elif stage == "auth":
            connector.side_effect = asyncssh.PermissionDenied("denied")
        elif stage == "list":
            mock_sftp.readdir.side_effect = asyncssh.SFTPFailure("list failed")
        elif stage == "get":
            mock_sftp.get.side_effect = asyncssh.SFTPFailure("get failed")

        if expected is None:
            await client.download_all("/", tmp_path)
        else:
            with pytest.raises(expected):
                await client.download_all("/", tmp_path)

        connector.assert_awaited_once()
        if stage in ("connect", "auth"):
            mock_conn.close.assert_not_called()
        else:
            mock_conn.close.assert_called_once()
            mock_sftp.exit.assert_called_once()

    @pytest.mark.asyncio
    async def test_each_call_opens_its_own_session(
        self,
        client: SftpClient,
        connector: AsyncMock,
        mock_conn: MagicMock,
        tmp_path: Path,
    ) -> None:
        await client.download_all("/", tmp_path)
        (tmp_path / "BALANCE.DAT").unlink()
        await client.download_all("/", tmp_path)

        assert connector.await_count == 2
        assert mock_conn.close.call_count == 2


class TestDoSftp:
    """Arbitrary operations inside one session."""

    @pytest.mark.asyncio
    async def test_runs_action(
        self, client: SftpClient, mock_sftp: MagicMock, mock_conn: MagicMock
    ) -> None:
        mock_sftp.remove = AsyncMock()

        async def cleanup(sftp: MagicMock) -> str:
            await sftp.remove("/old.csv")
            return "removed"

        assert await client.do_sftp(cleanup) == "removed"
        mock_sftp.remove.assert_awaited_once_with("/old.csv")
        mock_conn.close.assert_called_once()
