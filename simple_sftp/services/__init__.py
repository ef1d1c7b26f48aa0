"""Services for simple_sftp."""

from simple_sftp.services.connection import (
    Connector,
    HostKeyVerifyingClient,
    open_connection,
)
from simple_sftp.services.session import run_in_session, sftp_session
from simple_sftp.services.transfer import (
    fetch_files,
    list_regular_files,
    put_file,
    remove_local_files,
)

__all__ = [
    "Connector",
    "HostKeyVerifyingClient",
    "fetch_files",
    "list_regular_files",
    "open_connection",
    "put_file",
    "remove_local_files",
    "run_in_session",
    "sftp_session",
]
