"""SSH transport built on paramiko."""

import io
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import paramiko

from roundsman.config import SSHSettings, get_settings
from roundsman.errors import CommandFailedError, TransportError
from roundsman.utils.logging import get_logger

logger = get_logger(__name__)


class SSHTransport:
    """RemoteTransport over a single paramiko SSH connection.

    Commands run through SSHClient.exec_command, files go through SFTP.
    The connection is opened lazily and closed by close() or on leaving the
    context manager.

    Example:
        with SSHTransport(get_settings().ssh) as transport:
            transport.capture("cat /etc/issue")
    """

    def __init__(self, settings: SSHSettings | None = None) -> None:
        self._settings = settings or get_settings().ssh
        self._client: paramiko.SSHClient | None = None
        self._sftp: paramiko.SFTPClient | None = None

    @property
    def host(self) -> str:
        if not self._settings.host:
            raise TransportError("No host configured (set ROUNDSMAN_SSH_HOST or --host)")
        return self._settings.host

    @property
    def user(self) -> str:
        if self._settings.user:
            return self._settings.user
        return self._connect().get_transport().get_username()

    def _connect(self) -> paramiko.SSHClient:
        if self._client is not None:
            return self._client

        password = self._settings.password
        client = paramiko.SSHClient()
        client.load_system_host_keys()
        client.set_missing_host_key_policy(paramiko.WarningPolicy())
        log = logger.bind(host=self.host, port=self._settings.port)
        log.debug("Connecting")
        try:
            client.connect(
                self.host,
                port=self._settings.port,
                username=self._settings.user,
                key_filename=self._settings.key_filename,
                password=password.get_secret_value() if password else None,
                timeout=self._settings.connect_timeout,
            )
        except (paramiko.SSHException, OSError) as e:
            client.close()
            raise TransportError(f"Could not connect to {self.host}: {e}") from e
        self._client = client
        return client

    def _open_sftp(self) -> paramiko.SFTPClient:
        if self._sftp is None:
            try:
                self._sftp = self._connect().open_sftp()
            except (paramiko.SSHException, EOFError, OSError) as e:
                raise TransportError(f"Could not open SFTP session: {e}") from e
        return self._sftp

    def _stream_lines(self, channel: paramiko.Channel) -> str:
        """Log combined output line by line and return it."""
        channel.set_combine_stderr(True)
        lines = []
        for raw in channel.makefile("rb"):
            line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
            lines.append(line)
            logger.info(f"[{self.host}] {line}")
        return "\n".join(lines)

    @staticmethod
    def _read_both(
        stdout: paramiko.ChannelFile, stderr: paramiko.ChannelFile
    ) -> tuple[str, str]:
        """Read stdout and stderr concurrently so neither fills the channel window."""
        with ThreadPoolExecutor(max_workers=1) as pool:
            pending_err = pool.submit(stderr.read)
            out = stdout.read()
            err = pending_err.result()
        return out.decode("utf-8", errors="replace"), err.decode("utf-8", errors="replace")

    def _execute(self, command: str, streaming: bool) -> tuple[int, str, str]:
        logger.debug(f"Executing on {self.host}: {command}")
        try:
            _, stdout, stderr = self._connect().exec_command(command)
            if streaming:
                out, err = self._stream_lines(stdout.channel), ""
            else:
                out, err = self._read_both(stdout, stderr)
            status = stdout.channel.recv_exit_status()
        except (paramiko.SSHException, EOFError, OSError) as e:
            raise TransportError(f"Could not execute command on {self.host}: {e}") from e

        if status != 0:
            raise CommandFailedError(command, status, err or out)
        return status, out, err

    def run(self, command: str) -> int:
        status, _, _ = self._execute(command, streaming=False)
        return status

    def stream(self, command: str) -> int:
        status, _, _ = self._execute(command, streaming=True)
        return status

    def capture(self, command: str) -> str:
        _, out, _ = self._execute(command, streaming=False)
        return out

    def upload(self, local_path: str | Path, remote_path: str) -> None:
        logger.debug(f"Uploading {local_path} to {self.host}:{remote_path}")
        try:
            self._open_sftp().put(str(local_path), remote_path)
        except (paramiko.SSHException, EOFError, OSError) as e:
            raise TransportError(f"Could not upload {local_path}: {e}") from e

    def put(self, content: str | bytes, remote_path: str) -> None:
        if isinstance(content, str):
            content = content.encode("utf-8")
        logger.debug(f"Writing {len(content)} bytes to {self.host}:{remote_path}")
        try:
            self._open_sftp().putfo(io.BytesIO(content), remote_path)
        except (paramiko.SSHException, EOFError, OSError) as e:
            raise TransportError(f"Could not write {remote_path}: {e}") from e

    def close(self) -> None:
        if self._sftp is not None:
            self._sftp.close()
            self._sftp = None
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
