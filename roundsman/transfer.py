"""Move the provisioning bundle and the cookbooks onto the remote host."""

import os
import posixpath
import subprocess
import sys
import tempfile
from pathlib import Path

from roundsman.context import RunContext
from roundsman.errors import PackagingError
from roundsman.transport.shell import RemoteShell
from roundsman.utils.logging import get_logger

logger = get_logger(__name__)

CONFIG_FILENAME = "solo.rb"
ATTRIBUTES_FILENAME = "solo.json"
ARCHIVE_FILENAME = "cookbooks.tar"


class TransferCoordinator:
    """Owns the remote chef directory and everything copied into it.

    Args:
        shell: Command helpers for the remote host
        context: State of the current run (directory-ensured flag)
        chef_directory: Remote working directory
        copyfile_disable: Set COPYFILE_DISABLE when archiving on macOS
    """

    def __init__(
        self,
        shell: RemoteShell,
        context: RunContext,
        chef_directory: str,
        copyfile_disable: bool = False,
    ) -> None:
        self._shell = shell
        self._context = context
        self._chef_directory = chef_directory
        self._copyfile_disable = copyfile_disable

    def ensure_chef_directory(self) -> None:
        """Create the chef directory and hand it to the login user, once per run."""
        if self._context.chef_directory_ensured:
            return
        self._shell.run(f"mkdir -p {self._chef_directory}")
        self._shell.run_as_root(f"chown -R {self._shell.user} {self._chef_directory}")
        self._context.chef_directory_ensured = True

    def chef_directory(self, *parts: str) -> str:
        self.ensure_chef_directory()
        return posixpath.join(self._chef_directory, *parts)

    def put_file(self, content: str, name: str) -> str:
        remote_path = self.chef_directory(name)
        self._shell.transport.put(content, remote_path)
        return remote_path

    def transfer_bundle(self, config_document: str, attributes_document: str) -> None:
        self.put_file(config_document, CONFIG_FILENAME)
        self.put_file(attributes_document, ATTRIBUTES_FILENAME)

    def transfer_cookbooks(self, cookbook_paths: list[str]) -> None:
        """Archive the cookbooks locally, upload and unpack them.

        The local archive is removed on every exit path.

        Raises:
            PackagingError: If tar fails locally
            TransportError: If the upload or the remote extraction fails
        """
        handle, archive_path = tempfile.mkstemp(prefix="cookbooks", suffix=".tar")
        os.close(handle)
        try:
            self._create_archive(archive_path, cookbook_paths)
            self._shell.transport.upload(archive_path, self.chef_directory(ARCHIVE_FILENAME))
            self._shell.run(f"cd {self.chef_directory()} && tar -xjf {ARCHIVE_FILENAME}")
        finally:
            Path(archive_path).unlink(missing_ok=True)

    def _archive_env(self) -> dict[str, str]:
        env = dict(os.environ)
        if self._copyfile_disable and sys.platform == "darwin":
            env["COPYFILE_DISABLE"] = "true"
        return env

    def _create_archive(self, archive_path: str, cookbook_paths: list[str]) -> None:
        logger.info(f"Packaging cookbooks: {', '.join(cookbook_paths)}")
        try:
            subprocess.run(
                ["tar", "-cjf", archive_path, *cookbook_paths],
                capture_output=True,
                text=True,
                check=True,
                env=self._archive_env(),
            )
        except subprocess.CalledProcessError as e:
            raise PackagingError((e.stderr or "").strip() or str(e)) from e
        except OSError as e:
            raise PackagingError(str(e)) from e
