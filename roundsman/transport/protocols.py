"""Interface every remote transport must implement.

The orchestrator only talks to the host through this protocol, so tests
and alternative channels can stand in for SSH.
"""

from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class RemoteTransport(Protocol):
    """Blocking command execution and file transfer on one remote host.

    Every command method raises CommandFailedError on a non-zero exit
    status and TransportError when the channel itself fails.
    """

    @property
    def user(self) -> str:
        """Login user on the remote host."""
        ...

    def run(self, command: str) -> int:
        """Run a command silently and return its exit status."""
        ...

    def stream(self, command: str) -> int:
        """Run a command, logging its output as it arrives."""
        ...

    def capture(self, command: str) -> str:
        """Run a command and return its standard output."""
        ...

    def upload(self, local_path: str | Path, remote_path: str) -> None:
        """Copy a local file to the remote host."""
        ...

    def put(self, content: str | bytes, remote_path: str) -> None:
        """Write content to a remote file."""
        ...
