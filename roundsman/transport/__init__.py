"""Remote execution channel used to provision a host."""

from roundsman.transport.protocols import RemoteTransport
from roundsman.transport.shell import RemoteShell
from roundsman.transport.ssh import SSHTransport

__all__ = ["RemoteShell", "RemoteTransport", "SSHTransport"]
