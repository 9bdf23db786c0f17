"""Command helpers layered over a RemoteTransport."""

from roundsman.transport.protocols import RemoteTransport


class RemoteShell:
    """Chooses streaming or silent execution and adds privilege escalation.

    Args:
        transport: Channel to the remote host
        stream_output: Stream command output (the stream_chef_output setting)
        sudo: Prefix for commands that must run as root
    """

    def __init__(
        self, transport: RemoteTransport, stream_output: bool = True, sudo: str = "sudo"
    ) -> None:
        self.transport = transport
        self.stream_output = stream_output
        self.sudo = sudo

    @property
    def user(self) -> str:
        return self.transport.user

    def run(self, command: str) -> int:
        if self.stream_output:
            return self.transport.stream(command)
        return self.transport.run(command)

    def run_as_root(self, command: str) -> int:
        if not self.sudo:
            return self.run(command)
        return self.run(f"{self.sudo} {command}")

    def capture(self, command: str) -> str:
        return self.transport.capture(command)
