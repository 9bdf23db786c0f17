"""Read-only queries against the remote host.

Probe commands are written so that a missing program is reported as
ordinary output rather than a failed command. Absence is data: it comes
back as the NOT_FOUND sentinel, never as an exception.
"""

import shlex
from enum import Enum

from roundsman.context import RunContext
from roundsman.transport.shell import RemoteShell


class Absent(Enum):
    """Sentinel for something the probe looked for and did not find."""

    NOT_FOUND = "not found"

    def __repr__(self) -> str:
        return "NOT_FOUND"


NOT_FOUND = Absent.NOT_FOUND

RUBY_VERSION_COMMAND = "ruby --version || true"
DISTRIBUTION_COMMAND = "cat /etc/issue"


class RemoteProbe:
    """Queries installed Ruby, installed Chef and the Linux distribution.

    The distribution is cached in the run context, so it is fetched at most
    once per orchestration call.
    """

    def __init__(self, shell: RemoteShell, context: RunContext) -> None:
        self._shell = shell
        self._context = context

    def runtime_version(self) -> str | Absent:
        output = self._shell.capture(RUBY_VERSION_COMMAND).strip()
        if not output or "not found" in output:
            return NOT_FOUND
        return output

    def agent_satisfies_version(self, constraint: str) -> bool:
        output = self._shell.capture(
            f"gem list chef -i -v {shlex.quote(constraint)} || true"
        ).strip()
        return output == "true"

    def distribution(self) -> str:
        if self._context.distribution is None:
            self._context.distribution = self._shell.capture(DISTRIBUTION_COMMAND).strip()
        return self._context.distribution
