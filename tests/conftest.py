"""Pytest configuration and shared fixtures."""

import subprocess
from pathlib import Path

import pytest

from roundsman.config import reset_settings
from roundsman.errors import CommandFailedError


@pytest.fixture(autouse=True)
def reset_config_settings():
    """Reset the settings singleton before and after each test.

    This ensures that environment variable changes made by monkeypatch
    are properly reflected in the settings, since pydantic-settings
    reads env vars at instantiation time.
    """
    reset_settings()
    yield
    reset_settings()


class RecordingTransport:
    """In-memory RemoteTransport that records every call in order.

    ``responses`` maps a command substring to the output capture() returns.
    ``failures`` maps a command substring to the exit status it fails with.
    """

    def __init__(self, responses=None, failures=None, user="deploy"):
        self._user = user
        self.responses = dict(responses or {})
        self.failures = dict(failures or {})
        self.calls: list[tuple[str, str]] = []
        self.files: dict[str, bytes] = {}

    @property
    def user(self) -> str:
        return self._user

    def _execute(self, kind: str, command: str) -> int:
        self.calls.append((kind, command))
        for fragment, status in self.failures.items():
            if fragment in command:
                raise CommandFailedError(command, status)
        return 0

    def run(self, command: str) -> int:
        return self._execute("run", command)

    def stream(self, command: str) -> int:
        return self._execute("stream", command)

    def capture(self, command: str) -> str:
        self._execute("capture", command)
        for fragment, output in self.responses.items():
            if fragment in command:
                return output
        return ""

    def upload(self, local_path, remote_path: str) -> None:
        self.calls.append(("upload", remote_path))
        self.files[remote_path] = Path(local_path).read_bytes()

    def put(self, content, remote_path: str) -> None:
        self.calls.append(("put", remote_path))
        if isinstance(content, str):
            content = content.encode("utf-8")
        self.files[remote_path] = content

    def commands(self, *kinds: str) -> list[str]:
        """Commands of the given kinds (all command kinds by default)."""
        kinds = kinds or ("run", "stream", "capture")
        return [command for kind, command in self.calls if kind in kinds]


@pytest.fixture
def make_transport():
    """Factory for RecordingTransport instances."""
    return RecordingTransport


@pytest.fixture
def ubuntu_transport():
    """Transport for an Ubuntu host with matching Ruby and Chef installed."""
    return RecordingTransport(
        responses={
            "cat /etc/issue": "Ubuntu 12.04 LTS \\n \\l\n",
            "ruby --version": "ruby 1.9.3p125 (2012-02-16 revision 34643) [x86_64-linux]\n",
            "gem list chef": "true\n",
        }
    )


@pytest.fixture
def cookbooks_dir(tmp_path, monkeypatch) -> Path:
    """Run from tmp_path with a config/cookbooks directory present."""
    cookbooks = tmp_path / "config" / "cookbooks"
    (cookbooks / "base" / "recipes").mkdir(parents=True)
    (cookbooks / "base" / "recipes" / "default.rb").write_text("package 'tree'\n")
    monkeypatch.chdir(tmp_path)
    return cookbooks


@pytest.fixture
def fake_tar(monkeypatch):
    """Replace the local tar invocation; records each call.

    The fake writes a small payload to the archive path so uploads have
    something to read.
    """
    calls = []

    def fake_run(args, **kwargs):
        calls.append({"args": args, "env": kwargs.get("env")})
        Path(args[2]).write_bytes(b"BZh91AY&SY")
        return subprocess.CompletedProcess(args, 0, "", "")

    monkeypatch.setattr("roundsman.transfer.subprocess.run", fake_run)
    return calls
