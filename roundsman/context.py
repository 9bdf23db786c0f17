"""Per-call state of one orchestration run."""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class RunContext:
    """Memoization flags and caches for a single orchestration call.

    A new context is created for every Provisioner operation and is never
    shared between calls or hosts.
    """

    chef_directory_ensured: bool = False
    distro_checked: bool = False
    distribution: str | None = None
    deferred_cache: dict[int, Any] = field(default_factory=dict)
