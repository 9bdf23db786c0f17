"""Provisioning orchestrator.

Sequences the probe, the install decisions, bundle assembly, the transfer
and the chef-solo run for one host. Every public operation starts a fresh
ProvisioningRun, so memoized facts and once-per-run side effects never leak
from one call into the next.
"""

import shlex
from pathlib import Path

from roundsman.bundle import (
    build_attributes_document,
    build_config_document,
    dump_attributes,
)
from roundsman.context import RunContext
from roundsman.decisions import (
    is_supported_distro,
    should_install_agent,
    should_install_runtime,
)
from roundsman.errors import CommandFailedError, PreconditionError
from roundsman.probe import RemoteProbe
from roundsman.registry import SettingsRegistry
from roundsman.transfer import (
    ATTRIBUTES_FILENAME,
    CONFIG_FILENAME,
    TransferCoordinator,
)
from roundsman.transport.protocols import RemoteTransport
from roundsman.transport.shell import RemoteShell
from roundsman.utils.logging import get_logger

logger = get_logger(__name__)

INSTALL_SCRIPT_FILENAME = "install_ruby.sh"
GEM_INSTALL_FLAGS = "--quiet --no-ri --no-rdoc"


class ProvisioningRun:
    """Collaborators bound to a single orchestration call."""

    def __init__(
        self, registry: SettingsRegistry, transport: RemoteTransport, sudo: str
    ) -> None:
        self.context = RunContext()
        self.shell = RemoteShell(
            transport,
            stream_output=registry.fetch("stream_chef_output"),
            sudo=sudo,
        )
        self.probe = RemoteProbe(self.shell, self.context)
        self.transfer = TransferCoordinator(
            self.shell,
            self.context,
            chef_directory=registry.fetch("chef_directory"),
            copyfile_disable=registry.fetch("copyfile_disable"),
        )


class Provisioner:
    """Provision one host with Ruby, Chef and cookbooks.

    Usage:
        registry = SettingsRegistry.from_settings(get_settings().provisioning)
        with SSHTransport() as transport:
            Provisioner(registry, transport).chef("base", "nginx::default")
    """

    def __init__(
        self,
        registry: SettingsRegistry,
        transport: RemoteTransport,
        sudo: str = "sudo",
    ) -> None:
        self.registry = registry
        self.transport = transport
        self.sudo = sudo

    def _start_run(self) -> ProvisioningRun:
        return ProvisioningRun(self.registry, self.transport, self.sudo)

    # Public operations

    def chef(self, *run_list: str) -> None:
        """Provision the host and converge it with the given run list.

        Raises:
            PreconditionError: Empty run list, no cookbooks, unsupported distro
            TransportError: A remote command or transfer failed
            PackagingError: The cookbooks could not be archived
        """
        cookbooks = self._ensure_cookbooks_exist(run_list)
        run = self._start_run()
        self._ensure_supported_distro(run)

        if self._install_ruby_needed(run):
            self._install_dependencies(run)
            self._install_ruby(run)

        if should_install_agent(
            run.probe.agent_satisfies_version(self.registry.fetch("chef_version"))
        ):
            self._install_chef(run)

        config_document = build_config_document(cookbooks)
        attributes = build_attributes_document(
            self.registry, run_list, cache=run.context.deferred_cache
        )
        run.transfer.transfer_bundle(config_document, dump_attributes(attributes))
        run.transfer.transfer_cookbooks(cookbooks)
        self._converge(run)

    def install_ruby(self) -> None:
        self._install_ruby(self._start_run())

    def install_dependencies(self) -> None:
        self._install_dependencies(self._start_run())

    def install_chef(self) -> None:
        self._install_chef(self._start_run())

    def check_ruby_version(self) -> None:
        """Raise PreconditionError when the installed Ruby would be replaced."""
        if self._install_ruby_needed(self._start_run()):
            raise PreconditionError(
                f"Ruby {self.registry.fetch('ruby_version')} is not installed."
            )

    def configuration(self) -> list[str]:
        return [entry.format() for entry in self.registry.configuration()]

    def cookbooks_paths(self) -> list[str]:
        directories = self.registry.fetch("cookbooks_directory")
        if isinstance(directories, str):
            directories = [directories]
        return [str(path) for path in directories if Path(path).exists()]

    # Steps

    def _ensure_cookbooks_exist(self, run_list: tuple[str, ...]) -> list[str]:
        if not run_list:
            raise PreconditionError(
                "You must specify at least one recipe when running roundsman.chef"
            )
        cookbooks = self.cookbooks_paths()
        if not cookbooks:
            raise PreconditionError(
                f"No cookbooks found in {self.registry.fetch('cookbooks_directory')}"
            )
        return cookbooks

    def _ensure_supported_distro(self, run: ProvisioningRun) -> None:
        if run.context.distro_checked:
            return
        distribution = run.probe.distribution()
        logger.info(f"Using Linux distribution {distribution}")
        if not is_supported_distro(distribution):
            raise PreconditionError("This distribution is not (yet) supported.")
        run.context.distro_checked = True

    def _install_ruby_needed(self, run: ProvisioningRun) -> bool:
        return should_install_runtime(
            self.registry.fetch("ruby_version"),
            run.probe.runtime_version(),
            strict=self.registry.fetch("care_about_ruby_version"),
        )

    def _install_dependencies(self, run: ProvisioningRun) -> None:
        self._ensure_supported_distro(run)
        package_manager = self.registry.fetch("package_manager")
        packages = " ".join(self.registry.fetch("ruby_dependencies"))
        run.shell.run_as_root(f"{package_manager} -yq update")
        run.shell.run_as_root(f"{package_manager} -yq install {packages}")

    def _install_ruby(self, run: ProvisioningRun) -> None:
        script = self.registry.resolve(
            "ruby_install_script", cache=run.context.deferred_cache
        )
        script_path = run.transfer.put_file(script, INSTALL_SCRIPT_FILENAME)
        run.shell.run_as_root(f"bash {script_path}")

    def _install_chef(self, run: ProvisioningRun) -> None:
        try:
            run.shell.run_as_root("gem uninstall -xaI chef")
        except CommandFailedError as e:
            logger.warning(f"Ignoring failed chef removal (exit status {e.exit_status})")

        chef_version = shlex.quote(self.registry.fetch("chef_version"))
        run.shell.run_as_root(f"gem install chef -v {chef_version} {GEM_INSTALL_FLAGS}")
        run.shell.run_as_root(f"gem install ruby-shadow {GEM_INSTALL_FLAGS}")

    def _converge(self, run: ProvisioningRun) -> None:
        config_path = run.transfer.chef_directory(CONFIG_FILENAME)
        attributes_path = run.transfer.chef_directory(ATTRIBUTES_FILENAME)
        run.shell.run_as_root(f"chef-solo -c {config_path} -j {attributes_path}")
