#!/usr/bin/env python3

import json
from functools import wraps

import click
from dotenv import load_dotenv

from roundsman.config import ProvisioningSettings, get_settings
from roundsman.errors import (
    CommandFailedError,
    RoundsmanError,
    SettingsError,
    get_error_human_message,
)
from roundsman.orchestrator import Provisioner
from roundsman.registry import SettingsRegistry
from roundsman.transport.ssh import SSHTransport
from roundsman.utils.logging import setup_logging

STRING_SETTINGS = frozenset(
    name
    for name, field in ProvisioningSettings.model_fields.items()
    if field.annotation is str
)


def parse_assignment(ctx, param, values):
    """Callback turning repeated NAME=VALUE options into a dict.

    Values are parsed as JSON when possible, so ``--set stream_chef_output=false``
    yields a boolean. String settings keep the text as given, so
    ``--set ruby_version=2.10`` stays ``"2.10"``.
    """
    assignments = {}
    for item in values:
        name, sep, raw = item.partition("=")
        if not sep or not name:
            raise click.BadParameter(f"Expected NAME=VALUE, got {item!r}")
        if name in STRING_SETTINGS:
            assignments[name] = raw
            continue
        try:
            assignments[name] = json.loads(raw)
        except ValueError:
            assignments[name] = raw
    return assignments


def load_attributes(ctx, param, value):
    """Callback reading a JSON object of node attributes."""
    if value is None:
        return {}
    try:
        attributes = json.load(value)
    except ValueError as e:
        raise click.BadParameter(f"Not valid JSON: {e}") from e
    if not isinstance(attributes, dict):
        raise click.BadParameter("Attributes file must contain a JSON object")
    return attributes


def build_registry(attributes: dict, overrides: dict) -> SettingsRegistry:
    registry = SettingsRegistry.from_settings(get_settings().provisioning)
    registry.update(attributes)
    registry.update(overrides)
    return registry


def build_transport(ctx_obj: dict) -> SSHTransport:
    ssh_settings = get_settings().ssh.model_copy(
        update={
            name: value
            for name, value in (
                ("host", ctx_obj["host"]),
                ("user", ctx_obj["user"]),
                ("port", ctx_obj["port"]),
                ("key_filename", ctx_obj["identity"]),
            )
            if value is not None
        }
    )
    return SSHTransport(ssh_settings)


def provisioner_command(func):
    """Run a Provisioner operation and translate roundsman errors to exit codes."""

    @click.pass_context
    @wraps(func)
    def wrapper(ctx, *args, **kwargs):
        with build_transport(ctx.obj) as transport:
            provisioner = Provisioner(
                ctx.obj["registry"], transport, sudo=get_settings().ssh.sudo
            )
            try:
                func(provisioner, *args, **kwargs)
            except RoundsmanError as e:
                error = click.ClickException(get_error_human_message(e))
                if isinstance(e, CommandFailedError) and e.exit_status > 0:
                    error.exit_code = e.exit_status
                raise error from e

    return wrapper


@click.group(invoke_without_command=True)
@click.option("--host", help="Host to provision (default: ROUNDSMAN_SSH_HOST)")
@click.option("--user", help="SSH login user (default: ROUNDSMAN_SSH_USER)")
@click.option("--port", type=int, help="SSH port (default: ROUNDSMAN_SSH_PORT)")
@click.option(
    "--identity",
    type=click.Path(exists=True, dir_okay=False),
    help="Private key file (default: ROUNDSMAN_SSH_KEY_FILENAME)",
)
@click.option(
    "--set",
    "overrides",
    multiple=True,
    callback=parse_assignment,
    metavar="NAME=VALUE",
    help="Override a setting or add a node attribute. Repeatable.",
)
@click.option(
    "--attributes",
    type=click.File("r"),
    callback=load_attributes,
    help="JSON file with node attributes merged into solo.json",
)
@click.pass_context
def cli(ctx, host, user, port, identity, overrides, attributes) -> None:
    """Roundsman - provision hosts with Ruby, Chef and cookbooks over SSH"""
    ctx.ensure_object(dict)
    ctx.obj.update(host=host, user=user, port=port, identity=identity)
    try:
        ctx.obj["registry"] = build_registry(attributes, overrides)
    except SettingsError as e:
        raise click.UsageError(get_error_human_message(e)) from e
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.pass_context
def configuration(ctx) -> None:
    """List every setting, its value and whether it was overridden"""
    for entry in ctx.obj["registry"].configuration():
        click.echo(entry.format())


@cli.command("install-ruby")
@provisioner_command
def install_ruby(provisioner) -> None:
    """Build and install Ruby with ruby-build"""
    provisioner.install_ruby()


@cli.command("install-dependencies")
@provisioner_command
def install_dependencies(provisioner) -> None:
    """Install the packages needed to build Ruby"""
    provisioner.install_dependencies()


@cli.command("install-chef")
@provisioner_command
def install_chef(provisioner) -> None:
    """Reinstall the chef gem at the configured version"""
    provisioner.install_chef()


@cli.command("check-ruby-version")
@provisioner_command
def check_ruby_version(provisioner) -> None:
    """Fail unless the installed Ruby matches ruby_version"""
    provisioner.check_ruby_version()


@cli.command()
@click.argument("run_list", nargs=-1)
@provisioner_command
def chef(provisioner, run_list) -> None:
    """Provision the host and run chef-solo with RUN_LIST"""
    provisioner.chef(*run_list)


def main() -> None:
    load_dotenv()
    setup_logging()
    cli()


if __name__ == "__main__":
    main()
