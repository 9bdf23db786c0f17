"""Centralized configuration management using pydantic-settings.

This module provides type-safe configuration with environment variable loading,
validation, and the provisioning defaults that seed every SettingsRegistry.
"""

from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_RUBY_DEPENDENCIES = [
    "git-core",
    "curl",
    "build-essential",
    "bison",
    "openssl",
    "libreadline6",
    "libreadline6-dev",
    "zlib1g",
    "zlib1g-dev",
    "libssl-dev",
    "libyaml-dev",
    "libxml2-dev",
    "libxslt-dev",
    "autoconf",
    "libc6-dev",
    "ncurses-dev",
    "vim",
    "wget",
    "tree",
]


class ProvisioningSettings(BaseSettings):
    """Defaults for a provisioning run.

    Every field becomes a registered default of the SettingsRegistry. A field
    that was set through the environment counts as overridden.
    """

    model_config = SettingsConfigDict(env_prefix="ROUNDSMAN_", extra="ignore")

    ruby_version: str = Field(
        default="1.9.3-p125",
        description="Ruby version installed with ruby-build",
    )
    cookbooks_directory: list[str] = Field(
        default_factory=lambda: ["config/cookbooks"],
        description="Local cookbook directories, filtered to existing paths",
    )
    stream_chef_output: bool = Field(
        default=True,
        description="Stream remote command output instead of running silently",
    )
    care_about_ruby_version: bool = Field(
        default=True,
        description="Report a Ruby version mismatch as a problem",
    )
    chef_directory: str = Field(
        default="/tmp/chef",
        description="Remote working directory for all provisioning files",
    )
    chef_version: str = Field(
        default="~> 0.10.8",
        description="Version constraint for the chef gem",
    )
    copyfile_disable: bool = Field(
        default=False,
        description="Set COPYFILE_DISABLE while archiving cookbooks on macOS",
    )
    ruby_dependencies: list[str] = Field(
        default_factory=lambda: list(DEFAULT_RUBY_DEPENDENCIES),
        description="OS packages installed before building Ruby",
    )
    ruby_install_dir: str = Field(
        default="/usr/local",
        description="Prefix ruby-build installs Ruby into",
    )
    ruby_build_repository: str = Field(
        default="git://github.com/sstephenson/ruby-build.git",
        description="Git repository ruby-build is cloned from",
    )
    package_manager: str = Field(
        default="aptitude",
        description="Package manager used to install ruby_dependencies",
    )


class SSHSettings(BaseSettings):
    """SSH connection configuration."""

    model_config = SettingsConfigDict(env_prefix="ROUNDSMAN_SSH_", extra="ignore")

    host: str | None = Field(
        default=None,
        description="Host to provision",
    )
    port: int = Field(
        default=22,
        description="SSH port",
    )
    user: str | None = Field(
        default=None,
        description="Login user (also owns the remote chef directory)",
    )
    key_filename: str | None = Field(
        default=None,
        description="Path to the private key used for authentication",
    )
    password: SecretStr | None = Field(
        default=None,
        description="Password for authentication",
    )
    sudo: str = Field(
        default="sudo",
        description="Command prefix used for privileged commands",
    )
    connect_timeout: float = Field(
        default=30.0,
        description="Connection timeout in seconds",
    )

    @field_validator("sudo")
    @classmethod
    def strip_sudo(cls, v: str) -> str:
        return v.strip()


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    debug_all: bool = Field(
        default=False,
        validation_alias="DEBUG_ALL",
        description="Enable debug logging for all libraries",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Log level for roundsman namespace",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def uppercase_log_level(cls, v: str) -> str:
        if isinstance(v, str):
            return v.upper()
        return v


class Settings(BaseSettings):
    """Root settings class with all nested configurations.

    Usage:
        from roundsman.config import get_settings

        settings = get_settings()
        version = settings.provisioning.ruby_version
        host = settings.ssh.host
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
    )

    provisioning: ProvisioningSettings = Field(default_factory=ProvisioningSettings)
    ssh: SSHSettings = Field(default_factory=SSHSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


# Singleton pattern for settings
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance.

    Returns:
        The singleton Settings instance with all configuration loaded.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings singleton (useful for testing)."""
    global _settings
    _settings = None
