"""Configuration module for roundsman.

This module provides centralized, type-safe configuration management
using pydantic-settings with environment variable loading.

Usage:
    from roundsman.config import get_settings

    settings = get_settings()

    # Provisioning defaults (seed the SettingsRegistry)
    ruby_version = settings.provisioning.ruby_version

    # SSH connection
    host = settings.ssh.host

    # Access sensitive values (use .get_secret_value() for actual value)
    password = settings.ssh.password.get_secret_value()
"""

from roundsman.config.settings import (
    DEFAULT_RUBY_DEPENDENCIES,
    LoggingSettings,
    ProvisioningSettings,
    Settings,
    SSHSettings,
    get_settings,
    reset_settings,
)

__all__ = [
    "DEFAULT_RUBY_DEPENDENCIES",
    "LoggingSettings",
    "ProvisioningSettings",
    "SSHSettings",
    "Settings",
    "get_settings",
    "reset_settings",
]
