"""Tests for centralized configuration settings."""

from pydantic import SecretStr

from roundsman.config import (
    DEFAULT_RUBY_DEPENDENCIES,
    LoggingSettings,
    ProvisioningSettings,
    Settings,
    SSHSettings,
    get_settings,
    reset_settings,
)


class TestProvisioningSettings:
    """Tests for provisioning defaults."""

    def test_default_values(self):
        settings = ProvisioningSettings()
        assert settings.ruby_version == "1.9.3-p125"
        assert settings.cookbooks_directory == ["config/cookbooks"]
        assert settings.stream_chef_output is True
        assert settings.care_about_ruby_version is True
        assert settings.chef_directory == "/tmp/chef"
        assert settings.chef_version == "~> 0.10.8"
        assert settings.copyfile_disable is False
        assert settings.ruby_dependencies == DEFAULT_RUBY_DEPENDENCIES
        assert settings.ruby_install_dir == "/usr/local"
        assert settings.package_manager == "aptitude"

    def test_defaults_are_not_marked_as_set(self):
        settings = ProvisioningSettings()
        assert settings.model_fields_set == set()

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("ROUNDSMAN_RUBY_VERSION", "2.7.8")
        monkeypatch.setenv("ROUNDSMAN_STREAM_CHEF_OUTPUT", "false")
        monkeypatch.setenv("ROUNDSMAN_COOKBOOKS_DIRECTORY", '["cookbooks", "site-cookbooks"]')

        settings = ProvisioningSettings()
        assert settings.ruby_version == "2.7.8"
        assert settings.stream_chef_output is False
        assert settings.cookbooks_directory == ["cookbooks", "site-cookbooks"]
        assert settings.model_fields_set == {
            "ruby_version",
            "stream_chef_output",
            "cookbooks_directory",
        }

    def test_dependency_list_is_not_shared(self):
        settings = ProvisioningSettings()
        settings.ruby_dependencies.append("htop")
        assert "htop" not in ProvisioningSettings().ruby_dependencies


class TestSSHSettings:
    """Tests for SSH configuration."""

    def test_default_values(self):
        settings = SSHSettings()
        assert settings.host is None
        assert settings.port == 22
        assert settings.user is None
        assert settings.key_filename is None
        assert settings.password is None
        assert settings.sudo == "sudo"
        assert settings.connect_timeout == 30.0

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("ROUNDSMAN_SSH_HOST", "web1.example.com")
        monkeypatch.setenv("ROUNDSMAN_SSH_PORT", "2222")
        monkeypatch.setenv("ROUNDSMAN_SSH_USER", "deploy")

        settings = SSHSettings()
        assert settings.host == "web1.example.com"
        assert settings.port == 2222
        assert settings.user == "deploy"

    def test_password_is_secret(self, monkeypatch):
        monkeypatch.setenv("ROUNDSMAN_SSH_PASSWORD", "hunter2")

        settings = SSHSettings()
        assert isinstance(settings.password, SecretStr)
        assert "hunter2" not in repr(settings.password)

    def test_sudo_is_stripped(self, monkeypatch):
        monkeypatch.setenv("ROUNDSMAN_SSH_SUDO", " sudo -E ")

        assert SSHSettings().sudo == "sudo -E"


class TestLoggingSettings:
    """Tests for logging configuration."""

    def test_default_values(self):
        settings = LoggingSettings()
        assert settings.debug_all is False
        assert settings.log_level == "INFO"

    def test_log_level_uppercased(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")

        settings = LoggingSettings()
        assert settings.log_level == "DEBUG"


class TestSettings:
    """Tests for root settings and the singleton."""

    def test_nested_settings(self):
        settings = Settings()
        assert isinstance(settings.provisioning, ProvisioningSettings)
        assert isinstance(settings.ssh, SSHSettings)
        assert isinstance(settings.logging, LoggingSettings)

    def test_singleton(self):
        assert get_settings() is get_settings()

    def test_reset_settings(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("ROUNDSMAN_CHEF_DIRECTORY", "/var/chef")
        reset_settings()

        second = get_settings()
        assert second is not first
        assert second.provisioning.chef_directory == "/var/chef"
