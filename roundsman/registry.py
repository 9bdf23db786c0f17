"""Settings registry with deferred values and override tracking.

The registry holds every value a provisioning run can see: the registered
defaults from ProvisioningSettings and any free-form node attributes the
caller adds. Values may be concrete or Deferred. Deferred values are never
evaluated on read; callers resolve them explicitly with a per-run cache.
"""

from collections.abc import Callable
from dataclasses import dataclass
from functools import cache
from typing import Any

from pydantic import ConfigDict, TypeAdapter, ValidationError

from roundsman.config import ProvisioningSettings
from roundsman.errors import SettingsError
from roundsman.templating import render_ruby_install_script

DEFERRED_DISPLAY = "<deferred>"
TRUNCATE_AT = 40

# A single cookbook directory may be given as a plain string.
ACCEPTED_TYPES: dict[str, Any] = {"cookbooks_directory": list[str] | str}


@dataclass(frozen=True, eq=False)
class Deferred:
    """A setting value computed when the bundle is assembled.

    Example:
        registry.set("root_password", Deferred(lambda: getpass("Root password: ")))
    """

    compute: Callable[[], Any]

    def resolve(self, cache: dict[int, Any] | None = None) -> Any:
        """Evaluate the computation, at most once per cache."""
        if cache is None:
            return self.compute()
        key = id(self)
        if key not in cache:
            cache[key] = self.compute()
        return cache[key]


@dataclass(frozen=True)
class ConfigurationEntry:
    """One line of the configuration listing."""

    name: str
    display_value: str
    overridden: bool

    def format(self) -> str:
        display_name = f":{self.name},".ljust(30)
        marker = "(overridden)" if self.overridden else ""
        return f"set {display_name} {self.display_value} {marker}".rstrip()


def display_value(value: Any) -> str:
    """Render a value for the configuration listing without evaluating it."""
    if isinstance(value, Deferred):
        return DEFERRED_DISPLAY
    text = repr(value)
    if len(text) > TRUNCATE_AT:
        return f"{text[: TRUNCATE_AT + 1]}... (truncated)"
    return text


@cache
def _setting_adapter(name: str) -> TypeAdapter:
    annotation = ACCEPTED_TYPES.get(name, ProvisioningSettings.model_fields[name].annotation)
    return TypeAdapter(annotation, config=ConfigDict(coerce_numbers_to_str=True))


def coerce_setting(name: str, value: Any) -> Any:
    """Validate a value against the type of a provisioning setting.

    Numbers given for string settings become strings, so ``chef_version=11``
    is stored as ``"11"``. Deferred values and names that are not
    provisioning settings pass through unchanged.

    Raises:
        SettingsError: If the value does not fit the setting's type.
    """
    if isinstance(value, Deferred) or name not in ProvisioningSettings.model_fields:
        return value
    try:
        return _setting_adapter(name).validate_python(value)
    except ValidationError as e:
        reason = e.errors()[0]["msg"]
        raise SettingsError(f"Invalid value for {name}: {value!r} ({reason})") from e


class SettingsRegistry:
    """Mapping of setting names to concrete or deferred values.

    Registered defaults remember whether the caller overrode them. Names
    that were never registered are plain node attributes and end up in the
    attributes document next to the defaults.
    """

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}
        self._defaults: list[str] = []
        self._overridden: set[str] = set()

    @classmethod
    def from_settings(
        cls,
        settings: ProvisioningSettings,
        overrides: dict[str, Any] | None = None,
    ) -> "SettingsRegistry":
        """Build a registry seeded with provisioning defaults.

        Fields present in settings.model_fields_set (set through the
        environment or the constructor) count as overridden, as does
        everything in overrides.
        """
        registry = cls()
        for name in type(settings).model_fields:
            registry.define(
                name,
                getattr(settings, name),
                overridden=name in settings.model_fields_set,
            )
        registry.define("ruby_install_script", default_ruby_install_script(registry))
        for name, value in (overrides or {}).items():
            registry.set(name, value)
        return registry

    def define(self, name: str, value: Any, *, overridden: bool = False) -> None:
        """Register a default.

        A name that already holds a value keeps it and is marked overridden.
        """
        value = coerce_setting(name, value)
        if name not in self._defaults:
            self._defaults.append(name)
        if name in self._values:
            self._overridden.add(name)
            return
        self._values[name] = value
        if overridden:
            self._overridden.add(name)

    def set(self, name: str, value: Any) -> None:
        """Set a value explicitly, marking registered defaults as overridden.

        Raises:
            SettingsError: If a provisioning setting gets a value of the wrong type.
        """
        self._values[name] = coerce_setting(name, value)
        if name in self._defaults:
            self._overridden.add(name)

    def update(self, values: dict[str, Any]) -> None:
        for name, value in values.items():
            self.set(name, value)

    def fetch(self, name: str) -> Any:
        """Return a concrete value.

        Raises:
            SettingsError: If the setting is unknown or deferred.
        """
        try:
            value = self._values[name]
        except KeyError:
            raise SettingsError(f"Unknown setting: {name}") from None
        if isinstance(value, Deferred):
            raise SettingsError(
                f"Setting {name} is deferred and must be resolved explicitly"
            )
        return value

    def resolve(self, name: str, cache: dict[int, Any] | None = None) -> Any:
        """Return a value, evaluating it if it is deferred."""
        if name not in self._values:
            raise SettingsError(f"Unknown setting: {name}")
        value = self._values[name]
        if isinstance(value, Deferred):
            return value.resolve(cache)
        return value

    def is_overridden(self, name: str) -> bool:
        return name in self._overridden

    def defaults(self) -> list[str]:
        """Registered default names, sorted."""
        return sorted(self._defaults)

    def snapshot(self) -> dict[str, Any]:
        """Shallow copy of all stored values, deferred ones included."""
        return dict(self._values)

    def configuration(self) -> list[ConfigurationEntry]:
        """Describe every registered default for the configuration listing."""
        return [
            ConfigurationEntry(
                name=name,
                display_value=display_value(self._values[name]),
                overridden=self.is_overridden(name),
            )
            for name in self.defaults()
        ]

    def __contains__(self, name: object) -> bool:
        return name in self._values


def default_ruby_install_script(registry: SettingsRegistry) -> Deferred:
    """Deferred install script rendered from the registry's current values."""
    return Deferred(
        lambda: render_ruby_install_script(
            chef_directory=registry.fetch("chef_directory"),
            ruby_version=registry.fetch("ruby_version"),
            ruby_install_dir=registry.fetch("ruby_install_dir"),
            ruby_build_repository=registry.fetch("ruby_build_repository"),
        )
    )
