"""Assemble the documents chef-solo reads: solo.rb and solo.json."""

import json
import os
from collections.abc import Mapping
from typing import Any

from roundsman.registry import Deferred, SettingsRegistry
from roundsman.templating import render_solo_rb
from roundsman.utils.logging import get_logger

logger = get_logger(__name__)

RUN_LIST_KEY = "run_list"
SCALAR_TYPES = (str, int, float, bool, type(None))


class _Excluded:
    """Marker for values that must not reach the attributes document."""


EXCLUDED = _Excluded()


def build_config_document(cookbook_paths: list[str]) -> str:
    """Render solo.rb.

    The document finds its own directory when chef-solo loads it and joins
    the cache and cookbook paths onto it. Paths are passed through as given.
    """
    return render_solo_rb([str(path) for path in cookbook_paths])


def build_attributes_document(
    registry: SettingsRegistry,
    run_list: list[str] | tuple[str, ...],
    cache: dict[int, Any] | None = None,
) -> dict[str, Any]:
    """Build the node attributes for chef-solo from the registry.

    Deferred values are evaluated once through ``cache`` (a fresh one per
    call when omitted). Only plain data survives: strings, numbers, booleans,
    None, paths, mappings and lists. Anything else, such as the transport,
    the registry itself or arbitrary callables, is left out. The registry is
    not modified.

    Args:
        registry: Settings and node attributes
        run_list: Recipes to apply, stored under ``run_list``
        cache: Deferred results keyed by identity, shared within one run

    Returns:
        A new dictionary ready for dump_attributes()
    """
    if cache is None:
        cache = {}

    attributes = _clean_mapping(registry.snapshot(), cache)
    attributes[RUN_LIST_KEY] = list(run_list)
    return attributes


def dump_attributes(document: Mapping[str, Any]) -> str:
    return json.dumps(document, separators=(",", ":"))


def _clean_mapping(mapping: Mapping, cache: dict[int, Any]) -> dict:
    cleaned = {}
    for key, value in mapping.items():
        if not isinstance(key, SCALAR_TYPES):
            continue
        value = _clean(value, cache)
        if value is EXCLUDED:
            logger.debug(f"Leaving {key!r} out of the attributes document")
            continue
        cleaned[key] = value
    return cleaned


def _clean(value: Any, cache: dict[int, Any]) -> Any:
    if isinstance(value, Deferred):
        value = value.resolve(cache)

    if isinstance(value, SCALAR_TYPES):
        return value
    if isinstance(value, os.PathLike):
        return os.fspath(value)
    if isinstance(value, Mapping):
        return _clean_mapping(value, cache)
    if isinstance(value, (list, tuple)):
        items = (_clean(item, cache) for item in value)
        return [item for item in items if item is not EXCLUDED]
    return EXCLUDED
