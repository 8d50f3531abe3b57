"""Key/value entries kept in the data of a ConfigMap."""

from __future__ import annotations

from . import warn
from .objects import NotFoundError, nested_map, nested_set


def get_config_map(client, namespace, name):
    """Return the ConfigMap namespace/name; NotFoundError if it is missing."""
    try:
        return client.get("v1", "ConfigMap", namespace, name)
    except NotFoundError as err:
        warn.on_error(err)
        raise


def _data(cm):
    try:
        return nested_map(cm, "data")
    except KeyError:
        return None


def check_config_map_entry(client, key, ins):
    """Return the value stored under key, or an empty string if there is none."""
    cm = get_config_map(client, ins.namespace, ins.name)
    data = _data(cm)
    if data is None:
        return ""
    value = data.get(key)
    return "" if value is None else value


def _write(client, cm):
    try:
        client.update(cm)
    except Exception as err:
        warn.on_error(err)
        raise


def update_config_map_entry(client, key, value, ins):
    """Store value under key, creating the data section when needed."""
    try:
        cm = get_config_map(client, ins.namespace, ins.name)
    except Exception as err:
        warn.on_error(err)
        raise
    entries = _data(cm)
    if entries is None:
        entries = {}
    entries[key] = value
    nested_set(cm, entries, "data")
    _write(client, cm)


def delete_config_map_entry(client, key, ins):
    """Remove key from the data; a ConfigMap without data is left untouched."""
    try:
        cm = get_config_map(client, ins.namespace, ins.name)
    except Exception as err:
        warn.on_error(err)
        raise
    old = _data(cm)
    if old is None:
        return
    remaining = {k: v for k, v in old.items() if k != key}
    nested_set(cm, remaining, "data")
    _write(client, cm)