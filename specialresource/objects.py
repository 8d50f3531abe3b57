"""Helpers for unstructured Kubernetes objects and an in-memory API client."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Iterable, Mapping


class NotFoundError(LookupError):
    """The requested API object does not exist."""


class ForbiddenError(PermissionError):
    """The client is not allowed to access the requested kind."""


@dataclass(frozen=True)
class NamespacedName:
    """Identifies an object by namespace and name."""

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}" if self.namespace else self.name


def _walk(obj: Mapping[str, Any], fields: tuple[str, ...]) -> Any:
    current: Any = obj
    for depth, field in enumerate(fields):
        if not isinstance(current, Mapping):
            path = ".".join(fields[:depth])
            raise TypeError(
                f"{path} accessor error: {current!r} is of type "
                f"{type(current).__name__}, expected a map"
            )
        if field not in current:
            raise KeyError(".".join(fields[: depth + 1]))
        current = current[field]
    return current


def nested_get(obj, *args):
    """Return the value at the given field path; KeyError if it is missing."""
    return _walk(obj, args)


def nested_set(obj, value, *args):
    """Store a copy of value at the field path, creating maps on the way."""
    if not args:
        raise ValueError("a field path is required")
    current = obj
    for depth, field in enumerate(args[:-1]):
        if field not in current:
            current[field] = {}
        child = current[field]
        if not isinstance(child, dict):
            path = ".".join(args[: depth + 1])
            raise TypeError(
                f"value cannot be set because {path} is of type "
                f"{type(child).__name__}, expected a map"
            )
        current = child
    current[args[-1]] = copy.deepcopy(value)


def _typed(obj, fields, expected, label):
    value = _walk(obj, fields)
    if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
        path = ".".join(fields)
        raise TypeError(
            f"{path} accessor error: {value!r} is of type "
            f"{type(value).__name__}, expected {label}"
        )
    return value


def nested_string(obj, *args):
    """Return the string at the field path."""
    return _typed(obj, args, str, "str")


def nested_int(obj, *args):
    """Return the integer at the field path."""
    return _typed(obj, args, int, "int")


def nested_map(obj, *args):
    """Return a deep copy of the map at the field path."""
    return copy.deepcopy(_typed(obj, args, dict, "map"))


def nested_list(obj, *args):
    """Return a deep copy of the list at the field path."""
    return copy.deepcopy(_typed(obj, args, list, "list"))


def _remove(obj, *fields):
    try:
        parent = _walk(obj, fields[:-1])
    except (KeyError, TypeError):
        return
    if isinstance(parent, dict):
        parent.pop(fields[-1], None)


def _metadata(obj) -> dict:
    metadata = obj.get("metadata")
    return metadata if isinstance(metadata, dict) else {}


def _string_or_empty(value) -> str:
    return value if isinstance(value, str) else ""


def _string_map(value) -> dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {str(k): v for k, v in value.items() if isinstance(v, str)}


def kind_of(obj):
    """Return the object's kind, or an empty string."""
    return _string_or_empty(obj.get("kind"))


def name_of(obj):
    """Return metadata.name, or an empty string."""
    return _string_or_empty(_metadata(obj).get("name"))


def namespace_of(obj):
    """Return metadata.namespace, or an empty string."""
    return _string_or_empty(_metadata(obj).get("namespace"))


def labels_of(obj):
    """Return a copy of metadata.labels."""
    return _string_map(_metadata(obj).get("labels"))


def annotations_of(obj):
    """Return a copy of metadata.annotations."""
    return _string_map(_metadata(obj).get("annotations"))


def set_name(obj, name):
    """Set metadata.name; an empty name removes the field."""
    if not name:
        _remove(obj, "metadata", "name")
    else:
        nested_set(obj, name, "metadata", "name")


def set_labels(obj, labels):
    """Replace metadata.labels; None removes the field."""
    if labels is None:
        _remove(obj, "metadata", "labels")
    else:
        nested_set(obj, dict(labels), "metadata", "labels")


def set_annotations(obj, annotations):
    """Replace metadata.annotations; None removes the field."""
    if annotations is None:
        _remove(obj, "metadata", "annotations")
    else:
        nested_set(obj, dict(annotations), "metadata", "annotations")


def _normalize_kind(kind: str) -> str:
    if kind.endswith("List") and len(kind) > 4:
        kind = kind[:-4]
    return kind.lower()


def _group_of(api_version: str) -> str:
    return api_version.rpartition("/")[0]


def _same_version(requested: str, stored: str) -> bool:
    return not requested or not stored or requested.lower() == stored.lower()


class KubeClient:
    """An in-memory Kubernetes API client.

    Objects are identified by kind, namespace and name. Kinds are matched
    case-insensitively, and a "List" suffix is ignored, so "PodList" and
    "pod" both address pods. Discovery results are cached until
    :meth:`invalidate` is called.
    """

    def __init__(
        self,
        objects: Iterable[dict] = (),
        *,
        resources: Iterable[tuple[str, str, str]] = (),
        logs: Mapping[tuple[str, str], str] | None = None,
        forbidden_kinds: Iterable[str] = (),
    ):
        self._store: dict[tuple[str, str, str], dict] = {}
        self._resources = set(resources)
        self._logs = dict(logs or {})
        self._forbidden = {_normalize_kind(kind) for kind in forbidden_kinds}
        self._groups: list[str] | None = None
        for obj in objects:
            self.create(obj)

    @staticmethod
    def _key(kind: str, namespace: str, name: str) -> tuple[str, str, str]:
        return _normalize_kind(kind), namespace or "", name

    def _check_access(self, kind: str) -> None:
        if _normalize_kind(kind) in self._forbidden:
            raise ForbiddenError(f"{kind} is forbidden")

    def get(self, api_version, kind, namespace, name):
        """Return a copy of the stored object."""
        self._check_access(kind)
        stored = self._store.get(self._key(kind, namespace, name))
        if stored is None or not _same_version(api_version, stored.get("apiVersion", "")):
            raise NotFoundError(f'{kind} "{name}" not found')
        return copy.deepcopy(stored)

    def list(self, api_version, kind, namespace, labels):
        """Return copies of the objects of a kind, filtered by namespace and labels."""
        self._check_access(kind)
        wanted = _normalize_kind(kind)
        selector = dict(labels or {})
        found = []
        for (stored_kind, stored_ns, _), obj in sorted(self._store.items()):
            if stored_kind != wanted:
                continue
            if namespace and stored_ns != namespace:
                continue
            if not _same_version(api_version, obj.get("apiVersion", "")):
                continue
            obj_labels = labels_of(obj)
            if any(obj_labels.get(k) != v for k, v in selector.items()):
                continue
            found.append(copy.deepcopy(obj))
        return found

    def create(self, obj):
        """Store a new object and return the stored copy."""
        kind, name = kind_of(obj), name_of(obj)
        if not kind or not name:
            raise ValueError("an object needs a kind and a name")
        self._check_access(kind)
        key = self._key(kind, namespace_of(obj), name)
        if key in self._store:
            raise ValueError(f'{kind} "{name}" already exists')
        stored = copy.deepcopy(obj)
        nested_set(stored, "1", "metadata", "resourceVersion")
        self._store[key] = stored
        return copy.deepcopy(stored)

    def update(self, obj):
        """Replace an existing object and return the stored copy."""
        kind, name = kind_of(obj), name_of(obj)
        self._check_access(kind)
        key = self._key(kind, namespace_of(obj), name)
        current = self._store.get(key)
        if current is None:
            raise NotFoundError(f'{kind} "{name}" not found')
        previous = _metadata(current).get("resourceVersion", "0")
        stored = copy.deepcopy(obj)
        nested_set(stored, str(int(previous) + 1), "metadata", "resourceVersion")
        self._store[key] = stored
        return copy.deepcopy(stored)

    def pod_logs(self, namespace, name):
        """Return the logs of a pod."""
        try:
            return self._logs[(namespace, name)]
        except KeyError:
            raise NotFoundError(f'logs of pod "{namespace}/{name}" not found') from None

    def invalidate(self):
        """Drop cached discovery information."""
        self._groups = None

    def server_groups(self):
        """Return the API groups known to the server."""
        if self._groups is None:
            groups = {group for group, _, _ in self._resources}
            groups.update(_group_of(obj.get("apiVersion", "")) for obj in self._store.values())
            self._groups = sorted(groups)
        return list(self._groups)

    def has_resource(self, group, version, resource):
        """Tell whether the server serves the given resource."""
        return (group, version, resource) in self._resources