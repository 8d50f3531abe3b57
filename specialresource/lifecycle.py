"""Track DaemonSet pods that still run an outdated template."""

from __future__ import annotations

import logging
import os

from . import warn
from .fnv import fnv64a
from .objects import NamespacedName, name_of, namespace_of, nested_map
from .storage import update_config_map_entry

logger = logging.getLogger(__name__)

LIFECYCLE_CONFIG_MAP = "special-resource-lifecycle"
POD_MARKER = "*v1.Pod"


def get_pods_from_daemonset(client, key):
    """Return the pods selected by the DaemonSet key; empty on any failure."""
    try:
        ds = client.get("apps/v1", "DaemonSet", key.namespace, key.name)
    except Exception as err:
        warn.on_error(err)
        return []

    try:
        labels = nested_map(ds, "spec", "selector", "matchLabels")
    except KeyError:
        return []
    except TypeError as err:
        warn.on_error(err)
        return []

    match_labels = {str(k): str(v) for k, v in labels.items()}
    try:
        return client.list("v1", "PodList", key.namespace, match_labels)
    except Exception as err:
        warn.on_error(err)
        return []


def update_daemonset_pods(client, obj, lifecycle_namespace=None):
    """Record every pod of the DaemonSet obj in the lifecycle ConfigMap."""
    logger.info("UpdateDaemonSetPods")
    if lifecycle_namespace is None:
        lifecycle_namespace = os.environ.get("OPERATOR_NAMESPACE", "")
    key = NamespacedName(namespace_of(obj), name_of(obj))
    ins = NamespacedName(lifecycle_namespace, LIFECYCLE_CONFIG_MAP)

    for pod in get_pods_from_daemonset(client, key):
        digest = fnv64a(namespace_of(pod) + name_of(pod))
        logger.info("%s hs=%s value=%s", name_of(pod), digest, POD_MARKER)
        update_config_map_entry(client, digest, POD_MARKER, ins)