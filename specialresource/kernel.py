"""Kernel-affine attributes of manifests and kernel version helpers."""

import logging

from .fnv import fnv64a
from .objects import (
    annotations_of,
    kind_of,
    labels_of,
    name_of,
    nested_map,
    nested_set,
    set_name,
)

logger = logging.getLogger(__name__)

KERNEL_VERSION_LABEL = "feature.node.kubernetes.io/kernel-version.full"
KERNEL_AFFINE_ANNOTATION = "specialresource.openshift.io/kernel-affine"

_WORKLOAD_KINDS = ("DaemonSet", "Deployment", "StatefulSet")
_TEMPLATE_KINDS = ("DaemonSet", "Deployment", "Statefulset")
_APP_LABEL_PATHS = (
    ("metadata", "labels", "app"),
    ("spec", "selector", "matchLabels", "app"),
    ("spec", "template", "metadata", "labels", "app"),
)


def set_affine_attributes(obj, kernel_full_version, operating_system_major_minor):
    """Make the object's name and selectors specific to a kernel version."""
    kernel_version = kernel_full_version.replace("_", "-")
    digest = fnv64a(f"{operating_system_major_minor}-{kernel_version}")
    name = f"{name_of(obj)}-{digest}"
    set_name(obj, name)

    kind = kind_of(obj)
    if kind == "BuildRun":
        nested_set(obj, name, "spec", "buildRef", "name")
    if kind in _WORKLOAD_KINDS:
        for path in _APP_LABEL_PATHS:
            nested_set(obj, name, *path)

    try:
        set_version_node_affinity(obj, kernel_full_version)
    except TypeError as err:
        raise TypeError(f"Cannot set kernel version node affinity for obj: {kind}") from err


def set_version_node_affinity(obj, kernel_full_version):
    """Add a kernel version node selector to workloads, pods and build configs."""
    kind = kind_of(obj)
    if kind in _TEMPLATE_KINDS:
        _version_node_affinity(obj, kernel_full_version, "spec", "template", "spec", "nodeSelector")
    if kind in ("Pod", "BuildConfig"):
        _version_node_affinity(obj, kernel_full_version, "spec", "nodeSelector")


def _version_node_affinity(obj, kernel_full_version, *fields):
    try:
        selector = nested_map(obj, *fields)
    except KeyError:
        selector = {}
    selector[KERNEL_VERSION_LABEL] = kernel_full_version
    nested_set(obj, selector, *fields)


def is_object_affine(obj):
    """Tell whether the object is annotated as kernel affine."""
    if annotations_of(obj).get(KERNEL_AFFINE_ANNOTATION) == "true":
        logger.info("Object is Kernel Affine: %s", name_of(obj))
        return True
    return False


def full_version(nodes):
    """Return the kernel version label of the nodes; all must carry it."""
    version = ""
    for node in nodes:
        labels = labels_of(node)
        if KERNEL_VERSION_LABEL not in labels:
            raise ValueError(
                f"Label {KERNEL_VERSION_LABEL} not found is NFD running? Check node labels"
            )
        version = labels[KERNEL_VERSION_LABEL]
    return version


def patch_version(kernel_full_version):
    """Reduce a full kernel version to <version>.<major>.<minor>-<patch>."""
    version = kernel_full_version.split("-")
    if len(version) == 1:
        short = kernel_full_version.split(".")
        if len(short) < 3:
            raise ValueError(f"kernel version {kernel_full_version!r} has fewer than three parts")
        return ".".join(short[:3])
    patch = version[1].split(".")
    return version[0] + "-" + patch[0]