"""Manifest rules and mutations applied before objects are sent to the cluster."""

from __future__ import annotations

import logging

from . import proxy
from .objects import (
    annotations_of,
    kind_of,
    labels_of,
    name_of,
    namespace_of,
    nested_map,
    nested_set,
    nested_string,
    set_annotations,
    set_labels,
)

logger = logging.getLogger(__name__)

VENDOR_ANNOTATION = "specialresource.openshift.io/driver-container-vendor"
PROXY_ANNOTATION = "specialresource.openshift.io/proxy"
CALLBACK_ANNOTATION = "specialresource.openshift.io/callback"

_CLUSTER_SCOPED_KINDS = frozenset(
    {
        "Namespace",
        "ClusterRole",
        "ClusterRoleBinding",
        "SecurityContextConstraint",
        "SpecialResource",
    }
)

_NOT_UPDATEABLE_KINDS = frozenset({"ServiceAccount", "Pod"})

_RESOURCE_VERSION_KINDS = frozenset(
    {
        "SecurityContextConstraints",
        "Service",
        "ServiceMonitor",
        "Route",
        "Build",
        "BuildRun",
        "BuildConfig",
        "ImageStream",
        "PrometheusRule",
        "CSIDriver",
        "Issuer",
        "CustomResourceDefinition",
        "Certificate",
        "SpecialResource",
        "OperatorGroup",
        "CertManager",
        "MutatingWebhookConfiguration",
        "ValidatingWebhookConfiguration",
        "Deployment",
        "ImagePolicy",
    }
)

_TEMPLATE_KINDS = ("DaemonSet", "Deployment", "Statefulset")


def is_namespaced(kind):
    """Tell whether objects of this kind live in a namespace."""
    return kind not in _CLUSTER_SCOPED_KINDS


def is_not_updateable(kind):
    """Tell whether objects of this kind must not be updated in place."""
    return kind in _NOT_UPDATEABLE_KINDS


def needs_resource_version_update(kind):
    """Tell whether updates of this kind must carry the current resourceVersion."""
    return kind in _RESOURCE_VERSION_KINDS


def update_resource_version(req, found):
    """Copy resourceVersion and, for Services, clusterIP from found into req."""
    kind = kind_of(found)
    if needs_resource_version_update(kind):
        version = nested_string(found, "metadata", "resourceVersion")
        nested_set(req, version, "metadata", "resourceVersion")
    if kind == "Service":
        cluster_ip = nested_string(found, "spec", "clusterIP")
        nested_set(req, cluster_ip, "spec", "clusterIP")


def set_node_selector_terms(obj, terms):
    """Merge node selector terms into workloads, pods and build configs."""
    kind = kind_of(obj)
    if kind in _TEMPLATE_KINDS:
        _node_selector_terms(obj, terms, f"cannot setup {kind} nodeSelector",
                             "spec", "template", "spec", "nodeSelector")
    if kind == "Pod":
        _node_selector_terms(obj, terms, "cannot setup Pod nodeSelector",
                             "spec", "nodeSelector")
    if kind == "BuildConfig":
        _node_selector_terms(obj, terms, "cannot setup BuildConfig nodeSelector",
                             "spec", "nodeSelector")


def _node_selector_terms(obj, terms, message, *fields):
    try:
        try:
            selector = nested_map(obj, *fields)
        except KeyError:
            selector = {}
        selector.update(terms or {})
        nested_set(obj, selector, *fields)
    except TypeError as err:
        raise TypeError(f"{message}: {err}") from err


def set_meta_data(obj, name, namespace):
    """Mark the object as belonging to a Helm release."""
    annotations = annotations_of(obj)
    annotations["meta.helm.sh/release-name"] = name
    annotations["meta.helm.sh/release-namespace"] = namespace
    set_annotations(obj, annotations)

    labels = labels_of(obj)
    labels["app.kubernetes.io/managed-by"] = "Helm"
    set_labels(obj, labels)


def is_one_timer(obj):
    """Tell whether the object is a Pod that never restarts."""
    if kind_of(obj) == "Pod":
        return nested_string(obj, "spec", "restartPolicy") == "Never"
    return False


def rebuild_driver_container(obj, update_vendor):
    """Tell whether the manifest should be applied.

    A BuildConfig annotated with a driver-container vendor is applied only
    when that vendor is the one whose image needs to be rebuilt.
    """
    if kind_of(obj) != "BuildConfig":
        return True
    vendor = annotations_of(obj).get(VENDOR_ANNOTATION)
    if vendor is None:
        logger.info("No annotation driver-container-vendor found, not skipping")
        return True
    if vendor == update_vendor:
        logger.info("vendor == updateVendor: %s", vendor)
        return True
    logger.info("vendor %s != updateVendor %s", vendor, update_vendor)
    return False


def before_crud(obj, sr, proxy_config, callbacks):
    """Apply proxy settings and the annotated callback before writing obj."""
    annotations = annotations_of(obj)
    if annotations.get(PROXY_ANNOTATION) == "true":
        proxy.setup(obj, proxy_config)

    todo = annotations.get(CALLBACK_ANNOTATION)
    if todo is None:
        return
    callback = (callbacks or {}).get(todo)
    if callback is not None:
        logger.info("Running callback %s for %s/%s", todo, namespace_of(obj), name_of(obj))
        callback(obj, sr)