"""Inject cluster-wide proxy settings into pod and daemonset manifests."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass

from .objects import kind_of, name_of, nested_list, nested_set, nested_string

logger = logging.getLogger(__name__)

PROXY_GROUP = "config.openshift.io"
PROXY_VERSION = "v1"
PROXY_RESOURCE = "proxies"

_POD_CONTAINERS = ("spec", "containers")
_DAEMONSET_CONTAINERS = ("spec", "template", "spec", "containers")


@dataclass(frozen=True)
class ProxyConfiguration:
    """Proxy settings of the cluster."""

    http_proxy: str = ""
    https_proxy: str = ""
    no_proxy: str = ""
    trusted_ca: str = ""


def _with_context(message, func, *args):
    try:
        func(*args)
    except (LookupError, TypeError) as err:
        raise type(err)(f"{message}: {err}") from err


def setup(obj, config):
    """Add proxy environment variables to a Pod or DaemonSet manifest."""
    kind = kind_of(obj)
    if kind == "Pod":
        _with_context("Cannot setup Pod Proxy", setup_pod, obj, config)
    if kind == "DaemonSet":
        _with_context("Cannot setup DaemonSet Proxy", setup_daemonset, obj, config)


def setup_daemonset(obj, config):
    """Add proxy variables to the first container of a DaemonSet template."""
    _setup_at(obj, config, _DAEMONSET_CONTAINERS)


def setup_pod(obj, config):
    """Add proxy variables to the first container of a Pod."""
    _setup_at(obj, config, _POD_CONTAINERS)


def _setup_at(obj, config, path):
    try:
        containers = nested_list(obj, *path)
    except KeyError:
        raise LookupError(f"{'.'.join(path)} not found") from None
    _with_context("Cannot set proxy for Pod", _setup_containers_proxy, containers, config)
    nested_set(obj, containers, *path)


def _setup_containers_proxy(containers, config):
    # Only the first container receives the proxy settings.
    if not containers:
        return
    container = containers[0]
    if not isinstance(container, dict):
        logger.info("container is not a map: %r", container)
        return
    try:
        env = nested_list(container, "env")
    except KeyError:
        env = []
    env.extend(
        [
            {"name": "HTTP_PROXY", "value": config.http_proxy},
            {"name": "HTTPS_PROXY", "value": config.https_proxy},
            {"name": "NO_PROXY", "value": config.no_proxy},
        ]
    )
    nested_set(container, env, "env")


def _string_or_empty(obj, *fields):
    try:
        return nested_string(obj, *fields)
    except (KeyError, TypeError) as err:
        logger.warning("OnErrorOrNotFound: %s", err)
        return ""


def cluster_configuration(client, config):
    """Return config updated with the settings of the cluster proxy object."""
    if not client.has_resource(PROXY_GROUP, PROXY_VERSION, PROXY_RESOURCE):
        logger.warning(
            "Could not find proxies API resource. Can be ignored on vanilla K8s."
        )
        return config

    proxies = client.list(f"{PROXY_GROUP}/{PROXY_VERSION}", "ProxyList", "", None)
    for cfg in proxies:
        if "cluster" not in name_of(cfg):
            continue
        config = dataclasses.replace(
            config,
            http_proxy=_string_or_empty(cfg, "spec", "httpProxy"),
            https_proxy=_string_or_empty(cfg, "spec", "httpsProxy"),
            no_proxy=_string_or_empty(cfg, "spec", "noProxy"),
            trusted_ca=_string_or_empty(cfg, "spec", "trustedCA", "name"),
        )
    return config