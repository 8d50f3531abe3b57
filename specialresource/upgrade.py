"""Collect node kernel and OS versions and match them with driver toolkits."""

from __future__ import annotations

import dataclasses
import logging
import platform
from dataclasses import dataclass, field

from . import warn
from .objects import labels_of
from .registry import DriverToolkitEntry, extract_toolkit_release, release_manifests

logger = logging.getLogger(__name__)

KERNEL_LABEL = "feature.node.kubernetes.io/kernel-version.full"
OS_RELEASE = "feature.node.kubernetes.io/system-os_release"
VERSION_ID_LABEL = OS_RELEASE + ".VERSION_ID"
RHEL_VERSION_LABEL = OS_RELEASE + ".RHEL_VERSION"


def _running_arch() -> str:
    arch = platform.machine().lower()
    return "x86_64" if arch == "amd64" else arch


RUNNING_ARCH = _running_arch()


@dataclass(frozen=True)
class NodeVersion:
    """OS, cluster and driver toolkit versions of nodes running one kernel."""

    os_version: str = ""
    os_major: str = ""
    os_major_minor: str = ""
    cluster_version: str = ""
    driver_toolkit: DriverToolkitEntry = field(default_factory=DriverToolkitEntry)

    def to_dict(self) -> dict:
        """Return the version with its serialized field names."""
        return {
            "OSVersion": self.os_version,
            "OSMajor": self.os_major,
            "OSMajorMinor": self.os_major_minor,
            "clusterVersion": self.cluster_version,
            "driverToolkit": self.driver_toolkit.to_dict(),
        }


def _required(labels, key):
    if key not in labels:
        raise LookupError(f"label {key} not found is NFD running? Check node labels")
    return labels[key]


def node_version_info(nodes):
    """Return a NodeVersion for every kernel version found in the node labels."""
    info: dict[str, NodeVersion] = {}
    for node in nodes:
        labels = labels_of(node)
        kernel = _required(labels, KERNEL_LABEL)
        cluster_version = _required(labels, VERSION_ID_LABEL)
        rhel_version = labels.get(RHEL_VERSION_LABEL)
        if rhel_version is None:
            rel = labels.get(OS_RELEASE + ".ID", "")
            major = labels.get(OS_RELEASE + ".VERSION_ID.major", "")
            minor = labels.get(OS_RELEASE + ".VERSION_ID.minor", "")
            info[kernel] = NodeVersion(
                os_version=f"{major}.{minor}",
                os_major=rel + major,
                os_major_minor=f"{rel}{major}.{minor}",
                cluster_version=cluster_version,
            )
        else:
            info[kernel] = NodeVersion(
                os_version=rhel_version,
                os_major="rhel" + rhel_version[:1],
                os_major_minor="rhel" + rhel_version,
                cluster_version=cluster_version,
            )
    return info


def _attach(info, lookup_key, store_key, dtk):
    node_version = info[lookup_key]
    if node_version.os_version != dtk.os_version:
        raise ValueError(
            f"OSVersion mismatch NFD: {node_version.os_version} vs. DTK: {dtk.os_version}"
        )
    info[store_key] = dataclasses.replace(
        node_version, os_version=dtk.os_version, driver_toolkit=dtk
    )


def update_info(info, dtk, image_url, arch=None):
    """Attach the driver toolkit to the running kernel it was built for.

    info is updated in place and returned.
    """
    if arch is None:
        arch = RUNNING_ARCH
    if arch not in dtk.kernel_full_version:
        logger.info("Appending architecture to dtk.KernelFullVersion")
        dtk = dataclasses.replace(
            dtk,
            kernel_full_version=f"{dtk.kernel_full_version}.{arch}",
            rt_kernel_full_version=f"{dtk.rt_kernel_full_version}.{arch}",
        )
        logger.info("Updating version: %s", dtk.kernel_full_version)

    if dtk.kernel_full_version in info:
        dtk = dataclasses.replace(dtk, image_url=image_url)
        _attach(info, dtk.kernel_full_version, dtk.kernel_full_version, dtk)

    if dtk.rt_kernel_full_version in info:
        dtk = dataclasses.replace(dtk, image_url=image_url)
        # The realtime entry is recorded under the general kernel version.
        _attach(info, dtk.rt_kernel_full_version, dtk.kernel_full_version, dtk)

    return info


def driver_toolkit_version(entries, info, fetch_layer):
    """Update info with the driver toolkit of the first usable release entry.

    fetch_layer maps an image reference to its last layer, or None when the
    image manifest cannot be read.
    """
    for entry in entries:
        logger.info("History entry=%s", entry)
        layer = fetch_layer(entry)
        if layer is None:
            continue
        try:
            _, image_url = release_manifests(layer)
        except Exception as err:
            raise RuntimeError(f"could not extract version from payload: {err}") from err

        if not image_url:
            warn.on_error("No DTK image found, DTK cannot be used in a Build")
            return info

        try:
            dtk_layer = fetch_layer(image_url)
        except Exception as err:
            raise RuntimeError(
                f"cannot extract last layer for DTK from {image_url}: {err}"
            ) from err
        if dtk_layer is None:
            raise RuntimeError(f"cannot extract last layer for DTK from {image_url}")

        dtk = extract_toolkit_release(dtk_layer)
        return update_info(info, dtk, image_url)

    return info