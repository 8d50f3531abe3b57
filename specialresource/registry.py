"""Read driver-toolkit and release metadata from container image layers."""

from __future__ import annotations

import io
import json
import logging
import tarfile
from dataclasses import dataclass
from typing import Iterator

from .objects import nested_list, nested_string

logger = logging.getLogger(__name__)

TOOLKIT_RELEASE_FILE = "etc/driver-toolkit-release.json"
IMAGE_REFERENCES_FILE = "release-manifests/image-references"
RELEASE_METADATA_FILE = "release-manifests/release-metadata"
DRIVER_TOOLKIT_TAG = "driver-toolkit"


@dataclass(frozen=True)
class DriverToolkitEntry:
    """Versions and image of a driver toolkit."""

    image_url: str = ""
    kernel_full_version: str = ""
    rt_kernel_full_version: str = ""
    os_version: str = ""

    def to_dict(self) -> dict[str, str]:
        """Return the entry with its serialized field names."""
        return {
            "imageURL": self.image_url,
            "kernelFullVersion": self.kernel_full_version,
            "RTKernelFullVersion": self.rt_kernel_full_version,
            "OSVersion": self.os_version,
        }


def _stream(layer):
    if isinstance(layer, (bytes, bytearray, memoryview)):
        return io.BytesIO(bytes(layer))
    return layer


def _entries(layer, wanted) -> Iterator[tuple[str, bytes]]:
    """Yield (name, content) for the wanted files of a gzip-compressed tar layer."""
    with tarfile.open(fileobj=_stream(layer), mode="r|gz") as archive:
        for member in archive:
            if member.name not in wanted:
                continue
            handle = archive.extractfile(member)
            yield member.name, handle.read() if handle is not None else b""


def _load_object(data: bytes, name: str) -> dict:
    document = json.loads(data)
    if not isinstance(document, dict):
        raise ValueError(f"{name} does not hold a JSON object")
    return document


def _string_or_empty(obj, *fields) -> str:
    try:
        return nested_string(obj, *fields)
    except KeyError:
        return ""


def extract_toolkit_release(layer):
    """Return the driver toolkit versions recorded in the layer.

    The layer is the compressed tar content, as bytes or a binary file.
    """
    for name, content in _entries(layer, {TOOLKIT_RELEASE_FILE}):
        obj = _load_object(content, name)
        kernel = _string_or_empty(obj, "KERNEL_VERSION")
        logger.info("DTK kernel-version=%s", kernel)
        rt_kernel = _string_or_empty(obj, "RT_KERNEL_VERSION")
        logger.info("DTK rt-kernel-version=%s", rt_kernel)
        os_version = _string_or_empty(obj, "RHEL_VERSION")
        logger.info("DTK rhel-version=%s", os_version)
        return DriverToolkitEntry(
            kernel_full_version=kernel,
            rt_kernel_full_version=rt_kernel,
            os_version=os_version,
        )
    raise LookupError("Missing driver toolkit entry: /etc/driver-toolkit-release.json")


def _toolkit_image(obj) -> str:
    try:
        tags = nested_list(obj, "spec", "tags")
    except KeyError:
        return ""
    image_url = ""
    for tag in tags:
        if isinstance(tag, dict) and tag.get("name") == DRIVER_TOOLKIT_TAG:
            image_url = nested_string(tag, "from", "name")
    return image_url


def release_manifests(layer):
    """Return (release version, driver toolkit image URL) of a release payload layer."""
    version = ""
    image_url = ""
    wanted = {IMAGE_REFERENCES_FILE, RELEASE_METADATA_FILE}
    for name, content in _entries(layer, wanted):
        obj = _load_object(content, name)
        if name == IMAGE_REFERENCES_FILE:
            found = _toolkit_image(obj)
            if found:
                image_url = found
        else:
            version = _string_or_empty(obj, "version")
        if version and image_url:
            break
    return version, image_url