"""Wait for cluster objects to become available, complete or go away."""

from __future__ import annotations

import logging
import os
import re
import time
from typing import Any, Callable

from . import warn
from .fnv import fnv64a
from .lifecycle import LIFECYCLE_CONFIG_MAP, get_pods_from_daemonset
from .objects import (
    NamespacedName,
    NotFoundError,
    kind_of,
    labels_of,
    name_of,
    namespace_of,
    nested_int,
    nested_list,
    nested_map,
    nested_string,
)
from .storage import check_config_map_entry

logger = logging.getLogger(__name__)

DEFAULT_RETRY_INTERVAL = 5.0
DEFAULT_TIMEOUT = 30.0
_LOG_TAIL = 100

StatusCallback = Callable[[dict], bool]


class PollTimeoutError(TimeoutError):
    """The condition was not met before the timeout."""


def poll(interval, timeout, condition, sleep=time.sleep):
    """Check condition every interval until it holds or timeout has passed.

    The first check happens after one interval. An exception raised by the
    condition stops polling and propagates.
    """
    if interval <= 0:
        raise ValueError("the poll interval must be positive")
    elapsed = 0.0
    while True:
        sleep(interval)
        elapsed += interval
        if condition():
            return
        if elapsed >= timeout:
            raise PollTimeoutError("timed out waiting for the condition")


def make_status_callback(expected, *args):
    """Return a callback telling whether the field at args equals expected."""
    if isinstance(expected, bool) or not isinstance(expected, (int, str)):
        reader = None
    elif isinstance(expected, int):
        reader = nested_int
    else:
        reader = nested_string

    def callback(obj):
        if reader is None:
            raise TypeError(f"{type(expected).__name__}: unhandled type")
        try:
            current = reader(obj, *args)
        except (KeyError, TypeError) as err:
            raise LookupError(f"error or not found: {err}") from err
        return current == expected

    return callback


def _has_int(obj, *fields):
    try:
        nested_int(obj, *fields)
    except (KeyError, TypeError):
        return False
    return True


def _describe(obj):
    return f"{kind_of(obj)}: {namespace_of(obj)}/{name_of(obj)}"


class Poller:
    """Waits on cluster objects through a client."""

    def __init__(
        self,
        client,
        namespace="",
        retry_interval=DEFAULT_RETRY_INTERVAL,
        timeout=DEFAULT_TIMEOUT,
        lifecycle_namespace=None,
        sleep=time.sleep,
    ):
        self.client = client
        self.namespace = namespace
        self.retry_interval = retry_interval
        self.timeout = timeout
        self.lifecycle_namespace = lifecycle_namespace
        self.sleep = sleep
        self.node_count = 0
        self._wait_for: dict[str, Callable[[dict], None]] = {
            "Pod": self.for_pod,
            "DaemonSet": self.for_daemonset,
            "BuildConfig": self.for_build,
            "Secret": self.for_secret,
            "CustomResourceDefinition": self.for_crd,
            "Job": self.for_job,
            "Deployment": self.for_deployment,
            "StatefulSet": self.for_statefulset,
            "Namespace": self.for_resource_availability,
            "Certificates": self.for_resource_availability,
        }

    def _poll(self, condition):
        poll(self.retry_interval, self.timeout, condition, self.sleep)

    def _get(self, obj):
        return self.client.get(
            obj.get("apiVersion", ""), kind_of(obj), namespace_of(obj), name_of(obj)
        )

    def for_resource(self, obj):
        """Wait in the way registered for the object's kind."""
        kind = kind_of(obj)
        wait = self._wait_for.get(kind)
        if wait is None:
            warn.on_error(f"No wait function registered for Kind: {kind}")
            return
        logger.info("ForResource Kind=%s", kind)
        try:
            wait(obj)
        except Exception as err:
            raise RuntimeError(f"Waiting too long for resource: {err}") from err

    def for_resource_availability(self, obj):
        """Wait until the object exists."""

        def condition():
            try:
                self._get(obj)
            except NotFoundError:
                logger.info("Waiting for creation of %s", _describe(obj))
                return False
            return True

        self._poll(condition)

    def for_resource_unavailability(self, obj):
        """Wait until the object no longer exists."""

        def condition():
            try:
                self._get(obj)
            except NotFoundError:
                logger.info("Waiting done for deletion of %s", _describe(obj))
                return True
            logger.info("Waiting for deletion of %s", _describe(obj))
            return False

        self._poll(condition)

    def for_secret(self, obj):
        """Wait until the secret exists."""
        self.for_resource_availability(obj)

    def for_crd(self, obj):
        """Wait until the CRD is registered, then refresh discovery."""
        self.client.invalidate()
        self.for_resource_availability(obj)
        try:
            self.client.server_groups()
        except Exception as err:
            warn.on_error(err)

    def for_pod(self, obj):
        """Wait until the pod has succeeded."""
        self.for_resource_availability(obj)
        self.for_resource_full_availability(
            obj, make_status_callback("Succeeded", "status", "phase")
        )

    def for_deployment(self, obj):
        """Wait until every live ReplicaSet of the deployment is fully available."""
        self.for_resource_availability(obj)
        self.for_resource_full_availability(obj, self._deployment_callback)

    def _deployment_callback(self, obj):
        try:
            labels = nested_map(obj, "spec", "selector", "matchLabels")
        except KeyError:
            return False
        match_labels = {str(k): str(v) for k, v in labels.items()}
        try:
            replica_sets = self.client.list(
                "apps/v1", "ReplicaSetList", namespace_of(obj), match_labels
            )
        except Exception as err:
            logger.info("Could not get ReplicaSet for Deployment %s: %s", name_of(obj), err)
            return False

        for rs in replica_sets:
            try:
                status = nested_map(rs, "status")
            except KeyError:
                logger.info("No status for ReplicaSet %s", name_of(rs))
                return False
            except TypeError as err:
                warn.on_error(err)
                return False
            if "replicas" not in status:
                logger.info("No replicas for ReplicaSet %s", name_of(rs))
                return False
            replicas = status["replicas"]
            if replicas == 0:
                logger.info("ReplicaSet %s scheduled for termination", name_of(rs))
                continue
            if "availableReplicas" not in status:
                return False
            available = status["availableReplicas"]
            logger.info("Status AvailableReplicas=%s Replicas=%s", available, replicas)
            if available != replicas:
                return False
        return True

    def for_statefulset(self, obj):
        """Wait until the StatefulSet runs all its replicas."""
        self.for_resource_availability(obj)
        self.for_resource_full_availability(obj, self._statefulset_callback)

    def _statefulset_callback(self, obj):
        try:
            replicas = nested_int(obj, "spec", "replicas")
        except (KeyError, TypeError) as err:
            raise LookupError(
                "Something went horribly wrong, cannot read .spec.replicas from StatefulSet"
            ) from err
        try:
            status = nested_map(obj, "status")
        except KeyError:
            logger.info("No status for StatefulSet %s", name_of(obj))
            return False
        except TypeError as err:
            warn.on_error(err)
            return False
        if "currentReplicas" not in status:
            return False
        current = status["currentReplicas"]
        logger.info("Status Replicas=%s CurrentReplicas=%s", replicas, current)
        return replicas == current

    def for_job(self, obj):
        """Wait until the job reports a true Complete condition."""
        self.for_resource_availability(obj)
        self.for_resource_full_availability(obj, self._job_callback)

    @staticmethod
    def _job_callback(obj):
        try:
            conditions = nested_list(obj, "status", "conditions")
        except KeyError:
            return False
        except TypeError as err:
            warn.on_error(err)
            return False
        for condition in conditions:
            try:
                status = nested_string(condition, "status")
            except (KeyError, TypeError) as err:
                raise LookupError(f"error or not found: {err}") from err
            if status == "True":
                try:
                    condition_type = nested_string(condition, "type")
                except (KeyError, TypeError) as err:
                    raise LookupError(f"error or not found: {err}") from err
                if condition_type == "Complete":
                    return True
        return False

    def daemonset_callback(self, obj):
        """Tell whether the DaemonSet runs on every node it is scheduled for."""
        try:
            self.node_count = nested_int(obj, "status", "desiredNumberScheduled")
        except KeyError:
            return False

        callback: Callable[[Any], bool] = lambda _obj: False
        if _has_int(obj, "status", "numberUnavailable"):
            callback = make_status_callback(0, "status", "numberUnavailable")
        if _has_int(obj, "status", "numberAvailable"):
            callback = make_status_callback(self.node_count, "status", "numberAvailable")
        return callback(obj)

    def for_lifecycle_availability(self, obj):
        """Wait until no pod of an OnDelete DaemonSet is marked as outdated."""
        if kind_of(obj) != "DaemonSet":
            return
        try:
            strategy = nested_string(obj, "spec", "updateStrategy", "type")
        except KeyError:
            return
        if strategy != "OnDelete":
            return

        namespace = self.lifecycle_namespace
        if namespace is None:
            namespace = os.environ.get("OPERATOR_NAMESPACE", "")
        key = NamespacedName(namespace_of(obj), name_of(obj))
        ins = NamespacedName(namespace, LIFECYCLE_CONFIG_MAP)

        def condition():
            logger.info("Waiting for lifecycle update of %s", _describe(obj))
            for pod in get_pods_from_daemonset(self.client, key):
                logger.info("Checking lifecycle of Pod %s", name_of(pod))
                digest = fnv64a(namespace_of(pod) + name_of(pod))
                if check_config_map_entry(self.client, digest, ins) != "":
                    return False
            logger.info("All Pods running latest DaemonSet Template, we can move on")
            return True

        self._poll(condition)

    def for_daemonset(self, obj):
        """Wait until the DaemonSet exists, is up to date and fully available."""
        self.for_resource_availability(obj)
        self.for_lifecycle_availability(obj)
        self.for_resource_full_availability(obj, self.daemonset_callback)

    def for_build(self, obj):
        """Wait until every build in the namespace is complete."""
        self.for_resource_availability(obj)
        try:
            builds = self.client.list("build.openshift.io/v1", "build", self.namespace, None)
        except Exception as err:
            raise RuntimeError(f"Could not get BuildList: {err}") from err
        for build in builds:
            self.for_resource_full_availability(
                build, make_status_callback("Complete", "status", "phase")
            )

    def for_resource_full_availability(self, obj, callback):
        """Wait until callback holds for the current state of the object."""

        def condition():
            try:
                found = self._get(obj)
            except Exception as err:
                logger.error("%s", err)
                raise
            if callback(found):
                logger.info("Resource available %s", _describe(obj))
                return True
            logger.info("Waiting for availability of %s", _describe(obj))
            return False

        self._poll(condition)

    def for_daemonset_logs(self, obj, pattern):
        """Check that the log tail of every DaemonSet pod matches pattern."""
        logger.info("WaitForDaemonSetLogs Name=%s", name_of(obj))
        selector = labels_of(obj).get("app")
        if selector is None:
            raise LookupError("Cannot find Label app=, missing take a look at the manifests")
        logger.info("Looking for Pods with label app=%s", selector)

        try:
            pods = self.client.list("v1", "pod", self.namespace, {"app": selector})
        except Exception as err:
            raise RuntimeError(f"Could not get PodList: {err}") from err

        try:
            regex = re.compile(pattern)
        except re.error as err:
            raise ValueError(f"error matching pattern {pattern!r}: {err}") from err

        for pod in pods:
            logger.info("WaitForDaemonSetLogs Pod=%s", name_of(pod))
            try:
                logs = self.client.pod_logs(namespace_of(pod), name_of(pod))
            except Exception as err:
                raise RuntimeError(f"error in opening stream: {err}") from err
            # Logs no longer than the tail size leave nothing to match against.
            last = logs[-_LOG_TAIL:] if len(logs) > _LOG_TAIL else ""
            logger.info("WaitForDaemonSetLogs LastBytes=%s", last)
            if not regex.search(last):
                raise RuntimeError(f"not yet done; not matched against {pattern!r}")