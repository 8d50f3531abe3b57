# specialresource

Building blocks for deploying hardware-enablement stacks (driver containers,
device plugins, monitoring) onto Kubernetes and OpenShift clusters. The
package works on plain manifest dictionaries, as produced by any YAML or
JSON loader. Everything that reads cluster state goes through a client
object with the methods of `specialresource.objects.KubeClient`, which is
itself an in-memory implementation suited to tests and dry runs.

It has no runtime dependencies beyond the Python standard library and
supports Python 3.10 and later.

## What it covers

- **Manifests** – `specialresource.yamlutil.split_documents` and
  `YAMLScanner` split a multi-document manifest on `---` separators and
  yield each document as bytes. `specialresource.objects` offers
  `nested_get`, `nested_set`, `nested_string`, `nested_int`, `nested_map`
  and `nested_list` for deep fields (a missing field raises `KeyError`, a
  field of the wrong type `TypeError`), plus `kind_of`, `name_of`,
  `namespace_of`, `labels_of`, `annotations_of`, `set_name`, `set_labels`
  and `set_annotations`.
- **Client** – `KubeClient` stores objects by kind, namespace and name and
  offers `get`, `list` (by namespace and labels), `create`, `update`,
  `pod_logs`, `server_groups`, `has_resource` and `invalidate`. A missing
  object raises `NotFoundError`, a kind listed in `forbidden_kinds` raises
  `ForbiddenError`. `NamespacedName` identifies an object.
- **Kernel affinity** – `specialresource.kernel` pins workloads to nodes
  running a given kernel: `set_affine_attributes` renames an object with
  an FNV-1a hash (`specialresource.fnv.fnv64a`) of the OS and kernel
  version and adds the matching node selector, `set_version_node_affinity`
  adds only the selector, `is_object_affine` checks the
  `specialresource.openshift.io/kernel-affine` annotation, `full_version`
  reads the kernel label from node objects and `patch_version` shortens a
  full kernel version.
- **Operating system versions** –
  `specialresource.osversion.render_operating_system` turns
  node-feature-discovery labels into `rhel8`, `rhel8.4` and `8.4` style
  strings, mapping RHCOS 4 releases to the RHEL they are built on.
- **Resource rules** – `specialresource.resource` tells which kinds are
  namespaced (`is_namespaced`), not updateable (`is_not_updateable`) or
  need a resource version on update (`needs_resource_version_update`),
  carries `resourceVersion` and `clusterIP` across updates
  (`update_resource_version`), merges node selector terms
  (`set_node_selector_terms`), adds Helm ownership metadata
  (`set_meta_data`), detects pods that never restart (`is_one_timer`),
  decides whether a vendor's BuildConfig is applied
  (`rebuild_driver_container`) and runs proxy setup and annotated
  callbacks before a write (`before_crud`).
- **Proxy** – `specialresource.proxy` adds `HTTP_PROXY`, `HTTPS_PROXY` and
  `NO_PROXY` to the first container of a Pod or DaemonSet (`setup`,
  `setup_pod`, `setup_daemonset`) and reads the cluster proxy object into a
  `ProxyConfiguration` (`cluster_configuration`).
- **Waiting** – `specialresource.poll.Poller` waits for Pods, DaemonSets,
  Deployments, StatefulSets, Jobs, Builds, CRDs, Secrets and Namespaces;
  `for_resource` picks the wait by kind. `for_daemonset_logs` matches a
  regular expression against the last 100 characters of each DaemonSet
  pod's logs. `poll` and `make_status_callback` are the underlying tools;
  a wait that runs out of time raises `PollTimeoutError`.
- **Lifecycle and storage** – `specialresource.lifecycle` records the
  pods of a DaemonSet in the `special-resource-lifecycle` ConfigMap, and
  `specialresource.storage` reads, updates and deletes ConfigMap data
  entries, so `OnDelete` rollouts can be followed.
- **Upgrades** – `specialresource.registry` reads driver-toolkit and
  release metadata out of gzip-compressed tar layers
  (`extract_toolkit_release`, `release_manifests`, `DriverToolkitEntry`);
  `specialresource.upgrade` builds per-kernel `NodeVersion` records from
  node labels (`node_version_info`) and attaches driver toolkits to them
  (`update_info`, `driver_toolkit_version`).
- **Metrics** – `specialresource.metrics.MetricsRegistry` keeps the
  `sro_managed_resources_total` and `sro_states_completed_info` gauges and
  renders them in the Prometheus text format. The module-level
  `set_completed_state`, `delete_complete_states` and
  `set_special_resources_created` act on a default registry.

## Examples

Working with kernel versions and node labels:

```python
from specialresource.kernel import patch_version
from specialresource.osversion import render_operating_system

patch_version("4.18.0-305.19.1.el8_4.x86_64")   # "4.18.0-305"
render_operating_system("rhcos", "4", "8")       # ("rhel8", "rhel8.4", "8.4")
```

Making a manifest kernel affine:

```python
from specialresource.kernel import is_object_affine, set_affine_attributes
from specialresource.objects import name_of, nested_map

pod = {
    "kind": "Pod",
    "metadata": {
        "name": "driver",
        "annotations": {"specialresource.openshift.io/kernel-affine": "true"},
    },
}

if is_object_affine(pod):
    set_affine_attributes(pod, "4.18.0-305.19.1.el8_4.x86_64", "8.4")

name_of(pod)                          # "driver-<hex digest>"
nested_map(pod, "spec", "nodeSelector")
# {"feature.node.kubernetes.io/kernel-version.full": "4.18.0-305.19.1.el8_4.x86_64"}
```

Splitting a multi-document manifest:

```python
from specialresource.yamlutil import split_documents

manifest = b"kind: Namespace\n---\nkind: ServiceAccount\n"
for document in split_documents(manifest):
    print(document)
```

Waiting for a pod with the in-memory client:

```python
from specialresource.objects import KubeClient
from specialresource.poll import Poller

client = KubeClient([
    {"apiVersion": "v1", "kind": "Pod",
     "metadata": {"name": "job", "namespace": "demo"},
     "status": {"phase": "Succeeded"}},
])
poller = Poller(client, namespace="demo", retry_interval=1, timeout=5)
poller.for_resource({"apiVersion": "v1", "kind": "Pod",
                     "metadata": {"name": "job", "namespace": "demo"}})
```

## What it does not do

- It does not connect to a real cluster. To work against one, pass an
  object of your own that offers the same methods as `KubeClient`.
- It does not parse YAML: documents come out of `split_documents` as
  bytes, to be loaded with a YAML library of your choice.
- It does not pull images from a registry. `driver_toolkit_version` takes
  a `fetch_layer` callable that must return the last layer of an image.
- It has no controller loop, no command-line program and no metrics HTTP
  endpoint; `MetricsRegistry.render` returns the text for you to serve.

## Running the tests

Install the package with its `test` extra and run `pytest` from the
project directory.