import pytest

from specialresource.objects import (
    ForbiddenError,
    KubeClient,
    NamespacedName,
    NotFoundError,
    annotations_of,
    kind_of,
    labels_of,
    name_of,
    namespace_of,
    nested_get,
    nested_int,
    nested_list,
    nested_map,
    nested_set,
    nested_string,
    set_annotations,
    set_labels,
    set_name,
)


def make_pod(name, namespace="default", labels=None):
    obj = {"apiVersion": "v1", "kind": "Pod", "metadata": {"name": name, "namespace": namespace}}
    if labels is not None:
        obj["metadata"]["labels"] = labels
    return obj


def test_nested_set_creates_path_and_get_reads_it():
    obj = {}
    nested_set(obj, "value", "spec", "buildRef", "name")
    assert obj == {"spec": {"buildRef": {"name": "value"}}}
    assert nested_get(obj, "spec", "buildRef", "name") == "value"


def test_nested_get_missing_raises_key_error():
    with pytest.raises(KeyError):
        nested_get({"spec": {}}, "spec", "nodeSelector")


def test_nested_set_through_non_map_raises():
    obj = {"spec": "text"}
    with pytest.raises(TypeError):
        nested_set(obj, 1, "spec", "replicas")


def test_nested_string_checks_type():
    obj = {"status": {"phase": 3}}
    with pytest.raises(TypeError):
        nested_string(obj, "status", "phase")


def test_nested_int_rejects_bool_and_accepts_int():
    obj = {"status": {"ready": True, "replicas": 2}}
    with pytest.raises(TypeError):
        nested_int(obj, "status", "ready")
    assert nested_int(obj, "status", "replicas") == 2


def test_nested_map_and_list_return_copies():
    obj = {"spec": {"selector": {"app": "x"}, "items": [{"a": 1}]}}
    selector = nested_map(obj, "spec", "selector")
    selector["app"] = "changed"
    items = nested_list(obj, "spec", "items")
    items[0]["a"] = 99
    assert obj["spec"]["selector"]["app"] == "x"
    assert obj["spec"]["items"][0]["a"] == 1


def test_metadata_accessors():
    obj = make_pod("web", "apps", {"app": "web"})
    set_annotations(obj, {"note": "yes"})
    assert kind_of(obj) == "Pod"
    assert name_of(obj) == "web"
    assert namespace_of(obj) == "apps"
    assert labels_of(obj) == {"app": "web"}
    assert annotations_of(obj) == {"note": "yes"}


def test_accessors_on_empty_object():
    assert kind_of({}) == ""
    assert name_of({}) == ""
    assert labels_of({}) == {}


def test_set_name_empty_removes_field():
    obj = make_pod("web")
    set_name(obj, "")
    assert "name" not in obj["metadata"]
    set_name(obj, "other")
    assert name_of(obj) == "other"


def test_set_labels_none_removes():
    obj = make_pod("web", labels={"a": "b"})
    set_labels(obj, None)
    assert labels_of(obj) == {}
    assert "labels" not in obj["metadata"]


def test_namespaced_name_str():
    assert str(NamespacedName("ns", "cm")) == "ns/cm"
    assert str(NamespacedName("", "cm")) == "cm"


def test_client_create_get_round_trip():
    client = KubeClient()
    client.create(make_pod("web"))
    got = client.get("v1", "Pod", "default", "web")
    assert name_of(got) == "web"
    assert kind_of(got) == "Pod"


def test_client_get_missing_raises_not_found():
    client = KubeClient()
    with pytest.raises(NotFoundError):
        client.get("v1", "Pod", "default", "missing")


def test_client_create_duplicate_raises():
    client = KubeClient([make_pod("web")])
    with pytest.raises(ValueError):
        client.create(make_pod("web"))


def test_client_update_bumps_resource_version():
    client = KubeClient()
    created = client.create(make_pod("web"))
    changed = make_pod("web", labels={"x": "y"})
    updated = client.update(changed)
    before = int(created["metadata"]["resourceVersion"])
    after = int(updated["metadata"]["resourceVersion"])
    assert after == before + 1
    assert labels_of(client.get("v1", "Pod", "default", "web")) == {"x": "y"}


def test_client_update_missing_raises():
    with pytest.raises(NotFoundError):
        KubeClient().update(make_pod("ghost"))


def test_client_list_filters_by_namespace_and_labels():
    client = KubeClient(
        [
            make_pod("a", "one", {"app": "x"}),
            make_pod("b", "one", {"app": "y"}),
            make_pod("c", "two", {"app": "x"}),
        ]
    )
    names = [name_of(p) for p in client.list("v1", "PodList", "one", {"app": "x"})]
    assert names == ["a"]
    every = [name_of(p) for p in client.list("v1", "pod", "", None)]
    assert sorted(every) == ["a", "b", "c"]


def test_client_forbidden_kind():
    client = KubeClient(forbidden_kinds=["Secret"])
    with pytest.raises(ForbiddenError):
        client.get("v1", "Secret", "default", "pull")


def test_client_pod_logs():
    client = KubeClient(logs={("ns", "pod"): "hello"})
    assert client.pod_logs("ns", "pod") == "hello"
    with pytest.raises(NotFoundError):
        client.pod_logs("ns", "other")


def test_client_discovery_cache_and_invalidate():
    client = KubeClient(resources=[("config.openshift.io", "v1", "proxies")])
    assert client.has_resource("config.openshift.io", "v1", "proxies")
    assert not client.has_resource("config.openshift.io", "v1", "nodes")
    first = client.server_groups()
    assert "config.openshift.io" in first
    client.create({"apiVersion": "example.com/v1", "kind": "Widget", "metadata": {"name": "w"}})
    assert client.server_groups() == first
    client.invalidate()
    assert "example.com" in client.server_groups()