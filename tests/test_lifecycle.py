import pytest

from specialresource.fnv import fnv64a
from specialresource.lifecycle import get_pods_from_daemonset, update_daemonset_pods
from specialresource.objects import KubeClient, NamespacedName, NotFoundError, name_of
from specialresource.storage import get_config_map


def _daemonset(selector=True):
    ds = {
        "apiVersion": "apps/v1",
        "kind": "DaemonSet",
        "metadata": {"name": "driver", "namespace": "ns"},
        "spec": {},
    }
    if selector:
        ds["spec"]["selector"] = {"matchLabels": {"app": "driver"}}
    return ds


def _pod(name, app, namespace="ns"):
    return {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": {"name": name, "namespace": namespace, "labels": {"app": app}},
    }


def _lifecycle_cm(namespace="sro"):
    return {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": {"name": "special-resource-lifecycle", "namespace": namespace},
    }


def test_pods_matching_selector_are_returned():
    client = KubeClient(
        [_daemonset(), _pod("a", "driver"), _pod("b", "driver"), _pod("c", "other"),
         _pod("d", "driver", namespace="elsewhere")]
    )
    pods = get_pods_from_daemonset(client, NamespacedName("ns", "driver"))
    assert sorted(name_of(p) for p in pods) == ["a", "b"]


def test_missing_daemonset_gives_no_pods():
    client = KubeClient([_pod("a", "driver")])
    assert get_pods_from_daemonset(client, NamespacedName("ns", "driver")) == []


def test_daemonset_without_selector_gives_no_pods():
    client = KubeClient([_daemonset(selector=False), _pod("a", "driver")])
    assert get_pods_from_daemonset(client, NamespacedName("ns", "driver")) == []


def test_forbidden_listing_gives_no_pods():
    client = KubeClient([_daemonset()], forbidden_kinds=["Pod"])
    assert get_pods_from_daemonset(client, NamespacedName("ns", "driver")) == []


def test_update_records_each_pod():
    client = KubeClient(
        [_daemonset(), _pod("a", "driver"), _pod("b", "driver"), _lifecycle_cm()]
    )
    update_daemonset_pods(client, _daemonset(), "sro")
    cm = get_config_map(client, "sro", "special-resource-lifecycle")
    assert cm["data"] == {fnv64a("nsa"): "*v1.Pod", fnv64a("nsb"): "*v1.Pod"}


def test_update_uses_operator_namespace_from_environment(monkeypatch):
    monkeypatch.setenv("OPERATOR_NAMESPACE", "operator")
    client = KubeClient([_daemonset(), _pod("a", "driver"), _lifecycle_cm("operator")])
    update_daemonset_pods(client, _daemonset())
    cm = get_config_map(client, "operator", "special-resource-lifecycle")
    assert list(cm["data"]) == [fnv64a("nsa")]


def test_update_without_config_map_raises():
    client = KubeClient([_daemonset(), _pod("a", "driver")])
    with pytest.raises(NotFoundError):
        update_daemonset_pods(client, _daemonset(), "sro")


def test_update_without_pods_leaves_config_map_alone():
    client = KubeClient([_daemonset(), _lifecycle_cm()])
    update_daemonset_pods(client, _daemonset(), "sro")
    cm = get_config_map(client, "sro", "special-resource-lifecycle")
    assert "data" not in cm