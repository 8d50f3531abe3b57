import pytest

from specialresource.objects import KubeClient, nested_get
from specialresource.proxy import (
    ProxyConfiguration,
    cluster_configuration,
    setup,
    setup_daemonset,
    setup_pod,
)

CONFIG = ProxyConfiguration(
    http_proxy="http://proxy.example.com:3128",
    https_proxy="https://proxy.example.com:3129",
    no_proxy=".cluster.local",
)


def _expected_env(config):
    return [
        {"name": "HTTP_PROXY", "value": config.http_proxy},
        {"name": "HTTPS_PROXY", "value": config.https_proxy},
        {"name": "NO_PROXY", "value": config.no_proxy},
    ]


def test_setup_pod_sets_first_container_only():
    pod = {"kind": "Pod", "spec": {"containers": [{"name": "a"}, {"name": "b"}]}}
    setup_pod(pod, CONFIG)
    containers = nested_get(pod, "spec", "containers")
    assert containers[0]["env"] == _expected_env(CONFIG)
    assert containers[1] == {"name": "b"}


def test_existing_env_is_kept_in_front():
    pod = {
        "kind": "Pod",
        "spec": {"containers": [{"name": "a", "env": [{"name": "X", "value": "1"}]}]},
    }
    setup(pod, CONFIG)
    env = nested_get(pod, "spec", "containers")[0]["env"]
    assert env[0] == {"name": "X", "value": "1"}
    assert env[1:] == _expected_env(CONFIG)


def test_setup_daemonset_uses_template():
    ds = {
        "kind": "DaemonSet",
        "spec": {"template": {"spec": {"containers": [{"name": "driver"}]}}},
    }
    setup_daemonset(ds, CONFIG)
    container = nested_get(ds, "spec", "template", "spec", "containers")[0]
    assert container["env"] == _expected_env(CONFIG)


def test_setup_ignores_other_kinds():
    obj = {"kind": "ConfigMap", "spec": {"containers": [{"name": "a"}]}}
    setup(obj, CONFIG)
    assert obj == {"kind": "ConfigMap", "spec": {"containers": [{"name": "a"}]}}


def test_missing_containers_raise():
    with pytest.raises(LookupError, match="Cannot setup Pod Proxy"):
        setup({"kind": "Pod", "spec": {}}, CONFIG)


def test_daemonset_missing_containers_raise():
    with pytest.raises(LookupError, match="Cannot setup DaemonSet Proxy"):
        setup({"kind": "DaemonSet"}, CONFIG)


def _proxy_object(name, spec):
    return {
        "apiVersion": "config.openshift.io/v1",
        "kind": "Proxy",
        "metadata": {"name": name},
        "spec": spec,
    }


def test_cluster_configuration_reads_cluster_proxy():
    spec = {
        "httpProxy": CONFIG.http_proxy,
        "httpsProxy": CONFIG.https_proxy,
        "noProxy": CONFIG.no_proxy,
        "trustedCA": {"name": "user-ca-bundle"},
    }
    client = KubeClient(
        [_proxy_object("cluster", spec)],
        resources=[("config.openshift.io", "v1", "proxies")],
    )
    result = cluster_configuration(client, ProxyConfiguration())
    assert result == ProxyConfiguration(
        http_proxy=CONFIG.http_proxy,
        https_proxy=CONFIG.https_proxy,
        no_proxy=CONFIG.no_proxy,
        trusted_ca="user-ca-bundle",
    )


def test_cluster_configuration_without_api_returns_input():
    client = KubeClient([_proxy_object("cluster", {"httpProxy": "http://other.example.com"})])
    assert cluster_configuration(client, CONFIG) == CONFIG


def test_cluster_configuration_ignores_other_names_and_bad_types():
    client = KubeClient(
        [
            _proxy_object("other", {"httpProxy": "http://other.example.com"}),
            _proxy_object("cluster", {"httpProxy": 5, "noProxy": "localhost"}),
        ],
        resources=[("config.openshift.io", "v1", "proxies")],
    )
    result = cluster_configuration(client, CONFIG)
    assert result.http_proxy == ""
    assert result.https_proxy == ""
    assert result.no_proxy == "localhost"