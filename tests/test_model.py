import pytest

from pixiugate.model import (
    Address,
    ApiType,
    Cluster,
    CustomHealthCheck,
    DiscoveryType,
    HealthCheck,
    LbPolicy,
    LimitType,
    Listener,
    PprofConf,
    ProtocolType,
    SocketAddress,
    Status,
    StrategyType,
)


def test_enum_numbers_match_configuration_names():
    assert StrategyType["Blacklist"] == 1
    assert LimitType["App"] == 1
    assert Status["Unknown"] == 2
    assert ProtocolType["UDP"] == 2
    assert DiscoveryType["EDS"] == 3
    assert LbPolicy["Rand"] == 3
    assert ApiType(2).name == "DUBBO"


def test_socket_address_from_dict():
    sa = SocketAddress.from_dict(
        {"protocol_type": "HTTP", "address": "0.0.0.0", "port": 8888, "resolver_name": "r"}
    )
    assert sa.protocol is ProtocolType.HTTP
    assert sa.protocol_str == "HTTP"
    assert (sa.address, sa.port, sa.resolver_name) == ("0.0.0.0", 8888, "r")


def test_socket_address_protocol_parsed_by_name():
    assert SocketAddress.from_dict({"protocol_type": "tcp"}).protocol is ProtocolType.TCP


def test_socket_address_unknown_protocol():
    with pytest.raises(ValueError):
        SocketAddress.from_dict({"protocol_type": "SCTP"})


def test_address_from_dict_nested():
    addr = Address.from_dict({"name": "main", "socket_address": {"address": "h", "port": "80"}})
    assert addr.name == "main"
    assert addr.socket_address.port == 80
    assert addr.socket_address.address == "h"


def test_cluster_from_dict_full():
    cluster = Cluster.from_dict(
        {
            "name": "users",
            "type": "EDS",
            "lb_policy": "IPHash",
            "connect_timeout": "5s",
            "request_timeout": "10s",
            "eds_cluster_config": {
                "service_name": "svc",
                "eds_config": {
                    "path": "/p",
                    "api_config_source": {"api_type": "GRPC", "cluster_name": ["a", "b"]},
                },
            },
            "hosts": [{"name": "h1", "socket_address": {"address": "10.0.0.1", "port": 20000}}],
            "health_checks": [{}],
            "registries": {"zk": {"address": "127.0.0.1:2181", "timeout": "3s"}},
        }
    )
    assert cluster.type is DiscoveryType.EDS
    assert cluster.lb is LbPolicy.IPHash
    assert cluster.connect_timeout_str == "5s"
    assert cluster.request_timeout_str == "10s"
    source = cluster.eds_cluster_config.eds_config.api_config_source
    assert source.api_type is ApiType.GRPC
    assert source.cluster_name == ["a", "b"]
    assert cluster.eds_cluster_config.service_name == "svc"
    assert cluster.hosts[0].socket_address.port == 20000
    assert cluster.health_checks == [HealthCheck()]
    assert cluster.registries["zk"].address == "127.0.0.1:2181"


def test_cluster_defaults():
    cluster = Cluster.from_dict({"name": "c"})
    assert cluster.type is DiscoveryType.Static
    assert cluster.lb is LbPolicy.RoundRobin
    assert cluster.hosts == []
    assert cluster.registries == {}


def test_registry_protocol_defaults_to_zookeeper():
    cluster = Cluster.from_dict({"registries": {"r": {"address": "x"}}})
    assert cluster.registries["r"].protocol == "zookeeper"


def test_cluster_unknown_lb_policy():
    with pytest.raises(ValueError):
        Cluster.from_dict({"lb_policy": "Fastest"})


def test_listener_from_dict():
    listener = Listener.from_dict(
        {
            "name": "net/http",
            "address": {"socket_address": {"protocol_type": "HTTP", "port": 8888}},
            "filter_chains": [
                {
                    "filter_chain_match": {"domains": ["api.example.com"]},
                    "filters": [{"name": "dgp.filters.http_connect_manager", "config": {"k": 1}}],
                }
            ],
            "config": {"idle_timeout": "5s"},
        }
    )
    chain = listener.filter_chains[0]
    assert chain.filter_chain_match.domains == ["api.example.com"]
    assert chain.filters[0].name == "dgp.filters.http_connect_manager"
    assert chain.filters[0].config == {"k": 1}
    assert listener.config == {"idle_timeout": "5s"}
    assert listener.address.socket_address.port == 8888


def test_listener_rejects_non_mapping():
    with pytest.raises(ValueError):
        Listener.from_dict(["not", "a", "mapping"])


def test_custom_health_check_is_a_health_check():
    check = CustomHealthCheck(name="probe", config={"x": 1})
    assert isinstance(check, HealthCheck)
    assert check.config == {"x": 1}


def test_pprof_disabled_by_default():
    assert PprofConf().enable is False